"""
Settlement extension points
One admission check before the router runs, one enrichment step after it succeeds
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog

from src.models import (
    PaymentPayload,
    PaymentRequirements,
    SettlementResult,
    TRUST_EXTENSION,
)
from src.settlement.dispatch import RoutedSettlement

logger = structlog.get_logger()


@dataclass(frozen=True)
class SettleContext:
    payload: PaymentPayload
    requirements: PaymentRequirements
    routed: RoutedSettlement

    @property
    def seller(self) -> str:
        return self.requirements.pay_to


@dataclass(frozen=True)
class HookDecision:
    abort: bool = False
    reason: Optional[str] = None


class TrustAdmissionHook:
    """
    Pre-settle admission control on the seller's on-chain trust.

    A trust query that fails is a rejection; a seller is never admitted by default.
    """

    def __init__(self, oracle, min_reputation_score: int = 0, require_active_stake: bool = True):
        self.oracle = oracle
        self.min_reputation_score = min_reputation_score
        self.require_active_stake = require_active_stake

    async def before_settle(self, ctx: SettleContext) -> HookDecision:
        try:
            trust = await self.oracle.query_trust(ctx.seller)
        except Exception as e:
            logger.error("trust_query_failed", seller=ctx.seller, error=str(e))
            return HookDecision(abort=True, reason=f"Failed to query seller trust for {ctx.seller}")

        if self.require_active_stake and trust.stake_tier == "None":
            return HookDecision(abort=True, reason=f"Seller {ctx.seller} has no active stake on LOBSTR")

        if trust.reputation_score < self.min_reputation_score:
            return HookDecision(
                abort=True,
                reason=(
                    f"Seller reputation {trust.reputation_score} below minimum "
                    f"{self.min_reputation_score}"
                ),
            )

        return HookDecision()


class TrustEnrichmentHook:
    """
    Post-settle enrichment with the seller's refreshed trust record.

    Best effort: a failed query is logged and the field omitted, the
    settlement stays successful.
    """

    def __init__(self, oracle):
        self.oracle = oracle

    async def trust_extension(self, seller: str) -> Optional[Dict[str, Any]]:
        """{"lobstr-trust": record}, or None when the record cannot be read"""
        try:
            trust = await self.oracle.query_trust(seller)
        except Exception as e:
            logger.warning("trust_enrichment_failed", seller=seller, error=str(e))
            return None
        return {TRUST_EXTENSION: trust.model_dump(by_alias=True)}

    async def after_settle(self, ctx: SettleContext, result: SettlementResult) -> None:
        extension = await self.trust_extension(ctx.seller)
        if extension:
            result.extensions = {**(result.extensions or {}), **extension}
