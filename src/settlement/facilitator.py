"""
Facilitator core
Single entry point that verifies a payment proof, admits the seller and settles through one router
"""

from typing import Any, Dict, Mapping, Optional

import structlog

from src.chain import ChainClient
from src.config import FacilitatorConfig
from src.errors import ErrorKind, FacilitatorError, MalformedRequestError
from src.models import (
    PaymentPayload,
    PaymentRequirements,
    ROUTE_EXTENSIONS,
    SettlementResult,
    SettlementRoute,
    TRUST_EXTENSION,
    VerifyResult,
)
from src.payments.verifier import ProofVerifier
from src.settlement.dispatch import select_route
from src.settlement.hooks import SettleContext, TrustAdmissionHook, TrustEnrichmentHook
from src.settlement.ledger import ConsumedProofs
from src.settlement.routers import BridgeRouter, CreditRouter, DirectRouter, SettlementRouter, SkillRouter
from src.trust import TrustOracle

logger = structlog.get_logger()


class Facilitator:
    """
    Settlement flow per request:

    1. select the route from the payload's routing extension
    2. verify the proof (no chain writes)
    3. before-settle hook: seller admission on trust thresholds
    4. router pre-checks, one transaction, receipt decoding
    5. after-settle hook: attach refreshed seller trust

    Every failure is terminal for the request and reported in the result;
    nothing is retried here.
    """

    def __init__(
        self,
        chain,
        verifier: ProofVerifier,
        routers: Mapping[SettlementRoute, SettlementRouter],
        before_settle: TrustAdmissionHook,
        after_settle: TrustEnrichmentHook,
        network: str,
    ):
        self.chain = chain
        self.verifier = verifier
        self.routers = dict(routers)
        self.before_settle = before_settle
        self.after_settle = after_settle
        self.network = network

    async def verify(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> VerifyResult:
        """
        Verify a proof without settling it. Valid proofs carry the seller's
        trust record when it can be read.
        """
        try:
            result = await self.verifier.verify(payload, requirements)
        except Exception as e:
            logger.error("verification_read_failed", payer=payload.payer, error=str(e))
            return VerifyResult(
                is_valid=False,
                invalid_reason=f"unexpected_verify_error: {e}",
                payer=payload.payer,
            )

        if result.is_valid:
            extension = await self.after_settle.trust_extension(requirements.pay_to)
            if extension:
                result.extensions = {**(result.extensions or {}), **extension}
        return result

    async def settle(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> SettlementResult:
        log = logger.bind(seller=requirements.pay_to, payer=payload.payer)

        try:
            routed = select_route(payload)
        except MalformedRequestError as e:
            log.warning("settlement_malformed", reason=e.message)
            return SettlementResult.failure(e.message, e.kind)

        log = log.bind(route=routed.route.value)
        log.info("settlement_started", amount=requirements.amount)

        try:
            verification = await self.verifier.verify(payload, requirements)
        except Exception as e:
            log.error("verification_read_failed", error=str(e))
            return SettlementResult.failure(f"Verification failed: {e}", ErrorKind.SUBMISSION_FAILED)
        if not verification.is_valid:
            return SettlementResult.failure(
                verification.invalid_reason or "Payment verification failed",
                ErrorKind.VERIFICATION_FAILED,
            )

        ctx = SettleContext(payload=payload, requirements=requirements, routed=routed)
        decision = await self.before_settle.before_settle(ctx)
        if decision.abort:
            log.warning("settlement_admission_rejected", reason=decision.reason)
            return SettlementResult.failure(decision.reason, ErrorKind.ADMISSION_REJECTED)

        router = self.routers[routed.route]
        try:
            outcome = await router.settle(payload, requirements, routed.extension)
        except FacilitatorError as e:
            log.error("settlement_failed", kind=e.kind.value, reason=e.message)
            return SettlementResult.failure(e.message, e.kind)
        except Exception as e:
            # Pre-check reads or transport errors that escaped the router
            log.error("settlement_failed", kind=ErrorKind.SUBMISSION_FAILED.value, reason=str(e))
            return SettlementResult.failure(str(e), ErrorKind.SUBMISSION_FAILED)

        result = SettlementResult(
            success=True,
            tx_hash=outcome.tx_hash,
            network=requirements.network,
            payer=payload.payer,
            extensions=dict(outcome.extensions),
        )
        await self.after_settle.after_settle(ctx, result)

        log.info("settlement_completed", tx_hash=result.tx_hash, result_ids=result.router_result_id)
        return result

    def supported(self) -> Dict[str, Any]:
        """Kinds, routing extensions and signer this facilitator serves"""
        return {
            "kinds": [
                {"x402Version": version, "scheme": "exact", "network": self.network}
                for version in (1, 2)
            ],
            "extensions": [*ROUTE_EXTENSIONS.values(), TRUST_EXTENSION],
            "signers": {"eip155:*": [self.chain.address]},
        }


def build_facilitator(
    config: FacilitatorConfig,
    chain: Optional[Any] = None,
) -> Facilitator:
    """
    Wire the facilitator from configuration.

    The chain client (RPC connection + operator key) is created once here and
    shared by every component for the life of the process.
    """
    if chain is None:
        if not config.facilitator_private_key:
            raise ValueError("FACILITATOR_PRIVATE_KEY is required")
        chain = ChainClient(
            rpc_url=config.resolved_rpc_url,
            private_key=config.facilitator_private_key,
            chain_id=config.chain_id,
            receipt_timeout=config.receipt_timeout_seconds,
        )

    contracts = config.contracts
    oracle = TrustOracle(chain, contracts)
    verifier = ProofVerifier(
        chain,
        chain_id=config.chain_id,
        networks=(config.caip2_network, config.profile.legacy_name),
    )
    timeout = config.receipt_timeout_seconds
    # Credit and skill settlements leave the authorization nonce unused on the token
    consumed = ConsumedProofs()
    routers = {
        SettlementRoute.DIRECT: DirectRouter(chain, receipt_timeout=timeout),
        SettlementRoute.BRIDGE: BridgeRouter(chain, contracts.x402_escrow_bridge, receipt_timeout=timeout),
        SettlementRoute.CREDIT: CreditRouter(
            chain, contracts.x402_credit_facility, receipt_timeout=timeout, ledger=consumed
        ),
        SettlementRoute.SKILL: SkillRouter(
            chain, contracts.skill_registry, receipt_timeout=timeout, ledger=consumed
        ),
    }

    logger.info(
        "facilitator_built",
        network=config.caip2_network,
        signer=chain.address,
        min_reputation_score=config.min_reputation_score,
        require_active_stake=config.require_active_stake,
    )
    return Facilitator(
        chain=chain,
        verifier=verifier,
        routers=routers,
        before_settle=TrustAdmissionHook(
            oracle,
            min_reputation_score=config.min_reputation_score,
            require_active_stake=config.require_active_stake,
        ),
        after_settle=TrustEnrichmentHook(oracle),
        network=config.caip2_network,
    )
