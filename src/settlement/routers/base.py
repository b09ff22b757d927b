"""
Common shape of the settlement routers
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from web3 import Web3
import structlog

from src.chain.abis import ERC20_ABI
from src.config import ZERO_ADDRESS
from src.errors import (
    AmbiguousOutcomeError,
    FacilitatorError,
    MalformedRequestError,
    NonceAlreadyUsedError,
    PreCheckError,
    SubmissionError,
    TransactionRevertedError,
)
from src.models import PaymentPayload, PaymentRequirements, SettlementRoute
from src.payments.encoding import to_bytes32

logger = structlog.get_logger()


@dataclass
class RouterOutcome:
    """
    A confirmed settlement: tx hash plus router-specific ids keyed by extension name.
    tx_hash is None only when the request was served from existing on-chain state.
    """
    tx_hash: Optional[str]
    extensions: Dict[str, Any] = field(default_factory=dict)


class SettlementRouter(ABC):
    """
    Turns a verified proof into exactly one on-chain state transition.

    Subclasses run their read-only pre-checks, submit one transaction through
    the shared chain client and decode the result ids from the receipt.
    """

    route: SettlementRoute

    def __init__(self, chain, receipt_timeout: Optional[float] = None):
        self.chain = chain
        self.receipt_timeout = receipt_timeout

    @abstractmethod
    async def settle(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
        extension: Any,
    ) -> RouterOutcome:
        ...

    @staticmethod
    def require_configured(address: str, contract_name: str) -> str:
        if not address or address.lower() == ZERO_ADDRESS:
            raise PreCheckError(f"{contract_name} address not configured")
        return address

    async def submit(self, address: str, abi: list, function: str, args: Sequence[Any]) -> str:
        try:
            return await self.chain.write_contract(address, abi, function, args)
        except FacilitatorError:
            raise
        except Exception as e:
            logger.error("transaction_submission_failed", route=self.route.value, function=function, error=str(e))
            raise SubmissionError(f"{function} submission failed: {e}") from e

    async def confirm(self, tx_hash: str) -> Any:
        """Wait for the receipt; a reverted transaction is a submission failure"""
        try:
            receipt = await self.chain.wait_for_receipt(tx_hash, timeout=self.receipt_timeout)
        except FacilitatorError:
            raise
        except Exception as e:
            # Already broadcast, the transaction may still be mined
            raise AmbiguousOutcomeError(
                f"Failed to fetch receipt for {tx_hash}: {e}", tx_hash=tx_hash
            ) from e

        if receipt["status"] != 1:
            raise TransactionRevertedError(tx_hash)
        return receipt

    async def ensure_authorization_unused(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> bytes:
        """Reject a proof whose EIP-3009 nonce the token already consumed; returns the nonce word"""
        authorization = payload.payload.authorization
        try:
            nonce = to_bytes32(authorization.nonce)
        except ValueError as e:
            raise MalformedRequestError(str(e)) from e

        used = await self.chain.read_contract(
            Web3.to_checksum_address(requirements.asset),
            ERC20_ABI,
            "authorizationState",
            (Web3.to_checksum_address(authorization.from_address), nonce),
        )
        if used:
            raise NonceAlreadyUsedError(authorization.nonce, label="Payment authorization nonce")
        return nonce
