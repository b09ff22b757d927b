"""
Payment proof verifier for the x402 exact EVM scheme
Checks that a payload is well-formed and authentically signed for the requirements.
Never writes to the chain.
"""

import time
from typing import Iterable, Optional

from eth_account import Account
from eth_account.messages import encode_typed_data
from web3 import Web3
import structlog

from src.chain.abis import ERC20_ABI
from src.models import (
    PaymentPayload,
    PaymentRequirements,
    RequirementsExtra,
    TransferAuthorization,
    VerifyResult,
)

logger = structlog.get_logger()

# validBefore must leave at least this much room for the transaction to land
VALID_BEFORE_MARGIN_SECONDS = 6

SUPPORTED_SCHEME = "exact"


def build_transfer_typed_data(
    authorization: TransferAuthorization,
    chain_id: int,
    asset: str,
    domain: Optional[RequirementsExtra] = None,
) -> dict:
    """Create EIP-712 typed data for an EIP-3009 transfer authorization"""
    domain = domain or RequirementsExtra()
    nonce = authorization.nonce
    return {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "TransferWithAuthorization": [
                {"name": "from", "type": "address"},
                {"name": "to", "type": "address"},
                {"name": "value", "type": "uint256"},
                {"name": "validAfter", "type": "uint256"},
                {"name": "validBefore", "type": "uint256"},
                {"name": "nonce", "type": "bytes32"},
            ],
        },
        "primaryType": "TransferWithAuthorization",
        "domain": {
            "name": domain.name,
            "version": domain.version,
            "chainId": chain_id,
            "verifyingContract": Web3.to_checksum_address(asset),
        },
        "message": {
            "from": Web3.to_checksum_address(authorization.from_address),
            "to": Web3.to_checksum_address(authorization.to),
            "value": int(authorization.value),
            "validAfter": authorization.valid_after,
            "validBefore": authorization.valid_before,
            "nonce": nonce if nonce.startswith("0x") else f"0x{nonce}",
        },
    }


class ProofVerifier:
    """
    Answers "is this proof authentic and well-formed", independent of the
    settlement route that will act on it.

    Rejections carry a stable invalid_reason code, so the same inputs always
    yield the same reason.
    """

    def __init__(self, chain, chain_id: int, networks: Iterable[str]):
        self.chain = chain
        self.chain_id = chain_id
        self.networks = set(networks)

    async def verify(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> VerifyResult:
        authorization = payload.payload.authorization
        payer = authorization.from_address

        def reject(reason: str) -> VerifyResult:
            logger.info("payment_verification_rejected", reason=reason, payer=payer)
            return VerifyResult(is_valid=False, invalid_reason=reason, payer=payer)

        if requirements.scheme != SUPPORTED_SCHEME or payload.declared_scheme not in (None, SUPPORTED_SCHEME):
            return reject("unsupported_scheme")

        if requirements.network not in self.networks or payload.declared_network not in (None, requirements.network):
            return reject("invalid_network")

        if authorization.to.lower() != requirements.pay_to.lower():
            return reject("invalid_exact_evm_payload_recipient_mismatch")

        if int(authorization.value) < requirements.amount_int:
            return reject("invalid_exact_evm_payload_authorization_value")

        now = int(time.time())
        if authorization.valid_before < now + VALID_BEFORE_MARGIN_SECONDS:
            return reject("invalid_exact_evm_payload_authorization_valid_before")
        if authorization.valid_after > now:
            return reject("invalid_exact_evm_payload_authorization_valid_after")

        typed_data = build_transfer_typed_data(
            authorization, self.chain_id, requirements.asset, requirements.extra
        )
        try:
            encoded = encode_typed_data(full_message=typed_data)
            recovered = Account.recover_message(encoded, signature=payload.payload.signature)
        except Exception as e:
            logger.warning("signature_recovery_failed", error=str(e), payer=payer)
            return reject("invalid_exact_evm_payload_signature")

        if recovered.lower() != payer.lower():
            return reject("invalid_exact_evm_payload_signature")

        balance = await self.chain.read_contract(
            requirements.asset, ERC20_ABI, "balanceOf", (Web3.to_checksum_address(payer),)
        )
        if balance < requirements.amount_int:
            return reject("insufficient_funds")

        return VerifyResult(is_valid=True, payer=payer)
