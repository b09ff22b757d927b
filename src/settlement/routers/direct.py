"""
Direct router
Standard same-chain exact settlement: EIP-3009 transferWithAuthorization on the token itself
"""

from web3 import Web3
import structlog

from src.chain.abis import ERC20_ABI
from src.errors import MalformedRequestError
from src.models import PaymentPayload, PaymentRequirements, SettlementRoute
from src.payments.encoding import split_signature
from src.settlement.routers.base import RouterOutcome, SettlementRouter

logger = structlog.get_logger()


class DirectRouter(SettlementRouter):
    """Default route when the payload carries no routing extension"""

    route = SettlementRoute.DIRECT

    async def settle(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
        extension=None,
    ) -> RouterOutcome:
        authorization = payload.payload.authorization
        token = Web3.to_checksum_address(requirements.asset)
        payer = Web3.to_checksum_address(authorization.from_address)

        try:
            v, r, s = split_signature(payload.payload.signature)
        except ValueError as e:
            raise MalformedRequestError(str(e)) from e

        nonce = await self.ensure_authorization_unused(payload, requirements)

        tx_hash = await self.submit(
            token,
            ERC20_ABI,
            "transferWithAuthorization",
            (
                payer,
                Web3.to_checksum_address(authorization.to),
                int(authorization.value),
                authorization.valid_after,
                authorization.valid_before,
                nonce,
                v,
                r,
                s,
            ),
        )
        receipt = await self.confirm(tx_hash)

        logger.info(
            "transfer_with_authorization_confirmed",
            tx_hash=tx_hash,
            block_number=receipt.get("blockNumber"),
            payer=payer,
            amount=authorization.value,
        )
        return RouterOutcome(tx_hash=tx_hash)
