"""
Escrow bridge router
Moves buyer funds into the X402EscrowBridge and opens an escrowed job in the same transaction
"""

from web3 import Web3
import structlog

from src.chain.abis import ESCROW_BRIDGE_ABI
from src.chain.events import find_event
from src.errors import EventNotFoundError, NonceAlreadyUsedError, PreCheckError
from src.models import PaymentPayload, PaymentRequirements, ROUTE_EXTENSIONS, SettlementRoute
from src.payments.encoding import to_bytes32
from src.payments.models import BridgeExtension
from src.settlement.routers.base import RouterOutcome, SettlementRouter

logger = structlog.get_logger()

JOB_CREATED_EVENT = "EscrowedJobCreated"


class BridgeRouter(SettlementRouter):
    """
    Two submission modes:

    - Mode A (depositAndCreateJob): the payer approved the bridge beforehand,
      only the signed PaymentIntent is submitted and the bridge pulls funds.
    - Mode B (depositWithAuthorization): the payer signed an EIP-3009
      authorization instead; authorization and intent go in one transaction.
    """

    route = SettlementRoute.BRIDGE

    def __init__(self, chain, bridge_address: str, receipt_timeout=None):
        super().__init__(chain, receipt_timeout)
        self.bridge_address = bridge_address

    async def settle(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
        extension: BridgeExtension,
    ) -> RouterOutcome:
        bridge = self.require_configured(self.bridge_address, "X402EscrowBridge")
        intent = extension.payment_intent

        if intent.seller.lower() != requirements.pay_to.lower():
            raise PreCheckError(
                f"Payment intent seller {intent.seller} does not match payTo {requirements.pay_to}"
            )

        # The contract rejects reused nonces too; checking first saves the gas
        used = await self.chain.read_contract(
            bridge, ESCROW_BRIDGE_ABI, "nonceUsed", (to_bytes32(intent.x402_nonce),)
        )
        if used:
            raise NonceAlreadyUsedError(intent.x402_nonce)

        intent_v, intent_r, intent_s = extension.intent_signature.as_args()
        if extension.uses_authorization:
            auth_v, auth_r, auth_s = extension.erc3009_signature.as_args()
            function = "depositWithAuthorization"
            args = (
                extension.erc3009_auth.as_struct(),
                auth_v,
                auth_r,
                auth_s,
                intent.as_struct(),
                intent_v,
                intent_r,
                intent_s,
            )
        else:
            function = "depositAndCreateJob"
            args = (intent.as_struct(), intent_v, intent_r, intent_s)

        logger.info(
            "bridge_settlement_submitting",
            mode=function,
            x402_nonce=intent.x402_nonce,
            payer=intent.payer,
            seller=intent.seller,
            amount=intent.amount,
        )
        tx_hash = await self.submit(bridge, ESCROW_BRIDGE_ABI, function, args)
        receipt = await self.confirm(tx_hash)

        event = find_event(receipt, ESCROW_BRIDGE_ABI, JOB_CREATED_EVENT, contract_address=bridge)
        if event is None or not event["jobId"]:
            raise EventNotFoundError(JOB_CREATED_EVENT, tx_hash)

        job_id = event["jobId"]
        logger.info("bridge_settlement_confirmed", tx_hash=tx_hash, job_id=job_id)
        return RouterOutcome(
            tx_hash=tx_hash,
            extensions={
                ROUTE_EXTENSIONS[self.route]: {
                    "jobId": str(job_id),
                    "x402Nonce": Web3.to_hex(to_bytes32(intent.x402_nonce)),
                }
            },
        )
