"""
Credit facility router
Draws from an agent's credit line to fund an escrow job, no buyer funds move at settlement time
"""

from typing import Optional

from web3 import Web3
import structlog

from src.chain.abis import CREDIT_FACILITY_ABI
from src.chain.events import find_event
from src.errors import EventNotFoundError, InsufficientCreditError, PreCheckError
from src.models import PaymentPayload, PaymentRequirements, ROUTE_EXTENSIONS, SettlementRoute
from src.payments.models import CreditDrawRequest
from src.settlement.ledger import ConsumedProofs
from src.settlement.routers.base import RouterOutcome, SettlementRouter

logger = structlog.get_logger()

CREDIT_DRAWN_EVENT = "CreditDrawn"


class CreditRouter(SettlementRouter):
    """
    The facilitator signer calls drawCreditForAgent as an operator on the
    agent's behalf. It only does so for the agent that signed the payment
    proof of this request, only towards the seller named in payTo and only
    for the amount that proof authorizes. Each proof funds at most one draw.
    """

    route = SettlementRoute.CREDIT

    def __init__(
        self,
        chain,
        facility_address: str,
        receipt_timeout=None,
        ledger: Optional[ConsumedProofs] = None,
    ):
        super().__init__(chain, receipt_timeout)
        self.facility_address = facility_address
        self.ledger = ledger if ledger is not None else ConsumedProofs()

    def check_request(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
        extension: CreditDrawRequest,
    ) -> None:
        if extension.agent.lower() != payload.payer.lower():
            raise PreCheckError(
                f"Credit agent {extension.agent} is not the signer of the payment proof {payload.payer}"
            )
        if extension.seller.lower() != requirements.pay_to.lower():
            raise PreCheckError(
                f"Credit seller {extension.seller} does not match payTo {requirements.pay_to}"
            )
        if extension.amount != requirements.amount_int:
            raise PreCheckError(
                f"Credit amount {extension.amount} does not match required amount {requirements.amount_int}"
            )
        signed_value = int(payload.payload.authorization.value)
        if extension.amount > signed_value:
            raise PreCheckError(
                f"Credit amount {extension.amount} exceeds signed authorization value {signed_value}"
            )

    async def settle(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
        extension: CreditDrawRequest,
    ) -> RouterOutcome:
        facility = self.require_configured(self.facility_address, "X402CreditFacility")
        self.check_request(payload, requirements, extension)

        agent = Web3.to_checksum_address(extension.agent)
        seller = Web3.to_checksum_address(extension.seller)
        authorization = payload.payload.authorization

        with self.ledger.hold(requirements.asset, agent, authorization.nonce, authorization.valid_before):
            await self.ensure_authorization_unused(payload, requirements)

            available = await self.chain.read_contract(
                facility, CREDIT_FACILITY_ABI, "getAvailableCredit", (agent,)
            )
            if available < extension.amount:
                raise InsufficientCreditError(agent, available, extension.amount)

            logger.info(
                "credit_draw_submitting",
                agent=agent,
                seller=seller,
                listing_id=extension.listing_id,
                amount=extension.amount,
                available=available,
            )
            tx_hash = await self.submit(
                facility,
                CREDIT_FACILITY_ABI,
                "drawCreditForAgent",
                (agent, extension.listing_id, seller, extension.amount),
            )
            receipt = await self.confirm(tx_hash)

        event = find_event(receipt, CREDIT_FACILITY_ABI, CREDIT_DRAWN_EVENT, contract_address=facility)
        if event is None or not event["drawId"]:
            raise EventNotFoundError(CREDIT_DRAWN_EVENT, tx_hash)

        logger.info(
            "credit_draw_confirmed",
            tx_hash=tx_hash,
            draw_id=event["drawId"],
            escrow_job_id=event["escrowJobId"],
        )
        return RouterOutcome(
            tx_hash=tx_hash,
            extensions={
                ROUTE_EXTENSIONS[self.route]: {
                    "drawId": str(event["drawId"]),
                    "escrowJobId": str(event["escrowJobId"]),
                }
            },
        )
