"""
Skill registry router
Buys access to a SkillRegistry listing for the buyer, or meters one call on access already held
"""

from typing import Optional

from web3 import Web3
import structlog

from src.chain.abis import SKILL_ACCESS_COMPONENTS, SKILL_LISTING_COMPONENTS, SKILL_REGISTRY_ABI
from src.chain.events import find_event
from src.errors import EventNotFoundError, PreCheckError
from src.models import PaymentPayload, PaymentRequirements, ROUTE_EXTENSIONS, SettlementRoute
from src.payments.models import SkillPurchaseRequest
from src.settlement.ledger import ConsumedProofs
from src.settlement.routers.base import RouterOutcome, SettlementRouter

logger = structlog.get_logger()

SKILL_PURCHASED_EVENT = "SkillPurchased"

LISTING_FIELDS = [component["name"] for component in SKILL_LISTING_COMPONENTS]
ACCESS_FIELDS = [component["name"] for component in SKILL_ACCESS_COMPONENTS]

# SkillRegistry PricingModel.PER_CALL; ONE_TIME is 0, SUBSCRIPTION is 1
PER_CALL = 2


class SkillRouter(SettlementRouter):
    """
    Three outcomes, picked from the registry state of (buyer, skillId):

    - no active access: purchaseSkill, accessId from SkillPurchased
    - active PER_CALL access: recordUsage(accessId, 1)
    - any other active access: nothing to submit, the existing accessId is returned
    """

    route = SettlementRoute.SKILL

    def __init__(
        self,
        chain,
        registry_address: str,
        receipt_timeout=None,
        ledger: Optional[ConsumedProofs] = None,
    ):
        super().__init__(chain, receipt_timeout)
        self.registry_address = registry_address
        self.ledger = ledger if ledger is not None else ConsumedProofs()

    async def read_listing(self, registry: str, skill_id: int) -> dict:
        listing = await self.chain.read_contract(registry, SKILL_REGISTRY_ABI, "getSkill", (skill_id,))
        return dict(zip(LISTING_FIELDS, listing))

    async def read_access(self, registry: str, buyer: str, skill_id: int) -> dict:
        access = await self.chain.read_contract(
            registry, SKILL_REGISTRY_ABI, "getAccessByBuyer", (buyer, skill_id)
        )
        return dict(zip(ACCESS_FIELDS, access))

    @staticmethod
    def check_listing(listing: dict, skill_id: int, requirements: PaymentRequirements) -> None:
        if not listing["active"]:
            raise PreCheckError(f"Skill {skill_id} is not active")
        if str(listing["seller"]).lower() != requirements.pay_to.lower():
            raise PreCheckError(
                f"Skill {skill_id} seller {listing['seller']} does not match payTo {requirements.pay_to}"
            )
        if str(listing["settlementToken"]).lower() != requirements.asset.lower():
            raise PreCheckError(
                f"Skill {skill_id} settles in {listing['settlementToken']}, not {requirements.asset}"
            )
        if listing["price"] != requirements.amount_int:
            raise PreCheckError(
                f"Skill {skill_id} price {listing['price']} does not match required amount {requirements.amount_int}"
            )

    def outcome(self, tx_hash: Optional[str], access_id: int, action: str) -> RouterOutcome:
        return RouterOutcome(
            tx_hash=tx_hash,
            extensions={ROUTE_EXTENSIONS[self.route]: {"accessId": str(access_id), "action": action}},
        )

    async def settle(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
        extension: SkillPurchaseRequest,
    ) -> RouterOutcome:
        registry = self.require_configured(self.registry_address, "SkillRegistry")

        if extension.buyer.lower() != payload.payer.lower():
            raise PreCheckError(
                f"Skill buyer {extension.buyer} is not the signer of the payment proof {payload.payer}"
            )

        buyer = Web3.to_checksum_address(extension.buyer)
        skill_id = extension.skill_id
        authorization = payload.payload.authorization
        log = logger.bind(skill_id=skill_id, buyer=buyer)

        with self.ledger.hold(requirements.asset, buyer, authorization.nonce, authorization.valid_before):
            await self.ensure_authorization_unused(payload, requirements)

            listing = await self.read_listing(registry, skill_id)
            self.check_listing(listing, skill_id, requirements)

            has_access = await self.chain.read_contract(
                registry, SKILL_REGISTRY_ABI, "hasActiveAccess", (buyer, skill_id)
            )
            if has_access:
                access = await self.read_access(registry, buyer, skill_id)
                if listing["pricingModel"] != PER_CALL:
                    log.info("skill_access_already_held", access_id=access["id"])
                    return self.outcome(None, access["id"], "existing")

                tx_hash = await self.submit(
                    registry, SKILL_REGISTRY_ABI, "recordUsage", (access["id"], 1)
                )
                await self.confirm(tx_hash)
                log.info("skill_usage_recorded", tx_hash=tx_hash, access_id=access["id"])
                return self.outcome(tx_hash, access["id"], "usage")

            log.info("skill_purchase_submitting", price=listing["price"], pricing_model=listing["pricingModel"])
            tx_hash = await self.submit(registry, SKILL_REGISTRY_ABI, "purchaseSkill", (skill_id,))
            receipt = await self.confirm(tx_hash)

        event = find_event(receipt, SKILL_REGISTRY_ABI, SKILL_PURCHASED_EVENT, contract_address=registry)
        if event is None or not event["accessId"]:
            raise EventNotFoundError(SKILL_PURCHASED_EVENT, tx_hash)

        log.info("skill_purchase_confirmed", tx_hash=tx_hash, access_id=event["accessId"])
        return self.outcome(tx_hash, event["accessId"], "purchase")
