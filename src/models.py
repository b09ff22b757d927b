"""
LOBSTR Facilitator Core Data Models
x402 wire models shared by the verifier, the routers and the API
"""

from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from src.errors import ErrorKind


TRUST_EXTENSION = "lobstr-trust"


class SettlementRoute(str, Enum):
    """Settlement mechanism chosen for a request, one per request"""
    DIRECT = "direct"
    BRIDGE = "bridge"
    CREDIT = "credit"
    SKILL = "skill"


# Payload extension key that selects each non-default route
ROUTE_EXTENSIONS: Dict[SettlementRoute, str] = {
    SettlementRoute.BRIDGE: "lobstr-escrow",
    SettlementRoute.CREDIT: "lobstr-credit",
    SettlementRoute.SKILL: "lobstr-skill",
}


class RequirementsExtra(BaseModel):
    """EIP-712 domain of the settlement token"""
    model_config = ConfigDict(extra="allow")

    name: str = "USD Coin"
    version: str = "2"


class PaymentRequirements(BaseModel):
    """What the seller asks to be paid, taken from its service description"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    scheme: str = Field(default="exact", description="Payment scheme")
    network: str = Field(description="CAIP-2 network id or legacy x402 name")
    amount: str = Field(description="Amount in the token's smallest unit")
    asset: str = Field(description="Token contract address")
    pay_to: str = Field(alias="payTo", description="Seller wallet address")
    max_timeout_seconds: Optional[int] = Field(default=None, alias="maxTimeoutSeconds")
    extra: Optional[RequirementsExtra] = None

    @property
    def amount_int(self) -> int:
        return int(self.amount)


class TransferAuthorization(BaseModel):
    """EIP-3009 TransferWithAuthorization message signed by the buyer"""
    model_config = ConfigDict(populate_by_name=True)

    from_address: str = Field(alias="from")
    to: str
    value: str
    valid_after: int = Field(default=0, alias="validAfter")
    valid_before: int = Field(alias="validBefore")
    nonce: str


class ExactPayloadData(BaseModel):
    """Signature and authorization of the exact EVM scheme"""
    signature: str
    authorization: TransferAuthorization


class PaymentPayload(BaseModel):
    """x402 payment payload submitted by the buyer"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    x402_version: int = Field(default=2, alias="x402Version")
    # v1 carries scheme/network at the top level, v2 echoes the requirements in `accepted`
    scheme: Optional[str] = None
    network: Optional[str] = None
    accepted: Optional[PaymentRequirements] = None
    payload: ExactPayloadData
    extensions: Optional[Dict[str, Any]] = None

    @property
    def payer(self) -> str:
        return self.payload.authorization.from_address

    @property
    def declared_scheme(self) -> Optional[str]:
        return self.accepted.scheme if self.accepted else self.scheme

    @property
    def declared_network(self) -> Optional[str]:
        return self.accepted.network if self.accepted else self.network


class VerifyResult(BaseModel):
    """Outcome of proof verification"""
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(alias="isValid")
    invalid_reason: Optional[str] = Field(default=None, alias="invalidReason")
    payer: Optional[str] = None
    extensions: Optional[Dict[str, Any]] = None


class SellerTrust(BaseModel):
    """On-chain trust record of a seller, recomputed on every request"""
    model_config = ConfigDict(populate_by_name=True)

    address: str
    reputation_score: int = Field(alias="reputationScore")
    reputation_tier: str = Field(alias="reputationTier")
    stake_tier: str = Field(alias="stakeTier")
    stake_amount: str = Field(alias="stakeAmount")
    completed_jobs: int = Field(alias="completedJobs")
    disputes_won: int = Field(alias="disputesWon")
    disputes_lost: int = Field(alias="disputesLost")


class SettlementResult(BaseModel):
    """Settlement response, either a tx hash with ids or an error reason"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    tx_hash: Optional[str] = Field(default=None, alias="txHash")
    network: Optional[str] = None
    payer: Optional[str] = None
    extensions: Optional[Dict[str, Any]] = None
    error_reason: Optional[str] = Field(default=None, alias="errorReason")
    error_kind: Optional[ErrorKind] = Field(default=None, alias="errorKind")

    @classmethod
    def failure(cls, reason: str, kind: ErrorKind) -> "SettlementResult":
        return cls(success=False, error_reason=reason, error_kind=kind)

    @property
    def router_result_id(self) -> Optional[Dict[str, Any]]:
        """Router-specific ids (jobId, drawId, accessId) when a routed settlement succeeded"""
        for key in ROUTE_EXTENSIONS.values():
            if self.extensions and key in self.extensions:
                return self.extensions[key]
        return None

    @property
    def trust(self) -> Optional[SellerTrust]:
        if self.extensions and TRUST_EXTENSION in self.extensions:
            return SellerTrust.model_validate(self.extensions[TRUST_EXTENSION])
        return None

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
