"""
Routing extension payloads carried in PaymentPayload.extensions
"""

from typing import Optional, Tuple
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from web3 import Web3

from src.payments.encoding import to_bytes32


def checksum_address(value: str) -> str:
    """Field validator: any valid hex address, returned checksummed"""
    return Web3.to_checksum_address(value)


def bytes32_hex(value: str) -> str:
    """Field validator: hex that fits in 32 bytes, returned unchanged"""
    to_bytes32(value)
    return value


class SignatureParts(BaseModel):
    """ECDSA signature split into (v, r, s)"""
    v: int = Field(ge=0, le=255)
    r: str
    s: str

    normalize_words = field_validator("r", "s")(bytes32_hex)

    def as_args(self) -> Tuple[int, bytes, bytes]:
        return self.v, to_bytes32(self.r), to_bytes32(self.s)


class PaymentIntent(BaseModel):
    """Buyer-signed escrow intent; x402Nonce is single-use on the bridge"""
    model_config = ConfigDict(populate_by_name=True)

    x402_nonce: str = Field(
        validation_alias=AliasChoices("x402Nonce", "nonce", "x402_nonce"),
        serialization_alias="x402Nonce",
    )
    payer: str
    token: str
    amount: int = Field(ge=0)
    listing_id: int = Field(alias="listingId", ge=0)
    seller: str
    deadline: int

    normalize_nonce = field_validator("x402_nonce")(bytes32_hex)
    normalize_addresses = field_validator("payer", "token", "seller")(checksum_address)

    def as_struct(self) -> tuple:
        """Tuple in PaymentIntent component order for the bridge ABI"""
        return (
            to_bytes32(self.x402_nonce),
            self.payer,
            self.token,
            self.amount,
            self.listing_id,
            self.seller,
            self.deadline,
        )


class ERC3009Authorization(BaseModel):
    """Time-windowed, single-use token pull signed directly by the payer"""
    model_config = ConfigDict(populate_by_name=True)

    from_address: str = Field(alias="from")
    token: str
    amount: int = Field(ge=0)
    valid_after: int = Field(alias="validAfter")
    valid_before: int = Field(alias="validBefore")
    eip3009_nonce: str = Field(
        validation_alias=AliasChoices("eip3009Nonce", "nonce", "eip3009_nonce"),
        serialization_alias="eip3009Nonce",
    )

    normalize_nonce = field_validator("eip3009_nonce")(bytes32_hex)
    normalize_addresses = field_validator("from_address", "token")(checksum_address)

    def as_struct(self) -> tuple:
        return (
            self.from_address,
            self.token,
            self.amount,
            self.valid_after,
            self.valid_before,
            to_bytes32(self.eip3009_nonce),
        )


class BridgeExtension(BaseModel):
    """`lobstr-escrow` extension: deposit into the escrow bridge and open a job"""
    model_config = ConfigDict(populate_by_name=True)

    listing_id: Optional[int] = Field(default=None, alias="listingId")
    payment_intent: PaymentIntent = Field(alias="paymentIntent")
    intent_signature: SignatureParts = Field(alias="intentSignature")
    erc3009_auth: Optional[ERC3009Authorization] = Field(default=None, alias="erc3009Auth")
    erc3009_signature: Optional[SignatureParts] = Field(default=None, alias="erc3009Signature")

    @model_validator(mode="after")
    def check_authorization_pair(self):
        if (self.erc3009_auth is None) != (self.erc3009_signature is None):
            raise ValueError("erc3009Auth and erc3009Signature must be supplied together")
        return self

    @property
    def uses_authorization(self) -> bool:
        return self.erc3009_auth is not None


class CreditDrawRequest(BaseModel):
    """`lobstr-credit` extension: fund the job from the agent's credit line"""
    model_config = ConfigDict(populate_by_name=True)

    agent: str
    listing_id: int = Field(alias="listingId", ge=0)
    seller: str
    amount: int = Field(gt=0)

    normalize_addresses = field_validator("agent", "seller")(checksum_address)


class SkillPurchaseRequest(BaseModel):
    """`lobstr-skill` extension: buy (or meter) access to a SkillRegistry listing"""
    model_config = ConfigDict(populate_by_name=True)

    skill_id: int = Field(alias="skillId", ge=0)
    buyer: str

    normalize_addresses = field_validator("buyer")(checksum_address)
