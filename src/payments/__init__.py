"""
LOBSTR Payment Module
x402 exact-scheme proof verification and routing extension payloads
"""

from src.payments.models import (
    SignatureParts,
    PaymentIntent,
    ERC3009Authorization,
    BridgeExtension,
    CreditDrawRequest,
    SkillPurchaseRequest,
)
from src.payments.verifier import (
    ProofVerifier,
    build_transfer_typed_data,
)
from src.payments.encoding import to_bytes32, split_signature

__all__ = [
    "SignatureParts",
    "PaymentIntent",
    "ERC3009Authorization",
    "BridgeExtension",
    "CreditDrawRequest",
    "SkillPurchaseRequest",
    "ProofVerifier",
    "build_transfer_typed_data",
    "to_bytes32",
    "split_signature",
]
