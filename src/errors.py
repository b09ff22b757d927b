"""
Settlement error taxonomy
Every failure a settlement request can end in, grouped by the stage that produced it
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Stage at which a settlement request failed"""
    MALFORMED_REQUEST = "malformed_request"
    VERIFICATION_FAILED = "verification_failed"
    ADMISSION_REJECTED = "admission_rejected"
    PRECHECK_FAILED = "precheck_failed"
    SUBMISSION_FAILED = "submission_failed"
    AMBIGUOUS_OUTCOME = "ambiguous_outcome"


class FacilitatorError(Exception):
    """Base class for terminal settlement errors"""
    kind: ErrorKind = ErrorKind.SUBMISSION_FAILED

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MalformedRequestError(FacilitatorError):
    """Request is missing fields or carries conflicting routing extensions"""
    kind = ErrorKind.MALFORMED_REQUEST


class PreCheckError(FacilitatorError):
    """A read-only check showed the transaction would revert"""
    kind = ErrorKind.PRECHECK_FAILED


class NonceAlreadyUsedError(PreCheckError):

    def __init__(self, nonce: str, label: str = "x402 nonce"):
        self.nonce = nonce
        super().__init__(f"{label} already used: {nonce}")


class InsufficientCreditError(PreCheckError):

    def __init__(self, agent: str, available: int, required: int):
        self.agent = agent
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient credit: agent {agent} has {available} available, needs {required}"
        )


class SubmissionError(FacilitatorError):
    """The write itself failed (RPC error, revert)"""
    kind = ErrorKind.SUBMISSION_FAILED


class TransactionRevertedError(SubmissionError):

    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} reverted on-chain")


class AmbiguousOutcomeError(FacilitatorError):
    """On-chain state may have changed; needs manual reconciliation, never a retry"""
    kind = ErrorKind.AMBIGUOUS_OUTCOME

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class ReceiptTimeoutError(AmbiguousOutcomeError):

    def __init__(self, tx_hash: str, timeout: float):
        self.timeout = timeout
        super().__init__(
            f"Transaction {tx_hash} not mined within {timeout:g}s; outcome unknown",
            tx_hash=tx_hash,
        )


class EventNotFoundError(AmbiguousOutcomeError):

    def __init__(self, event_name: str, tx_hash: str):
        self.event_name = event_name
        super().__init__(
            f"{event_name} event not found in transaction receipt {tx_hash}",
            tx_hash=tx_hash,
        )
