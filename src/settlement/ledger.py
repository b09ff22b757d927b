"""
Process-local record of payment proofs spent on routes that leave the
buyer's EIP-3009 authorization unconsumed on the token
"""

import time
from contextlib import contextmanager
from typing import Callable, Dict, Tuple

import structlog

from src.errors import MalformedRequestError, NonceAlreadyUsedError, PreCheckError

logger = structlog.get_logger()

ProofKey = Tuple[str, str, str]


class ConsumedProofs:
    """
    Credit draws and skill purchases are paid by the facility or the
    registry, so the authorization nonce stays fresh on the token. A proof is
    held here from its first settlement attempt until its validBefore, and a
    second attempt with the same (token, payer, nonce) is rejected.

    Entries live in memory only. A restarted process or a second instance
    does not see them.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._held: Dict[ProofKey, int] = {}

    def __len__(self) -> int:
        return len(self._held)

    def __contains__(self, key: ProofKey) -> bool:
        return key in self._held

    @staticmethod
    def key(token: str, payer: str, nonce: str) -> ProofKey:
        return token.lower(), payer.lower(), nonce.lower()

    def purge(self) -> None:
        """Drop proofs past validBefore; verification rejects them anyway"""
        now = int(self.clock())
        for key in [key for key, valid_before in self._held.items() if valid_before <= now]:
            del self._held[key]

    def reserve(self, token: str, payer: str, nonce: str, valid_before: int) -> ProofKey:
        self.purge()
        key = self.key(token, payer, nonce)
        if key in self._held:
            logger.warning("payment_proof_replayed", payer=payer, nonce=nonce)
            raise NonceAlreadyUsedError(nonce, label="Payment proof nonce")
        self._held[key] = valid_before
        return key

    def release(self, key: ProofKey) -> None:
        self._held.pop(key, None)

    @contextmanager
    def hold(self, token: str, payer: str, nonce: str, valid_before: int):
        """
        Reserve a proof for one settlement attempt. The reservation is given
        back only when the attempt failed before anything was submitted.
        """
        key = self.reserve(token, payer, nonce, valid_before)
        try:
            yield key
        except (MalformedRequestError, PreCheckError):
            self.release(key)
            raise
