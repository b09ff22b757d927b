"""
Tests for the consumed payment proof ledger
"""

import pytest

from src.errors import NonceAlreadyUsedError, PreCheckError, SubmissionError
from src.settlement.ledger import ConsumedProofs
from tests.factories import USDC


class Clock:
    def __init__(self, now: float = 1_000):
        self.now = now

    def __call__(self) -> float:
        return self.now


PAYER = "0x" + "ab" * 20
NONCE = "0x" + "cd" * 32


class TestConsumedProofs:

    def test_second_reservation_is_rejected(self):
        ledger = ConsumedProofs(clock=Clock())
        ledger.reserve(USDC, PAYER, NONCE, valid_before=2_000)

        with pytest.raises(NonceAlreadyUsedError, match="Payment proof nonce already used"):
            ledger.reserve(USDC.lower(), PAYER.upper().replace("0X", "0x"), NONCE, valid_before=2_000)

    def test_expired_proofs_are_purged(self):
        clock = Clock()
        ledger = ConsumedProofs(clock=clock)
        ledger.reserve(USDC, PAYER, NONCE, valid_before=2_000)

        clock.now = 2_000
        ledger.reserve(USDC, PAYER, "0x" + "ef" * 32, valid_before=3_000)

        assert len(ledger) == 1
        assert ConsumedProofs.key(USDC, PAYER, NONCE) not in ledger

    def test_hold_releases_on_precheck_failure(self):
        ledger = ConsumedProofs(clock=Clock())

        with pytest.raises(PreCheckError):
            with ledger.hold(USDC, PAYER, NONCE, valid_before=2_000):
                raise PreCheckError("listing inactive")

        assert len(ledger) == 0

    def test_hold_keeps_proof_after_submission(self):
        ledger = ConsumedProofs(clock=Clock())

        with pytest.raises(SubmissionError):
            with ledger.hold(USDC, PAYER, NONCE, valid_before=2_000):
                raise SubmissionError("drawCreditForAgent submission failed: nonce too low")

        assert ConsumedProofs.key(USDC, PAYER, NONCE) in ledger
