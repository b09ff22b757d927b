"""
Tests for the credit facility router
"""

import pytest

from src.config import ZERO_ADDRESS
from src.errors import (
    EventNotFoundError,
    InsufficientCreditError,
    NonceAlreadyUsedError,
    PreCheckError,
    TransactionRevertedError,
)
from src.settlement import select_route
from src.settlement.ledger import ConsumedProofs
from src.settlement.routers import CreditRouter
from tests.factories import (
    CREDIT_FACILITY,
    SELLER_ADDRESS,
    credit_drawn_log,
    credit_extension,
    make_receipt,
    sign_payment,
)


@pytest.fixture
def router(chain):
    return CreditRouter(chain, CREDIT_FACILITY)


def credit_request(account, requirements, value=None, **kwargs):
    ext = credit_extension(kwargs.pop("agent", account.address), **kwargs)
    payload = sign_payment(account, requirements, value=value, extensions={"lobstr-credit": ext})
    return payload, select_route(payload).extension


class TestCreditRouter:

    @pytest.mark.asyncio
    async def test_draw_credit(self, router, chain, requirements, test_buyer_account):
        payload, ext = credit_request(test_buyer_account, requirements)
        chain.receipt = make_receipt([credit_drawn_log(5, test_buyer_account.address, 77)])

        outcome = await router.settle(payload, requirements, ext)

        assert outcome.extensions == {"lobstr-credit": {"drawId": "5", "escrowJobId": "77"}}
        (address, function, args), = chain.write_calls
        assert address == CREDIT_FACILITY
        assert function == "drawCreditForAgent"
        assert args == (test_buyer_account.address, 7, SELLER_ADDRESS, 1_000_000)

    @pytest.mark.asyncio
    async def test_reads_available_credit_of_agent(self, router, chain, requirements, test_buyer_account):
        payload, ext = credit_request(test_buyer_account, requirements)
        chain.receipt = make_receipt([credit_drawn_log(5, test_buyer_account.address, 77)])

        await router.settle(payload, requirements, ext)

        assert chain.reads_of("getAvailableCredit") == [
            (CREDIT_FACILITY, "getAvailableCredit", (test_buyer_account.address,))
        ]

    @pytest.mark.asyncio
    async def test_insufficient_credit(self, router, chain, requirements, test_buyer_account):
        chain.reads["getAvailableCredit"] = 400_000
        payload, ext = credit_request(test_buyer_account, requirements)

        with pytest.raises(InsufficientCreditError) as exc_info:
            await router.settle(payload, requirements, ext)

        assert exc_info.value.available == 400_000
        assert exc_info.value.required == 1_000_000
        assert "400000" in str(exc_info.value)
        assert "1000000" in str(exc_info.value)
        assert chain.write_calls == []

    @pytest.mark.asyncio
    async def test_exact_available_credit_is_enough(self, router, chain, requirements, test_buyer_account):
        chain.reads["getAvailableCredit"] = 1_000_000
        payload, ext = credit_request(test_buyer_account, requirements)
        chain.receipt = make_receipt([credit_drawn_log(1, test_buyer_account.address, 2)])

        outcome = await router.settle(payload, requirements, ext)

        assert outcome.extensions["lobstr-credit"]["drawId"] == "1"

    @pytest.mark.asyncio
    async def test_agent_must_be_proof_signer(self, router, chain, requirements, test_buyer_account, other_account):
        """The operator never draws on a credit line whose owner did not sign this request"""
        payload, ext = credit_request(test_buyer_account, requirements, agent=other_account.address)

        with pytest.raises(PreCheckError, match="not the signer"):
            await router.settle(payload, requirements, ext)
        assert chain.write_calls == []

    @pytest.mark.asyncio
    async def test_seller_must_match_pay_to(self, router, chain, requirements, test_buyer_account, other_account):
        payload, ext = credit_request(test_buyer_account, requirements, seller=other_account.address)

        with pytest.raises(PreCheckError, match="does not match payTo"):
            await router.settle(payload, requirements, ext)
        assert chain.write_calls == []

    @pytest.mark.asyncio
    async def test_unconfigured_facility(self, chain, requirements, test_buyer_account):
        router = CreditRouter(chain, ZERO_ADDRESS)
        payload, ext = credit_request(test_buyer_account, requirements)

        with pytest.raises(PreCheckError, match="X402CreditFacility address not configured"):
            await router.settle(payload, requirements, ext)

    @pytest.mark.asyncio
    async def test_missing_draw_event(self, router, chain, requirements, test_buyer_account):
        payload, ext = credit_request(test_buyer_account, requirements)

        with pytest.raises(EventNotFoundError, match="CreditDrawn event not found"):
            await router.settle(payload, requirements, ext)

    @pytest.mark.asyncio
    async def test_amount_must_match_requirements(self, router, chain, requirements, test_buyer_account):
        """A 1 USDC proof never funds a larger draw"""
        payload, ext = credit_request(test_buyer_account, requirements, amount=500_000_000)

        with pytest.raises(PreCheckError, match="does not match required amount 1000000"):
            await router.settle(payload, requirements, ext)
        assert chain.read_calls == []
        assert chain.write_calls == []

    @pytest.mark.asyncio
    async def test_amount_cannot_exceed_signed_value(self, router, chain, requirements, test_buyer_account):
        payload, ext = credit_request(test_buyer_account, requirements, value="999999")

        with pytest.raises(PreCheckError, match="exceeds signed authorization value 999999"):
            await router.settle(payload, requirements, ext)
        assert chain.read_calls == []
        assert chain.write_calls == []

    @pytest.mark.asyncio
    async def test_same_proof_draws_once(self, router, chain, requirements, test_buyer_account):
        payload, ext = credit_request(test_buyer_account, requirements)
        chain.receipt = make_receipt([credit_drawn_log(5, test_buyer_account.address, 77)])

        await router.settle(payload, requirements, ext)
        with pytest.raises(NonceAlreadyUsedError, match="Payment proof nonce already used"):
            await router.settle(payload, requirements, ext)

        assert len(chain.writes_to("drawCreditForAgent")) == 1

    @pytest.mark.asyncio
    async def test_replay_rejected_across_routers_sharing_a_ledger(self, chain, requirements, test_buyer_account):
        ledger = ConsumedProofs()
        first = CreditRouter(chain, CREDIT_FACILITY, ledger=ledger)
        second = CreditRouter(chain, CREDIT_FACILITY, ledger=ledger)
        payload, ext = credit_request(test_buyer_account, requirements)
        chain.receipt = make_receipt([credit_drawn_log(5, test_buyer_account.address, 77)])

        await first.settle(payload, requirements, ext)
        with pytest.raises(NonceAlreadyUsedError):
            await second.settle(payload, requirements, ext)
        assert len(chain.write_calls) == 1

    @pytest.mark.asyncio
    async def test_precheck_failure_does_not_spend_the_proof(self, router, chain, requirements, test_buyer_account):
        chain.reads["getAvailableCredit"] = 0
        payload, ext = credit_request(test_buyer_account, requirements)

        with pytest.raises(InsufficientCreditError):
            await router.settle(payload, requirements, ext)

        chain.reads["getAvailableCredit"] = 10**12
        chain.receipt = make_receipt([credit_drawn_log(5, test_buyer_account.address, 77)])
        outcome = await router.settle(payload, requirements, ext)
        assert outcome.extensions["lobstr-credit"]["drawId"] == "5"

    @pytest.mark.asyncio
    async def test_reverted_draw_keeps_the_proof_spent(self, router, chain, requirements, test_buyer_account):
        chain.receipt = make_receipt(status=0)
        payload, ext = credit_request(test_buyer_account, requirements)

        with pytest.raises(TransactionRevertedError):
            await router.settle(payload, requirements, ext)
        with pytest.raises(NonceAlreadyUsedError):
            await router.settle(payload, requirements, ext)
        assert len(chain.write_calls) == 1

    @pytest.mark.asyncio
    async def test_authorization_used_on_token(self, router, chain, requirements, test_buyer_account):
        chain.reads["authorizationState"] = True
        payload, ext = credit_request(test_buyer_account, requirements)

        with pytest.raises(NonceAlreadyUsedError, match="Payment authorization nonce already used"):
            await router.settle(payload, requirements, ext)
        assert chain.write_calls == []
