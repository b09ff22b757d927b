"""
Factory Boy factories and chain fakes for generating test data
"""

import secrets
import time
from typing import Any, List, Optional

import factory
from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_typed_data
from hexbytes import HexBytes
from web3 import Web3

from src.config import NETWORKS
from src.models import (
    ExactPayloadData,
    PaymentPayload,
    PaymentRequirements,
    TransferAuthorization,
)
from src.payments.verifier import build_transfer_typed_data

MAINNET = NETWORKS["base-mainnet"]
USDC = Web3.to_checksum_address(MAINNET.contracts.usdc)
BRIDGE = Web3.to_checksum_address(MAINNET.contracts.x402_escrow_bridge)
CREDIT_FACILITY = Web3.to_checksum_address(MAINNET.contracts.x402_credit_facility)
SKILL_REGISTRY = Web3.to_checksum_address("0x5c11000000000000000000000000000000000001")

FACILITATOR_KEY = "0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef"
BUYER_KEY = "0xabcdef1234567890abcdef1234567890abcdef1234567890abcdef1234567890"
SELLER_KEY = "0x1111111111111111111111111111111111111111111111111111111111111111"

FACILITATOR_ADDRESS = Account.from_key(FACILITATOR_KEY).address
SELLER_ADDRESS = Account.from_key(SELLER_KEY).address


def random_nonce() -> str:
    return "0x" + secrets.token_hex(32)


class PaymentRequirementsFactory(factory.Factory):
    """Factory for PaymentRequirements: 1 USDC to the test seller on Base"""
    class Meta:
        model = PaymentRequirements

    scheme = "exact"
    network = MAINNET.caip2
    amount = "1000000"
    asset = USDC
    pay_to = SELLER_ADDRESS
    max_timeout_seconds = 60


def sign_payment(
    account,
    requirements: PaymentRequirements,
    value: Optional[str] = None,
    to: Optional[str] = None,
    valid_after: int = 0,
    valid_before: Optional[int] = None,
    nonce: Optional[str] = None,
    extensions: Optional[dict] = None,
    chain_id: int = MAINNET.chain_id,
) -> PaymentPayload:
    """Buyer side: sign an EIP-3009 authorization answering the requirements"""
    authorization = TransferAuthorization(
        from_address=account.address,
        to=to or requirements.pay_to,
        value=value or requirements.amount,
        valid_after=valid_after,
        valid_before=valid_before or int(time.time()) + 300,
        nonce=nonce or random_nonce(),
    )
    typed_data = build_transfer_typed_data(
        authorization, chain_id, requirements.asset, requirements.extra
    )
    signed = account.sign_message(encode_typed_data(full_message=typed_data))

    return PaymentPayload(
        x402_version=2,
        accepted=requirements,
        payload=ExactPayloadData(
            signature=Web3.to_hex(signed.signature),
            authorization=authorization,
        ),
        extensions=extensions,
    )


def bridge_extension(
    payer: str,
    seller: str = SELLER_ADDRESS,
    amount: int = 1_000_000,
    nonce: Optional[str] = None,
    with_authorization: bool = False,
) -> dict:
    """`lobstr-escrow` extension body as a client would send it"""
    nonce = nonce or random_nonce()
    ext = {
        "listingId": 7,
        "paymentIntent": {
            "x402Nonce": nonce,
            "payer": payer,
            "token": USDC,
            "amount": str(amount),
            "listingId": 7,
            "seller": seller,
            "deadline": int(time.time()) + 3600,
        },
        "intentSignature": {"v": 27, "r": "0x" + "11" * 32, "s": "0x" + "22" * 32},
    }
    if with_authorization:
        ext["erc3009Auth"] = {
            "from": payer,
            "token": USDC,
            "amount": str(amount),
            "validAfter": 0,
            "validBefore": int(time.time()) + 3600,
            "eip3009Nonce": "0x" + "33" * 32,
        }
        ext["erc3009Signature"] = {"v": 28, "r": "0x" + "44" * 32, "s": "0x" + "55" * 32}
    return ext


def credit_extension(agent: str, seller: str = SELLER_ADDRESS, amount: int = 1_000_000) -> dict:
    """`lobstr-credit` extension body"""
    return {"agent": agent, "listingId": 7, "seller": seller, "amount": str(amount)}


def skill_extension(buyer: str, skill_id: int = 11) -> dict:
    """`lobstr-skill` extension body"""
    return {"skillId": str(skill_id), "buyer": buyer}


def skill_listing(
    skill_id: int = 11,
    seller: str = SELLER_ADDRESS,
    pricing_model: int = 0,
    price: int = 1_000_000,
    token: str = USDC,
    active: bool = True,
) -> tuple:
    """getSkill return value in SkillListing component order"""
    return (
        skill_id, seller, 0, 1, pricing_model, "Summarizer", "Summarizes text", "ipfs://skill",
        1, price, token, b"\x00" * 32, b"\x00" * 32, active, 4, 20, 1_700_000_000, 1_700_000_000,
    )


def skill_access(buyer: str, access_id: int = 21, skill_id: int = 11, pricing_model: int = 0) -> tuple:
    """getAccessByBuyer return value in SkillAccess component order"""
    return (access_id, skill_id, buyer, pricing_model, 1_700_000_000, 0, 3, 0, True)


# ===== RECEIPTS =====

def make_log(address: str, topics: List[bytes], data: bytes, log_index: int = 0) -> dict:
    return {
        "address": Web3.to_checksum_address(address),
        "topics": [HexBytes(t) for t in topics],
        "data": HexBytes(data),
        "logIndex": log_index,
        "transactionIndex": 0,
        "transactionHash": HexBytes(b"\x01" * 32),
        "blockHash": HexBytes(b"\x02" * 32),
        "blockNumber": 1,
        "removed": False,
    }


def escrowed_job_created_log(
    job_id: int,
    x402_nonce: str,
    payer: str,
    seller: str = SELLER_ADDRESS,
    amount: int = 1_000_000,
    address: str = BRIDGE,
) -> dict:
    topic = Web3.keccak(text="EscrowedJobCreated(bytes32,uint256,address,address,uint256,address)")
    return make_log(
        address,
        [
            topic,
            bytes.fromhex(x402_nonce[2:]),
            encode(["uint256"], [job_id]),
            encode(["address"], [payer]),
        ],
        encode(["address", "uint256", "address"], [seller, amount, USDC]),
    )


def credit_drawn_log(
    draw_id: int,
    agent: str,
    escrow_job_id: int,
    amount: int = 1_000_000,
    address: str = CREDIT_FACILITY,
) -> dict:
    topic = Web3.keccak(text="CreditDrawn(uint256,address,uint256,uint256)")
    return make_log(
        address,
        [
            topic,
            encode(["uint256"], [draw_id]),
            encode(["address"], [agent]),
            encode(["uint256"], [escrow_job_id]),
        ],
        encode(["uint256"], [amount]),
    )


def skill_purchased_log(
    skill_id: int,
    buyer: str,
    access_id: int,
    pricing_model: int = 0,
    amount: int = 1_000_000,
    address: str = SKILL_REGISTRY,
) -> dict:
    topic = Web3.keccak(text="SkillPurchased(uint256,address,uint256,uint8,uint256)")
    return make_log(
        address,
        [topic, encode(["uint256"], [skill_id]), encode(["address"], [buyer])],
        encode(["uint256", "uint8", "uint256"], [access_id, pricing_model, amount]),
    )


def unrelated_log(address: str = USDC) -> dict:
    """ERC20 Transfer log, present in most settlement receipts"""
    topic = Web3.keccak(text="Transfer(address,address,uint256)")
    return make_log(
        address,
        [topic, encode(["address"], [SELLER_ADDRESS]), encode(["address"], [BRIDGE])],
        encode(["uint256"], [1_000_000]),
        log_index=1,
    )


def make_receipt(logs: Optional[List[dict]] = None, status: int = 1) -> dict:
    return {
        "status": status,
        "logs": logs or [],
        "blockNumber": 1,
        "gasUsed": 90_000,
        "transactionHash": HexBytes(b"\x01" * 32),
    }


# ===== CHAIN FAKE =====

class FakeChainClient:
    """
    In-memory stand-in for ChainClient.

    Reads are answered by function name from `reads` (a value, a callable
    taking the call args, or an exception to raise). Every write is recorded.
    """

    def __init__(self, address: str = FACILITATOR_ADDRESS):
        self.address = address
        self.reads: dict = {}
        self.read_calls: List[tuple] = []
        self.write_calls: List[tuple] = []
        self.receipt: Any = make_receipt()
        self.write_error: Optional[Exception] = None
        self.receipt_error: Optional[Exception] = None

    def writes_to(self, function: str) -> List[tuple]:
        return [call for call in self.write_calls if call[1] == function]

    def reads_of(self, function: str) -> List[tuple]:
        return [call for call in self.read_calls if call[1] == function]

    async def read_contract(self, address, abi, function, args=()):
        self.read_calls.append((address, function, tuple(args)))
        value = self.reads[function]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(*args)
        return value

    async def write_contract(self, address, abi, function, args=()):
        self.write_calls.append((address, function, tuple(args)))
        if self.write_error:
            raise self.write_error
        return "0x" + f"{len(self.write_calls):064x}"

    async def wait_for_receipt(self, tx_hash, timeout=None):
        if self.receipt_error:
            raise self.receipt_error
        return self.receipt


def set_trust(
    chain: FakeChainClient,
    score: int = 120,
    reputation_tier: int = 1,
    stake_tier: int = 2,
    stake: int = 1_000 * 10**18,
    completions: int = 12,
    disputes_lost: int = 1,
    disputes_won: int = 3,
) -> None:
    """Program the reputation and staking reads for the seller"""
    chain.reads["getScore"] = (score, reputation_tier)
    chain.reads["getTier"] = stake_tier
    chain.reads["getStake"] = stake
    chain.reads["getReputationData"] = (score, completions, disputes_lost, disputes_won, 1_700_000_000)


def funded_chain() -> FakeChainClient:
    """Chain where the buyer is funded, nonces are fresh and the seller is staked"""
    chain = FakeChainClient()
    chain.reads["balanceOf"] = 10**12
    chain.reads["authorizationState"] = False
    chain.reads["nonceUsed"] = False
    chain.reads["getAvailableCredit"] = 10**12
    chain.reads["getSkill"] = skill_listing()
    chain.reads["hasActiveAccess"] = False
    set_trust(chain)
    return chain
