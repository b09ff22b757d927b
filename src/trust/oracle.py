"""
Seller trust oracle
Reads reputation and stake state from LOBSTR contracts and merges it into one record
"""

import asyncio
from typing import Sequence

from web3 import Web3
import structlog

from src.chain.abis import REPUTATION_ABI, STAKING_ABI
from src.config import ContractAddresses
from src.models import SellerTrust

logger = structlog.get_logger()

STAKE_TIERS = ["None", "Bronze", "Silver", "Gold", "Platinum"]
REPUTATION_TIERS = ["Bronze", "Silver", "Gold", "Platinum"]


def tier_label(labels: Sequence[str], index: int) -> str:
    """Map an on-chain tier index to its label, unknown indices fall back to the lowest tier"""
    if 0 <= index < len(labels):
        return labels[index]
    return labels[0]


class TrustOracle:
    """
    Produces a SellerTrust record per call. Nothing is cached: stake and
    reputation can change between two requests.
    """

    def __init__(self, chain, contracts: ContractAddresses):
        self.chain = chain
        self.contracts = contracts

    async def query_trust(self, seller: str) -> SellerTrust:
        """
        Read score/tier, stake tier, stake amount and reputation detail concurrently.

        RPC errors propagate; callers must not admit a seller whose trust
        could not be read.
        """
        seller = Web3.to_checksum_address(seller)
        score_data, stake_tier, stake_amount, rep_data = await asyncio.gather(
            self.chain.read_contract(
                self.contracts.reputation_system, REPUTATION_ABI, "getScore", (seller,)
            ),
            self.chain.read_contract(
                self.contracts.staking_manager, STAKING_ABI, "getTier", (seller,)
            ),
            self.chain.read_contract(
                self.contracts.staking_manager, STAKING_ABI, "getStake", (seller,)
            ),
            self.chain.read_contract(
                self.contracts.reputation_system, REPUTATION_ABI, "getReputationData", (seller,)
            ),
        )

        # getReputationData tuple: (score, completions, disputesLost, disputesWon, firstActivityTimestamp)
        score, rep_tier = score_data[0], score_data[1]
        trust = SellerTrust(
            address=seller,
            reputation_score=int(score),
            reputation_tier=tier_label(REPUTATION_TIERS, int(rep_tier)),
            stake_tier=tier_label(STAKE_TIERS, int(stake_tier)),
            stake_amount=str(stake_amount),
            completed_jobs=int(rep_data[1]),
            disputes_won=int(rep_data[3]),
            disputes_lost=int(rep_data[2]),
        )
        logger.debug(
            "seller_trust_queried",
            seller=seller,
            reputation_score=trust.reputation_score,
            stake_tier=trust.stake_tier,
        )
        return trust
