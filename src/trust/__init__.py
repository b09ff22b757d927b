"""
Seller trust lookups for admission control and response enrichment
"""

from src.trust.oracle import TrustOracle, STAKE_TIERS, REPUTATION_TIERS

__all__ = ["TrustOracle", "STAKE_TIERS", "REPUTATION_TIERS"]
