"""
Chain access layer for the LOBSTR facilitator
"""

from src.chain.client import ChainClient
from src.chain.events import find_event

__all__ = ["ChainClient", "find_event"]
