"""
Settlement core: route selection, admission hooks, routers and the facilitator entry point
"""

from src.settlement.dispatch import RoutedSettlement, select_route
from src.settlement.facilitator import Facilitator, build_facilitator
from src.settlement.hooks import (
    HookDecision,
    SettleContext,
    TrustAdmissionHook,
    TrustEnrichmentHook,
)

__all__ = [
    "RoutedSettlement",
    "select_route",
    "Facilitator",
    "build_facilitator",
    "HookDecision",
    "SettleContext",
    "TrustAdmissionHook",
    "TrustEnrichmentHook",
]
