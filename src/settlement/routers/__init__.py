from src.settlement.routers.base import RouterOutcome, SettlementRouter
from src.settlement.routers.bridge import BridgeRouter
from src.settlement.routers.credit import CreditRouter
from src.settlement.routers.direct import DirectRouter
from src.settlement.routers.skill import SkillRouter

__all__ = [
    "RouterOutcome",
    "SettlementRouter",
    "BridgeRouter",
    "CreditRouter",
    "DirectRouter",
    "SkillRouter",
]
