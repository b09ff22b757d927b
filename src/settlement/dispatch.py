"""
Route selection
Maps the routing extension present on a payload to exactly one settlement route
"""

from dataclasses import dataclass
from typing import Optional, Union

from pydantic import ValidationError

from src.errors import MalformedRequestError
from src.models import PaymentPayload, ROUTE_EXTENSIONS, SettlementRoute
from src.payments.models import BridgeExtension, CreditDrawRequest, SkillPurchaseRequest

EXTENSION_MODELS = {
    SettlementRoute.BRIDGE: BridgeExtension,
    SettlementRoute.CREDIT: CreditDrawRequest,
    SettlementRoute.SKILL: SkillPurchaseRequest,
}


@dataclass(frozen=True)
class RoutedSettlement:
    """The route chosen for a request and its parsed extension payload"""
    route: SettlementRoute
    extension: Optional[Union[BridgeExtension, CreditDrawRequest, SkillPurchaseRequest]] = None


def select_route(payload: PaymentPayload) -> RoutedSettlement:
    """
    Pick the settlement route from the payload's extensions.

    Extensions unrelated to routing are ignored. More than one routing
    extension is rejected as malformed; there is no precedence between them.

    Raises:
        MalformedRequestError: conflicting or invalid routing extension
    """
    extensions = payload.extensions or {}
    present = [
        route for route, key in ROUTE_EXTENSIONS.items()
        if extensions.get(key) is not None
    ]

    if len(present) > 1:
        keys = ", ".join(sorted(ROUTE_EXTENSIONS[route] for route in present))
        raise MalformedRequestError(f"Conflicting settlement extensions: {keys}")

    if not present:
        return RoutedSettlement(route=SettlementRoute.DIRECT)

    route = present[0]
    key = ROUTE_EXTENSIONS[route]
    try:
        extension = EXTENSION_MODELS[route].model_validate(extensions[key])
    except ValidationError as e:
        raise MalformedRequestError(f"Invalid {key} extension: {e.errors()[0]['msg']}") from e

    return RoutedSettlement(route=route, extension=extension)
