from typing import Any, Dict, Tuple

from fastapi import Request
from pydantic import ValidationError

from src.errors import MalformedRequestError
from src.models import PaymentPayload, PaymentRequirements
from src.settlement import Facilitator


def get_facilitator(request: Request) -> Facilitator:
    """Facilitator built once at startup and stored on the app"""
    return request.app.state.facilitator


async def parse_payment_request(request: Request) -> Tuple[PaymentPayload, PaymentRequirements]:
    """
    Parse {paymentPayload, paymentRequirements} from the request body.

    Raises:
        MalformedRequestError: body is not JSON, a field is missing or fails validation
    """
    try:
        body: Dict[str, Any] = await request.json()
    except ValueError as e:
        raise MalformedRequestError("Request body must be JSON") from e

    if not isinstance(body, dict) or not body.get("paymentPayload") or not body.get("paymentRequirements"):
        raise MalformedRequestError("Missing paymentPayload or paymentRequirements")

    try:
        payload = PaymentPayload.model_validate(body["paymentPayload"])
        requirements = PaymentRequirements.model_validate(body["paymentRequirements"])
    except ValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"])
        raise MalformedRequestError(f"Invalid payment request: {location}: {error['msg']}") from e

    return payload, requirements
