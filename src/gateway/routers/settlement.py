from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
import structlog

from src.errors import ErrorKind, MalformedRequestError
from src.models import SettlementResult
from src.gateway.dependencies import get_facilitator, parse_payment_request
from src.settlement import Facilitator

logger = structlog.get_logger()

router = APIRouter(tags=["Payments"])


@router.post("/verify")
async def verify_payment(request: Request, facilitator: Facilitator = Depends(get_facilitator)):
    """
    Verify a payment proof without settling it
    """
    try:
        payload, requirements = await parse_payment_request(request)
    except MalformedRequestError as e:
        logger.warning("malformed_verify_request", reason=e.message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"isValid": False, "invalidReason": e.message},
        )

    result = await facilitator.verify(payload, requirements)
    return result.model_dump(by_alias=True, exclude_none=True)


@router.post("/settle")
async def settle_payment(request: Request, facilitator: Facilitator = Depends(get_facilitator)):
    """
    Settle a payment proof on-chain.

    Settlement failures are reported in-body with HTTP 200. HTTP 400 is
    reserved for malformed requests, including payloads carrying more than one
    routing extension.
    """
    try:
        payload, requirements = await parse_payment_request(request)
    except MalformedRequestError as e:
        logger.warning("malformed_settle_request", reason=e.message)
        result = SettlementResult.failure(e.message, e.kind)
    else:
        result = await facilitator.settle(payload, requirements)

    if result.error_kind == ErrorKind.MALFORMED_REQUEST:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=result.to_response())
    return result.to_response()
