from datetime import datetime, timezone
from fastapi import APIRouter, Depends

from src.gateway.dependencies import get_facilitator
from src.settlement import Facilitator

router = APIRouter(tags=["General"])


@router.get("/health", tags=["Health"])
async def health_check(facilitator: Facilitator = Depends(get_facilitator)):
    """Health check endpoint"""
    return {
        "status": "ok",
        "network": facilitator.network,
        "signer": facilitator.chain.address,
        "time": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/supported", tags=["Payments"])
async def supported(facilitator: Facilitator = Depends(get_facilitator)):
    """Payment kinds, routing extensions and signer served by this facilitator"""
    return facilitator.supported()
