"""
LOBSTR x402 Facilitator Server
FastAPI app exposing verify/settle with trust-gated escrow and credit routing
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from src.config import FacilitatorConfig, get_facilitator_config
from src.gateway.routers import general, settlement
from src.settlement import Facilitator, build_facilitator

logger = structlog.get_logger()


def configure_logging(config: FacilitatorConfig) -> None:
    """Configure structlog once for the process"""
    renderer = (
        structlog.processors.JSONRenderer()
        if config.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level)
        ),
    )


def create_app(
    facilitator: Optional[Facilitator] = None,
    config: Optional[FacilitatorConfig] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    When no facilitator is injected, one is built from configuration at
    startup; its chain client lives for the whole process.
    """
    config = config or get_facilitator_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "facilitator", None) is None:
            app.state.facilitator = build_facilitator(config)
        logger.info(
            "facilitator_starting",
            host=config.facilitator_host,
            port=config.facilitator_port,
            network=config.caip2_network,
        )
        yield
        logger.info("facilitator_shutting_down")

    app = FastAPI(
        title="LOBSTR x402 Facilitator",
        description="x402 settlement with trust-gated escrow and credit routing",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.facilitator = facilitator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(general.router)
    app.include_router(settlement.router)
    return app


if __name__ == "__main__":
    import uvicorn
    from dotenv import load_dotenv

    load_dotenv()
    config = get_facilitator_config()
    configure_logging(config)

    uvicorn.run(
        create_app(config=config),
        host=config.facilitator_host,
        port=config.facilitator_port,
        log_level=config.log_level.lower(),
    )
