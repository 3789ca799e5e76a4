"""Application factory for the Talon API.

Centralizes app construction (lifespan, middleware, handlers, routers) so
tests can build fresh instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from talon import __version__
from talon.adapters.gateway.factory import create_gateway_client
from talon.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from talon.api.routes import (
    health_router,
    index_router,
    ratelimit_router,
    search_router,
    send_router,
    spawn_router,
)
from talon.core.config import settings
from talon.core.exception_handlers import setup_exception_handlers
from talon.core.logging import configure_logging
from talon.core.middleware import request_id_middleware
from talon.core.rate_limit import get_rate_limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the gateway client and run the rate limit sweeper while serving."""
    app.state.gateway = create_gateway_client()

    limiter = get_rate_limiter()
    if isinstance(limiter, InMemoryFixedWindowRateLimiter):
        limiter.start_cleanup(settings.app.rate_limit_cleanup_interval_seconds)

    logger.info(
        "app.started",
        extra={"environment": settings.app_env, "gateway_url": settings.gateway.url},
    )
    try:
        yield
    finally:
        if isinstance(limiter, InMemoryFixedWindowRateLimiter):
            limiter.stop_cleanup()
        await app.state.gateway.aclose()
        logger.info("app.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Talon API",
        description=(
            "Supervision API for an agent gateway. Forwards messages, agent "
            "spawns, memory search and indexing to the gateway behind "
            "per-client fixed-window rate limits."
        ),
        version=__version__,
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(send_router, prefix="/api")
    app.include_router(spawn_router, prefix="/api")
    app.include_router(search_router, prefix="/api")
    app.include_router(index_router, prefix="/api")
    app.include_router(ratelimit_router, prefix="/api")
    app.include_router(health_router)

    return app
