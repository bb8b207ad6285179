"""Application factory for the FastAPI app.

Centralizes app construction (middleware, handlers, routers, limiter
lifecycle) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from throttle.adapters.rate_limit.base import AbstractRateLimiter
from throttle.adapters.rate_limit.sweeper import SweepTask
from throttle.api.routes import health_router
from throttle.core.config import settings
from throttle.core.exception_handlers import setup_exception_handlers
from throttle.core.logging import configure_logging
from throttle.core.middleware import request_id_middleware
from throttle.core.rate_limit import install_rate_limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the limiter sweep for as long as the app serves requests."""

    sweeper = SweepTask(
        app.state.rate_limiter,
        interval_seconds=settings.app.rate_limit_sweep_interval_seconds,
    )
    app.state.rate_limit_sweeper = sweeper
    sweeper.start()
    try:
        yield
    finally:
        sweeper.stop()


def create_app(limiter: AbstractRateLimiter | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        limiter: Optional pre-built limiter (tests inject one with a fake clock).

    Returns:
        Configured FastAPI app with middleware, handlers, routers and limiter.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Fire Safety Throttle",
        description="Per-client request throttling for the fire-safety assessment API.",
        version="0.1.0",
        lifespan=lifespan,
    )

    install_rate_limiter(app, limiter)

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)
    app.include_router(health_router)

    logger.info(
        "app.created",
        extra={
            "env": settings.app_env,
            "rate_limit_enabled": settings.app.rate_limit_enabled,
        },
    )
    return app
