"""Builds the FastAPI application used by uvicorn and by the tests."""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI

from petclinic.api import dependencies
from petclinic.api.routes import analytics_router, health_router, owners_router
from petclinic.core.config import settings
from petclinic.core.exception_handlers import setup_exception_handlers
from petclinic.core.logging import configure_logging
from petclinic.core.middleware import request_id_middleware
from petclinic.core.openapi import apply_openapi_customizations
from petclinic.core.rate_limit import enforce_rate_limit, purge_expired_counters_forever


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the counter sweep while serving; release the worker pool on exit."""
    sweeper: asyncio.Task | None = None
    interval = settings.rate_limit.purge_interval_seconds
    if settings.rate_limit.enabled and interval:
        sweeper = asyncio.create_task(purge_expired_counters_forever(interval))
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        dependencies.shutdown()


def create_app() -> FastAPI:
    """Assemble logging, middleware, error handlers, routers and OpenAPI extras."""
    # before anything else logs
    configure_logging(settings.log)

    app = FastAPI(
        title="Pet Clinic Analytics API",
        description=(
            "Owner search, pet listing, per-pet reports and concurrent pet "
            "analytics. Owner search is rate limited per client address."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
        # every route passes through; the limiter only counts the protected one
        dependencies=[Depends(enforce_rate_limit)],
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(analytics_router)
    app.include_router(owners_router)
    app.include_router(health_router)

    # OpenAPI customizations (tags, rate limit response)
    apply_openapi_customizations(app)

    return app
