"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and OpenAPI metadata.
"""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from elections_api.core.config import get_settings
from elections_api.core.database import dispose_engine, init_engine
from elections_api.core.dependencies import build_legislator_directory
from elections_api.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: engine, legislator directory, sync loop."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    init_engine(settings.database_url, echo=False, schema=settings.database_schema)

    legislators_http = httpx.AsyncClient(timeout=30.0)
    app.state.legislator_directory = build_legislator_directory(legislators_http, settings)

    # Start scheduled FEC sync background task
    sync_task = None
    if settings.fec_sync_loop_enabled:
        from elections_api.services.fec_sync_service import fec_sync_loop

        sync_task = asyncio.create_task(fec_sync_loop(settings.fec_sync_loop_interval))

    yield

    if sync_task is not None:
        sync_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sync_task

    await legislators_http.aclose()
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Elections API",
        description="FEC filing sync and candidate promotion for the election information site",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Register exception handlers
    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    # Register middleware and routers
    from elections_api.api.router import create_router, setup_middleware

    setup_middleware(app, settings)
    app.include_router(create_router(settings))

    return app
