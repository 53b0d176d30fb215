"""Root API router with /api/v1 prefix and middleware registration."""

from fastapi import APIRouter, FastAPI

from elections_api.api.middleware import SecurityHeadersMiddleware, setup_cors
from elections_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from elections_api.api.v1.fec_sync import fec_admin_router, fec_webhook_router
    from elections_api.api.v1.filings import filings_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(fec_webhook_router)
    root_router.include_router(fec_admin_router)
    root_router.include_router(filings_router)

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
