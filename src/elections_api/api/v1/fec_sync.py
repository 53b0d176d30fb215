"""FEC sync API endpoints.

POST /fec-sync — cron webhook (shared secret)
OPTIONS /fec-sync — CORS preflight
POST /admin/fec/sync — operator-triggered sync (admin)
GET /admin/fec/test-connection — OpenFEC credential probe (admin)
GET /admin/fec/upcoming-states — sync window preview (admin)
GET /admin/sync-logs — run ledger (admin)
"""

from datetime import UTC, date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from elections_api.core.config import Settings, get_settings
from elections_api.core.dependencies import Operator, get_async_session, get_openfec_client, require_role
from elections_api.core.security import secrets_match
from elections_api.lib.openfec import OpenFecClient
from elections_api.models.sync_log import AutomationConfig
from elections_api.schemas.common import PaginationMeta
from elections_api.schemas.fec_sync import (
    ConnectionTestResponse,
    FecSyncResultResponse,
    PaginatedSyncLogResponse,
    SyncLogResponse,
    UpcomingStateResponse,
    UpcomingStatesResponse,
)
from elections_api.services import fec_sync_service, sync_log_service, sync_window_service
from elections_api.services.fec_sync_service import (
    FecSyncConfigError,
    FecSyncTimeoutError,
    SyncAlreadyRunningError,
)

fec_webhook_router = APIRouter(tags=["fec-sync"])
fec_admin_router = APIRouter(prefix="/admin", tags=["fec-sync"])

WEBHOOK_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-webhook-secret, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


async def _expected_webhook_secret(session: AsyncSession, settings: Settings) -> str | None:
    if settings.fec_sync_webhook_secret:
        return settings.fec_sync_webhook_secret
    config = await session.get(AutomationConfig, 1)
    return config.webhook_secret if config is not None else None


# --- Cron webhook ---


@fec_webhook_router.options("/fec-sync", include_in_schema=False)
async def fec_sync_preflight() -> Response:
    """Answer CORS preflight for the webhook."""
    return Response(status_code=204, headers=WEBHOOK_CORS_HEADERS)


@fec_webhook_router.post("/fec-sync")
async def fec_sync_webhook(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    secret: str | None = Query(default=None, description="Shared webhook secret"),
    x_webhook_secret: Annotated[str | None, Header()] = None,
) -> Response:
    """Run a scheduled FEC sync.

    The secret is accepted as the ``secret`` query parameter (some gateways
    strip custom headers) or the ``X-Webhook-Secret`` header.
    """
    expected = await _expected_webhook_secret(session, settings)
    if not secrets_match(secret or x_webhook_secret, expected):
        return PlainTextResponse("Unauthorized", status_code=401)

    try:
        outcome = await fec_sync_service.run_fec_sync(session, settings, "auto")
    except SyncAlreadyRunningError as exc:
        return JSONResponse({"status": "error", "error": str(exc)}, status_code=409)
    except Exception as exc:
        logger.exception("FEC sync webhook failed")
        return JSONResponse({"status": "error", "error": str(exc)}, status_code=500)
    return JSONResponse(outcome.to_response())


# --- Admin ---


@fec_admin_router.post("/fec/sync", response_model=FecSyncResultResponse)
async def trigger_manual_sync(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    _operator: Annotated[Operator, Depends(require_role("admin"))],
) -> FecSyncResultResponse:
    """Run an FEC sync now. Admin-only; ignores the scheduled-sync toggle."""
    try:
        outcome = await fec_sync_service.run_fec_sync(session, settings, "manual")
    except SyncAlreadyRunningError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except FecSyncConfigError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FecSyncTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e)) from e
    return FecSyncResultResponse.model_validate(outcome)


@fec_admin_router.get("/fec/test-connection", response_model=ConnectionTestResponse)
async def test_fec_connection(
    client: Annotated[OpenFecClient, Depends(get_openfec_client)],
    settings: Annotated[Settings, Depends(get_settings)],
    _operator: Annotated[Operator, Depends(require_role("admin"))],
) -> ConnectionTestResponse:
    """Probe OpenFEC with the configured API key. Admin-only."""
    result = await client.test_connection(settings.fec_cycle)
    return ConnectionTestResponse.model_validate(result)


@fec_admin_router.get("/fec/upcoming-states", response_model=UpcomingStatesResponse)
async def upcoming_states(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _operator: Annotated[Operator, Depends(require_role("admin"))],
    today: date | None = Query(default=None, description="Reference date (defaults to today, UTC)"),
) -> UpcomingStatesResponse:
    """Preview the states the next sync would target. Admin-only."""
    reference = today or datetime.now(UTC).date()
    config = await sync_window_service.get_automation_config(session)
    window, targets = await sync_window_service.list_upcoming_states(session, config, reference)
    return UpcomingStatesResponse(
        window_start=window.start,
        window_end=window.end,
        states=[
            UpcomingStateResponse(
                state_id=t.state_id,
                abbr=t.abbr,
                name=t.name,
                primary_date=t.primary_date,
                days_until_primary=(t.primary_date - reference).days,
            )
            for t in targets
        ],
    )


@fec_admin_router.get("/sync-logs", response_model=PaginatedSyncLogResponse)
async def list_sync_logs(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _operator: Annotated[Operator, Depends(require_role("admin"))],
    status: str | None = Query(default=None, description="Filter by run status"),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=20, ge=1, le=100, description="Results per page"),
) -> PaginatedSyncLogResponse:
    """List sync runs, newest first. Admin-only."""
    items, total = await sync_log_service.list_sync_logs(session, page=page, page_size=page_size, status=status)
    return PaginatedSyncLogResponse(
        items=[SyncLogResponse.model_validate(item) for item in items],
        pagination=PaginationMeta.build(total, page, page_size),
    )
