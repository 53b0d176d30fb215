"""Staged FEC filing admin endpoints.

GET /admin/filings — list filings in the active cycle
GET /admin/filings/by-state — promotable filings grouped by state
GET /admin/filings/{id} — filing detail
POST /admin/filings/promote — bulk promotion
POST /admin/filings/{id}/promote — promote one filing
DELETE /admin/filings/{id} — hard delete
"""

import uuid
from datetime import UTC, date, datetime
from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from elections_api.core.dependencies import Operator, get_async_session, get_legislator_directory, require_role
from elections_api.lib.legislators import LegislatorDirectory
from elections_api.schemas.common import PaginationMeta
from elections_api.schemas.filing import (
    BulkPromoteRequest,
    BulkPromotionResponse,
    FecFilingResponse,
    FilingsByStateResponse,
    PaginatedFecFilingResponse,
    PromoteFilingRequest,
    PromotionResponse,
)
from elections_api.services import filing_service, promotion_service
from elections_api.services.promotion_service import FilingAlreadyPromotedError, FilingNotFoundError

filings_router = APIRouter(prefix="/admin/filings", tags=["filings"])

OfficeFilter = Annotated[str | None, Query(pattern="^[SH]$", description="Office: S (Senate) or H (House)")]


@filings_router.get("", response_model=PaginatedFecFilingResponse)
async def list_filings(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _operator: Annotated[Operator, Depends(require_role("admin"))],
    state: str | None = Query(default=None, min_length=2, max_length=2, description="State abbreviation"),
    office: OfficeFilter = None,
    active: bool | None = Query(default=None, description="Filter by active flag"),
    promoted: bool | None = Query(default=None, description="Filter by promotion state"),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=50, ge=1, le=200, description="Results per page"),
) -> PaginatedFecFilingResponse:
    """List staged filings in the active cycle. Admin-only."""
    items, total = await filing_service.list_filings(
        session,
        state=state,
        office=office,
        active=active,
        promoted=promoted,
        page=page,
        page_size=page_size,
    )
    return PaginatedFecFilingResponse(
        items=[FecFilingResponse.model_validate(item) for item in items],
        pagination=PaginationMeta.build(total, page, page_size),
    )


@filings_router.get("/by-state", response_model=FilingsByStateResponse)
async def list_filings_by_state(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _operator: Annotated[Operator, Depends(require_role("admin"))],
    office: OfficeFilter = None,
    min_funds: float = Query(default=filing_service.DEFAULT_MIN_FUNDS, ge=0, description="Minimum funds raised"),
    today: date | None = Query(default=None, description="Reference date (defaults to today, UTC)"),
) -> FilingsByStateResponse:
    """Promotable filings grouped by state, soonest primary first. Admin-only."""
    groups = await filing_service.list_filings_by_state(
        session,
        today or datetime.now(UTC).date(),
        office=office,
        min_funds=min_funds,
    )
    return FilingsByStateResponse(groups=groups, total_filings=sum(len(g.filings) for g in groups))


@filings_router.post("/promote", response_model=BulkPromotionResponse)
async def bulk_promote_filings(
    request: BulkPromoteRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    directory: Annotated[LegislatorDirectory | None, Depends(get_legislator_directory)],
    _operator: Annotated[Operator, Depends(require_role("admin"))],
) -> BulkPromotionResponse:
    """Promote several filings with default fields. Admin-only."""
    outcome = await promotion_service.bulk_promote(
        session, request.filing_ids, directory, race_status=request.race_status
    )
    return BulkPromotionResponse.model_validate(outcome)


@filings_router.get("/{filing_id}", response_model=FecFilingResponse)
async def get_filing(
    filing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _operator: Annotated[Operator, Depends(require_role("admin"))],
) -> FecFilingResponse:
    """Get one staged filing. Admin-only."""
    filing = await filing_service.get_filing(session, filing_id)
    if filing is None:
        raise HTTPException(status_code=404, detail="Filing not found.")
    return FecFilingResponse.model_validate(filing)


@filings_router.post("/{filing_id}/promote", response_model=PromotionResponse, status_code=201)
async def promote_filing(
    filing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    directory: Annotated[LegislatorDirectory | None, Depends(get_legislator_directory)],
    _operator: Annotated[Operator, Depends(require_role("admin"))],
    request: Annotated[PromoteFilingRequest | None, Body()] = None,
) -> PromotionResponse:
    """Promote a staged filing to a candidate in its race. Admin-only."""
    try:
        result = await promotion_service.promote_filing(session, filing_id, request, directory)
    except FilingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except FilingAlreadyPromotedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except IntegrityError as e:
        detail = "Candidate slug already taken; edit the existing candidate instead."
        raise HTTPException(status_code=409, detail=detail) from e
    return PromotionResponse.model_validate(result)


@filings_router.delete("/{filing_id}", status_code=204)
async def delete_filing(
    filing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _operator: Annotated[Operator, Depends(require_role("admin"))],
) -> Response:
    """Hard-delete a staged filing. Admin-only."""
    if not await filing_service.delete_filing(session, filing_id):
        raise HTTPException(status_code=404, detail="Filing not found.")
    return Response(status_code=204)
