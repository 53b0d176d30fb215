"""Pydantic v2 schemas for FEC sync runs and the run ledger."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from elections_api.schemas.common import PaginationMeta


class SyncLogResponse(BaseModel):
    """One sync run ledger row."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    sync_type: str
    status: str
    started_at: datetime
    completed_at: datetime | None = None
    states_synced: list[str] = Field(default_factory=list)
    filings_created: int
    filings_updated: int
    filings_deactivated: int
    api_requests: int
    error_message: str | None = None
    details: dict = Field(default_factory=dict)
    triggered_rebuild: bool


class PaginatedSyncLogResponse(BaseModel):
    """Paginated list of sync runs, newest first."""

    items: list[SyncLogResponse]
    pagination: PaginationMeta


class FecSyncResultResponse(BaseModel):
    """Outcome of an operator-triggered sync."""

    model_config = {"from_attributes": True}

    status: str | None = None
    message: str | None = None
    sync_log_id: uuid.UUID | None = None
    states_synced: list[str] = Field(default_factory=list)
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    api_requests: int = 0
    rebuild_triggered: bool = False
    errors: list[str] = Field(default_factory=list)
    window: dict[str, str] | None = None


class ConnectionTestResponse(BaseModel):
    """Result of an OpenFEC credential probe."""

    model_config = {"from_attributes": True}

    ok: bool
    count: int
    error: str | None = None


class UpcomingStateResponse(BaseModel):
    """A state the next sync would target."""

    state_id: uuid.UUID
    abbr: str
    name: str
    primary_date: date
    days_until_primary: int


class UpcomingStatesResponse(BaseModel):
    """Sync window preview."""

    window_start: date
    window_end: date
    states: list[UpcomingStateResponse]
