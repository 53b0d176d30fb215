"""Pydantic v2 schemas for staged FEC filings and their promotion."""

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from elections_api.schemas.common import PaginationMeta

RaceCandidateStatus = Literal["announced", "primary_winner", "runoff", "withdrawn", "won", "lost"]

# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class StateSummary(BaseModel):
    """Minimal state reference embedded in filing responses."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    abbr: str
    name: str


class FecFilingResponse(BaseModel):
    """A staged filing as shown in the admin filings views."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    cycle_id: uuid.UUID
    fec_candidate_id: str
    state_id: uuid.UUID
    state: StateSummary | None = None
    name: str
    first_name: str
    last_name: str
    party: str
    office: str
    district_number: int | None = None
    is_incumbent: bool
    incumbent_challenge: str | None = None
    fec_candidate_status: str | None = None
    funds_raised: float | None = None
    funds_spent: float | None = None
    cash_on_hand: float | None = None
    is_active: bool
    last_synced_at: datetime | None = None
    deactivated_at: datetime | None = None
    promoted_to_candidate_id: uuid.UUID | None = None
    rating: str | None = Field(default=None, description="Race rating for House filings in the by-state view")


class PaginatedFecFilingResponse(BaseModel):
    """Paginated list of staged filings."""

    items: list[FecFilingResponse]
    pagination: PaginationMeta


class StateFilingGroup(BaseModel):
    """Promotable filings for one state, with its primary countdown."""

    state_id: uuid.UUID
    state_abbr: str
    state_name: str
    primary_date: date | None = None
    days_until_primary: int | None = None
    filings: list[FecFilingResponse]


class FilingsByStateResponse(BaseModel):
    """Promotable filings grouped by state, soonest primary first."""

    groups: list[StateFilingGroup]
    total_filings: int


# ---------------------------------------------------------------------------
# Promotion
# ---------------------------------------------------------------------------


class PromoteFilingRequest(BaseModel):
    """Operator-supplied fields for promoting one filing.

    Blank fields may be filled from the legislator directory for incumbents.
    """

    photo_url: str | None = Field(default=None, max_length=2000)
    website: str | None = Field(default=None, max_length=2000)
    twitter_handle: str | None = Field(default=None, max_length=100)
    bio: str | None = None
    role_title: str | None = Field(default=None, max_length=200)
    race_status: RaceCandidateStatus = "announced"
    bioguide_id: str | None = Field(default=None, max_length=20)


class BulkPromoteRequest(BaseModel):
    """Request body for promoting several filings with default fields."""

    filing_ids: list[uuid.UUID] = Field(min_length=1, max_length=200)
    race_status: RaceCandidateStatus = "announced"


class PromotionResponse(BaseModel):
    """Records created or reused by one promotion."""

    model_config = {"from_attributes": True}

    filing_id: uuid.UUID
    candidate_id: uuid.UUID
    slug: str
    district_id: uuid.UUID
    race_id: uuid.UUID
    race_candidate_id: uuid.UUID
    district_created: bool
    race_created: bool
    enriched_from: str | None = None


class BulkPromotionResponse(BaseModel):
    """Outcome of a bulk promotion."""

    model_config = {"from_attributes": True}

    promoted: list[PromotionResponse]
    warnings: list[str]
    errors: list[str]
