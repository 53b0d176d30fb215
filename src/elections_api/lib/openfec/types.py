"""Pydantic models for the subset of OpenFEC responses the sync consumes.

Field names mirror the OpenFEC JSON so responses validate directly. Unknown
fields are ignored; explicit JSON nulls on string fields become "".
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_null_to_str(v: Any) -> Any:
    """Coerce explicit JSON null to empty string."""
    return v if v is not None else ""


class FecCandidate(BaseModel):
    """One row of ``/candidates/`` or ``/candidate/{id}/``."""

    model_config = ConfigDict(extra="ignore")

    candidate_id: str
    name: str = ""
    party: str = ""
    party_full: str = ""
    state: str = ""
    office: str = ""
    district: str = ""
    incumbent_challenge: str = ""
    candidate_status: str = ""
    election_years: list[int] = Field(default_factory=list)
    cycles: list[int] = Field(default_factory=list)

    @field_validator(
        "name",
        "party",
        "party_full",
        "state",
        "office",
        "district",
        "incumbent_challenge",
        "candidate_status",
        mode="before",
    )
    @classmethod
    def _coerce_strings(cls, v: Any) -> Any:
        return _coerce_null_to_str(v)

    @field_validator("election_years", "cycles", mode="before")
    @classmethod
    def _coerce_lists(cls, v: Any) -> Any:
        return v if v is not None else []

    @property
    def district_number(self) -> int | None:
        """House district as an integer; None for Senate or unparsable values."""
        if self.office != "H":
            return None
        try:
            return int(self.district)
        except ValueError:
            return None


class FecCandidateTotals(BaseModel):
    """Financial totals for one candidate and cycle."""

    model_config = ConfigDict(extra="ignore")

    candidate_id: str
    cycle: int | None = None
    receipts: float | None = None
    disbursements: float | None = None
    cash_on_hand_end_period: float | None = None
    debts_owed_by_committee: float | None = None
    individual_contributions: float | None = None
    coverage_start_date: str | None = None
    coverage_end_date: str | None = None


class FecPagination(BaseModel):
    """The ``pagination`` envelope of a list response."""

    model_config = ConfigDict(extra="ignore")

    page: int = 1
    per_page: int = 0
    count: int = 0
    pages: int = 0


@dataclass(frozen=True)
class ConnectionTestResult:
    """Outcome of a credential probe.

    Attributes:
        ok: True if OpenFEC answered successfully.
        count: Total Senate candidates reported for the cycle (0 on failure).
        error: Error message when ``ok`` is False.
    """

    ok: bool
    count: int = 0
    error: str | None = None
