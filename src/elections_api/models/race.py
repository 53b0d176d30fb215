"""Public-facing race entities: districts, races, candidates, and their links.

Promotion creates rows here from a staged FEC filing.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from elections_api.models.base import Base, TimestampMixin, UUIDMixin

PARTIES = ("Democrat", "Republican", "Independent", "Libertarian", "Green", "Other")
RACE_CANDIDATE_STATUSES = ("announced", "primary_winner", "runoff", "withdrawn", "won", "lost")
RACE_RATINGS = ("Safe D", "Likely D", "Lean D", "Toss-up", "Lean R", "Likely R", "Safe R")


def _in_clause(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class District(Base, UUIDMixin):
    """A seat's geography: (state, chamber, district number or NULL for statewide)."""

    __tablename__ = "districts"

    state_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("states.id", ondelete="CASCADE"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(String(20), nullable=False)
    district_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    __table_args__ = (
        UniqueConstraint("state_id", "body", "district_number", name="uq_districts_state_body_number"),
        CheckConstraint("body IN ('senate', 'house')", name="ck_districts_body"),
    )


class Race(Base, UUIDMixin, TimestampMixin):
    """One district's contest within an election cycle."""

    __tablename__ = "races"

    district_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("districts.id", ondelete="CASCADE"),
        nullable=False,
    )
    cycle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("election_cycles.id", ondelete="CASCADE"),
        nullable=False,
    )
    rating: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_special_election: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    is_open_seat: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    __table_args__ = (
        UniqueConstraint("district_id", "cycle_id", name="uq_races_district_cycle"),
        CheckConstraint(f"rating IS NULL OR {_in_clause('rating', RACE_RATINGS)}", name="ck_races_rating"),
    )


class Candidate(Base, UUIDMixin, TimestampMixin):
    """A publicly displayed candidate."""

    __tablename__ = "candidates"

    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    party: Mapped[str] = mapped_column(String(20), nullable=False)
    state_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("states.id", ondelete="SET NULL"),
        nullable=True,
    )
    role_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(Text, nullable=True)
    twitter_handle: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_incumbent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    # External identifiers
    fec_candidate_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
    bioguide_id: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Financial snapshot copied from the staged filing
    funds_raised: Mapped[float | None] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    funds_spent: Mapped[float | None] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    cash_on_hand: Mapped[float | None] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    fec_financials_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(_in_clause("party", PARTIES), name="ck_candidates_party"),
        Index("idx_candidates_fec_candidate_id", "fec_candidate_id"),
    )


class RaceCandidate(Base, UUIDMixin):
    """Links a candidate to a race with a campaign status."""

    __tablename__ = "race_candidates"

    race_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("races.id", ondelete="CASCADE"),
        nullable=False,
    )
    candidate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("candidates.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="announced", server_default="announced")
    is_incumbent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    __table_args__ = (
        UniqueConstraint("race_id", "candidate_id", name="uq_race_candidates_race_candidate"),
        CheckConstraint(_in_clause("status", RACE_CANDIDATE_STATUSES), name="ck_race_candidates_status"),
    )
