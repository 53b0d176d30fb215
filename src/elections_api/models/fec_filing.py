"""Staging table for candidate filings pulled from OpenFEC.

One row per (cycle, FEC candidate id). The sync job creates and refreshes
rows, soft-deactivates candidates that disappear from the source, and never
deletes. Promotion sets ``promoted_to_candidate_id``, after which the row is
treated as consumed.
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
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from elections_api.models.base import Base, TimestampMixin, UUIDMixin
from elections_api.models.geography import State


class FecFiling(Base, UUIDMixin, TimestampMixin):
    """A staged FEC candidate filing awaiting editorial promotion."""

    __tablename__ = "fec_filings"

    cycle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("election_cycles.id", ondelete="CASCADE"),
        nullable=False,
    )
    fec_candidate_id: Mapped[str] = mapped_column(String(20), nullable=False)
    state_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("states.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Identity as reported by FEC plus normalized parts
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    first_name: Mapped[str] = mapped_column(String(150), nullable=False)
    last_name: Mapped[str] = mapped_column(String(150), nullable=False)
    party: Mapped[str] = mapped_column(String(20), nullable=False)

    office: Mapped[str] = mapped_column(String(1), nullable=False)
    district_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_incumbent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    incumbent_challenge: Mapped[str | None] = mapped_column(String(1), nullable=True)
    fec_candidate_status: Mapped[str | None] = mapped_column(String(2), nullable=True)

    # Financial snapshot
    funds_raised: Mapped[float | None] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    funds_spent: Mapped[float | None] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    cash_on_hand: Mapped[float | None] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)

    # Sync lifecycle
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    promoted_to_candidate_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("candidates.id", ondelete="SET NULL"),
        nullable=True,
    )

    state: Mapped["State"] = relationship()

    __table_args__ = (
        UniqueConstraint("cycle_id", "fec_candidate_id", name="uq_fec_filings_cycle_candidate"),
        CheckConstraint("office IN ('S', 'H')", name="ck_fec_filings_office"),
        Index("idx_fec_filings_cycle_state_active", "cycle_id", "state_id", "is_active"),
        Index("idx_fec_filings_promoted", "promoted_to_candidate_id"),
    )
