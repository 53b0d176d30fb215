"""States, election cycles, and calendar events.

These tables are owned by the wider election site; the FEC sync only reads
them to decide which states are near a primary.
"""

import uuid
from datetime import date

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from elections_api.models.base import Base, TimestampMixin, UUIDMixin


class State(Base, UUIDMixin):
    """A U.S. state (or territory) keyed by its postal abbreviation."""

    __tablename__ = "states"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    abbr: Mapped[str] = mapped_column(String(2), nullable=False, unique=True)
    fips: Mapped[str | None] = mapped_column(String(2), nullable=True)
    house_districts: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")


class ElectionCycle(Base, UUIDMixin, TimestampMixin):
    """A two-year election period; exactly one is active at a time."""

    __tablename__ = "election_cycles"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    election_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    __table_args__ = (Index("idx_election_cycles_is_active", "is_active"),)


class CalendarEvent(Base, UUIDMixin, TimestampMixin):
    """A dated event (primary, runoff, filing deadline, ...) for one state."""

    __tablename__ = "calendar_events"

    cycle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("election_cycles.id", ondelete="CASCADE"),
        nullable=False,
    )
    state_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("states.id", ondelete="CASCADE"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(30), nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    title: Mapped[str | None] = mapped_column(String(300), nullable=True)

    state: Mapped["State"] = relationship()

    __table_args__ = (
        CheckConstraint(
            "event_type IN ('primary', 'runoff', 'general', 'filing_deadline', 'other')",
            name="ck_calendar_events_event_type",
        ),
        Index("idx_calendar_events_cycle_type_date", "cycle_id", "event_type", "event_date"),
    )
