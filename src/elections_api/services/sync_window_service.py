"""Sync window service — decides which states a sync run targets.

A state is in scope when its primary falls inside
``[today - lookback_days, today + lookahead_days]`` (inclusive) for the
active election cycle.
"""

import uuid
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from elections_api.models.geography import CalendarEvent, ElectionCycle, State
from elections_api.models.sync_log import AutomationConfig


@dataclass(frozen=True)
class SyncWindow:
    """Inclusive date range whose primaries are synced."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def as_dict(self) -> dict[str, str]:
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}


@dataclass(frozen=True)
class TargetState:
    """A state selected for syncing, with its earliest in-window primary."""

    state_id: uuid.UUID
    abbr: str
    name: str
    primary_date: date


def compute_sync_window(today: date, lookahead_days: int, lookback_days: int) -> SyncWindow:
    """Build the inclusive window around ``today``.

    Raises:
        ValueError: If either day count is negative.
    """
    if lookahead_days < 0 or lookback_days < 0:
        msg = "lookahead_days and lookback_days must be non-negative"
        raise ValueError(msg)
    return SyncWindow(start=today - timedelta(days=lookback_days), end=today + timedelta(days=lookahead_days))


async def get_active_cycle(session: AsyncSession) -> ElectionCycle | None:
    """Return the active election cycle, or None if none is active.

    If several rows are flagged active the most recent year wins.
    """
    result = await session.execute(
        select(ElectionCycle)
        .where(ElectionCycle.is_active.is_(True))
        .order_by(ElectionCycle.year.desc(), ElectionCycle.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def resolve_target_states(
    session: AsyncSession,
    cycle_id: uuid.UUID,
    window: SyncWindow,
) -> list[TargetState]:
    """List distinct states with a primary inside the window.

    Args:
        session: Async database session.
        cycle_id: Active election cycle.
        window: Inclusive date range.

    Returns:
        One TargetState per state, keeping its earliest primary date,
        ordered by primary date then abbreviation.
    """
    result = await session.execute(
        select(CalendarEvent.state_id, CalendarEvent.event_date, State.abbr, State.name)
        .join(State, State.id == CalendarEvent.state_id)
        .where(
            CalendarEvent.cycle_id == cycle_id,
            CalendarEvent.event_type == "primary",
            CalendarEvent.event_date >= window.start,
            CalendarEvent.event_date <= window.end,
        )
        .order_by(CalendarEvent.event_date, State.abbr)
    )

    targets: dict[uuid.UUID, TargetState] = {}
    for state_id, event_date, abbr, name in result.all():
        if state_id not in targets:
            targets[state_id] = TargetState(state_id=state_id, abbr=abbr, name=name, primary_date=event_date)
    return list(targets.values())


async def get_automation_config(session: AsyncSession) -> AutomationConfig:
    """Return the automation config singleton, creating defaults if absent."""
    config = await session.get(AutomationConfig, 1)
    if config is None:
        config = AutomationConfig(id=1)
        session.add(config)
        await session.flush()
    return config


async def list_upcoming_states(
    session: AsyncSession,
    config: AutomationConfig,
    today: date,
) -> tuple[SyncWindow, list[TargetState]]:
    """Preview the states the next sync would target.

    Returns:
        The window and its target states; an empty list when no cycle is active.
    """
    window = compute_sync_window(today, config.lookahead_days, config.lookback_days)
    cycle = await get_active_cycle(session)
    if cycle is None:
        return window, []
    return window, await resolve_target_states(session, cycle.id, window)
