"""Unit tests for the sync window service."""

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from elections_api.models.geography import CalendarEvent, ElectionCycle, State
from elections_api.models.sync_log import AutomationConfig
from elections_api.services.sync_window_service import (
    SyncWindow,
    compute_sync_window,
    get_active_cycle,
    get_automation_config,
    list_upcoming_states,
    resolve_target_states,
)


class TestComputeSyncWindow:
    """Tests for compute_sync_window()."""

    def test_inclusive_bounds(self) -> None:
        window = compute_sync_window(date(2026, 2, 1), lookahead_days=60, lookback_days=30)
        assert window == SyncWindow(start=date(2026, 1, 2), end=date(2026, 4, 2))
        assert window.contains(date(2026, 1, 2))
        assert window.contains(date(2026, 4, 2))
        assert not window.contains(date(2026, 4, 3))

    def test_zero_width_window(self) -> None:
        window = compute_sync_window(date(2026, 2, 1), 0, 0)
        assert window.start == window.end == date(2026, 2, 1)

    def test_negative_days_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            compute_sync_window(date(2026, 2, 1), -1, 30)

    def test_as_dict(self) -> None:
        window = compute_sync_window(date(2026, 2, 1), 60, 30)
        assert window.as_dict() == {"from": "2026-01-02", "to": "2026-04-02"}


class TestGetActiveCycle:
    """Tests for get_active_cycle()."""

    @pytest.mark.asyncio
    async def test_none_when_no_active_cycle(self, async_session: AsyncSession) -> None:
        async_session.add(ElectionCycle(name="2024", year=2024, is_active=False))
        await async_session.commit()
        assert await get_active_cycle(async_session) is None

    @pytest.mark.asyncio
    async def test_latest_year_wins(self, async_session: AsyncSession) -> None:
        async_session.add_all(
            [
                ElectionCycle(name="2024", year=2024, is_active=True),
                ElectionCycle(name="2026", year=2026, is_active=True),
            ]
        )
        await async_session.commit()
        cycle = await get_active_cycle(async_session)
        assert cycle is not None
        assert cycle.year == 2026


class TestResolveTargetStates:
    """Tests for resolve_target_states()."""

    @pytest.mark.asyncio
    async def test_states_in_window_ordered_by_date(
        self,
        async_session: AsyncSession,
        active_cycle: ElectionCycle,
        primaries: dict[str, date],
        today: date,
    ) -> None:
        targets = await resolve_target_states(async_session, active_cycle.id, compute_sync_window(today, 60, 30))

        assert [t.abbr for t in targets] == ["NC", "TX", "GA"]
        assert targets[0].primary_date == date(2026, 3, 3)
        assert targets[2].name == "Georgia"

    @pytest.mark.asyncio
    async def test_state_listed_once_with_earliest_primary(
        self,
        async_session: AsyncSession,
        active_cycle: ElectionCycle,
        states: dict[str, State],
        primaries: dict[str, date],
        today: date,
    ) -> None:
        async_session.add(
            CalendarEvent(
                cycle_id=active_cycle.id,
                state_id=states["TX"].id,
                event_type="primary",
                event_date=date(2026, 3, 25),
                title="Texas presidential preference primary",
            )
        )
        await async_session.commit()

        targets = await resolve_target_states(async_session, active_cycle.id, compute_sync_window(today, 60, 30))

        tx = [t for t in targets if t.abbr == "TX"]
        assert len(tx) == 1
        assert tx[0].primary_date == date(2026, 3, 3)

    @pytest.mark.asyncio
    async def test_ignores_non_primary_events_and_other_cycles(
        self,
        async_session: AsyncSession,
        active_cycle: ElectionCycle,
        states: dict[str, State],
        today: date,
    ) -> None:
        old_cycle = ElectionCycle(name="2024", year=2024, is_active=False)
        async_session.add(old_cycle)
        await async_session.flush()
        async_session.add_all(
            [
                CalendarEvent(
                    cycle_id=active_cycle.id,
                    state_id=states["GA"].id,
                    event_type="runoff",
                    event_date=date(2026, 2, 10),
                ),
                CalendarEvent(
                    cycle_id=old_cycle.id,
                    state_id=states["OH"].id,
                    event_type="primary",
                    event_date=date(2026, 2, 10),
                ),
            ]
        )
        await async_session.commit()

        targets = await resolve_target_states(async_session, active_cycle.id, compute_sync_window(today, 60, 30))

        assert targets == []


class TestAutomationConfig:
    """Tests for get_automation_config() and list_upcoming_states()."""

    @pytest.mark.asyncio
    async def test_creates_defaults_when_missing(self, async_session: AsyncSession) -> None:
        config = await get_automation_config(async_session)
        assert config.id == 1
        assert config.fec_sync_enabled is False
        assert config.lookahead_days == 60
        assert config.lookback_days == 30
        assert config.min_funds_raised == 5000
        assert config.major_parties_only is True
        assert config.active_only is True

    @pytest.mark.asyncio
    async def test_returns_existing_row(
        self,
        async_session: AsyncSession,
        automation_config: AutomationConfig,
    ) -> None:
        config = await get_automation_config(async_session)
        assert config.fec_sync_enabled is True

    @pytest.mark.asyncio
    async def test_upcoming_states_uses_config_window(
        self,
        async_session: AsyncSession,
        automation_config: AutomationConfig,
        primaries: dict[str, date],
        today: date,
    ) -> None:
        automation_config.lookahead_days = 35
        await async_session.commit()

        window, targets = await list_upcoming_states(async_session, automation_config, today)

        assert window.end == date(2026, 3, 8)
        assert [t.abbr for t in targets] == ["NC", "TX"]

    @pytest.mark.asyncio
    async def test_upcoming_states_without_cycle(
        self,
        async_session: AsyncSession,
        automation_config: AutomationConfig,
        today: date,
    ) -> None:
        window, targets = await list_upcoming_states(async_session, automation_config, today)
        assert window.start == date(2026, 1, 2)
        assert targets == []
