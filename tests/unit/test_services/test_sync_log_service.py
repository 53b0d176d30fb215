"""Unit tests for the sync run ledger."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from elections_api.models.sync_log import SyncLog
from elections_api.services.sync_log_service import (
    SyncLogCounts,
    expire_stale_runs,
    fail_sync_log,
    find_running_sync,
    finish_sync_log,
    get_sync_log,
    list_sync_logs,
    mark_rebuild_triggered,
    start_sync_log,
)

WATCHDOG = timedelta(minutes=60)


class TestStartSyncLog:
    """Tests for start_sync_log()."""

    @pytest.mark.asyncio
    async def test_inserts_running_row(self, async_session: AsyncSession) -> None:
        log = await start_sync_log(async_session, "manual", {"window": {"from": "2026-01-02", "to": "2026-04-02"}})

        stored = await get_sync_log(async_session, log.id)
        assert stored is not None
        assert stored.status == "running"
        assert stored.sync_type == "manual"
        assert stored.completed_at is None
        assert stored.states_synced == []
        assert stored.details["window"]["from"] == "2026-01-02"

    @pytest.mark.asyncio
    async def test_rejects_unknown_sync_type(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="Invalid sync type"):
            await start_sync_log(async_session, "cron")


class TestFinalize:
    """Tests for finish_sync_log() and fail_sync_log()."""

    @pytest.mark.asyncio
    async def test_finish_writes_counters(self, async_session: AsyncSession) -> None:
        log = await start_sync_log(async_session, "auto")

        finalized = await finish_sync_log(
            async_session,
            log.id,
            "partial",
            SyncLogCounts(states_synced=["NC", "GA"], created=3, updated=2, deactivated=1, api_requests=14),
            errors=["TX: FEC API 500: upstream exploded", "Jane Doe (GA): constraint failed"],
            details={"errors": []},
        )

        assert finalized is True
        stored = await get_sync_log(async_session, log.id)
        assert stored is not None
        assert stored.status == "partial"
        assert stored.states_synced == ["NC", "GA"]
        assert stored.filings_created == 3
        assert stored.filings_updated == 2
        assert stored.filings_deactivated == 1
        assert stored.api_requests == 14
        assert stored.error_message == "TX: FEC API 500: upstream exploded; Jane Doe (GA): constraint failed"
        assert stored.completed_at is not None

    @pytest.mark.asyncio
    async def test_success_has_no_error_message(self, async_session: AsyncSession) -> None:
        log = await start_sync_log(async_session, "auto")
        await finish_sync_log(async_session, log.id, "success", SyncLogCounts())

        stored = await get_sync_log(async_session, log.id)
        assert stored is not None
        assert stored.error_message is None

    @pytest.mark.asyncio
    async def test_terminal_row_is_never_rewritten(self, async_session: AsyncSession) -> None:
        log = await start_sync_log(async_session, "auto")
        await fail_sync_log(async_session, log.id, "No active election cycle", api_requests=0)

        rewritten = await finish_sync_log(async_session, log.id, "success", SyncLogCounts(created=5))

        assert rewritten is False
        stored = await get_sync_log(async_session, log.id)
        assert stored is not None
        assert stored.status == "error"
        assert stored.error_message == "No active election cycle"
        assert stored.filings_created == 0

    @pytest.mark.asyncio
    async def test_rejects_non_terminal_status(self, async_session: AsyncSession) -> None:
        log = await start_sync_log(async_session, "auto")
        with pytest.raises(ValueError, match="Invalid terminal status"):
            await finish_sync_log(async_session, log.id, "running", SyncLogCounts())

    @pytest.mark.asyncio
    async def test_mark_rebuild_triggered(self, async_session: AsyncSession) -> None:
        log = await start_sync_log(async_session, "auto")
        await finish_sync_log(async_session, log.id, "success", SyncLogCounts(created=1))
        await mark_rebuild_triggered(async_session, log.id)

        stored = await get_sync_log(async_session, log.id)
        assert stored is not None
        assert stored.triggered_rebuild is True


class TestRunGuard:
    """Tests for find_running_sync() and expire_stale_runs()."""

    @pytest.mark.asyncio
    async def test_finds_recent_running_row(self, async_session: AsyncSession) -> None:
        log = await start_sync_log(async_session, "auto")
        running = await find_running_sync(async_session, WATCHDOG)
        assert running is not None
        assert running.id == log.id

    @pytest.mark.asyncio
    async def test_ignores_finished_rows(self, async_session: AsyncSession) -> None:
        log = await start_sync_log(async_session, "auto")
        await finish_sync_log(async_session, log.id, "success", SyncLogCounts())
        assert await find_running_sync(async_session, WATCHDOG) is None

    @pytest.mark.asyncio
    async def test_expires_stale_rows_only(self, async_session: AsyncSession) -> None:
        stale = SyncLog(
            sync_type="auto",
            status="running",
            started_at=datetime.now(UTC) - timedelta(hours=3),
            states_synced=[],
            details={},
        )
        async_session.add(stale)
        await async_session.commit()
        fresh = await start_sync_log(async_session, "manual")

        expired = await expire_stale_runs(async_session, WATCHDOG)

        assert expired == 1
        stale_row = await get_sync_log(async_session, stale.id)
        assert stale_row is not None
        assert stale_row.status == "error"
        assert "watchdog" in (stale_row.error_message or "")
        fresh_row = await get_sync_log(async_session, fresh.id)
        assert fresh_row is not None
        assert fresh_row.status == "running"


class TestListSyncLogs:
    """Tests for list_sync_logs()."""

    @pytest.mark.asyncio
    async def test_newest_first_with_status_filter(self, async_session: AsyncSession) -> None:
        now = datetime.now(UTC)
        for hours_ago, status in ((5, "success"), (3, "error"), (1, "success")):
            async_session.add(
                SyncLog(
                    sync_type="auto",
                    status=status,
                    started_at=now - timedelta(hours=hours_ago),
                    states_synced=[],
                    details={},
                )
            )
        await async_session.commit()

        rows, total = await list_sync_logs(async_session, status="success")
        assert total == 2
        assert rows[0].started_at > rows[1].started_at

        rows, total = await list_sync_logs(async_session, page=2, page_size=2)
        assert total == 3
        assert len(rows) == 1
        assert rows[0].status == "success"
