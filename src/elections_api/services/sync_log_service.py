"""Sync log service — the run ledger for FEC sync attempts.

Every run inserts a ``running`` row before touching OpenFEC and finalizes
it exactly once. Finalization only ever updates rows still in ``running``
so a completed row is never rewritten.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from elections_api.models.sync_log import SyncLog

SYNC_TYPES = ("auto", "manual")
TERMINAL_STATUSES = ("success", "partial", "error")


@dataclass
class SyncLogCounts:
    """Counters written to a ledger row at completion."""

    states_synced: list[str] = field(default_factory=list)
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    api_requests: int = 0


async def start_sync_log(session: AsyncSession, sync_type: str, details: dict[str, Any] | None = None) -> SyncLog:
    """Insert and commit a ``running`` ledger row.

    Raises:
        ValueError: If ``sync_type`` is not ``auto`` or ``manual``.
    """
    if sync_type not in SYNC_TYPES:
        msg = f"Invalid sync type {sync_type!r}; expected one of {SYNC_TYPES}"
        raise ValueError(msg)
    log = SyncLog(
        sync_type=sync_type,
        status="running",
        started_at=datetime.now(UTC),
        states_synced=[],
        details=details or {},
    )
    session.add(log)
    await session.commit()
    await session.refresh(log)
    logger.info("Started {} FEC sync run {}", sync_type, log.id)
    return log


async def _finalize(session: AsyncSession, log_id: uuid.UUID, values: dict[str, Any]) -> bool:
    result = await session.execute(
        update(SyncLog)
        .where(SyncLog.id == log_id, SyncLog.status == "running")
        .values(completed_at=datetime.now(UTC), **values)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    if result.rowcount != 1:
        logger.warning("Sync run {} was already finalized; terminal update skipped", log_id)
        return False
    return True


async def finish_sync_log(
    session: AsyncSession,
    log_id: uuid.UUID,
    status: str,
    counts: SyncLogCounts,
    errors: list[str] | None = None,
    details: dict[str, Any] | None = None,
) -> bool:
    """Write the terminal status, counters, and details for a run.

    Args:
        session: Async database session.
        log_id: Ledger row to finalize.
        status: One of success, partial, error.
        counts: Aggregated counters.
        errors: Human-readable errors, joined into ``error_message``.
        details: Structured diagnostic blob (replaces the start-time blob).

    Returns:
        True if the row was finalized, False if it was no longer running.
    """
    if status not in TERMINAL_STATUSES:
        msg = f"Invalid terminal status {status!r}"
        raise ValueError(msg)
    values: dict[str, Any] = {
        "status": status,
        "states_synced": list(counts.states_synced),
        "filings_created": counts.created,
        "filings_updated": counts.updated,
        "filings_deactivated": counts.deactivated,
        "api_requests": counts.api_requests,
        "error_message": "; ".join(errors) if errors else None,
    }
    if details is not None:
        values["details"] = details
    return await _finalize(session, log_id, values)


async def fail_sync_log(
    session: AsyncSession,
    log_id: uuid.UUID,
    message: str,
    details: dict[str, Any] | None = None,
    api_requests: int = 0,
) -> bool:
    """Finalize a run as ``error`` after a fatal failure."""
    values: dict[str, Any] = {"status": "error", "error_message": message, "api_requests": api_requests}
    if details is not None:
        values["details"] = details
    return await _finalize(session, log_id, values)


async def mark_rebuild_triggered(session: AsyncSession, log_id: uuid.UUID) -> None:
    """Record that the rebuild hook fired for a completed run."""
    await session.execute(
        update(SyncLog)
        .where(SyncLog.id == log_id)
        .values(triggered_rebuild=True)
        .execution_options(synchronize_session=False)
    )
    await session.commit()


async def find_running_sync(session: AsyncSession, stale_after: timedelta) -> SyncLog | None:
    """Return a ``running`` row started within ``stale_after``, if any."""
    cutoff = datetime.now(UTC) - stale_after
    result = await session.execute(
        select(SyncLog)
        .where(SyncLog.status == "running", SyncLog.started_at > cutoff)
        .order_by(SyncLog.started_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def expire_stale_runs(session: AsyncSession, stale_after: timedelta) -> int:
    """Finalize ``running`` rows older than ``stale_after`` as ``error``.

    Returns:
        Number of rows expired.
    """
    now = datetime.now(UTC)
    cutoff = now - stale_after
    result = await session.execute(
        update(SyncLog)
        .where(SyncLog.status == "running", SyncLog.started_at <= cutoff)
        .values(
            status="error",
            completed_at=now,
            error_message="Run exceeded the watchdog window without completing",
        )
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    if result.rowcount:
        logger.warning("Expired {} stale FEC sync run(s)", result.rowcount)
    return result.rowcount


async def get_sync_log(session: AsyncSession, log_id: uuid.UUID) -> SyncLog | None:
    result = await session.execute(
        select(SyncLog).where(SyncLog.id == log_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_sync_logs(
    session: AsyncSession,
    *,
    page: int = 1,
    page_size: int = 20,
    status: str | None = None,
) -> tuple[list[SyncLog], int]:
    """List ledger rows newest first with pagination.

    Returns:
        Tuple of (rows, total count).
    """
    query = select(SyncLog)
    count_query = select(func.count(SyncLog.id))
    if status:
        query = query.where(SyncLog.status == status)
        count_query = count_query.where(SyncLog.status == status)

    total = (await session.execute(count_query)).scalar_one()
    offset = (page - 1) * page_size
    result = await session.execute(query.order_by(SyncLog.started_at.desc()).offset(offset).limit(page_size))
    return list(result.scalars().all()), total
