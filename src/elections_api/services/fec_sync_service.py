"""FEC sync service — reconciles OpenFEC candidates into staged filings.

For each state with a primary inside the sync window, candidates are
fetched from OpenFEC, filtered, priced with their financial totals, and
upserted into ``fec_filings`` keyed by (cycle, FEC candidate id). Active,
unpromoted filings the API no longer reports are soft-deactivated.

States are processed sequentially and committed one at a time; a failure
in one state is recorded and the run moves on to the next.
"""

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from functools import partial
from typing import Any

import httpx
from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from elections_api.core.config import Settings
from elections_api.lib.openfec import (
    FecCandidate,
    FecCandidateTotals,
    OpenFecClient,
    OpenFecError,
    is_major_party,
    map_fec_party,
    parse_fec_name,
)
from elections_api.models.fec_filing import FecFiling
from elections_api.models.sync_log import AutomationConfig
from elections_api.services.sync_log_service import (
    SyncLogCounts,
    expire_stale_runs,
    fail_sync_log,
    find_running_sync,
    finish_sync_log,
    mark_rebuild_triggered,
    start_sync_log,
)
from elections_api.services.sync_window_service import (
    TargetState,
    compute_sync_window,
    get_active_cycle,
    get_automation_config,
    resolve_target_states,
)

RebuildTrigger = Callable[[str], Awaitable[bool]]

DISABLED_MESSAGE = "FEC sync is disabled"
NO_STATES_MESSAGE = "No states with primaries in the current window"


class FecSyncConfigError(Exception):
    """Raised when a run cannot start: missing API key or no active cycle."""


class SyncAlreadyRunningError(Exception):
    """Raised when another sync run is still in progress."""

    def __init__(self, running_id: uuid.UUID) -> None:
        self.running_id = running_id
        super().__init__(f"FEC sync {running_id} is already running")


class FecSyncTimeoutError(Exception):
    """Raised when a run exceeds its overall deadline."""


@dataclass(frozen=True)
class SyncOptions:
    """Filters applied to every state in a run."""

    fec_cycle: int
    offices: tuple[str, ...] = ("S",)
    min_funds_raised: float = 5000.0
    major_parties_only: bool = True
    active_only: bool = True

    @classmethod
    def from_config(cls, config: AutomationConfig, settings: Settings) -> "SyncOptions":
        return cls(
            fec_cycle=settings.fec_cycle,
            offices=tuple(settings.fec_office_list),
            min_funds_raised=float(config.min_funds_raised),
            major_parties_only=config.major_parties_only,
            active_only=config.active_only,
        )


@dataclass(frozen=True)
class SyncErrorRecord:
    """One recorded sync failure.

    Attributes:
        kind: ``state`` (whole state failed) or ``upsert`` (one row rejected).
        state: State abbreviation.
        message: Underlying error message.
        candidate_id: FEC candidate id for row-level failures.
        label: Human-readable prefix, e.g. ``TX`` or ``Jane Doe (TX)``.
    """

    kind: str
    state: str
    message: str
    candidate_id: str | None = None
    label: str | None = None

    def __str__(self) -> str:
        return f"{self.label or self.state}: {self.message}"

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "state": self.state,
            "candidate_id": self.candidate_id,
            "message": self.message,
        }


@dataclass
class StateSyncResult:
    """Counters for a single state."""

    abbr: str
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    below_floor: int = 0
    errors: list[SyncErrorRecord] = field(default_factory=list)


@dataclass
class ReconciliationResult:
    """Aggregate counters across all target states."""

    created: int = 0
    updated: int = 0
    deactivated: int = 0
    api_requests: int = 0
    states_synced: list[str] = field(default_factory=list)
    errors: list[SyncErrorRecord] = field(default_factory=list)

    @property
    def error_messages(self) -> list[str]:
        return [str(e) for e in self.errors]

    @property
    def has_changes(self) -> bool:
        return self.created + self.updated + self.deactivated > 0

    @property
    def status(self) -> str:
        return derive_status(self.errors, self.states_synced)


@dataclass
class FecSyncOutcome:
    """Result of one ``run_fec_sync`` call, shaped for API/CLI responses."""

    status: str | None = None
    message: str | None = None
    sync_log_id: uuid.UUID | None = None
    states_synced: list[str] = field(default_factory=list)
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    api_requests: int = 0
    rebuild_triggered: bool = False
    errors: list[str] = field(default_factory=list)
    window: dict[str, str] | None = None
    disabled: bool = False

    def to_response(self) -> dict[str, Any]:
        """Render the webhook JSON body."""
        if self.disabled:
            return {"message": self.message or DISABLED_MESSAGE}
        if self.message is not None:
            return {"status": self.status, "message": self.message, "window": self.window}
        body: dict[str, Any] = {
            "status": self.status,
            "statesSynced": self.states_synced,
            "created": self.created,
            "updated": self.updated,
            "deactivated": self.deactivated,
            "apiRequests": self.api_requests,
            "rebuildTriggered": self.rebuild_triggered,
        }
        if self.errors:
            body["errors"] = self.errors
        return body


def derive_status(errors: Sequence[object], states_synced: Sequence[str]) -> str:
    """``success`` with no errors, ``partial`` if any state synced, else ``error``."""
    if not errors:
        return "success"
    if states_synced:
        return "partial"
    return "error"


def dedupe_candidates(candidates: Iterable[FecCandidate]) -> list[FecCandidate]:
    """Drop repeated candidate ids, keeping the first occurrence."""
    seen: set[str] = set()
    unique: list[FecCandidate] = []
    for candidate in candidates:
        if candidate.candidate_id in seen:
            continue
        seen.add(candidate.candidate_id)
        unique.append(candidate)
    return unique


def build_filing_values(
    candidate: FecCandidate,
    totals: FecCandidateTotals | None,
    *,
    cycle_id: uuid.UUID,
    state_id: uuid.UUID,
    now: datetime,
) -> dict[str, Any]:
    """Map an OpenFEC candidate and its totals onto ``fec_filings`` columns."""
    name = parse_fec_name(candidate.name)
    is_active = candidate.candidate_status == "C"
    return {
        "cycle_id": cycle_id,
        "fec_candidate_id": candidate.candidate_id,
        "state_id": state_id,
        "name": candidate.name or f"{name.last}, {name.first}",
        "first_name": name.first,
        "last_name": name.last,
        "party": map_fec_party(candidate.party_full or candidate.party),
        "office": candidate.office,
        "district_number": candidate.district_number,
        "is_incumbent": candidate.incumbent_challenge == "I",
        "incumbent_challenge": candidate.incumbent_challenge or None,
        "fec_candidate_status": candidate.candidate_status or None,
        "is_active": is_active,
        "funds_raised": (totals.receipts if totals else None) or 0.0,
        "funds_spent": (totals.disbursements if totals else None) or 0.0,
        "cash_on_hand": (totals.cash_on_hand_end_period if totals else None) or 0.0,
        "last_synced_at": now,
        "deactivated_at": None if is_active else now,
    }


async def upsert_filing(session: AsyncSession, values: dict[str, Any]) -> bool:
    """Insert or update one staged filing on its natural key.

    The write is a single ``INSERT ... ON CONFLICT (cycle_id,
    fec_candidate_id) DO UPDATE`` so concurrent runs cannot create
    duplicates. ``promoted_to_candidate_id`` is never touched.

    Returns:
        True if the row was created, False if an existing row was updated.
    """
    existing = await session.execute(
        select(FecFiling.id).where(
            FecFiling.cycle_id == values["cycle_id"],
            FecFiling.fec_candidate_id == values["fec_candidate_id"],
        )
    )
    created = existing.scalar_one_or_none() is None

    insert_fn = pg_insert if session.get_bind().dialect.name == "postgresql" else sqlite_insert
    stmt = insert_fn(FecFiling).values(**values)
    update_cols = {key: stmt.excluded[key] for key in values if key not in ("cycle_id", "fec_candidate_id")}
    update_cols["updated_at"] = func.now()
    stmt = stmt.on_conflict_do_update(index_elements=["cycle_id", "fec_candidate_id"], set_=update_cols)
    await session.execute(stmt)
    return created


async def deactivate_missing_filings(
    session: AsyncSession,
    cycle_id: uuid.UUID,
    state_id: uuid.UUID,
    seen_ids: set[str],
    offices: Sequence[str],
    now: datetime,
) -> int:
    """Soft-deactivate active, unpromoted filings absent from this pass.

    Only filings for the offices that were fetched are considered.

    Returns:
        Number of filings deactivated.
    """
    stmt = update(FecFiling).where(
        FecFiling.cycle_id == cycle_id,
        FecFiling.state_id == state_id,
        FecFiling.office.in_(list(offices)),
        FecFiling.is_active.is_(True),
        FecFiling.promoted_to_candidate_id.is_(None),
    )
    if seen_ids:
        stmt = stmt.where(FecFiling.fec_candidate_id.not_in(sorted(seen_ids)))
    result = await session.execute(
        stmt.values(is_active=False, deactivated_at=now, updated_at=func.now()).execution_options(
            synchronize_session=False
        )
    )
    return result.rowcount


async def _fetch_totals(client: OpenFecClient, candidate_id: str, cycle: int) -> FecCandidateTotals | None:
    try:
        return await client.get_candidate_totals(candidate_id, cycle)
    except OpenFecError as exc:
        # New candidates often have no reports yet
        logger.debug("Financial totals unavailable for {}: {}", candidate_id, exc.message)
        return None


async def sync_state(
    session: AsyncSession,
    client: OpenFecClient,
    cycle_id: uuid.UUID,
    target: TargetState,
    options: SyncOptions,
) -> StateSyncResult:
    """Reconcile one state's OpenFEC candidates against staged filings.

    Steps: fetch every configured office, dedupe by candidate id (first
    wins), apply the major-party filter, record the candidate as seen,
    fetch totals and apply the min-funds floor, upsert, then sweep
    unseen filings. A candidate below the floor is still "seen" and so is
    never deactivated for that reason alone. Commits on success.

    Args:
        session: Async database session.
        client: OpenFEC client.
        cycle_id: Active election cycle id.
        target: State to reconcile.
        options: Run-wide filters.

    Returns:
        Per-state counters and row-level errors.

    Raises:
        OpenFecError: If the candidate search fails.
        SQLAlchemyError: If the deactivation sweep fails.
    """
    result = StateSyncResult(abbr=target.abbr)
    now = datetime.now(UTC)

    fetched: list[FecCandidate] = []
    for office in options.offices:
        fetched.extend(
            await client.search_candidates(
                options.fec_cycle,
                office,
                target.abbr,
                is_active_candidate=True if options.active_only else None,
                has_raised_funds=True,
            )
        )

    candidates = dedupe_candidates(fetched)
    if options.major_parties_only:
        candidates = [c for c in candidates if is_major_party(c.party_full or c.party)]

    seen_ids: set[str] = set()
    for candidate in candidates:
        seen_ids.add(candidate.candidate_id)

        totals = await _fetch_totals(client, candidate.candidate_id, options.fec_cycle)
        raised = (totals.receipts if totals else None) or 0.0
        if raised < options.min_funds_raised:
            result.below_floor += 1
            continue

        values = build_filing_values(candidate, totals, cycle_id=cycle_id, state_id=target.state_id, now=now)
        try:
            async with session.begin_nested():
                created = await upsert_filing(session, values)
        except SQLAlchemyError as exc:
            label = f"{values['first_name']} {values['last_name']} ({target.abbr})"
            logger.warning("Upsert failed for {} [{}]: {}", label, candidate.candidate_id, exc)
            result.errors.append(
                SyncErrorRecord(
                    kind="upsert",
                    state=target.abbr,
                    candidate_id=candidate.candidate_id,
                    message=str(exc.orig) if getattr(exc, "orig", None) else str(exc),
                    label=label,
                )
            )
            continue

        if created:
            result.created += 1
        else:
            result.updated += 1

    result.deactivated = await deactivate_missing_filings(
        session, cycle_id, target.state_id, seen_ids, options.offices, now
    )
    await session.commit()

    logger.info(
        "Synced {}: {} created, {} updated, {} deactivated, {} below funds floor",
        target.abbr,
        result.created,
        result.updated,
        result.deactivated,
        result.below_floor,
    )
    return result


async def reconcile_states(
    session: AsyncSession,
    client: OpenFecClient,
    cycle_id: uuid.UUID,
    targets: Sequence[TargetState],
    options: SyncOptions,
) -> ReconciliationResult:
    """Run :func:`sync_state` for each target, isolating per-state failures.

    A failed state is rolled back, recorded as ``"{abbr}: {message}"``,
    and skipped; its counters are not included in the totals.
    """
    result = ReconciliationResult()
    requests_before = client.requests_made

    for target in targets:
        try:
            state_result = await sync_state(session, client, cycle_id, target, options)
        except Exception as exc:
            await session.rollback()
            message = exc.message if isinstance(exc, OpenFecError) else str(exc)
            logger.exception("FEC sync failed for state {}", target.abbr)
            result.errors.append(SyncErrorRecord(kind="state", state=target.abbr, message=message))
            continue

        result.created += state_result.created
        result.updated += state_result.updated
        result.deactivated += state_result.deactivated
        result.errors.extend(state_result.errors)
        result.states_synced.append(target.abbr)

    result.api_requests = client.requests_made - requests_before
    return result


async def trigger_rebuild(url: str, *, timeout: float = 10.0, http_client: httpx.AsyncClient | None = None) -> bool:
    """POST (no body) to the static-site rebuild hook.

    Failures are logged and reported as False; they never fail a run.
    """
    try:
        if http_client is not None:
            response = await http_client.post(url)
        else:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Rebuild hook failed: {}", exc)
        return False
    logger.info("Rebuild hook triggered ({})", response.status_code)
    return True


async def _touch_last_sync(session: AsyncSession) -> None:
    await session.execute(
        update(AutomationConfig)
        .where(AutomationConfig.id == 1)
        .values(last_sync_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    await session.commit()


async def run_fec_sync(
    session: AsyncSession,
    settings: Settings,
    sync_type: str,
    *,
    client: OpenFecClient | None = None,
    today: date | None = None,
    rebuild_trigger: RebuildTrigger | None = None,
) -> FecSyncOutcome:
    """Run one complete FEC sync.

    Flow: API key check, enabled toggle (scheduled runs only), single-run
    guard, ledger start, active cycle, sync window, reconciliation under
    the overall deadline, ledger finish, ``last_sync_at``, and the rebuild
    hook when anything changed.

    Args:
        session: Async database session.
        settings: Application settings.
        sync_type: ``auto`` for the webhook/scheduler, ``manual`` for operators.
        client: OpenFEC client; one is built from settings when omitted.
        today: Reference date for the window (defaults to today, UTC).
        rebuild_trigger: Replaces :func:`trigger_rebuild`.

    Returns:
        The run outcome. Disabled runs return ``disabled=True`` and write no
        ledger row.

    Raises:
        FecSyncConfigError: Missing API key or no active election cycle.
        SyncAlreadyRunningError: Another run started within the watchdog window.
        FecSyncTimeoutError: The run exceeded ``fec_sync_max_run_minutes``.
    """
    if client is None and not settings.fec_api_key:
        msg = "FEC_API_KEY not configured"
        raise FecSyncConfigError(msg)

    config = await get_automation_config(session)
    if sync_type == "auto" and not config.fec_sync_enabled:
        logger.info("FEC sync is disabled; skipping scheduled run")
        return FecSyncOutcome(disabled=True, message=DISABLED_MESSAGE)

    options = SyncOptions.from_config(config, settings)
    lookahead_days = config.lookahead_days
    lookback_days = config.lookback_days
    rebuild_url = config.rebuild_hook_url

    stale_after = timedelta(minutes=settings.fec_sync_stale_run_minutes)
    await expire_stale_runs(session, stale_after)
    running = await find_running_sync(session, stale_after)
    if running is not None:
        raise SyncAlreadyRunningError(running.id)

    window = compute_sync_window(today or datetime.now(UTC).date(), lookahead_days, lookback_days)
    details: dict[str, Any] = {
        "window": window.as_dict(),
        "config": {
            "lookahead_days": lookahead_days,
            "lookback_days": lookback_days,
            "min_funds_raised": options.min_funds_raised,
            "major_parties_only": options.major_parties_only,
            "active_only": options.active_only,
            "offices": list(options.offices),
            "fec_cycle": options.fec_cycle,
        },
    }
    log = await start_sync_log(session, sync_type, details)
    log_id = log.id

    owns_client = client is None
    fec_client: OpenFecClient | None = client
    try:
        cycle = await get_active_cycle(session)
        if cycle is None:
            msg = "No active election cycle"
            raise FecSyncConfigError(msg)
        cycle_id = cycle.id
        if cycle.year != options.fec_cycle:
            logger.warning(
                "FEC_CYCLE {} differs from active election cycle {}; querying OpenFEC for {}",
                options.fec_cycle,
                cycle.year,
                cycle.year,
            )
            options = replace(options, fec_cycle=cycle.year)
            details["config"]["fec_cycle"] = cycle.year

        targets = await resolve_target_states(session, cycle_id, window)
        details["target_states"] = [t.abbr for t in targets]
        if not targets:
            details["message"] = "No states in sync window"
            await finish_sync_log(session, log_id, "success", SyncLogCounts(), details=details)
            logger.info("No states in sync window {} to {}", window.start, window.end)
            return FecSyncOutcome(
                status="success",
                message=NO_STATES_MESSAGE,
                sync_log_id=log_id,
                window=window.as_dict(),
            )

        logger.info(
            "FEC {} sync run {} targeting {} state(s): {}",
            sync_type,
            log_id,
            len(targets),
            ", ".join(details["target_states"]),
        )
        if fec_client is None:
            fec_client = OpenFecClient(
                settings.fec_api_key or "",
                base_url=settings.fec_base_url,
                per_page=settings.fec_per_page,
                timeout=settings.fec_timeout,
            )
        try:
            async with asyncio.timeout(settings.fec_sync_max_run_minutes * 60):
                result = await reconcile_states(session, fec_client, cycle_id, targets, options)
        except TimeoutError as exc:
            msg = f"FEC sync exceeded the {settings.fec_sync_max_run_minutes} minute deadline"
            raise FecSyncTimeoutError(msg) from exc
    except Exception as exc:
        await session.rollback()
        logger.exception("FEC sync run {} failed", log_id)
        await fail_sync_log(
            session,
            log_id,
            str(exc),
            details=details,
            api_requests=fec_client.requests_made if fec_client is not None else 0,
        )
        raise
    finally:
        if owns_client and fec_client is not None:
            await fec_client.close()

    details["errors"] = [e.as_dict() for e in result.errors]
    status = result.status
    await finish_sync_log(
        session,
        log_id,
        status,
        SyncLogCounts(
            states_synced=result.states_synced,
            created=result.created,
            updated=result.updated,
            deactivated=result.deactivated,
            api_requests=result.api_requests,
        ),
        errors=result.error_messages,
        details=details,
    )
    await _touch_last_sync(session)

    rebuild_triggered = False
    if result.has_changes and rebuild_url:
        trigger = rebuild_trigger or partial(trigger_rebuild, timeout=settings.rebuild_hook_timeout)
        rebuild_triggered = await trigger(rebuild_url)
        if rebuild_triggered:
            await mark_rebuild_triggered(session, log_id)

    logger.bind(json_output=True, sync_log_id=str(log_id), status=status).info(
        "FEC sync run {} finished with status {}: {} created, {} updated, {} deactivated, {} API requests",
        log_id,
        status,
        result.created,
        result.updated,
        result.deactivated,
        result.api_requests,
    )
    return FecSyncOutcome(
        status=status,
        sync_log_id=log_id,
        states_synced=result.states_synced,
        created=result.created,
        updated=result.updated,
        deactivated=result.deactivated,
        api_requests=result.api_requests,
        rebuild_triggered=rebuild_triggered,
        errors=result.error_messages,
        window=window.as_dict(),
    )


async def fec_sync_loop(interval: int) -> None:
    """Background asyncio loop that runs scheduled FEC syncs.

    Args:
        interval: Seconds between sync runs.
    """
    from elections_api.core.config import get_settings
    from elections_api.core.database import get_session_factory

    logger.info("FEC sync loop started (interval={}s)", interval)

    while True:
        try:
            await asyncio.sleep(interval)
            factory = get_session_factory()
            async with factory() as session:
                outcome = await run_fec_sync(session, get_settings(), "auto")
                if not outcome.disabled:
                    logger.info("Scheduled FEC sync finished with status {}", outcome.status)
        except asyncio.CancelledError:
            logger.info("FEC sync loop cancelled")
            break
        except SyncAlreadyRunningError as exc:
            logger.warning("Skipping scheduled FEC sync: {}", exc)
        except Exception:
            logger.exception("FEC sync loop error")
