"""Shared test fixtures for async database, sessions, seed data, and auth tokens."""

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import UTC, date, datetime

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from elections_api.core.config import Settings
from elections_api.core.security import create_access_token
from elections_api.models.base import Base
from elections_api.models.fec_filing import FecFiling
from elections_api.models.geography import CalendarEvent, ElectionCycle, State
from elections_api.models.sync_log import AutomationConfig


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        jwt_access_token_expire_minutes=30,
        fec_api_key="test-fec-key",
        fec_cycle=2026,
        fec_offices="S",
        fec_sync_webhook_secret="cron-secret",
    )


@pytest.fixture
async def async_engine(settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing.

    pysqlite's own transaction handling breaks SAVEPOINT; the listeners hand
    BEGIN back to SQLAlchemy so ``begin_nested`` works as on PostgreSQL.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):  # noqa: ANN001, ANN202
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):  # noqa: ANN001, ANN202
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def today() -> date:
    """Reference date for sync windows and primary countdowns."""
    return date(2026, 2, 1)


@pytest.fixture
async def active_cycle(async_session: AsyncSession) -> ElectionCycle:
    """The active 2026 election cycle."""
    cycle = ElectionCycle(name="2026 Midterms", year=2026, election_date=date(2026, 11, 3), is_active=True)
    async_session.add(cycle)
    await async_session.commit()
    return cycle


@pytest.fixture
async def states(async_session: AsyncSession) -> dict[str, State]:
    """Texas, Georgia, North Carolina, and Ohio, keyed by abbreviation."""
    rows = {
        "TX": State(name="Texas", abbr="TX", fips="48", house_districts=38),
        "GA": State(name="Georgia", abbr="GA", fips="13", house_districts=14),
        "NC": State(name="North Carolina", abbr="NC", fips="37", house_districts=14),
        "OH": State(name="Ohio", abbr="OH", fips="39", house_districts=15),
    }
    async_session.add_all(rows.values())
    await async_session.commit()
    return rows


@pytest.fixture
async def primaries(
    async_session: AsyncSession,
    active_cycle: ElectionCycle,
    states: dict[str, State],
) -> dict[str, date]:
    """Primary dates relative to ``today``: TX, NC, GA in the default window; OH outside it."""
    dates = {
        "TX": date(2026, 3, 3),
        "NC": date(2026, 3, 3),
        "GA": date(2026, 3, 20),
        "OH": date(2026, 5, 5),
    }
    for abbr, day in dates.items():
        async_session.add(
            CalendarEvent(
                cycle_id=active_cycle.id,
                state_id=states[abbr].id,
                event_type="primary",
                event_date=day,
                title=f"{states[abbr].name} primary",
            )
        )
    await async_session.commit()
    return dates


@pytest.fixture
async def automation_config(async_session: AsyncSession) -> AutomationConfig:
    """Enabled automation config with the default window and filters."""
    config = AutomationConfig(
        id=1,
        fec_sync_enabled=True,
        lookahead_days=60,
        lookback_days=30,
        min_funds_raised=5000,
        major_parties_only=True,
        active_only=True,
    )
    async_session.add(config)
    await async_session.commit()
    return config


@pytest.fixture
def make_filing(
    async_session: AsyncSession,
    active_cycle: ElectionCycle,
    states: dict[str, State],
) -> Callable[..., Awaitable[FecFiling]]:
    """Factory inserting a staged filing in the active cycle."""

    async def _make(
        abbr: str = "TX",
        *,
        fec_candidate_id: str | None = None,
        first_name: str = "Colin",
        last_name: str = "Allred",
        party: str = "Democrat",
        office: str = "S",
        district_number: int | None = None,
        is_incumbent: bool = False,
        funds_raised: float = 50000.0,
        is_active: bool = True,
        promoted_to_candidate_id: uuid.UUID | None = None,
    ) -> FecFiling:
        filing = FecFiling(
            cycle_id=active_cycle.id,
            fec_candidate_id=fec_candidate_id or f"{office}6{abbr}{uuid.uuid4().hex[:5].upper()}",
            state_id=states[abbr].id,
            name=f"{last_name.upper()}, {first_name.upper()}",
            first_name=first_name,
            last_name=last_name,
            party=party,
            office=office,
            district_number=district_number,
            is_incumbent=is_incumbent,
            incumbent_challenge="I" if is_incumbent else "C",
            fec_candidate_status="C",
            funds_raised=funds_raised,
            funds_spent=funds_raised / 4,
            cash_on_hand=funds_raised * 3 / 4,
            is_active=is_active,
            last_synced_at=datetime.now(UTC),
            promoted_to_candidate_id=promoted_to_candidate_id,
        )
        async_session.add(filing)
        await async_session.commit()
        return filing

    return _make


@pytest.fixture
def admin_token(settings: Settings) -> str:
    """Generate a JWT access token for an admin operator."""
    return create_access_token(
        subject="testadmin",
        role="admin",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def viewer_token(settings: Settings) -> str:
    """Generate a JWT access token for a read-only operator."""
    return create_access_token(
        subject="testviewer",
        role="viewer",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
