"""Filing service — admin views over staged FEC filings."""

import uuid
from collections.abc import Sequence
from datetime import date

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from elections_api.models.fec_filing import FecFiling
from elections_api.models.geography import CalendarEvent, State
from elections_api.models.race import District, Race
from elections_api.schemas.filing import FecFilingResponse, StateFilingGroup
from elections_api.services.sync_window_service import get_active_cycle

DEFAULT_MIN_FUNDS = 5000.0


async def get_filing(session: AsyncSession, filing_id: uuid.UUID) -> FecFiling | None:
    """Fetch one filing with its state loaded."""
    result = await session.execute(
        select(FecFiling).options(selectinload(FecFiling.state)).where(FecFiling.id == filing_id)
    )
    return result.scalar_one_or_none()


async def list_filings(
    session: AsyncSession,
    *,
    state: str | None = None,
    office: str | None = None,
    active: bool | None = None,
    promoted: bool | None = None,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list[FecFiling], int]:
    """List filings in the active cycle with optional filters.

    Args:
        session: Async database session.
        state: Two-letter state abbreviation.
        office: ``S`` or ``H``.
        active: Filter on ``is_active``.
        promoted: True for promoted filings only, False for unpromoted.
        page: Page number (1-based).
        page_size: Items per page.

    Returns:
        Tuple of (filings ordered by funds raised desc, total count).
    """
    cycle = await get_active_cycle(session)
    if cycle is None:
        return [], 0

    filters = [FecFiling.cycle_id == cycle.id]
    if state:
        filters.append(FecFiling.state_id.in_(select(State.id).where(State.abbr == state.upper())))
    if office:
        filters.append(FecFiling.office == office)
    if active is not None:
        filters.append(FecFiling.is_active.is_(active))
    if promoted is True:
        filters.append(FecFiling.promoted_to_candidate_id.is_not(None))
    elif promoted is False:
        filters.append(FecFiling.promoted_to_candidate_id.is_(None))

    total = (await session.execute(select(func.count(FecFiling.id)).where(*filters))).scalar_one()
    result = await session.execute(
        select(FecFiling)
        .options(selectinload(FecFiling.state))
        .where(*filters)
        .order_by(FecFiling.funds_raised.desc(), FecFiling.last_name, FecFiling.first_name)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def list_filings_by_state(
    session: AsyncSession,
    today: date,
    *,
    office: str | None = None,
    min_funds: float = DEFAULT_MIN_FUNDS,
) -> list[StateFilingGroup]:
    """Group promotable filings by state with a primary countdown.

    Promotable means active, unpromoted, and at or above ``min_funds``.
    House filings carry the rating of their district's race in the active
    cycle, when one is set.
    Groups are ordered by primary date (states without one last), then
    state name; filings within a group by funds raised, highest first.
    """
    cycle = await get_active_cycle(session)
    if cycle is None:
        return []

    query = (
        select(FecFiling)
        .options(selectinload(FecFiling.state))
        .where(
            FecFiling.cycle_id == cycle.id,
            FecFiling.is_active.is_(True),
            FecFiling.promoted_to_candidate_id.is_(None),
            FecFiling.funds_raised >= min_funds,
        )
        .order_by(FecFiling.funds_raised.desc())
    )
    if office:
        query = query.where(FecFiling.office == office)
    filings = (await session.execute(query)).scalars().all()
    if not filings:
        return []

    primaries_result = await session.execute(
        select(CalendarEvent.state_id, func.min(CalendarEvent.event_date))
        .where(CalendarEvent.cycle_id == cycle.id, CalendarEvent.event_type == "primary")
        .group_by(CalendarEvent.state_id)
    )
    primaries: dict[uuid.UUID, date] = dict(primaries_result.tuples().all())
    ratings = await _house_race_ratings(session, cycle.id)

    groups: dict[uuid.UUID, StateFilingGroup] = {}
    for filing in filings:
        group = groups.get(filing.state_id)
        if group is None:
            primary = primaries.get(filing.state_id)
            group = StateFilingGroup(
                state_id=filing.state_id,
                state_abbr=filing.state.abbr,
                state_name=filing.state.name,
                primary_date=primary,
                days_until_primary=_days_until(primary, today),
                filings=[],
            )
            groups[filing.state_id] = group
        response = FecFilingResponse.model_validate(filing)
        if filing.office == "H" and filing.district_number:
            response.rating = ratings.get((filing.state_id, filing.district_number))
        group.filings.append(response)

    return sorted(
        groups.values(),
        key=lambda g: (g.primary_date is None, g.primary_date or date.max, g.state_name),
    )


async def _house_race_ratings(session: AsyncSession, cycle_id: uuid.UUID) -> dict[tuple[uuid.UUID, int], str]:
    """Map (state_id, district number) to the race rating for House races in a cycle."""
    result = await session.execute(
        select(District.state_id, District.district_number, Race.rating)
        .join(Race, Race.district_id == District.id)
        .where(
            Race.cycle_id == cycle_id,
            District.body == "house",
            District.district_number.is_not(None),
            Race.rating.is_not(None),
        )
    )
    return {(state_id, number): rating for state_id, number, rating in result.tuples().all()}


def _days_until(primary: date | None, today: date) -> int | None:
    if primary is None:
        return None
    return (primary - today).days


async def delete_filing(session: AsyncSession, filing_id: uuid.UUID) -> bool:
    """Hard-delete one filing. Returns False if it did not exist."""
    return await delete_filings(session, [filing_id]) == 1


async def delete_filings(session: AsyncSession, filing_ids: Sequence[uuid.UUID]) -> int:
    """Hard-delete filings by id (administrator action).

    Returns:
        Number of rows deleted.
    """
    if not filing_ids:
        return 0
    result = await session.execute(
        delete(FecFiling).where(FecFiling.id.in_(list(filing_ids))).execution_options(synchronize_session=False)
    )
    await session.commit()
    if result.rowcount:
        logger.info("Deleted {} staged filing(s)", result.rowcount)
    return result.rowcount
