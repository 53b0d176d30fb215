"""Unit tests for the admin filing views."""

import uuid
from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from elections_api.models.geography import ElectionCycle, State
from elections_api.models.race import District, Race
from elections_api.services.filing_service import (
    delete_filing,
    delete_filings,
    get_filing,
    list_filings,
    list_filings_by_state,
)


class TestListFilings:
    """Tests for list_filings()."""

    @pytest.mark.asyncio
    async def test_filters_and_ordering(self, async_session: AsyncSession, make_filing) -> None:
        await make_filing("TX", first_name="Colin", last_name="Allred", funds_raised=90000.0)
        await make_filing("TX", first_name="Ted", last_name="Cruz", funds_raised=150000.0)
        await make_filing("GA", first_name="Jon", last_name="Ossoff", funds_raised=300000.0)
        await make_filing("TX", office="H", district_number=7, first_name="Lizzie", last_name="Fletcher")
        await make_filing("TX", first_name="Gone", last_name="Away", is_active=False)

        rows, total = await list_filings(async_session, state="tx", office="S", active=True)

        assert total == 2
        assert [r.last_name for r in rows] == ["Cruz", "Allred"]
        assert rows[0].state.abbr == "TX"

    @pytest.mark.asyncio
    async def test_promoted_filter_and_pagination(self, async_session: AsyncSession, make_filing) -> None:
        await make_filing("TX", funds_raised=10000.0)
        await make_filing("GA", funds_raised=20000.0, promoted_to_candidate_id=None)
        await make_filing("NC", funds_raised=30000.0)

        rows, total = await list_filings(async_session, promoted=False, page=2, page_size=2)

        assert total == 3
        assert len(rows) == 1
        assert rows[0].funds_raised == 10000.0

        rows, total = await list_filings(async_session, promoted=True)
        assert (rows, total) == ([], 0)

    @pytest.mark.asyncio
    async def test_empty_without_active_cycle(self, async_session: AsyncSession) -> None:
        async_session.add(ElectionCycle(name="2024", year=2024, is_active=False))
        await async_session.commit()

        assert await list_filings(async_session) == ([], 0)


class TestListFilingsByState:
    """Tests for list_filings_by_state()."""

    @pytest.mark.asyncio
    async def test_groups_by_state_in_primary_order(
        self,
        async_session: AsyncSession,
        make_filing,
        primaries: dict[str, date],
        today: date,
    ) -> None:
        await make_filing("GA", first_name="Jon", last_name="Ossoff", funds_raised=300000.0)
        await make_filing("TX", first_name="Colin", last_name="Allred", funds_raised=90000.0)
        await make_filing("TX", first_name="Ted", last_name="Cruz", funds_raised=150000.0)
        await make_filing("OH", first_name="Sherrod", last_name="Brown", funds_raised=80000.0)

        groups = await list_filings_by_state(async_session, today)

        assert [g.state_abbr for g in groups] == ["TX", "GA", "OH"]
        texas = groups[0]
        assert texas.primary_date == date(2026, 3, 3)
        assert texas.days_until_primary == 30
        assert [f.last_name for f in texas.filings] == ["Cruz", "Allred"]
        assert groups[1].days_until_primary == 47

    @pytest.mark.asyncio
    async def test_excludes_unpromotable(
        self,
        async_session: AsyncSession,
        make_filing,
        primaries: dict[str, date],
        today: date,
    ) -> None:
        keep = await make_filing("TX", funds_raised=5000.0)
        await make_filing("TX", first_name="Low", last_name="Funds", funds_raised=4999.99)
        await make_filing("TX", first_name="Not", last_name="Active", is_active=False)
        await make_filing("TX", first_name="Al", last_name="Ready", promoted_to_candidate_id=uuid.uuid4())
        await make_filing("TX", first_name="House", last_name="Member", office="H", district_number=2)

        groups = await list_filings_by_state(async_session, today, office="S")

        assert len(groups) == 1
        assert [f.id for f in groups[0].filings] == [keep.id]

    @pytest.mark.asyncio
    async def test_house_filings_carry_race_rating(
        self,
        async_session: AsyncSession,
        active_cycle: ElectionCycle,
        states: dict[str, State],
        make_filing,
        today: date,
    ) -> None:
        past_cycle = ElectionCycle(name="2024 General", year=2024, election_date=date(2024, 11, 5), is_active=False)
        tx_7 = District(state_id=states["TX"].id, body="house", district_number=7)
        tx_2 = District(state_id=states["TX"].id, body="house", district_number=2)
        async_session.add_all([past_cycle, tx_7, tx_2])
        await async_session.flush()
        async_session.add_all(
            [
                Race(district_id=tx_7.id, cycle_id=active_cycle.id, rating="Toss-up"),
                Race(district_id=tx_2.id, cycle_id=past_cycle.id, rating="Safe R"),
            ]
        )
        await async_session.commit()
        await make_filing("TX", office="H", district_number=7, first_name="Lizzie", last_name="Fletcher")
        await make_filing("TX", office="H", district_number=2, first_name="Dan", last_name="Crenshaw")
        await make_filing("TX", first_name="Colin", last_name="Allred")

        [group] = await list_filings_by_state(async_session, today)

        ratings = {f.last_name: f.rating for f in group.filings}
        assert ratings == {"Fletcher": "Toss-up", "Crenshaw": None, "Allred": None}

    @pytest.mark.asyncio
    async def test_state_without_primary_sorts_last(
        self,
        async_session: AsyncSession,
        make_filing,
        today: date,
    ) -> None:
        await make_filing("NC", funds_raised=10000.0)

        [group] = await list_filings_by_state(async_session, today, min_funds=0)

        assert group.primary_date is None
        assert group.days_until_primary is None


class TestDeleteFilings:
    """Tests for get_filing(), delete_filing() and delete_filings()."""

    @pytest.mark.asyncio
    async def test_get_and_delete(self, async_session: AsyncSession, make_filing) -> None:
        filing = await make_filing("TX")
        filing_id = filing.id

        found = await get_filing(async_session, filing_id)
        assert found is not None
        assert found.state.abbr == "TX"

        assert await delete_filing(async_session, filing_id) is True
        assert await delete_filing(async_session, filing_id) is False

    @pytest.mark.asyncio
    async def test_bulk_delete_counts_rows(self, async_session: AsyncSession, make_filing) -> None:
        a = await make_filing("TX")
        b = await make_filing("GA")

        assert await delete_filings(async_session, [a.id, b.id, uuid.uuid4()]) == 2
        assert await delete_filings(async_session, []) == 0
