"""Promotion service — turns a staged FEC filing into a public candidate.

A promotion creates the candidate, finds or creates its district and the
race for the active cycle, links them with a race-candidate row, and marks
the filing consumed. All of it happens in one transaction.
"""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from elections_api.lib.legislators import EnrichmentData, LegislatorDirectory, LegislatorDirectoryError
from elections_api.lib.openfec import slugify_name
from elections_api.models.fec_filing import FecFiling
from elections_api.models.race import Candidate, District, Race, RaceCandidate
from elections_api.schemas.filing import PromoteFilingRequest
from elections_api.services.sync_window_service import get_active_cycle

ROLE_TITLES = {"S": "U.S. Senator", "H": "U.S. Representative"}


class FilingNotFoundError(ValueError):
    """Raised when a filing id does not exist."""


class FilingAlreadyPromotedError(ValueError):
    """Raised when a filing has already been promoted."""


@dataclass(frozen=True)
class PromotionResult:
    """Ids of the records a promotion created or reused."""

    filing_id: uuid.UUID
    candidate_id: uuid.UUID
    slug: str
    district_id: uuid.UUID
    race_id: uuid.UUID
    race_candidate_id: uuid.UUID
    district_created: bool
    race_created: bool
    enriched_from: str | None = None


@dataclass
class BulkPromotionResult:
    """Outcome of :func:`bulk_promote`."""

    promoted: list[PromotionResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def default_role_title(office: str) -> str:
    return ROLE_TITLES.get(office, ROLE_TITLES["H"])


async def _load_filing(session: AsyncSession, filing_id: uuid.UUID) -> FecFiling:
    result = await session.execute(
        select(FecFiling)
        .options(selectinload(FecFiling.state))
        .where(FecFiling.id == filing_id)
        .execution_options(populate_existing=True)
    )
    filing = result.scalar_one_or_none()
    if filing is None:
        msg = f"Filing {filing_id} not found"
        raise FilingNotFoundError(msg)
    return filing


async def _auto_enrich(directory: LegislatorDirectory, filing: FecFiling) -> EnrichmentData | None:
    try:
        return await directory.get_enrichment(
            filing.fec_candidate_id,
            filing.first_name,
            filing.last_name,
            filing.state.abbr,
        )
    except LegislatorDirectoryError as exc:
        logger.warning("Auto-enrichment failed for {} (continuing without it): {}", filing.fec_candidate_id, exc)
        return None


async def resolve_candidate_slug(session: AsyncSession, first_name: str, last_name: str, state_abbr: str) -> str:
    """Compute a candidate slug, appending the state on the first collision.

    A second collision is not resolved here; the unique constraint on
    ``candidates.slug`` rejects it.
    """
    slug = slugify_name(first_name, last_name)
    taken = await session.execute(select(Candidate.id).where(Candidate.slug == slug).limit(1))
    if taken.scalar_one_or_none() is not None:
        slug = f"{slug}-{state_abbr.lower()}"
    return slug


async def get_or_create_district(
    session: AsyncSession,
    state_id: uuid.UUID,
    office: str,
    district_number: int | None,
) -> tuple[District, bool]:
    """Find the district for a seat, creating it if absent.

    Senate seats are keyed by (state, ``senate``); House seats by
    (state, ``house``, district number).

    Returns:
        Tuple of (district, created).
    """
    body = "senate" if office == "S" else "house"
    query = select(District).where(District.state_id == state_id, District.body == body)
    if body == "house":
        if district_number is None:
            query = query.where(District.district_number.is_(None))
        else:
            query = query.where(District.district_number == district_number)
    result = await session.execute(query.limit(1))
    district = result.scalar_one_or_none()
    if district is not None:
        return district, False

    district = District(
        state_id=state_id,
        body=body,
        district_number=district_number if body == "house" else None,
    )
    session.add(district)
    await session.flush()
    return district, True


async def get_or_create_race(session: AsyncSession, district_id: uuid.UUID, cycle_id: uuid.UUID) -> tuple[Race, bool]:
    """Find the race for (district, cycle), creating an unrated one if absent.

    Returns:
        Tuple of (race, created).
    """
    result = await session.execute(select(Race).where(Race.district_id == district_id, Race.cycle_id == cycle_id))
    race = result.scalar_one_or_none()
    if race is not None:
        return race, False

    race = Race(district_id=district_id, cycle_id=cycle_id, rating=None)
    session.add(race)
    await session.flush()
    return race, True


async def promote_filing(
    session: AsyncSession,
    filing_id: uuid.UUID,
    enrichment: PromoteFilingRequest | None = None,
    directory: LegislatorDirectory | None = None,
) -> PromotionResult:
    """Promote one staged filing into a candidate linked to its race.

    Incumbent filings are enriched from ``directory`` when one is given;
    operator-supplied fields take precedence over directory values.

    Args:
        session: Async database session.
        filing_id: Filing to promote.
        enrichment: Operator-supplied candidate fields and race status.
        directory: Optional legislator directory for incumbents.

    Returns:
        The created/reused record ids.

    Raises:
        FilingNotFoundError: If the filing does not exist.
        FilingAlreadyPromotedError: If the filing was already promoted,
            including by a concurrent promotion.
    """
    request = enrichment or PromoteFilingRequest()
    filing = await _load_filing(session, filing_id)
    if filing.promoted_to_candidate_id is not None:
        msg = f"{filing.first_name} {filing.last_name} already promoted"
        raise FilingAlreadyPromotedError(msg)

    auto: EnrichmentData | None = None
    if directory is not None and filing.is_incumbent:
        auto = await _auto_enrich(directory, filing)

    try:
        slug = await resolve_candidate_slug(session, filing.first_name, filing.last_name, filing.state.abbr)
        candidate = Candidate(
            slug=slug,
            first_name=filing.first_name,
            last_name=filing.last_name,
            party=filing.party,
            state_id=filing.state_id,
            role_title=request.role_title or default_role_title(filing.office),
            photo_url=request.photo_url or (auto.photo_url if auto else None),
            website=request.website or (auto.website if auto else None),
            twitter_handle=request.twitter_handle or (auto.twitter if auto else None),
            bio=request.bio or None,
            is_incumbent=filing.is_incumbent,
            fec_candidate_id=filing.fec_candidate_id,
            bioguide_id=request.bioguide_id or (auto.bioguide_id if auto else None),
            funds_raised=filing.funds_raised,
            funds_spent=filing.funds_spent,
            cash_on_hand=filing.cash_on_hand,
            fec_financials_updated_at=filing.last_synced_at,
        )
        session.add(candidate)
        await session.flush()

        district, district_created = await get_or_create_district(
            session, filing.state_id, filing.office, filing.district_number
        )
        active_cycle = await get_active_cycle(session)
        cycle_id = active_cycle.id if active_cycle is not None else filing.cycle_id
        race, race_created = await get_or_create_race(session, district.id, cycle_id)

        link = RaceCandidate(
            race_id=race.id,
            candidate_id=candidate.id,
            status=request.race_status,
            is_incumbent=filing.is_incumbent,
        )
        session.add(link)
        await session.flush()

        claimed = await session.execute(
            update(FecFiling)
            .where(FecFiling.id == filing.id, FecFiling.promoted_to_candidate_id.is_(None))
            .values(promoted_to_candidate_id=candidate.id)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            msg = f"{filing.first_name} {filing.last_name} already promoted"
            raise FilingAlreadyPromotedError(msg)

        result = PromotionResult(
            filing_id=filing.id,
            candidate_id=candidate.id,
            slug=slug,
            district_id=district.id,
            race_id=race.id,
            race_candidate_id=link.id,
            district_created=district_created,
            race_created=race_created,
            enriched_from=auto.bioguide_id if auto else None,
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Promoted filing {} to candidate {} ({}) in race {}",
        result.filing_id,
        result.candidate_id,
        result.slug,
        result.race_id,
    )
    return result


async def bulk_promote(
    session: AsyncSession,
    filing_ids: Sequence[uuid.UUID],
    directory: LegislatorDirectory | None = None,
    *,
    race_status: str = "announced",
) -> BulkPromotionResult:
    """Promote several filings sequentially with default fields.

    Already-promoted filings are skipped with a warning; any other failure
    is collected and the remaining filings are still processed.
    """
    outcome = BulkPromotionResult()
    request = PromoteFilingRequest(race_status=race_status)

    for filing_id in filing_ids:
        try:
            filing = await _load_filing(session, filing_id)
        except FilingNotFoundError as exc:
            outcome.errors.append(str(exc))
            continue

        label = f"{filing.first_name} {filing.last_name}"
        if filing.promoted_to_candidate_id is not None:
            outcome.warnings.append(f"{label} already promoted")
            continue

        try:
            outcome.promoted.append(await promote_filing(session, filing_id, request, directory))
        except FilingAlreadyPromotedError:
            outcome.warnings.append(f"{label} already promoted")
        except Exception as exc:
            logger.exception("Bulk promotion failed for filing {}", filing_id)
            outcome.errors.append(f"{label}: {exc}")

    logger.info(
        "Bulk promotion: {} promoted, {} skipped, {} failed",
        len(outcome.promoted),
        len(outcome.warnings),
        len(outcome.errors),
    )
    return outcome
