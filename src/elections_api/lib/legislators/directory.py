"""Current members of Congress from the unitedstates/congress-legislators dataset.

Used to enrich incumbent filings at promotion time with a bioguide id,
official photo, website, and social handles.

Dataset notes:
    * ``terms`` is chronological; the last element is the current term.
    * ``id.fec`` is a list (House and Senate campaigns get separate ids).
    * Social media is a separate file and may be unavailable.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
from loguru import logger

DEFAULT_LEGISLATORS_URL = "https://unitedstates.github.io/congress-legislators/legislators-current.json"
DEFAULT_SOCIAL_URL = "https://unitedstates.github.io/congress-legislators/legislators-social-media.json"
DEFAULT_PHOTO_BASE_URL = "https://unitedstates.github.io/images/congress/450x550"


class LegislatorDirectoryError(Exception):
    """Raised when the legislators dataset cannot be fetched or parsed."""


@dataclass(frozen=True)
class Legislator:
    """One current member of Congress, flattened from their latest term."""

    bioguide_id: str
    first_name: str
    last_name: str
    full_name: str
    party: str
    state: str
    chamber: str
    district: int | None = None
    senate_class: int | None = None
    phone: str | None = None
    office: str | None = None
    website: str | None = None
    contact_form_url: str | None = None
    photo_url: str | None = None
    twitter: str | None = None
    fec_ids: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EnrichmentData:
    """Fields a promoted candidate row can take from the directory."""

    bioguide_id: str
    photo_url: str | None = None
    website: str | None = None
    twitter: str | None = None
    phone: str | None = None
    office: str | None = None
    contact_form_url: str | None = None

    @classmethod
    def from_legislator(cls, member: Legislator) -> EnrichmentData:
        return cls(
            bioguide_id=member.bioguide_id,
            photo_url=member.photo_url,
            website=member.website,
            twitter=member.twitter,
            phone=member.phone,
            office=member.office,
            contact_form_url=member.contact_form_url,
        )


def _normalize_party(raw: str | None) -> str:
    if raw in ("Democrat", "Republican"):
        return raw
    return "Independent"


def parse_legislators(
    raw_legislators: list[dict[str, Any]],
    raw_social: list[dict[str, Any]] | None = None,
    *,
    photo_base_url: str = DEFAULT_PHOTO_BASE_URL,
) -> list[Legislator]:
    """Flatten raw congress-legislators JSON into Legislator records.

    Args:
        raw_legislators: Parsed ``legislators-current.json``.
        raw_social: Parsed ``legislators-social-media.json``, if available.
        photo_base_url: Base URL for ``{bioguide}.jpg`` portraits.

    Returns:
        One record per legislator with at least one term.
    """
    social_by_bioguide: dict[str, dict[str, Any]] = {}
    for entry in raw_social or []:
        bioguide = (entry.get("id") or {}).get("bioguide")
        if bioguide:
            social_by_bioguide[bioguide] = entry.get("social") or {}

    members: list[Legislator] = []
    for leg in raw_legislators:
        terms = leg.get("terms") or []
        ids = leg.get("id") or {}
        bioguide_id = ids.get("bioguide")
        if not terms or not bioguide_id:
            continue
        term = terms[-1]
        name = leg.get("name") or {}
        first = name.get("first", "")
        last = name.get("last", "")
        is_senator = term.get("type") == "sen"
        social = social_by_bioguide.get(bioguide_id, {})

        members.append(
            Legislator(
                bioguide_id=bioguide_id,
                first_name=first,
                last_name=last,
                full_name=name.get("official_full") or f"{first} {last}",
                party=_normalize_party(term.get("party")),
                state=term.get("state", ""),
                chamber="senate" if is_senator else "house",
                district=None if is_senator else term.get("district"),
                senate_class=term.get("class") if is_senator else None,
                phone=term.get("phone"),
                office=term.get("office"),
                website=term.get("url"),
                contact_form_url=term.get("contact_form"),
                photo_url=f"{photo_base_url.rstrip('/')}/{bioguide_id}.jpg",
                twitter=social.get("twitter"),
                fec_ids=tuple(ids.get("fec") or ()),
            )
        )
    return members


class LegislatorDirectory:
    """In-memory index of current legislators with a time-based refresh.

    The dataset is loaded lazily on first lookup and reloaded once
    ``refresh_interval`` has elapsed. A directory built with
    :meth:`from_records` is static and never fetches.

    Args:
        http_client: Client used to download the dataset.
        legislators_url: URL of ``legislators-current.json``.
        social_url: URL of ``legislators-social-media.json``; None to skip.
        photo_base_url: Base URL for portrait images.
        refresh_interval: Maximum age of the loaded dataset.
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None,
        *,
        legislators_url: str = DEFAULT_LEGISLATORS_URL,
        social_url: str | None = DEFAULT_SOCIAL_URL,
        photo_base_url: str = DEFAULT_PHOTO_BASE_URL,
        refresh_interval: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._http = http_client
        self._legislators_url = legislators_url
        self._social_url = social_url
        self._photo_base_url = photo_base_url
        self._refresh_interval = refresh_interval
        self._clock = clock or (lambda: datetime.now(UTC))
        self._members: list[Legislator] = []
        self._loaded_at: datetime | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_records(cls, members: Iterable[Legislator]) -> LegislatorDirectory:
        """Build a static directory over already-parsed records."""
        directory = cls(None)
        directory._members = list(members)
        directory._loaded_at = datetime.max.replace(tzinfo=UTC)
        return directory

    @property
    def loaded_at(self) -> datetime | None:
        return self._loaded_at

    def _is_stale(self) -> bool:
        if self._loaded_at is None:
            return True
        if self._http is None:
            return False
        return self._clock() - self._loaded_at >= self._refresh_interval

    async def refresh(self) -> None:
        """Download and re-index the dataset unconditionally.

        Raises:
            LegislatorDirectoryError: If the main legislators file cannot be
                fetched or decoded. Social media failures are logged and
                ignored.
        """
        if self._http is None:
            msg = "Legislator directory has no HTTP client configured"
            raise LegislatorDirectoryError(msg)

        raw_legislators = await self._fetch_json(self._legislators_url)
        raw_social: list[dict[str, Any]] | None = None
        if self._social_url:
            try:
                raw_social = await self._fetch_json(self._social_url)
            except LegislatorDirectoryError as exc:
                logger.warning("Legislator social media unavailable, continuing without it: {}", exc)

        self._members = parse_legislators(raw_legislators, raw_social, photo_base_url=self._photo_base_url)
        self._loaded_at = self._clock()
        logger.info("Loaded {} current legislators", len(self._members))

    async def _ensure_loaded(self) -> list[Legislator]:
        if self._is_stale():
            async with self._lock:
                if self._is_stale():
                    await self.refresh()
        return self._members

    async def _fetch_json(self, url: str) -> list[dict[str, Any]]:
        assert self._http is not None
        try:
            response = await self._http.get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            msg = f"Failed to fetch {url}: HTTP {exc.response.status_code}"
            raise LegislatorDirectoryError(msg) from exc
        except httpx.RequestError as exc:
            msg = f"Failed to fetch {url}: {exc}"
            raise LegislatorDirectoryError(msg) from exc
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON from {url}"
            raise LegislatorDirectoryError(msg) from exc
        if not isinstance(data, list):
            msg = f"Unexpected payload from {url}: expected a list"
            raise LegislatorDirectoryError(msg)
        return data

    async def all_members(self) -> list[Legislator]:
        return list(await self._ensure_loaded())

    async def find_by_fec_id(self, fec_id: str) -> Legislator | None:
        """Find the member whose FEC id list contains ``fec_id``."""
        for member in await self._ensure_loaded():
            if fec_id in member.fec_ids:
                return member
        return None

    async def find_by_name(self, first_name: str, last_name: str, state: str) -> Legislator | None:
        """Case-insensitive match on first name, last name, and state."""
        first = first_name.lower()
        last = last_name.lower()
        state_upper = state.upper()
        for member in await self._ensure_loaded():
            if (
                member.state == state_upper
                and member.last_name.lower() == last
                and member.first_name.lower() == first
            ):
                return member
        return None

    async def get_enrichment(
        self,
        fec_candidate_id: str,
        first_name: str,
        last_name: str,
        state: str,
    ) -> EnrichmentData | None:
        """Look up enrichment for a filing: FEC id first, then name + state.

        Returns:
            EnrichmentData, or None when no current member matches.
        """
        member = await self.find_by_fec_id(fec_candidate_id)
        if member is None:
            member = await self.find_by_name(first_name, last_name, state)
        if member is None:
            return None
        return EnrichmentData.from_legislator(member)
