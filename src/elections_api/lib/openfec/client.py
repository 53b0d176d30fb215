"""Async client for the OpenFEC v1 API.

Only the candidate search, candidate detail, and candidate totals
endpoints are wrapped. The API enforces 1,000 requests/hour per key, so
every HTTP request is counted in ``requests_made``.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from elections_api.lib.openfec.types import (
    ConnectionTestResult,
    FecCandidate,
    FecCandidateTotals,
    FecPagination,
)

DEFAULT_BASE_URL = "https://api.open.fec.gov/v1"
DEFAULT_PER_PAGE = 100
_ERROR_BODY_LIMIT = 200


class OpenFecError(Exception):
    """Raised when an OpenFEC request fails.

    Args:
        message: Human-readable error description.
        status_code: HTTP status code when the API answered with non-2xx.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class OpenFecClient:
    """Fetches candidate and financial data from OpenFEC.

    Args:
        api_key: data.gov API key sent as the ``api_key`` query parameter.
        base_url: API root, without trailing slash.
        per_page: Page size used when following pagination (max 100).
        timeout: Per-request timeout in seconds.
        http_client: Optional preconfigured client (tests inject one backed
            by ``httpx.MockTransport``). The caller owns its lifecycle.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        per_page: int = DEFAULT_PER_PAGE,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            msg = "OpenFEC API key must not be empty"
            raise ValueError(msg)
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._per_page = per_page
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._request_count = 0

    @property
    def requests_made(self) -> int:
        """Number of HTTP requests issued by this client."""
        return self._request_count

    async def search_candidates(
        self,
        cycle: int,
        office: str,
        state: str | None = None,
        *,
        is_active_candidate: bool | None = None,
        has_raised_funds: bool | None = None,
    ) -> list[FecCandidate]:
        """Fetch every candidate matching the filters, following pagination.

        Args:
            cycle: Two-year election cycle (e.g. 2026).
            office: ``"S"`` or ``"H"``.
            state: Optional two-letter state code.
            is_active_candidate: Pass-through OpenFEC filter.
            has_raised_funds: Pass-through OpenFEC filter.

        Returns:
            All candidates across all pages, in API order.

        Raises:
            OpenFecError: If any page request fails.
        """
        params: dict[str, Any] = {
            "cycle": cycle,
            "office": office,
            "per_page": self._per_page,
            "sort": "name",
        }
        if state:
            params["state"] = state
        if is_active_candidate is not None:
            params["is_active_candidate"] = _bool_param(is_active_candidate)
        if has_raised_funds is not None:
            params["has_raised_funds"] = _bool_param(has_raised_funds)

        candidates: list[FecCandidate] = []
        page = 1
        while True:
            data = await self._request("/candidates/", {**params, "page": page})
            candidates.extend(_parse_results(data, FecCandidate))
            pagination = _parse_pagination(data)
            if page >= pagination.pages:
                break
            page += 1

        logger.debug(
            "OpenFEC search office={} state={} cycle={}: {} candidates over {} page(s)",
            office,
            state,
            cycle,
            len(candidates),
            page,
        )
        return candidates

    async def get_candidate(self, candidate_id: str) -> FecCandidate | None:
        """Fetch one candidate's detail record, or None if FEC has none."""
        data = await self._request(f"/candidate/{candidate_id}/")
        results = _parse_results(data, FecCandidate)
        return results[0] if results else None

    async def get_candidate_totals(self, candidate_id: str, cycle: int) -> FecCandidateTotals | None:
        """Fetch financial totals for a candidate in a cycle.

        Args:
            candidate_id: FEC candidate id (e.g. ``S8CA00502``).
            cycle: Two-year election cycle.

        Returns:
            The first totals row, or None when no financial data exists yet.

        Raises:
            OpenFecError: If the request fails.
        """
        data = await self._request(f"/candidate/{candidate_id}/totals/", {"cycle": cycle})
        results = _parse_results(data, FecCandidateTotals)
        return results[0] if results else None

    async def test_connection(self, cycle: int) -> ConnectionTestResult:
        """Issue a single cheap request to validate the API key.

        Never raises for API failures; the error is returned instead.
        """
        try:
            data = await self._request("/candidates/", {"cycle": cycle, "office": "S", "per_page": 1})
        except OpenFecError as exc:
            return ConnectionTestResult(ok=False, count=0, error=exc.message)
        return ConnectionTestResult(ok=True, count=_parse_pagination(data).count)

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> OpenFecClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _request(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET an OpenFEC endpoint and return the decoded JSON object."""
        query = {**(params or {}), "api_key": self._api_key}
        self._request_count += 1
        try:
            response = await self._client.get(f"{self._base_url}{path}", params=query)
        except httpx.RequestError as exc:
            logger.error("OpenFEC request to {} failed: {}", path, exc)
            msg = f"FEC API request failed: {exc}"
            raise OpenFecError(msg) from exc

        if not response.is_success:
            body = response.text[:_ERROR_BODY_LIMIT]
            logger.error("OpenFEC API error {} for {}", response.status_code, path)
            msg = f"FEC API {response.status_code}: {body}"
            raise OpenFecError(msg, status_code=response.status_code)

        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            logger.error("OpenFEC returned non-JSON response for {}", path)
            msg = f"FEC API returned invalid JSON for {path}"
            raise OpenFecError(msg, status_code=response.status_code) from exc

        if not isinstance(data, dict):
            msg = f"FEC API returned unexpected payload for {path}"
            raise OpenFecError(msg, status_code=response.status_code)
        return data


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


def _parse_results(data: dict[str, Any], model: type[Any]) -> list[Any]:
    try:
        return [model.model_validate(row) for row in data.get("results") or []]
    except ValidationError as exc:
        msg = f"FEC API returned malformed {model.__name__} data: {exc.error_count()} error(s)"
        raise OpenFecError(msg) from exc


def _parse_pagination(data: dict[str, Any]) -> FecPagination:
    try:
        return FecPagination.model_validate(data.get("pagination") or {})
    except ValidationError as exc:
        msg = "FEC API returned malformed pagination"
        raise OpenFecError(msg) from exc
