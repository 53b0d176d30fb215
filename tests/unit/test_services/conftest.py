"""Fixtures for service tests: an in-process OpenFEC fake."""

from collections.abc import AsyncGenerator

import httpx
import pytest

from elections_api.lib.openfec import OpenFecClient


def _page(rows: list[dict]) -> httpx.Response:
    return httpx.Response(200, json={"results": rows, "pagination": {"page": 1, "pages": 1, "count": len(rows)}})


class FakeOpenFec:
    """Serves ``/candidates/`` and ``/candidate/{id}/totals/`` from in-memory data.

    Candidates are keyed by (state, office). ``receipts`` of None means the
    candidate has no totals on file.
    """

    def __init__(self) -> None:
        self.candidates: dict[tuple[str, str], list[dict]] = {}
        self.receipts: dict[str, float | None] = {}
        self.failing_states: set[str] = set()
        self.failing_totals: set[str] = set()
        self.requests: list[httpx.Request] = []

    def add(
        self,
        state: str,
        candidate_id: str,
        name: str,
        *,
        office: str = "S",
        party: str = "DEM",
        party_full: str = "DEMOCRATIC PARTY",
        status: str = "C",
        incumbent_challenge: str = "C",
        district: str = "00",
        receipts: float | None = 50000.0,
    ) -> dict:
        row = {
            "candidate_id": candidate_id,
            "name": name,
            "party": party,
            "party_full": party_full,
            "state": state,
            "office": office,
            "district": district,
            "incumbent_challenge": incumbent_challenge,
            "candidate_status": status,
        }
        self.candidates.setdefault((state, office), []).append(row)
        self.receipts[candidate_id] = receipts
        return row

    def remove(self, state: str, candidate_id: str, office: str = "S") -> None:
        rows = self.candidates.get((state, office), [])
        self.candidates[(state, office)] = [r for r in rows if r["candidate_id"] != candidate_id]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        if path.endswith("/totals/"):
            candidate_id = path.rstrip("/").split("/")[-2]
            if candidate_id in self.failing_totals:
                return httpx.Response(500, text="totals unavailable")
            receipts = self.receipts.get(candidate_id)
            rows = []
            if receipts is not None:
                rows.append(
                    {
                        "candidate_id": candidate_id,
                        "cycle": int(params.get("cycle", "2026")),
                        "receipts": receipts,
                        "disbursements": receipts / 4,
                        "cash_on_hand_end_period": receipts * 3 / 4,
                    }
                )
            return _page(rows)

        if path.endswith("/candidates/"):
            state = params.get("state", "")
            if state in self.failing_states:
                return httpx.Response(500, text="upstream exploded")
            rows = self.candidates.get((state, params.get("office", "")), [])
            return _page(rows)

        return httpx.Response(404, text="not found")

    def search_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/candidates/")]


@pytest.fixture
def fake_fec() -> FakeOpenFec:
    return FakeOpenFec()


@pytest.fixture
async def fec_client(fake_fec: FakeOpenFec) -> AsyncGenerator[OpenFecClient]:
    """OpenFEC client wired to the in-process fake."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_fec.handler))
    async with OpenFecClient("test-key", http_client=http) as client:
        yield client
    await http.aclose()

