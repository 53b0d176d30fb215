"""Unit tests for filing and promotion schemas."""

import uuid

import pytest
from pydantic import ValidationError

from elections_api.schemas.filing import BulkPromoteRequest, PromoteFilingRequest


class TestPromoteFilingRequest:
    """Tests for PromoteFilingRequest validation."""

    def test_defaults(self) -> None:
        request = PromoteFilingRequest()
        assert request.race_status == "announced"
        assert request.photo_url is None
        assert request.bioguide_id is None

    @pytest.mark.parametrize("status", ["announced", "primary_winner", "runoff", "withdrawn", "won", "lost"])
    def test_accepts_race_statuses(self, status: str) -> None:
        assert PromoteFilingRequest(race_status=status).race_status == status

    def test_rejects_unknown_status(self) -> None:
        with pytest.raises(ValidationError):
            PromoteFilingRequest(race_status="frontrunner")

    def test_twitter_handle_length(self) -> None:
        with pytest.raises(ValidationError):
            PromoteFilingRequest(twitter_handle="x" * 101)


class TestBulkPromoteRequest:
    """Tests for BulkPromoteRequest validation."""

    def test_requires_at_least_one_id(self) -> None:
        with pytest.raises(ValidationError):
            BulkPromoteRequest(filing_ids=[])

    def test_caps_batch_size(self) -> None:
        with pytest.raises(ValidationError):
            BulkPromoteRequest(filing_ids=[uuid.uuid4() for _ in range(201)])

    def test_parses_string_ids(self) -> None:
        value = "00000000-0000-0000-0000-000000000001"
        request = BulkPromoteRequest(filing_ids=[value], race_status="runoff")
        assert request.filing_ids == [uuid.UUID(value)]
