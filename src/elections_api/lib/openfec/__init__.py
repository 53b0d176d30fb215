"""OpenFEC library — candidate and finance data from the FEC API.

Public API:
    - OpenFecClient: Async paginated API client with a request counter
    - OpenFecError: Transport / HTTP / payload error
    - FecCandidate, FecCandidateTotals, ConnectionTestResult: Response types
    - parse_fec_name, title_case, map_fec_party, is_major_party, slugify_name:
      Name and party normalization helpers
"""

from elections_api.lib.openfec.client import DEFAULT_BASE_URL, OpenFecClient, OpenFecError
from elections_api.lib.openfec.normalize import (
    MAJOR_PARTIES,
    ParsedName,
    is_major_party,
    map_fec_party,
    parse_fec_name,
    slugify_name,
    title_case,
)
from elections_api.lib.openfec.types import ConnectionTestResult, FecCandidate, FecCandidateTotals

__all__ = [
    "DEFAULT_BASE_URL",
    "MAJOR_PARTIES",
    "ConnectionTestResult",
    "FecCandidate",
    "FecCandidateTotals",
    "OpenFecClient",
    "OpenFecError",
    "ParsedName",
    "is_major_party",
    "map_fec_party",
    "parse_fec_name",
    "slugify_name",
    "title_case",
]
