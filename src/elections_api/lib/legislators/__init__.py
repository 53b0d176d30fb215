"""Legislators library — current members of Congress for promotion enrichment.

Public API:
    - LegislatorDirectory: Refreshing in-memory index of current members
    - Legislator, EnrichmentData: Record types
    - LegislatorDirectoryError: Fetch/parse error
    - parse_legislators: Flatten raw congress-legislators JSON
"""

from elections_api.lib.legislators.directory import (
    DEFAULT_LEGISLATORS_URL,
    DEFAULT_PHOTO_BASE_URL,
    DEFAULT_SOCIAL_URL,
    EnrichmentData,
    Legislator,
    LegislatorDirectory,
    LegislatorDirectoryError,
    parse_legislators,
)

__all__ = [
    "DEFAULT_LEGISLATORS_URL",
    "DEFAULT_PHOTO_BASE_URL",
    "DEFAULT_SOCIAL_URL",
    "EnrichmentData",
    "Legislator",
    "LegislatorDirectory",
    "LegislatorDirectoryError",
    "parse_legislators",
]
