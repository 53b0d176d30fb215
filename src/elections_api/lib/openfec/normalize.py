"""Pure helpers turning raw OpenFEC strings into site-ready values.

FEC reports names as ``"LAST, FIRST MIDDLE"`` in upper case and parties as
either a three-letter code (``DEM``) or a full name (``DEMOCRATIC PARTY``).
"""

import re
from typing import NamedTuple

UNKNOWN_NAME = "Unknown"

# Normalized parties that pass the "major parties only" filter
MAJOR_PARTIES = frozenset({"Democrat", "Republican", "Independent"})

_PARTY_CODES = {
    "DEM": "Democrat",
    "REP": "Republican",
    "LIB": "Libertarian",
    "GRE": "Green",
    "IND": "Independent",
    "NNE": "Independent",
    "NPA": "Independent",
    "UNK": "Other",
}

# Checked in order against the upper-cased input before falling back to codes
_PARTY_SUBSTRINGS = (
    ("DEMOCRAT", "Democrat"),
    ("REPUBLICAN", "Republican"),
    ("LIBERTARIAN", "Libertarian"),
    ("GREEN", "Green"),
    ("INDEPENDENT", "Independent"),
)

_WORD_START_RE = re.compile(r"(?:^|[\s\-'/\"(])\w")
_SUFFIX_FIXES = (
    (re.compile(r"\bIi\b"), "II"),
    (re.compile(r"\bIii\b"), "III"),
    (re.compile(r"\bIv\b"), "IV"),
    (re.compile(r"\bJr\b", re.IGNORECASE), "Jr"),
    (re.compile(r"\bSr\b", re.IGNORECASE), "Sr"),
)
_SLUG_RE = re.compile(r"[^a-z0-9]+")


class ParsedName(NamedTuple):
    """First/last name pair parsed from an FEC name string."""

    first: str
    last: str


def title_case(value: str) -> str:
    """Title-case an upper-case FEC name fragment.

    Letters are capitalized at the start of the string and after whitespace,
    hyphens, apostrophes, slashes, quotes and opening parentheses, so
    ``O'ROURKE`` becomes ``O'Rourke`` and ``"TED"`` becomes ``"Ted"``.
    Roman-numeral and generational suffixes are then corrected
    (``Iii`` -> ``III``, ``JR`` -> ``Jr``).

    Args:
        value: Raw name fragment.

    Returns:
        The title-cased fragment.
    """
    result = _WORD_START_RE.sub(lambda m: m.group(0).upper(), value.lower())
    for pattern, replacement in _SUFFIX_FIXES:
        result = pattern.sub(replacement, result)
    return result


def parse_fec_name(raw: str | None) -> ParsedName:
    """Split an FEC ``"LAST, FIRST MIDDLE"`` name into first and last.

    Splits on the first comma only. A name without a comma is treated
    entirely as a last name with an empty first name; an empty or missing
    name yields ``Unknown``/``Unknown``.

    Args:
        raw: Name exactly as reported by OpenFEC.

    Returns:
        A ParsedName with title-cased parts.
    """
    if not raw:
        return ParsedName(first=UNKNOWN_NAME, last=UNKNOWN_NAME)

    last, sep, first = raw.partition(",")
    if not sep:
        return ParsedName(first="", last=title_case(raw.strip()))
    return ParsedName(first=title_case(first.strip()), last=title_case(last.strip()))


def map_fec_party(raw: str | None) -> str:
    """Map an FEC party code or full party name to a site party category.

    Args:
        raw: ``party_full`` (e.g. ``"DEMOCRATIC PARTY"``) or ``party`` code.

    Returns:
        One of Democrat, Republican, Independent, Libertarian, Green, Other.
    """
    if not raw:
        return "Other"
    normalized = raw.strip().upper()
    for needle, party in _PARTY_SUBSTRINGS:
        if needle in normalized:
            return party
    return _PARTY_CODES.get(normalized, "Other")


def is_major_party(raw: str | None) -> bool:
    """Return True if a party passes the major-parties filter.

    The party is normalized with map_fec_party first, so state affiliates
    such as ``DEMOCRATIC-FARMER-LABOR`` count as Democrats. Candidates with
    no party at all pass.
    """
    if not raw or not raw.strip():
        return True
    return map_fec_party(raw) in MAJOR_PARTIES


def slugify_name(first: str, last: str) -> str:
    """Build a URL slug of the form ``last-first``.

    Collisions between different people are not handled here.

    Args:
        first: Normalized first name.
        last: Normalized last name.

    Returns:
        Lower-case slug containing only ``a-z``, ``0-9`` and single hyphens.
    """
    return _SLUG_RE.sub("-", f"{last}-{first}".lower()).strip("-")
