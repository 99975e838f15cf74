"""
SEMESTER NORMALIZER - Free-text semester labels to canonical names and sort keys

Upstream feeds label the same term in different ways:
    "Winter 2020-2021", "winter semester 2020-21", "Spring21", "Fall 2019"

LABEL RESOLUTION:
✅ Season: case-insensitive substring match on Winter/Spring/Summer/Fall
✅ Year range: "2020-2021" or "2020-21"; Winter/Fall take the first year,
   Spring/Summer take the second
✅ Single year: "Fall 2019"
✅ Compact shorthand: "Spring21" -> 2021

SORT KEYS:
"<YYYY>-<season order>" with 1=Winter, 2=Spring, 3=Summer, 4=Fall, 9=unknown.
Spring and Summer keys use the academic year (calendar year - 1), so a
year's Winter term sorts before the Spring and Summer that follow it.
Forecast buckets use the sentinel year 9999 and a 2-digit sequence.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .config import (
    ACADEMIC_YEAR_OFFSET_SEASONS,
    FORECAST_LABEL,
    FORECAST_SENTINEL_YEAR,
    SEASON_ORDER,
    SECOND_YEAR_SEASONS,
    UNKNOWN_SEASON_ORDER,
    UNKNOWN_YEAR,
)

logger = logging.getLogger(__name__)

YEAR_RANGE_PATTERN = re.compile(r"\b(\d{4})\s*[-/]\s*(\d{4}|\d{2})\b")
SINGLE_YEAR_PATTERN = re.compile(r"\b(\d{4})\b")
COMPACT_PATTERN = re.compile(r"(winter|spring|summer|fall)[\s\-_']*(\d{4}|\d{2})(?!\d)", re.IGNORECASE)
FORECAST_PATTERN = re.compile(r"^\s*forecast(?:\s+(\d+))?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class NormalizedSemester:
    """Canonical semester name and its chronological sort key"""
    name: str
    sort_key: str


def _expand_year(year: str) -> int:
    """Expand a 2-digit year with the 20 prefix"""
    if len(year) == 2:
        return int("20" + year)
    return int(year)


def detect_season(label: str) -> Optional[str]:
    """Return the lower-case season found in the label, if any"""
    lower = label.lower()
    for season in SEASON_ORDER:
        if season in lower:
            return season
    return None


def extract_year(label: str, season: Optional[str] = None) -> Optional[int]:
    """
    Extract the calendar year a label refers to

    Args:
        label: Free-text semester label
        season: Detected season, decides which half of a year range applies

    Returns:
        4-digit year or None if no year is present
    """
    range_match = YEAR_RANGE_PATTERN.search(label)
    if range_match:
        first, second = range_match.groups()
        if season in SECOND_YEAR_SEASONS:
            return _expand_year(second)
        return int(first)

    single_match = SINGLE_YEAR_PATTERN.search(label)
    if single_match:
        return int(single_match.group(1))

    compact_match = COMPACT_PATTERN.search(label)
    if compact_match:
        return _expand_year(compact_match.group(2))

    return None


def forecast_name(sequence: int) -> str:
    """Display name of the n-th forecast bucket"""
    return f"{FORECAST_LABEL} {sequence}"


def forecast_sort_key(sequence: int) -> str:
    """Sort key placing forecasts after every real semester"""
    return f"{FORECAST_SENTINEL_YEAR}-{sequence:02d}"


def parse_forecast_sequence(label: str) -> Optional[int]:
    """Sequence number of a 'Forecast n' label, or None for other labels"""
    match = FORECAST_PATTERN.match(label or "")
    if not match:
        return None
    return int(match.group(1) or 1)


def sort_key_for(season: Optional[str], year: Optional[int], label: str = "") -> str:
    """Build the sort key for a resolved season/year pair"""
    order = SEASON_ORDER.get(season, UNKNOWN_SEASON_ORDER)
    if year is None:
        key_year = UNKNOWN_YEAR
    elif season in ACADEMIC_YEAR_OFFSET_SEASONS:
        key_year = year - 1
    else:
        key_year = year

    key = f"{key_year:04d}-{order}"
    if season is None:
        # Unknown labels keep a stable order by raw text
        key = f"{key}-{label.strip().lower()}"
    return key


def normalize(label: str) -> NormalizedSemester:
    """
    Map a free-text semester label to its canonical name and sort key

    Never fails: unrecognized labels are passed through with the first
    character capitalized. They sort after every recognized semester of
    their year, or after all dated semesters when they carry no year.
    """
    label = "" if label is None else str(label)

    sequence = parse_forecast_sequence(label)
    if sequence is not None:
        return NormalizedSemester(forecast_name(sequence), forecast_sort_key(sequence))

    season = detect_season(label)
    year = extract_year(label, season)

    if season is None:
        stripped = label.strip()
        name = stripped[:1].upper() + stripped[1:]
        logger.debug(f"Unrecognized semester label: {label!r}")
        return NormalizedSemester(name, sort_key_for(None, year, label))

    name = season.capitalize()
    if year is not None:
        name = f"{name} {year}"
    return NormalizedSemester(name, sort_key_for(season, year))


def semester_sort_key(label: str) -> str:
    """Sort key only"""
    return normalize(label).sort_key


def sort_semester_names(names: Iterable[str]) -> List[str]:
    """Order canonical names chronologically"""
    return sorted(names, key=semester_sort_key)
