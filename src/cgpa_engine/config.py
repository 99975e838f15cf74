"""
Configuration constants for the quality-point engine.

This module contains the grading constants, merge tolerances and the
secondary-track course registry used throughout the engine. Centralizing
them makes it easy to adjust behavior as institutional policies change.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Set

logger = logging.getLogger(__name__)

# Environment override for the secondary-track registry file
TRACK_REGISTRY_ENV_VAR = "CGPA_ENGINE_TRACK_REGISTRY"


# =============================================================================
# GRADING
# =============================================================================

# Each credit hour is examined out of 20 marks (3 CH course -> 60 marks)
MARKS_PER_CREDIT_HOUR = 20

# Quality points earned per credit hour at full marks
MAX_GRADE_POINT = 4.0

# Percentage at or above which full quality points are awarded
FULL_MARKS_PERCENTAGE = 80.0

# Percentage below which no quality points are awarded
PASSING_PERCENTAGE = 40.0

# Letter grade thresholds on percentage, highest first
GRADE_THRESHOLDS = (
    ("A", 80.0),
    ("B", 65.0),
    ("C", 50.0),
    ("D", 40.0),
)

# Supplied grades that short-circuit the quality-point formula
FAIL_GRADE = "F"
PASS_GRADE = "P"

# A 1 credit hour pass/fail course is marked out of 100
PASS_COURSE_MAX_MARKS = 100

# Quality points are reported to 2 decimal places
QUALITY_POINT_PRECISION = 2


# =============================================================================
# IMPORT / MERGE
# =============================================================================

# Secondary (attendance) feed rows carry no credit hours
ATTENDANCE_DEFAULT_CREDIT_HOURS = 3
ATTENDANCE_CREDIT_HOURS_DISPLAY = "3(3-0)*"

# Marks closer than this are treated as the same attempt when merging feeds
DUPLICATE_MARKS_TOLERANCE = 0.1


# =============================================================================
# SEMESTER ORDERING
# =============================================================================

SEASON_ORDER = {
    "winter": 1,
    "spring": 2,
    "summer": 3,
    "fall": 4,
}
UNKNOWN_SEASON_ORDER = 9

# Seasons that resolve to the second year of a "2020-2021" style label
SECOND_YEAR_SEASONS = {"spring", "summer"}

# Spring/Summer belong to the academic year that started the previous calendar year
ACADEMIC_YEAR_OFFSET_SEASONS = {"spring", "summer"}

# Sort-key year for labels with no recognizable year
UNKNOWN_YEAR = 9000

# Forecast buckets sort after every real semester
FORECAST_SENTINEL_YEAR = 9999
FORECAST_LABEL = "Forecast"


# =============================================================================
# SECONDARY TRACK (B.Ed)
# =============================================================================
# Students enrolled in the B.Ed program take these education courses
# alongside their main degree. Both tracks are summarized independently.

SECONDARY_TRACK_COURSES = frozenset({
    "EDU-501", "EDU-503", "EDU-505", "EDU-507", "EDU-509", "EDU-511", "EDU-513",
    "EDU-502", "EDU-504", "EDU-506", "EDU-508", "EDU-510", "EDU-512", "EDU-516",
    "EDU-601", "EDU-604", "EDU-605", "EDU-607", "EDU-608", "EDU-623",
})


def normalize_course_code(code: Optional[str]) -> str:
    """Normalize a course code for comparison (trimmed, upper-case)."""
    if code is None:
        return ""
    return str(code).strip().upper()


def parse_track_registry(entries: Iterable[str]) -> Set[str]:
    """Build a normalized registry from raw entries, skipping blanks and comments."""
    registry = set()
    for entry in entries:
        for token in entry.replace(",", "\n").splitlines():
            token = token.split("#", 1)[0]
            code = normalize_course_code(token)
            if code:
                registry.add(code)
    return registry


def load_track_registry(path: Optional[Path] = None) -> frozenset:
    """
    Load the secondary-track registry

    Args:
        path: File with one course code per line (commas also separate codes).
            Falls back to the CGPA_ENGINE_TRACK_REGISTRY environment variable,
            then to the built-in SECONDARY_TRACK_COURSES.

    Returns:
        Frozen set of normalized course codes
    """
    if path is None:
        env_path = os.environ.get(TRACK_REGISTRY_ENV_VAR)
        if not env_path:
            return SECONDARY_TRACK_COURSES
        path = Path(env_path)

    path = Path(path)
    with path.open(encoding="utf-8-sig") as handle:
        registry = parse_track_registry(handle)

    logger.info(f"📚 Loaded {len(registry)} secondary-track courses from {path}")
    return frozenset(registry)
