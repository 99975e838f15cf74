"""
REPEAT RESOLVER - Best-attempt selection for retaken courses

A course code that appears more than once among non-deleted courses (in any
semester) is a repeat. Only the attempt with the highest marks counts toward
totals; every other attempt is kept for display and flagged extra-enrolled.
Ties keep the attempt encountered first in semester-map iteration order.

Flags are a pure function of code, marks and is_deleted, so running the
resolver again on already-annotated data gives the same designations.
"""

import logging
from typing import Dict, List, NamedTuple

from .data_models import Semester

logger = logging.getLogger(__name__)


class Attempt(NamedTuple):
    """Location of one attempt of a course code"""
    semester: str
    index: int
    marks: float


def build_attempt_index(semesters: Dict[str, Semester]) -> Dict[str, List[Attempt]]:
    """Map normalized course code -> attempts, in iteration order, skipping deleted courses"""
    index: Dict[str, List[Attempt]] = {}
    for semester_name, semester in semesters.items():
        for position, course in enumerate(semester.courses):
            if course.is_deleted:
                continue
            index.setdefault(course.normalized_code, []).append(
                Attempt(semester_name, position, course.marks)
            )
    return index


def resolve_repeats(semesters: Dict[str, Semester]) -> Dict[str, List[Attempt]]:
    """
    Refresh is_repeated / is_extra_enrolled on every course, in place

    Args:
        semesters: Semester map to annotate

    Returns:
        The attempt index, best attempt first for each code
    """
    # Deleted courses take no part in grouping
    for semester in semesters.values():
        for course in semester.courses:
            if course.is_deleted:
                course.is_repeated = False
                course.is_extra_enrolled = False

    index = build_attempt_index(semesters)

    for code, attempts in index.items():
        # Stable even with reverse=True: equal marks keep iteration order
        attempts.sort(key=lambda attempt: attempt.marks, reverse=True)
        repeated = len(attempts) > 1

        for rank, attempt in enumerate(attempts):
            course = semesters[attempt.semester].courses[attempt.index]
            course.is_repeated = repeated
            course.is_extra_enrolled = rank > 0

        if repeated:
            best = attempts[0]
            logger.debug(
                f"🔁 {code}: {len(attempts)} attempts, best {best.marks} in {best.semester}"
            )

    return index
