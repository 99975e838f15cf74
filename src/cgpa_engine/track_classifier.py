"""
TRACK CLASSIFIER - Split courses between the main program and the secondary track

Students in a dual program (main degree + B.Ed) have the secondary track's
courses listed in the same transcript. Each track is summarized on its own,
so semesters are filtered down to one track before aggregation.
"""

import logging
from typing import Dict, Iterable, Optional

from .config import SECONDARY_TRACK_COURSES, normalize_course_code
from .data_models import Semester, Track

logger = logging.getLogger(__name__)


class TrackClassifier:
    """Membership test against a fixed registry of secondary-track course codes"""

    def __init__(self, registry: Optional[Iterable[str]] = None):
        """
        Args:
            registry: Secondary-track course codes. Defaults to the built-in
                B.Ed registry from config.
        """
        if registry is None:
            registry = SECONDARY_TRACK_COURSES
        self.registry = frozenset(normalize_course_code(code) for code in registry if code)

    def is_secondary_track(self, course_code: str) -> bool:
        return normalize_course_code(course_code) in self.registry

    def track_of(self, course_code: str) -> Track:
        return Track.B if self.is_secondary_track(course_code) else Track.A

    def has_secondary_courses(self, semesters: Dict[str, Semester]) -> bool:
        """True when any stored course belongs to the secondary track"""
        return any(
            self.is_secondary_track(course.code)
            for semester in semesters.values()
            for course in semester.courses
        )

    def filter_semesters(self, semesters: Dict[str, Semester], secondary: bool) -> Dict[str, Semester]:
        """
        Build a single-track view of the semester map

        A semester is kept when it holds at least one course of the requested
        track, when it is a forecast bucket of that track, or when a course of
        that track was originally assigned to it (so emptied buckets stay
        visible as move targets). Kept semesters are copies holding only the
        requested track's courses; the input map is not modified.

        Args:
            semesters: Full semester map keyed by canonical name
            secondary: True for the secondary track, False for the main program

        Returns:
            Filtered semester map
        """
        home_semesters = {
            course.original_semester
            for semester in semesters.values()
            for course in semester.courses
            if course.original_semester and self.is_secondary_track(course.code) == secondary
        }

        filtered = {}
        for name, semester in semesters.items():
            relevant = [
                course for course in semester.courses
                if self.is_secondary_track(course.code) == secondary
            ]

            if secondary:
                relevant_forecast = semester.is_track_b_forecast
            else:
                relevant_forecast = semester.is_forecast and not semester.is_track_b_forecast

            if relevant or relevant_forecast or name in home_semesters:
                filtered[name] = semester.copy(
                    update={"courses": [course.copy(deep=True) for course in relevant]}
                )

        logger.debug(
            f"Track {'B' if secondary else 'A'} view: {len(filtered)} of {len(semesters)} semesters"
        )
        return filtered
