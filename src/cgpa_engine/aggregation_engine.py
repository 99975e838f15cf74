"""
AGGREGATION ENGINE - Semester and overall totals for a transcript

CALCULATION FLOW:
1. Copy the semester map (callers replace theirs with the returned one)
2. Resolve repeats across every semester (best attempt per course code)
3. Per semester: sum quality points, credit hours, marks and max marks over
   non-deleted best attempts
4. Derive GPA and percentage with a zero-denominator guard
5. Sum semester totals into the overall CGPA and percentage

Track-filtered totals are the same calculation run on a single-track view.
The engine is invoked after every mutation (import, delete, undo, manual add,
semester move) and never updates totals incrementally.
"""

import logging
from typing import Dict, List, Optional

from .data_models import AggregationResult, OverallTotals, Semester
from .repeat_resolver import resolve_repeats
from .track_classifier import TrackClassifier

logger = logging.getLogger(__name__)


def _ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    if denominator > 0:
        return numerator / denominator * scale
    return 0.0


def summarize_semester(semester: Semester) -> Semester:
    """Refresh a semester's cached aggregates in place from its counted courses"""
    quality_points = 0.0
    credit_hours = 0
    marks = 0.0
    max_marks = 0

    for course in semester.counted_courses:
        quality_points += course.quality_points
        credit_hours += course.credit_hours
        marks += course.marks
        max_marks += course.max_marks

    semester.total_quality_points = quality_points
    semester.total_credit_hours = credit_hours
    semester.total_marks_obtained = marks
    semester.total_max_marks = max_marks
    semester.gpa = _ratio(quality_points, credit_hours)
    semester.percentage = _ratio(marks, max_marks, 100)
    return semester


def summarize_overall(semesters: Dict[str, Semester]) -> OverallTotals:
    """Sum semester totals (already refreshed) into overall totals"""
    quality_points = sum(s.total_quality_points for s in semesters.values())
    credit_hours = sum(s.total_credit_hours for s in semesters.values())
    marks = sum(s.total_marks_obtained for s in semesters.values())
    max_marks = sum(s.total_max_marks for s in semesters.values())

    return OverallTotals(
        cgpa=_ratio(quality_points, credit_hours),
        percentage=_ratio(marks, max_marks, 100),
        total_quality_points=quality_points,
        total_credit_hours=credit_hours,
        total_marks_obtained=marks,
        total_max_marks=max_marks,
    )


def aggregate(semesters: Dict[str, Semester]) -> AggregationResult:
    """
    Recompute repeat flags and all totals for a semester map

    Args:
        semesters: Semester map keyed by canonical name (not modified)

    Returns:
        AggregationResult with refreshed copies of every semester and the
        overall totals
    """
    refreshed = {name: semester.copy(deep=True) for name, semester in semesters.items()}

    resolve_repeats(refreshed)
    for semester in refreshed.values():
        summarize_semester(semester)

    return AggregationResult(semesters=refreshed, overall=summarize_overall(refreshed))


def aggregate_track(
    semesters: Dict[str, Semester],
    classifier: TrackClassifier,
    secondary: bool,
) -> AggregationResult:
    """Aggregate a single-track view (filtering happens before aggregation)"""
    return aggregate(classifier.filter_semesters(semesters, secondary))


class AggregationEngine:
    """Public entry point for recomputing a transcript after any mutation"""

    def __init__(self, classifier: Optional[TrackClassifier] = None):
        """
        Initialize engine

        Args:
            classifier: Track classifier for track-filtered totals
                (defaults to the built-in secondary-track registry)
        """
        self.classifier = classifier or TrackClassifier()
        self.calculation_log: List[str] = []

    def aggregate(self, semesters: Dict[str, Semester], secondary: Optional[bool] = None) -> AggregationResult:
        """
        Aggregate all semesters, or one track when secondary is True/False

        Args:
            semesters: Semester map keyed by canonical name
            secondary: None for every course, True for the secondary track only,
                False for the main program only

        Returns:
            AggregationResult
        """
        self.calculation_log = []

        if secondary is None:
            scope = "all courses"
            result = aggregate(semesters)
        else:
            scope = "secondary track" if secondary else "main program"
            result = aggregate_track(semesters, self.classifier, secondary)

        self.calculation_log.append(f"📊 Aggregating {len(result.semesters)} semesters ({scope})")
        for semester in result.sorted_semesters():
            extra = sum(1 for c in semester.courses if c.is_extra_enrolled and not c.is_deleted)
            deleted = sum(1 for c in semester.courses if c.is_deleted)
            self.calculation_log.append(
                f"   {semester.name}: GPA {semester.gpa:.3f}, "
                f"{semester.total_credit_hours} CH, {semester.percentage:.2f}% "
                f"({extra} repeat attempts excluded, {deleted} deleted)"
            )

        overall = result.overall
        self.calculation_log.append(f"✅ Calculation complete:")
        self.calculation_log.append(f"   CGPA: {overall.cgpa:.3f}")
        self.calculation_log.append(f"   Percentage: {overall.percentage:.2f}%")
        self.calculation_log.append(f"   Total Credit Hours: {overall.total_credit_hours}")

        logger.info(
            f"📊 Aggregated {len(result.semesters)} semesters ({scope}): "
            f"CGPA {overall.cgpa:.3f} over {overall.total_credit_hours} CH"
        )
        return result

    def get_calculation_log(self) -> List[str]:
        """Get detailed calculation log for debugging"""
        return self.calculation_log
