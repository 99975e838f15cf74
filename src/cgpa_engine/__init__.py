"""
Quality-point reconciliation and aggregation for academic transcripts.

Raw result rows are normalized into semester buckets, retaken courses are
resolved to their best attempt, and per-semester GPA plus overall CGPA are
computed, optionally for one program track at a time.
"""

from .aggregation_engine import AggregationEngine, aggregate, aggregate_track
from .data_models import (
    AggregationResult,
    AttendanceRecord,
    CanonicalRecord,
    Course,
    CourseSource,
    LmsRecord,
    OverallTotals,
    Semester,
    StudentProfile,
    Track,
)
from .data_processor import TranscriptDataProcessor, build_semesters, merge_secondary_feed
from .grading import calculate_quality_points, determine_grade
from .repeat_resolver import resolve_repeats
from .semester_normalizer import NormalizedSemester, normalize
from .track_classifier import TrackClassifier

__version__ = "1.0.0"

__all__ = [
    'AggregationEngine',
    'aggregate',
    'aggregate_track',
    'AggregationResult',
    'AttendanceRecord',
    'CanonicalRecord',
    'Course',
    'CourseSource',
    'LmsRecord',
    'OverallTotals',
    'Semester',
    'StudentProfile',
    'Track',
    'TranscriptDataProcessor',
    'build_semesters',
    'merge_secondary_feed',
    'calculate_quality_points',
    'determine_grade',
    'resolve_repeats',
    'NormalizedSemester',
    'normalize',
    'TrackClassifier',
]
