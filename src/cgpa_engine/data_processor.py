"""
DATA PROCESSOR - Raw feed rows to normalized semester buckets
Adapt, validate and bucket raw academic-record rows before aggregation

DATA SOURCES:
✅ Primary feed (LMS) - one row per course per semester, with grades
✅ Secondary feed (attendance) - marks only, merged as extra attempts
✅ CSV exports / DataFrames of either feed

SANITIZATION STRATEGY:
1. Adapter: each feed's row shape is mapped to one CanonicalRecord
2. Coercion: unparsable credit hours / marks become 0, never an error
3. Bucketing: semester labels are normalized and courses appended in order
4. Deduplication: secondary-feed rows matching an existing attempt
   (code, marks within 0.1, resolved grade) are skipped

Dependencies: pandas for CSV loading, pydantic models for validation
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd
from pydantic import ValidationError

from .aggregation_engine import aggregate
from .config import (
    ATTENDANCE_CREDIT_HOURS_DISPLAY,
    ATTENDANCE_DEFAULT_CREDIT_HOURS,
    DUPLICATE_MARKS_TOLERANCE,
)
from .data_models import (
    AttendanceRecord,
    CanonicalRecord,
    Course,
    CourseSource,
    LmsRecord,
    Semester,
    StudentProfile,
)
from .grading import calculate_quality_points, resolve_grade
from .semester_normalizer import detect_season, normalize, parse_forecast_sequence
from .track_classifier import TrackClassifier

logger = logging.getLogger(__name__)

LEADING_INTEGER_PATTERN = re.compile(r"(\d+)")

LMS_REQUIRED_COLUMNS = ["Semester", "CourseCode", "CreditHours", "Total"]
ATTENDANCE_REQUIRED_COLUMNS = ["Semester", "CourseCode"]
ATTENDANCE_MARKS_COLUMNS = ["Totalmark", "Total"]


def clean_value(val):
    """Helper to handle NaN values"""
    if val is None or (isinstance(val, float) and np.isnan(val)):
        return None
    return val


def parse_credit_hours(descriptor: Any) -> int:
    """
    Leading integer of a credit-hours descriptor

    "3(3-0)" -> 3, "4" -> 4, 2.0 -> 2, "" / None / "n/a" -> 0
    """
    descriptor = clean_value(descriptor)
    if descriptor is None:
        return 0
    if isinstance(descriptor, (int, float, np.number)):
        return max(int(descriptor), 0)

    match = LEADING_INTEGER_PATTERN.search(str(descriptor))
    if not match:
        logger.warning(f"⚠️ Unparsable credit hours {descriptor!r}, using 0")
        return 0
    return int(match.group(1))


def parse_marks(value: Any) -> float:
    """Numeric marks from a number or numeric string; anything else is 0"""
    value = clean_value(value)
    if value is None:
        return 0.0
    try:
        marks = float(str(value).strip())
    except (ValueError, TypeError):
        logger.warning(f"⚠️ Unparsable marks {value!r}, using 0")
        return 0.0
    if np.isnan(marks) or np.isinf(marks) or marks < 0:
        return 0.0
    return marks


def from_lms_record(row: Union[LmsRecord, Mapping[str, Any]]) -> CanonicalRecord:
    """Adapt a primary-feed row"""
    if not isinstance(row, LmsRecord):
        row = LmsRecord(**row)

    code = (row.course_code or "").strip()
    return CanonicalRecord(
        semester_label=row.semester or "",
        code=code,
        title=row.course_title or code,
        credit_hours=parse_credit_hours(row.credit_hours),
        credit_hours_display=row.credit_hours,
        marks=parse_marks(row.total),
        grade=row.grade,
        teacher=row.teacher_name,
        source=CourseSource.LMS,
        mid=row.mid,
        assignment=row.assignment,
        final=row.final,
        practical=row.practical,
    )


def from_attendance_record(row: Union[AttendanceRecord, Mapping[str, Any]]) -> CanonicalRecord:
    """Adapt a secondary-feed row (fixed credit hours, grade derived from marks)"""
    if not isinstance(row, AttendanceRecord):
        row = AttendanceRecord(**row)

    code = (row.course_code or "").strip()
    return CanonicalRecord(
        semester_label=row.semester or "",
        code=code,
        title=row.course_name or code,
        credit_hours=ATTENDANCE_DEFAULT_CREDIT_HOURS,
        credit_hours_display=ATTENDANCE_CREDIT_HOURS_DISPLAY,
        marks=parse_marks(row.marks_value),
        grade=None,
        source=CourseSource.ATTENDANCE,
    )


def build_course(record: CanonicalRecord, semester_name: str) -> Course:
    """Create a Course with its quality points and (supplied or derived) grade"""
    quality_points = calculate_quality_points(record.marks, record.credit_hours, record.grade)
    grade = resolve_grade(record.marks, record.credit_hours, record.grade)

    return Course(
        code=record.code,
        title=record.title or record.code,
        teacher=record.teacher,
        credit_hours=record.credit_hours,
        credit_hours_display=record.credit_hours_display,
        marks=record.marks,
        grade=grade,
        quality_points=quality_points,
        is_custom=record.source != CourseSource.LMS,
        source=record.source,
        original_semester=semester_name,
        mid=record.mid,
        assignment=record.assignment,
        final=record.final,
        practical=record.practical,
    )


def ensure_semester(semesters: Dict[str, Semester], label: str) -> Semester:
    """Return the bucket for a label, creating it on first need"""
    normalized = normalize(label)
    semester = semesters.get(normalized.name)
    if semester is None:
        if detect_season(label or "") is None and parse_forecast_sequence(label or "") is None:
            logger.warning(f"⚠️ Unrecognized semester label {label!r}, keeping as {normalized.name!r}")
        semester = Semester(
            name=normalized.name,
            original_name=label,
            sort_key=normalized.sort_key,
            is_forecast=parse_forecast_sequence(label or "") is not None,
        )
        semesters[normalized.name] = semester
    return semester


def build_semesters(
    records: Iterable[CanonicalRecord],
    semesters: Optional[Dict[str, Semester]] = None,
) -> Dict[str, Semester]:
    """
    Bucket canonical records by normalized semester name

    Args:
        records: Canonical records in feed order
        semesters: Existing map to append to (modified in place); a new map
            is created when omitted

    Returns:
        Semester map keyed by canonical name
    """
    if semesters is None:
        semesters = {}

    for record in records:
        semester = ensure_semester(semesters, record.semester_label)
        semester.courses.append(build_course(record, semester.name))

    return semesters


def is_duplicate(candidate: Course, existing: Course) -> bool:
    """Same attempt reported by both feeds: code, marks (within tolerance) and grade match"""
    if candidate.normalized_code != existing.normalized_code:
        return False
    if abs(candidate.marks - existing.marks) > DUPLICATE_MARKS_TOLERANCE:
        return False
    candidate_grade = resolve_grade(candidate.marks, candidate.credit_hours, candidate.grade)
    existing_grade = resolve_grade(existing.marks, existing.credit_hours, existing.grade)
    return candidate_grade == existing_grade


def merge_secondary_feed(
    semesters: Dict[str, Semester],
    rows: Iterable[Union[AttendanceRecord, Mapping[str, Any]]],
) -> Tuple[Dict[str, Semester], int]:
    """
    Merge secondary-feed rows into a semester map

    Rows identical to an existing non-deleted course are skipped; anything
    else is appended as a new attempt and flows into repeat resolution.

    Args:
        semesters: Current semester map (not modified)
        rows: Attendance feed rows

    Returns:
        Tuple of (merged semester map, number of courses added)
    """
    merged = {name: semester.copy(deep=True) for name, semester in semesters.items()}
    known: List[Course] = [
        course
        for semester in merged.values()
        for course in semester.courses
        if not course.is_deleted
    ]

    added = 0
    for row in rows:
        record = from_attendance_record(row)
        if not record.code:
            logger.warning(f"⚠️ Skipping secondary-feed row without a course code: {row!r}")
            continue

        normalized = normalize(record.semester_label)
        candidate = build_course(record, normalized.name)
        if any(is_duplicate(candidate, course) for course in known):
            continue

        semester = ensure_semester(merged, record.semester_label)
        semester.courses.append(candidate)
        known.append(candidate)
        added += 1

    if added:
        logger.info(f"📥 Imported {added} new courses from the secondary feed")
    else:
        logger.info("No new courses found in the secondary feed")
    return merged, added


class TranscriptDataProcessor:
    """Load, validate and assemble raw feed rows into a student profile"""

    def __init__(self, classifier: Optional[TrackClassifier] = None):
        self.classifier = classifier or TrackClassifier()

        self.lms_rows: Optional[pd.DataFrame] = None
        self.attendance_rows: Optional[pd.DataFrame] = None

        # Validation results
        self.validation_errors: List[str] = []
        self.validation_warnings: List[str] = []

        self.profile: Optional[StudentProfile] = None

    def load_lms_data(self, source: Union[str, Path, pd.DataFrame]) -> bool:
        """Load primary-feed rows from a CSV path or DataFrame"""
        frame = self._load_frame(source, "primary feed")
        if frame is None:
            return False

        missing_columns = [col for col in LMS_REQUIRED_COLUMNS if col not in frame.columns]
        if missing_columns:
            self.validation_errors.append(f"Primary feed missing columns: {missing_columns}")
            logger.error(f"  ❌ Primary feed missing columns: {missing_columns}")
            return False

        self.lms_rows = frame
        self._validate_rows_quality(frame, "Primary feed", "Total")
        logger.info(f"  ✅ Loaded {len(frame)} primary-feed records")
        return True

    def load_attendance_data(self, source: Union[str, Path, pd.DataFrame]) -> bool:
        """Load secondary-feed rows from a CSV path or DataFrame"""
        frame = self._load_frame(source, "secondary feed")
        if frame is None:
            return False

        missing_columns = [col for col in ATTENDANCE_REQUIRED_COLUMNS if col not in frame.columns]
        if not any(col in frame.columns for col in ATTENDANCE_MARKS_COLUMNS):
            missing_columns.append(" or ".join(ATTENDANCE_MARKS_COLUMNS))
        if missing_columns:
            self.validation_errors.append(f"Secondary feed missing columns: {missing_columns}")
            logger.error(f"  ❌ Secondary feed missing columns: {missing_columns}")
            return False

        self.attendance_rows = frame
        marks_column = "Totalmark" if "Totalmark" in frame.columns else "Total"
        self._validate_rows_quality(frame, "Secondary feed", marks_column)
        logger.info(f"  ✅ Loaded {len(frame)} secondary-feed records")
        return True

    def _load_frame(self, source: Union[str, Path, pd.DataFrame], label: str) -> Optional[pd.DataFrame]:
        if isinstance(source, pd.DataFrame):
            return source.copy()

        file_path = Path(source)
        try:
            logger.info(f"📊 Loading {label} from: {file_path}")
            return pd.read_csv(file_path, encoding="utf-8-sig", dtype=str)
        except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            self.validation_errors.append(f"Failed to load {label}: {e}")
            logger.error(f"  ❌ Failed to load {label}: {e}")
            return None

    def _validate_rows_quality(self, frame: pd.DataFrame, label: str, marks_column: str):
        """Record warnings for rows that will be coerced"""
        blank_codes = frame["CourseCode"].isna() | (frame["CourseCode"].astype(str).str.strip() == "")
        if blank_codes.any():
            self.validation_warnings.append(f"{label}: {int(blank_codes.sum())} rows without a course code")

        marks = pd.to_numeric(frame[marks_column], errors="coerce")
        bad_marks = marks.isna() & frame[marks_column].notna()
        if bad_marks.any():
            self.validation_warnings.append(
                f"{label}: {int(bad_marks.sum())} rows with non-numeric marks (counted as 0)"
            )

        if "CreditHours" in frame.columns:
            credit_hours = frame["CreditHours"].map(parse_credit_hours)
            zero_credit = credit_hours == 0
            if zero_credit.any():
                self.validation_warnings.append(
                    f"{label}: {int(zero_credit.sum())} rows with zero/unparsable credit hours"
                )

    @staticmethod
    def _rows(frame: Optional[pd.DataFrame]) -> List[Dict[str, Any]]:
        if frame is None:
            return []
        records = frame.to_dict(orient="records")
        return [{key: clean_value(value) for key, value in row.items()} for row in records]

    def build_profile(self, display_name: Optional[str] = None) -> StudentProfile:
        """
        Assemble a student profile from the loaded feeds

        Primary-feed rows build the semester buckets; secondary-feed rows are
        then merged as additional attempts. Rows that fail model validation
        are skipped and reported as warnings.

        Returns:
            StudentProfile with aggregated semesters and overall totals
        """
        lms_rows = self._rows(self.lms_rows)

        records = []
        for row in lms_rows:
            try:
                record = from_lms_record(row)
            except ValidationError as e:
                self.validation_warnings.append(f"Skipped primary-feed row {row!r}: {e}")
                continue
            if not record.code:
                self.validation_warnings.append(f"Skipped primary-feed row without a course code: {row!r}")
                continue
            records.append(record)

        semesters = build_semesters(records)

        attendance_rows = self._rows(self.attendance_rows)
        if attendance_rows:
            semesters, _ = merge_secondary_feed(semesters, attendance_rows)

        result = aggregate(semesters)

        first_row = LmsRecord(**lms_rows[0]) if lms_rows else LmsRecord()
        profile = StudentProfile(
            student_name=first_row.student_name,
            registration=first_row.registration_no,
            display_name=display_name,
            semesters=result.semesters,
            overall=result.overall,
            track_mode=self.classifier.has_secondary_courses(result.semesters),
        )
        self.profile = profile

        logger.info(
            f"🎓 Built profile for {profile.registration or 'unknown student'}: "
            f"{len(profile.semesters)} semesters, CGPA {profile.overall.cgpa:.3f}"
        )
        return profile

    def generate_validation_report(self) -> str:
        """Report of feed problems plus what the loaded feeds produced"""

        report = ["🔍 FEED VALIDATION REPORT", "=" * 50, ""]

        if self.validation_errors:
            report.append(f"❌ {len(self.validation_errors)} load error(s):")
            report.extend(f"  • {error}" for error in self.validation_errors)
            report.append("")
        if self.validation_warnings:
            report.append(f"⚠️ {len(self.validation_warnings)} row(s) coerced or skipped:")
            report.extend(f"  • {warning}" for warning in self.validation_warnings)
            report.append("")
        if not self.validation_errors and not self.validation_warnings:
            report.append("✅ All validation checks passed!")
            report.append("")

        report.append("📊 FEED SUMMARY:")
        if self.lms_rows is not None:
            report.append(f"  Primary Feed Records: {len(self.lms_rows)}")
        if self.attendance_rows is not None:
            report.append(f"  Secondary Feed Records: {len(self.attendance_rows)}")

        if self.profile is not None:
            semesters = self.profile.semesters.values()
            courses = [course for semester in semesters for course in semester.courses]
            report.append(f"  Semesters: {len(self.profile.semesters)}")
            report.append(
                f"  Courses: {len(courses)} "
                f"({sum(1 for c in courses if c.is_extra_enrolled)} superseded attempts, "
                f"{sum(1 for c in courses if c.source == CourseSource.ATTENDANCE)} from secondary feed)"
            )
            report.append(
                f"  CGPA: {self.profile.overall.cgpa:.3f} over "
                f"{self.profile.overall.total_credit_hours} credit hours"
            )

        return "\n".join(report)
