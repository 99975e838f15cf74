"""
DATA MODELS - Pydantic schemas for transcript reconciliation
Type-safe data structures for raw feed rows, courses, semesters and totals

COMPREHENSIVE DATA VALIDATION:
✅ Raw Feed Rows: Primary (LMS) and secondary (attendance) row variants
✅ Canonical Records: One internal shape both feeds are adapted to
✅ Courses: Marks, credit hours, quality points and repeat flags
✅ Semesters: Course buckets with cached aggregate totals
✅ Totals: Overall CGPA, percentage and credit summary

VALIDATION RULES:
- Credit hours are non-negative integers
- Marks are non-negative and never capped when stored
- Letter grades are trimmed and upper-cased
- Course codes keep their display casing; comparison uses normalized_code

Dependencies: Pydantic for validation
"""

import math
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, validator

from .config import (
    MARKS_PER_CREDIT_HOUR,
    PASS_COURSE_MAX_MARKS,
    PASS_GRADE,
    normalize_course_code,
)


class CourseSource(str, Enum):
    """Provenance of a course record (informational only)"""
    LMS = "lms"
    ATTENDANCE = "attendance"
    MANUAL = "manual"


class Track(str, Enum):
    """Program track a course belongs to"""
    A = "A"  # Main program
    B = "B"  # Secondary program (B.Ed)


def _clean_optional_str(v):
    """Turn NaN/None into None and everything else into a stripped string"""
    if v is None:
        return None
    if isinstance(v, float) and math.isnan(v):
        return None
    v = str(v).strip()
    return v or None


class LmsRecord(BaseModel):
    """Raw row from the primary (LMS) result feed"""

    student_name: Optional[str] = Field(None, alias="StudentName")
    registration_no: Optional[str] = Field(None, alias="RegistrationNo")
    semester: Optional[str] = Field(None, alias="Semester")
    course_code: Optional[str] = Field(None, alias="CourseCode")
    course_title: Optional[str] = Field(None, alias="CourseTitle")
    credit_hours: Optional[str] = Field(None, alias="CreditHours", description="e.g. '3(3-0)'")
    total: Optional[str] = Field(None, alias="Total", description="Marks obtained")
    grade: Optional[str] = Field(None, alias="Grade")
    teacher_name: Optional[str] = Field(None, alias="TeacherName")
    mid: Optional[str] = Field(None, alias="Mid")
    assignment: Optional[str] = Field(None, alias="Assignment")
    final: Optional[str] = Field(None, alias="Final")
    practical: Optional[str] = Field(None, alias="Practical")

    @validator("*", pre=True)
    def clean_values(cls, v):
        return _clean_optional_str(v)

    class Config:
        populate_by_name = True


class AttendanceRecord(BaseModel):
    """Raw row from the secondary (attendance) feed"""

    semester: Optional[str] = Field(None, alias="Semester")
    course_code: Optional[str] = Field(None, alias="CourseCode")
    course_name: Optional[str] = Field(None, alias="CourseName")
    total_mark: Optional[str] = Field(None, alias="Totalmark")
    total: Optional[str] = Field(None, alias="Total")

    @validator("*", pre=True)
    def clean_values(cls, v):
        return _clean_optional_str(v)

    @property
    def marks_value(self) -> Optional[str]:
        """The feed reports marks under either Totalmark or Total"""
        return self.total_mark if self.total_mark is not None else self.total

    class Config:
        populate_by_name = True


class CanonicalRecord(BaseModel):
    """Feed-independent record shape handed to bucket construction"""

    semester_label: str = Field("", description="Free-text semester label")
    code: str = Field(..., description="Course code (display casing)")
    title: str = Field("", description="Course title")
    credit_hours: int = Field(0, ge=0, description="Leading integer of the credit descriptor")
    credit_hours_display: Optional[str] = Field(None, description="Raw credit descriptor")
    marks: float = Field(0.0, ge=0.0, description="Marks obtained")
    grade: Optional[str] = Field(None, description="Supplied letter grade")
    teacher: Optional[str] = Field(None, description="Teacher display name")
    source: CourseSource = Field(CourseSource.LMS, description="Feed the row came from")

    mid: Optional[str] = None
    assignment: Optional[str] = None
    final: Optional[str] = None
    practical: Optional[str] = None

    @validator("grade", pre=True)
    def normalize_grade(cls, v):
        v = _clean_optional_str(v)
        return v.upper() if v else None

    class Config:
        use_enum_values = True


class Course(BaseModel):
    """One exam/enrollment record"""

    code: str = Field(..., description="Course code, case preserved for display")
    title: str = Field("", description="Course title")
    teacher: Optional[str] = Field(None, description="Teacher display name")

    credit_hours: int = Field(0, ge=0, description="Credit hours (1-10 in the grading table)")
    credit_hours_display: Optional[str] = Field(None, description="Raw credit descriptor, e.g. '3(3-0)'")
    marks: float = Field(0.0, ge=0.0, description="Marks obtained (never capped)")
    grade: Optional[str] = Field(None, description="Letter grade, supplied or derived")
    quality_points: float = Field(0.0, ge=0.0, description="Quality points earned")

    # Owned by the aggregation engine
    is_repeated: bool = Field(False, description="Code appears 2+ times among non-deleted courses")
    is_extra_enrolled: bool = Field(False, description="Non-best attempt of a repeated code")

    is_deleted: bool = Field(False, description="Soft-removed; never counted")
    is_custom: bool = Field(False, description="Not from the primary feed")
    source: CourseSource = Field(CourseSource.LMS, description="Feed provenance")
    original_semester: Optional[str] = Field(None, description="Bucket the course was first assigned to")

    # Marks breakdown (display only)
    mid: Optional[str] = None
    assignment: Optional[str] = None
    final: Optional[str] = None
    practical: Optional[str] = None

    @validator("grade", pre=True)
    def normalize_grade(cls, v):
        v = _clean_optional_str(v)
        return v.upper() if v else None

    @property
    def normalized_code(self) -> str:
        """Code used for repeat grouping and registry lookups"""
        return normalize_course_code(self.code)

    @property
    def max_marks(self) -> int:
        """Maximum marks for the course (a 1 CH pass/fail course is out of 100)"""
        if self.grade == PASS_GRADE and self.credit_hours == 1:
            return PASS_COURSE_MAX_MARKS
        return self.credit_hours * MARKS_PER_CREDIT_HOUR

    @property
    def counts_toward_totals(self) -> bool:
        """Only non-deleted best attempts are counted"""
        return not self.is_deleted and not self.is_extra_enrolled

    class Config:
        use_enum_values = True


class Semester(BaseModel):
    """A named bucket of courses plus cached aggregates"""

    name: str = Field(..., description="Canonical semester name")
    original_name: Optional[str] = Field(None, description="Label as received from the feed")
    sort_key: str = Field(..., description="Lexicographically sortable chronological key")
    courses: List[Course] = Field(default_factory=list)

    # Cached aggregates, recomputed on every aggregation pass
    gpa: float = 0.0
    percentage: float = 0.0
    total_quality_points: float = 0.0
    total_credit_hours: int = 0
    total_marks_obtained: float = 0.0
    total_max_marks: int = 0

    is_forecast: bool = Field(False, description="User-created planning bucket")
    is_track_b_forecast: bool = Field(False, description="Planning bucket for the secondary track")

    @property
    def counted_courses(self) -> List[Course]:
        """Courses contributing to this semester's totals"""
        return [c for c in self.courses if c.counts_toward_totals]


class OverallTotals(BaseModel):
    """Totals across the selected semester set"""

    cgpa: float = 0.0
    percentage: float = 0.0
    total_quality_points: float = 0.0
    total_credit_hours: int = 0
    total_marks_obtained: float = 0.0
    total_max_marks: int = 0


class AggregationResult(BaseModel):
    """Refreshed semester map plus overall totals"""

    semesters: Dict[str, Semester] = Field(default_factory=dict)
    overall: OverallTotals = Field(default_factory=OverallTotals)

    def sorted_semesters(self) -> List[Semester]:
        """Semesters in chronological (sort key) order"""
        return sorted(self.semesters.values(), key=lambda s: s.sort_key)


class StudentProfile(BaseModel):
    """A student's imported transcript and its edit state"""

    id: str = Field(default_factory=lambda: f"profile_{int(datetime.now().timestamp() * 1000)}")
    student_name: Optional[str] = Field(None, description="Student name from the primary feed")
    registration: Optional[str] = Field(None, description="Registration number")
    display_name: Optional[str] = Field(None, description="User-chosen profile label")

    semesters: Dict[str, Semester] = Field(default_factory=dict)
    overall: OverallTotals = Field(default_factory=OverallTotals)

    track_mode: bool = Field(False, description="Profile contains secondary-track courses")

    created_at: datetime = Field(default_factory=datetime.now)
    last_modified: datetime = Field(default_factory=datetime.now)

    def touch(self):
        """Record a modification"""
        self.last_modified = datetime.now()


# Export all models
__all__ = [
    'CourseSource',
    'Track',
    'LmsRecord',
    'AttendanceRecord',
    'CanonicalRecord',
    'Course',
    'Semester',
    'OverallTotals',
    'AggregationResult',
    'StudentProfile',
]
