"""
PROFILE EDITOR - Mutations on a student profile

Every edit follows the same rule: change the stored courses/semesters, then
recompute everything through the aggregation engine and replace the
profile's semester map and totals with the engine's result. No edit touches
repeat flags or cached totals directly.

SUPPORTED EDITS:
✅ Delete / undo delete of a course (soft removal)
✅ Move a course to another semester
✅ Manually add a course
✅ Add forecast (what-if) semesters for either track
✅ Remove a semester and restore it during the undo window
"""

import logging
from typing import Optional, Union

from .aggregation_engine import AggregationEngine, aggregate
from .data_models import (
    AggregationResult,
    CanonicalRecord,
    Course,
    CourseSource,
    Semester,
    StudentProfile,
)
from .data_processor import build_course, ensure_semester, parse_credit_hours, parse_marks
from .semester_normalizer import forecast_name, forecast_sort_key, parse_forecast_sequence

logger = logging.getLogger(__name__)


def refresh(profile: StudentProfile) -> AggregationResult:
    """Recompute the profile and store the result on it"""
    result = aggregate(profile.semesters)
    profile.semesters = result.semesters
    profile.overall = result.overall
    profile.touch()
    return result


def _get_semester(profile: StudentProfile, name: str) -> Semester:
    try:
        return profile.semesters[name]
    except KeyError:
        raise KeyError(f"Unknown semester: {name!r}") from None


def _get_course(semester: Semester, index: int) -> Course:
    if not 0 <= index < len(semester.courses):
        raise IndexError(f"No course at position {index} in {semester.name!r}")
    return semester.courses[index]


def toggle_course_deleted(profile: StudentProfile, semester_name: str, index: int) -> AggregationResult:
    """Soft-delete a course, or restore it if already deleted"""
    course = _get_course(_get_semester(profile, semester_name), index)
    course.is_deleted = not course.is_deleted
    logger.info(f"{'🗑️ Deleted' if course.is_deleted else '↩️ Restored'} {course.code} in {semester_name}")
    return refresh(profile)


def set_course_deleted(profile: StudentProfile, semester_name: str, index: int, deleted: bool) -> AggregationResult:
    """Set the deletion state of a course explicitly"""
    course = _get_course(_get_semester(profile, semester_name), index)
    course.is_deleted = deleted
    return refresh(profile)


def move_course(profile: StudentProfile, source: str, index: int, destination: str) -> AggregationResult:
    """
    Reassign a course to another semester

    The course is removed from the source list and appended to the
    destination list. Moving within the same semester does nothing. Deleted
    courses cannot be moved.
    """
    source_semester = _get_semester(profile, source)
    destination_semester = _get_semester(profile, destination)
    course = _get_course(source_semester, index)

    if source == destination:
        return refresh(profile)
    if course.is_deleted:
        raise ValueError(f"Cannot move deleted course {course.code}")

    source_semester.courses.pop(index)
    destination_semester.courses.append(course)
    logger.info(f"↔️ Moved {course.code} from {source} to {destination}")
    return refresh(profile)


def add_manual_course(
    profile: StudentProfile,
    semester_label: str,
    code: str,
    credit_hours: Union[int, str],
    marks: Union[float, str],
    grade: Optional[str] = None,
    title: Optional[str] = None,
) -> AggregationResult:
    """
    Add a manually entered course, creating its semester bucket if needed

    Credit hours and marks are coerced like feed values: "3(3-0)" counts as
    3 credit hours and unparsable marks count as 0.
    """
    if semester_label in profile.semesters:
        semester = profile.semesters[semester_label]
    else:
        semester = ensure_semester(profile.semesters, semester_label)

    record = CanonicalRecord(
        semester_label=semester.name,
        code=code.strip(),
        title=title or code.strip(),
        credit_hours=parse_credit_hours(credit_hours),
        credit_hours_display=None if credit_hours is None else str(credit_hours),
        marks=parse_marks(marks),
        grade=grade,
        source=CourseSource.MANUAL,
    )
    semester.courses.append(build_course(record, semester.name))
    logger.info(f"➕ Added {record.code} ({record.credit_hours} CH, {record.marks} marks) to {semester.name}")
    return refresh(profile)


def next_forecast_sequence(profile: StudentProfile) -> int:
    """Lowest forecast number not already taken by any bucket name"""
    used = {parse_forecast_sequence(name) for name in profile.semesters}
    sequence = 1
    while sequence in used:
        sequence += 1
    return sequence


def add_forecast_semester(profile: StudentProfile, secondary: bool = False) -> Semester:
    """Create an empty planning bucket for the main program or the secondary track"""
    sequence = next_forecast_sequence(profile)
    semester = Semester(
        name=forecast_name(sequence),
        original_name=forecast_name(sequence),
        sort_key=forecast_sort_key(sequence),
        is_forecast=True,
        is_track_b_forecast=secondary,
    )
    profile.semesters[semester.name] = semester
    refresh(profile)
    logger.info(f"🔮 Added {semester.name}{' (secondary track)' if secondary else ''}")
    return profile.semesters[semester.name]


def remove_semester(profile: StudentProfile, name: str) -> Semester:
    """Remove a semester bucket; pass the returned semester to restore_semester to undo"""
    semester = _get_semester(profile, name)
    del profile.semesters[name]
    refresh(profile)
    logger.info(f"🗑️ Removed semester {name} ({len(semester.courses)} courses)")
    return semester


def restore_semester(profile: StudentProfile, semester: Semester) -> AggregationResult:
    """Reinsert a removed semester bucket"""
    if semester.name in profile.semesters:
        raise ValueError(f"Semester {semester.name!r} already exists")
    profile.semesters[semester.name] = semester.copy(deep=True)
    logger.info(f"↩️ Restored semester {semester.name}")
    return refresh(profile)


def profile_summary(
    profile: StudentProfile,
    secondary: Optional[bool] = None,
    engine: Optional[AggregationEngine] = None,
) -> AggregationResult:
    """
    Totals for display

    Profiles in track mode are summarized one track at a time, the main
    program unless secondary is given. Other profiles are summarized over
    every course unless a track is requested.
    """
    engine = engine or AggregationEngine()
    if secondary is None and profile.track_mode:
        secondary = False
    return engine.aggregate(profile.semesters, secondary=secondary)
