"""
GRADING - Letter grades and quality points from marks and credit hours

QUALITY POINT FORMULA (per course):
Marks are examined out of credit_hours x 20 and capped there.
    percentage >= 80            -> credit_hours x 4.0
    40 <= percentage < 80       -> credit_hours x (1 + (percentage - 40) x 3/40)
    percentage < 40             -> 0
A supplied F earns 0 and a supplied P earns the full credit_hours x 4.0.

GRADE MAPPING (when the feed supplies no grade):
A >= 80%, B >= 65%, C >= 50%, D >= 40%, F below

EDGE CASES HANDLED:
- Zero credit hours: grade F, 0 quality points
- Marks above the maximum: capped for the formula, stored uncapped
- Credit hours outside the 1-10 table: the closed form still applies
"""

import logging
from typing import Dict, Optional

from .config import (
    FAIL_GRADE,
    FULL_MARKS_PERCENTAGE,
    GRADE_THRESHOLDS,
    MARKS_PER_CREDIT_HOUR,
    MAX_GRADE_POINT,
    PASS_GRADE,
    PASSING_PERCENTAGE,
    QUALITY_POINT_PRECISION,
)

logger = logging.getLogger(__name__)

KNOWN_GRADES = frozenset([letter for letter, _ in GRADE_THRESHOLDS] + [FAIL_GRADE, PASS_GRADE])

# Marks needed for each grade by credit hours (max marks = CH x 20)
GRADING_SCALE: Dict[int, Dict[str, int]] = {
    10: {"A": 160, "B": 130, "C": 100, "D": 80},
    9: {"A": 144, "B": 117, "C": 90, "D": 72},
    8: {"A": 128, "B": 104, "C": 80, "D": 64},
    7: {"A": 112, "B": 91, "C": 70, "D": 56},
    6: {"A": 96, "B": 78, "C": 60, "D": 48},
    5: {"A": 80, "B": 65, "C": 50, "D": 40},
    4: {"A": 64, "B": 52, "C": 40, "D": 32},
    3: {"A": 48, "B": 39, "C": 30, "D": 24},
    2: {"A": 32, "B": 26, "C": 20, "D": 16},
    1: {"A": 16, "B": 13, "C": 10, "D": 8},
}


def max_marks_for(credit_hours: int) -> int:
    """Maximum examinable marks for a course"""
    return credit_hours * MARKS_PER_CREDIT_HOUR


def marks_percentage(marks: float, credit_hours: int) -> float:
    """Marks as a percentage of the course maximum (0 for zero credit hours)"""
    max_marks = max_marks_for(credit_hours)
    if max_marks <= 0:
        return 0.0
    return (marks / max_marks) * 100


def grade_thresholds(credit_hours: int) -> Dict[str, float]:
    """
    Minimum marks for each letter grade

    Uses the published table for 1-10 credit hours and the percentage
    thresholds for anything else.
    """
    if credit_hours in GRADING_SCALE:
        return dict(GRADING_SCALE[credit_hours])
    max_marks = max_marks_for(credit_hours)
    return {letter: max_marks * pct / 100 for letter, pct in GRADE_THRESHOLDS}


def determine_grade(marks: float, credit_hours: int) -> str:
    """Derive a letter grade from marks"""
    if credit_hours <= 0:
        return FAIL_GRADE

    percentage = marks_percentage(marks, credit_hours)
    for letter, threshold in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return letter
    return FAIL_GRADE


def resolve_grade(marks: float, credit_hours: int, grade: Optional[str] = None) -> str:
    """Supplied grade (normalized) if present, otherwise the derived one"""
    if grade is not None and str(grade).strip():
        grade = str(grade).strip().upper()
        if grade not in KNOWN_GRADES:
            logger.warning(f"⚠️ Unknown grade {grade!r}, quality points follow the marks")
        return grade
    return determine_grade(marks, credit_hours)


def calculate_quality_points(marks: float, credit_hours: int, grade: Optional[str] = None) -> float:
    """
    Quality points earned for one course

    Args:
        marks: Marks obtained (values above the maximum are capped)
        credit_hours: Course credit hours
        grade: Optional supplied letter grade (F and P short-circuit)

    Returns:
        Quality points in [0, credit_hours x 4.0], rounded to 2 decimals
    """
    if grade is not None:
        grade = str(grade).strip().upper()
    if grade == FAIL_GRADE:
        return 0.0

    if credit_hours <= 0:
        return 0.0

    ceiling = credit_hours * MAX_GRADE_POINT
    if grade == PASS_GRADE:
        return ceiling

    max_marks = max_marks_for(credit_hours)
    marks = min(max(marks, 0.0), max_marks)
    percentage = (marks / max_marks) * 100

    if percentage >= FULL_MARKS_PERCENTAGE:
        return ceiling
    if percentage < PASSING_PERCENTAGE:
        return 0.0

    # 40% -> 1.0 grade point, 80% -> 4.0 grade points
    span = FULL_MARKS_PERCENTAGE - PASSING_PERCENTAGE
    grade_point = 1 + (percentage - PASSING_PERCENTAGE) * (MAX_GRADE_POINT - 1) / span
    grade_point = min(grade_point, MAX_GRADE_POINT)

    return round(grade_point * credit_hours, QUALITY_POINT_PRECISION)
