"""
Pytest Configuration and Fixtures

Provides common fixtures for all tests including:
- Course / semester factories
- Sample transcripts with repeats and secondary-track courses
- Raw feed rows
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cgpa_engine.data_models import Course, Semester
from cgpa_engine.grading import calculate_quality_points, resolve_grade
from cgpa_engine.semester_normalizer import normalize


def make_course(code, marks, credit_hours=3, grade=None, semester=None, **kwargs):
    """Course with quality points and grade computed the way import does"""
    return Course(
        code=code,
        title=kwargs.pop("title", code),
        credit_hours=credit_hours,
        marks=marks,
        grade=resolve_grade(marks, credit_hours, grade),
        quality_points=calculate_quality_points(marks, credit_hours, grade),
        original_semester=semester,
        **kwargs,
    )


def make_semester(label, courses=(), **kwargs):
    """Semester bucket for a raw label"""
    normalized = normalize(label)
    return Semester(
        name=normalized.name,
        original_name=label,
        sort_key=normalized.sort_key,
        courses=list(courses),
        **kwargs,
    )


@pytest.fixture
def course_factory():
    return make_course


@pytest.fixture
def semester_factory():
    return make_semester


@pytest.fixture
def repeated_course_semesters():
    """CS-101 failed at 30 marks in Winter, retaken at 50 marks in Spring"""
    winter = make_semester("Winter 2020-2021", [
        make_course("CS-101", 30, semester="Winter 2020"),
        make_course("MTH-101", 42, semester="Winter 2020"),
    ])
    spring = make_semester("Spring 2020-2021", [
        make_course("cs-101 ", 50, semester="Spring 2021"),
        make_course("ENG-101", 36, credit_hours=2, semester="Spring 2021"),
    ])
    return {winter.name: winter, spring.name: spring}


@pytest.fixture
def dual_track_semesters():
    """Main-program courses mixed with B.Ed (EDU-*) courses"""
    winter = make_semester("Winter 2020-2021", [
        make_course("CS-101", 48, semester="Winter 2020"),
        make_course("EDU-501", 36, semester="Winter 2020"),
    ])
    spring = make_semester("Spring 2020-2021", [
        make_course("CS-102", 42, semester="Spring 2021"),
    ])
    summer = make_semester("Summer 2020-2021", [
        make_course("EDU-503", 48, semester="Summer 2021"),
    ])
    return {winter.name: winter, spring.name: spring, summer.name: summer}


@pytest.fixture
def lms_rows():
    """Primary-feed rows as returned by the result scraper"""
    return [
        {
            "StudentName": "Test Student",
            "RegistrationNo": "2020-ag-1234",
            "Semester": "Winter 2020-2021",
            "CourseCode": "CS-101",
            "CourseTitle": "Introduction to Computing",
            "CreditHours": "3(2-1)",
            "Total": "30",
            "Grade": "",
            "TeacherName": "Dr. Example",
        },
        {
            "StudentName": "Test Student",
            "RegistrationNo": "2020-ag-1234",
            "Semester": "Winter 2020-2021",
            "CourseCode": "MTH-101",
            "CourseTitle": "Calculus",
            "CreditHours": "3(3-0)",
            "Total": "42",
            "Grade": "B",
        },
        {
            "StudentName": "Test Student",
            "RegistrationNo": "2020-ag-1234",
            "Semester": "spring 2020-21",
            "CourseCode": "CS-101",
            "CourseTitle": "Introduction to Computing",
            "CreditHours": "3(2-1)",
            "Total": "50",
            "Grade": "A",
        },
        {
            "StudentName": "Test Student",
            "RegistrationNo": "2020-ag-1234",
            "Semester": "Spring 2020-2021",
            "CourseCode": "EDU-501",
            "CourseTitle": "Foundations of Education",
            "CreditHours": "3(3-0)",
            "Total": "45",
            "Grade": "B",
        },
    ]
