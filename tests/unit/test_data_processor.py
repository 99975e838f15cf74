"""
Unit Tests for Data Processor

Tests for:
- Credit-hour / marks coercion
- Feed adapters
- Semester bucket construction
- Secondary-feed merge deduplication
- CSV / DataFrame loading and profile assembly
"""

import pandas as pd
import pytest

from cgpa_engine.data_models import AttendanceRecord, CourseSource, LmsRecord
from cgpa_engine.data_processor import (
    TranscriptDataProcessor,
    build_course,
    build_semesters,
    from_attendance_record,
    from_lms_record,
    is_duplicate,
    merge_secondary_feed,
    parse_credit_hours,
    parse_marks,
)


class TestCoercion:

    @pytest.mark.parametrize("descriptor,expected", [
        ("3(3-0)", 3),
        ("4(3-1)", 4),
        ("10", 10),
        (2, 2),
        (3.0, 3),
        ("", 0),
        ("n/a", 0),
        (None, 0),
        (float("nan"), 0),
    ])
    def test_parse_credit_hours(self, descriptor, expected):
        assert parse_credit_hours(descriptor) == expected

    @pytest.mark.parametrize("value,expected", [
        ("45.5", 45.5),
        (" 30 ", 30.0),
        (52, 52.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        (float("nan"), 0.0),
        ("-4", 0.0),
    ])
    def test_parse_marks(self, value, expected):
        assert parse_marks(value) == expected


class TestAdapters:

    def test_lms_row(self, lms_rows):
        record = from_lms_record(lms_rows[0])

        assert record.code == "CS-101"
        assert record.semester_label == "Winter 2020-2021"
        assert record.credit_hours == 3
        assert record.credit_hours_display == "3(2-1)"
        assert record.marks == 30.0
        assert record.grade is None
        assert record.teacher == "Dr. Example"
        assert record.source == CourseSource.LMS

    def test_lms_row_model_instance(self):
        row = LmsRecord(Semester="Fall 2019", CourseCode=" bio-101 ", CreditHours="2(1-1)", Total=30, Grade="a")
        record = from_lms_record(row)
        assert record.code == "bio-101"
        assert record.marks == 30.0
        assert record.grade == "A"

    def test_attendance_row_defaults(self):
        record = from_attendance_record({"Semester": "Spring21", "CourseCode": "CS-101", "Totalmark": "40"})

        assert record.credit_hours == 3
        assert record.credit_hours_display == "3(3-0)*"
        assert record.marks == 40.0
        assert record.source == CourseSource.ATTENDANCE

    def test_attendance_marks_under_total(self):
        row = AttendanceRecord(Semester="Spring21", CourseCode="CS-101", Total="38")
        assert from_attendance_record(row).marks == 38.0

    def test_build_course_derives_grade(self, lms_rows):
        course = build_course(from_lms_record(lms_rows[0]), "Winter 2020")

        assert course.grade == "C"
        assert course.quality_points == pytest.approx(5.25)
        assert course.original_semester == "Winter 2020"
        assert course.is_custom is False

    def test_build_course_keeps_supplied_grade(self, lms_rows):
        course = build_course(from_lms_record(lms_rows[1]), "Winter 2020")
        assert course.grade == "B"
        assert course.quality_points == pytest.approx(9.75)


class TestBuildSemesters:

    def test_labels_bucketed_by_canonical_name(self, lms_rows):
        semesters = build_semesters(from_lms_record(row) for row in lms_rows)

        assert list(semesters) == ["Winter 2020", "Spring 2021"]
        assert semesters["Spring 2021"].original_name == "spring 2020-21"
        assert semesters["Spring 2021"].sort_key == "2020-2"
        assert [c.code for c in semesters["Winter 2020"].courses] == ["CS-101", "MTH-101"]

    def test_bad_rows_contribute_nothing(self):
        rows = [{"Semester": "Fall 2019", "CourseCode": "X-1", "CreditHours": "??", "Total": "oops"}]
        semesters = build_semesters(from_lms_record(row) for row in rows)

        course = semesters["Fall 2019"].courses[0]
        assert course.credit_hours == 0
        assert course.marks == 0.0
        assert course.quality_points == 0.0
        assert course.grade == "F"

    def test_unknown_label_kept(self):
        rows = [{"Semester": "extra session", "CourseCode": "X-1", "CreditHours": "1", "Total": "10"}]
        semesters = build_semesters(from_lms_record(row) for row in rows)
        assert "Extra session" in semesters

    def test_forecast_label_creates_forecast_bucket(self):
        rows = [{"Semester": "Forecast 2", "CourseCode": "X-1", "CreditHours": "3", "Total": "48"}]
        semesters = build_semesters(from_lms_record(row) for row in rows)
        assert semesters["Forecast 2"].is_forecast is True
        assert semesters["Forecast 2"].sort_key == "9999-02"


class TestSecondaryMerge:

    def _existing(self, lms_rows):
        return build_semesters(from_lms_record(row) for row in lms_rows[:2])

    def test_identical_attempt_skipped(self, lms_rows):
        """Same code, marks within 0.1 and same resolved grade"""
        semesters = self._existing(lms_rows)
        merged, added = merge_secondary_feed(
            semesters, [{"Semester": "Winter 2020-21", "CourseCode": "cs-101", "Totalmark": "30.05"}]
        )
        assert added == 0
        assert len(merged["Winter 2020"].courses) == 2

    def test_different_marks_added_as_new_attempt(self, lms_rows):
        semesters = self._existing(lms_rows)
        merged, added = merge_secondary_feed(
            semesters, [{"Semester": "Spring21", "CourseCode": "CS-101", "Totalmark": "50"}]
        )

        assert added == 1
        new_course = merged["Spring 2021"].courses[0]
        assert new_course.is_custom is True
        assert new_course.source == CourseSource.ATTENDANCE
        assert new_course.grade == "A"
        assert "Spring 2021" not in semesters

    def test_grade_mismatch_is_not_duplicate(self):
        """Supplied LMS grade A vs derived attendance grade B for the same marks"""
        semesters = build_semesters([from_lms_record({
            "Semester": "Winter 2020-2021", "CourseCode": "MTH-101",
            "CreditHours": "3(3-0)", "Total": "42", "Grade": "A",
        })])
        merged, added = merge_secondary_feed(
            semesters, [{"Semester": "Winter 2020-21", "CourseCode": "MTH-101", "Total": "42"}]
        )
        assert added == 1
        assert merged["Winter 2020"].courses[1].grade == "B"

    def test_duplicates_within_feed_added_once(self, lms_rows):
        semesters = self._existing(lms_rows)
        row = {"Semester": "Summer 2021", "CourseCode": "STA-101", "Totalmark": "40"}
        _, added = merge_secondary_feed(semesters, [row, dict(row)])
        assert added == 1

    def test_deleted_courses_do_not_block_import(self, lms_rows):
        semesters = self._existing(lms_rows)
        semesters["Winter 2020"].courses[0].is_deleted = True
        _, added = merge_secondary_feed(
            semesters, [{"Semester": "Winter 2020-21", "CourseCode": "CS-101", "Totalmark": "30"}]
        )
        assert added == 1

    def test_is_duplicate_tolerance(self, course_factory):
        existing = course_factory("CS-101", 40)
        assert is_duplicate(course_factory("cs-101", 40.05), existing)
        assert not is_duplicate(course_factory("CS-101", 40.3), existing)
        assert not is_duplicate(course_factory("CS-102", 40), existing)


class TestTranscriptDataProcessor:

    def test_build_profile_from_dataframe(self, lms_rows):
        processor = TranscriptDataProcessor()
        assert processor.load_lms_data(pd.DataFrame(lms_rows))

        profile = processor.build_profile(display_name="Me")

        assert profile.student_name == "Test Student"
        assert profile.registration == "2020-ag-1234"
        assert profile.display_name == "Me"
        assert profile.track_mode is True
        assert set(profile.semesters) == {"Winter 2020", "Spring 2021"}

        winter_cs = profile.semesters["Winter 2020"].courses[0]
        assert winter_cs.is_extra_enrolled is True
        # MTH-101 + CS-101 retake + EDU-501
        assert profile.overall.total_credit_hours == 9

    def test_load_csv(self, tmp_path, lms_rows):
        csv_path = tmp_path / "results.csv"
        pd.DataFrame(lms_rows).to_csv(csv_path, index=False)

        processor = TranscriptDataProcessor()
        assert processor.load_lms_data(csv_path)

        profile = processor.build_profile()
        cs = profile.semesters["Winter 2020"].courses[0]
        assert cs.grade == "C"
        assert cs.teacher == "Dr. Example"
        assert profile.semesters["Winter 2020"].courses[1].teacher is None

    def test_missing_columns(self):
        processor = TranscriptDataProcessor()
        frame = pd.DataFrame([{"Semester": "Fall 2019", "CourseCode": "X-1"}])

        assert processor.load_lms_data(frame) is False
        assert any("missing columns" in e for e in processor.validation_errors)
        assert "ERRORS" in processor.generate_validation_report()

    def test_missing_file(self, tmp_path):
        processor = TranscriptDataProcessor()
        assert processor.load_lms_data(tmp_path / "nope.csv") is False
        assert processor.validation_errors

    def test_quality_warnings(self):
        processor = TranscriptDataProcessor()
        frame = pd.DataFrame([
            {"Semester": "Fall 2019", "CourseCode": "X-1", "CreditHours": "abc", "Total": "n/a"},
            {"Semester": "Fall 2019", "CourseCode": "", "CreditHours": "3", "Total": "40"},
        ])
        assert processor.load_lms_data(frame)

        warnings = " ".join(processor.validation_warnings)
        assert "non-numeric marks" in warnings
        assert "credit hours" in warnings
        assert "without a course code" in warnings

        profile = processor.build_profile()
        assert [c.code for c in profile.semesters["Fall 2019"].courses] == ["X-1"]

    def test_attendance_merge(self, lms_rows):
        processor = TranscriptDataProcessor()
        processor.load_lms_data(pd.DataFrame(lms_rows))
        assert processor.load_attendance_data(pd.DataFrame([
            {"Semester": "Winter 2020-2021", "CourseCode": "CS-101", "CourseName": "Computing", "Totalmark": "30"},
            {"Semester": "Summer 2020-2021", "CourseCode": "CS-201", "CourseName": "Data Structures", "Totalmark": "45"},
        ]))

        profile = processor.build_profile()

        assert "Summer 2021" in profile.semesters
        assert len(profile.semesters["Winter 2020"].courses) == 2
        assert "Secondary Feed Records: 2" in processor.generate_validation_report()

    def test_attendance_needs_marks_column(self):
        processor = TranscriptDataProcessor()
        frame = pd.DataFrame([{"Semester": "Fall 2019", "CourseCode": "X-1"}])
        assert processor.load_attendance_data(frame) is False

    def test_clean_report(self, lms_rows):
        processor = TranscriptDataProcessor()
        processor.load_lms_data(pd.DataFrame(lms_rows))
        report = processor.generate_validation_report()
        assert "All validation checks passed" in report
        assert "Primary Feed Records: 4" in report

    def test_report_summarizes_built_profile(self, lms_rows):
        processor = TranscriptDataProcessor()
        processor.load_lms_data(pd.DataFrame(lms_rows))
        assert "Semesters:" not in processor.generate_validation_report()

        processor.build_profile()
        report = processor.generate_validation_report()

        assert "Semesters: 2" in report
        assert "Courses: 4 (1 superseded attempts, 0 from secondary feed)" in report
        assert "over 9 credit hours" in report
