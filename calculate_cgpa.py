#!/usr/bin/env python3
"""
Simple wrapper to print a student's semester GPAs and CGPA from CSV exports
Usage: python3 calculate_cgpa.py <results_csv> [attendance_csv] [--secondary | --main]
"""

import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from cgpa_engine.aggregation_engine import AggregationEngine
from cgpa_engine.data_processor import TranscriptDataProcessor
from cgpa_engine.profile_editor import profile_summary

logging.basicConfig(level=logging.INFO)

args = [arg for arg in sys.argv[1:] if not arg.startswith("--")]
flags = {arg for arg in sys.argv[1:] if arg.startswith("--")}

if not args:
    print("ERROR: Missing arguments")
    print("Usage: python3 calculate_cgpa.py <results_csv> [attendance_csv] [--secondary | --main]")
    sys.exit(1)

secondary = None
if "--secondary" in flags:
    secondary = True
elif "--main" in flags:
    secondary = False

processor = TranscriptDataProcessor()
success = processor.load_lms_data(Path(args[0]).expanduser())
if success and len(args) > 1:
    success = processor.load_attendance_data(Path(args[1]).expanduser())

print(processor.generate_validation_report())
if not success:
    print("❌ Data loading failed!")
    sys.exit(1)

profile = processor.build_profile()
engine = AggregationEngine(processor.classifier)
result = profile_summary(profile, secondary=secondary, engine=engine)

print(f"\n🎓 {profile.student_name or 'Unknown'} ({profile.registration or '-'})")
if profile.track_mode:
    print(f"   Track: {'secondary' if secondary else 'main program'}")
print("=" * 60)
for semester in result.sorted_semesters():
    print(f"\n📅 {semester.name}: GPA {semester.gpa:.3f} | {semester.percentage:.2f}% | {semester.total_credit_hours} CH")
    for course in semester.courses:
        status = ""
        if course.is_deleted:
            status = " [deleted]"
        elif course.is_extra_enrolled:
            status = " [repeat - not counted]"
        elif course.is_repeated:
            status = " [best attempt]"
        print(
            f"   {course.code:<10} {course.credit_hours} CH  {course.marks:>6.1f}  "
            f"{course.grade or '-':<2} {course.quality_points:>6.2f} QP{status}"
        )

overall = result.overall
print("\n" + "=" * 60)
print(f"CGPA:          {overall.cgpa:.3f}")
print(f"Percentage:    {overall.percentage:.2f}%")
print(f"Quality Points: {overall.total_quality_points:.2f}")
print(f"Credit Hours:  {overall.total_credit_hours}")
print(f"Marks:         {overall.total_marks_obtained:.1f} / {overall.total_max_marks}")

print(f"\n📝 Calculation Log:")
for log_entry in engine.get_calculation_log():
    print(f"  {log_entry}")
