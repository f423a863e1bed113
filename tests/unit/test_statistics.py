"""
Tests for per-exam subject statistics.
"""

from uuid import uuid4

from edugrade.core.models import GradeRecord
from edugrade.grading import SubjectStats, exam_subject_stats


def record(*grades: tuple[str, float]) -> GradeRecord:
    return GradeRecord(
        school_id=uuid4(),
        student_id=uuid4(),
        exam_id=uuid4(),
        grades=[{"subject": s, "score": score, "full_score": 100} for s, score in grades],
    )


def test_no_records():
    assert exam_subject_stats([]) == []


def test_average_max_min_count():
    stats = exam_subject_stats(
        [
            record(("Math", 90), ("English", 70)),
            record(("Math", 81)),
            record(("Math", 60), ("English", 95)),
        ]
    )

    assert stats == [
        SubjectStats(subject="Math", average=77, max=90.0, min=60.0, count=3),
        SubjectStats(subject="English", average=83, max=95.0, min=70.0, count=2),
    ]


def test_average_rounds_half_up():
    stats = exam_subject_stats([record(("Math", 80)), record(("Math", 81))])

    # 80.5 -> 81 (not banker's rounding to 80)
    assert stats[0].average == 81


def test_subjects_in_first_seen_order():
    stats = exam_subject_stats([record(("Physics", 50)), record(("Language", 60), ("Physics", 70))])

    assert [s.subject for s in stats] == ["Physics", "Language"]
