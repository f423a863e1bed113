"""
Per-exam subject statistics.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from edugrade.core.models import GradeRecord


@dataclass(frozen=True)
class SubjectStats:
    subject: str
    average: int
    max: float
    min: float
    count: int


def exam_subject_stats(records: Iterable[GradeRecord]) -> list[SubjectStats]:
    """Average (rounded half up to a whole number), max, min and count per subject.

    Subjects appear in the order they are first seen. Returns an empty list
    when there are no records.
    """
    totals: dict[str, list[float]] = {}
    for record in records:
        for grade in record.grades:
            totals.setdefault(grade["subject"], []).append(float(grade["score"]))

    return [
        SubjectStats(
            subject=subject,
            average=math.floor(sum(scores) / len(scores) + 0.5),
            max=max(scores),
            min=min(scores),
            count=len(scores),
        )
        for subject, scores in totals.items()
    ]
