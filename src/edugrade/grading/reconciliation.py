"""
Roster Reconciliation Engine

Turns a batch of spreadsheet score rows into consistent roster changes for
one school: grade levels, classes and students are resolved by exact name
(or student number) and created on a miss when the actor is allowed to,
otherwise the row is skipped. Each accepted row yields one GradeRecord.

The engine is a pure batch transformer. Input collections are never
mutated; everything it would write is returned in a ReconciliationResult
and committed (or discarded) by the caller in one transaction.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any
from uuid import UUID

from edugrade.core.models import GradeLevel, GradeRecord, Role, SchoolClass, Student
from edugrade.core.validation import ValidationError, parse_score

from .subjects import FULL_SCORE, SUBJECT_ORDER, Subject

logger = logging.getLogger(__name__)

UNASSIGNED_GRADE = "Unassigned Grade"
UNASSIGNED_CLASS = "Unassigned Class"


class ImportPermissionError(Exception):
    """Raised when the actor's role may not import scores at all."""

    pass


class SkipReason(StrEnum):
    BLANK_IDENTITY = "blank_identity"
    INVALID_SCORE = "invalid_score"
    UNKNOWN_GRADE = "unknown_grade"
    UNKNOWN_CLASS = "unknown_class"
    CLASS_NOT_PERMITTED = "class_not_permitted"
    UNKNOWN_STUDENT = "unknown_student"


@dataclass(frozen=True)
class ScoreRow:
    """One spreadsheet row: who the scores belong to and the raw subject values."""

    student_no: str
    name: str
    grade_name: str = UNASSIGNED_GRADE
    class_name: str = UNASSIGNED_CLASS
    scores: Mapping[Subject, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ImportActor:
    """Who is importing, and (for teachers) which classes they may write to.

    ``permitted_class_ids=None`` means no class restriction was supplied.
    """

    role: Role
    permitted_class_ids: frozenset[UUID] | None = None

    @classmethod
    def admin(cls) -> ImportActor:
        return cls(role=Role.ADMIN)

    @classmethod
    def teacher(cls, permitted_class_ids: Iterable[UUID] | None = None) -> ImportActor:
        ids = frozenset(permitted_class_ids) if permitted_class_ids is not None else None
        return cls(role=Role.TEACHER, permitted_class_ids=ids)

    @property
    def can_create_roster(self) -> bool:
        """Only administrators mint grade levels, classes and enrolments."""
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class StudentUpdate:
    """Field refresh for an existing student (last row wins)."""

    name: str
    grade_id: UUID
    class_id: UUID


@dataclass
class ReconciliationResult:
    """Everything one reconciliation pass would write."""

    created_grade_levels: list[GradeLevel] = field(default_factory=list)
    created_classes: list[SchoolClass] = field(default_factory=list)
    created_students: list[Student] = field(default_factory=list)
    student_updates: dict[UUID, StudentUpdate] = field(default_factory=dict)
    grade_records: list[GradeRecord] = field(default_factory=list)
    total: int = 0
    skip_reasons: Counter[SkipReason] = field(default_factory=Counter)

    @property
    def succeeded(self) -> int:
        return len(self.grade_records)

    @property
    def skipped(self) -> int:
        return sum(self.skip_reasons.values())


class _RowSkipped(Exception):
    def __init__(self, reason: SkipReason):
        super().__init__(reason.value)
        self.reason = reason


class RosterReconciler:
    """Resolve-or-create-or-skip matching for one school and one actor.

    Lookups run against the existing collections plus whatever this batch
    has created so far, so a grade level created by row 1 is found by row 2.
    """

    def __init__(
        self,
        *,
        school_id: UUID,
        actor: ImportActor,
        grade_levels: Sequence[GradeLevel],
        classes: Sequence[SchoolClass],
        students: Sequence[Student],
    ):
        if actor.role not in (Role.ADMIN, Role.TEACHER):
            raise ImportPermissionError(f"Role {actor.role} cannot import scores")

        self.school_id = school_id
        self.actor = actor

        self._grades_by_name: dict[str, GradeLevel] = {}
        for grade in grade_levels:
            self._grades_by_name.setdefault(grade.name, grade)

        self._classes_by_key: dict[tuple[UUID, str], SchoolClass] = {}
        for school_class in classes:
            self._classes_by_key.setdefault((school_class.grade_id, school_class.name), school_class)

        self._students_by_no: dict[str, Student] = {}
        for student in students:
            self._students_by_no.setdefault(student.student_no, student)

        self._existing_student_ids = {student.id for student in students}

    def reconcile(self, rows: Iterable[ScoreRow]) -> ReconciliationResult:
        """Process rows in input order and return the pending changes."""
        result = ReconciliationResult()

        for index, row in enumerate(rows, start=1):
            result.total += 1
            try:
                record = self._reconcile_row(row, result)
            except _RowSkipped as skip:
                result.skip_reasons[skip.reason] += 1
                logger.debug(f"Row {index} skipped: {skip.reason.value}")
                continue
            result.grade_records.append(record)

        return result

    def _reconcile_row(self, row: ScoreRow, result: ReconciliationResult) -> GradeRecord:
        student_no = (row.student_no or "").strip()
        name = (row.name or "").strip()
        if not student_no or not name:
            raise _RowSkipped(SkipReason.BLANK_IDENTITY)

        # Scores are checked before any get-or-create so a bad row leaves no trace
        subject_grades = self._subject_grades(row.scores)

        grade = self._resolve_grade(row.grade_name or UNASSIGNED_GRADE, result)
        school_class = self._resolve_class(grade, row.class_name or UNASSIGNED_CLASS, result)

        if (
            self.actor.role == Role.TEACHER
            and self.actor.permitted_class_ids is not None
            and school_class.id not in self.actor.permitted_class_ids
        ):
            raise _RowSkipped(SkipReason.CLASS_NOT_PERMITTED)

        student = self._resolve_student(student_no, name, grade, school_class, result)

        return GradeRecord(
            school_id=self.school_id,
            student_id=student.id,
            grades=subject_grades,
        )

    def _resolve_grade(self, grade_name: str, result: ReconciliationResult) -> GradeLevel:
        grade = self._grades_by_name.get(grade_name)
        if grade is not None:
            return grade
        if not self.actor.can_create_roster:
            raise _RowSkipped(SkipReason.UNKNOWN_GRADE)

        grade = GradeLevel(school_id=self.school_id, name=grade_name)
        self._grades_by_name[grade_name] = grade
        result.created_grade_levels.append(grade)
        return grade

    def _resolve_class(
        self, grade: GradeLevel, class_name: str, result: ReconciliationResult
    ) -> SchoolClass:
        key = (grade.id, class_name)
        school_class = self._classes_by_key.get(key)
        if school_class is not None:
            return school_class
        if not self.actor.can_create_roster:
            raise _RowSkipped(SkipReason.UNKNOWN_CLASS)

        school_class = SchoolClass(school_id=self.school_id, grade_id=grade.id, name=class_name)
        self._classes_by_key[key] = school_class
        result.created_classes.append(school_class)
        return school_class

    def _resolve_student(
        self,
        student_no: str,
        name: str,
        grade: GradeLevel,
        school_class: SchoolClass,
        result: ReconciliationResult,
    ) -> Student:
        student = self._students_by_no.get(student_no)

        if student is None:
            if not self.actor.can_create_roster:
                raise _RowSkipped(SkipReason.UNKNOWN_STUDENT)
            student = Student(
                school_id=self.school_id,
                name=name,
                student_no=student_no,
                grade_id=grade.id,
                class_id=school_class.id,
            )
            self._students_by_no[student_no] = student
            result.created_students.append(student)
            return student

        if not self.actor.can_create_roster:
            return student

        if student.id in self._existing_student_ids:
            result.student_updates[student.id] = StudentUpdate(
                name=name, grade_id=grade.id, class_id=school_class.id
            )
        else:
            # Created earlier in this batch, so it is ours to modify
            student.name = name
            student.grade_id = grade.id
            student.class_id = school_class.id
        return student

    @staticmethod
    def _subject_grades(scores: Mapping[Subject, Any]) -> list[dict[str, Any]]:
        grades = []
        for subject in SUBJECT_ORDER:
            value = scores.get(subject)
            if value is None or (isinstance(value, str) and value.strip() == ""):
                continue
            try:
                score = parse_score(value)
            except ValidationError:
                raise _RowSkipped(SkipReason.INVALID_SCORE) from None
            grades.append({"subject": subject.value, "score": score, "full_score": FULL_SCORE})
        return grades


def reconcile_rows(
    rows: Iterable[ScoreRow],
    *,
    school_id: UUID,
    actor: ImportActor,
    grade_levels: Sequence[GradeLevel],
    classes: Sequence[SchoolClass],
    students: Sequence[Student],
) -> ReconciliationResult:
    """Run one reconciliation pass (convenience wrapper around RosterReconciler)."""
    reconciler = RosterReconciler(
        school_id=school_id,
        actor=actor,
        grade_levels=grade_levels,
        classes=classes,
        students=students,
    )
    return reconciler.reconcile(rows)
