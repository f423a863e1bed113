"""
Score import: validation, reconciliation and the single commit.

Flow for one import request:

    validate inputs -> parse sheet -> reconcile rows -> commit | reject

Nothing is written unless at least one row succeeds. When rows do succeed,
the grown grade-level/class/student collections, the new exam and its grade
records are flushed and committed in one transaction; a uniqueness clash
with a concurrent import rolls the whole thing back.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.config import settings
from edugrade.core.models import (
    Exam,
    GradeLevel,
    GradeRecord,
    Role,
    SchoolClass,
    Semester,
    Student,
    User,
)
from edugrade.core.records import RecordStore
from edugrade.core.validation import ValidationError, validate_name

from .reconciliation import (
    ImportActor,
    ImportPermissionError,
    ReconciliationResult,
    ScoreRow,
    reconcile_rows,
)
from .spreadsheet import read_score_rows

logger = logging.getLogger(__name__)


class ImportRejectedError(Exception):
    """No row could be imported; nothing was written."""

    def __init__(self, message: str, *, total: int, skipped: int, skip_reasons: dict[str, int]):
        super().__init__(message)
        self.total = total
        self.skipped = skipped
        self.skip_reasons = skip_reasons


class ImportConflictError(Exception):
    """A concurrent write broke a uniqueness constraint; nothing was written."""

    pass


@dataclass(frozen=True)
class ImportSummary:
    """Aggregate outcome reported back to the caller."""

    exam_id: UUID
    total: int
    succeeded: int
    skipped: int
    skip_reasons: dict[str, int] = field(default_factory=dict)
    created_grade_levels: int = 0
    created_classes: int = 0
    created_students: int = 0


def import_actor_for(user: User, classes: Sequence[SchoolClass]) -> ImportActor:
    """Build the import actor for a user.

    Teachers may only write to classes they teach (homeroom or subject).
    """
    role = user.role_tag
    if role == Role.ADMIN:
        return ImportActor.admin()
    if role == Role.TEACHER:
        return ImportActor.teacher(c.id for c in classes if c.is_taught_by(user.id))
    raise ImportPermissionError("Only administrators and teachers can import scores")


class ScoreImporter:
    """Runs score imports for one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = RecordStore(db)

    async def import_file(
        self,
        *,
        user: User,
        school_id: UUID,
        exam_name: str | None,
        semester_id: UUID | None,
        file_bytes: bytes | None,
        exam_date: date | None = None,
    ) -> ImportSummary:
        """Validate the request, parse the sheet and import it.

        Raises:
            ValidationError: Missing file, exam name or semester
            ImportPermissionError: Role or school not allowed to import here
            SpreadsheetError: File could not be parsed
            ImportRejectedError: No row could be imported
            ImportConflictError: Uniqueness clash while committing
        """
        if not file_bytes:
            raise ValidationError("Please upload a score sheet")
        if len(file_bytes) > settings.IMPORT_MAX_FILE_BYTES:
            raise ValidationError(
                f"The file exceeds the {settings.IMPORT_MAX_FILE_BYTES} byte upload limit"
            )
        exam_name = validate_name(exam_name, field="Exam name", max_length=200)
        if semester_id is None:
            raise ValidationError("Please select a semester")
        if user.school_id != school_id:
            raise ImportPermissionError("You can only import scores for your own school")

        semesters = await self.store.get(Semester, school_id)
        if not any(s.id == semester_id for s in semesters):
            raise ValidationError("Semester not found for this school")

        classes = await self.store.get(SchoolClass, school_id)
        actor = import_actor_for(user, classes)

        rows = read_score_rows(file_bytes, max_rows=settings.IMPORT_MAX_ROWS)

        return await self.import_rows(
            rows,
            school_id=school_id,
            actor=actor,
            exam_name=exam_name,
            semester_id=semester_id,
            exam_date=exam_date,
        )

    async def import_rows(
        self,
        rows: Sequence[ScoreRow],
        *,
        school_id: UUID,
        actor: ImportActor,
        exam_name: str,
        semester_id: UUID,
        exam_date: date | None = None,
    ) -> ImportSummary:
        """Reconcile already-parsed rows and commit them with a new exam."""
        grade_levels = await self.store.get(GradeLevel, school_id)
        classes = await self.store.get(SchoolClass, school_id)
        students = await self.store.get(Student, school_id)

        result = reconcile_rows(
            rows,
            school_id=school_id,
            actor=actor,
            grade_levels=grade_levels,
            classes=classes,
            students=students,
        )
        skip_reasons = {reason.value: count for reason, count in result.skip_reasons.items()}

        logger.info(
            f"Score import for school {school_id} ({actor.role}): "
            f"total={result.total} succeeded={result.succeeded} skipped={result.skipped} "
            f"reasons={skip_reasons}"
        )

        if result.succeeded == 0:
            raise ImportRejectedError(
                "No valid rows were found in the sheet; nothing was imported",
                total=result.total,
                skipped=result.skipped,
                skip_reasons=skip_reasons,
            )

        try:
            exam = await self._commit(
                result,
                school_id=school_id,
                grade_levels=grade_levels,
                classes=classes,
                students=students,
                exam_name=exam_name,
                semester_id=semester_id,
                exam_date=exam_date or datetime.now(UTC).date(),
            )
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Score import for school {school_id} conflicted: {e}")
            raise ImportConflictError(
                "The roster changed while importing; please retry the import"
            ) from e

        return ImportSummary(
            exam_id=exam.id,
            total=result.total,
            succeeded=result.succeeded,
            skipped=result.skipped,
            skip_reasons=skip_reasons,
            created_grade_levels=len(result.created_grade_levels),
            created_classes=len(result.created_classes),
            created_students=len(result.created_students),
        )

    async def _commit(
        self,
        result: ReconciliationResult,
        *,
        school_id: UUID,
        grade_levels: list[GradeLevel],
        classes: list[SchoolClass],
        students: list[Student],
        exam_name: str,
        semester_id: UUID,
        exam_date: date,
    ) -> Exam:
        # Parents before children so foreign keys resolve on each flush
        await self.store.save(GradeLevel, grade_levels + result.created_grade_levels, school_id)
        await self.store.save(SchoolClass, classes + result.created_classes, school_id)

        for student in students:
            update = result.student_updates.get(student.id)
            if update is not None:
                student.name = update.name
                student.grade_id = update.grade_id
                student.class_id = update.class_id
        await self.store.save(Student, students + result.created_students, school_id)

        exam = Exam(school_id=school_id, semester_id=semester_id, name=exam_name, date=exam_date)
        await self.store.append(Exam, [exam], school_id)

        for record in result.grade_records:
            record.exam_id = exam.id
        await self.store.append(GradeRecord, result.grade_records, school_id)

        await self.db.commit()
        return exam
