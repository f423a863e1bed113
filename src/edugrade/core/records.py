"""
School-scoped record store.

Collections are read and written per school. ``save`` has replace-all
semantics: after it runs, the records stored for that school are exactly
the ones passed in. Nothing here commits; the caller owns the transaction,
so every collection written during one action lands together or not at all.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.core.models import (
    Base,
    Exam,
    GradeLevel,
    GradeRecord,
    Invitation,
    School,
    SchoolClass,
    Semester,
    Student,
    User,
)

ModelT = TypeVar("ModelT", bound=Base)

SCOPED_MODELS: tuple[type[Base], ...] = (
    GradeLevel,
    SchoolClass,
    Student,
    Exam,
    GradeRecord,
    Semester,
    Invitation,
)
GLOBAL_MODELS: tuple[type[Base], ...] = (School, User)


class RecordStore:
    """Scoped get/replace access to school collections."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, model: type[ModelT], school_id: UUID) -> list[ModelT]:
        """All records of ``model`` owned by the school, oldest first."""
        self._check_scoped(model)
        result = await self.db.execute(
            select(model)
            .where(model.school_id == school_id)  # type: ignore[attr-defined]
            .order_by(model.created_at, model.id)  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def save(self, model: type[ModelT], records: Sequence[ModelT], school_id: UUID) -> None:
        """Replace the school's ``model`` collection with ``records``.

        Records missing from ``records`` are deleted; new ones are inserted;
        existing ones are kept (with whatever changes the caller made).
        """
        self._check_scoped(model)
        for record in records:
            if record.school_id != school_id:  # type: ignore[attr-defined]
                raise ValueError(
                    f"{model.__name__} {record.id} belongs to another school"  # type: ignore[attr-defined]
                )

        keep = {record.id for record in records}  # type: ignore[attr-defined]
        for existing in await self.get(model, school_id):
            if existing.id not in keep:  # type: ignore[attr-defined]
                await self.db.delete(existing)

        self.db.add_all(records)
        await self.db.flush()

    async def append(self, model: type[ModelT], records: Iterable[ModelT], school_id: UUID) -> None:
        """Add ``records`` to the school's collection without touching the rest."""
        self._check_scoped(model)
        records = list(records)
        for record in records:
            if record.school_id != school_id:  # type: ignore[attr-defined]
                raise ValueError(f"{model.__name__} record belongs to another school")
        self.db.add_all(records)
        await self.db.flush()

    async def get_all(self, model: type[ModelT]) -> list[ModelT]:
        """All records of an unscoped model (School, User)."""
        self._check_global(model)
        result = await self.db.execute(select(model).order_by(model.created_at))  # type: ignore[attr-defined]
        return list(result.scalars().all())

    async def save_all(self, model: type[ModelT], records: Sequence[ModelT]) -> None:
        """Replace the whole unscoped collection with ``records``."""
        self._check_global(model)
        keep = {record.id for record in records}  # type: ignore[attr-defined]
        for existing in await self.get_all(model):
            if existing.id not in keep:  # type: ignore[attr-defined]
                await self.db.delete(existing)
        self.db.add_all(records)
        await self.db.flush()

    async def records_of_student(self, student_id: UUID) -> list[GradeRecord]:
        """One student's grade records in the order they were stored."""
        result = await self.db.execute(
            select(GradeRecord)
            .where(GradeRecord.student_id == student_id)
            .order_by(GradeRecord.created_at, GradeRecord.id)
        )
        return list(result.scalars().all())

    async def exams_of(self, records: Iterable[GradeRecord]) -> list[Exam]:
        """Exams the given records belong to, newest first."""
        exam_ids = {record.exam_id for record in records}
        if not exam_ids:
            return []
        result = await self.db.execute(
            select(Exam).where(Exam.id.in_(exam_ids)).order_by(Exam.date.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    def _check_scoped(model: type[Base]) -> None:
        if model not in SCOPED_MODELS:
            raise TypeError(f"{model.__name__} is not a school-scoped collection")

    @staticmethod
    def _check_global(model: type[Base]) -> None:
        if model not in GLOBAL_MODELS:
            raise TypeError(f"{model.__name__} is not a global collection")
