"""
Exam Models

Exams and the per-student grade records they own.
"""

from __future__ import annotations

import datetime as dt
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Exam(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A named, dated assessment event within a semester."""

    __tablename__ = "exams"
    __table_args__ = (Index("idx_exams_school_semester", "school_id", "semester_id"),)

    school_id: Mapped[UUID] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    semester_id: Mapped[UUID] = mapped_column(ForeignKey("semesters.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    grade_records: Mapped[list[GradeRecord]] = relationship(
        back_populates="exam", cascade="all, delete-orphan"
    )


class GradeRecord(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One student's subject scores for one exam.

    ``grades`` is an ordered list of ``{"subject", "score", "full_score"}``.
    """

    __tablename__ = "grade_records"
    __table_args__ = (
        Index("idx_grade_records_exam", "exam_id"),
        Index("idx_grade_records_student", "student_id"),
    )

    school_id: Mapped[UUID] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    exam_id: Mapped[UUID] = mapped_column(
        ForeignKey("exams.id", ondelete="CASCADE"),
        nullable=False,
        comment="Stamped when the import is committed",
    )
    grades: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    exam: Mapped[Exam] = relationship(back_populates="grade_records")
