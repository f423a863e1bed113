"""
Student Models

Enrolled students, matched on their school-issued student number.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from .schools import SchoolClass

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Student(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A student enrolled in one class of one school."""

    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("school_id", "student_no", name="uq_students_school_student_no"),
        Index("idx_students_class", "class_id"),
    )

    school_id: Mapped[UUID] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    grade_id: Mapped[UUID] = mapped_column(ForeignKey("grade_levels.id"), nullable=False)
    class_id: Mapped[UUID] = mapped_column(ForeignKey("school_classes.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    student_no: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="Natural key used for import matching"
    )

    school_class: Mapped[SchoolClass] = relationship(back_populates="students")
