"""
School Models

The school tenant and its academic structure: semesters, grade levels,
classes and parent invitations.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from .students import Student

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class School(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A school. Root of all scoping: every other record belongs to one school."""

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Branding
    logo: Mapped[str | None] = mapped_column(Text, nullable=True, comment="Data URL or link")
    motto: Mapped[str | None] = mapped_column(String(300), nullable=True)
    address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    website: Mapped[str | None] = mapped_column(String(300), nullable=True)


class Semester(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A term within a school year (e.g., '2023-2024 Spring')."""

    __tablename__ = "semesters"
    __table_args__ = (Index("idx_semesters_school", "school_id"),)

    school_id: Mapped[UUID] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_current: Mapped[bool] = mapped_column(
        Boolean, default=False, comment="At most one current semester per school"
    )


class GradeLevel(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A cohort such as 'Grade 9', unique by name within a school."""

    __tablename__ = "grade_levels"
    __table_args__ = (UniqueConstraint("school_id", "name", name="uq_grade_levels_school_name"),)

    school_id: Mapped[UUID] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class SchoolClass(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A homeroom/teaching group within a grade level."""

    __tablename__ = "school_classes"
    __table_args__ = (
        UniqueConstraint("school_id", "grade_id", "name", name="uq_school_classes_grade_name"),
    )

    school_id: Mapped[UUID] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    grade_id: Mapped[UUID] = mapped_column(ForeignKey("grade_levels.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    class_teacher_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, comment="Homeroom teacher"
    )
    subject_teachers: Mapped[dict[str, str] | None] = mapped_column(
        JSON, nullable=True, comment="Subject name -> teacher user id"
    )

    students: Mapped[list[Student]] = relationship(back_populates="school_class")

    def is_taught_by(self, user_id: UUID) -> bool:
        """True when the user is the homeroom teacher or one of the subject teachers."""
        if self.class_teacher_id == user_id:
            return True
        return str(user_id) in (self.subject_teachers or {}).values()


class Invitation(Base, UUIDPrimaryKeyMixin):
    """Short code letting a parent self-associate with a school grade level."""

    __tablename__ = "invitations"

    school_id: Mapped[UUID] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    grade_id: Mapped[UUID] = mapped_column(
        ForeignKey("grade_levels.id", ondelete="CASCADE"), nullable=False
    )
    code: Mapped[str] = mapped_column(
        String(12), unique=True, nullable=False, comment="e.g., K7QX2M"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
