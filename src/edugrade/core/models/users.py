"""
User Models

Administrators, teachers and parents sharing one account table.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from .students import Student

from sqlalchemy import JSON, CheckConstraint, Column, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Role(StrEnum):
    """Closed set of actor roles; permission checks dispatch on this tag."""

    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    PARENT = "PARENT"


class Gender(StrEnum):
    MALE = "MALE"
    FEMALE = "FEMALE"


parent_children = Table(
    "parent_children",
    Base.metadata,
    Column("parent_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Login account.

    Admins and teachers belong to a school; parents are linked to students
    (possibly across schools) through ``parent_children``.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('ADMIN', 'TEACHER', 'PARENT')", name="check_user_role"),
        CheckConstraint("gender IS NULL OR gender IN ('MALE', 'FEMALE')", name="check_gender"),
    )

    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(10), nullable=False)
    school_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), nullable=True
    )

    # Teacher details
    real_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    subjects: Mapped[list[str] | None] = mapped_column(
        JSON, nullable=True, comment="Subjects taught"
    )

    children: Mapped[list[Student]] = relationship(secondary=parent_children)

    @property
    def role_tag(self) -> Role:
        return Role(self.role)
