"""
Parent-child association.

Parents find their child either through an invitation code (which fixes the
school and grade level) or by picking school and grade themselves; in both
cases the class and the exact student name must match an enrolled student.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.core.models import Role, Student, User, parent_children

from .invitation_codes import find_invitation

logger = logging.getLogger(__name__)


class ChildBindingError(Exception):
    """Raised when a child cannot be found or linked."""

    pass


@dataclass(frozen=True)
class BindingTarget:
    school_id: UUID
    grade_id: UUID


async def resolve_binding_target(
    db: AsyncSession,
    *,
    invite_code: str | None = None,
    school_id: UUID | None = None,
    grade_id: UUID | None = None,
) -> BindingTarget:
    """Work out which school grade level to search.

    An invitation code wins over explicitly chosen school/grade.

    Raises:
        ChildBindingError: Unknown code, or no school/grade given
    """
    if invite_code:
        invitation = await find_invitation(db, invite_code)
        if invitation is None:
            raise ChildBindingError("Invitation code is invalid or has been revoked")
        return BindingTarget(school_id=invitation.school_id, grade_id=invitation.grade_id)

    if school_id is None or grade_id is None:
        raise ChildBindingError("Please choose a school and grade, or enter an invitation code")

    return BindingTarget(school_id=school_id, grade_id=grade_id)


async def find_child(
    db: AsyncSession, target: BindingTarget, *, class_id: UUID, name: str
) -> Student | None:
    """Find the enrolled student matching class and exact name."""
    result = await db.execute(
        select(Student).where(
            Student.school_id == target.school_id,
            Student.grade_id == target.grade_id,
            Student.class_id == class_id,
            Student.name == name.strip(),
        )
    )
    return result.scalars().first()


async def child_ids(db: AsyncSession, parent_id: UUID) -> set[UUID]:
    """Ids of every student linked to the parent."""
    result = await db.execute(
        select(parent_children.c.student_id).where(parent_children.c.parent_id == parent_id)
    )
    return set(result.scalars().all())


async def list_children(db: AsyncSession, parent_id: UUID) -> list[Student]:
    """Students linked to the parent, ordered by name."""
    result = await db.execute(
        select(Student)
        .join(parent_children, parent_children.c.student_id == Student.id)
        .where(parent_children.c.parent_id == parent_id)
        .order_by(Student.name)
    )
    return list(result.scalars().all())


async def link_child(db: AsyncSession, parent: User, student: Student) -> None:
    """Link a student to a parent account (caller commits).

    Raises:
        ChildBindingError: Not a parent account, or already linked
    """
    if parent.role_tag != Role.PARENT:
        raise ChildBindingError("Only parent accounts can be linked to students")

    if student.id in await child_ids(db, parent.id):
        raise ChildBindingError("This student is already linked to the parent account")

    await db.execute(insert(parent_children).values(parent_id=parent.id, student_id=student.id))
    logger.info(f"Linked student {student.id} to parent {parent.id}")


async def unlink_child(db: AsyncSession, parent_id: UUID, student_id: UUID) -> bool:
    """Remove a parent-student link (caller commits). Returns False if there was none."""
    result = await db.execute(
        delete(parent_children).where(
            parent_children.c.parent_id == parent_id,
            parent_children.c.student_id == student_id,
        )
    )
    return bool(result.rowcount)


async def list_parents(db: AsyncSession, student_id: UUID) -> list[User]:
    """Parent accounts linked to the student."""
    result = await db.execute(
        select(User)
        .join(parent_children, parent_children.c.parent_id == User.id)
        .where(parent_children.c.student_id == student_id)
        .order_by(User.username)
    )
    return list(result.scalars().all())
