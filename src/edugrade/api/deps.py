"""
Shared API dependencies: caller identity and role gates.

The caller identifies itself with the ``X-User-Id`` header (the id returned
by login). Routes then gate on role and, for school data, on membership of
the school in the path.
"""
# ruff: noqa: B008 - FastAPI Depends in function defaults is standard pattern

from collections.abc import Awaitable, Callable
from typing import TypeVar
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.ai import StudentReportGenerator
from edugrade.core.database import get_db
from edugrade.core.models import Base, Role, User

ModelT = TypeVar("ModelT", bound=Base)


async def get_current_user(
    x_user_id: UUID = Header(..., description="Id of the signed-in user"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the calling user, or 401 if the id is unknown."""
    user = await db.get(User, x_user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user; please log in again",
        )
    return user


def require_role(*roles: Role) -> Callable[..., Awaitable[User]]:
    """Dependency factory that only lets the given roles through."""

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role_tag not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to do this",
            )
        return user

    return dependency


async def get_school_admin(
    school_id: UUID, user: User = Depends(require_role(Role.ADMIN))
) -> User:
    """Administrator of the school in the path."""
    if user.school_id != school_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage your own school",
        )
    return user


async def get_school_staff(
    school_id: UUID, user: User = Depends(require_role(Role.ADMIN, Role.TEACHER))
) -> User:
    """Administrator or teacher of the school in the path."""
    if user.school_id != school_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only access your own school",
        )
    return user


get_parent = require_role(Role.PARENT)
get_teacher = require_role(Role.TEACHER)


async def get_scoped_or_404(
    db: AsyncSession, model: type[ModelT], record_id: UUID, school_id: UUID, label: str
) -> ModelT:
    """Fetch a school-scoped record by id, or 404 when missing or in another school."""
    record = await db.get(model, record_id)
    if record is None or record.school_id != school_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found with ID: {record_id}"
        )
    return record


def get_report_generator() -> StudentReportGenerator:
    """AI report generator (overridden in tests)."""
    return StudentReportGenerator()
