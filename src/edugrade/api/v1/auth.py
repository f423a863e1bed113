"""
Authentication API

Account registration and login for administrators, teachers and parents.
"""
# ruff: noqa: B008 - FastAPI Depends in function defaults is standard pattern

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.api.deps import get_current_user
from edugrade.core.database import get_db
from edugrade.core.models import Role, School, User
from edugrade.core.schemas import LoginRequest, RegisterRequest, UserSchema
from edugrade.core.security import hash_password, verify_password
from edugrade.core.validation import (
    ValidationError,
    validate_name,
    validate_password,
    validate_username,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)) -> User:
    """
    Register a new account.

    An ADMIN registration also creates the school the admin will manage.
    Parents start with no linked children.
    """
    try:
        username = validate_username(data.username)
        password = validate_password(data.password, data.confirm_password)
        school_name = (
            validate_name(data.school_name, field="School name", max_length=200)
            if data.role == Role.ADMIN
            else None
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    result = await db.execute(select(User).where(User.username == username))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=f"Username {username} is already taken"
        )

    school_id = None
    if school_name is not None:
        school = School(name=school_name)
        db.add(school)
        await db.flush()
        school_id = school.id

    user = User(
        username=username,
        password_hash=hash_password(password),
        role=data.role.value,
        school_id=school_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"Registered {user.role} account {user.username}")
    return user


@router.post("/login", response_model=UserSchema)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)) -> User:
    """Check credentials and return the account (its id identifies later calls)."""
    result = await db.execute(select(User).where(User.username == data.username.strip()))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(user.password_hash, data.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect username or password"
        )

    return user


@router.get("/me", response_model=UserSchema)
async def me(user: User = Depends(get_current_user)) -> User:
    """The signed-in account."""
    return user
