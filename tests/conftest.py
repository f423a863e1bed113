"""
Pytest Configuration and Fixtures

Shared test fixtures for unit and API tests.
"""

import os
from collections.abc import Callable, Sequence
from io import BytesIO
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from openpyxl import Workbook
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import configure_mappers

from edugrade.core.database import get_db
from edugrade.core.models import (
    Base,
    GradeLevel,
    Role,
    School,
    SchoolClass,
    Semester,
    Student,
    User,
)
from edugrade.core.security import hash_password
from edugrade.main import app

# Ensure all mappers are configured
configure_mappers()

TEST_PASSWORD = "secret123"  # nosec B105 - test fixture


@pytest.fixture
async def async_engine(tmp_path):
    """Create async engine for testing.

    Uses DATABASE_URL from the environment (set in CI) or a throwaway SQLite file.
    """
    database_url = os.getenv("DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(async_engine) -> AsyncSession:
    """Create database session for testing."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncClient:
    """Create test client with database dependency override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============================================================================
# Roster fixtures
# ============================================================================


@pytest.fixture
async def school(db_session: AsyncSession) -> School:
    """Create a test school."""
    school = School(name="First Experimental Middle School", motto="Study hard")
    db_session.add(school)
    await db_session.commit()
    return school


@pytest.fixture
async def semester(db_session: AsyncSession, school: School) -> Semester:
    semester = Semester(school_id=school.id, name="2023-2024 Spring", is_current=True)
    db_session.add(semester)
    await db_session.commit()
    return semester


@pytest.fixture
async def grade(db_session: AsyncSession, school: School) -> GradeLevel:
    grade = GradeLevel(school_id=school.id, name="Grade 9")
    db_session.add(grade)
    await db_session.commit()
    return grade


@pytest.fixture
async def admin_user(db_session: AsyncSession, school: School) -> User:
    admin = User(
        username="admin",
        password_hash=hash_password(TEST_PASSWORD),
        role=Role.ADMIN.value,
        school_id=school.id,
    )
    db_session.add(admin)
    await db_session.commit()
    return admin


@pytest.fixture
async def teacher_user(db_session: AsyncSession, school: School) -> User:
    teacher = User(
        username="teacher",
        password_hash=hash_password(TEST_PASSWORD),
        role=Role.TEACHER.value,
        school_id=school.id,
        real_name="Ms. Wang",
        gender="FEMALE",
        subjects=["Math"],
    )
    db_session.add(teacher)
    await db_session.commit()
    return teacher


@pytest.fixture
async def parent_user(db_session: AsyncSession) -> User:
    parent = User(
        username="parent",
        password_hash=hash_password(TEST_PASSWORD),
        role=Role.PARENT.value,
    )
    db_session.add(parent)
    await db_session.commit()
    return parent


@pytest.fixture
async def school_class(
    db_session: AsyncSession, school: School, grade: GradeLevel, teacher_user: User
) -> SchoolClass:
    """Class 1 of Grade 9, with the test teacher as homeroom teacher."""
    school_class = SchoolClass(
        school_id=school.id, grade_id=grade.id, name="Class 1", class_teacher_id=teacher_user.id
    )
    db_session.add(school_class)
    await db_session.commit()
    return school_class


@pytest.fixture
async def student(
    db_session: AsyncSession, school: School, grade: GradeLevel, school_class: SchoolClass
) -> Student:
    student = Student(
        school_id=school.id,
        grade_id=grade.id,
        class_id=school_class.id,
        name="Zhang San",
        student_no="2024001",
    )
    db_session.add(student)
    await db_session.commit()
    return student


# ============================================================================
# Spreadsheets
# ============================================================================


def build_workbook(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> bytes:
    """Build .xlsx bytes with one header row followed by ``rows``."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(list(headers))
    for row in rows:
        sheet.append(list(row))

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_workbook() -> Callable[[Sequence[str], Sequence[Sequence[Any]]], bytes]:
    return build_workbook


# ============================================================================
# Caller identity headers
# ============================================================================


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return {"X-User-Id": str(admin_user.id)}


@pytest.fixture
def teacher_headers(teacher_user: User) -> dict[str, str]:
    return {"X-User-Id": str(teacher_user.id)}


@pytest.fixture
def parent_headers(parent_user: User) -> dict[str, str]:
    return {"X-User-Id": str(parent_user.id)}
