"""
Student API Endpoints

Student roster management and parent account links for school admins.
"""
# ruff: noqa: B008 - FastAPI Depends in function defaults is standard pattern

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.api.deps import get_school_admin, get_school_staff, get_scoped_or_404
from edugrade.core.database import get_db
from edugrade.core.models import (
    GradeLevel,
    GradeRecord,
    Role,
    SchoolClass,
    Student,
    User,
    parent_children,
)
from edugrade.core.schemas import (
    ParentLinkRequest,
    StudentCreate,
    StudentSchema,
    StudentUpdate,
    UserSchema,
)
from edugrade.core.validation import ValidationError, validate_name, validate_student_number
from edugrade.engagement.parent_binding import (
    ChildBindingError,
    link_child,
    list_parents,
    unlink_child,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _check_placement(
    db: AsyncSession, school_id: UUID, grade_id: UUID, class_id: UUID
) -> None:
    """Grade and class must exist in the school and the class must sit in the grade."""
    await get_scoped_or_404(db, GradeLevel, grade_id, school_id, "Grade")
    school_class = await get_scoped_or_404(db, SchoolClass, class_id, school_id, "Class")
    if school_class.grade_id != grade_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The class does not belong to the selected grade",
        )


async def _find_parent(db: AsyncSession, parent: str) -> User | None:
    """Find a parent account by username, or by id when the value is a UUID."""
    try:
        parent_id = UUID(parent)
    except ValueError:
        parent_id = None

    if parent_id is not None:
        user = await db.get(User, parent_id)
        if user is not None:
            return user

    result = await db.execute(select(User).where(User.username == parent.strip()))
    return result.scalar_one_or_none()


@router.get("/{school_id}/students", response_model=list[StudentSchema])
async def list_students(
    school_id: UUID,
    grade_id: UUID | None = None,
    class_id: UUID | None = None,
    search: str | None = Query(None, description="Matches name or student number"),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(get_school_staff),
) -> list[Student]:
    """List students of a school, filtered by grade, class and free text."""
    stmt = select(Student).where(Student.school_id == school_id)
    if grade_id is not None:
        stmt = stmt.where(Student.grade_id == grade_id)
    if class_id is not None:
        stmt = stmt.where(Student.class_id == class_id)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Student.name.ilike(pattern), Student.student_no.ilike(pattern)))

    result = await db.execute(stmt.order_by(Student.student_no))
    return list(result.scalars().all())


@router.post(
    "/{school_id}/students", response_model=StudentSchema, status_code=status.HTTP_201_CREATED
)
async def create_student(
    school_id: UUID,
    student_data: StudentCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Student:
    """Enrol a student. Student numbers are unique within a school."""
    try:
        name = validate_name(student_data.name, field="Student name")
        student_no = validate_student_number(student_data.student_no)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    await _check_placement(db, school_id, student_data.grade_id, student_data.class_id)

    student = Student(
        school_id=school_id,
        grade_id=student_data.grade_id,
        class_id=student_data.class_id,
        name=name,
        student_no=student_no,
    )
    db.add(student)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Student number {student_no} is already in use",
        ) from e

    await db.refresh(student)
    return student


@router.get("/{school_id}/students/{student_id}", response_model=StudentSchema)
async def get_student(
    school_id: UUID,
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(get_school_staff),
) -> Student:
    return await get_scoped_or_404(db, Student, student_id, school_id, "Student")


@router.put("/{school_id}/students/{student_id}", response_model=StudentSchema)
async def update_student(
    school_id: UUID,
    student_id: UUID,
    student_data: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Student:
    """Update student information (only provided fields)."""
    student = await get_scoped_or_404(db, Student, student_id, school_id, "Student")
    update_data = student_data.model_dump(exclude_unset=True)

    try:
        if update_data.get("name") is not None:
            student.name = validate_name(update_data["name"], field="Student name")
        if update_data.get("student_no") is not None:
            student.student_no = validate_student_number(update_data["student_no"])
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    grade_id = update_data.get("grade_id") or student.grade_id
    class_id = update_data.get("class_id") or student.class_id
    if (grade_id, class_id) != (student.grade_id, student.class_id):
        await _check_placement(db, school_id, grade_id, class_id)
        student.grade_id = grade_id
        student.class_id = class_id

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Student number {student_data.student_no} is already in use",
        ) from e

    await db.refresh(student)
    return student


@router.delete("/{school_id}/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(
    school_id: UUID,
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Response:
    """Remove a student together with their grade records and parent links."""
    student = await get_scoped_or_404(db, Student, student_id, school_id, "Student")

    await db.execute(delete(GradeRecord).where(GradeRecord.student_id == student.id))
    await db.execute(delete(parent_children).where(parent_children.c.student_id == student.id))
    await db.execute(delete(Student).where(Student.id == student.id))
    await db.commit()

    logger.info(f"Deleted student {student.student_no} from school {school_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Parent links
# ============================================================================


@router.get("/{school_id}/students/{student_id}/parents", response_model=list[UserSchema])
async def get_student_parents(
    school_id: UUID,
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> list[User]:
    await get_scoped_or_404(db, Student, student_id, school_id, "Student")
    return await list_parents(db, student_id)


@router.post(
    "/{school_id}/students/{student_id}/parents",
    response_model=list[UserSchema],
    status_code=status.HTTP_201_CREATED,
)
async def add_student_parent(
    school_id: UUID,
    student_id: UUID,
    link_data: ParentLinkRequest,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> list[User]:
    """Link a parent account (by username or id) to the student."""
    student = await get_scoped_or_404(db, Student, student_id, school_id, "Student")

    parent = await _find_parent(db, link_data.parent)
    if parent is None or parent.role_tag != Role.PARENT:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Parent account not found: {link_data.parent}",
        )

    try:
        await link_child(db, parent, student)
    except ChildBindingError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    await db.commit()
    return await list_parents(db, student_id)


@router.delete(
    "/{school_id}/students/{student_id}/parents/{parent_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_student_parent(
    school_id: UUID,
    student_id: UUID,
    parent_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Response:
    await get_scoped_or_404(db, Student, student_id, school_id, "Student")

    if not await unlink_child(db, parent_id, student_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="This parent is not linked to the student",
        )

    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
