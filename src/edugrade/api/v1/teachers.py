"""
Teacher API Endpoints

Teacher account management for school admins, and a teacher's own view of
the classes and students they teach, including AI analysis reports.
"""
# ruff: noqa: B008 - FastAPI Depends in function defaults is standard pattern

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.ai import (
    AnalysisReport,
    ReportGenerationError,
    StudentReportGenerator,
    build_exam_history,
)
from edugrade.api.deps import get_report_generator, get_school_admin, get_teacher
from edugrade.core.database import get_db
from edugrade.core.models import Role, SchoolClass, Student, User
from edugrade.core.records import RecordStore
from edugrade.core.schemas import (
    SchoolClassSchema,
    StudentSchema,
    TeacherCreate,
    TeacherUpdate,
    UserSchema,
)
from edugrade.core.security import hash_password
from edugrade.core.validation import (
    ValidationError,
    validate_name,
    validate_password,
    validate_username,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_teacher_or_404(db: AsyncSession, school_id: UUID, teacher_id: UUID) -> User:
    teacher = await db.get(User, teacher_id)
    if teacher is None or teacher.school_id != school_id or teacher.role_tag != Role.TEACHER:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Teacher not found with ID: {teacher_id}",
        )
    return teacher


async def _ensure_username_free(db: AsyncSession, username: str) -> None:
    result = await db.execute(select(User).where(User.username == username))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=f"Username {username} is already taken"
        )


async def taught_classes(db: AsyncSession, teacher: User) -> list[SchoolClass]:
    """Classes where the teacher is homeroom or a subject teacher."""
    if teacher.school_id is None:
        return []
    classes = await RecordStore(db).get(SchoolClass, teacher.school_id)
    return [c for c in classes if c.is_taught_by(teacher.id)]


# ============================================================================
# Admin: teacher accounts
# ============================================================================


@router.get("/schools/{school_id}/teachers", response_model=list[UserSchema])
async def list_teachers(
    school_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> list[User]:
    result = await db.execute(
        select(User)
        .where(User.school_id == school_id, User.role == Role.TEACHER.value)
        .order_by(User.username)
    )
    return list(result.scalars().all())


@router.post(
    "/schools/{school_id}/teachers",
    response_model=UserSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_teacher(
    school_id: UUID,
    teacher_data: TeacherCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> User:
    """Create a new teacher account for the school."""
    try:
        username = validate_username(teacher_data.username)
        password = validate_password(teacher_data.password)
        real_name = validate_name(teacher_data.real_name, field="Real name")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    await _ensure_username_free(db, username)

    teacher = User(
        username=username,
        password_hash=hash_password(password),
        role=Role.TEACHER.value,
        school_id=school_id,
        real_name=real_name,
        gender=teacher_data.gender.value,
        subjects=teacher_data.subjects,
    )
    db.add(teacher)
    await db.commit()
    await db.refresh(teacher)

    logger.info(f"Created teacher account {username} for school {school_id}")
    return teacher


@router.put("/schools/{school_id}/teachers/{teacher_id}", response_model=UserSchema)
async def update_teacher(
    school_id: UUID,
    teacher_id: UUID,
    teacher_data: TeacherUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> User:
    """Update teacher information (a new password is re-hashed)."""
    teacher = await _get_teacher_or_404(db, school_id, teacher_id)
    update_data = teacher_data.model_dump(exclude_unset=True)

    try:
        if update_data.get("username") is not None:
            username = validate_username(update_data["username"])
            if username != teacher.username:
                await _ensure_username_free(db, username)
                teacher.username = username
        if update_data.get("password"):
            teacher.password_hash = hash_password(validate_password(update_data["password"]))
        if update_data.get("real_name") is not None:
            teacher.real_name = validate_name(update_data["real_name"], field="Real name")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    if update_data.get("gender") is not None:
        teacher.gender = update_data["gender"].value
    if "subjects" in update_data:
        teacher.subjects = update_data["subjects"] or []

    await db.commit()
    await db.refresh(teacher)
    return teacher


@router.delete(
    "/schools/{school_id}/teachers/{teacher_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_teacher(
    school_id: UUID,
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Response:
    """Delete a teacher and clear their class assignments."""
    teacher = await _get_teacher_or_404(db, school_id, teacher_id)

    for school_class in await RecordStore(db).get(SchoolClass, school_id):
        if school_class.class_teacher_id == teacher.id:
            school_class.class_teacher_id = None
        if str(teacher.id) in (school_class.subject_teachers or {}).values():
            school_class.subject_teachers = {
                subject: tid
                for subject, tid in school_class.subject_teachers.items()
                if tid != str(teacher.id)
            }

    await db.flush()
    await db.execute(delete(User).where(User.id == teacher.id))
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Teacher: own classes and students
# ============================================================================


@router.get("/teachers/me/classes", response_model=list[SchoolClassSchema])
async def my_classes(
    db: AsyncSession = Depends(get_db), teacher: User = Depends(get_teacher)
) -> list[SchoolClass]:
    """Classes the signed-in teacher teaches."""
    return await taught_classes(db, teacher)


@router.get("/teachers/me/students", response_model=list[StudentSchema])
async def my_students(
    class_id: UUID | None = None,
    db: AsyncSession = Depends(get_db),
    teacher: User = Depends(get_teacher),
) -> list[Student]:
    """Students in the signed-in teacher's classes, optionally one class only."""
    class_ids = {c.id for c in await taught_classes(db, teacher)}
    if class_id is not None:
        if class_id not in class_ids:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="You do not teach this class"
            )
        class_ids = {class_id}
    if not class_ids:
        return []

    result = await db.execute(
        select(Student).where(Student.class_id.in_(class_ids)).order_by(Student.student_no)
    )
    return list(result.scalars().all())


@router.post("/teachers/me/students/{student_id}/analysis", response_model=AnalysisReport)
async def analyze_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    teacher: User = Depends(get_teacher),
    generator: StudentReportGenerator = Depends(get_report_generator),
) -> AnalysisReport:
    """AI analysis of a student in one of the signed-in teacher's classes."""
    student = await db.get(Student, student_id)
    if student is None or student.school_id != teacher.school_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Student not found with ID: {student_id}",
        )
    if student.class_id not in {c.id for c in await taught_classes(db, teacher)}:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="You do not teach this student"
        )

    store = RecordStore(db)
    records = await store.records_of_student(student.id)
    if not records:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{student.name} has no exam results to analyse yet",
        )
    history = build_exam_history(records, await store.exams_of(records))

    try:
        return await run_in_threadpool(generator.analyze, student.name, history, "teacher")
    except ReportGenerationError as e:
        logger.error(f"Analysis report failed for student {student_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
