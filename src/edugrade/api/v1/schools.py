"""
School Administration API

School branding, semesters, grade levels, classes and parent invitations.
"""
# ruff: noqa: B008 - FastAPI Depends in function defaults is standard pattern

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.api.deps import get_current_user, get_school_admin, get_scoped_or_404
from edugrade.core.database import get_db
from edugrade.core.models import (
    Exam,
    GradeLevel,
    Invitation,
    Role,
    School,
    SchoolClass,
    Semester,
    Student,
    User,
)
from edugrade.core.records import RecordStore
from edugrade.core.schemas import (
    GradeLevelCreate,
    GradeLevelSchema,
    InvitationCreate,
    InvitationSchema,
    SchoolClassCreate,
    SchoolClassSchema,
    SchoolClassUpdate,
    SchoolSchema,
    SchoolUpdate,
    SemesterCreate,
    SemesterSchema,
)
from edugrade.core.validation import ValidationError, validate_name
from edugrade.engagement.invitation_codes import InvitationCodeError, generate_invitation_code

logger = logging.getLogger(__name__)

router = APIRouter()


def _clean_name(name: str | None, field: str, max_length: int = 100) -> str:
    try:
        return validate_name(name, field=field, max_length=max_length)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


async def _commit_or_conflict(db: AsyncSession, detail: str) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail) from e


# ============================================================================
# School
# ============================================================================


@router.get("/", response_model=list[SchoolSchema])
async def list_schools(
    db: AsyncSession = Depends(get_db), _user: User = Depends(get_current_user)
) -> list[School]:
    """All schools (parents pick one when binding a child without a code)."""
    result = await db.execute(select(School).order_by(School.name))
    return list(result.scalars().all())


@router.get("/{school_id}", response_model=SchoolSchema)
async def get_school(
    school_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> School:
    """School details and branding."""
    school = await db.get(School, school_id)
    if not school:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"School not found with ID: {school_id}"
        )
    return school


@router.put("/{school_id}", response_model=SchoolSchema)
async def update_school(
    school_id: UUID,
    school_data: SchoolUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> School:
    """Update school branding (only fields provided are changed)."""
    school = await db.get(School, school_id)
    if not school:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"School not found with ID: {school_id}"
        )

    update_data = school_data.model_dump(exclude_unset=True)
    if "name" in update_data:
        update_data["name"] = _clean_name(update_data["name"], "School name", max_length=200)

    for field, value in update_data.items():
        setattr(school, field, value)

    await db.commit()
    await db.refresh(school)
    return school


# ============================================================================
# Semesters
# ============================================================================


@router.get("/{school_id}/semesters", response_model=list[SemesterSchema])
async def list_semesters(
    school_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[Semester]:
    return await RecordStore(db).get(Semester, school_id)


@router.post(
    "/{school_id}/semesters",
    response_model=SemesterSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_semester(
    school_id: UUID,
    semester_data: SemesterCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Semester:
    """Create a semester. A school's first semester becomes the current one."""
    name = _clean_name(semester_data.name, "Semester name")
    existing = await RecordStore(db).get(Semester, school_id)

    semester = Semester(school_id=school_id, name=name, is_current=not existing)
    db.add(semester)
    await db.commit()
    await db.refresh(semester)
    return semester


@router.put("/{school_id}/semesters/{semester_id}", response_model=SemesterSchema)
async def rename_semester(
    school_id: UUID,
    semester_id: UUID,
    semester_data: SemesterCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Semester:
    semester = await get_scoped_or_404(db, Semester, semester_id, school_id, "Semester")
    semester.name = _clean_name(semester_data.name, "Semester name")
    await db.commit()
    await db.refresh(semester)
    return semester


@router.post("/{school_id}/semesters/{semester_id}/current", response_model=list[SemesterSchema])
async def set_current_semester(
    school_id: UUID,
    semester_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> list[Semester]:
    """Make one semester current; every other semester of the school stops being current."""
    await get_scoped_or_404(db, Semester, semester_id, school_id, "Semester")

    semesters = await RecordStore(db).get(Semester, school_id)
    for semester in semesters:
        semester.is_current = semester.id == semester_id
    await db.commit()
    return semesters


@router.delete("/{school_id}/semesters/{semester_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_semester(
    school_id: UUID,
    semester_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Response:
    """Delete a semester that has no exams.

    If it was the current semester, the oldest remaining one takes over.
    """
    semester = await get_scoped_or_404(db, Semester, semester_id, school_id, "Semester")

    exam_count = await db.scalar(
        select(func.count()).select_from(Exam).where(Exam.semester_id == semester_id)
    )
    if exam_count:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Semester still has {exam_count} exam(s); delete them first",
        )

    was_current = semester.is_current
    await db.delete(semester)
    await db.flush()

    if was_current:
        remaining = await RecordStore(db).get(Semester, school_id)
        if remaining:
            remaining[0].is_current = True

    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Grade levels
# ============================================================================


@router.get("/{school_id}/grade-levels", response_model=list[GradeLevelSchema])
async def list_grade_levels(
    school_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[GradeLevel]:
    return await RecordStore(db).get(GradeLevel, school_id)


@router.post(
    "/{school_id}/grade-levels",
    response_model=GradeLevelSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_grade_level(
    school_id: UUID,
    grade_data: GradeLevelCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> GradeLevel:
    name = _clean_name(grade_data.name, "Grade name")
    grade = GradeLevel(school_id=school_id, name=name)
    db.add(grade)
    await _commit_or_conflict(db, f"Grade {name} already exists")
    await db.refresh(grade)
    return grade


@router.put("/{school_id}/grade-levels/{grade_id}", response_model=GradeLevelSchema)
async def rename_grade_level(
    school_id: UUID,
    grade_id: UUID,
    grade_data: GradeLevelCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> GradeLevel:
    grade = await get_scoped_or_404(db, GradeLevel, grade_id, school_id, "Grade")
    grade.name = _clean_name(grade_data.name, "Grade name")
    await _commit_or_conflict(db, f"Grade {grade.name} already exists")
    await db.refresh(grade)
    return grade


@router.delete("/{school_id}/grade-levels/{grade_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_grade_level(
    school_id: UUID,
    grade_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Response:
    """Delete an empty grade level (its invitation codes go with it)."""
    grade = await get_scoped_or_404(db, GradeLevel, grade_id, school_id, "Grade")

    class_count = await db.scalar(
        select(func.count()).select_from(SchoolClass).where(SchoolClass.grade_id == grade_id)
    )
    student_count = await db.scalar(
        select(func.count()).select_from(Student).where(Student.grade_id == grade_id)
    )
    if class_count or student_count:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Grade still has classes or students; remove them first",
        )

    await db.execute(delete(Invitation).where(Invitation.grade_id == grade_id))
    await db.delete(grade)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Classes
# ============================================================================


async def _check_teacher_ids(db: AsyncSession, school_id: UUID, teacher_ids: set[UUID]) -> None:
    for teacher_id in teacher_ids:
        teacher = await db.get(User, teacher_id)
        if teacher is None or teacher.school_id != school_id or teacher.role_tag != Role.TEACHER:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Teacher not found at this school: {teacher_id}",
            )


@router.get("/{school_id}/classes", response_model=list[SchoolClassSchema])
async def list_classes(
    school_id: UUID,
    grade_id: UUID | None = None,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[SchoolClass]:
    """Classes of the school, optionally only those of one grade."""
    classes = await RecordStore(db).get(SchoolClass, school_id)
    if grade_id is not None:
        classes = [c for c in classes if c.grade_id == grade_id]
    return classes


@router.post(
    "/{school_id}/classes",
    response_model=SchoolClassSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_class(
    school_id: UUID,
    class_data: SchoolClassCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> SchoolClass:
    name = _clean_name(class_data.name, "Class name")
    await get_scoped_or_404(db, GradeLevel, class_data.grade_id, school_id, "Grade")

    subject_teachers = class_data.subject_teachers or {}
    teacher_ids = set(subject_teachers.values())
    if class_data.class_teacher_id:
        teacher_ids.add(class_data.class_teacher_id)
    await _check_teacher_ids(db, school_id, teacher_ids)

    school_class = SchoolClass(
        school_id=school_id,
        grade_id=class_data.grade_id,
        name=name,
        class_teacher_id=class_data.class_teacher_id,
        subject_teachers={subject: str(tid) for subject, tid in subject_teachers.items()},
    )
    db.add(school_class)
    await _commit_or_conflict(db, f"Class {name} already exists in this grade")
    await db.refresh(school_class)
    return school_class


@router.put("/{school_id}/classes/{class_id}", response_model=SchoolClassSchema)
async def update_class(
    school_id: UUID,
    class_id: UUID,
    class_data: SchoolClassUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> SchoolClass:
    """Update name, grade, homeroom teacher or subject teachers."""
    school_class = await get_scoped_or_404(db, SchoolClass, class_id, school_id, "Class")
    update_data = class_data.model_dump(exclude_unset=True)

    if "name" in update_data:
        school_class.name = _clean_name(update_data["name"], "Class name")
    if update_data.get("grade_id") is not None:
        await get_scoped_or_404(db, GradeLevel, update_data["grade_id"], school_id, "Grade")
        school_class.grade_id = update_data["grade_id"]
    if "class_teacher_id" in update_data:
        if update_data["class_teacher_id"] is not None:
            await _check_teacher_ids(db, school_id, {update_data["class_teacher_id"]})
        school_class.class_teacher_id = update_data["class_teacher_id"]
    if "subject_teachers" in update_data:
        subject_teachers = update_data["subject_teachers"] or {}
        await _check_teacher_ids(db, school_id, set(subject_teachers.values()))
        school_class.subject_teachers = {
            subject: str(tid) for subject, tid in subject_teachers.items()
        }

    await _commit_or_conflict(db, f"Class {school_class.name} already exists in this grade")
    await db.refresh(school_class)
    return school_class


@router.delete("/{school_id}/classes/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_class(
    school_id: UUID,
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Response:
    """Delete a class with no enrolled students."""
    school_class = await get_scoped_or_404(db, SchoolClass, class_id, school_id, "Class")

    student_count = await db.scalar(
        select(func.count()).select_from(Student).where(Student.class_id == class_id)
    )
    if student_count:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Class still has {student_count} student(s); move or delete them first",
        )

    await db.execute(delete(SchoolClass).where(SchoolClass.id == school_class.id))
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Invitations
# ============================================================================


@router.get("/{school_id}/invitations", response_model=list[InvitationSchema])
async def list_invitations(
    school_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> list[Invitation]:
    result = await db.execute(
        select(Invitation)
        .where(Invitation.school_id == school_id)
        .order_by(Invitation.created_at.desc())
    )
    return list(result.scalars().all())


@router.post(
    "/{school_id}/invitations",
    response_model=InvitationSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_invitation(
    school_id: UUID,
    invitation_data: InvitationCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Invitation:
    """Issue a parent invitation code for one grade level."""
    await get_scoped_or_404(db, GradeLevel, invitation_data.grade_id, school_id, "Grade")

    try:
        code = await generate_invitation_code(db)
    except InvitationCodeError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    invitation = Invitation(school_id=school_id, grade_id=invitation_data.grade_id, code=code)
    db.add(invitation)
    await _commit_or_conflict(db, "Invitation code clashed; please try again")
    await db.refresh(invitation)

    logger.info(f"Issued invitation {code} for school {school_id}")
    return invitation


@router.delete(
    "/{school_id}/invitations/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def revoke_invitation(
    school_id: UUID,
    invitation_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Response:
    invitation = await get_scoped_or_404(db, Invitation, invitation_id, school_id, "Invitation")
    await db.delete(invitation)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
