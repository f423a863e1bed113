"""
Exam API Endpoints

Exams, score sheet import, per-exam statistics and grade record editing.
"""
# ruff: noqa: B008 - FastAPI Depends in function defaults is standard pattern

import datetime as dt
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.api.deps import get_school_admin, get_school_staff, get_scoped_or_404
from edugrade.api.v1.teachers import taught_classes
from edugrade.core.database import get_db
from edugrade.core.models import Exam, GradeRecord, Role, Semester, Student, User
from edugrade.core.schemas import (
    ExamCreate,
    ExamSchema,
    GradeRecordSchema,
    ImportSummarySchema,
    ScoreUpdate,
    SubjectStatsSchema,
)
from edugrade.core.validation import ValidationError, validate_name, validate_score
from edugrade.grading import (
    ImportConflictError,
    ImportPermissionError,
    ImportRejectedError,
    ImportSummary,
    ScoreImporter,
    SpreadsheetError,
    SubjectStats,
    exam_subject_stats,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _records_visible_to(
    db: AsyncSession, user: User, records: list[GradeRecord]
) -> list[GradeRecord]:
    """Admins see every record; teachers only those of students in their classes."""
    if user.role_tag == Role.ADMIN or not records:
        return records

    class_ids = {c.id for c in await taught_classes(db, user)}
    result = await db.execute(
        select(Student.id).where(
            Student.id.in_({r.student_id for r in records}), Student.class_id.in_(class_ids)
        )
    )
    visible = set(result.scalars().all())
    return [r for r in records if r.student_id in visible]


# ============================================================================
# Exams
# ============================================================================


@router.get("/schools/{school_id}/exams", response_model=list[ExamSchema])
async def list_exams(
    school_id: UUID,
    semester_id: UUID | None = None,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(get_school_staff),
) -> list[Exam]:
    """Exams of the school, newest first, optionally for one semester."""
    stmt = select(Exam).where(Exam.school_id == school_id)
    if semester_id is not None:
        stmt = stmt.where(Exam.semester_id == semester_id)

    result = await db.execute(stmt.order_by(Exam.date.desc(), Exam.created_at.desc()))
    return list(result.scalars().all())


@router.post(
    "/schools/{school_id}/exams", response_model=ExamSchema, status_code=status.HTTP_201_CREATED
)
async def create_exam(
    school_id: UUID,
    exam_data: ExamCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_school_admin),
) -> Exam:
    """Create an exam without importing scores."""
    try:
        name = validate_name(exam_data.name, field="Exam name", max_length=200)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    await get_scoped_or_404(db, Semester, exam_data.semester_id, school_id, "Semester")

    exam = Exam(
        school_id=school_id,
        semester_id=exam_data.semester_id,
        name=name,
        date=exam_data.date or dt.datetime.now(dt.UTC).date(),
    )
    db.add(exam)
    await db.commit()
    await db.refresh(exam)
    return exam


@router.delete("/schools/{school_id}/exams/{exam_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_exam(
    school_id: UUID,
    exam_id: UUID,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(get_school_staff),
) -> Response:
    """Delete an exam and its grade records. Roster data is left alone."""
    exam = await get_scoped_or_404(db, Exam, exam_id, school_id, "Exam")

    result = await db.execute(delete(GradeRecord).where(GradeRecord.exam_id == exam.id))
    await db.execute(delete(Exam).where(Exam.id == exam.id))
    await db.commit()

    logger.info(f"Deleted exam {exam.name} ({exam.id}) with {result.rowcount} grade record(s)")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/schools/{school_id}/exams/{exam_id}/stats", response_model=list[SubjectStatsSchema]
)
async def get_exam_stats(
    school_id: UUID,
    exam_id: UUID,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(get_school_staff),
) -> list[SubjectStats]:
    """Per-subject average (rounded), max, min and count for one exam."""
    await get_scoped_or_404(db, Exam, exam_id, school_id, "Exam")
    result = await db.execute(select(GradeRecord).where(GradeRecord.exam_id == exam_id))
    return exam_subject_stats(result.scalars().all())


@router.get(
    "/schools/{school_id}/exams/{exam_id}/records", response_model=list[GradeRecordSchema]
)
async def get_exam_records(
    school_id: UUID,
    exam_id: UUID,
    db: AsyncSession = Depends(get_db),
    staff: User = Depends(get_school_staff),
) -> list[GradeRecord]:
    await get_scoped_or_404(db, Exam, exam_id, school_id, "Exam")
    result = await db.execute(
        select(GradeRecord).where(GradeRecord.exam_id == exam_id).order_by(GradeRecord.created_at)
    )
    return await _records_visible_to(db, staff, list(result.scalars().all()))


@router.get(
    "/schools/{school_id}/students/{student_id}/records",
    response_model=list[GradeRecordSchema],
)
async def get_student_records(
    school_id: UUID,
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    staff: User = Depends(get_school_staff),
) -> list[GradeRecord]:
    """Grade history of one student across exams."""
    await get_scoped_or_404(db, Student, student_id, school_id, "Student")
    result = await db.execute(
        select(GradeRecord)
        .where(GradeRecord.student_id == student_id)
        .order_by(GradeRecord.created_at)
    )
    return await _records_visible_to(db, staff, list(result.scalars().all()))


# ============================================================================
# Import
# ============================================================================


@router.post(
    "/schools/{school_id}/exams/import",
    response_model=ImportSummarySchema,
    status_code=status.HTTP_201_CREATED,
)
async def import_exam_scores(
    school_id: UUID,
    exam_name: str = Form(...),
    semester_id: UUID = Form(...),
    exam_date: dt.date | None = Form(None),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    staff: User = Depends(get_school_staff),
) -> ImportSummary:
    """
    Import a score sheet (.xlsx) as a new exam.

    Administrators may create missing grades, classes and students on the
    fly; teachers may only record scores for existing students in classes
    they teach. Rows that cannot be imported are skipped and counted.
    """
    file_bytes = await file.read()

    try:
        return await ScoreImporter(db).import_file(
            user=staff,
            school_id=school_id,
            exam_name=exam_name,
            semester_id=semester_id,
            file_bytes=file_bytes,
            exam_date=exam_date,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except ImportPermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except SpreadsheetError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        ) from e
    except ImportRejectedError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": str(e),
                "total": e.total,
                "skipped": e.skipped,
                "skip_reasons": e.skip_reasons,
            },
        ) from e
    except ImportConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


# ============================================================================
# Score editing
# ============================================================================


@router.put(
    "/schools/{school_id}/records/{record_id}/scores", response_model=GradeRecordSchema
)
async def update_score(
    school_id: UUID,
    record_id: UUID,
    score_data: ScoreUpdate,
    db: AsyncSession = Depends(get_db),
    staff: User = Depends(get_school_staff),
) -> GradeRecord:
    """Change one subject score in a grade record.

    Teachers can only edit records of students in classes they teach.
    """
    record = await get_scoped_or_404(db, GradeRecord, record_id, school_id, "Grade record")

    if not await _records_visible_to(db, staff, [record]):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only edit scores for classes you teach",
        )

    grades = [dict(grade) for grade in record.grades]
    entry = next((g for g in grades if g["subject"] == score_data.subject), None)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {score_data.subject} score in this record",
        )

    try:
        entry["score"] = validate_score(score_data.score, full_score=entry["full_score"])
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    # New list so the JSON column change is detected
    record.grades = grades
    await db.commit()
    await db.refresh(record)

    logger.info(f"{staff.username} set {score_data.subject}={entry['score']} on record {record.id}")
    return record
