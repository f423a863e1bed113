"""
Parent API Endpoints

Parents link themselves to their children, follow their exam results and
request AI-written analysis and prediction reports.
"""
# ruff: noqa: B008 - FastAPI Depends in function defaults is standard pattern

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.ai import (
    AnalysisReport,
    PredictionReport,
    ReportGenerationError,
    StudentReportGenerator,
    build_exam_history,
)
from edugrade.api.deps import get_parent, get_report_generator
from edugrade.core.database import get_db
from edugrade.core.models import Exam, GradeRecord, Student, User
from edugrade.core.records import RecordStore
from edugrade.core.schemas import ChildBindRequest, ExamSchema, GradeRecordSchema, StudentSchema
from edugrade.engagement.parent_binding import (
    ChildBindingError,
    child_ids,
    find_child,
    link_child,
    list_children,
    resolve_binding_target,
    unlink_child,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_child_or_404(db: AsyncSession, parent: User, student_id: UUID) -> Student:
    if student_id not in await child_ids(db, parent.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child not found with ID: {student_id}",
        )
    student = await db.get(Student, student_id)
    if student is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child not found with ID: {student_id}",
        )
    return student


# ============================================================================
# Children
# ============================================================================


@router.get("/me/children", response_model=list[StudentSchema])
async def get_children(
    db: AsyncSession = Depends(get_db), parent: User = Depends(get_parent)
) -> list[Student]:
    return await list_children(db, parent.id)


@router.post(
    "/me/children", response_model=StudentSchema, status_code=status.HTTP_201_CREATED
)
async def bind_child(
    bind_data: ChildBindRequest,
    db: AsyncSession = Depends(get_db),
    parent: User = Depends(get_parent),
) -> Student:
    """
    Link the signed-in parent to their child.

    The child is found by class and exact name, within the school grade given
    by an invitation code (case-insensitive) or chosen explicitly.
    """
    try:
        target = await resolve_binding_target(
            db,
            invite_code=bind_data.invite_code,
            school_id=bind_data.school_id,
            grade_id=bind_data.grade_id,
        )
    except ChildBindingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    student = await find_child(db, target, class_id=bind_data.class_id, name=bind_data.name)
    if student is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No student with this name was found in the selected class",
        )

    try:
        await link_child(db, parent, student)
    except ChildBindingError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    await db.commit()
    return student


@router.delete("/me/children/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unbind_child(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    parent: User = Depends(get_parent),
) -> Response:
    if not await unlink_child(db, parent.id, student_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child not found with ID: {student_id}",
        )
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me/children/{student_id}/records", response_model=list[GradeRecordSchema])
async def get_child_records(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    parent: User = Depends(get_parent),
) -> list[GradeRecord]:
    await _get_child_or_404(db, parent, student_id)
    return await RecordStore(db).records_of_student(student_id)


@router.get("/me/children/{student_id}/exams", response_model=list[ExamSchema])
async def get_child_exams(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    parent: User = Depends(get_parent),
) -> list[Exam]:
    """Exams the child has results for, newest first."""
    await _get_child_or_404(db, parent, student_id)
    store = RecordStore(db)
    return await store.exams_of(await store.records_of_student(student_id))


# ============================================================================
# AI reports
# ============================================================================


async def _child_history(
    db: AsyncSession, parent: User, student_id: UUID
) -> tuple[Student, list[dict[str, str | None]]]:
    student = await _get_child_or_404(db, parent, student_id)
    store = RecordStore(db)
    records = await store.records_of_student(student_id)
    if not records:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{student.name} has no exam results to analyse yet",
        )
    return student, build_exam_history(records, await store.exams_of(records))


@router.post("/me/children/{student_id}/analysis", response_model=AnalysisReport)
async def analyze_child(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    parent: User = Depends(get_parent),
    generator: StudentReportGenerator = Depends(get_report_generator),
) -> AnalysisReport:
    """AI analysis of the child's results so far."""
    student, history = await _child_history(db, parent, student_id)

    try:
        return await run_in_threadpool(generator.analyze, student.name, history, "parent")
    except ReportGenerationError as e:
        logger.error(f"Analysis report failed for student {student_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e


@router.post("/me/children/{student_id}/prediction", response_model=PredictionReport)
async def predict_child(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    parent: User = Depends(get_parent),
    generator: StudentReportGenerator = Depends(get_report_generator),
) -> PredictionReport:
    """AI forecast of the child's next exam."""
    student, history = await _child_history(db, parent, student_id)

    try:
        return await run_in_threadpool(generator.predict, student.name, history)
    except ReportGenerationError as e:
        logger.error(f"Prediction report failed for student {student_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
