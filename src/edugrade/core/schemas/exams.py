"""
Exam Schemas

Exams, grade records, statistics and import summaries.
"""

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ExamCreate(BaseModel):
    name: str = Field(..., max_length=200)
    semester_id: UUID
    date: dt.date | None = Field(None, description="Defaults to today")


class ExamSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    school_id: UUID
    semester_id: UUID
    name: str
    date: dt.date


class SubjectGradeSchema(BaseModel):
    subject: str
    score: float
    full_score: float


class GradeRecordSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    school_id: UUID
    student_id: UUID
    exam_id: UUID
    grades: list[SubjectGradeSchema]


class ScoreUpdate(BaseModel):
    subject: str = Field(..., min_length=1)
    score: float


class SubjectStatsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subject: str
    average: int
    max: float
    min: float
    count: int


class ImportSummarySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    exam_id: UUID
    total: int
    succeeded: int
    skipped: int
    skip_reasons: dict[str, int]
    created_grade_levels: int
    created_classes: int
    created_students: int
