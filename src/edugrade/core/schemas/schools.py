"""
School Schemas

School branding, semesters, grade levels, classes and invitations.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SchoolSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    logo: str | None = None
    motto: str | None = None
    address: str | None = None
    phone: str | None = None
    website: str | None = None


class SchoolUpdate(BaseModel):
    """Only fields explicitly provided are changed."""

    name: str | None = Field(None, max_length=200)
    logo: str | None = None
    motto: str | None = Field(None, max_length=300)
    address: str | None = Field(None, max_length=300)
    phone: str | None = Field(None, max_length=40)
    website: str | None = Field(None, max_length=300)


class SemesterCreate(BaseModel):
    name: str = Field(..., max_length=100)


class SemesterSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    school_id: UUID
    name: str
    is_current: bool


class GradeLevelCreate(BaseModel):
    name: str = Field(..., max_length=100)


class GradeLevelSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    school_id: UUID
    name: str


class SchoolClassCreate(BaseModel):
    name: str = Field(..., max_length=100)
    grade_id: UUID
    class_teacher_id: UUID | None = None
    subject_teachers: dict[str, UUID] | None = Field(
        None, description="Subject name -> teacher user id"
    )


class SchoolClassUpdate(BaseModel):
    name: str | None = Field(None, max_length=100)
    grade_id: UUID | None = None
    class_teacher_id: UUID | None = None
    subject_teachers: dict[str, UUID] | None = None


class SchoolClassSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    school_id: UUID
    grade_id: UUID
    name: str
    class_teacher_id: UUID | None = None
    subject_teachers: dict[str, UUID] | None = None


class InvitationCreate(BaseModel):
    grade_id: UUID


class InvitationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    school_id: UUID
    grade_id: UUID
    code: str
    created_at: datetime
