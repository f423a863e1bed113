"""
Student Schemas

Enrolment records and parent linking.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class StudentCreate(BaseModel):
    name: str = Field(..., max_length=100)
    student_no: str = Field(..., max_length=50)
    grade_id: UUID
    class_id: UUID


class StudentUpdate(BaseModel):
    name: str | None = Field(None, max_length=100)
    student_no: str | None = Field(None, max_length=50)
    grade_id: UUID | None = None
    class_id: UUID | None = None


class StudentSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    school_id: UUID
    grade_id: UUID
    class_id: UUID
    name: str
    student_no: str


class ParentLinkRequest(BaseModel):
    """Admin links a parent account, found by username or user id."""

    parent: str = Field(..., min_length=1, description="Parent username or user id")


class ChildBindRequest(BaseModel):
    """Parent finds their child: invitation code, or school + grade chosen by hand."""

    invite_code: str | None = None
    school_id: UUID | None = None
    grade_id: UUID | None = None
    class_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
