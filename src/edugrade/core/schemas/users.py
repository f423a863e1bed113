"""
User Schemas (accounts, teachers)

Pydantic models for API request/response validation.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from edugrade.core.models import Gender, Role


class RegisterRequest(BaseModel):
    """Self-service registration. Admins create their school at the same time."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    confirm_password: str = Field(..., min_length=1)
    role: Role = Role.PARENT
    school_name: str | None = Field(None, max_length=200, description="Required for ADMIN")


class LoginRequest(BaseModel):
    username: str
    password: str


class UserSchema(BaseModel):
    """Account as returned by the API (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    role: Role
    school_id: UUID | None
    real_name: str | None = None
    gender: Gender | None = None
    subjects: list[str] | None = None


class TeacherCreate(BaseModel):
    """Schema for creating a teacher account."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    real_name: str = Field(..., min_length=1, max_length=100)
    gender: Gender = Gender.MALE
    subjects: list[str] = Field(default_factory=list, description="Subjects taught")


class TeacherUpdate(BaseModel):
    """Schema for updating teacher information."""

    username: str | None = None
    password: str | None = None
    real_name: str | None = None
    gender: Gender | None = None
    subjects: list[str] | None = None
