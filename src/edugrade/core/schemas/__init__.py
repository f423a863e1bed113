"""Pydantic schemas for API validation."""

from .exams import (
    ExamCreate,
    ExamSchema,
    GradeRecordSchema,
    ImportSummarySchema,
    ScoreUpdate,
    SubjectGradeSchema,
    SubjectStatsSchema,
)
from .schools import (
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
from .students import (
    ChildBindRequest,
    ParentLinkRequest,
    StudentCreate,
    StudentSchema,
    StudentUpdate,
)
from .users import LoginRequest, RegisterRequest, TeacherCreate, TeacherUpdate, UserSchema

__all__ = [
    # Exams
    "ExamCreate",
    "ExamSchema",
    "GradeRecordSchema",
    "ImportSummarySchema",
    "ScoreUpdate",
    "SubjectGradeSchema",
    "SubjectStatsSchema",
    # Schools
    "GradeLevelCreate",
    "GradeLevelSchema",
    "InvitationCreate",
    "InvitationSchema",
    "SchoolClassCreate",
    "SchoolClassSchema",
    "SchoolClassUpdate",
    "SchoolSchema",
    "SchoolUpdate",
    "SemesterCreate",
    "SemesterSchema",
    # Students
    "ChildBindRequest",
    "ParentLinkRequest",
    "StudentCreate",
    "StudentSchema",
    "StudentUpdate",
    # Users
    "LoginRequest",
    "RegisterRequest",
    "TeacherCreate",
    "TeacherUpdate",
    "UserSchema",
]
