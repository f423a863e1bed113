"""
EduGrade SQLAlchemy Models
"""

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from .exams import Exam, GradeRecord
from .schools import GradeLevel, Invitation, School, SchoolClass, Semester
from .students import Student
from .users import Gender, Role, User, parent_children

__all__ = [
    # Base
    "Base",
    "UUIDPrimaryKeyMixin",
    "TimestampMixin",
    # Schools
    "School",
    "Semester",
    "GradeLevel",
    "SchoolClass",
    "Invitation",
    # Students
    "Student",
    # Exams
    "Exam",
    "GradeRecord",
    # Users
    "Role",
    "Gender",
    "User",
    "parent_children",
]
