"""
Unit Tests for SQLAlchemy Models

Tests for in-memory model behaviour (no database).
"""

from uuid import uuid4

import pytest

from edugrade.core.models import Role, SchoolClass, Student, User


def test_ids_and_timestamps_assigned_on_creation():
    """Ids exist before flush so imports can link new rows."""
    student = Student(
        school_id=uuid4(), grade_id=uuid4(), class_id=uuid4(), name="Li Si", student_no="2024002"
    )

    assert student.id is not None
    assert student.created_at is not None
    assert student.updated_at == student.created_at


def test_explicit_id_kept():
    student_id = uuid4()
    student = Student(
        id=student_id,
        school_id=uuid4(),
        grade_id=uuid4(),
        class_id=uuid4(),
        name="Li Si",
        student_no="2024002",
    )

    assert student.id == student_id


class TestSchoolClassTeaching:
    def test_homeroom_teacher(self):
        teacher_id = uuid4()
        school_class = SchoolClass(
            school_id=uuid4(), grade_id=uuid4(), name="Class 1", class_teacher_id=teacher_id
        )

        assert school_class.is_taught_by(teacher_id)
        assert not school_class.is_taught_by(uuid4())

    def test_subject_teacher(self):
        teacher_id = uuid4()
        school_class = SchoolClass(
            school_id=uuid4(),
            grade_id=uuid4(),
            name="Class 1",
            subject_teachers={"Math": str(teacher_id)},
        )

        assert school_class.is_taught_by(teacher_id)

    def test_no_teachers(self):
        school_class = SchoolClass(school_id=uuid4(), grade_id=uuid4(), name="Class 1")

        assert not school_class.is_taught_by(uuid4())


@pytest.mark.parametrize("role", list(Role))
def test_role_tag(role):
    user = User(username="someone", password_hash="x", role=role.value)

    assert user.role_tag is role
