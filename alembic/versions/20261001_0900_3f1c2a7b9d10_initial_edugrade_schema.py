"""Initial EduGrade schema

Revision ID: 3f1c2a7b9d10
Revises:
Create Date: 2026-10-01 09:00:00.000000+00:00

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a7b9d10"  # pragma: allowlist secret
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
            comment="Creation timestamp (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
            comment="Last update timestamp (UTC)",
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "schools",
        sa.Column("id", sa.Uuid(), primary_key=True, comment="UUID primary key"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("logo", sa.Text(), nullable=True, comment="Data URL or link"),
        sa.Column("motto", sa.String(300), nullable=True),
        sa.Column("address", sa.String(300), nullable=True),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("website", sa.String(300), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, comment="UUID primary key"),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(10), nullable=False),
        sa.Column(
            "school_id",
            sa.Uuid(),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("real_name", sa.String(100), nullable=True),
        sa.Column("gender", sa.String(10), nullable=True),
        sa.Column("subjects", sa.JSON(), nullable=True, comment="Subjects taught"),
        *_timestamps(),
        sa.CheckConstraint("role IN ('ADMIN', 'TEACHER', 'PARENT')", name="check_user_role"),
        sa.CheckConstraint("gender IS NULL OR gender IN ('MALE', 'FEMALE')", name="check_gender"),
    )

    op.create_table(
        "semesters",
        sa.Column("id", sa.Uuid(), primary_key=True, comment="UUID primary key"),
        sa.Column(
            "school_id",
            sa.Uuid(),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "is_current",
            sa.Boolean(),
            nullable=True,
            comment="At most one current semester per school",
        ),
        *_timestamps(),
    )
    op.create_index("idx_semesters_school", "semesters", ["school_id"])

    op.create_table(
        "grade_levels",
        sa.Column("id", sa.Uuid(), primary_key=True, comment="UUID primary key"),
        sa.Column(
            "school_id",
            sa.Uuid(),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("school_id", "name", name="uq_grade_levels_school_name"),
    )

    op.create_table(
        "school_classes",
        sa.Column("id", sa.Uuid(), primary_key=True, comment="UUID primary key"),
        sa.Column(
            "school_id",
            sa.Uuid(),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("grade_id", sa.Uuid(), sa.ForeignKey("grade_levels.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "class_teacher_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
            comment="Homeroom teacher",
        ),
        sa.Column(
            "subject_teachers",
            sa.JSON(),
            nullable=True,
            comment="Subject name -> teacher user id",
        ),
        *_timestamps(),
        sa.UniqueConstraint(
            "school_id", "grade_id", "name", name="uq_school_classes_grade_name"
        ),
    )

    op.create_table(
        "students",
        sa.Column("id", sa.Uuid(), primary_key=True, comment="UUID primary key"),
        sa.Column(
            "school_id",
            sa.Uuid(),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("grade_id", sa.Uuid(), sa.ForeignKey("grade_levels.id"), nullable=False),
        sa.Column("class_id", sa.Uuid(), sa.ForeignKey("school_classes.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "student_no",
            sa.String(50),
            nullable=False,
            comment="Natural key used for import matching",
        ),
        *_timestamps(),
        sa.UniqueConstraint("school_id", "student_no", name="uq_students_school_student_no"),
    )
    op.create_index("idx_students_class", "students", ["class_id"])

    op.create_table(
        "parent_children",
        sa.Column(
            "parent_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "student_id",
            sa.Uuid(),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "invitations",
        sa.Column("id", sa.Uuid(), primary_key=True, comment="UUID primary key"),
        sa.Column(
            "school_id",
            sa.Uuid(),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "grade_id",
            sa.Uuid(),
            sa.ForeignKey("grade_levels.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("code", sa.String(12), nullable=False, unique=True, comment="e.g., K7QX2M"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "exams",
        sa.Column("id", sa.Uuid(), primary_key=True, comment="UUID primary key"),
        sa.Column(
            "school_id",
            sa.Uuid(),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("semester_id", sa.Uuid(), sa.ForeignKey("semesters.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_exams_school_semester", "exams", ["school_id", "semester_id"])

    op.create_table(
        "grade_records",
        sa.Column("id", sa.Uuid(), primary_key=True, comment="UUID primary key"),
        sa.Column(
            "school_id",
            sa.Uuid(),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "student_id",
            sa.Uuid(),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "exam_id",
            sa.Uuid(),
            sa.ForeignKey("exams.id", ondelete="CASCADE"),
            nullable=False,
            comment="Stamped when the import is committed",
        ),
        sa.Column("grades", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_grade_records_exam", "grade_records", ["exam_id"])
    op.create_index("idx_grade_records_student", "grade_records", ["student_id"])


def downgrade() -> None:
    op.drop_index("idx_grade_records_student", table_name="grade_records")
    op.drop_index("idx_grade_records_exam", table_name="grade_records")
    op.drop_table("grade_records")
    op.drop_index("idx_exams_school_semester", table_name="exams")
    op.drop_table("exams")
    op.drop_table("invitations")
    op.drop_table("parent_children")
    op.drop_index("idx_students_class", table_name="students")
    op.drop_table("students")
    op.drop_table("school_classes")
    op.drop_table("grade_levels")
    op.drop_index("idx_semesters_school", table_name="semesters")
    op.drop_table("semesters")
    op.drop_table("users")
    op.drop_table("schools")
