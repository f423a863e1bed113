"""
Tests for score import finalisation (reconcile + single commit).
"""

from datetime import UTC, date, datetime
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from edugrade.core.models import (
    Exam,
    GradeLevel,
    GradeRecord,
    Role,
    School,
    SchoolClass,
    Semester,
    Student,
    User,
)
from edugrade.core.validation import ValidationError
from edugrade.grading import (
    ImportActor,
    ImportPermissionError,
    ImportRejectedError,
    ScoreImporter,
    ScoreRow,
    SpreadsheetError,
    Subject,
    import_actor_for,
)

HEADERS = ["Student No", "Name", "Grade", "Class", "Math", "English"]


async def count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


class TestAdminImport:
    async def test_empty_school_gets_roster_exam_and_records(
        self, db_session, school, semester, admin_user, make_workbook
    ):
        data = make_workbook(
            HEADERS,
            [
                ["2024001", "Zhang San", "Grade 9", "Class 1", 95, 88],
                ["2024002", "Li Si", "Grade 9", "Class 2", 72, None],
            ],
        )

        summary = await ScoreImporter(db_session).import_file(
            user=admin_user,
            school_id=school.id,
            exam_name="Midterm",
            semester_id=semester.id,
            file_bytes=data,
        )

        assert summary.total == 2
        assert summary.succeeded == 2
        assert summary.skipped == 0
        assert summary.created_grade_levels == 1
        assert summary.created_classes == 2
        assert summary.created_students == 2

        exam = await db_session.get(Exam, summary.exam_id)
        assert exam.name == "Midterm"
        assert exam.semester_id == semester.id
        assert exam.date == datetime.now(UTC).date()

        records = (await db_session.execute(select(GradeRecord))).scalars().all()
        assert len(records) == 2
        assert {r.exam_id for r in records} == {exam.id}
        li_si = (
            await db_session.execute(select(Student).where(Student.student_no == "2024002"))
        ).scalar_one()
        li_si_record = next(r for r in records if r.student_id == li_si.id)
        assert li_si_record.grades == [{"subject": "Math", "score": 72.0, "full_score": 100}]

    async def test_reimport_reuses_roster(
        self, db_session, school, semester, admin_user, make_workbook
    ):
        data = make_workbook(HEADERS, [["2024001", "Zhang San", "Grade 9", "Class 1", 95, 88]])
        importer = ScoreImporter(db_session)

        first = await importer.import_file(
            user=admin_user,
            school_id=school.id,
            exam_name="Midterm",
            semester_id=semester.id,
            file_bytes=data,
        )
        second = await importer.import_file(
            user=admin_user,
            school_id=school.id,
            exam_name="Final",
            semester_id=semester.id,
            file_bytes=data,
            exam_date=date(2024, 6, 30),
        )

        assert first.exam_id != second.exam_id
        assert second.created_students == 0
        assert await count(db_session, Student) == 1
        assert await count(db_session, GradeLevel) == 1
        assert await count(db_session, SchoolClass) == 1
        assert await count(db_session, GradeRecord) == 2
        assert (await db_session.get(Exam, second.exam_id)).date == date(2024, 6, 30)

    async def test_existing_student_moves_class(
        self, db_session, school, semester, admin_user, student, school_class
    ):
        rows = [ScoreRow("2024001", "Zhang San", "Grade 9", "Class 3", {Subject.MATH: 70})]

        summary = await ScoreImporter(db_session).import_rows(
            rows,
            school_id=school.id,
            actor=ImportActor.admin(),
            exam_name="Quiz",
            semester_id=semester.id,
        )

        await db_session.refresh(student)
        assert summary.created_classes == 1
        assert student.class_id != school_class.id
        new_class = await db_session.get(SchoolClass, student.class_id)
        assert new_class.name == "Class 3"


class TestRejection:
    async def test_zero_successes_writes_nothing(
        self, db_session, school, semester, teacher_user, make_workbook
    ):
        data = make_workbook(HEADERS, [["2099999", "Ghost", "Grade 12", "Class 9", 50, 50]])

        with pytest.raises(ImportRejectedError) as exc_info:
            await ScoreImporter(db_session).import_file(
                user=teacher_user,
                school_id=school.id,
                exam_name="Midterm",
                semester_id=semester.id,
                file_bytes=data,
            )

        assert exc_info.value.total == 1
        assert exc_info.value.skipped == 1
        assert exc_info.value.skip_reasons == {"unknown_grade": 1}
        assert await count(db_session, Exam) == 0
        assert await count(db_session, GradeLevel) == 0
        assert await count(db_session, GradeRecord) == 0

    async def test_header_only_sheet_is_rejected(
        self, db_session, school, semester, admin_user, make_workbook
    ):
        with pytest.raises(ImportRejectedError):
            await ScoreImporter(db_session).import_file(
                user=admin_user,
                school_id=school.id,
                exam_name="Midterm",
                semester_id=semester.id,
                file_bytes=make_workbook(HEADERS, []),
            )

        assert await count(db_session, Exam) == 0


class TestRequestValidation:
    async def test_missing_file(self, db_session, school, semester, admin_user):
        with pytest.raises(ValidationError, match="upload"):
            await ScoreImporter(db_session).import_file(
                user=admin_user,
                school_id=school.id,
                exam_name="Midterm",
                semester_id=semester.id,
                file_bytes=None,
            )

    async def test_blank_exam_name(self, db_session, school, semester, admin_user, make_workbook):
        with pytest.raises(ValidationError, match="Exam name"):
            await ScoreImporter(db_session).import_file(
                user=admin_user,
                school_id=school.id,
                exam_name="   ",
                semester_id=semester.id,
                file_bytes=make_workbook(HEADERS, []),
            )

    async def test_semester_of_another_school(
        self, db_session, school, admin_user, make_workbook
    ):
        other = School(name="Other School")
        db_session.add(other)
        await db_session.flush()
        foreign = Semester(school_id=other.id, name="Spring", is_current=True)
        db_session.add(foreign)
        await db_session.commit()

        with pytest.raises(ValidationError, match="Semester"):
            await ScoreImporter(db_session).import_file(
                user=admin_user,
                school_id=school.id,
                exam_name="Midterm",
                semester_id=foreign.id,
                file_bytes=make_workbook(HEADERS, []),
            )

    async def test_unreadable_file(self, db_session, school, semester, admin_user):
        with pytest.raises(SpreadsheetError):
            await ScoreImporter(db_session).import_file(
                user=admin_user,
                school_id=school.id,
                exam_name="Midterm",
                semester_id=semester.id,
                file_bytes=b"not a workbook",
            )

    async def test_other_school_user(self, db_session, school, semester, make_workbook):
        other = School(name="Other School")
        db_session.add(other)
        await db_session.flush()
        outsider = User(
            username="outsider", password_hash="x", role=Role.ADMIN.value, school_id=other.id
        )
        db_session.add(outsider)
        await db_session.commit()

        with pytest.raises(ImportPermissionError):
            await ScoreImporter(db_session).import_file(
                user=outsider,
                school_id=school.id,
                exam_name="Midterm",
                semester_id=semester.id,
                file_bytes=make_workbook(HEADERS, []),
            )


class TestTeacherImport:
    async def test_only_taught_classes_are_written(
        self, db_session, school, semester, grade, teacher_user, student, make_workbook
    ):
        other_class = SchoolClass(school_id=school.id, grade_id=grade.id, name="Class 2")
        db_session.add(other_class)
        await db_session.flush()
        db_session.add(
            Student(
                school_id=school.id,
                grade_id=grade.id,
                class_id=other_class.id,
                name="Li Si",
                student_no="2024002",
            )
        )
        await db_session.commit()

        data = make_workbook(
            HEADERS,
            [
                ["2024001", "Zhang San", "Grade 9", "Class 1", 90, 91],
                ["2024002", "Li Si", "Grade 9", "Class 2", 80, 81],
            ],
        )

        summary = await ScoreImporter(db_session).import_file(
            user=teacher_user,
            school_id=school.id,
            exam_name="Unit Test",
            semester_id=semester.id,
            file_bytes=data,
        )

        assert summary.succeeded == 1
        assert summary.skip_reasons == {"class_not_permitted": 1}
        records = (await db_session.execute(select(GradeRecord))).scalars().all()
        assert [r.student_id for r in records] == [student.id]


class TestImportActorFor:
    def test_subject_teacher_is_permitted(self):
        teacher = User(username="t2", password_hash="x", role=Role.TEACHER.value)
        school_id, grade_id = uuid4(), uuid4()
        taught = SchoolClass(
            school_id=school_id,
            grade_id=grade_id,
            name="A",
            subject_teachers={"Math": str(teacher.id)},
        )
        not_taught = SchoolClass(school_id=school_id, grade_id=grade_id, name="B")

        actor = import_actor_for(teacher, [taught, not_taught])

        assert actor.role == Role.TEACHER
        assert actor.permitted_class_ids == frozenset({taught.id})

    def test_admin_unrestricted(self):
        admin = User(username="a", password_hash="x", role=Role.ADMIN.value)

        actor = import_actor_for(admin, [])

        assert actor.can_create_roster
        assert actor.permitted_class_ids is None

    def test_parent_refused(self):
        parent = User(username="p", password_hash="x", role=Role.PARENT.value)

        with pytest.raises(ImportPermissionError):
            import_actor_for(parent, [])
