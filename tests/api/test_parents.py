"""
Tests for Parent API Endpoints

Child binding, results and AI reports. The report generator is mocked.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.ai import (
    AnalysisReport,
    PredictionReport,
    ReportGenerationError,
    StudentReportGenerator,
)
from edugrade.api.deps import get_report_generator
from edugrade.core.models import (
    Exam,
    GradeLevel,
    GradeRecord,
    Invitation,
    School,
    SchoolClass,
    Semester,
    Student,
    User,
)
from edugrade.engagement.parent_binding import link_child
from edugrade.main import app

ANALYSIS = AnalysisReport(
    overall_assessment="Steady progress.",
    strengths=["Math"],
    weaknesses=["English"],
    trend_analysis="Math rose from 80 to 95.",
    suggestions=["Read together every evening"],
)

PREDICTION = PredictionReport(
    predicted_exam_name="Final",
    confidence=0.6,
    subject_predictions=[
        {"subject": "Math", "predicted_min": 88, "predicted_max": 96, "trend": "stable"}
    ],
    growth_areas=["English"],
    risk_factors=[],
    strategic_advice="Keep revising weekly.",
)


@pytest.fixture
async def linked_student(db_session: AsyncSession, parent_user: User, student: Student) -> Student:
    await link_child(db_session, parent_user, student)
    await db_session.commit()
    return student


@pytest.fixture
async def results(
    db_session: AsyncSession, school: School, semester: Semester, linked_student: Student
) -> list[Exam]:
    midterm = Exam(school_id=school.id, semester_id=semester.id, name="Midterm",
                   date=date(2024, 4, 15))
    final = Exam(school_id=school.id, semester_id=semester.id, name="Final",
                 date=date(2024, 6, 30))
    db_session.add_all([midterm, final])
    await db_session.flush()
    for exam, score in [(midterm, 80), (final, 95)]:
        db_session.add(
            GradeRecord(
                school_id=school.id,
                student_id=linked_student.id,
                exam_id=exam.id,
                grades=[{"subject": "Math", "score": score, "full_score": 100}],
            )
        )
    await db_session.commit()
    return [midterm, final]


@pytest.fixture
def generator() -> MagicMock:
    mock = MagicMock(spec=StudentReportGenerator)
    mock.analyze.return_value = ANALYSIS
    mock.predict.return_value = PREDICTION
    app.dependency_overrides[get_report_generator] = lambda: mock
    return mock


class TestBindChild:
    async def test_bind_with_invitation_code(
        self, client: AsyncClient, db_session: AsyncSession, school: School, grade: GradeLevel,
        school_class: SchoolClass, student: Student, parent_headers,
    ):
        db_session.add(Invitation(school_id=school.id, grade_id=grade.id, code="K7QX2M"))
        await db_session.commit()

        response = await client.post(
            "/api/v1/parents/me/children",
            headers=parent_headers,
            json={"invite_code": "k7qx2m", "class_id": str(school_class.id), "name": "Zhang San"},
        )

        assert response.status_code == 201
        assert response.json()["id"] == str(student.id)

        response = await client.get("/api/v1/parents/me/children", headers=parent_headers)
        assert [c["name"] for c in response.json()] == ["Zhang San"]

    async def test_bind_with_explicit_school_and_grade(
        self, client: AsyncClient, school: School, grade: GradeLevel, school_class: SchoolClass,
        student: Student, parent_headers,
    ):
        response = await client.post(
            "/api/v1/parents/me/children",
            headers=parent_headers,
            json={
                "school_id": str(school.id),
                "grade_id": str(grade.id),
                "class_id": str(school_class.id),
                "name": "Zhang San",
            },
        )

        assert response.status_code == 201

    async def test_invalid_code(
        self, client: AsyncClient, school_class: SchoolClass, parent_headers
    ):
        response = await client.post(
            "/api/v1/parents/me/children",
            headers=parent_headers,
            json={"invite_code": "NOPE00", "class_id": str(school_class.id), "name": "Zhang San"},
        )

        assert response.status_code == 400

    async def test_no_matching_student(
        self, client: AsyncClient, school: School, grade: GradeLevel, school_class: SchoolClass,
        student: Student, parent_headers,
    ):
        response = await client.post(
            "/api/v1/parents/me/children",
            headers=parent_headers,
            json={
                "school_id": str(school.id),
                "grade_id": str(grade.id),
                "class_id": str(school_class.id),
                "name": "Zhang Si",
            },
        )

        assert response.status_code == 404

    async def test_already_linked(
        self, client: AsyncClient, school: School, grade: GradeLevel, school_class: SchoolClass,
        linked_student: Student, parent_headers,
    ):
        response = await client.post(
            "/api/v1/parents/me/children",
            headers=parent_headers,
            json={
                "school_id": str(school.id),
                "grade_id": str(grade.id),
                "class_id": str(school_class.id),
                "name": "Zhang San",
            },
        )

        assert response.status_code == 409

    async def test_unbind(self, client: AsyncClient, linked_student: Student, parent_headers):
        url = f"/api/v1/parents/me/children/{linked_student.id}"

        assert (await client.delete(url, headers=parent_headers)).status_code == 204
        assert (await client.delete(url, headers=parent_headers)).status_code == 404

    async def test_teacher_is_not_a_parent(self, client: AsyncClient, teacher_headers):
        response = await client.get("/api/v1/parents/me/children", headers=teacher_headers)

        assert response.status_code == 403


class TestChildResults:
    async def test_records_and_exams(
        self, client: AsyncClient, linked_student: Student, results: list[Exam], parent_headers
    ):
        base = f"/api/v1/parents/me/children/{linked_student.id}"

        response = await client.get(f"{base}/records", headers=parent_headers)
        assert len(response.json()) == 2

        response = await client.get(f"{base}/exams", headers=parent_headers)
        assert [e["name"] for e in response.json()] == ["Final", "Midterm"]

    async def test_unlinked_child_hidden(
        self, client: AsyncClient, student: Student, parent_headers
    ):
        response = await client.get(
            f"/api/v1/parents/me/children/{student.id}/records", headers=parent_headers
        )

        assert response.status_code == 404


class TestReports:
    async def test_analysis(
        self, client: AsyncClient, linked_student: Student, results: list[Exam],
        generator: MagicMock, parent_headers,
    ):
        response = await client.post(
            f"/api/v1/parents/me/children/{linked_student.id}/analysis", headers=parent_headers
        )

        assert response.status_code == 200
        assert response.json()["strengths"] == ["Math"]
        name, history, relationship = generator.analyze.call_args.args
        assert name == "Zhang San"
        assert relationship == "parent"
        assert [h["exam_name"] for h in history] == ["Midterm", "Final"]
        assert history[1]["results"] == "Math: 95/100"

    async def test_prediction(
        self, client: AsyncClient, linked_student: Student, results: list[Exam],
        generator: MagicMock, parent_headers,
    ):
        response = await client.post(
            f"/api/v1/parents/me/children/{linked_student.id}/prediction", headers=parent_headers
        )

        assert response.status_code == 200
        assert response.json()["subject_predictions"][0]["trend"] == "stable"

    async def test_no_results_yet(
        self, client: AsyncClient, linked_student: Student, generator: MagicMock, parent_headers
    ):
        response = await client.post(
            f"/api/v1/parents/me/children/{linked_student.id}/analysis", headers=parent_headers
        )

        assert response.status_code == 400
        generator.analyze.assert_not_called()

    async def test_generation_failure(
        self, client: AsyncClient, linked_student: Student, results: list[Exam],
        generator: MagicMock, parent_headers,
    ):
        generator.predict.side_effect = ReportGenerationError("AI returned malformed JSON")

        response = await client.post(
            f"/api/v1/parents/me/children/{linked_student.id}/prediction", headers=parent_headers
        )

        assert response.status_code == 502
        assert "malformed" in response.json()["detail"]
