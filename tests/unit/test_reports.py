"""
Tests for AI student reports.

The Anthropic client is mocked; no network calls are made.
"""

import json
from datetime import date
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from edugrade.ai import (
    AIClient,
    AIServiceError,
    AnalysisReport,
    PredictionReport,
    ReportGenerationError,
    StudentReportGenerator,
    build_exam_history,
    get_prompt_library,
)
from edugrade.ai.reports import UNKNOWN_EXAM, parse_report
from edugrade.core.models import Exam, GradeRecord

ANALYSIS = {
    "overall_assessment": "Steady progress across subjects.",
    "strengths": ["Math"],
    "weaknesses": ["English reading"],
    "trend_analysis": "Math rose from 80 to 95.",
    "suggestions": ["Read together for 20 minutes a day"],
}

PREDICTION = {
    "predicted_exam_name": "Final",
    "confidence": 0.7,
    "subject_predictions": [
        {"subject": "Math", "predicted_min": 90, "predicted_max": 98, "trend": "rising"}
    ],
    "growth_areas": ["English"],
    "risk_factors": ["Fatigue before exams"],
    "strategic_advice": "Keep a regular revision schedule.",
}

HISTORY = [{"exam_name": "Midterm", "date": "2024-04-15", "results": "Math: 95/100"}]


def make_exam(name: str, day: date) -> Exam:
    return Exam(school_id=uuid4(), semester_id=uuid4(), name=name, date=day)


def make_record(exam_id, grades) -> GradeRecord:
    return GradeRecord(
        school_id=uuid4(),
        student_id=uuid4(),
        exam_id=exam_id,
        grades=[{"subject": s, "score": v, "full_score": 100} for s, v in grades],
    )


def generator_returning(text: str | None = None, error: Exception | None = None):
    client = MagicMock(spec=AIClient)
    if error is not None:
        client.generate_completion.side_effect = error
    else:
        client.generate_completion.return_value = text
    return StudentReportGenerator(client=client, library=get_prompt_library()), client


class TestBuildExamHistory:
    def test_ordered_by_exam_date(self):
        final = make_exam("Final", date(2024, 6, 30))
        midterm = make_exam("Midterm", date(2024, 4, 15))
        records = [make_record(final.id, [("Math", 95)]), make_record(midterm.id, [("Math", 80)])]

        history = build_exam_history(records, [final, midterm])

        assert [h["exam_name"] for h in history] == ["Midterm", "Final"]
        assert history[0] == {"exam_name": "Midterm", "date": "2024-04-15", "results": "Math: 80/100"}

    def test_fractional_scores_and_multiple_subjects(self):
        exam = make_exam("Quiz", date(2024, 3, 1))

        history = build_exam_history([make_record(exam.id, [("Math", 92.5), ("English", 88)])], [exam])

        assert history[0]["results"] == "Math: 92.5/100, English: 88/100"

    def test_unknown_exam_sorts_last(self):
        exam = make_exam("Quiz", date(2024, 3, 1))
        records = [make_record(uuid4(), [("Math", 50)]), make_record(exam.id, [("Math", 60)])]

        history = build_exam_history(records, [exam])

        assert history[-1]["exam_name"] == UNKNOWN_EXAM
        assert history[-1]["date"] is None


class TestParseReport:
    def test_plain_json(self):
        report = parse_report(json.dumps(ANALYSIS), AnalysisReport)

        assert report.strengths == ["Math"]

    def test_code_fence_tolerated(self):
        text = f"```json\n{json.dumps(PREDICTION)}\n```"

        report = parse_report(text, PredictionReport)

        assert report.subject_predictions[0].trend == "rising"

    @pytest.mark.parametrize("text", [None, "", "   ", "not json", "[1, 2"])
    def test_empty_or_malformed(self, text):
        with pytest.raises(ReportGenerationError):
            parse_report(text, AnalysisReport)

    def test_wrong_shape_rejected_whole(self):
        bad = dict(PREDICTION, confidence=1.5)

        with pytest.raises(ReportGenerationError):
            parse_report(json.dumps(bad), PredictionReport)

    def test_unknown_trend_rejected(self):
        bad = dict(PREDICTION)
        bad["subject_predictions"] = [dict(PREDICTION["subject_predictions"][0], trend="up")]

        with pytest.raises(ReportGenerationError):
            parse_report(json.dumps(bad), PredictionReport)


class TestStudentReportGenerator:
    def test_analysis_prompt_mentions_student_and_relationship(self):
        generator, client = generator_returning(json.dumps(ANALYSIS))

        report = generator.analyze("Zhang San", HISTORY, relationship="grandparent")

        assert isinstance(report, AnalysisReport)
        kwargs = client.generate_completion.call_args.kwargs
        user_message = kwargs["messages"][0]["content"]
        assert "Zhang San" in user_message
        assert "grandparent" in user_message
        assert "Math: 95/100" in user_message
        assert "{{" not in user_message
        assert "JSON" in kwargs["system"]

    def test_prediction(self):
        generator, _client = generator_returning(json.dumps(PREDICTION))

        report = generator.predict("Zhang San", HISTORY)

        assert report.predicted_exam_name == "Final"
        assert report.confidence == 0.7

    def test_empty_history_refused_without_calling_ai(self):
        generator, client = generator_returning(json.dumps(ANALYSIS))

        with pytest.raises(ReportGenerationError, match="no exam results"):
            generator.analyze("Zhang San", [])

        client.generate_completion.assert_not_called()

    def test_service_error_wrapped(self):
        generator, _client = generator_returning(error=AIServiceError("API down"))

        with pytest.raises(ReportGenerationError, match="API down"):
            generator.predict("Zhang San", HISTORY)

    def test_model_override(self, monkeypatch):
        from edugrade.config import settings

        monkeypatch.setattr(settings, "AI_REPORT_MODEL", "claude-test-model")
        generator, client = generator_returning(json.dumps(ANALYSIS))

        generator.analyze("Zhang San", HISTORY)

        assert client.generate_completion.call_args.kwargs["model"] == "claude-test-model"


class TestAIClient:
    def test_unconfigured_client_raises(self):
        with pytest.raises(AIServiceError, match="not configured"):
            AIClient(anthropic_api_key="").generate_completion(
                model="m", system="s", messages=[{"role": "user", "content": "hi"}]
            )

    def test_api_failure_raises_service_error(self):
        with patch("anthropic.Anthropic") as anthropic_cls:
            anthropic_cls.return_value.messages.create.side_effect = RuntimeError("boom")

            with pytest.raises(AIServiceError):
                AIClient(anthropic_api_key="key").generate_completion(
                    model="m", system="s", messages=[{"role": "user", "content": "hi"}]
                )


class TestPromptLibrary:
    def test_report_prompts_present(self):
        library = get_prompt_library()

        assert "REPORT-ANALYSIS" in library
        assert "REPORT-PREDICTION" in library
        assert len(library) == 2

    def test_unknown_prompt(self):
        with pytest.raises(KeyError):
            get_prompt_library().get_prompt("NOPE")
