"""
Student Report Generation

Builds a student's exam history, sends it through the REPORT-ANALYSIS or
REPORT-PREDICTION prompt, and validates the JSON answer. A response that is
empty, not JSON, or does not match the declared shape is rejected whole.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any, Literal, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field, ValidationError

from edugrade.core.models import Exam, GradeRecord

from .client import AIClient, AIServiceError, get_ai_client
from .prompt_loader import PromptLibrary, get_prompt_library

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT_ID = "REPORT-ANALYSIS"
PREDICTION_PROMPT_ID = "REPORT-PREDICTION"
UNKNOWN_EXAM = "Unknown exam"

ReportT = TypeVar("ReportT", bound=BaseModel)


class ReportGenerationError(Exception):
    """Raised when a report cannot be produced from the AI response."""

    pass


# ============================================================================
# Response shapes
# ============================================================================


class AnalysisReport(BaseModel):
    """Narrative analysis of a student's results."""

    overall_assessment: str = Field(..., min_length=1)
    strengths: list[str]
    weaknesses: list[str]
    trend_analysis: str = Field(..., min_length=1)
    suggestions: list[str]


class SubjectPrediction(BaseModel):
    subject: str = Field(..., min_length=1)
    predicted_min: float = Field(..., ge=0)
    predicted_max: float = Field(..., ge=0)
    trend: Literal["rising", "falling", "stable"]


class PredictionReport(BaseModel):
    """Forecast of the student's next exam."""

    predicted_exam_name: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0, le=1)
    subject_predictions: list[SubjectPrediction]
    growth_areas: list[str]
    risk_factors: list[str]
    strategic_advice: str = Field(..., min_length=1)


# ============================================================================
# History
# ============================================================================


def build_exam_history(
    records: Iterable[GradeRecord], exams: Sequence[Exam]
) -> list[dict[str, str | None]]:
    """Order a student's grade records by exam date for the prompt.

    Each entry carries the exam name, ISO date and a "Subject: score/full"
    summary. Records whose exam is unknown sort last.
    """
    exams_by_id: dict[UUID, Exam] = {exam.id: exam for exam in exams}

    entries: list[tuple[tuple[int, str, str], dict[str, str | None]]] = []
    for record in records:
        exam = exams_by_id.get(record.exam_id)
        results = ", ".join(
            f"{grade['subject']}: {_format_number(grade['score'])}/"
            f"{_format_number(grade['full_score'])}"
            for grade in record.grades
        )
        if exam is None:
            sort_key = (1, "", UNKNOWN_EXAM)
            entry = {"exam_name": UNKNOWN_EXAM, "date": None, "results": results}
        else:
            sort_key = (0, exam.date.isoformat(), exam.name)
            entry = {"exam_name": exam.name, "date": exam.date.isoformat(), "results": results}
        entries.append((sort_key, entry))

    return [entry for _, entry in sorted(entries, key=lambda item: item[0])]


def _format_number(value: Any) -> str:
    number = float(value)
    return str(int(number)) if number.is_integer() else f"{number:g}"


# ============================================================================
# Generator
# ============================================================================


class StudentReportGenerator:
    """Produces AI analysis and prediction reports for one student at a time."""

    def __init__(self, client: AIClient | None = None, library: PromptLibrary | None = None):
        self.client = client or get_ai_client()
        self.library = library or get_prompt_library()

    def analyze(
        self,
        student_name: str,
        history: list[dict[str, str | None]],
        relationship: str = "parent",
    ) -> AnalysisReport:
        """Narrative analysis addressed to ``relationship`` (e.g. parent, teacher)."""
        return self._generate(
            ANALYSIS_PROMPT_ID,
            AnalysisReport,
            {
                "student_name": student_name,
                "relationship": relationship,
                "exam_history_json": json.dumps(history, indent=2, ensure_ascii=False),
            },
        )

    def predict(self, student_name: str, history: list[dict[str, str | None]]) -> PredictionReport:
        """Forecast of the next exam."""
        return self._generate(
            PREDICTION_PROMPT_ID,
            PredictionReport,
            {
                "student_name": student_name,
                "exam_history_json": json.dumps(history, indent=2, ensure_ascii=False),
            },
        )

    def _generate(self, prompt_id: str, schema: type[ReportT], context: dict[str, str]) -> ReportT:
        if not context.get("exam_history_json") or context["exam_history_json"] == "[]":
            raise ReportGenerationError("There are no exam results to analyse yet")

        prompt = self.library.get_prompt(prompt_id)
        system = (
            f"{prompt.system_prompt}\n\n"
            "Respond with a single JSON object and nothing else. "
            f"It must match this JSON schema:\n{json.dumps(prompt.output_schema, indent=2)}"
        )

        try:
            text = self.client.generate_completion(
                model=prompt.effective_model,
                system=system,
                messages=[{"role": "user", "content": prompt.render(context)}],
                max_tokens=prompt.max_tokens,
                temperature=prompt.temperature,
            )
        except AIServiceError as e:
            raise ReportGenerationError(str(e)) from e

        return parse_report(text, schema)


def parse_report(text: str | None, schema: type[ReportT]) -> ReportT:
    """Parse and validate a JSON report, tolerating a surrounding code fence.

    Raises:
        ReportGenerationError: Empty, non-JSON or wrongly shaped response
    """
    if not text or not text.strip():
        raise ReportGenerationError("AI returned an empty report")

    body = text.strip()
    fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", body, re.DOTALL)
    if fenced:
        body = fenced.group(1)

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        logger.warning(f"AI report was not valid JSON: {e}")
        raise ReportGenerationError("AI returned a malformed report") from e

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.warning(f"AI report did not match {schema.__name__}: {e}")
        raise ReportGenerationError("AI returned an incomplete report") from e
