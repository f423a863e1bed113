"""
AI Services

AI-generated student analysis and prediction reports.
"""

from .client import AIClient, AIServiceError, get_ai_client
from .prompt_loader import PromptLibrary, ReportPrompt, get_prompt_library
from .reports import (
    AnalysisReport,
    PredictionReport,
    ReportGenerationError,
    StudentReportGenerator,
    build_exam_history,
)

__all__ = [
    "AIClient",
    "AIServiceError",
    "get_ai_client",
    "PromptLibrary",
    "ReportPrompt",
    "get_prompt_library",
    "AnalysisReport",
    "PredictionReport",
    "ReportGenerationError",
    "StudentReportGenerator",
    "build_exam_history",
]
