"""
Score Import and Reconciliation

Spreadsheet parsing, roster reconciliation and exam statistics.
"""

from .importer import (
    ImportConflictError,
    ImportRejectedError,
    ImportSummary,
    ScoreImporter,
    import_actor_for,
)
from .reconciliation import (
    UNASSIGNED_CLASS,
    UNASSIGNED_GRADE,
    ImportActor,
    ImportPermissionError,
    ReconciliationResult,
    RosterReconciler,
    ScoreRow,
    SkipReason,
    reconcile_rows,
)
from .spreadsheet import SpreadsheetError, read_score_rows
from .statistics import SubjectStats, exam_subject_stats
from .subjects import FULL_SCORE, Subject

__all__ = [
    "FULL_SCORE",
    "Subject",
    "UNASSIGNED_CLASS",
    "UNASSIGNED_GRADE",
    "ImportActor",
    "ImportPermissionError",
    "ScoreRow",
    "SkipReason",
    "ReconciliationResult",
    "RosterReconciler",
    "reconcile_rows",
    "SpreadsheetError",
    "read_score_rows",
    "ImportConflictError",
    "ImportRejectedError",
    "ImportSummary",
    "ScoreImporter",
    "import_actor_for",
    "SubjectStats",
    "exam_subject_stats",
]
