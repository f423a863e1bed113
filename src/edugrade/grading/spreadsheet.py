"""
Score spreadsheet parsing.

Reads the first worksheet of an .xlsx workbook. The first row holds the
column headers; every following non-empty row becomes a mapping keyed by
header, with empty cells left out. Column order and unknown columns do not
matter.
"""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Any
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .reconciliation import UNASSIGNED_CLASS, UNASSIGNED_GRADE, ScoreRow
from .subjects import (
    CLASS_HEADERS,
    GRADE_HEADERS,
    NAME_HEADERS,
    STUDENT_NO_HEADERS,
    Subject,
    subject_for_header,
)

logger = logging.getLogger(__name__)


class SpreadsheetError(Exception):
    """Raised when an uploaded file cannot be read as a score sheet."""

    pass


def read_sheet_rows(data: bytes) -> list[dict[str, Any]]:
    """Parse workbook bytes into header-keyed row mappings.

    Raises:
        SpreadsheetError: If the bytes are not a readable workbook
    """
    if not data:
        raise SpreadsheetError("The uploaded file is empty")

    try:
        workbook = load_workbook(BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, SyntaxError, KeyError, ValueError, OSError) as e:
        logger.warning(f"Unreadable score sheet: {e}")
        raise SpreadsheetError("The file is not a readable Excel workbook (.xlsx)") from e

    try:
        if not workbook.worksheets:
            raise SpreadsheetError("The workbook has no worksheets")

        # Read-only worksheets are parsed lazily, so a broken sheet fails here.
        # ElementTree and lxml parse errors both derive from SyntaxError.
        try:
            return _sheet_records(workbook.worksheets[0])
        except (BadZipFile, SyntaxError, KeyError, ValueError, TypeError, EOFError) as e:
            logger.warning(f"Corrupt worksheet in score sheet: {e}")
            raise SpreadsheetError("The first worksheet of the workbook is damaged") from e
    finally:
        workbook.close()


def _sheet_records(worksheet: Any) -> list[dict[str, Any]]:
    rows = worksheet.iter_rows(values_only=True)
    header_row = next(rows, None)
    if header_row is None:
        return []

    headers = [str(cell).strip() if cell is not None else "" for cell in header_row]

    records = []
    for values in rows:
        record = {
            header: value
            for header, value in zip(headers, values, strict=False)
            if header and not _is_blank(value)
        }
        if record:
            records.append(record)
    return records


def to_score_row(record: dict[str, Any]) -> ScoreRow:
    """Map a header-keyed row onto a ScoreRow using the known header aliases."""
    scores: dict[Subject, Any] = {}
    for header, value in record.items():
        subject = subject_for_header(header)
        if subject is not None:
            scores[subject] = value

    return ScoreRow(
        student_no=_cell_text(_first(record, STUDENT_NO_HEADERS)),
        name=_cell_text(_first(record, NAME_HEADERS)),
        grade_name=_cell_text(_first(record, GRADE_HEADERS)) or UNASSIGNED_GRADE,
        class_name=_cell_text(_first(record, CLASS_HEADERS)) or UNASSIGNED_CLASS,
        scores=scores,
    )


def read_score_rows(data: bytes, max_rows: int | None = None) -> list[ScoreRow]:
    """Parse workbook bytes straight into ScoreRows, preserving row order.

    Raises:
        SpreadsheetError: If the file is unreadable or has more than ``max_rows`` rows
    """
    records = read_sheet_rows(data)
    if max_rows is not None and len(records) > max_rows:
        raise SpreadsheetError(f"The sheet has {len(records)} rows; the limit is {max_rows}")
    return [to_score_row(record) for record in records]


def _first(record: dict[str, Any], headers: tuple[str, ...]) -> Any:
    for header in headers:
        if header in record:
            return record[header]
    return None


def _cell_text(value: Any) -> str:
    """Render a cell as text; whole-number floats (2024001.0) lose the '.0'."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")
