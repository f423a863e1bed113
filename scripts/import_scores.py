"""
Import an exam score sheet (.xlsx) from the command line.

Usage:
    python -m scripts.import_scores scores.xlsx --username admin \
        --exam-name "Midterm" --semester-id <uuid> [--date 2024-04-15]
"""

import argparse
import asyncio
import datetime as dt
import sys
from pathlib import Path
from uuid import UUID

from sqlalchemy import select

from edugrade.core.database import get_db
from edugrade.core.models import User
from edugrade.core.validation import ValidationError
from edugrade.grading import (
    ImportConflictError,
    ImportPermissionError,
    ImportRejectedError,
    ImportSummary,
    ScoreImporter,
    SpreadsheetError,
)


async def import_scores(
    path: str, username: str, exam_name: str, semester_id: UUID, exam_date: dt.date | None
) -> ImportSummary:
    """Import a score sheet as the given user (admin or teacher)."""
    async for db in get_db():
        result = await db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None or user.school_id is None:
            raise ValidationError(f"No school account named {username}")

        return await ScoreImporter(db).import_file(
            user=user,
            school_id=user.school_id,
            exam_name=exam_name,
            semester_id=semester_id,
            file_bytes=Path(path).read_bytes(),
            exam_date=exam_date,
        )
    raise RuntimeError("No database session available")


async def main():
    parser = argparse.ArgumentParser(description="Import an exam score sheet into EduGrade")
    parser.add_argument("xlsx_file", help="Path to the .xlsx score sheet")
    parser.add_argument("--username", required=True, help="Admin or teacher account to import as")
    parser.add_argument("--exam-name", required=True)
    parser.add_argument("--semester-id", required=True, type=UUID)
    parser.add_argument("--date", type=dt.date.fromisoformat, default=None, help="YYYY-MM-DD")
    args = parser.parse_args()

    try:
        summary = await import_scores(
            args.xlsx_file, args.username, args.exam_name, args.semester_id, args.date
        )
    except ImportRejectedError as e:
        print(f"❌ {e} (total={e.total}, reasons={e.skip_reasons})")
        sys.exit(1)
    except (
        ValidationError,
        ImportPermissionError,
        SpreadsheetError,
        ImportConflictError,
        OSError,
    ) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    print(
        f"✅ Imported exam {summary.exam_id}: {summary.succeeded}/{summary.total} rows "
        f"({summary.skipped} skipped: {summary.skip_reasons})"
    )
    print(
        f"   New grades: {summary.created_grade_levels}, classes: {summary.created_classes}, "
        f"students: {summary.created_students}"
    )


if __name__ == "__main__":
    asyncio.run(main())
