"""
Subject vocabulary and spreadsheet header aliases.

Score sheets come from both English and Chinese templates, so every
recognised column has a canonical name plus the header spellings that map
to it. Header matching is exact after trimming surrounding whitespace.
"""

from enum import StrEnum

FULL_SCORE = 100


class Subject(StrEnum):
    LANGUAGE = "Language"
    MATH = "Math"
    ENGLISH = "English"
    PHYSICS = "Physics"
    CHEMISTRY = "Chemistry"
    BIOLOGY = "Biology"
    HISTORY = "History"
    GEOGRAPHY = "Geography"
    POLITICS = "Politics"


SUBJECT_HEADERS: dict[Subject, tuple[str, ...]] = {
    Subject.LANGUAGE: ("Language", "Chinese", "语文"),
    Subject.MATH: ("Math", "Mathematics", "数学"),
    Subject.ENGLISH: ("English", "英语"),
    Subject.PHYSICS: ("Physics", "物理"),
    Subject.CHEMISTRY: ("Chemistry", "化学"),
    Subject.BIOLOGY: ("Biology", "生物"),
    Subject.HISTORY: ("History", "历史"),
    Subject.GEOGRAPHY: ("Geography", "地理"),
    Subject.POLITICS: ("Politics", "政治"),
}

STUDENT_NO_HEADERS = ("Student No", "Student Number", "StudentNo", "学号")
NAME_HEADERS = ("Name", "Student Name", "姓名")
GRADE_HEADERS = ("Grade", "Grade Level", "年级")
CLASS_HEADERS = ("Class", "Class Name", "班级")

# Order in which subject grades are emitted for a row
SUBJECT_ORDER: tuple[Subject, ...] = tuple(Subject)


def subject_for_header(header: str) -> Subject | None:
    """Return the subject a column header maps to, or None if unrecognised."""
    header = header.strip()
    for subject, aliases in SUBJECT_HEADERS.items():
        if header in aliases:
            return subject
    return None
