"""
Input validation functions for EduGrade.

All validation functions follow the pattern:
1. Accept raw user input (string, number, etc.)
2. Normalize/clean the input
3. Validate against business rules
4. Return cleaned value or raise ValidationError
"""

import math
import re


class ValidationError(Exception):
    """Raised when user input fails validation."""

    pass


# ============================================================================
# Names
# ============================================================================


def validate_name(name: str | None, field: str = "Name", max_length: int = 100) -> str:
    """
    Validate and normalize a display name (school, grade, class, student, exam).

    Strips surrounding whitespace and collapses inner runs of whitespace.
    Case is preserved: names are matched by exact string equality.

    Raises:
        ValidationError: If the name is empty or too long
    """
    if name is None:
        raise ValidationError(f"{field} cannot be empty")

    cleaned = re.sub(r"\s+", " ", str(name).strip())

    if cleaned == "":
        raise ValidationError(f"{field} cannot be empty")

    if len(cleaned) > max_length:
        raise ValidationError(f"{field} cannot exceed {max_length} characters")

    return cleaned


# ============================================================================
# Student Number
# ============================================================================


def validate_student_number(student_no: str | int | None) -> str:
    """
    Validate a school-issued student number.

    Args:
        student_no: Raw student number (spreadsheets often deliver integers)

    Returns:
        Student number as a trimmed string

    Raises:
        ValidationError: If the student number is empty or contains whitespace
    """
    if student_no is None:
        raise ValidationError("Student number cannot be empty")

    cleaned = str(student_no).strip()

    if cleaned == "":
        raise ValidationError("Student number cannot be empty")

    if re.search(r"\s", cleaned):
        raise ValidationError("Student number cannot contain spaces")

    if len(cleaned) > 50:
        raise ValidationError("Student number cannot exceed 50 characters")

    return cleaned


# ============================================================================
# Scores
# ============================================================================


def parse_score(score: float | int | str | None) -> float:
    """
    Read a subject score as a finite number, without a range check.

    Raises:
        ValidationError: If the score is empty or not a finite number
    """
    if score is None or (isinstance(score, str) and score.strip() == ""):
        raise ValidationError("Score cannot be empty")

    if isinstance(score, bool):
        raise ValidationError("Score must be a number")

    try:
        value = float(score)
    except (TypeError, ValueError):
        raise ValidationError("Score must be a number") from None

    if math.isnan(value) or math.isinf(value):
        raise ValidationError("Score must be a number")

    return value


def validate_score(score: float | int | str | None, full_score: float = 100) -> float:
    """
    Validate a subject score.

    Raises:
        ValidationError: If the score is not a number or is outside 0..full_score
    """
    value = parse_score(score)

    if value < 0:
        raise ValidationError("Score cannot be negative")

    if value > full_score:
        raise ValidationError(f"Score cannot exceed full score ({full_score:g})")

    return value


# ============================================================================
# Accounts
# ============================================================================


def validate_username(username: str | None) -> str:
    """
    Validate a login username.

    Raises:
        ValidationError: If username is empty, too short/long or has spaces
    """
    if username is None or username.strip() == "":
        raise ValidationError("Username cannot be empty")

    cleaned = username.strip()

    if re.search(r"\s", cleaned):
        raise ValidationError("Username cannot contain spaces")

    if len(cleaned) < 3:
        raise ValidationError("Username must be at least 3 characters")

    if len(cleaned) > 100:
        raise ValidationError("Username cannot exceed 100 characters")

    return cleaned


def validate_password(password: str | None, confirm: str | None = None) -> str:
    """
    Validate a new password (and its confirmation when given).

    Raises:
        ValidationError: If password is empty, too short, or confirmation differs
    """
    if password is None or password.strip() == "":
        raise ValidationError("Password cannot be empty")

    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")

    if confirm is not None and confirm != password:
        raise ValidationError("Passwords do not match")

    return password
