"""
Parent invitation code generation and validation.

Invitation codes are 6 characters drawn from an alphabet without the
easily-confused characters 0/O and 1/I (e.g. "K7QX2M"). A code resolves to
one school grade level, letting a parent find their child without an
admin-issued account.
"""

import logging
import random
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edugrade.core.models import Invitation

logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6


class InvitationCodeError(Exception):
    """Error raised when invitation code operations fail."""

    pass


def random_invitation_code(length: int = CODE_LENGTH) -> str:
    """Draw a random code from the invitation alphabet."""
    return "".join(random.choices(CODE_ALPHABET, k=length))


async def generate_invitation_code(db: AsyncSession, max_retries: int = 10) -> str:
    """Generate an invitation code not yet used by any school.

    Args:
        db: Database session used for the uniqueness check
        max_retries: Maximum attempts to generate unique code

    Returns:
        Unique invitation code (e.g., "K7QX2M")

    Raises:
        InvitationCodeError: If unable to generate unique code
    """
    for _attempt in range(max_retries):
        code = random_invitation_code()

        result = await db.execute(select(Invitation).where(Invitation.code == code))
        if result.scalar_one_or_none() is None:
            return code

        logger.info(f"Invitation code collision on attempt {_attempt + 1}, retrying")

    raise InvitationCodeError(f"Could not generate unique code after {max_retries} attempts")


def normalize_invitation_code(code: str | None) -> str:
    """Uppercase and trim a code typed by a parent."""
    return (code or "").strip().upper()


def validate_invitation_code(code: str | None) -> bool:
    """Validate invitation code format (case-insensitive).

    Examples:
        >>> validate_invitation_code("k7qx2m")
        True
        >>> validate_invitation_code("K7QX2")
        False
    """
    code = normalize_invitation_code(code)
    if len(code) != CODE_LENGTH:
        return False
    return bool(re.fullmatch(f"[{CODE_ALPHABET}]+", code))


async def find_invitation(db: AsyncSession, code: str | None) -> Invitation | None:
    """Look up an invitation by code (case-insensitive).

    Returns:
        The Invitation, or None when the code is malformed or unknown
    """
    if not validate_invitation_code(code):
        return None

    result = await db.execute(
        select(Invitation).where(Invitation.code == normalize_invitation_code(code))
    )
    return result.scalar_one_or_none()
