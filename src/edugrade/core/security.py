"""
Password hashing.

Passwords are stored as salted slow hashes, never in plain text.
"""

from werkzeug.security import check_password_hash, generate_password_hash

from edugrade.config import settings


def hash_password(password: str) -> str:
    """Hash a password with the configured method (salted)."""
    return generate_password_hash(password, method=settings.PASSWORD_HASH_METHOD)


def verify_password(password_hash: str, password: str) -> bool:
    """Check a login attempt against a stored hash."""
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)
