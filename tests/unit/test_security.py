"""
Tests for password hashing.
"""

from edugrade.core.security import hash_password, verify_password


def test_hash_is_salted_and_verifiable():
    first = hash_password("secret123")
    second = hash_password("secret123")

    assert first != "secret123"
    assert first != second
    assert verify_password(first, "secret123")
    assert verify_password(second, "secret123")


def test_wrong_password_rejected():
    assert not verify_password(hash_password("secret123"), "secret124")


def test_empty_hash_rejected():
    assert not verify_password("", "anything")
