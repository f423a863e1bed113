"""
Unit Tests for Configuration

Tests for settings and configuration management.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from edugrade.config import DEFAULT_PROMPT_LIBRARY, Settings


def test_settings_defaults():
    """Test default settings values."""
    settings = Settings()

    assert settings.ENVIRONMENT in ["local", "staging", "production"]
    assert settings.LOG_LEVEL in ["DEBUG", "INFO", "WARNING", "ERROR"]
    assert isinstance(settings.DATABASE_URL, str)
    assert settings.IMPORT_MAX_ROWS >= 1
    assert settings.IMPORT_MAX_FILE_BYTES >= 1


def test_prompt_library_bundled_with_package():
    settings = Settings()

    assert isinstance(settings.PROMPT_LIBRARY_PATH, Path)
    assert DEFAULT_PROMPT_LIBRARY.exists()


def test_missing_prompt_library_rejected(tmp_path):
    with pytest.raises(ValidationError, match="PROMPT_LIBRARY_PATH does not exist"):
        Settings(PROMPT_LIBRARY_PATH=str(tmp_path / "missing.json"))


def test_settings_environment_specific():
    """Test environment-specific behavior."""
    settings_local = Settings(ENVIRONMENT="local")
    assert settings_local.is_local is True
    assert settings_local.is_production is False

    settings_prod = Settings(ENVIRONMENT="production")
    assert settings_prod.is_local is False
    assert settings_prod.is_production is True


def test_import_limits_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(IMPORT_MAX_ROWS=0)
