"""Unit tests for SettingsManager."""

import os
import tempfile
from pathlib import Path

import pytest

from wordbox.services import SettingsManager
from wordbox.services.settings_manager import DEFAULT_DB_PATH

MANAGED_KEYS = (
    "GEMINI_API_KEY",
    "WORDBOX_DB_PATH",
    "WORDBOX_LOG_LEVEL",
    "WORDBOX_LOG_FORMAT",
    "WORDBOX_OPEN_ATTEMPTS",
)


@pytest.fixture
def temp_env_dir():
    """Provide a temporary directory for .env files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clean_env():
    """Remove settings keys from the environment before and after test."""
    saved = {key: os.environ.pop(key, None) for key in MANAGED_KEYS}
    yield
    for key, value in saved.items():
        if value is not None:
            os.environ[key] = value
        else:
            os.environ.pop(key, None)


@pytest.fixture
def settings(temp_env_dir, clean_env):
    """Provide a SettingsManager with a test .env file."""
    env_file = temp_env_dir / ".env"
    env_file.write_text("GEMINI_API_KEY=\n")
    return SettingsManager(project_root=temp_env_dir)


class TestSettingsManagerAPIKey:
    """Tests for API key management from .env file."""

    def test_get_api_key_returns_none_when_empty(self, settings):
        """API key should be None when .env has empty value."""
        assert settings.get_gemini_api_key() is None

    def test_get_api_key_read_from_env_file(self, temp_env_dir, clean_env):
        """API key should be loaded from the .env file."""
        (temp_env_dir / ".env").write_text("GEMINI_API_KEY=test-key-123\n")

        settings = SettingsManager(project_root=temp_env_dir)
        assert settings.get_gemini_api_key() == "test-key-123"

    def test_get_api_key_returns_none_for_whitespace_only(self, temp_env_dir, clean_env):
        os.environ["GEMINI_API_KEY"] = "   "

        settings = SettingsManager(project_root=temp_env_dir)
        assert settings.get_gemini_api_key() is None

    def test_reload_env_updates_api_key(self, temp_env_dir, clean_env):
        """reload_env should pick up changes to .env file."""
        env_file = temp_env_dir / ".env"
        env_file.write_text("GEMINI_API_KEY=old-key\n")

        settings = SettingsManager(project_root=temp_env_dir)
        assert settings.get_gemini_api_key() == "old-key"

        env_file.write_text("GEMINI_API_KEY=new-key\n")
        settings.reload_env()
        assert settings.get_gemini_api_key() == "new-key"


class TestSettingsManagerStore:
    def test_db_path_defaults_to_home(self, temp_env_dir, clean_env):
        settings = SettingsManager(project_root=temp_env_dir)
        assert settings.get_db_path() == DEFAULT_DB_PATH

    def test_db_path_from_env(self, temp_env_dir, clean_env):
        db_path = temp_env_dir / "words.db"
        os.environ["WORDBOX_DB_PATH"] = str(db_path)

        settings = SettingsManager(project_root=temp_env_dir)
        assert settings.get_db_path() == db_path

    def test_open_attempts_falls_back_on_garbage(self, temp_env_dir, clean_env):
        os.environ["WORDBOX_OPEN_ATTEMPTS"] = "many"

        settings = SettingsManager(project_root=temp_env_dir)
        assert settings.get_open_attempts() == 5

    def test_open_attempts_at_least_one(self, temp_env_dir, clean_env):
        os.environ["WORDBOX_OPEN_ATTEMPTS"] = "0"

        settings = SettingsManager(project_root=temp_env_dir)
        assert settings.get_open_attempts() == 1


class TestSettingsManagerLogging:
    def test_defaults(self, settings):
        assert settings.get_log_level() == "INFO"
        assert settings.get_log_format() == "console"

    def test_unknown_format_falls_back_to_console(self, temp_env_dir, clean_env):
        os.environ["WORDBOX_LOG_FORMAT"] = "xml"
        os.environ["WORDBOX_LOG_LEVEL"] = "debug"

        settings = SettingsManager(project_root=temp_env_dir)
        assert settings.get_log_format() == "console"
        assert settings.get_log_level() == "DEBUG"
