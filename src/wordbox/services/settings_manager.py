"""Settings Manager - Handles database location, lookup key and logging configuration."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DB_PATH = Path.home() / ".wordbox" / "wordbox.db"


class SettingsManager:
    """
    Manages settings read from the environment.

    Values come from process environment variables, with a ``.env`` file in the
    project root (or the given directory) loaded first.
    """

    def __init__(self, project_root: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            project_root: Directory holding the .env file.
                         If None, the current working directory is used.
        """
        if project_root is None:
            project_root = Path.cwd()

        env_path = project_root / ".env"
        load_dotenv(dotenv_path=env_path)

        self._project_root = project_root

    def get_gemini_api_key(self) -> Optional[str]:
        """Get the Gemini API key from environment."""
        key = os.getenv("GEMINI_API_KEY")
        return key.strip() if key and key.strip() else None

    def get_db_path(self) -> Path:
        raw = os.getenv("WORDBOX_DB_PATH")
        return Path(raw).expanduser() if raw and raw.strip() else DEFAULT_DB_PATH

    def get_lookup_language(self) -> str:
        return os.getenv("WORDBOX_LOOKUP_LANGUAGE", "Russian").strip() or "Russian"

    def get_log_level(self) -> str:
        return os.getenv("WORDBOX_LOG_LEVEL", "INFO").strip().upper() or "INFO"

    def get_log_format(self) -> str:
        """Either ``console`` (default) or ``json``."""
        value = os.getenv("WORDBOX_LOG_FORMAT", "console").strip().lower()
        return value if value in ("console", "json") else "console"

    def get_open_attempts(self) -> int:
        """How many times the store open is attempted before giving up."""
        raw = os.getenv("WORDBOX_OPEN_ATTEMPTS", "5")
        try:
            return max(1, int(raw))
        except ValueError:
            return 5

    def reload_env(self) -> None:
        """Reload environment variables from .env file."""
        env_path = self._project_root / ".env"
        load_dotenv(dotenv_path=env_path, override=True)
