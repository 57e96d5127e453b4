"""
Configuration
=============

Settings loaded from the environment (and a ``.env`` file when present).
Invalid values fail fast at startup.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from sql_assistant.errors import ConfigurationError


def _get_int(key: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigurationError(f"{key} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the assistant and its API."""

    log_level: str = "INFO"
    log_format: str = ""
    environment: str = "development"
    openai_model: str = "gpt-4o-mini"
    openai_api_key: Optional[str] = None
    google_project_id: Optional[str] = None
    sql_dialect: str = "bigquery"
    max_refinement_attempts: int = 3
    row_limit: int = 1000
    fallback_row_limit: int = 10

    @property
    def use_live_collaborators(self) -> bool:
        """True when both the hosted model and BigQuery are configured."""
        return bool(self.openai_api_key and self.google_project_id)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "").lower(),
            environment=os.getenv("ENVIRONMENT", "development"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            google_project_id=os.getenv("GOOGLE_PROJECT_ID") or None,
            sql_dialect=os.getenv("SQL_DIALECT", "bigquery"),
            max_refinement_attempts=_get_int("MAX_REFINEMENT_ATTEMPTS", 3),
            row_limit=_get_int("ROW_LIMIT", 1000, minimum=1),
            fallback_row_limit=_get_int("FALLBACK_ROW_LIMIT", 10, minimum=1),
        )
