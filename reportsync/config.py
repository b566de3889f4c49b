"""Configuration utilities for the ReportSync backend."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Tuple, get_args

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

AppendSeparatorPolicy = Literal["none", "always", "between_nonempty"]
DEFAULT_APPEND_SEPARATOR_POLICY: AppendSeparatorPolicy = "between_nonempty"

LOGGER = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent

DEFAULT_PROVENANCE_HISTORY_LIMIT = 10
DEFAULT_MAX_BATCH_SIZE = 500


def _env_flag(name: str, default: bool) -> bool:
    """Return a boolean flag derived from environment variables."""

    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _load_environment() -> None:
    """Load environment variables from a ``.env`` file if present."""

    explicit_path = os.getenv("REPORTSYNC_ENV_FILE")
    candidates = []

    if explicit_path:
        candidates.append(Path(explicit_path))

    candidates.append(PROJECT_ROOT / ".env")

    for candidate in candidates:
        try_path = candidate.expanduser()
        if try_path.exists():
            load_dotenv(try_path, override=False)


_load_environment()


def _database_url_default() -> str:
    """Return the configured database URL using legacy fallbacks."""

    return (
        os.getenv("DATABASE_URL") or os.getenv("DB_URL") or "sqlite:///./reportsync.db"
    )


def _split_csv(raw: str | None) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


class Settings(BaseModel):
    """Application configuration loaded from environment variables."""

    # Values come from default factories, so validators must run on defaults.
    model_config = ConfigDict(validate_default=True)

    database_url: str = Field(default_factory=_database_url_default)
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "info"))
    cors_allow_origins: Tuple[str, ...] = Field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ALLOW_ORIGINS"))
    )
    append_separator_policy: AppendSeparatorPolicy = Field(
        default_factory=lambda: os.getenv(  # type: ignore[return-value]
            "APPEND_SEPARATOR_POLICY", DEFAULT_APPEND_SEPARATOR_POLICY
        )
    )
    append_separator: str = Field(
        default_factory=lambda: os.getenv("APPEND_SEPARATOR", " ")
    )
    provenance_history_limit: int = Field(
        default_factory=lambda: int(
            os.getenv(
                "PROVENANCE_HISTORY_LIMIT", str(DEFAULT_PROVENANCE_HISTORY_LIMIT)
            )
        )
    )
    max_batch_size: int = Field(
        default_factory=lambda: int(
            os.getenv("MAX_BATCH_SIZE", str(DEFAULT_MAX_BATCH_SIZE))
        )
    )
    coerce_to_schema: bool = Field(
        default_factory=lambda: _env_flag("COERCE_TO_SCHEMA", True)
    )

    @field_validator("append_separator_policy", mode="before")
    @classmethod
    def _fallback_separator_policy(cls, value: Any) -> Any:
        policy = str(value or "").strip().lower()
        if policy in get_args(AppendSeparatorPolicy):
            return policy
        LOGGER.warning(
            "Unknown APPEND_SEPARATOR_POLICY %r; using %s",
            value,
            DEFAULT_APPEND_SEPARATOR_POLICY,
        )
        return DEFAULT_APPEND_SEPARATOR_POLICY

    @field_validator("provenance_history_limit", mode="after")
    @classmethod
    def _clamp_history_limit(cls, value: int) -> int:
        return max(1, value)

    @field_validator("max_batch_size", mode="after")
    @classmethod
    def _clamp_batch_size(cls, value: int) -> int:
        return max(1, value)

    @field_validator("log_level", mode="after")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        return value.strip().lower() or "info"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached settings so that subsequent calls reload from the environment."""

    get_settings.cache_clear()


__all__ = [
    "AppendSeparatorPolicy",
    "PROJECT_ROOT",
    "Settings",
    "get_settings",
    "reset_settings_cache",
]
