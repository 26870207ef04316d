"""Settings for logtimings.

All fields can be set via ``LOGTIMINGS_*`` environment variables (e.g.
``LOGTIMINGS_LOG_LEVEL=DEBUG``) or through a ``.env`` file.

Fields
──────
log_level             : Root log level applied by ``configure_logging``
log_format            : ``console`` or ``json`` rendering
completion_level      : Severity of completed records from ``begin_operation``/``time_operation``
abandonment_level     : Severity of abandoned records from the same entry points
warning_threshold_ms  : Escalate those records to WARNING past this duration (unset: never)
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logtimings.severity import Severity


class TimingsSettings(BaseSettings):
    """logtimings configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOGTIMINGS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")

    # ── Default operation levels ─────────────────────────────────
    completion_level: Severity = Field(default=Severity.INFORMATION)
    abandonment_level: Severity = Field(default=Severity.WARNING)
    warning_threshold_ms: float | None = Field(default=None, ge=0)

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        return Severity.parse(value).name if not isinstance(value, str) else _level_name(value)

    @field_validator("log_format", mode="before")
    @classmethod
    def _normalise_format(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("completion_level", "abandonment_level", mode="before")
    @classmethod
    def _parse_severity(cls, value: Any) -> Severity:
        return Severity.parse(value)

    @property
    def warning_threshold(self) -> timedelta | None:
        if self.warning_threshold_ms is None:
            return None
        return timedelta(milliseconds=self.warning_threshold_ms)


def _level_name(value: str) -> str:
    # Validates the name; keeps the caller's spelling normalised to upper case
    Severity.parse(value)
    return value.strip().upper()


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, TimingsSettings] = {}


def get_settings(*, force_reload: bool = False) -> TimingsSettings:
    """Load, validate, and cache a :class:`TimingsSettings` instance."""
    if not force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = TimingsSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
