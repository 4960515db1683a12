# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for the API key, endpoint, timeouts, retry policy
and logging. A missing API key is a valid configuration: the pipeline
reports it as NOT_CONFIGURED instead of failing at startup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # === INFERENCE SERVICE ===
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("gemini_api_key", "vite_gemini_api_key"),
    )
    gemini_endpoint: str = "https://generativelanguage.googleapis.com/v1beta/models"
    gemini_model: str = "gemini-2.5-flash-preview-09-2025"

    # === Timeouts (seconds) ===
    analysis_timeout_s: float = 30.0
    probe_timeout_s: float = 10.0

    # === Retry ===
    max_attempts: int = 3
    retry_base_delay_s: float = 1.0
    retry_backoff_factor: float = 2.0

    # === Health probe ===
    health_interval_s: float = 120.0

    # === Presentation ===
    result_delay_s: float = 0.8

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("analysis_timeout_s", "probe_timeout_s", "health_interval_s")
    @classmethod
    def validate_positive(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("max_attempts must be >= 1")
        return v

    @field_validator("gemini_endpoint")
    @classmethod
    def strip_endpoint(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.retry_base_delay_s < 0 or self.retry_backoff_factor < 1:
            errors.append(
                "RETRY_BASE_DELAY_S must be >= 0 and RETRY_BACKOFF_FACTOR >= 1"
            )

        if self.result_delay_s < 0:
            errors.append("RESULT_DELAY_S must be >= 0")

        worst_case = (
            self.max_attempts * self.analysis_timeout_s
            + sum(
                self.retry_base_delay_s * self.retry_backoff_factor**a
                for a in range(self.max_attempts - 1)
            )
        )
        if worst_case >= self.health_interval_s * 10:
            errors.append(
                "Worst-case analysis latency exceeds ten health intervals; "
                "lower MAX_ATTEMPTS or ANALYSIS_TIMEOUT_S"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def is_configured(self) -> bool:
        return bool(self.gemini_api_key.strip())

    @property
    def model_url(self) -> str:
        """Metadata lookup URL used by the health probe."""
        return f"{self.gemini_endpoint}/{self.gemini_model}?key={self.gemini_api_key}"

    @property
    def generate_url(self) -> str:
        return (
            f"{self.gemini_endpoint}/{self.gemini_model}:generateContent"
            f"?key={self.gemini_api_key}"
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding callers).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
