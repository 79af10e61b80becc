"""
Aptitude Compass: Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
the calibration CLI (and any other call-site) always receives the same
validated instance without re-parsing the environment on every call.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CatalogKind = Literal["likert", "forced_choice", "scenario"]


class Settings(BaseSettings):
    """Central configuration for the questionnaire core."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Question repository (JSON catalogs)
    # ------------------------------------------------------------------ #
    DATA_DIR: str = "data"
    LIKERT_CATALOG: str = "questions_likert.json"
    FORCED_CHOICE_CATALOG: str = "questions_forced_choice.json"
    SCENARIO_CATALOG: str = "questions_scenario.json"

    # ------------------------------------------------------------------ #
    # Calibration
    # ------------------------------------------------------------------ #
    WEIGHT_TOLERANCE: float = 0.05
    SYNTHETIC_SEED: int = 42
    SYNTHETIC_RESPONDENTS: int = 40

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    LOG_LEVEL: str = "INFO"

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def data_path(self) -> Path:
        return Path(self.DATA_DIR)

    def catalog_path(self, kind: CatalogKind, data_dir: str | Path | None = None) -> Path:
        """Return the on-disk path of one of the three question catalogs."""
        file_names = {
            "likert": self.LIKERT_CATALOG,
            "forced_choice": self.FORCED_CHOICE_CATALOG,
            "scenario": self.SCENARIO_CATALOG,
        }
        base = Path(data_dir) if data_dir is not None else self.data_path
        return base / file_names[kind]

    @field_validator("WEIGHT_TOLERANCE")
    @classmethod
    def _tolerance_must_be_non_negative(cls, v: float) -> float:
        if v < 0.0:
            raise ValueError(f"Tolerance must be non-negative, got {v}")
        return v

    @field_validator("SYNTHETIC_RESPONDENTS")
    @classmethod
    def _respondents_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Synthetic respondent count must be positive, got {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime::

        from aptitude.config import get_settings
        settings = get_settings()
    """
    return Settings()
