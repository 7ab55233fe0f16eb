"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to .env file
  - Validate types and constraints at startup

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated by AppSettings via env_nested_delimiter="__", so the env var
LOADER__RECURSIVE maps to loader.recursive, LOADER__SUFFIXES to loader.suffixes.
List values are given as JSON: INPUT_PATHS='["certs/", "extra.pem"]'.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cert_hierarchy.adapters.x509_loader import DEFAULT_SUFFIXES

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"


class LoaderSettings(BaseModel):
    """Which files a directory input expands to."""

    suffixes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUFFIXES),
        description="File suffixes picked up when an input path is a directory",
    )
    recursive: bool = Field(default=True, description="Descend into sub-directories")

    @field_validator("suffixes")
    @classmethod
    def normalize_suffixes(cls, value: list[str]) -> list[str]:
        """Lower-case every suffix and make sure it starts with a dot."""
        normalized = []
        for suffix in value:
            suffix = suffix.strip().lower()
            if not suffix:
                continue
            normalized.append(suffix if suffix.startswith(".") else f".{suffix}")
        if not normalized:
            raise ValueError("At least one certificate file suffix is required")
        return normalized


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    input_paths: list[Path] = Field(
        default_factory=list,
        description="Certificate files and/or directories forming the pool",
    )
    loader: LoaderSettings = Field(default_factory=lambda: LoaderSettings())
    log_level: str = Field(default="INFO")
