"""Application settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_HOME = Path.home() / ".triage-engine"


class Settings(BaseSettings):
    """Settings loaded from ``TRIAGE_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="TRIAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    data_dir: Path = Field(default=Path("datasets"), description="Dataset pack root")
    sqlite_path: Path = Field(default=_DEFAULT_HOME / "triage.sqlite")
    preferences_path: Path = Field(default=_DEFAULT_HOME / "preferences.json")
    workflow_policy_path: Path | None = Field(
        default=None,
        description="Explicit policy file; discovered under data_dir when unset",
    )

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # "console" | "json"
    diagnostics_retention_days: int = Field(default=30, ge=1)

    # Retrieval
    search_limit: int = 5
    lookup_limit: int = 25

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        log_format = self.log_format.lower()
        if log_format not in ("console", "json"):
            raise ValueError(f"log_format must be console|json, got {self.log_format!r}")
        self.log_format = log_format

        if self.search_limit < 1:
            raise ValueError("search_limit must be at least 1")
        if self.lookup_limit < 1:
            raise ValueError("lookup_limit must be at least 1")

        self.log_level = self.log_level.upper()
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
