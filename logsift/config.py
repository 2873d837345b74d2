"""Configuration loading for logsift.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from logsift.core.context import DEFAULT_CONTEXT_LINES
from logsift.core.fingerprint import DEFAULT_FINGERPRINT_FRAMES
from logsift.core.frames import DEFAULT_FRAMEWORK_PREFIXES
from logsift.core.merger import DEFAULT_SIMILARITY_THRESHOLD
from logsift.core.parser import DEFAULT_MAX_CAUSE_DEPTH

# Comma-separated in the environment, e.g. FRAMEWORK_PREFIXES=java.,org.springframework.
CommaList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Log store configuration
    store_backend: Literal["sqlite", "supabase"] = Field(
        default="sqlite",
        description="Log store backend type",
    )
    store_sqlite_path: str = Field(
        default="./data/logs.db",
        description="SQLite database file path",
    )
    supabase_url: str = Field(
        default="",
        description="Supabase project URL",
    )
    supabase_key: str = Field(
        default="",
        description="Supabase API key",
    )
    app_id: str = Field(
        default="",
        description="Application id whose log entries are scanned (Supabase)",
    )

    # Scan configuration
    lookback_minutes: int = Field(
        default=60,
        description="Lookback window in minutes for a scan",
    )
    query_limit: int = Field(
        default=1000,
        description="Maximum number of log records fetched per scan",
    )

    # Fingerprinting and clustering
    framework_prefixes: CommaList = Field(
        default_factory=lambda: list(DEFAULT_FRAMEWORK_PREFIXES),
        description="Class name prefixes treated as framework frames",
    )
    fingerprint_frame_count: int = Field(
        default=DEFAULT_FINGERPRINT_FRAMES,
        description="Number of top user frames in a stack fingerprint",
    )
    similarity_threshold: float = Field(
        default=DEFAULT_SIMILARITY_THRESHOLD,
        description="Minimum message template similarity for merging clusters",
    )
    merge_similar: bool = Field(
        default=True,
        description="Merge near-duplicate clusters after clustering",
    )
    max_cause_depth: int = Field(
        default=DEFAULT_MAX_CAUSE_DEPTH,
        description="Maximum number of exceptions kept in a parsed cause chain",
    )

    # Code context
    source_paths: CommaList = Field(
        default_factory=lambda: ["./src/main/java"],
        description="Source roots searched for code context",
    )
    source_extensions: CommaList = Field(
        default_factory=lambda: [".java"],
        description="Source file extensions tried for a class name",
    )
    context_lines: int = Field(
        default=DEFAULT_CONTEXT_LINES,
        description="Lines of code shown on each side of an error line",
    )

    # Report configuration
    report_backend: Literal["stdout", "markdown", "json", "html"] = Field(
        default="stdout",
        description="Report backend type",
    )
    report_output_dir: str = Field(
        default="./reports",
        description="Output directory for markdown, JSON and HTML reports",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Run mode
    run_mode: Literal["scan", "cli"] = Field(
        default="scan",
        description="Run mode",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    @field_validator("framework_prefixes", "source_paths", "source_extensions", mode="before")
    @classmethod
    def split_comma_list(cls, v: object) -> object:
        """Accept comma-separated strings as well as lists."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("lookback_minutes", "query_limit")
    @classmethod
    def validate_positive_window(cls, v: int) -> int:
        """Ensure scan window settings are positive."""
        if v <= 0:
            raise ValueError("lookback_minutes and query_limit must be positive")
        return v

    @field_validator("fingerprint_frame_count")
    @classmethod
    def validate_frame_count(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("fingerprint_frame_count must be positive")
        return v

    @field_validator("max_cause_depth")
    @classmethod
    def validate_max_cause_depth(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_cause_depth must be positive")
        return v

    @field_validator("similarity_threshold")
    @classmethod
    def validate_similarity_threshold(cls, v: float) -> float:
        """Ensure the threshold is a ratio."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("similarity_threshold must be between 0 and 1")
        return v

    @field_validator("context_lines")
    @classmethod
    def validate_context_lines(cls, v: int) -> int:
        if v < 0:
            raise ValueError("context_lines must be non-negative")
        return v

    @field_validator("source_extensions")
    @classmethod
    def validate_source_extensions(cls, v: list[str]) -> list[str]:
        """Extensions must start with a dot."""
        for extension in v:
            if not extension.startswith("."):
                raise ValueError(f"source extension must start with '.': {extension}")
        return v

    @model_validator(mode="after")
    def validate_supabase(self) -> "Settings":
        """The Supabase backend needs a URL, a key and an application id."""
        if self.store_backend == "supabase":
            missing = [
                name
                for name in ("supabase_url", "supabase_key", "app_id")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"store_backend 'supabase' requires: {', '.join(missing)}")
        return self


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
