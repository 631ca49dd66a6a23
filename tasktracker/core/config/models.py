"""Pydantic configuration models for tasktracker.

This module defines the configuration sections read from ``config.yaml``.
For loading logic, see loader.py.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class StorageConfig(BaseModel):
    """Configuration for snapshot persistence."""

    snapshot_path: Path | None = Field(
        default=Path("data/tasks.csv"),
        description="Snapshot file (null keeps the store in memory only)",
    )
    autosave: bool = Field(default=True, description="Write the snapshot after every mutation")


class HistoryConfig(BaseModel):
    """Configuration for the recently-viewed history."""

    limit: int | None = Field(default=10, description="Maximum history entries (null = unbounded)")

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"history.limit must be at least 1 or null, got {v}")
        return v


class ApiConfig(BaseModel):
    """Configuration for the HTTP API server."""

    host: str = Field(default="127.0.0.1", description="Interface the API binds to")
    port: int = Field(default=8080, ge=1, le=65535, description="Port the API listens on")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")


class LoggingConfig(BaseModel):
    """Configuration for logging system."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    directory: str = Field(default="logs", description="Directory for log files")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB before rotation")
    backup_count: int = Field(default=5, description="Number of backup log files to keep")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown logging level: {v}")
        return level


class Config(BaseModel):
    """Root configuration for tasktracker."""

    storage: StorageConfig = Field(default_factory=StorageConfig, description="Snapshot persistence")
    history: HistoryConfig = Field(default_factory=HistoryConfig, description="Viewing history")
    api: ApiConfig = Field(default_factory=ApiConfig, description="HTTP API server")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")
