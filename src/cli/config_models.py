"""Pydantic configuration models for quotesync."""

import os
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator


class PathsConfig(BaseModel):
    """File paths configuration."""

    db_path: Path = Path("~/.quotesync/quotes.db")
    log_file: Optional[Path] = None

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.db_path = self.db_path.expanduser()
        if self.log_file:
            self.log_file = self.log_file.expanduser()
        return self


class RemoteConfig(BaseModel):
    """Remote store endpoint."""

    base_url: str = "http://localhost:8000/api"
    timeout: float = Field(default=10.0, gt=0)
    fetch_limit: Optional[int] = Field(default=None, ge=1)
    token: Optional[str] = None

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"base_url must be an http(s) URL, got {v!r}")
        return v.rstrip("/")


class SyncConfig(BaseModel):
    """Sync cycle timing."""

    interval_seconds: float = Field(default=30.0, ge=1.0)
    lock_timeout: float = Field(default=30.0, gt=0)
    # Upper bound on a single fetch or push, retries included
    operation_timeout: float = Field(default=15.0, gt=0)


class RetryConfig(BaseModel):
    """Retry/backoff configuration for remote calls."""

    max_attempts: int = Field(default=2, ge=1, le=10)
    min_wait: float = 0.5
    max_wait: float = 2.0

    @model_validator(mode="after")
    def validate_waits(self):
        if self.min_wait > self.max_wait:
            raise ValueError(f"min_wait ({self.min_wait}) exceeds max_wait ({self.max_wait})")
        return self


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    json_mode: bool = Field(default=False, alias="json")

    model_config = {"populate_by_name": True}

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class QuoteSyncConfig(BaseModel):
    """Main configuration model."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in the remote token."""
        token = self.remote.token
        if token and token.startswith("${") and token.endswith("}"):
            self.remote.token = os.getenv(token[2:-1], "") or None
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "QuoteSyncConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
