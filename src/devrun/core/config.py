"""Configuration management for devrun."""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TASKS = "dev:watch,dev:serve"


class Settings(BaseSettings):
    """Supervisor configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="DEVRUN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    tasks: str = Field(
        DEFAULT_TASKS,
        description="Comma-separated list of package scripts to run",
    )
    grace_period_ms: int = Field(
        100,
        description="Delay between kill requests and supervisor exit",
    )

    # Observability
    log_level: str = Field("INFO", description="Log level")
    log_format: str = Field("console", description="Log renderer: console or json")

    @field_validator("tasks")
    @classmethod
    def validate_tasks(cls, v: str) -> str:
        """Require at least one non-empty task name."""
        if not cls.parse_tasks(v):
            raise ValueError("at least one task is required")
        return v

    @field_validator("grace_period_ms")
    @classmethod
    def validate_grace_period(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("grace period must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {v!r}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("console", "json"):
            raise ValueError("log format must be 'console' or 'json'")
        return v

    @staticmethod
    def parse_tasks(v: str) -> List[str]:
        """Parse comma-separated task names."""
        return [task.strip() for task in v.split(",") if task.strip()]

    @property
    def task_list(self) -> List[str]:
        """Get tasks as a list, in configured order."""
        return self.parse_tasks(self.tasks)

    @property
    def grace_period(self) -> float:
        """Grace period in seconds."""
        return self.grace_period_ms / 1000.0
