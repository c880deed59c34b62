"""Workflow engine configuration using Pydantic Settings.

Values can be provided via environment variables (preferred) or fall back to
the defaults below. A ``WorkflowSettings`` instance is intended to be retrieved
via ``get_settings`` which caches the object for reuse across the process.

Environment variable prefix: ``RECEPTION_WORKFLOW_`` (e.g. ``RECEPTION_WORKFLOW_LOG_LEVEL``).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ReplayMode = Literal["handlers_only", "reappend"]


class WorkflowSettings(BaseSettings):
    """Runtime settings for the reception workflow engine.

    Attributes map directly to environment variables using the
    ``RECEPTION_WORKFLOW_`` prefix (case-insensitive). For example,
    ``replay_mode`` <- ``RECEPTION_WORKFLOW_REPLAY_MODE``.
    """

    # Logging
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Application log level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit serialized (JSON) log records instead of colored text",
    )  # fmt: skip

    # Dispatch
    isolate_events: bool = Field(
        default=False,
        description="Give every handler its own deep copy of the event",
    )  # fmt: skip
    replay_mode: ReplayMode = Field(
        default="handlers_only",
        description="handlers_only re-runs handlers for stored events; reappend re-persists them under fresh ids",
    )  # fmt: skip

    # Transitions
    auto_state_events: bool = Field(
        default=False,
        description="Fire the events associated with the target state after each transition",
    )  # fmt: skip

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str:
        """Normalize and validate log level."""
        if v is None:
            return "INFO"

        v_upper = str(v).upper()

        allowed = {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR"}
        if v_upper not in allowed:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {', '.join(sorted(allowed))}")

        return v_upper

    @field_validator("replay_mode", mode="before")
    @classmethod
    def validate_replay_mode(cls, v: str | None) -> str:
        """Accept dashes and mixed case, e.g. ``Handlers-Only``."""
        if v is None:
            return "handlers_only"
        return str(v).strip().lower().replace("-", "_")

    model_config = SettingsConfigDict(
        env_prefix="RECEPTION_WORKFLOW_",
        case_sensitive=False,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )


@lru_cache
def get_settings() -> WorkflowSettings:
    """Return the cached ``WorkflowSettings`` instance.

    The first invocation reads environment variables / .env file; subsequent
    calls reuse the same object to ensure consistent config.
    """

    return WorkflowSettings()


__all__ = ["ReplayMode", "WorkflowSettings", "get_settings"]
