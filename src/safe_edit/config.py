"""Runtime settings for safe-edit, read from the environment."""

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from safe_edit.editing.history_store import DEFAULT_MAX_ENTRIES
from safe_edit.editing.resolver import SIMILARITY_THRESHOLD
from safe_edit.models.edit_models import DEFAULT_CONTEXT_LINES, MAX_CONTEXT_LINES

DEFAULT_HISTORY_DIR = "./.safe-edit-history"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Env var -> settings field
ENV_VARS = {
    "SAFE_EDIT_HISTORY_DIR": "history_dir",
    "SAFE_EDIT_MAX_HISTORY": "max_history_entries",
    "SAFE_EDIT_CONTEXT_LINES": "context_lines",
    "SAFE_EDIT_SIMILARITY_THRESHOLD": "similarity_threshold",
    "SAFE_EDIT_LOG_LEVEL": "log_level",
}


class EditorSettings(BaseModel):
    """Settings shared by the editing pipeline and the CLI.

    Values from the environment arrive as strings; pydantic coerces them and
    rejects out-of-range values with a ValidationError.
    """

    model_config = ConfigDict(frozen=True)

    history_dir: str = DEFAULT_HISTORY_DIR
    max_history_entries: int = Field(default=DEFAULT_MAX_ENTRIES, ge=1)
    context_lines: int = Field(default=DEFAULT_CONTEXT_LINES, ge=0, le=MAX_CONTEXT_LINES)
    similarity_threshold: float = Field(default=SIMILARITY_THRESHOLD, ge=0.0, le=1.0)
    log_level: str = DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = str(value).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level

    @classmethod
    def from_env(cls, **overrides) -> "EditorSettings":
        """Build settings from SAFE_EDIT_* variables, then apply overrides.

        Overrides whose value is None are ignored so unset CLI flags fall
        through to the environment.
        """
        values = {
            field: os.environ[env_var]
            for env_var, field in ENV_VARS.items()
            if os.environ.get(env_var)
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
