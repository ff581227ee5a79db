"""Models for backups and the operation history."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Backup(BaseModel):
    """A durable copy of a file taken right before it was overwritten."""

    model_config = ConfigDict(frozen=True)

    original_path: str
    backup_path: str
    timestamp: datetime = Field(default_factory=utc_now)


class FileSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_path: str
    content_before: str
    content_after: str
    backup_path: str | None = None  # Set once the store has persisted a backup


class HistoryEntry(BaseModel):
    """One completed operation. Never modified after it is written."""

    model_config = ConfigDict(frozen=True)

    id: str
    sequence: int  # Insertion counter, breaks timestamp ties
    timestamp: datetime
    tool: str
    operation: str
    description: str
    files: list[FileSnapshot] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class RestoreResult(BaseModel):
    model_config = ConfigDict(frozen=False)

    entry_id: str
    success: bool
    restored_files: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class HistoryQuery(BaseModel):
    """Filters for history search. Unset fields match everything."""

    model_config = ConfigDict(frozen=False)

    tool: str | None = None             # Exact tool name
    operation: str | None = None        # Substring of the operation label
    file_path: str | None = None        # Substring of any affected path
    after: datetime | None = None
    before: datetime | None = None


class StorageUsage(BaseModel):
    model_config = ConfigDict(frozen=False)

    total_size: int = 0
    entry_count: int = 0
    backup_count: int = 0
