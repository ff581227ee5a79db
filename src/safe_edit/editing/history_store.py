"""Append-only operation history with backups, retention and restore."""

import logging
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from safe_edit.editing.applier import backup_file_name
from safe_edit.exceptions import HistoryError, SafeEditError
from safe_edit.io.file_ops import FileOperations
from safe_edit.models.history_models import (
    FileSnapshot,
    HistoryEntry,
    HistoryQuery,
    RestoreResult,
    StorageUsage,
    utc_now,
)

logger = logging.getLogger(__name__)

# Constants
DEFAULT_MAX_ENTRIES = 100
REPORT_RECENT_LIMIT = 10
ENTRY_SUFFIX = ".json"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_entry_file(path: Path) -> bool:
    """True for `<uuid>.json`. Backups of JSON files share the suffix but not the name."""
    if path.suffix != ENTRY_SUFFIX:
        return False
    try:
        uuid.UUID(path.stem)
    except ValueError:
        return False
    return True


def _age_key(entry: HistoryEntry) -> tuple[datetime, int]:
    return entry.timestamp, entry.sequence


class HistoryStore:
    """Durable record of completed operations.

    Each entry is one JSON document named after its id. Backups of the
    pre-edit content sit next to it, named `<id>_<index>_<basename>`.
    Entries are never rewritten; they are only added, deleted, or evicted
    by the retention sweep that runs after every record().
    """

    def __init__(
        self,
        history_dir: str,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        file_ops: FileOperations | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            history_dir: Directory holding entries and their backups.
            max_entries: Number of entries kept by the retention sweep.
            file_ops: Filesystem collaborator (defaults to FileOperations()).
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.history_dir = Path(history_dir)
        self.max_entries = max_entries
        self.file_ops = file_ops or FileOperations()

    def record(
        self,
        tool: str,
        operation: str,
        description: str,
        snapshots: list[FileSnapshot],
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Persist a completed operation and return its id.

        A snapshot whose backup_path points at an existing file (for example
        a backup made by the applier) has that file moved under the new id;
        otherwise the snapshot's content_before is written as the backup.

        Raises:
            HistoryError: If the backups or the entry cannot be written.
        """
        entry_id = str(uuid.uuid4())

        try:
            self.history_dir.mkdir(parents=True, exist_ok=True)
            stored_files = [
                self._store_backup(entry_id, index, snapshot)
                for index, snapshot in enumerate(snapshots)
            ]
            entry = HistoryEntry(
                id=entry_id,
                sequence=self._next_sequence(),
                timestamp=utc_now(),
                tool=tool,
                operation=operation,
                description=description,
                files=stored_files,
                metadata=metadata or {},
            )
            self.file_ops.write(
                str(self._entry_path(entry_id)),
                entry.model_dump_json(indent=2),
            )
        except (OSError, SafeEditError) as exc:
            raise HistoryError(f"Failed to record operation: {exc}") from exc

        self._enforce_retention()
        logger.info("Recorded operation: %s (%s)", operation, entry_id)
        return entry_id

    def _store_backup(self, entry_id: str, index: int, snapshot: FileSnapshot) -> FileSnapshot:
        target = self.history_dir / backup_file_name(entry_id, index, snapshot.file_path)

        if snapshot.backup_path and Path(snapshot.backup_path).is_file():
            shutil.move(snapshot.backup_path, target)
        else:
            self.file_ops.write(str(target), snapshot.content_before)

        return snapshot.model_copy(update={"backup_path": str(target)})

    def _next_sequence(self) -> int:
        entries = self._load_entries()
        return max((entry.sequence for entry in entries), default=0) + 1

    def _entry_path(self, entry_id: str) -> Path:
        return self.history_dir / f"{entry_id}{ENTRY_SUFFIX}"

    def _load_entries(self) -> list[HistoryEntry]:
        if not self.history_dir.is_dir():
            return []

        entries: list[HistoryEntry] = []
        for path in self.history_dir.glob(f"*{ENTRY_SUFFIX}"):
            if not is_entry_file(path):
                continue
            try:
                entries.append(HistoryEntry.model_validate_json(self.file_ops.read(str(path))))
            except (SafeEditError, ValueError) as exc:
                logger.warning("Failed to read history entry %s: %s", path.name, exc)
        return entries

    def _enforce_retention(self) -> None:
        """Delete the oldest entries beyond max_entries, with their backups."""
        entries = sorted(self._load_entries(), key=_age_key)
        excess = len(entries) - self.max_entries
        if excess <= 0:
            return

        for entry in entries[:excess]:
            self.delete_entry(entry.id)
        logger.debug("Cleaned up %d old history entries", excess)

    def list_entries(self, limit: int | None = None) -> list[HistoryEntry]:
        """Return entries newest-first, optionally truncated to `limit`."""
        entries = sorted(self._load_entries(), key=_age_key, reverse=True)
        return entries[:limit] if limit is not None else entries

    def get_entry(self, entry_id: str) -> HistoryEntry | None:
        # Ids are plain names; anything path-like cannot be an entry
        if not entry_id or Path(entry_id).name != entry_id:
            return None

        path = self._entry_path(entry_id)
        if not is_entry_file(path) or not path.is_file():
            return None
        try:
            return HistoryEntry.model_validate_json(self.file_ops.read(str(path)))
        except (SafeEditError, ValueError) as exc:
            logger.warning("Failed to get history entry %s: %s", entry_id, exc)
            return None

    def search(self, query: HistoryQuery) -> list[HistoryEntry]:
        """Return entries matching every set filter, newest-first."""
        after = _as_utc(query.after) if query.after is not None else None
        before = _as_utc(query.before) if query.before is not None else None

        matches = []
        for entry in self.list_entries():
            if query.tool and entry.tool != query.tool:
                continue
            if query.operation and query.operation not in entry.operation:
                continue
            if query.file_path and not any(
                query.file_path in snapshot.file_path for snapshot in entry.files
            ):
                continue
            timestamp = _as_utc(entry.timestamp)
            if after is not None and timestamp < after:
                continue
            if before is not None and timestamp > before:
                continue
            matches.append(entry)
        return matches

    def restore(self, entry_id: str) -> RestoreResult:
        """Write every file of an entry back to its pre-edit content.

        Files are restored independently. A missing or unreadable backup
        falls back to the content stored in the entry and is reported as an
        error scoped to that file; other files are unaffected.
        """
        entry = self.get_entry(entry_id)
        if entry is None:
            return RestoreResult(
                entry_id=entry_id,
                success=False,
                errors=[f"History entry {entry_id} not found"],
            )

        restored: list[str] = []
        errors: list[str] = []

        for snapshot in entry.files:
            content = snapshot.content_before
            if snapshot.backup_path and Path(snapshot.backup_path).is_file():
                try:
                    content = self.file_ops.read(snapshot.backup_path)
                except SafeEditError as exc:
                    errors.append(
                        f"Backup for {snapshot.file_path} unreadable, "
                        f"restored from stored content: {exc}"
                    )
            else:
                errors.append(
                    f"Backup missing for {snapshot.file_path}, restored from stored content"
                )

            try:
                self.file_ops.write(snapshot.file_path, content)
                restored.append(snapshot.file_path)
                logger.debug("Restored %s", snapshot.file_path)
            except SafeEditError as exc:
                errors.append(f"Failed to restore {snapshot.file_path}: {exc}")

        logger.info("Rolled back operation %s (%s)", entry.operation, entry_id)
        return RestoreResult(
            entry_id=entry_id,
            success=not errors,
            restored_files=restored,
            errors=errors,
        )

    def delete_entry(self, entry_id: str) -> bool:
        """Delete an entry and its backups. Returns False if it does not exist."""
        entry = self.get_entry(entry_id)
        if entry is None:
            return False

        for snapshot in entry.files:
            if not snapshot.backup_path:
                continue
            try:
                Path(snapshot.backup_path).unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Failed to delete backup %s: %s", snapshot.backup_path, exc)

        try:
            self._entry_path(entry_id).unlink()
        except OSError as exc:
            raise HistoryError(f"Failed to delete history entry {entry_id}: {exc}") from exc

        logger.info("Deleted history entry: %s", entry_id)
        return True

    def clear(self) -> int:
        """Delete every entry. Returns the number of entries removed."""
        deleted = 0
        for entry in self._load_entries():
            if self.delete_entry(entry.id):
                deleted += 1
        logger.info("Cleared %d history entries", deleted)
        return deleted

    def storage_usage(self) -> StorageUsage:
        usage = StorageUsage()
        if not self.history_dir.is_dir():
            return usage

        for path in self.history_dir.iterdir():
            if not path.is_file():
                continue
            usage.total_size += path.stat().st_size
            if is_entry_file(path):
                usage.entry_count += 1
            else:
                usage.backup_count += 1
        return usage

    def generate_report(self, entries: list[HistoryEntry] | None = None) -> str:
        """Render a markdown summary of history entries (all entries by default)."""
        history_entries = self.list_entries() if entries is None else entries

        report = "# Operation History Report\n\n"
        if not history_entries:
            report += "No operations recorded in history.\n"
            return report

        report += "## Summary\n"
        report += f"- **Total operations:** {len(history_entries)}\n\n"

        tool_counts: dict[str, int] = {}
        for entry in history_entries:
            tool_counts[entry.tool] = tool_counts.get(entry.tool, 0) + 1

        report += "## Operations by Tool\n"
        for tool, count in tool_counts.items():
            report += f"- **{tool}:** {count} operations\n"
        report += "\n"

        report += "## Recent Operations\n\n"
        for entry in history_entries[:REPORT_RECENT_LIMIT]:
            report += f"### {entry.operation}\n"
            report += f"- **Tool:** {entry.tool}\n"
            report += f"- **Date:** {entry.timestamp.isoformat()}\n"
            report += f"- **Description:** {entry.description}\n"
            report += f"- **Files affected:** {len(entry.files)}\n"
            report += f"- **ID:** {entry.id}\n\n"

        if len(history_entries) > REPORT_RECENT_LIMIT:
            report += (
                f"... and {len(history_entries) - REPORT_RECENT_LIMIT} more operations\n"
            )

        return report
