"""Transactional applier: all-or-nothing writes with backup-based rollback."""

import logging
import re
import uuid
from pathlib import Path

from safe_edit.exceptions import ApplyError, SafeEditError, StaleContentError
from safe_edit.io.file_ops import FileOperations, target_key
from safe_edit.models.history_models import Backup
from safe_edit.models.result_models import ResolvedEdit

logger = logging.getLogger(__name__)


def safe_file_name(path: str) -> str:
    """Base name of `path` with anything outside [A-Za-z0-9.-] replaced by '_'."""
    return re.sub(r"[^a-zA-Z0-9.-]", "_", Path(path).name)


def backup_file_name(operation_id: str, index: int, path: str) -> str:
    return f"{operation_id}_{index}_{safe_file_name(path)}"


class TransactionalApplier:
    """Writes a set of resolved edits so that either all land or none do.

    The protocol has two phases:

    1. Validate: every target is re-read and must still equal the content
       it was resolved against. Any mismatch aborts before a single write.
    2. Apply: edits are written one at a time in order, each preceded by a
       backup when requested. If anything fails, every file touched so far
       is restored and the original error is re-raised as ApplyError.

    Targets must be distinct files; two edits of one file are rejected
    before any write.
    """

    def __init__(
        self,
        backup_dir: str,
        file_ops: FileOperations | None = None,
    ) -> None:
        """Initialize the applier.

        Args:
            backup_dir: Directory where pre-write backups are stored.
            file_ops: Filesystem collaborator (defaults to FileOperations()).
        """
        self.backup_dir = Path(backup_dir)
        self.file_ops = file_ops or FileOperations()

    def apply_all(
        self,
        edits: list[ResolvedEdit],
        make_backups: bool = True,
    ) -> list[Backup]:
        """Apply every edit or none of them.

        Args:
            edits: Resolved edits, one per distinct file.
            make_backups: Copy each target to backup_dir before overwriting it.

        Returns:
            Backups created, in application order (empty if make_backups is False).

        Raises:
            StaleContentError: If a target changed since resolution. No file
                has been written.
            ApplyError: If two edits target the same file (nothing written),
                or if a write failed. After a failed write every touched file
                has been restored and this call's backups removed;
                `rollback_errors` lists any file that could not be restored,
                in which case the backups are kept.
        """
        self._validate(edits)

        operation_id = str(uuid.uuid4())
        backups: list[Backup] = []
        touched: list[tuple[ResolvedEdit, Backup | None]] = []

        try:
            for index, edit in enumerate(edits):
                backup = None
                if make_backups:
                    backup = self._create_backup(operation_id, index, edit)
                    backups.append(backup)

                # Register before writing so a partial write is rolled back too
                touched.append((edit, backup))
                self.file_ops.write(edit.file, edit.content_after)
                logger.debug("Applied edit to %s", edit.file)
        except Exception as exc:
            logger.error(
                "Failed to apply edits, rolling back %d file(s): %s",
                len(touched),
                exc,
            )
            rollback_errors = self._rollback(touched)
            if rollback_errors:
                logger.warning("Keeping %d backup(s) after failed rollback", len(backups))
            else:
                self._discard_backups(backups)
            raise ApplyError(
                f"Failed to apply batch of {len(edits)} edit(s): {exc}",
                rollback_errors=rollback_errors,
            ) from exc

        logger.info("Successfully applied %d file edit(s)", len(edits))
        return backups

    def _validate(self, edits: list[ResolvedEdit]) -> None:
        seen: dict[str, str] = {}
        for edit in edits:
            key = target_key(edit.file)
            if key in seen:
                raise ApplyError(
                    f"Edits for {seen[key]} and {edit.file} target the same file"
                )
            seen[key] = edit.file

        for edit in edits:
            try:
                current = self.file_ops.read(edit.file)
            except SafeEditError as exc:
                raise StaleContentError(
                    f"Cannot validate {edit.file} before writing: {exc}"
                ) from exc

            if current != edit.content_before:
                raise StaleContentError(
                    f"File content has changed since edit was prepared: {edit.file}"
                )

    def _create_backup(self, operation_id: str, index: int, edit: ResolvedEdit) -> Backup:
        backup_path = self.backup_dir / backup_file_name(operation_id, index, edit.file)
        content = self.file_ops.read(edit.file)
        self.file_ops.write(str(backup_path), content)
        logger.debug("Created backup %s for %s", backup_path, edit.file)
        return Backup(original_path=edit.file, backup_path=str(backup_path))

    def _rollback(self, touched: list[tuple[ResolvedEdit, Backup | None]]) -> list[str]:
        """Restore touched files. Each restore targets a distinct file."""
        errors: list[str] = []

        for edit, backup in reversed(touched):
            # Phase 1 proved the file held content_before
            content = edit.content_before
            if backup is not None:
                try:
                    content = self.file_ops.read(backup.backup_path)
                except SafeEditError as exc:
                    logger.warning(
                        "Backup %s unreadable, restoring %s from memory: %s",
                        backup.backup_path,
                        edit.file,
                        exc,
                    )
            try:
                self.file_ops.write(edit.file, content)
                logger.info("Rolled back %s", edit.file)
            except Exception as exc:
                logger.error("Failed to roll back %s: %s", edit.file, exc)
                errors.append(f"Failed to roll back {edit.file}: {exc}")

        return errors

    def _discard_backups(self, backups: list[Backup]) -> None:
        for backup in backups:
            try:
                Path(backup.backup_path).unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Failed to remove backup %s: %s", backup.backup_path, exc)
