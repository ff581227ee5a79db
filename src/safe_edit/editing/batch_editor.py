"""Facade that runs edit batches through the pipeline graph."""

import logging
from pathlib import Path

from safe_edit.config import EditorSettings
from safe_edit.editing.applier import TransactionalApplier
from safe_edit.editing.conflict_detector import ConflictDetector
from safe_edit.editing.history_store import HistoryStore
from safe_edit.editing.resolver import EditResolver
from safe_edit.exceptions import SafeEditError
from safe_edit.io.file_ops import FileOperations
from safe_edit.models import (
    BatchReport,
    EditBatch,
    EditDescriptor,
    RestoreResult,
    SubstringEdit,
)
from safe_edit.orchestrator.graph import build_graph
from safe_edit.orchestrator.state import EditState, make_initial_state

logger = logging.getLogger(__name__)

BACKUP_SUBDIR = "backups"
GLOB_CHARS = ("*", "?", "[")


def has_glob(path: str) -> bool:
    return any(char in path for char in GLOB_CHARS)


def is_within(path: str, directories: list[Path]) -> bool:
    resolved = Path(path).resolve()
    return any(
        resolved == directory or directory in resolved.parents
        for directory in directories
    )


def expand_file_patterns(
    edits: list[EditDescriptor],
    file_ops: FileOperations,
    cwd: str | None = None,
    skip_dirs: list[str] | None = None,
) -> list[EditDescriptor]:
    """Expand substring edits whose file is a glob pattern.

    Each such edit becomes one edit per matching file (sorted) that contains
    its `old` text. Matches inside `skip_dirs` (such as the history
    directory) are ignored. A pattern with no such file is kept as-is so that
    it fails with a file-not-found result. Line-range edits are never expanded.
    """
    skipped = [Path(directory).resolve() for directory in skip_dirs or []]
    expanded: list[EditDescriptor] = []
    for edit in edits:
        if not isinstance(edit, SubstringEdit) or not has_glob(edit.file):
            expanded.append(edit)
            continue

        matches = []
        for path in file_ops.find(edit.file, cwd=cwd):
            if is_within(path, skipped):
                continue
            try:
                if edit.old in file_ops.read(path):
                    matches.append(path)
            except (SafeEditError, UnicodeError) as exc:
                logger.warning("Skipping unreadable match %s: %s", path, exc)

        if not matches:
            logger.debug("Pattern %s matched no file containing the text", edit.file)
            expanded.append(edit)
            continue

        logger.debug("Pattern %s expanded to %d file(s)", edit.file, len(matches))
        expanded.extend(edit.model_copy(update={"file": path}) for path in matches)

    return expanded


class BatchEditor:
    """Entry point for applying edit batches safely.

    Wires the conflict detector, resolver, transactional applier and history
    store from one EditorSettings, and converts the pipeline's final state
    into a BatchReport.
    """

    def __init__(
        self,
        settings: EditorSettings | None = None,
        file_ops: FileOperations | None = None,
        replace_all: bool = False,
    ) -> None:
        self.settings = settings or EditorSettings()
        self.file_ops = file_ops or FileOperations()
        self.detector = ConflictDetector(self.file_ops)
        self.resolver = EditResolver(
            similarity_threshold=self.settings.similarity_threshold,
            replace_all=replace_all,
        )
        self.applier = TransactionalApplier(
            str(Path(self.settings.history_dir) / BACKUP_SUBDIR),
            self.file_ops,
        )
        self.history = HistoryStore(
            self.settings.history_dir,
            max_entries=self.settings.max_history_entries,
            file_ops=self.file_ops,
        )
        self._graph = None

    @property
    def graph(self):
        if self._graph is None:
            self._graph = build_graph(
                detector=self.detector,
                resolver=self.resolver,
                applier=self.applier,
                history=self.history,
                file_ops=self.file_ops,
            )
        return self._graph

    def run(self, batch: EditBatch, expand_globs: bool = False) -> BatchReport:
        """Run one batch: detect, resolve, preview, and apply unless dry-run.

        Args:
            batch: The batch request.
            expand_globs: Expand glob patterns in substring edit targets first.

        Returns:
            BatchReport with one result per (expanded) descriptor.

        Raises:
            GraphBuildError: If the pipeline graph cannot be built.
        """
        if expand_globs:
            batch = batch.model_copy(
                update={
                    "edits": expand_file_patterns(
                        batch.edits,
                        self.file_ops,
                        skip_dirs=[self.settings.history_dir],
                    )
                }
            )

        logger.info(
            "Starting multi-file edit: %d edit(s), dry_run=%s, backups=%s",
            len(batch.edits),
            batch.dry_run,
            batch.create_backups,
        )
        state = self.graph.invoke(make_initial_state(batch))
        report = self._build_report(state)

        if report.applied:
            logger.info(
                "Multi-file edit completed: %d file(s) modified, operation %s",
                len(report.modified_files),
                report.operation_id,
            )
        elif report.aborted:
            logger.warning("Multi-file edit aborted: %s", "; ".join(report.errors))
        return report

    def _build_report(self, state: EditState) -> BatchReport:
        modified_files = []
        if state["applied"]:
            modified_files = [self.file_ops.stats(edit.file) for edit in state["resolved"]]

        return BatchReport(
            dry_run=state["dry_run"],
            conflicts=state["conflicts"],
            results=state["results"],
            applied=state["applied"],
            aborted=state["aborted"],
            operation_id=state["history_id"],
            backups=state["backups"],
            modified_files=modified_files,
            errors=state["errors"],
        )

    def restore(self, entry_id: str) -> RestoreResult:
        """Undo a recorded operation by restoring its files' pre-edit content."""
        return self.history.restore(entry_id)
