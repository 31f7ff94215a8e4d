"""
Grading session.

Owns the live catalog, the reference files and the view state for one
user session, and keeps them in step with the persistent store.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

from .catalog.models import Catalog, ReferenceFileSet, SubmissionRecord, ViewState
from .catalog.store import CatalogStore, StorageError
from .config.models import IngestSettings
from .processing.extractor import decode_text
from .processing.ingest import IngestResult, ProgressCallback, ingest_archive
from .utils.files import ensure_dir, safe_filename
from .utils.logging import get_logger

logger = get_logger(__name__)


class GradingSession:
    """Holds the state a reviewer works with between uploads."""

    def __init__(self, store: CatalogStore, settings: IngestSettings | None = None):
        """Initialize an empty session.

        Args:
            store: Store used to persist state
            settings: Ingestion settings for new uploads
        """
        self.store = store
        self.settings = settings or IngestSettings()
        self.submissions: Catalog = {}
        self.references: ReferenceFileSet = {}
        self.view_state = ViewState()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def restore(self) -> str | None:
        """Restore the previous session from the store.

        A saved selection is only restored when the selected student is
        still in the saved catalog.

        Returns:
            An error message if the saved session could not be read,
            otherwise None
        """
        try:
            submissions = self.store.load_submissions()
            references = self.store.load_references()
            view_state = self.store.load_view_state()
        except StorageError as e:
            logger.error(f"Failed to load session: {e}")
            return "Could not restore previous session."

        self.submissions = submissions or {}
        self.references = references or {}
        self.view_state = ViewState()

        if view_state and view_state.selected_student_id in self.submissions:
            self.view_state = view_state

        logger.info(
            f"Restored {len(self.submissions)} submissions and "
            f"{len(self.references)} reference files"
        )
        return None

    def clear(self) -> None:
        """Delete all saved data and reset the session."""
        self.store.clear()
        self.submissions = {}
        self.references = {}
        self.view_state = ViewState()

    # -------------------------------------------------------------------------
    # Uploads
    # -------------------------------------------------------------------------

    async def load_submissions(
        self,
        data: bytes,
        on_progress: ProgressCallback | None = None,
    ) -> tuple[IngestResult, str | None]:
        """Replace the catalog with the contents of a new batch archive.

        Args:
            data: Raw bytes of the batch archive
            on_progress: Progress callback passed on to ingestion

        Returns:
            Tuple of (ingest result, persistence warning or None)

        Raises:
            ArchiveOpenError: If the batch archive cannot be opened; the
                current catalog is left untouched
        """
        result = await ingest_archive(data, self.settings, on_progress)

        self.submissions = result.catalog
        if self.view_state.selected_student_id not in self.submissions:
            self.view_state = ViewState(selected_reference_file=self.view_state.selected_reference_file)

        warning = self._persist(self.store.save_submissions, self.submissions)
        if warning is None:
            warning = self._persist(self.store.save_view_state, self.view_state)
        return result, warning

    def load_references(self, files: dict[str, bytes | str]) -> str | None:
        """Replace the reference files.

        Args:
            files: Mapping of filename to raw or decoded content

        Returns:
            Persistence warning or None
        """
        references: ReferenceFileSet = {}
        for name, content in files.items():
            references[name] = decode_text(content) if isinstance(content, bytes) else content

        self.references = references
        if self.view_state.selected_reference_file not in self.references:
            self.view_state.selected_reference_file = None

        logger.info(f"Loaded {len(references)} reference files")
        return self._persist(self.store.save_references, self.references)

    def load_reference_paths(self, paths: list[Path]) -> str | None:
        """Replace the reference files with files read from disk."""
        return self.load_references({path.name: path.read_bytes() for path in paths})

    # -------------------------------------------------------------------------
    # Browsing
    # -------------------------------------------------------------------------

    def student_list(self) -> list[SubmissionRecord]:
        """Get submissions ordered by student name, then id."""
        return sorted(
            self.submissions.values(),
            key=lambda r: (r.student_name.casefold(), r.student_id),
        )

    def get(self, student_id: str) -> SubmissionRecord:
        """Get a submission by student id.

        Raises:
            KeyError: If the student is not in the catalog
        """
        try:
            return self.submissions[student_id]
        except KeyError:
            raise KeyError(f"No submission for student {student_id}") from None

    def select(
        self,
        student_id: str | None = None,
        submission_file: str | None = None,
        reference_file: str | None = None,
    ) -> str | None:
        """Update and persist the current selection.

        Raises:
            KeyError: If a selected student or file does not exist

        Returns:
            Persistence warning or None
        """
        if student_id is not None:
            record = self.get(student_id)
            if submission_file is not None and submission_file not in record.files:
                raise KeyError(f"{student_id} has no file {submission_file}")
        elif submission_file is not None:
            raise KeyError("A student must be selected to select a submission file")

        if reference_file is not None and reference_file not in self.references:
            raise KeyError(f"No reference file {reference_file}")

        self.view_state = ViewState(
            selected_student_id=student_id,
            selected_submission_file=submission_file,
            selected_reference_file=reference_file,
        )
        return self._persist(self.store.save_view_state, self.view_state)

    def export_archive(self, student_id: str, dest_dir: Path) -> Path:
        """Write a student's original archive back to disk.

        Args:
            student_id: Student whose archive to export
            dest_dir: Directory to write into

        Returns:
            Path of the written archive
        """
        record = self.get(student_id)
        target = ensure_dir(dest_dir) / safe_filename(record.archive_basename)
        target.write_bytes(record.raw_archive_bytes)
        logger.info(f"Exported {record.source_archive_name} -> {target}")
        return target

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _persist(self, save: Callable[[Any], None], value: Any) -> str | None:
        # Persistence is best effort; the in-memory state stays authoritative
        try:
            save(value)
        except StorageError as e:
            logger.error(f"Could not save session data: {e}")
            return f"Changes are not saved: {e}"
        return None
