"""
Batch ingestion of student submissions.

Turns the batch archive exported by the LMS into a catalog of
submissions keyed by student id. Every student's archive is decoded
concurrently; a student whose archive cannot be read is reported and
left out without affecting the others.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from ..catalog.models import Catalog, SubmissionRecord
from ..config.models import IngestSettings
from ..utils.logging import get_logger
from .extractor import ArchiveEntry, ExtractionError, decode_nested_archive, read_batch_entries
from .filenames import StudentIdentity, extract_student_identity

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------


@dataclass
class IngestFailure:
    """A student archive that could not be decoded."""

    archive_name: str
    reason: str


@dataclass
class DuplicateId:
    """A student archive whose id was already taken by another archive."""

    student_id: str
    archive_name: str
    assigned_id: str


@dataclass
class IngestResult:
    """Result of ingesting one batch archive."""

    catalog: Catalog
    failures: list[IngestFailure] = field(default_factory=list)
    duplicates: list[DuplicateId] = field(default_factory=list)
    skipped_entries: list[str] = field(default_factory=list)

    @property
    def student_count(self) -> int:
        return len(self.catalog)

    @property
    def failed_archives(self) -> list[str]:
        return [f.archive_name for f in self.failures]

    def summary(self) -> str:
        """One-line summary suitable for a status message."""
        text = f"Loaded {self.student_count} submissions"
        if self.failures:
            text += f", {len(self.failures)} archives could not be opened"
        if self.duplicates:
            text += f", {len(self.duplicates)} duplicate student ids renamed"
        return text


@dataclass
class _Decoded:
    entry: ArchiveEntry
    identity: StudentIdentity
    files: dict[str, str]


# -----------------------------------------------------------------------------
# Id Resolution
# -----------------------------------------------------------------------------


class SyntheticIdGenerator:
    """Generates stand-in ids (``unknown-1``, ``unknown-2``, ...) for one pass.

    Ids already used in the catalog are never produced.
    """

    def __init__(self, prefix: str = "unknown", taken: set[str] | None = None):
        self.prefix = prefix
        self.taken = set(taken or ())
        self._counter = 0

    def next_id(self) -> str:
        while True:
            self._counter += 1
            candidate = f"{self.prefix}-{self._counter}"
            if candidate not in self.taken:
                self.taken.add(candidate)
                return candidate


def _owners_of_real_ids(decoded: list[_Decoded], policy: str) -> dict[str, int]:
    """Map each extracted id to the index of the archive that keeps it."""
    owners: dict[str, int] = {}
    for index, item in enumerate(decoded):
        student_id = item.identity.id
        if student_id is None:
            continue
        if policy == "last" or student_id not in owners:
            owners[student_id] = index
    return owners


def build_catalog(decoded: list[_Decoded], settings: IngestSettings) -> tuple[Catalog, list[DuplicateId]]:
    """
    Assign ids and build the catalog from decoded archives.

    Runs after all archives are decoded and walks them in batch archive
    order, so the outcome does not depend on which decode finished first.
    When two archives carry the same extracted id, the duplicate policy
    picks the one that keeps it; the other is stored under a synthetic id.
    """
    owners = _owners_of_real_ids(decoded, settings.duplicate_policy)
    generator = SyntheticIdGenerator(settings.synthetic_prefix, taken=set(owners))

    catalog: Catalog = {}
    duplicates: list[DuplicateId] = []

    for index, item in enumerate(decoded):
        identity = item.identity

        if not identity.is_ambiguous and owners[identity.id] == index:
            student_id = identity.id
        else:
            student_id = generator.next_id()
            if not identity.is_ambiguous:
                duplicates.append(DuplicateId(identity.id, item.entry.name, student_id))
                logger.warning(
                    f"Student id {identity.id} of {item.entry.name} already in use, "
                    f"stored as {student_id}"
                )
            else:
                logger.info(f"No student id in {item.entry.name!r}, using {student_id}")

        catalog[student_id] = SubmissionRecord(
            student_id=student_id,
            student_name=identity.name or settings.unknown_name,
            student_code=identity.code or settings.unknown_code,
            source_archive_name=item.entry.name,
            raw_archive_bytes=item.entry.data,
            files=item.files,
        )

    return catalog, duplicates


# -----------------------------------------------------------------------------
# Ingestion
# -----------------------------------------------------------------------------


async def ingest_archive(
    data: bytes,
    settings: IngestSettings | None = None,
    on_progress: ProgressCallback | None = None,
) -> IngestResult:
    """
    Build a fresh catalog from a batch archive of student archives.

    The returned catalog replaces any earlier one; nothing is merged.

    Args:
        data: Raw bytes of the batch archive
        settings: Ingestion settings (defaults apply when omitted)
        on_progress: Called with (finished, total) as each student's
            archive is done

    Returns:
        IngestResult with the catalog and the archives that failed

    Raises:
        ArchiveOpenError: If the batch archive itself cannot be opened
    """
    settings = settings or IngestSettings()

    entries, skipped = await asyncio.to_thread(read_batch_entries, data, settings.nested_extension)
    identities = [extract_student_identity(entry.name) for entry in entries]

    total = len(entries)
    finished = 0

    async def decode(entry: ArchiveEntry) -> dict[str, str]:
        nonlocal finished
        try:
            return await decode_nested_archive(entry.data, settings.text_extensions)
        finally:
            finished += 1
            if on_progress is not None:
                on_progress(finished, total)

    outcomes = await asyncio.gather(
        *(decode(entry) for entry in entries),
        return_exceptions=True,
    )

    decoded: list[_Decoded] = []
    failures: list[IngestFailure] = []

    for entry, identity, outcome in zip(entries, identities, outcomes):
        if isinstance(outcome, ExtractionError):
            logger.warning(f"Failed to open archive for {identity.name or entry.name}: {outcome}")
            failures.append(IngestFailure(entry.name, str(outcome)))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            decoded.append(_Decoded(entry, identity, outcome))

    catalog, duplicates = build_catalog(decoded, settings)

    result = IngestResult(
        catalog=catalog,
        failures=failures,
        duplicates=duplicates,
        skipped_entries=skipped,
    )
    logger.info(result.summary())
    return result


async def ingest_archive_file(
    path: Path,
    settings: IngestSettings | None = None,
    on_progress: ProgressCallback | None = None,
) -> IngestResult:
    """Read a batch archive from disk and ingest it."""
    if not path.exists():
        raise FileNotFoundError(f"Batch archive not found: {path}")
    data = await asyncio.to_thread(path.read_bytes)
    return await ingest_archive(data, settings, on_progress)
