"""
Submission processing module.

Handles reading the batch archive of student submissions, recovering
student identity from archive names, and decoding each student's
source files.
"""

# File type detection
from .filetypes import (
    FileType,
    FileCategory,
    detect_by_magic,
    is_text_source,
    is_nested_archive,
    TEXT_SOURCE_EXTENSIONS,
    ZIP,
    UNKNOWN,
)

# Student identity from filenames
from .filenames import (
    StudentIdentity,
    extract_student_identity,
    strip_extension,
)

# Archive extraction
from .extractor import (
    ArchiveEntry,
    ExtractionError,
    ArchiveOpenError,
    NestedArchiveOpenError,
    decode_text,
    read_batch_entries,
    extract_text_files,
    decode_nested_archive,
)

# Batch ingestion
from .ingest import (
    IngestResult,
    IngestFailure,
    DuplicateId,
    SyntheticIdGenerator,
    build_catalog,
    ingest_archive,
    ingest_archive_file,
)

__all__ = [
    # File types
    "FileType",
    "FileCategory",
    "detect_by_magic",
    "is_text_source",
    "is_nested_archive",
    "TEXT_SOURCE_EXTENSIONS",
    "ZIP",
    "UNKNOWN",
    # Filenames
    "StudentIdentity",
    "extract_student_identity",
    "strip_extension",
    # Extraction
    "ArchiveEntry",
    "ExtractionError",
    "ArchiveOpenError",
    "NestedArchiveOpenError",
    "decode_text",
    "read_batch_entries",
    "extract_text_files",
    "decode_nested_archive",
    # Ingestion
    "IngestResult",
    "IngestFailure",
    "DuplicateId",
    "SyntheticIdGenerator",
    "build_catalog",
    "ingest_archive",
    "ingest_archive_file",
]
