"""
Submission archive extraction.

Reads ZIP archives held in memory: the batch archive exported by the
LMS and each student's archive inside it. Only entries that look like
source code or plain text are decoded; everything stays in memory.
"""

import asyncio
import io
import lzma
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import PurePosixPath

import chardet

from ..utils.logging import get_logger
from .filetypes import UNKNOWN, detect_by_magic, is_nested_archive, is_text_source

logger = get_logger(__name__)

# Minimum chardet confidence before its guess is trusted
ENCODING_CONFIDENCE = 0.7

# Errors zipfile raises for a single damaged, encrypted or truncated member
MEMBER_READ_ERRORS = (zipfile.BadZipFile, zlib.error, lzma.LZMAError, EOFError, OSError, RuntimeError)


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------


class ExtractionError(Exception):
    """Error during archive extraction."""

    pass


class ArchiveOpenError(ExtractionError):
    """Archive could not be opened (corrupt bytes or wrong format)."""

    pass


class NestedArchiveOpenError(ArchiveOpenError):
    """A student's archive inside the batch could not be opened."""

    pass


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------


@dataclass
class ArchiveEntry:
    """An entry of the batch archive, read into memory."""

    name: str
    data: bytes

    @property
    def basename(self) -> str:
        return PurePosixPath(self.name).name


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _normalize_name(name: str) -> str:
    return name.replace("\\", "/")


def _should_skip_file(name: str) -> bool:
    """Check if an entry is OS metadata rather than student content."""
    path = PurePosixPath(name)

    if "__MACOSX" in path.parts:
        return True

    if path.name.startswith("._"):
        return True

    if path.name.lower() in ("thumbs.db", "desktop.ini", ".ds_store"):
        return True

    return False


def _describe_bytes(data: bytes) -> str:
    file_type = detect_by_magic(data)
    if not data:
        return "empty file"
    if file_type == UNKNOWN:
        return "unrecognised content"
    return file_type.description


def _open_zip(data: bytes, error_cls: type[ArchiveOpenError], label: str) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(data), "r")
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
        detected = _describe_bytes(data)
        raise error_cls(f"Cannot open {label} as ZIP ({detected}): {e}") from e


def decode_text(raw: bytes) -> str:
    """
    Decode file content to text.

    Tries UTF-8 first (a leading BOM is dropped), then the encoding
    detected by chardet, and finally UTF-8 with replacement characters.

    Args:
        raw: Raw file content

    Returns:
        Decoded text
    """
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass

    result = chardet.detect(raw)
    encoding = result.get("encoding")
    if encoding and result.get("confidence", 0) > ENCODING_CONFIDENCE:
        try:
            return raw.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.debug(f"Detected encoding {encoding} failed, using replacement")

    return raw.decode("utf-8", errors="replace")


# -----------------------------------------------------------------------------
# Extraction Functions
# -----------------------------------------------------------------------------


def read_batch_entries(data: bytes, extension: str = ".zip") -> tuple[list[ArchiveEntry], list[str]]:
    """
    Read the student archives out of a batch archive.

    Args:
        data: Raw bytes of the batch archive
        extension: Extension identifying student archives

    Returns:
        Tuple of (student archive entries in archive order, names of
        other entries that were skipped)

    Raises:
        ArchiveOpenError: If the batch archive cannot be opened or read
    """
    entries: list[ArchiveEntry] = []
    skipped: list[str] = []

    with _open_zip(data, ArchiveOpenError, "batch archive") as zf:
        for member in zf.infolist():
            name = _normalize_name(member.filename)

            if member.is_dir():
                continue

            if _should_skip_file(name) or not is_nested_archive(name, extension):
                skipped.append(name)
                continue

            try:
                entries.append(ArchiveEntry(name=name, data=zf.read(member)))
            except MEMBER_READ_ERRORS as e:
                # Damaged local header inside an otherwise readable batch;
                # hand the student on with no bytes so it fails on its own.
                logger.warning(f"Could not read {name} from batch archive: {e}")
                entries.append(ArchiveEntry(name=name, data=b""))

    logger.info(f"Found {len(entries)} student archives ({len(skipped)} other entries skipped)")
    return entries, skipped


def extract_text_files(data: bytes, extensions: frozenset[str] | None = None) -> dict[str, str]:
    """
    Decode the text source files of a student's archive.

    Blocking; see decode_nested_archive for the async variant.

    Args:
        data: Raw bytes of the student's archive
        extensions: Allow-list of extensions (defaults to the built-in list)

    Returns:
        Mapping of in-archive relative path to decoded text

    Raises:
        NestedArchiveOpenError: If the archive cannot be opened
    """
    files: dict[str, str] = {}

    with _open_zip(data, NestedArchiveOpenError, "student archive") as zf:
        for member in zf.infolist():
            name = _normalize_name(member.filename)

            if member.is_dir() or _should_skip_file(name):
                continue

            if not is_text_source(name, extensions):
                continue

            try:
                raw = zf.read(member)
            except MEMBER_READ_ERRORS as e:
                # CRC mismatch, encrypted member or bad compression
                logger.warning(f"Skipping unreadable entry {name}: {e}")
                continue

            files[name] = decode_text(raw)

    return files


async def decode_nested_archive(data: bytes, extensions: frozenset[str] | None = None) -> dict[str, str]:
    """
    Decode a student's archive without blocking the event loop.

    Parsing and decompression run in a worker thread so other students'
    archives keep being processed while this one is read.

    Args:
        data: Raw bytes of the student's archive
        extensions: Allow-list of extensions (defaults to the built-in list)

    Returns:
        Mapping of in-archive relative path to decoded text

    Raises:
        NestedArchiveOpenError: If the archive cannot be opened
    """
    return await asyncio.to_thread(extract_text_files, data, extensions)

