"""
File type detection for archive entries.

Decides which entries of a student's archive hold source code or plain
text worth extracting, and which entries of the batch archive are
themselves student archives. Detection works on raw in-archive names
and byte buffers since nothing is ever extracted to disk.
"""

from dataclasses import dataclass
from enum import Enum

from ..utils.files import get_file_extension


class FileCategory(Enum):
    """Categories of recognised file types."""

    DOCUMENT = "document"
    CODE = "code"
    ARCHIVE = "archive"
    IMAGE = "image"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FileType:
    """Represents a detected file type."""

    extension: str
    mime_type: str
    category: FileCategory
    description: str


# -----------------------------------------------------------------------------
# Known File Types
# -----------------------------------------------------------------------------

TXT = FileType("txt", "text/plain", FileCategory.DOCUMENT, "Plain Text")
MD = FileType("md", "text/markdown", FileCategory.DOCUMENT, "Markdown")

C = FileType("c", "text/x-csrc", FileCategory.CODE, "C Source")
CPP = FileType("cpp", "text/x-c++src", FileCategory.CODE, "C++ Source")
HEADER = FileType("h", "text/x-chdr", FileCategory.CODE, "C Header")
CPP_HEADER = FileType("hpp", "text/x-c++hdr", FileCategory.CODE, "C++ Header")
JAVA = FileType("java", "text/x-java-source", FileCategory.CODE, "Java Source")
PYTHON = FileType("py", "text/x-python", FileCategory.CODE, "Python Source")
JAVASCRIPT = FileType("js", "text/javascript", FileCategory.CODE, "JavaScript Source")
TYPESCRIPT = FileType("ts", "text/typescript", FileCategory.CODE, "TypeScript Source")
JSON = FileType("json", "application/json", FileCategory.CODE, "JSON Data")
XML = FileType("xml", "application/xml", FileCategory.CODE, "XML Document")
HTML = FileType("html", "text/html", FileCategory.CODE, "HTML Document")
CSS = FileType("css", "text/css", FileCategory.CODE, "CSS Stylesheet")
ASM = FileType("s", "text/x-asm", FileCategory.CODE, "Assembly Source")
ASM_LONG = FileType("asm", "text/x-asm", FileCategory.CODE, "Assembly Source")

ZIP = FileType("zip", "application/zip", FileCategory.ARCHIVE, "ZIP Archive")
RAR = FileType("rar", "application/vnd.rar", FileCategory.ARCHIVE, "RAR Archive")
SEVENZ = FileType("7z", "application/x-7z-compressed", FileCategory.ARCHIVE, "7-Zip Archive")
GZIP = FileType("gz", "application/gzip", FileCategory.ARCHIVE, "Gzip Archive")
PDF = FileType("pdf", "application/pdf", FileCategory.DOCUMENT, "PDF Document")
PNG = FileType("png", "image/png", FileCategory.IMAGE, "PNG Image")
JPEG = FileType("jpg", "image/jpeg", FileCategory.IMAGE, "JPEG Image")

UNKNOWN = FileType("", "application/octet-stream", FileCategory.UNKNOWN, "Unknown File Type")

# Entries that are extracted as text from a student's archive
TEXT_SOURCE_TYPES: tuple[FileType, ...] = (
    TXT, MD, C, CPP, HEADER, CPP_HEADER, JAVA, PYTHON,
    JAVASCRIPT, TYPESCRIPT, JSON, XML, HTML, CSS, ASM, ASM_LONG,
)

TEXT_SOURCE_EXTENSIONS: frozenset[str] = frozenset(t.extension for t in TEXT_SOURCE_TYPES)

# Format: (signature_bytes, file_type); used to describe archives that fail to open
MAGIC_SIGNATURES: list[tuple[bytes, FileType]] = [
    (b"PK\x03\x04", ZIP),
    (b"PK\x05\x06", ZIP),  # empty archive
    (b"Rar!\x1a\x07", RAR),
    (b"7z\xbc\xaf\x27\x1c", SEVENZ),
    (b"\x1f\x8b", GZIP),
    (b"%PDF", PDF),
    (b"\x89PNG\r\n\x1a\n", PNG),
    (b"\xff\xd8\xff", JPEG),
]


# -----------------------------------------------------------------------------
# Detection Functions
# -----------------------------------------------------------------------------


def detect_by_magic(data: bytes) -> FileType:
    """
    Detect file type from the leading bytes of a buffer.

    Args:
        data: Raw file content

    Returns:
        Detected FileType or UNKNOWN
    """
    for signature, file_type in MAGIC_SIGNATURES:
        if data.startswith(signature):
            return file_type
    return UNKNOWN


def is_text_source(relative_path: str, extensions: frozenset[str] | None = None) -> bool:
    """
    Check whether an archive entry should be extracted as text.

    Directory entries (names ending in ``/``) and names without an
    extension are always rejected. The comparison is case-insensitive,
    so ``src/main.CPP`` is accepted.

    Args:
        relative_path: Path of the entry inside the student's archive
        extensions: Allow-list of extensions without dots
            (defaults to TEXT_SOURCE_EXTENSIONS)

    Returns:
        True if the entry's extension is on the allow-list
    """
    if relative_path.endswith("/"):
        return False

    if extensions is None:
        extensions = TEXT_SOURCE_EXTENSIONS

    ext = get_file_extension(relative_path)
    return bool(ext) and ext in extensions


def is_nested_archive(entry_name: str, extension: str = ".zip") -> bool:
    """
    Check whether a batch archive entry is a student's archive.

    Args:
        entry_name: Entry name inside the batch archive
        extension: Extension of student archives, with leading dot

    Returns:
        True if the name ends with the extension (case-insensitive)
    """
    if entry_name.endswith("/"):
        return False
    return entry_name.lower().endswith(extension.lower())
