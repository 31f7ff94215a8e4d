"""File handling utilities."""

import re
import unicodedata
from pathlib import Path, PurePosixPath


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The path (for chaining)
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_filename(name: str, max_length: int = 255) -> str:
    """Convert a string to a safe filename.

    Archive entry names may carry directory components, `+` separators
    and non-ASCII student names; only the basename is kept and characters
    that are problematic on common filesystems are removed.

    Args:
        name: Original filename or archive entry name
        max_length: Maximum length of the resulting filename

    Returns:
        Safe filename string
    """
    name = PurePosixPath(name.replace("\\", "/")).name

    name = unicodedata.normalize("NFKD", name)
    name = name.encode("ascii", "ignore").decode("ascii")

    name = name.replace(" ", "_")
    name = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "", name)
    name = name.strip(". ")

    if len(name) > max_length:
        name = name[:max_length]

    if not name:
        name = "unnamed"

    return name


def get_file_extension(path: str) -> str:
    """Get the text after the last dot, lowercased.

    Unlike ``Path.suffix`` this works on raw archive entry names and treats
    a dotfile such as ``.gitignore`` as having the extension ``gitignore``.

    Args:
        path: File path or archive entry name

    Returns:
        Lowercase extension without dot, or empty string
    """
    _, dot, ext = path.rpartition(".")
    if not dot:
        return ""
    return ext.lower()
