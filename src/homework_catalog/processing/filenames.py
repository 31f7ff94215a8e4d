"""
Recover student identity from submission archive names.

LMS exports name each student's archive differently. The structured
convention joins fields with ``+``::

    hw+12345+Jane Doe+extra+SECTION_A.zip

where the second field is the student id, the third the display name and
the first ``_`` piece of the last field the institution code. Archives
that do not follow it fall back to heuristics on the raw name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..utils.logging import get_logger

logger = get_logger(__name__)

FIELD_DELIMITER = "+"
MIN_STRUCTURED_FIELDS = 4

ID_RE = re.compile(r"[0-9]+")
# Fallback id: first run of five or more digits anywhere in the name
FALLBACK_ID_RE = re.compile(r"([0-9]{5,})")
EXTENSION_RE = re.compile(r"\.[^/.]+$")


@dataclass(frozen=True)
class StudentIdentity:
    """Identity fields recovered from a filename; any may be missing."""

    id: str | None = None
    name: str | None = None
    code: str | None = None

    @property
    def is_ambiguous(self) -> bool:
        """True when no reliable student id could be recovered."""
        return self.id is None


def strip_extension(filename: str) -> str:
    """
    Remove the trailing extension from a filename.

    Only the last suffix of the final path component is removed, so
    ``a.b/c`` is returned unchanged.
    """
    return EXTENSION_RE.sub("", filename)


def _parse_structured(stem: str) -> tuple[str | None, str | None, str | None]:
    """Parse the ``+``-delimited convention. Returns (id, name, code)."""
    parts = stem.split(FIELD_DELIMITER)
    if len(parts) < MIN_STRUCTURED_FIELDS:
        return None, None, None

    student_id = None
    raw_id = parts[1].strip()
    if ID_RE.fullmatch(raw_id):
        student_id = raw_id

    raw_name = parts[2].strip()
    name = raw_name or None

    code = None
    raw_code = parts[-1].strip()
    if raw_code:
        code = raw_code.split("_")[0]

    return student_id, name, code


def _fallback_id(filename: str) -> str | None:
    match = FALLBACK_ID_RE.search(filename)
    return match.group(1) if match else None


def _fallback_name(filename: str) -> str | None:
    # Assumes a "Lastname_Firstname_..." prefix
    parts = filename.split("_")
    if len(parts) < 2:
        return None
    return f"{parts[1]} {parts[0]}"


def extract_student_identity(filename: str) -> StudentIdentity:
    """
    Extract student id, display name and institution code from a filename.

    The structured ``+`` convention is tried first. Any field it leaves
    unset is then filled independently from the raw filename: the id from
    the first run of at least five digits and the name from the first two
    ``_`` pieces in reversed order. The code has no fallback.

    Never raises; missing information is returned as None.

    Args:
        filename: Entry name of the student's archive

    Returns:
        StudentIdentity with the recovered fields
    """
    student_id, name, code = _parse_structured(strip_extension(filename))

    if student_id is None:
        student_id = _fallback_id(filename)
    if name is None:
        name = _fallback_name(filename)

    identity = StudentIdentity(id=student_id, name=name, code=code)
    logger.debug(f"Parsed {filename!r} -> {identity}")
    return identity
