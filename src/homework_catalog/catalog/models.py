"""Catalog data models."""

import base64
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any

# Student id -> submission
Catalog = dict[str, "SubmissionRecord"]

# Reference filename -> text
ReferenceFileSet = dict[str, str]


@dataclass
class SubmissionRecord:
    """One student's submission, as read from their archive."""

    student_id: str
    student_name: str
    student_code: str
    source_archive_name: str
    raw_archive_bytes: bytes = field(repr=False)
    files: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.student_id:
            raise ValueError("student_id must not be empty")

    @property
    def archive_basename(self) -> str:
        """Get the student's archive name without batch folders."""
        return PurePosixPath(self.source_archive_name).name

    @property
    def file_paths(self) -> list[str]:
        """Get the extracted file paths in sorted order."""
        return sorted(self.files)

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "student_name": self.student_name,
            "student_code": self.student_code,
            "source_archive_name": self.source_archive_name,
            "raw_archive_bytes": base64.b64encode(self.raw_archive_bytes).decode("ascii"),
            "files": dict(self.files),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubmissionRecord":
        return cls(
            student_id=data["student_id"],
            student_name=data.get("student_name", ""),
            student_code=data.get("student_code", ""),
            source_archive_name=data.get("source_archive_name", ""),
            raw_archive_bytes=base64.b64decode(data.get("raw_archive_bytes", "")),
            files=dict(data.get("files", {})),
        )


@dataclass
class ViewState:
    """Which student and files were last selected."""

    selected_student_id: str | None = None
    selected_submission_file: str | None = None
    selected_reference_file: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "selected_student_id": self.selected_student_id,
            "selected_submission_file": self.selected_submission_file,
            "selected_reference_file": self.selected_reference_file,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ViewState":
        return cls(
            selected_student_id=data.get("selected_student_id"),
            selected_submission_file=data.get("selected_submission_file"),
            selected_reference_file=data.get("selected_reference_file"),
        )


def catalog_to_dict(catalog: Catalog) -> dict[str, Any]:
    """Serialize a catalog to plain JSON-compatible data."""
    return {student_id: record.to_dict() for student_id, record in catalog.items()}


def catalog_from_dict(data: dict[str, Any]) -> Catalog:
    """Rebuild a catalog from catalog_to_dict output."""
    return {student_id: SubmissionRecord.from_dict(record) for student_id, record in data.items()}
