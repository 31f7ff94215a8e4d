"""Shared fixtures: archives built in memory."""

import io
import zipfile

import pytest

from homework_catalog.catalog.store import CatalogStore
from homework_catalog.session import GradingSession


def make_zip(entries: dict[str, bytes | str]) -> bytes:
    """Build a ZIP archive in memory. Names ending in ``/`` become directories."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            if name.endswith("/"):
                zf.writestr(zipfile.ZipInfo(name), b"")
            else:
                zf.writestr(name, content)
    return buffer.getvalue()


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
CORRUPT_ZIP = b"this is not a zip archive at all"


@pytest.fixture
def student_zip() -> bytes:
    return make_zip({
        "src/": b"",
        "src/main.cpp": "int main() { return 0; }\n",
        "README.md": "# Homework 1\n",
        "screenshot.png": PNG_BYTES,
    })


@pytest.fixture
def batch_zip(student_zip) -> bytes:
    return make_zip({
        "hw+12345+Jane Doe+extra+SECTION_A.zip": student_zip,
        "hw+67890+John Roe+extra+SECTION_B.zip": make_zip({"lab.py": "print('hi')\n"}),
        "Smith_Anna_final.zip": make_zip({"notes.txt": "notes"}),
        "grades.csv": "id,grade\n",
    })


@pytest.fixture
def store(tmp_path) -> CatalogStore:
    return CatalogStore(tmp_path / "store")


@pytest.fixture
def session(store) -> GradingSession:
    return GradingSession(store)
