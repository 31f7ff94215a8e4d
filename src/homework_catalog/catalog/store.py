"""
Catalog persistence.

A small key/value store backed by one JSON file per key. Saving a key
replaces its previous value entirely; there is no versioning.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from ..utils.files import ensure_dir
from ..utils.logging import get_logger
from .models import (
    Catalog,
    ReferenceFileSet,
    ViewState,
    catalog_from_dict,
    catalog_to_dict,
)

logger = get_logger(__name__)

SUBMISSIONS_KEY = "grading-submissions"
REFERENCES_KEY = "grading-references"
VIEW_STATE_KEY = "grading-view-state"

ALL_KEYS = (SUBMISSIONS_KEY, REFERENCES_KEY, VIEW_STATE_KEY)


class StorageError(Exception):
    """Error reading or writing persisted data."""

    pass


class CatalogStore:
    """Persists the catalog, reference files and view state."""

    def __init__(self, directory: Path):
        """Initialize the store.

        Args:
            directory: Directory holding one JSON file per key
        """
        self.directory = directory

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    # -------------------------------------------------------------------------
    # Generic key/value operations
    # -------------------------------------------------------------------------

    def save(self, key: str, value: Any) -> None:
        """Overwrite the value stored under a key.

        The file is written next to its target and renamed into place so a
        crash never leaves a half-written value behind.

        Raises:
            StorageError: If the value cannot be written
        """
        target = self._path(key)
        try:
            ensure_dir(self.directory)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(value, f, ensure_ascii=False)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Could not save {key}: {e}") from e

        logger.debug(f"Saved {key} to {target}")

    def load(self, key: str) -> Any | None:
        """Load the value stored under a key, or None if absent.

        Raises:
            StorageError: If the stored value cannot be read
        """
        path = self._path(key)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not load {key}: {e}") from e

    def delete(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not delete {key}: {e}") from e

    def clear(self) -> None:
        """Remove everything this store has saved."""
        for key in ALL_KEYS:
            self.delete(key)
        logger.info(f"Cleared saved data in {self.directory}")

    # -------------------------------------------------------------------------
    # Typed helpers
    # -------------------------------------------------------------------------

    def save_submissions(self, catalog: Catalog) -> None:
        self.save(SUBMISSIONS_KEY, catalog_to_dict(catalog))

    def load_submissions(self) -> Catalog | None:
        data = self.load(SUBMISSIONS_KEY)
        if data is None:
            return None
        try:
            return catalog_from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StorageError(f"Saved submissions are malformed: {e}") from e

    def save_references(self, references: ReferenceFileSet) -> None:
        self.save(REFERENCES_KEY, dict(references))

    def load_references(self) -> ReferenceFileSet | None:
        data = self.load(REFERENCES_KEY)
        if data is None:
            return None
        if not isinstance(data, dict):
            raise StorageError("Saved references are malformed")
        return {str(name): str(text) for name, text in data.items()}

    def save_view_state(self, state: ViewState) -> None:
        self.save(VIEW_STATE_KEY, state.to_dict())

    def load_view_state(self) -> ViewState | None:
        data = self.load(VIEW_STATE_KEY)
        if data is None:
            return None
        if not isinstance(data, dict):
            raise StorageError("Saved view state is malformed")
        return ViewState.from_dict(data)
