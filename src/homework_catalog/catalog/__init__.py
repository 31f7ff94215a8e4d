"""
Catalog module.

Submission records, the catalog that holds them, and their
persistence between sessions.
"""

from .models import (
    Catalog,
    ReferenceFileSet,
    SubmissionRecord,
    ViewState,
    catalog_from_dict,
    catalog_to_dict,
)
from .store import (
    CatalogStore,
    StorageError,
    SUBMISSIONS_KEY,
    REFERENCES_KEY,
    VIEW_STATE_KEY,
)

__all__ = [
    # Models
    "Catalog",
    "ReferenceFileSet",
    "SubmissionRecord",
    "ViewState",
    "catalog_from_dict",
    "catalog_to_dict",
    # Store
    "CatalogStore",
    "StorageError",
    "SUBMISSIONS_KEY",
    "REFERENCES_KEY",
    "VIEW_STATE_KEY",
]
