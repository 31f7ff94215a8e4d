"""Configuration data models."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DUPLICATE_POLICIES = ("first", "last")


@dataclass
class IngestSettings:
    """Settings for reading a batch of student archives.

    ``text_extensions`` of None means the built-in allow-list of source
    and text extensions.
    """

    nested_extension: str = ".zip"
    text_extensions: frozenset[str] | None = None
    unknown_name: str = "Unknown Student"
    unknown_code: str = "N/A"
    synthetic_prefix: str = "unknown"
    duplicate_policy: str = "first"

    def __post_init__(self):
        if self.duplicate_policy not in DUPLICATE_POLICIES:
            raise ValueError(
                f"duplicate_policy must be one of {DUPLICATE_POLICIES}, "
                f"got {self.duplicate_policy!r}"
            )
        if self.text_extensions is not None:
            extensions = self.text_extensions
            # A single extension may be given as a plain YAML scalar
            if isinstance(extensions, str):
                extensions = [extensions]
            elif not isinstance(extensions, (list, tuple, set, frozenset)):
                raise ValueError(
                    f"text_extensions must be a list of extensions, "
                    f"got {type(extensions).__name__}"
                )
            self.text_extensions = frozenset(
                str(ext).lower().lstrip(".") for ext in extensions
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IngestSettings":
        defaults = cls()
        return cls(
            nested_extension=data.get("nested_extension", defaults.nested_extension),
            text_extensions=data.get("text_extensions"),
            unknown_name=data.get("unknown_name", defaults.unknown_name),
            unknown_code=data.get("unknown_code", defaults.unknown_code),
            synthetic_prefix=data.get("synthetic_prefix", defaults.synthetic_prefix),
            duplicate_policy=data.get("duplicate_policy", defaults.duplicate_policy),
        )


@dataclass
class StoreSettings:
    """Where the catalog is persisted between sessions."""

    directory: Path = field(default_factory=lambda: Path.home() / ".homework_catalog")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoreSettings":
        if "directory" not in data:
            return cls()
        return cls(directory=Path(data["directory"]).expanduser())


@dataclass
class AppConfig:
    """Complete application configuration."""

    ingest: IngestSettings = field(default_factory=IngestSettings)
    store: StoreSettings = field(default_factory=StoreSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppConfig":
        return cls(
            ingest=IngestSettings.from_dict(data.get("ingest") or {}),
            store=StoreSettings.from_dict(data.get("store") or {}),
        )
