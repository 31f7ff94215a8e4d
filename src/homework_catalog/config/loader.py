"""Configuration loader for ingestion and storage settings."""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

from .models import AppConfig

CONFIG_ENV_VAR = "HOMEWORK_CATALOG_CONFIG"
STORE_ENV_VAR = "HOMEWORK_CATALOG_STORE"


class ConfigLoader:
    """Loads and validates configuration files."""

    def __init__(self, config_dir: Path | None = None):
        """Initialize the config loader.

        Args:
            config_dir: Directory relative config paths are resolved against.
                Defaults to the current working directory.
        """
        self.config_dir = config_dir or Path.cwd()

    def load(self, config_file: str | Path | None = None) -> AppConfig:
        """Load the application configuration.

        The file is taken from ``config_file`` or, when omitted, from the
        ``HOMEWORK_CATALOG_CONFIG`` environment variable (a ``.env`` file is
        honoured). With neither set the defaults are used.
        ``HOMEWORK_CATALOG_STORE`` overrides the store directory last.

        Args:
            config_file: Path to a YAML config file

        Returns:
            Parsed AppConfig object
        """
        load_dotenv(find_dotenv(usecwd=True))

        if config_file is None:
            config_file = os.getenv(CONFIG_ENV_VAR) or None

        if config_file is None:
            config = AppConfig()
        else:
            path = self._resolve_path(config_file)
            config = AppConfig.from_dict(self._load_yaml(path))

        store_override = os.getenv(STORE_ENV_VAR)
        if store_override:
            config.store.directory = Path(store_override).expanduser()

        return config

    def _resolve_path(self, file_path: str | Path) -> Path:
        """Resolve a config file path."""
        path = Path(file_path).expanduser()
        if not path.is_absolute():
            path = self.config_dir / path
        return path

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load and parse a YAML file."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        return data
