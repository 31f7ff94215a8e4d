"""
Configuration module.

Handles loading of ingestion and storage settings from YAML files
and the environment.
"""

from .loader import ConfigLoader
from .models import AppConfig, IngestSettings, StoreSettings

__all__ = ["ConfigLoader", "AppConfig", "IngestSettings", "StoreSettings"]
