"""
Configuration module for skillmatrix.

Exports the main components for convenient imports.
"""

from .loader import ConfigFileError, load_config
from .schema import AppConfig, CatalogConfig, LoggingConfig

__all__ = [
    "ConfigFileError",
    "load_config",
    "AppConfig",
    "CatalogConfig",
    "LoggingConfig",
]
