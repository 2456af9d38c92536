"""
Configuration module for docquery.

This module provides configuration management including
loading settings from YAML files and environment variables.

Example:
    >>> from config import Settings, load_config
    >>>
    >>> # Load default config
    >>> settings = load_config()
    >>>
    >>> # Access settings
    >>> print(settings.schema.class_field)
    >>> print(settings.query.max_filter_depth)
"""

from .settings import (
    Settings,
    StoreConfig,
    SchemaConfig,
    QueryConfig,
    load_config,
    get_default_config_path,
)

__all__ = [
    "Settings",
    "StoreConfig",
    "SchemaConfig",
    "QueryConfig",
    "load_config",
    "get_default_config_path",
]
