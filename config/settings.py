"""
Configuration management for docquery.

Provides dataclasses for configuration and utilities
for loading settings from YAML files.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Literal
import yaml


@dataclass
class StoreConfig:
    """Document store backend configuration."""
    backend: Literal["memory"] = "memory"
    # Snapshot file loaded on startup and written by Session.close()
    snapshot_path: Optional[str] = None


@dataclass
class SchemaConfig:
    """Names of the bookkeeping fields written into every document."""
    id_field: str = "_id"
    class_field: str = "class"
    revision_field: str = "revision"


@dataclass
class QueryConfig:
    """Query compilation settings."""
    max_filter_depth: int = 32
    log_queries: bool = True


@dataclass
class Settings:
    """
    Main settings container for docquery.

    Attributes:
        store: Store backend settings
        schema: Bookkeeping field names
        query: Query compilation settings
        log_level: Logging level
        log_file: Optional log file path
    """
    store: StoreConfig = field(default_factory=StoreConfig)
    schema: SchemaConfig = field(default_factory=SchemaConfig)
    query: QueryConfig = field(default_factory=QueryConfig)

    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create Settings from dictionary."""
        data = dict(data)

        # Extract nested configs
        store_data = data.pop("store", None) or {}
        schema_data = data.pop("schema", None) or {}
        query_data = data.pop("query", None) or {}

        return cls(
            store=StoreConfig(**store_data),
            schema=SchemaConfig(**schema_data),
            query=QueryConfig(**query_data),
            **data
        )

    def to_dict(self) -> dict:
        """Convert Settings to dictionary."""
        from dataclasses import asdict
        return asdict(self)


def get_default_config_path() -> Path:
    """
    Get path to default configuration file.

    ``DOCQUERY_CONFIG`` wins, then ./config/default_config.yaml, then the
    file shipped with the package.
    """
    env_config = os.environ.get("DOCQUERY_CONFIG")
    if env_config:
        return Path(env_config)

    local_config = Path("./config/default_config.yaml")
    if local_config.exists():
        return local_config

    return Path(__file__).parent / "default_config.yaml"


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default.

    Returns:
        Settings object with loaded configuration

    Example:
        >>> settings = load_config()
        >>> settings = load_config("./my_config.yaml")
    """
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)

    if not path.exists():
        # Return default settings if no config file
        return Settings()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return Settings()

    return Settings.from_dict(data)
