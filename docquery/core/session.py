"""
Session - binds a document store and a codec, and hands out collections.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

from .collection import CollectionManager
from .id_cache import SessionIdCache
from ..codec.base import ObjectCodec
from ..codec.dataclass_codec import DataclassCodec
from ..storage import create_store
from ..storage.base import DocumentStore
from ..utils.logging import get_logger, setup_logger, ROOT_LOGGER
from ..utils.validation import validate_collection_name
from config.settings import Settings, load_config


logger = get_logger(__name__)


class Session:
    """
    Entry point for working with a document store.

    Each collection obtained from a session has its own id cache, shared by
    every query issued through that collection.

    Example:
        >>> with Session.from_config("./docquery.yaml") as session:
        ...     people = session.collection("people")
        ...     people.insert(Person("Ada", 36))
        ...     people.size
        1
    """

    def __init__(
        self,
        store: DocumentStore,
        codec: Optional[ObjectCodec] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize a session.

        Args:
            store: Backend store
            codec: Object codec (a DataclassCodec by default)
            settings: Settings (defaults when omitted)
        """
        self.settings = settings or Settings()
        self.store = store
        self.codec = codec or DataclassCodec(self.settings.schema)

        self._collections: Dict[str, CollectionManager] = {}
        self._lock = threading.RLock()
        self._closed = False

        logger.info(f"Session opened on {type(store).__name__}")

    @classmethod
    def from_config(
        cls,
        config: Union[Settings, str, Path, None] = None,
        codec: Optional[ObjectCodec] = None,
    ) -> "Session":
        """
        Create a session from settings or a YAML config file.

        Configures the package logger and builds the store backend.
        """
        settings = config if isinstance(config, Settings) else load_config(
            str(config) if config is not None else None
        )

        setup_logger(ROOT_LOGGER, level=settings.log_level, log_file=settings.log_file)

        store = create_store(
            settings.store.backend,
            snapshot_path=settings.store.snapshot_path,
            id_field=settings.schema.id_field,
        )
        return cls(store, codec=codec, settings=settings)

    # =========================================================================
    # COLLECTIONS
    # =========================================================================

    def collection(self, name: str) -> CollectionManager:
        """Get the collection ``name``, creating the binding on first use."""
        name = validate_collection_name(name)

        with self._lock:
            if name not in self._collections:
                self._collections[name] = CollectionManager(
                    name,
                    self.store.get_collection(name),
                    self.codec,
                    id_cache=SessionIdCache(),
                    settings=self.settings,
                )
                logger.debug(f"Bound collection '{name}'")
            return self._collections[name]

    def __getitem__(self, name: str) -> CollectionManager:
        return self.collection(name)

    def collection_names(self) -> List[str]:
        """Names of the collections in the store."""
        return self.store.list_collection_names()

    def drop_collection(self, name: str) -> None:
        """Drop a collection and forget its binding. Irreversible."""
        with self._lock:
            self._collections.pop(name, None)
            self.store.drop_collection(name)
        logger.info(f"Dropped collection '{name}'")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def close(self) -> None:
        """Save the snapshot (if configured) and close the store."""
        if self._closed:
            return
        self._closed = True

        snapshot_path = self.settings.store.snapshot_path
        save = getattr(self.store, "save", None)
        if snapshot_path and save is not None:
            save(snapshot_path)

        self.store.close()
        logger.info("Session closed")

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Session(store={self.store!r}, collections={list(self._collections)})"
