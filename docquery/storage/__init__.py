"""
Storage backends for docquery.

Available Storage Backends:
    - MemoryDocumentStore: In-memory store (fast, volatile, msgpack snapshots)

Example:
    >>> from docquery.storage import create_store
    >>>
    >>> store = create_store("memory")
    >>> people = store.get_collection("people")
    >>> people.insert({"_id": 1, "name": "Ada"})
    >>> people.count_documents({"name": {"$eq": "Ada"}})
    1
"""

from pathlib import Path
from typing import Optional

from .base import (
    Cursor,
    Document,
    DocumentStore,
    StoreCollection,
    UpdateResult,
)
from .memory import MemoryCursor, MemoryDocumentStore, MemoryStoreCollection
from .serialization import (
    serialize_document,
    deserialize_document,
    serialize_snapshot,
    deserialize_snapshot,
)

__all__ = [
    # Base
    "Cursor",
    "Document",
    "DocumentStore",
    "StoreCollection",
    "UpdateResult",
    # Implementations
    "MemoryCursor",
    "MemoryDocumentStore",
    "MemoryStoreCollection",
    # Serialization
    "serialize_document",
    "deserialize_document",
    "serialize_snapshot",
    "deserialize_snapshot",
    # Factory
    "create_store",
]


def create_store(
    backend: str = "memory",
    snapshot_path: Optional[str] = None,
    **kwargs
) -> DocumentStore:
    """
    Factory function to create a store backend.

    Args:
        backend: "memory"
        snapshot_path: Snapshot to load, if it exists
        **kwargs: Backend-specific options

    Returns:
        Store instance
    """
    backend = backend.lower()

    if backend == "memory":
        if snapshot_path and Path(snapshot_path).exists():
            return MemoryDocumentStore.load(snapshot_path, **kwargs)
        return MemoryDocumentStore(**kwargs)
    else:
        raise ValueError(f"Unknown store backend: {backend}")
