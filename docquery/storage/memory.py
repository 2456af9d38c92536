"""
In-memory document store backend.

Fast volatile storage that speaks the native query language. Snapshots can
be written to and loaded from disk with msgpack.
"""

from __future__ import annotations

import copy
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from .base import Cursor, Document, DocumentStore, SortKeys, StoreCollection, UpdateResult
from .matching import apply_update, matches, project, sort_documents
from .serialization import deserialize_snapshot, serialize_snapshot
from ..core.exceptions import CursorError, DuplicateIdError, MalformedQueryError
from ..utils.logging import get_logger


logger = get_logger(__name__)


class MemoryCursor(Cursor):
    """
    Cursor over a :class:`MemoryStoreCollection`.

    Matching documents are collected when the cursor is first read, so
    ``skip``/``limit``/``sort`` may only be changed before that. The cursor
    is registered with its collection while open, which lets tests detect
    leaked cursors through ``open_cursor_count``.
    """

    def __init__(
        self,
        collection: "MemoryStoreCollection",
        query: Optional[Document],
        projection: Optional[Dict[str, Any]],
    ):
        self._collection = collection
        self._query = query or {}
        self._projection = projection
        self._skip = 0
        self._limit = 0
        self._sort: List[tuple] = []
        self._results: Optional[Iterator[Document]] = None
        self._closed = False

        collection._register_cursor(self)

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def _check_modifiable(self) -> None:
        if self._closed:
            raise CursorError("Cursor is closed")
        if self._results is not None:
            raise CursorError("Cannot modify a cursor after iteration has started")

    def skip(self, n: int) -> "MemoryCursor":
        self._check_modifiable()
        if n < 0:
            raise CursorError(f"skip must be non-negative, got {n}")
        self._skip = n
        return self

    def limit(self, n: int) -> "MemoryCursor":
        self._check_modifiable()
        if n < 0:
            raise CursorError(f"limit must be non-negative, got {n}")
        self._limit = n
        return self

    def sort(self, keys: SortKeys) -> "MemoryCursor":
        self._check_modifiable()
        self._sort = [(name, int(direction)) for name, direction in keys]
        return self

    # =========================================================================
    # READING
    # =========================================================================

    def _window(self) -> List[Document]:
        documents = self._collection._matching(self._query)
        if self._sort:
            sort_documents(documents, self._sort)
        end = self._skip + self._limit if self._limit else None
        return documents[self._skip:end]

    def size(self) -> int:
        if self._closed:
            raise CursorError("Cursor is closed")
        return len(self._window())

    def __next__(self) -> Document:
        if self._closed:
            raise StopIteration
        if self._results is None:
            window = [
                project(doc, self._projection, self._collection.id_field)
                for doc in self._window()
            ]
            self._results = iter(window)
        try:
            return next(self._results)
        except StopIteration:
            self.close()
            raise

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._results = None
            self._collection._unregister_cursor(self)

    @property
    def closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        return (
            f"MemoryCursor(collection={self._collection.name!r}, query={self._query!r}, "
            f"skip={self._skip}, limit={self._limit}, sort={self._sort!r})"
        )


class MemoryStoreCollection(StoreCollection):
    """
    In-memory collection.

    Documents are kept in insertion order, keyed by id. Every document is
    copied on the way in and out so callers never share state with the store.
    """

    def __init__(self, name: str, id_field: str = "_id"):
        super().__init__(name)
        self.id_field = id_field

        self._documents: Dict[Any, Document] = {}
        self._indexes: List[str] = []
        self._cursors: set = set()
        self._lock = threading.RLock()

        # Statistics
        self._reads = 0
        self._writes = 0

    # =========================================================================
    # WRITES
    # =========================================================================

    def insert(self, document: Document) -> None:
        document = copy.deepcopy(document)
        with self._lock:
            if self.id_field not in document:
                document[self.id_field] = uuid.uuid4()
            key = document[self.id_field]
            if key in self._documents:
                raise DuplicateIdError(
                    f"Document with {self.id_field} {key!r} already exists "
                    f"in '{self.name}'"
                )
            self._documents[key] = document
            self._writes += 1

    def find_and_replace(self, query: Document, document: Document) -> Optional[Document]:
        document = copy.deepcopy(document)
        with self._lock:
            key = self._first_key(query)
            if key is None:
                return None
            previous = self._documents[key]
            new_key = document.setdefault(self.id_field, key)
            if new_key != key:
                raise MalformedQueryError(
                    f"Replacement may not change {self.id_field}: {key!r} -> {new_key!r}"
                )
            self._documents[key] = document
            self._writes += 1
            return copy.deepcopy(previous)

    def find_and_remove(self, query: Document) -> Optional[Document]:
        with self._lock:
            key = self._first_key(query)
            if key is None:
                return None
            self._writes += 1
            return self._documents.pop(key)

    def update_many(
        self,
        query: Document,
        update: Document,
        upsert: bool = False,
        multi: bool = True,
    ) -> UpdateResult:
        if upsert:
            raise MalformedQueryError("upsert is not supported by the memory store")

        result = UpdateResult()
        with self._lock:
            for key, document in list(self._documents.items()):
                if not matches(document, query):
                    continue
                result.matched_count += 1

                # Update a copy so a failing operator leaves the document intact
                updated = copy.deepcopy(document)
                if apply_update(updated, update):
                    if updated.get(self.id_field) != key:
                        raise MalformedQueryError(f"Update may not change {self.id_field}")
                    self._documents[key] = updated
                    result.modified_count += 1
                    self._writes += 1

                if not multi:
                    break
        return result

    # =========================================================================
    # READS
    # =========================================================================

    def find(
        self,
        query: Optional[Document] = None,
        projection: Optional[Dict[str, Any]] = None,
    ) -> MemoryCursor:
        return MemoryCursor(self, query, projection)

    def count_documents(self, query: Optional[Document] = None) -> int:
        return len(self._matching(query or {}))

    def _matching(self, query: Document) -> List[Document]:
        with self._lock:
            self._reads += 1
            return [
                copy.deepcopy(doc)
                for doc in self._documents.values()
                if matches(doc, query)
            ]

    def _first_key(self, query: Document) -> Any:
        for key, document in self._documents.items():
            if matches(document, query):
                return key
        return None

    # =========================================================================
    # ADMIN
    # =========================================================================

    def ensure_index(self, field_name: str, direction: int = 1) -> str:
        if direction not in (1, -1):
            raise MalformedQueryError(f"Invalid index direction: {direction!r}")
        index_name = f"{field_name}_{direction}"
        with self._lock:
            if index_name not in self._indexes:
                self._indexes.append(index_name)
                logger.debug(f"Created index {index_name} on '{self.name}'")
        return index_name

    def index_information(self) -> List[str]:
        with self._lock:
            return list(self._indexes)

    def drop(self) -> None:
        with self._lock:
            self._documents.clear()
            self._indexes.clear()

    # =========================================================================
    # CURSOR TRACKING
    # =========================================================================

    def _register_cursor(self, cursor: MemoryCursor) -> None:
        with self._lock:
            self._cursors.add(cursor)

    def _unregister_cursor(self, cursor: MemoryCursor) -> None:
        with self._lock:
            self._cursors.discard(cursor)

    @property
    def open_cursor_count(self) -> int:
        """Number of cursors created and not yet closed."""
        with self._lock:
            return len(self._cursors)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "document_count": len(self._documents),
                "indexes": list(self._indexes),
                "open_cursors": len(self._cursors),
                "reads": self._reads,
                "writes": self._writes,
            }

    def __len__(self) -> int:
        return len(self._documents)

    def __repr__(self) -> str:
        return f"MemoryStoreCollection(name={self.name!r}, size={len(self)})"


class MemoryDocumentStore(DocumentStore):
    """
    In-memory document store.

    Fast but volatile unless snapshots are saved. Use for:
    - Development and testing
    - Embedded use with small datasets

    Example:
        >>> store = MemoryDocumentStore()
        >>> people = store.get_collection("people")
        >>> people.insert({"_id": 1, "name": "Ada"})
        >>> store.save("people.snapshot")
        >>> store = MemoryDocumentStore.load("people.snapshot")
    """

    def __init__(self, id_field: str = "_id"):
        self.id_field = id_field
        self._collections: Dict[str, MemoryStoreCollection] = {}
        self._lock = threading.RLock()

    def get_collection(self, name: str) -> MemoryStoreCollection:
        with self._lock:
            if name not in self._collections:
                self._collections[name] = MemoryStoreCollection(name, id_field=self.id_field)
            return self._collections[name]

    def list_collection_names(self) -> List[str]:
        with self._lock:
            return list(self._collections.keys())

    def drop_collection(self, name: str) -> None:
        with self._lock:
            collection = self._collections.pop(name, None)
            if collection is not None:
                collection.drop()

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def save(self, path: Union[str, Path]) -> None:
        """Write every collection and its indexes to ``path``."""
        path = Path(path)
        with self._lock:
            collections = {}
            for name, collection in self._collections.items():
                with collection._lock:
                    collections[name] = {
                        "documents": list(collection._documents.values()),
                        "indexes": list(collection._indexes),
                    }
            data = serialize_snapshot(collections)

        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_bytes(data)
        tmp_path.replace(path)

        logger.info(f"Saved {len(collections)} collections to {path}")

    @classmethod
    def load(cls, path: Union[str, Path], id_field: str = "_id") -> "MemoryDocumentStore":
        """Create a store from a snapshot written by :meth:`save`."""
        path = Path(path)
        collections = deserialize_snapshot(path.read_bytes())

        store = cls(id_field=id_field)
        for name, data in collections.items():
            collection = store.get_collection(name)
            for document in data.get("documents", []):
                collection.insert(document)
            for index_name in data.get("indexes", []):
                field_name, _, direction = index_name.rpartition("_")
                collection.ensure_index(field_name, int(direction))

        logger.info(f"Loaded {len(collections)} collections from {path}")
        return store

    def __repr__(self) -> str:
        return f"MemoryDocumentStore(collections={self.list_collection_names()})"
