"""
Abstract interfaces for document store backends.

The query pipeline only talks to these interfaces. A backend speaks the
native query language: MongoDB-style query documents such as
``{"age": {"$gte": 18}, "$or": [{...}, {...}]}``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)


Document = Dict[str, Any]
SortKeys = Sequence[Tuple[str, int]]


@dataclass
class UpdateResult:
    """Outcome of a multi-document update."""

    matched_count: int = 0
    modified_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched_count": self.matched_count,
            "modified_count": self.modified_count,
        }


class Cursor(ABC):
    """
    Handle over the documents matching a query.

    ``skip``, ``limit`` and ``sort`` configure the cursor and must be called
    before iteration starts. A cursor holds store resources until it is
    exhausted or ``close()`` is called; it can be used as a context manager.
    """

    @abstractmethod
    def skip(self, n: int) -> "Cursor":
        pass

    @abstractmethod
    def limit(self, n: int) -> "Cursor":
        pass

    @abstractmethod
    def sort(self, keys: SortKeys) -> "Cursor":
        pass

    @abstractmethod
    def size(self) -> int:
        """Number of documents the cursor yields, honouring skip and limit."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @property
    @abstractmethod
    def closed(self) -> bool:
        pass

    @abstractmethod
    def __next__(self) -> Document:
        pass

    def __iter__(self) -> Iterator[Document]:
        return self

    def __enter__(self) -> "Cursor":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class StoreCollection(ABC):
    """Per-collection primitives of a document store."""

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    # =========================================================================
    # WRITES
    # =========================================================================

    @abstractmethod
    def insert(self, document: Document) -> None:
        """
        Insert a document.

        Raises:
            DuplicateIdError: If a document with the same id exists
        """
        pass

    @abstractmethod
    def find_and_replace(self, query: Document, document: Document) -> Optional[Document]:
        """
        Atomically replace the first document matching ``query``.

        Returns:
            The previous document, or None if nothing matched
        """
        pass

    @abstractmethod
    def find_and_remove(self, query: Document) -> Optional[Document]:
        """
        Atomically remove the first document matching ``query``.

        Returns:
            The removed document, or None if nothing matched
        """
        pass

    @abstractmethod
    def update_many(
        self,
        query: Document,
        update: Document,
        upsert: bool = False,
        multi: bool = True,
    ) -> UpdateResult:
        """
        Apply an update document (``$set``, ``$unset``, ``$rename``).

        Each document is updated atomically; there is no transaction across
        documents.
        """
        pass

    # =========================================================================
    # READS
    # =========================================================================

    @abstractmethod
    def find(
        self,
        query: Optional[Document] = None,
        projection: Optional[Dict[str, Any]] = None,
    ) -> Cursor:
        pass

    @abstractmethod
    def count_documents(self, query: Optional[Document] = None) -> int:
        pass

    # =========================================================================
    # ADMIN
    # =========================================================================

    @abstractmethod
    def ensure_index(self, field_name: str, direction: int = 1) -> str:
        """Create an index if it does not exist. Returns the index name."""
        pass

    @abstractmethod
    def index_information(self) -> List[str]:
        pass

    @abstractmethod
    def drop(self) -> None:
        """Remove every document and index. Irreversible."""
        pass


class DocumentStore(ABC):
    """A database of named collections."""

    @abstractmethod
    def get_collection(self, name: str) -> StoreCollection:
        pass

    @abstractmethod
    def list_collection_names(self) -> List[str]:
        pass

    @abstractmethod
    def drop_collection(self, name: str) -> None:
        pass

    def close(self) -> None:
        """Release backend resources."""
        pass

    def __enter__(self) -> "DocumentStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()
