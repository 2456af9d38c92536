"""
Core components for docquery.
"""

from .exceptions import (
    DocQueryError,
    QueryError,
    UnsupportedOperatorError,
    UnknownFilterVariantError,
    FilterDepthError,
    ValidationError,
    CollectionError,
    NotFoundError,
    StoreError,
    DuplicateIdError,
    CursorError,
    MalformedQueryError,
    SerializationError,
)
from .identifiable import Identifiable
from .id_cache import SessionIdCache
from .collection import CollectionManager
from .session import Session

__all__ = [
    # Entities
    "Identifiable",
    "SessionIdCache",
    # Collection
    "CollectionManager",
    # Session
    "Session",
    # Exceptions
    "DocQueryError",
    "QueryError",
    "UnsupportedOperatorError",
    "UnknownFilterVariantError",
    "FilterDepthError",
    "ValidationError",
    "CollectionError",
    "NotFoundError",
    "StoreError",
    "DuplicateIdError",
    "CursorError",
    "MalformedQueryError",
    "SerializationError",
]
