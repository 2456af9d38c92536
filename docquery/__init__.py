"""
docquery - typed filter compiler and cursor pipeline for document stores.

Example:
    >>> from dataclasses import dataclass
    >>> from docquery import Session, Identifiable, Field
    >>> from docquery.storage import MemoryDocumentStore
    >>>
    >>> session = Session(MemoryDocumentStore())
    >>>
    >>> @session.codec.register
    ... @dataclass
    ... class Person(Identifiable):
    ...     name: str
    ...     age: int = 0
    >>>
    >>> people = session.collection("people")
    >>> people.insert(Person("Ada", 36))
    >>>
    >>> age = Field("age", int)
    >>> [p.name for p in people.query().filter(age.gte(18))]
    ['Ada']
"""

from .core import (
    # Main classes
    Session,
    CollectionManager,
    Identifiable,
    SessionIdCache,
    # Exceptions
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

from .query import (
    # Filter algebra
    Field,
    FieldFilter,
    SubFilter,
    Operator,
    SortDirection,
    SortSpec,
    and_,
    or_,
    # Pipeline
    QueryDescriptor,
    FilterCompiler,
    QueryCompiler,
    ExecutableQuery,
    CursorExecutor,
)

from .codec import ObjectCodec, DataclassCodec

__version__ = "0.1.0"
__author__ = "docquery Team"

__all__ = [
    # Main classes
    "Session",
    "CollectionManager",
    "Identifiable",
    "SessionIdCache",
    # Filter algebra
    "Field",
    "FieldFilter",
    "SubFilter",
    "Operator",
    "SortDirection",
    "SortSpec",
    "and_",
    "or_",
    # Pipeline
    "QueryDescriptor",
    "FilterCompiler",
    "QueryCompiler",
    "ExecutableQuery",
    "CursorExecutor",
    # Codec
    "ObjectCodec",
    "DataclassCodec",
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
