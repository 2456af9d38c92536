"""
Query execution for docquery.

Runs compiled queries against a store collection and owns the cursors it
opens. Every cursor is closed on every exit path: exhaustion, errors raised
while reading or decoding, and callers abandoning an iteration early.

Features:
- Lazy result iteration with object decoding
- Id-only iteration
- Counting
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

from .planner import ExecutableQuery
from ..codec.base import ObjectCodec
from ..core.id_cache import SessionIdCache
from ..core.identifiable import Identifiable
from ..storage.base import Cursor, StoreCollection
from config.settings import SchemaConfig


class CursorExecutor:
    """
    Executes compiled queries against a store collection.

    Store errors propagate unchanged; there is no retry.

    Example:
        >>> executor = CursorExecutor(store_collection, codec, id_cache)
        >>> for person in executor.iterate(query):
        ...     print(person.name)
        >>> executor.count(query)
        42
    """

    def __init__(
        self,
        collection: StoreCollection,
        codec: ObjectCodec,
        id_cache: SessionIdCache,
        context: Any = None,
        schema: Optional[SchemaConfig] = None,
    ):
        self.collection = collection
        self.codec = codec
        self.id_cache = id_cache
        self.context = context
        self.schema = schema or SchemaConfig()

    def open(self, query: ExecutableQuery, projection: Any = None) -> Cursor:
        """
        Open a configured cursor. The caller owns it and must close it.

        Args:
            query: Compiled query
            projection: Overrides ``query.projection`` when given
        """
        if projection is None:
            projection = query.projection

        cursor = self.collection.find(query.native_query, projection)
        try:
            if query.skip > 0:
                cursor = cursor.skip(query.skip)
            if query.limit > 0:
                cursor = cursor.limit(query.limit)
            if query.sort:
                cursor = cursor.sort(query.sort)
        except BaseException:
            cursor.close()
            raise
        return cursor

    @contextmanager
    def cursor(self, query: ExecutableQuery, projection: Any = None) -> Iterator[Cursor]:
        """Open a cursor for the duration of a ``with`` block."""
        cursor = self.open(query, projection)
        try:
            yield cursor
        finally:
            cursor.close()

    def iterate(self, query: ExecutableQuery) -> Iterator[Any]:
        """
        Lazily yield decoded objects.

        Ids of Identifiable results are recorded in the session id cache.
        The sequence is forward-only; call again to re-run the query.
        """
        with self.cursor(query) as cursor:
            for document in cursor:
                obj = self.codec.from_document(
                    document, self.context, partial=query.projection is not None
                )
                if isinstance(obj, Identifiable):
                    self.id_cache.add(obj.id)
                yield obj

    def iterate_ids(self, query: ExecutableQuery) -> Iterator[Any]:
        """
        Lazily yield identifiers only, skipping object decoding.

        Same filters, sort, skip and limit as :meth:`iterate`, so the ids
        come out in the same order.
        """
        id_field = self.schema.id_field
        with self.cursor(query, projection={id_field: True}) as cursor:
            for document in cursor:
                yield document.get(id_field)

    def count(self, query: ExecutableQuery) -> int:
        """Count matching documents, honouring skip and limit."""
        cursor = self.open(query)
        try:
            return cursor.size()
        finally:
            cursor.close()
