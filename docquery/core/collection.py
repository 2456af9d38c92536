"""
Collection class for persisting and querying domain objects.

A collection binds a store collection to a codec and a session id cache,
and layers persistence, indexing, querying and schema migration on top of
the store primitives.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, List, Optional, Union

from .exceptions import NotFoundError, ValidationError
from .id_cache import SessionIdCache
from .identifiable import Identifiable
from ..codec.base import ObjectCodec
from ..query.compiler import FilterCompiler
from ..query.descriptor import QueryDescriptor
from ..query.executor import CursorExecutor
from ..query.filters import Field
from ..query.planner import QueryCompiler
from ..storage.base import StoreCollection
from ..utils.logging import get_logger
from ..utils.validation import validate_collection_name, validate_field_name
from config.settings import Settings


logger = get_logger(__name__)


class CollectionManager:
    """
    A named collection of Identifiable objects.

    Example:
        >>> people = session.collection("people")
        >>> people.insert(Person("Ada", 36))
        >>>
        >>> # Query
        >>> adults = people.query().filter(age.gte(18)).sort(name.ascending())
        >>> for person in adults:
        ...     print(person.name)
        >>>
        >>> # Schema evolution
        >>> people.rename_field("surname", "last_name")
        >>> people.replace_revision_class(1, "PersonV1")
    """

    def __init__(
        self,
        name: str,
        store_collection: StoreCollection,
        codec: ObjectCodec,
        id_cache: Optional[SessionIdCache] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize a collection.

        Args:
            name: Collection name
            store_collection: Backend collection holding the documents
            codec: Converts objects to and from documents
            id_cache: Ids observed through this collection binding
            settings: Schema and query settings
        """
        self.name = validate_collection_name(name)
        self.store_collection = store_collection
        self.codec = codec
        self.ids = id_cache if id_cache is not None else SessionIdCache()
        self.settings = settings or Settings()

        schema = self.settings.schema
        self.id_field = Field(schema.id_field)
        self.class_field = Field(schema.class_field, str)
        self.revision_field = Field(schema.revision_field, int)

        self.compiler = QueryCompiler(
            FilterCompiler(
                codec,
                context=self,
                max_depth=self.settings.query.max_filter_depth,
            ),
            schema=schema,
            log_queries=self.settings.query.log_queries,
        )
        self.executor = CursorExecutor(
            store_collection,
            codec,
            self.ids,
            context=self,
            schema=schema,
        )

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def insert(self, obj: Identifiable) -> None:
        """
        Insert a new object.

        Raises:
            DuplicateIdError: If an object with the same id is stored
        """
        document = self.codec.to_document(obj, self)
        self.store_collection.insert(document)
        self.ids.add(obj.id)
        logger.debug(f"Inserted {obj.id} into '{self.name}'")

    def replace(self, obj: Identifiable) -> None:
        """
        Replace the stored object with the same id.

        Raises:
            NotFoundError: If no object with that id is stored
        """
        document = self.codec.to_document(obj, self)
        previous = self.store_collection.find_and_replace(self._id_query(obj.id), document)
        if previous is None:
            raise NotFoundError(f"No document with id {obj.id} in '{self.name}'")
        logger.debug(f"Replaced {obj.id} in '{self.name}'")

    def persist(self, obj: Identifiable) -> None:
        """
        Insert or replace, depending on whether the id has been seen.

        An id counts as seen once this collection binding inserted or read
        the object; anything else is treated as new.
        """
        if obj.id in self.ids:
            self.replace(obj)
        else:
            self.insert(obj)

    def delete(self, obj: Union[Identifiable, Any]) -> None:
        """
        Delete an object (or the object with the given id).

        Raises:
            NotFoundError: If no object with that id is stored
        """
        id = obj.id if isinstance(obj, Identifiable) else obj
        removed = self.store_collection.find_and_remove(self._id_query(id))
        if removed is None:
            raise NotFoundError(f"No document with id {id} in '{self.name}'")
        logger.debug(f"Deleted {id} from '{self.name}'")

    def get(self, id: Any) -> Optional[Identifiable]:
        """Get an object by id, or None."""
        return self.query().filter(self.id_field.eq(id)).first()

    def _id_query(self, id: Any) -> dict:
        return {self.id_field.name: self.codec.to_value(id, self)}

    # =========================================================================
    # QUERYING
    # =========================================================================

    def query(self) -> QueryDescriptor:
        """Start a query bound to this collection."""
        return QueryDescriptor(collection=self)

    def execute_query(self, descriptor: QueryDescriptor) -> Iterator[Any]:
        return self.executor.iterate(self.compiler.compile(descriptor))

    def execute_query_ids(self, descriptor: QueryDescriptor) -> Iterator[Any]:
        return self.executor.iterate_ids(self.compiler.compile(descriptor))

    def execute_query_size(self, descriptor: QueryDescriptor) -> int:
        return self.executor.count(self.compiler.compile(descriptor))

    @property
    def size(self) -> int:
        """Number of stored objects."""
        return self.execute_query_size(QueryDescriptor())

    def __len__(self) -> int:
        return self.size

    def __contains__(self, id: Any) -> bool:
        return self.execute_query_size(QueryDescriptor().filter(self.id_field.eq(id))) > 0

    def __iter__(self) -> Iterator[Any]:
        return self.execute_query(QueryDescriptor())

    # =========================================================================
    # INDEXES
    # =========================================================================

    def create_indexes(self, fields: Iterable[Field]) -> List[str]:
        """
        Ensure an ascending index exists for each field, in order.

        Existing indexes are left alone.

        Returns:
            Index names
        """
        names = [self.store_collection.ensure_index(f.name, 1) for f in fields]
        logger.info(f"Ensured indexes {names} on '{self.name}'")
        return names

    # =========================================================================
    # SCHEMA EVOLUTION
    # =========================================================================

    def remove_field(self, field: Union[Field, str]) -> int:
        """
        Unset ``field`` on every document that has it.

        Each document is updated atomically; the operation as a whole is not
        transactional but is safe to re-run.

        Returns:
            Number of documents modified
        """
        name = self._field_name(field)
        result = self.store_collection.update_many(
            {name: {"$exists": True}},
            {"$unset": {name: 1}},
            upsert=False,
            multi=True,
        )
        logger.info(
            f"Removed field '{name}' from {result.modified_count} documents in '{self.name}'"
        )
        return result.modified_count

    def rename_field(self, current_name: Union[Field, str], new_name: Union[Field, str]) -> int:
        """
        Rename a field on every document that has it.

        Returns:
            Number of documents modified
        """
        current = self._field_name(current_name)
        new = self._field_name(new_name)
        if current == new:
            raise ValidationError(f"Cannot rename field '{current}' to itself")

        result = self.store_collection.update_many(
            {current: {"$exists": True}},
            {"$rename": {current: new}},
            upsert=False,
            multi=True,
        )
        logger.info(
            f"Renamed field '{current}' to '{new}' on {result.modified_count} "
            f"documents in '{self.name}'"
        )
        return result.modified_count

    def replace_revision_class(self, revision: int, new_class: str) -> int:
        """
        Point every document of ``revision`` at the class ``new_class``.

        This is the migration primitive: after a class changes shape, its old
        documents are reassigned to a legacy class that can still read them.
        Documents already migrated are not matched, so re-running reports 0.

        Returns:
            Number of documents modified
        """
        if not isinstance(new_class, str) or not new_class:
            raise ValidationError(f"Class name must be a non-empty string, got {new_class!r}")

        query = self.compiler.filter_compiler.compile_all([
            self.revision_field.eq(revision),
            self.class_field.ne(new_class),
        ])
        result = self.store_collection.update_many(
            query,
            {"$set": {self.class_field.name: new_class}},
            upsert=False,
            multi=True,
        )
        logger.info(
            f"Moved {result.modified_count} documents of revision {revision} "
            f"to class '{new_class}' in '{self.name}'"
        )
        return result.modified_count

    @staticmethod
    def _field_name(field: Union[Field, str]) -> str:
        if isinstance(field, Field):
            return field.name
        return validate_field_name(field)

    # =========================================================================
    # ADMIN
    # =========================================================================

    def drop(self) -> None:
        """Remove every document and index. Irreversible."""
        self.store_collection.drop()
        logger.info(f"Dropped collection '{self.name}'")

    def __repr__(self) -> str:
        return f"CollectionManager(name={self.name!r})"
