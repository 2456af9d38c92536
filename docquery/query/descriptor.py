"""
Query descriptors: what to fetch from a collection.

A descriptor collects filters, sort keys, projected fields and skip/limit.
It is immutable; every builder method returns a new descriptor, so a
descriptor handed to the compiler can never change underneath it.

Example:
    >>> query = (
    ...     people.query()
    ...     .filter(age.gte(18), name.regex("^A"))
    ...     .sort(age.ascending(), name.descending())
    ...     .fields(name, age)
    ...     .skip(10)
    ...     .limit(5)
    ... )
    >>> for person in query:
    ...     print(person.name)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Tuple

from .filters import Field, Filter, SortSpec
from ..core.exceptions import QueryError, ValidationError
from ..utils.validation import validate_non_negative

if TYPE_CHECKING:
    from ..core.collection import CollectionManager


@dataclass(frozen=True)
class QueryDescriptor:
    """
    Filters, sort keys, projection and pagination for one query.

    Filters and sort specs are stacked: the most recently added entry is
    stored first. The ``filters`` and ``sort_specs`` accessors undo that and
    return entries in the order they were specified.
    """

    _filters: Tuple[Filter, ...] = ()
    _sorts: Tuple[SortSpec, ...] = ()
    projected_fields: Tuple[Field, ...] = ()
    skip_count: int = 0
    limit_count: int = 0
    collection: Optional["CollectionManager"] = field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self):
        validate_non_negative(self.skip_count, "skip")
        validate_non_negative(self.limit_count, "limit")

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def filters(self) -> List[Filter]:
        """Filters in the order they were added."""
        return list(reversed(self._filters))

    @property
    def sort_specs(self) -> List[SortSpec]:
        """Sort specs in the order they were added; the first is the primary key."""
        return list(reversed(self._sorts))

    # =========================================================================
    # BUILDERS
    # =========================================================================

    def filter(self, *filters: Filter) -> "QueryDescriptor":
        """Add filters; all of them must match."""
        for f in filters:
            if not isinstance(f, Filter):
                raise ValidationError(f"Expected a Filter, got {type(f).__name__}")
        stacked = self._filters
        for f in filters:
            stacked = (f,) + stacked
        return replace(self, _filters=stacked)

    def sort(self, *specs: SortSpec) -> "QueryDescriptor":
        """Add sort keys; earlier keys take precedence over later ones."""
        stacked = self._sorts
        for spec in specs:
            if not isinstance(spec, SortSpec):
                raise ValidationError(f"Expected a SortSpec, got {type(spec).__name__}")
            stacked = (spec,) + stacked
        return replace(self, _sorts=stacked)

    def fields(self, *fields: Field) -> "QueryDescriptor":
        """Restrict the result to ``fields`` (plus the class discriminator)."""
        projected = list(self.projected_fields)
        for f in fields:
            if not isinstance(f, Field):
                raise ValidationError(f"Expected a Field, got {type(f).__name__}")
            if f.name not in (p.name for p in projected):
                projected.append(f)
        return replace(self, projected_fields=tuple(projected))

    def skip(self, n: int) -> "QueryDescriptor":
        """Skip the first ``n`` matches; 0 means no offset."""
        return replace(self, skip_count=n)

    def limit(self, n: int) -> "QueryDescriptor":
        """Return at most ``n`` matches; 0 means unlimited."""
        return replace(self, limit_count=n)

    def bind(self, collection: "CollectionManager") -> "QueryDescriptor":
        return replace(self, collection=collection)

    # =========================================================================
    # EXECUTION (bound descriptors)
    # =========================================================================

    def _bound(self) -> "CollectionManager":
        if self.collection is None:
            raise QueryError("Query is not bound to a collection")
        return self.collection

    def __iter__(self) -> Iterator[Any]:
        return self._bound().execute_query(self)

    def ids(self) -> Iterator[Any]:
        """Identifiers of the matching documents, in result order."""
        return self._bound().execute_query_ids(self)

    def count(self) -> int:
        """Number of matching documents, honouring skip and limit."""
        return self._bound().execute_query_size(self)

    def first(self) -> Optional[Any]:
        """First result, or None."""
        results = self._bound().execute_query(self.limit(1))
        try:
            return next(results, None)
        finally:
            results.close()

    def to_dict(self) -> dict:
        return {
            "filters": [f.to_dict() for f in self.filters],
            "sort": [
                {"field": s.field.name, "direction": s.direction.value}
                for s in self.sort_specs
            ],
            "fields": [f.name for f in self.projected_fields],
            "skip": self.skip_count,
            "limit": self.limit_count,
        }
