"""
Query compilation for docquery.

Turns a :class:`QueryDescriptor` into an :class:`ExecutableQuery`: the
native query document plus projection, sort keys, skip and limit, ready to
be handed to a store cursor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .compiler import FilterCompiler, NativeQuery
from .descriptor import QueryDescriptor
from ..utils.logging import format_query, get_logger
from config.settings import SchemaConfig


logger = get_logger(__name__)


@dataclass
class ExecutableQuery:
    """
    A compiled query.

    Attributes:
        native_query: Store query document
        projection: Fields to return, or None for whole documents
        sort: ``(field, direction)`` pairs, primary key first
        skip: Documents to skip (0 = none)
        limit: Maximum documents (0 = unlimited)
    """

    native_query: NativeQuery = field(default_factory=dict)
    projection: Optional[Dict[str, Any]] = None
    sort: List[Tuple[str, int]] = field(default_factory=list)
    skip: int = 0
    limit: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "native_query": self.native_query,
            "projection": self.projection,
            "sort": [list(s) for s in self.sort],
            "skip": self.skip,
            "limit": self.limit,
        }

    def explain(self) -> str:
        """Generate explain output."""
        lines = [
            "Executable Query",
            "=" * 40,
            f"Query: {format_query(self.native_query)}",
            f"Projection: {self.projection if self.projection else 'all fields'}",
            f"Sort: {self.sort if self.sort else 'natural order'}",
            f"Skip: {self.skip}",
            f"Limit: {self.limit if self.limit else 'unlimited'}",
        ]
        return "\n".join(lines)


class QueryCompiler:
    """
    Compiles query descriptors.

    Example:
        >>> compiler = QueryCompiler(FilterCompiler(codec))
        >>> query = compiler.compile(
        ...     QueryDescriptor().filter(age.gte(18)).sort(age.descending()).limit(10)
        ... )
        >>> query.native_query, query.sort, query.limit
        ({'age': {'$gte': 18}}, [('age', -1)], 10)
    """

    def __init__(
        self,
        filter_compiler: FilterCompiler,
        schema: Optional[SchemaConfig] = None,
        log_queries: bool = True,
    ):
        self.filter_compiler = filter_compiler
        self.schema = schema or SchemaConfig()
        self.log_queries = log_queries

    def compile(self, descriptor: QueryDescriptor) -> ExecutableQuery:
        """
        Compile a descriptor.

        Filters are combined with implicit AND in the order they were
        specified; the first sort spec is the primary sort key.
        """
        native_query = self.filter_compiler.compile_all(descriptor.filters)

        projection = None
        if descriptor.projected_fields:
            projection = {f.name: True for f in descriptor.projected_fields}
            # Needed to pick the class when decoding a partial document
            projection[self.schema.class_field] = True

        sort = [
            (spec.field.name, int(spec.direction))
            for spec in descriptor.sort_specs
        ]

        query = ExecutableQuery(
            native_query=native_query,
            projection=projection,
            sort=sort,
            skip=descriptor.skip_count,
            limit=descriptor.limit_count,
        )

        if self.log_queries:
            logger.debug(
                f"Executing Query (skip: {query.skip}, limit: {query.limit}): "
                f"{format_query(query.native_query)}"
            )
            if sort:
                logger.debug(f"Sorting: {sort}")

        return query
