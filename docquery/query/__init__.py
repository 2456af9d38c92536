"""
Query processing module for docquery.

This module provides:
- The filter algebra (fields, operators, field filters, boolean groups)
- Query descriptors (filters, sort, projection, skip, limit)
- Compilation to native store queries
- Cursor-based execution

Example:
    >>> from docquery.query import Field, QueryDescriptor
    >>>
    >>> age = Field("age", int)
    >>> city = Field("city", str)
    >>>
    >>> query = (
    ...     QueryDescriptor()
    ...     .filter(age.gte(18), Field("addr").sub(city.eq("Paris")))
    ...     .sort(age.ascending())
    ...     .limit(10)
    ... )
"""

from .filters import (
    Field,
    Filter,
    FilterKind,
    FieldFilter,
    SubFilter,
    Operator,
    SortDirection,
    SortSpec,
    and_,
    or_,
    filter_from_dict,
)

from .compiler import (
    FilterCompiler,
    NativeQuery,
)

from .descriptor import QueryDescriptor

from .planner import (
    QueryCompiler,
    ExecutableQuery,
)

from .executor import CursorExecutor

__all__ = [
    # Filters
    "Field",
    "Filter",
    "FilterKind",
    "FieldFilter",
    "SubFilter",
    "Operator",
    "SortDirection",
    "SortSpec",
    "and_",
    "or_",
    "filter_from_dict",
    # Compiler
    "FilterCompiler",
    "NativeQuery",
    # Descriptor
    "QueryDescriptor",
    # Planner
    "QueryCompiler",
    "ExecutableQuery",
    # Executor
    "CursorExecutor",
]
