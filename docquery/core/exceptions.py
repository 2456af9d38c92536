"""
Custom exceptions for docquery.
"""


class DocQueryError(Exception):
    """Base exception for docquery."""
    pass


class QueryError(DocQueryError):
    """Error related to building or compiling a query."""
    pass


class UnsupportedOperatorError(QueryError):
    """Operator has no translation for the kind of filter it was used on."""

    def __init__(self, operator, filter_kind: str):
        self.operator = operator
        self.filter_kind = filter_kind
        super().__init__(
            f"Unsupported operator: {getattr(operator, 'value', operator)} "
            f"for {filter_kind}"
        )


class UnknownFilterVariantError(QueryError):
    """Filter is neither a field filter nor a sub-filter."""

    def __init__(self, filter):
        self.filter = filter
        super().__init__(f"Unknown filter type: {type(filter).__name__}")


class FilterDepthError(QueryError):
    """Filter tree nests deeper than the compiler allows."""
    pass


class ValidationError(DocQueryError):
    """Input validation error."""
    pass


class CollectionError(DocQueryError):
    """Error related to collection operations."""
    pass


class NotFoundError(CollectionError):
    """Document with the given identifier does not exist."""
    pass


class StoreError(DocQueryError):
    """Error raised by the underlying document store."""
    pass


class DuplicateIdError(StoreError):
    """Document with the given identifier already exists."""
    pass


class CursorError(StoreError):
    """Cursor used after it was started or closed."""
    pass


class MalformedQueryError(StoreError):
    """Native query or update document the store cannot interpret."""
    pass


class SerializationError(DocQueryError):
    """Error during document encoding/decoding."""
    pass
