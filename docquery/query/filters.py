"""
Filter algebra for docquery queries.

Filters are plain data: a field comparison (``FieldFilter``) or a boolean
group of child filters (``SubFilter``). Turning them into a native store
query is the job of ``FilterCompiler``.

Supports:
- Comparison operators (equal, notEqual, lessThan, greaterThan, ...)
- Existence and regex matching
- Membership tests (in)
- Queries into embedded documents (subfilter)
- Boolean composition (and, or)

Example:
    >>> name = Field("name", str)
    >>> age = Field("age", int)
    >>>
    >>> # Simple filter
    >>> adults = age.gte(18)
    >>>
    >>> # Composition
    >>> filter = adults & (name.eq("Ada") | name.regex("^Gr"))
    >>>
    >>> # Querying an embedded document: matches addr.city == "Paris"
    >>> in_paris = Field("addr").sub(Field("city", str).eq("Paris"))
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Sequence, Tuple
import re

from ..core.exceptions import ValidationError
from ..utils.regex import compile_with_letters, flag_letters
from ..utils.validation import validate_field_name


class Operator(str, Enum):
    """Filter operators. Closed set; the compiler rejects anything else."""

    # Comparison
    EQUAL = "equal"
    NOT_EQUAL = "notEqual"
    LESS_THAN = "lessThan"
    GREATER_THAN = "greaterThan"
    LESS_OR_EQUAL = "lessOrEqual"
    GREATER_OR_EQUAL = "greaterOrEqual"

    # Matching
    EXISTS = "exists"
    REGEX = "regex"
    IN = "in"

    # Embedded documents
    SUBFILTER = "subfilter"

    # Boolean groups
    AND = "and"
    OR = "or"


ORDERED_OPERATORS = frozenset({
    Operator.LESS_THAN,
    Operator.GREATER_THAN,
    Operator.LESS_OR_EQUAL,
    Operator.GREATER_OR_EQUAL,
})


class FilterKind(str, Enum):
    """Variant tag carried by every filter."""
    FIELD = "field"
    SUB = "sub"


class SortDirection(int, Enum):
    """Sort directions, valued as the store expects them."""
    ASCENDING = 1
    DESCENDING = -1


class Filter(ABC):
    """Abstract base class for all filters."""

    kind: ClassVar[FilterKind]

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert filter to dictionary representation."""
        pass

    def __and__(self, other: "Filter") -> "SubFilter":
        """Combine filters with AND."""
        return SubFilter(Operator.AND, (self, other))

    def __or__(self, other: "Filter") -> "SubFilter":
        """Combine filters with OR."""
        return SubFilter(Operator.OR, (self, other))


@dataclass(frozen=True)
class Field:
    """
    A named document property with a declared value type.

    Fields build filters and sort specs:

        >>> age = Field("age", int)
        >>> age.lt(30)
        FieldFilter(age lessThan 30)
        >>> age.descending()
        SortSpec(field=Field(name='age', type=<class 'int'>), direction=<SortDirection.DESCENDING: -1>)
    """

    name: str
    type: Any = object

    def __post_init__(self):
        validate_field_name(self.name)

    def accepts(self, value: Any) -> bool:
        """Check whether ``value`` is compatible with the declared type."""
        declared = self.type
        if declared is object or not isinstance(declared, (type, tuple)):
            return True
        # bool is a subclass of int
        if isinstance(value, bool) and declared is int:
            return False
        if isinstance(value, declared):
            return True
        # ints are acceptable wherever floats are
        if declared is float and isinstance(value, int) and not isinstance(value, bool):
            return True
        return False

    # --- comparison ---

    def eq(self, value: Any) -> "FieldFilter":
        """Field equals value."""
        return FieldFilter(self, Operator.EQUAL, value)

    def ne(self, value: Any) -> "FieldFilter":
        """Field does not equal value."""
        return FieldFilter(self, Operator.NOT_EQUAL, value)

    def lt(self, value: Any) -> "FieldFilter":
        return FieldFilter(self, Operator.LESS_THAN, value)

    def gt(self, value: Any) -> "FieldFilter":
        return FieldFilter(self, Operator.GREATER_THAN, value)

    def lte(self, value: Any) -> "FieldFilter":
        return FieldFilter(self, Operator.LESS_OR_EQUAL, value)

    def gte(self, value: Any) -> "FieldFilter":
        return FieldFilter(self, Operator.GREATER_OR_EQUAL, value)

    # --- matching ---

    def exists(self, exists: bool = True) -> "FieldFilter":
        """Field exists (or not)."""
        return FieldFilter(self, Operator.EXISTS, exists)

    def regex(self, pattern) -> "FieldFilter":
        """Field matches a regular expression (string or compiled)."""
        return FieldFilter(self, Operator.REGEX, pattern)

    def in_(self, values: Sequence[Any]) -> "FieldFilter":
        """Field value is one of ``values``."""
        return FieldFilter(self, Operator.IN, values)

    def sub(self, filter: Filter) -> "FieldFilter":
        """Apply ``filter`` inside the embedded document stored in this field."""
        return FieldFilter(self, Operator.SUBFILTER, filter)

    # --- sorting ---

    def ascending(self) -> "SortSpec":
        return SortSpec(self, SortDirection.ASCENDING)

    def descending(self) -> "SortSpec":
        return SortSpec(self, SortDirection.DESCENDING)


@dataclass(frozen=True)
class SortSpec:
    """A sort key: field plus direction."""

    field: Field
    direction: SortDirection = SortDirection.ASCENDING


@dataclass(frozen=True, repr=False)
class FieldFilter(Filter):
    """
    Comparison of a single field against a value.

    The value must be compatible with the field's declared type, except for
    ``subfilter`` (a nested Filter), ``in`` (a sequence of compatible values),
    ``exists`` (a bool) and ``regex`` (a pattern). ``None`` is accepted for
    ``equal`` and ``notEqual``.
    """

    kind: ClassVar[FilterKind] = FilterKind.FIELD

    field: Field
    operator: Operator
    value: Any

    def __post_init__(self):
        op = self.operator

        if op == Operator.SUBFILTER:
            if not isinstance(self.value, Filter):
                raise ValidationError(
                    f"subfilter on '{self.field.name}' needs a Filter value, "
                    f"got {type(self.value).__name__}"
                )

        elif op == Operator.IN:
            if isinstance(self.value, (str, bytes, dict)) or not isinstance(
                self.value, (list, tuple, set, frozenset)
            ):
                raise ValidationError(
                    f"in on '{self.field.name}' needs a sequence of values, "
                    f"got {type(self.value).__name__}"
                )
            values = tuple(self.value)
            for v in values:
                if v is not None and not self.field.accepts(v):
                    raise ValidationError(self._type_message(v))
            object.__setattr__(self, "value", values)

        elif op == Operator.EXISTS:
            if not isinstance(self.value, bool):
                raise ValidationError(
                    f"exists on '{self.field.name}' needs a bool, "
                    f"got {type(self.value).__name__}"
                )

        elif op == Operator.REGEX:
            if not isinstance(self.value, (str, re.Pattern)):
                raise ValidationError(
                    f"regex on '{self.field.name}' needs a pattern, "
                    f"got {type(self.value).__name__}"
                )

        elif op in (Operator.EQUAL, Operator.NOT_EQUAL):
            if self.value is not None and not self.field.accepts(self.value):
                raise ValidationError(self._type_message(self.value))

        elif op in ORDERED_OPERATORS:
            if self.value is None or not self.field.accepts(self.value):
                raise ValidationError(self._type_message(self.value))

    def _type_message(self, value: Any) -> str:
        declared = getattr(self.field.type, "__name__", repr(self.field.type))
        return (
            f"Value {value!r} is not compatible with field "
            f"'{self.field.name}' of type {declared}"
        )

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if self.operator == Operator.SUBFILTER:
            value = value.to_dict()
        elif self.operator == Operator.IN:
            value = list(value)
        data = {
            "type": FilterKind.FIELD.value,
            "field": self.field.name,
            "operator": getattr(self.operator, "value", self.operator),
            "value": value,
        }
        if isinstance(value, re.Pattern):
            data["value"] = value.pattern
            data["flags"] = flag_letters(value)
        return data

    def __repr__(self) -> str:
        op = getattr(self.operator, "value", self.operator)
        return f"FieldFilter({self.field.name} {op} {self.value!r})"


@dataclass(frozen=True, repr=False)
class SubFilter(Filter):
    """Boolean group (``and`` / ``or``) over an ordered list of filters."""

    kind: ClassVar[FilterKind] = FilterKind.SUB

    operator: Operator
    filters: Tuple[Filter, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "filters", tuple(self.filters))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": FilterKind.SUB.value,
            "operator": getattr(self.operator, "value", self.operator),
            "filters": [f.to_dict() for f in self.filters],
        }

    def __repr__(self) -> str:
        op = getattr(self.operator, "value", self.operator)
        return f"SubFilter({op} {list(self.filters)})"


def and_(*filters: Filter) -> SubFilter:
    """All of ``filters`` must match."""
    return SubFilter(Operator.AND, filters)


def or_(*filters: Filter) -> SubFilter:
    """At least one of ``filters`` must match."""
    return SubFilter(Operator.OR, filters)


def filter_from_dict(data: Dict[str, Any]) -> Filter:
    """
    Create a filter from dictionary representation.

    Fields are rebuilt without a declared type, so values are not
    type-checked beyond what the operator itself requires.
    """
    filter_type = data.get("type", FilterKind.FIELD.value)

    try:
        operator = Operator(data["operator"])
    except (KeyError, ValueError) as e:
        raise ValidationError(f"Invalid filter operator in {data!r}") from e

    if filter_type == FilterKind.FIELD.value:
        value = data.get("value")
        if operator == Operator.SUBFILTER:
            value = filter_from_dict(value)
        elif "flags" in data:
            try:
                value = compile_with_letters(value, data["flags"])
            except (TypeError, ValueError, re.error) as e:
                raise ValidationError(f"Invalid regex in {data!r}: {e}") from e
        return FieldFilter(Field(data["field"]), operator, value)
    elif filter_type == FilterKind.SUB.value:
        return SubFilter(operator, [filter_from_dict(f) for f in data["filters"]])
    else:
        raise ValidationError(f"Unknown filter type: {filter_type}")
