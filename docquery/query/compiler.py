"""
Translation of filter trees into native store queries.

The native representation is a MongoDB-style query document:

    >>> compiler = FilterCompiler(codec)
    >>> compiler.compile(Field("age", int).gte(18))
    {'age': {'$gte': 18}}
    >>> compiler.compile(Field("addr").sub(Field("city", str).eq("Paris")))
    {'addr.city': {'$eq': 'Paris'}}
    >>> compiler.compile(Field("a").eq(1) | Field("b").eq(2))
    {'$or': [{'a': {'$eq': 1}}, {'b': {'$eq': 2}}]}
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable

from .filters import FieldFilter, Filter, FilterKind, Operator, SubFilter
from ..codec.base import ObjectCodec
from ..core.exceptions import (
    FilterDepthError,
    UnknownFilterVariantError,
    UnsupportedOperatorError,
)


NativeQuery = Dict[str, Any]

FIELD_OPERATORS = {
    Operator.EQUAL: "$eq",
    Operator.NOT_EQUAL: "$ne",
    Operator.EXISTS: "$exists",
    Operator.LESS_THAN: "$lt",
    Operator.GREATER_THAN: "$gt",
    Operator.LESS_OR_EQUAL: "$lte",
    Operator.GREATER_OR_EQUAL: "$gte",
    Operator.REGEX: "$regex",
    Operator.IN: "$in",
}

GROUP_OPERATORS = {
    Operator.AND: "$and",
    Operator.OR: "$or",
}

DEFAULT_MAX_DEPTH = 32


class FilterCompiler:
    """
    Compiles a Filter tree into a native query fragment.

    Every call to :meth:`compile` returns a fresh fragment; nothing is
    shared between calls, so a compile that fails part way leaves previously
    compiled fragments untouched.

    Args:
        codec: Converts filter values to stored values
        context: Collection passed to the codec
        max_depth: Deepest filter nesting accepted
    """

    def __init__(
        self,
        codec: ObjectCodec,
        context: Any = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.codec = codec
        self.context = context
        self.max_depth = max_depth

    def compile(self, filter: Filter, field_prefix: str = "") -> NativeQuery:
        """
        Compile a single filter.

        Args:
            filter: FieldFilter or SubFilter
            field_prefix: Prepended to every field name (``"addr."``)

        Raises:
            UnsupportedOperatorError: Operator has no translation for the filter kind
            UnknownFilterVariantError: Filter is neither FieldFilter nor SubFilter
            FilterDepthError: Nesting exceeds ``max_depth``
        """
        return self._compile(filter, field_prefix, 1)

    def compile_all(self, filters: Iterable[Filter]) -> NativeQuery:
        """Compile filters in order and combine them with implicit AND."""
        query: NativeQuery = {}
        for f in filters:
            self.merge(query, self.compile(f))
        return query

    def _compile(self, filter: Filter, prefix: str, depth: int) -> NativeQuery:
        if depth > self.max_depth:
            raise FilterDepthError(
                f"Filter nesting exceeds maximum depth of {self.max_depth}"
            )

        kind = getattr(filter, "kind", None)
        if kind == FilterKind.FIELD:
            return self._compile_field(filter, prefix, depth)
        elif kind == FilterKind.SUB:
            return self._compile_group(filter, prefix, depth)
        else:
            raise UnknownFilterVariantError(filter)

    def _compile_field(self, ff: FieldFilter, prefix: str, depth: int) -> NativeQuery:
        name = prefix + ff.field.name
        op = ff.operator

        if op == Operator.SUBFILTER:
            return self._compile(ff.value, f"{name}.", depth + 1)

        native_op = FIELD_OPERATORS.get(op)
        if native_op is None:
            raise UnsupportedOperatorError(op, "FieldFilter")

        if op == Operator.IN:
            value = [self.codec.to_value(v, self.context) for v in ff.value]
        elif op == Operator.REGEX:
            value = ff.value
            if not isinstance(value, re.Pattern):
                value = re.compile(self.codec.to_value(value, self.context))
        else:
            value = self.codec.to_value(ff.value, self.context)

        return {name: {native_op: value}}

    def _compile_group(self, sf: SubFilter, prefix: str, depth: int) -> NativeQuery:
        native_op = GROUP_OPERATORS.get(sf.operator)
        if native_op is None:
            raise UnsupportedOperatorError(sf.operator, "SubFilter")

        # Each child gets its own fragment
        clauses = [self._compile(child, prefix, depth + 1) for child in sf.filters]
        return {native_op: clauses}

    @staticmethod
    def merge(target: NativeQuery, fragment: NativeQuery) -> NativeQuery:
        """
        Add ``fragment`` to ``target`` as an additional AND constraint.

        Conditions on the same field share one operator document. A clash
        (the same operator twice on a field, or a second ``$or`` group) is
        moved into ``$and`` rather than overwriting what is there.
        """
        for key, condition in fragment.items():
            if key == "$and":
                target.setdefault("$and", []).extend(condition)
            elif key == "$or":
                if "$or" in target:
                    target.setdefault("$and", []).append({"$or": condition})
                else:
                    target["$or"] = list(condition)
            elif key not in target:
                target[key] = dict(condition) if isinstance(condition, dict) else condition
            else:
                existing = target[key]
                if (
                    isinstance(existing, dict)
                    and isinstance(condition, dict)
                    and not set(existing) & set(condition)
                ):
                    existing.update(condition)
                else:
                    target.setdefault("$and", []).append({key: condition})
        return target
