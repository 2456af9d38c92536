"""
Evaluation of native query documents against in-memory documents.

Follows the usual document-store conventions:

- Dotted paths reach into embedded documents (``addr.city``) and across
  arrays of embedded documents.
- A condition on an array field matches if the array itself or any of its
  elements satisfies it.
- ``{"$eq": None}`` matches both null and missing fields; ``$ne`` is the
  exact negation of ``$eq``.
- Ordered comparisons only match values of the same type class, so
  ``{"$gt": 5}`` never matches a string.
- Sorting uses a fixed order between type classes.
"""

from __future__ import annotations

import copy
import re
import uuid
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.exceptions import MalformedQueryError


Document = Dict[str, Any]

_COMPARISONS = {
    "$lt": lambda a, b: a < b,
    "$gt": lambda a, b: a > b,
    "$lte": lambda a, b: a <= b,
    "$gte": lambda a, b: a >= b,
}

UPDATE_OPERATORS = ("$set", "$unset", "$rename")


# =============================================================================
# PATHS
# =============================================================================

def _lookup(value: Any, parts: Sequence[str]) -> List[Any]:
    """All values reachable from ``value`` along ``parts``."""
    if not parts:
        return [value]

    head, rest = parts[0], parts[1:]

    if isinstance(value, dict):
        if head not in value:
            return []
        return _lookup(value[head], rest)

    if isinstance(value, list):
        if head.isdigit():
            index = int(head)
            return _lookup(value[index], rest) if index < len(value) else []
        found = []
        for item in value:
            if isinstance(item, dict):
                found.extend(_lookup(item, parts))
        return found

    return []


def lookup(document: Document, path: str) -> List[Any]:
    """Values stored at a dotted ``path``; empty if the path is missing."""
    return _lookup(document, path.split("."))


def _candidates(values: Iterable[Any]) -> Iterable[Any]:
    for value in values:
        yield value
        if isinstance(value, list):
            yield from value


def _get_path(document: Document, parts: Sequence[str]) -> Tuple[bool, Any]:
    current: Any = document
    for part in parts:
        if not isinstance(current, dict) or part not in current:
            return False, None
        current = current[part]
    return True, current


def _set_path(document: Document, parts: Sequence[str], value: Any) -> None:
    current = document
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            if child is not None:
                raise MalformedQueryError(
                    f"Cannot create field '{part}' in non-document value {child!r}"
                )
            child = current[part] = {}
        current = child
    current[parts[-1]] = value


def _pop_path(document: Document, parts: Sequence[str]) -> Tuple[bool, Any]:
    found, parent = _get_path(document, parts[:-1])
    if not found or not isinstance(parent, dict) or parts[-1] not in parent:
        return False, None
    return True, parent.pop(parts[-1])


# =============================================================================
# MATCHING
# =============================================================================

def values_equal(a: Any, b: Any) -> bool:
    """Equality without Python's bool/int conflation."""
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def _comparable(a: Any, b: Any) -> bool:
    return type_rank(a) == type_rank(b)


def _compare(values: List[Any], op: str, operand: Any) -> bool:
    fn = _COMPARISONS[op]
    for candidate in _candidates(values):
        if candidate is None or not _comparable(candidate, operand):
            continue
        try:
            if fn(candidate, operand):
                return True
        except TypeError:
            continue
    return False


def _equals_any(values: List[Any], operand: Any) -> bool:
    if operand is None:
        return not values or any(v is None for v in _candidates(values))
    return any(values_equal(v, operand) for v in _candidates(values))


def _regex_matches(values: List[Any], pattern: Any, options: str = "") -> bool:
    if isinstance(pattern, str):
        flags = 0
        for option in options:
            flags |= {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL,
                      "x": re.VERBOSE}.get(option, 0)
        pattern = re.compile(pattern, flags)
    elif not isinstance(pattern, re.Pattern):
        raise MalformedQueryError(f"$regex needs a pattern, got {pattern!r}")
    return any(
        isinstance(v, str) and pattern.search(v) is not None
        for v in _candidates(values)
    )


def _is_operator_dict(condition: Any) -> bool:
    return (
        isinstance(condition, dict)
        and bool(condition)
        and all(isinstance(k, str) and k.startswith("$") for k in condition)
    )


def _match_field(document: Document, path: str, condition: Any) -> bool:
    values = lookup(document, path)

    if not _is_operator_dict(condition):
        return _equals_any(values, condition)

    for op, operand in condition.items():
        if op == "$eq":
            ok = _equals_any(values, operand)
        elif op == "$ne":
            ok = not _equals_any(values, operand)
        elif op == "$exists":
            ok = bool(values) == bool(operand)
        elif op in _COMPARISONS:
            ok = _compare(values, op, operand)
        elif op == "$in":
            if not isinstance(operand, (list, tuple)):
                raise MalformedQueryError(f"$in needs an array, got {operand!r}")
            ok = any(_equals_any(values, item) for item in operand)
        elif op == "$regex":
            ok = _regex_matches(values, operand, condition.get("$options", ""))
        elif op == "$options":
            if "$regex" not in condition:
                raise MalformedQueryError("$options without $regex")
            continue
        else:
            raise MalformedQueryError(f"Unknown query operator: {op}")

        if not ok:
            return False

    return True


def matches(document: Document, query: Optional[Document]) -> bool:
    """
    Check whether ``document`` satisfies the native ``query``.

    Raises:
        MalformedQueryError: On unknown operators or malformed groups
    """
    if not query:
        return True

    for key, condition in query.items():
        if key in ("$and", "$or"):
            if not isinstance(condition, list) or not condition:
                raise MalformedQueryError(f"{key} needs a non-empty array")
            results = (matches(document, clause) for clause in condition)
            ok = all(results) if key == "$and" else any(results)
        elif key.startswith("$"):
            raise MalformedQueryError(f"Unknown top-level operator: {key}")
        else:
            ok = _match_field(document, key, condition)

        if not ok:
            return False

    return True


# =============================================================================
# UPDATES
# =============================================================================

def apply_update(document: Document, update: Document) -> bool:
    """
    Apply an update document in place.

    Returns:
        True if the document changed

    Raises:
        MalformedQueryError: On unknown or missing update operators
    """
    if not update:
        raise MalformedQueryError("Update document is empty")

    for op in update:
        if op not in UPDATE_OPERATORS:
            raise MalformedQueryError(f"Unknown update operator: {op}")

    changed = False

    for path, value in update.get("$set", {}).items():
        parts = path.split(".")
        found, current = _get_path(document, parts)
        if found and values_equal(current, value) and type(current) is type(value):
            continue
        _set_path(document, parts, copy.deepcopy(value))
        changed = True

    for path in update.get("$unset", {}):
        found, _ = _pop_path(document, path.split("."))
        changed = changed or found

    for old, new in update.get("$rename", {}).items():
        if not isinstance(new, str) or old == new:
            raise MalformedQueryError(f"Invalid $rename target for '{old}': {new!r}")
        found, value = _pop_path(document, old.split("."))
        if found:
            _set_path(document, new.split("."), value)
            changed = True

    return changed


# =============================================================================
# SORTING AND PROJECTION
# =============================================================================

def type_rank(value: Any) -> int:
    """Position of a value's type class in the sort order."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return 7
    if isinstance(value, (int, float)):
        return 1
    if isinstance(value, str):
        return 2
    if isinstance(value, dict):
        return 3
    if isinstance(value, list):
        return 4
    if isinstance(value, uuid.UUID):
        return 5
    if isinstance(value, bytes):
        return 6
    if isinstance(value, (datetime, date)):
        return 8
    return 9


def sort_key(value: Any) -> Tuple[int, Any]:
    rank = type_rank(value)
    if rank == 0:
        return (0, 0)
    if rank == 3:
        return (3, repr(sorted(value.items(), key=lambda kv: kv[0])))
    if rank == 4:
        return (4, tuple(sort_key(v) for v in value))
    if rank == 5:
        return (5, value.int)
    if rank == 8 and not isinstance(value, datetime):
        # dates sort as midnight of that day
        return (8, datetime.combine(value, time.min))
    if rank == 9:
        return (9, repr(value))
    return (rank, value)


def sort_documents(documents: List[Document], keys: Sequence[Tuple[str, int]]) -> None:
    """
    Sort ``documents`` in place by ``keys``.

    The first key is the primary one. Python's sort is stable, so sorting by
    each key from last to first yields the multi-key ordering.
    """
    for path, direction in reversed(list(keys)):
        if direction not in (1, -1):
            raise MalformedQueryError(f"Invalid sort direction for '{path}': {direction!r}")

        def key(document: Document, path=path) -> Tuple[int, Any]:
            values = lookup(document, path)
            return sort_key(values[0] if values else None)

        documents.sort(key=key, reverse=direction == -1)


def project(
    document: Document,
    projection: Optional[Dict[str, Any]],
    id_field: str = "_id",
) -> Document:
    """
    Apply an inclusion or exclusion projection.

    The id field is kept by inclusion projections unless explicitly excluded.
    """
    if not projection:
        return copy.deepcopy(document)

    flags = {k: bool(v) for k, v in projection.items()}
    included = [k for k, v in flags.items() if v and k != id_field]
    excluded = [k for k, v in flags.items() if not v and k != id_field]

    if included and excluded:
        raise MalformedQueryError(f"Cannot mix inclusion and exclusion: {projection!r}")

    if included or (not excluded and flags.get(id_field, False)):
        result: Document = {}
        if flags.get(id_field, True) and id_field in document:
            result[id_field] = copy.deepcopy(document[id_field])
        for path, include in flags.items():
            if not include or path == id_field:
                continue
            parts = path.split(".")
            found, value = _get_path(document, parts)
            if found:
                _set_path(result, parts, copy.deepcopy(value))
        return result

    result = copy.deepcopy(document)
    for path, include in flags.items():
        if not include:
            _pop_path(result, path.split("."))
    return result
