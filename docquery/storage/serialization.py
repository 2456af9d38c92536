"""
Serialization utilities for docquery storage.

Documents are packed with msgpack. Values msgpack has no native type for
travel as extension types:

- UUID (code 1): the 16 raw bytes
- datetime / date (code 2, 3): ISO-8601 text
- compiled regex (code 4): flags + pattern
"""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from typing import Any, Dict, List

import msgpack

from ..core.exceptions import SerializationError


EXT_UUID = 1
EXT_DATETIME = 2
EXT_DATE = 3
EXT_REGEX = 4

SNAPSHOT_VERSION = 1


def _default(obj: Any) -> msgpack.ExtType:
    """Pack values msgpack does not handle natively."""
    if isinstance(obj, uuid.UUID):
        return msgpack.ExtType(EXT_UUID, obj.bytes)
    if isinstance(obj, datetime):
        return msgpack.ExtType(EXT_DATETIME, obj.isoformat().encode("utf-8"))
    if isinstance(obj, date):
        return msgpack.ExtType(EXT_DATE, obj.isoformat().encode("utf-8"))
    if isinstance(obj, re.Pattern):
        payload = msgpack.packb([obj.flags, obj.pattern], use_bin_type=True)
        return msgpack.ExtType(EXT_REGEX, payload)
    raise TypeError(f"Cannot serialize value of type {type(obj).__name__}")


def _ext_hook(code: int, data: bytes) -> Any:
    if code == EXT_UUID:
        return uuid.UUID(bytes=data)
    if code == EXT_DATETIME:
        return datetime.fromisoformat(data.decode("utf-8"))
    if code == EXT_DATE:
        return date.fromisoformat(data.decode("utf-8"))
    if code == EXT_REGEX:
        flags, pattern = msgpack.unpackb(data, raw=False)
        # str patterns always carry re.UNICODE; compile adds it back
        return re.compile(pattern, flags & ~re.UNICODE)
    return msgpack.ExtType(code, data)


def serialize_document(document: Dict[str, Any]) -> bytes:
    """Serialize a document to bytes."""
    try:
        return msgpack.packb(document, default=_default, use_bin_type=True)
    except (TypeError, ValueError, OverflowError) as e:
        raise SerializationError(f"Cannot serialize document: {e}") from e


def deserialize_document(data: bytes) -> Dict[str, Any]:
    """Deserialize bytes to a document."""
    try:
        return msgpack.unpackb(data, ext_hook=_ext_hook, raw=False)
    except (ValueError, msgpack.UnpackException) as e:
        raise SerializationError(f"Cannot deserialize document: {e}") from e


def serialize_snapshot(collections: Dict[str, Dict[str, List[Any]]]) -> bytes:
    """
    Serialize a store snapshot.

    Args:
        collections: ``{name: {"documents": [...], "indexes": [...]}}``
    """
    return serialize_document({
        "version": SNAPSHOT_VERSION,
        "collections": collections,
    })


def deserialize_snapshot(data: bytes) -> Dict[str, Dict[str, List[Any]]]:
    """Deserialize a snapshot written by ``serialize_snapshot``."""
    snapshot = deserialize_document(data)

    if not isinstance(snapshot, dict) or "collections" not in snapshot:
        raise SerializationError("Not a docquery snapshot")

    version = snapshot.get("version")
    if version != SNAPSHOT_VERSION:
        raise SerializationError(f"Unsupported snapshot version: {version}")

    return snapshot["collections"]
