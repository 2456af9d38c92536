"""
Dataclass-based object codec.

Encodes dataclass instances as documents carrying a class discriminator, so
documents can be decoded back into the right class, including documents that
were read with a projection and embedded documents.

Example:
    >>> codec = DataclassCodec()
    >>>
    >>> @codec.register
    ... @dataclass
    ... class Person(Identifiable):
    ...     name: str
    ...     age: int = 0
    >>>
    >>> doc = codec.to_document(Person("Ada", 36))
    >>> doc["class"], doc["name"]
    ('Person', 'Ada')
    >>> codec.from_document(doc)
    Person(id=UUID('...'), name='Ada', age=36)
"""

from __future__ import annotations

import dataclasses
import threading
import typing
import uuid
from enum import Enum
from typing import Any, Dict, Optional, Type

from .base import ObjectCodec
from ..core.exceptions import SerializationError, ValidationError
from ..core.identifiable import Identifiable
from config.settings import SchemaConfig


class DataclassCodec(ObjectCodec):
    """
    Codec for dataclasses, with a registry of classes by discriminator name.

    Classes are registered under their ``__name__`` unless a name is given.
    Registering a legacy class under its own name lets documents that
    ``replace_revision_class`` pointed at it be decoded.
    """

    def __init__(self, schema: Optional[SchemaConfig] = None):
        self.schema = schema or SchemaConfig()
        self._by_name: Dict[str, type] = {}
        self._names: Dict[type, str] = {}
        self._lock = threading.RLock()

    # =========================================================================
    # REGISTRY
    # =========================================================================

    def register(self, cls: Optional[type] = None, *, name: Optional[str] = None):
        """
        Register a dataclass. Usable as ``@codec.register`` or
        ``@codec.register(name="PersonV1")``.

        Raises:
            ValidationError: If ``cls`` is not a dataclass or the name is taken
        """
        def decorator(klass: type) -> type:
            if not (isinstance(klass, type) and dataclasses.is_dataclass(klass)):
                raise ValidationError(f"Only dataclasses can be registered, got {klass!r}")
            class_name = name or klass.__name__
            with self._lock:
                existing = self._by_name.get(class_name)
                if existing is not None and existing is not klass:
                    raise ValidationError(
                        f"Class name '{class_name}' is already registered to {existing!r}"
                    )
                self._by_name[class_name] = klass
                self._names[klass] = class_name
            return klass

        if cls is None:
            return decorator
        return decorator(cls)

    def class_name(self, cls: type) -> str:
        """Discriminator for ``cls``, registering it on first use."""
        with self._lock:
            if cls not in self._names:
                self.register(cls)
            return self._names[cls]

    def resolve(self, class_name: str) -> type:
        with self._lock:
            try:
                return self._by_name[class_name]
            except KeyError:
                raise SerializationError(f"Unknown class discriminator: '{class_name}'")

    # =========================================================================
    # ENCODING
    # =========================================================================

    def to_document(self, obj: Any, context: Any = None) -> Dict[str, Any]:
        if not dataclasses.is_dataclass(obj) or isinstance(obj, type):
            raise SerializationError(
                f"Cannot encode {type(obj).__name__}: not a dataclass instance"
            )

        document: Dict[str, Any] = {}
        identifiable = isinstance(obj, Identifiable)

        if identifiable:
            document[self.schema.id_field] = obj.id
        document[self.schema.class_field] = self.class_name(type(obj))
        if identifiable:
            document[self.schema.revision_field] = type(obj).revision

        for f in dataclasses.fields(obj):
            if identifiable and f.name == "id":
                continue
            document[f.name] = self.to_value(getattr(obj, f.name), context)

        return document

    def to_value(self, value: Any, context: Any = None) -> Any:
        if isinstance(value, Enum):
            return value.value
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return self.to_document(value, context)
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.to_value(v, context) for v in value]
        if isinstance(value, dict):
            return {k: self.to_value(v, context) for k, v in value.items()}
        return value

    # =========================================================================
    # DECODING
    # =========================================================================

    def from_document(
        self, document: Dict[str, Any], context: Any = None, partial: bool = False
    ) -> Any:
        class_name = document.get(self.schema.class_field)
        if class_name is None:
            raise SerializationError(
                f"Document has no '{self.schema.class_field}' discriminator"
            )

        cls = self.resolve(class_name)
        hints = self._type_hints(cls)
        identifiable = issubclass(cls, Identifiable)

        kwargs = {}
        for f in dataclasses.fields(cls):
            if not f.init:
                continue
            key = self.schema.id_field if identifiable and f.name == "id" else f.name
            if key in document:
                kwargs[f.name] = self._decode(document[key], hints.get(f.name), context)
            elif (
                f.default is dataclasses.MISSING
                and f.default_factory is dataclasses.MISSING
            ):
                # projected out
                if partial:
                    kwargs[f.name] = None
                    continue
                raise SerializationError(
                    f"Document for '{class_name}' is missing required field '{key}'"
                )

        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot build '{class_name}': {e}") from e

    def _decode(self, value: Any, hint: Any, context: Any) -> Any:
        if isinstance(value, dict):
            if self.schema.class_field in value:
                return self.from_document(value, context)
            return {k: self._decode(v, None, context) for k, v in value.items()}

        if isinstance(value, list):
            origin = typing.get_origin(hint)
            args = typing.get_args(hint)
            item_hint = args[0] if args else None
            items = [self._decode(v, item_hint, context) for v in value]
            if origin in (tuple, set, frozenset):
                return origin(items)
            return items

        if value is None or not isinstance(hint, type):
            return value

        if issubclass(hint, Enum) and not isinstance(value, hint):
            try:
                return hint(value)
            except ValueError as e:
                raise SerializationError(f"Invalid {hint.__name__} value: {value!r}") from e

        if hint is uuid.UUID and isinstance(value, str):
            return uuid.UUID(value)

        return value

    @staticmethod
    def _type_hints(cls: Type) -> Dict[str, Any]:
        try:
            return typing.get_type_hints(cls)
        except (NameError, TypeError):
            # Unresolvable forward references: decode without hints
            return {}

    def registered(self) -> Dict[str, type]:
        """Copy of the registry, by discriminator name."""
        with self._lock:
            return dict(self._by_name)
