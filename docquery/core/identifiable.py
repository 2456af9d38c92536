"""
Base class for stored entities.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import ClassVar


@dataclass(kw_only=True)
class Identifiable:
    """
    An entity with a unique identifier and a schema revision.

    ``revision`` is a class-level marker written alongside every stored
    document; bump it when a class changes shape so older documents can be
    found and migrated (see ``CollectionManager.replace_revision_class``).

    Example:
        >>> @dataclass
        ... class Person(Identifiable):
        ...     revision: ClassVar[int] = 2
        ...     name: str
        ...     age: int = 0
        >>> Person("Ada", 36).id
        UUID('...')
    """

    revision: ClassVar[int] = 0

    id: uuid.UUID = field(default_factory=uuid.uuid4)
