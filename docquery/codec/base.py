"""
Abstract interface for converting domain objects to and from documents.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict


class ObjectCodec(ABC):
    """
    Converts between domain objects and stored documents.

    ``context`` is the collection the conversion happens for; codecs may use
    it to resolve references, and may ignore it.
    """

    @abstractmethod
    def to_document(self, obj: Any, context: Any = None) -> Dict[str, Any]:
        """Encode a domain object as a document."""
        pass

    @abstractmethod
    def from_document(
        self, document: Dict[str, Any], context: Any = None, partial: bool = False
    ) -> Any:
        """
        Decode a document into a domain object.

        ``partial`` marks a document read with a projection, which may lack
        fields the class requires.
        """
        pass

    @abstractmethod
    def to_value(self, value: Any, context: Any = None) -> Any:
        """Encode a single value the way it would be stored in a document."""
        pass
