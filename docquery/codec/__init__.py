"""
Object codecs for docquery.

A codec converts domain objects to stored documents and back. The query
pipeline depends only on :class:`ObjectCodec`; :class:`DataclassCodec` is
the bundled implementation.
"""

from .base import ObjectCodec
from .dataclass_codec import DataclassCodec

__all__ = [
    "ObjectCodec",
    "DataclassCodec",
]
