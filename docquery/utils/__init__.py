"""
Utility functions for docquery.
"""

from .validation import (
    validate_collection_name,
    validate_field_name,
    validate_non_negative,
    ValidationError,
)
from .logging import setup_logger, get_logger, format_query, LogContext

__all__ = [
    "validate_collection_name",
    "validate_field_name",
    "validate_non_negative",
    "ValidationError",
    "setup_logger",
    "get_logger",
    "format_query",
    "LogContext",
]
