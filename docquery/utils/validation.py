"""
Input validation utilities.
"""

from typing import Any
import re

from ..core.exceptions import ValidationError


# Valid collection name pattern: alphanumeric, underscores, hyphens, dots
COLLECTION_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9_\-\.]+$')

# Maximum limits
MAX_COLLECTION_NAME_LENGTH = 120
MAX_FIELD_NAME_LENGTH = 1024


def validate_collection_name(name: str) -> str:
    """
    Validate a collection name.

    Args:
        name: The name to validate

    Returns:
        The validated name

    Raises:
        ValidationError: If name is invalid
    """
    if not isinstance(name, str):
        raise ValidationError(
            f"Collection name must be a string, got {type(name).__name__}"
        )

    if not name:
        raise ValidationError("Collection name cannot be empty")

    if len(name) > MAX_COLLECTION_NAME_LENGTH:
        raise ValidationError(
            f"Collection name too long: {len(name)} characters "
            f"(max {MAX_COLLECTION_NAME_LENGTH})"
        )

    if not COLLECTION_NAME_PATTERN.match(name):
        raise ValidationError(
            f"Invalid collection name '{name}': must contain only alphanumeric "
            "characters, underscores, hyphens, or dots"
        )

    return name


def validate_field_name(name: str) -> str:
    """
    Validate a document field name.

    Dotted paths are allowed; each segment must be non-empty and may not
    start with ``$`` (reserved for query operators).

    Raises:
        ValidationError: If name is invalid
    """
    if not isinstance(name, str):
        raise ValidationError(
            f"Field name must be a string, got {type(name).__name__}"
        )

    if not name:
        raise ValidationError("Field name cannot be empty")

    if len(name) > MAX_FIELD_NAME_LENGTH:
        raise ValidationError(
            f"Field name too long: {len(name)} characters "
            f"(max {MAX_FIELD_NAME_LENGTH})"
        )

    if "\x00" in name:
        raise ValidationError(f"Field name contains a NUL character: {name!r}")

    for segment in name.split("."):
        if not segment:
            raise ValidationError(f"Invalid field name '{name}': empty path segment")
        if segment.startswith("$"):
            raise ValidationError(
                f"Invalid field name '{name}': segments may not start with '$'"
            )

    return name


def validate_non_negative(value: Any, name: str) -> int:
    """
    Validate a non-negative integer such as a skip or limit.

    Raises:
        ValidationError: If value is not an int or is negative
    """
    # bool is an int subclass but never a meaningful count
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(
            f"{name} must be an integer, got {type(value).__name__}"
        )

    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")

    return value
