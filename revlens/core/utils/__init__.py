"""Small helpers shared across the core packages."""

from typing import Any
from uuid import UUID

from ..errors import InvalidRequestError


def parse_id(value: Any, what: str) -> UUID:
    """Parse an identifier, rejecting malformed input as InvalidRequest.

    Example:
        >>> parse_id("not-a-uuid", "project")
        Traceback (most recent call last):
        ...
        revlens.core.errors.InvalidRequestError: Invalid project ID: 'not-a-uuid'
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, TypeError):
        raise InvalidRequestError(f"Invalid {what} ID: {value!r}")


__all__ = ["parse_id"]
