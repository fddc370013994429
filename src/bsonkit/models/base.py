"""Base value class and bsonkit-specific Pydantic configuration.

This module provides the BaseValue class that every extended value type
(ObjectId, Regex, Code, DBRef, ...) inherits from.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from ..exceptions import ConstructionError


class BaseValue(BaseModel):
    """Base class for immutable wire values.

    Values are validated once at construction. Anything that would not survive
    encoding (wrong byte counts, NUL bytes inside C strings, out-of-range
    integers) is rejected here with ConstructionError rather than at encode time.

    The decoder builds instances with ``model_construct`` since the bytes it
    read were already checked by the wire format.

    Example:
        >>> class Point(BaseValue):
        ...     x: int
        ...     y: int
        >>> Point(x=1, y=2) == Point(x=1, y=2)
        True
    """

    model_config = ConfigDict(
        # Values never change after construction
        frozen=True,
        # No implicit coercion between Python types
        strict=True,
        # Forbid extra fields not defined in schema
        extra="forbid",
    )

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as err:
            raise ConstructionError(f"Invalid {type(self).__name__}: {err}") from err
