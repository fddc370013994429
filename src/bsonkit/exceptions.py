"""Exception hierarchy for bsonkit.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from BsonkitError for easy catching of any bsonkit-specific error.
"""

from __future__ import annotations

import enum


class BsonkitError(Exception):
    """Base exception for all bsonkit errors."""

    pass


class ConstructionError(BsonkitError, ValueError):
    """Raised when a value cannot be represented in the value model.

    Examples:
        - ObjectId that is not exactly 12 bytes
        - Int64 outside the signed 64-bit range
        - Regex flags outside the allowed set
        - Namespace or pattern containing a NUL byte
    """

    pass


class EncodeError(BsonkitError):
    """Raised when encoding a document fails.

    Examples:
        - Python type with no wire representation
        - Integer outside the 64-bit range
        - Key or string containing a NUL byte
        - Document or string longer than the 32-bit length ceiling
        - Container that contains itself
    """

    pass


class DecodeReason(enum.Enum):
    """Reason codes carried by DecodeError."""

    TRUNCATED_INPUT = "truncated input"
    MALFORMED_STRING = "malformed string"
    UNKNOWN_TYPE_TAG = "unknown type tag"
    TRAILING_DATA = "trailing data"
    INVALID_ENCODING = "invalid encoding"
    LENGTH_MISMATCH = "length mismatch"
    MAX_DEPTH_EXCEEDED = "max depth exceeded"


class DecodeError(BsonkitError):
    """Raised when decoding binary data fails.

    Attributes:
        reason: Machine-readable failure category
        offset: Byte offset in the input where the failure was detected
    """

    def __init__(self, reason: DecodeReason, message: str, offset: int | None = None) -> None:
        self.reason = reason
        self.offset = offset
        if offset is not None:
            text = f"{reason.value} at offset {offset}: {message}"
        else:
            text = f"{reason.value}: {message}"
        super().__init__(text)
