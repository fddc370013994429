"""Value model for bsonkit.

This module provides the extended value types that, together with the
plain Python types, make up the closed set of encodable values.
"""

from __future__ import annotations

from .base import BaseValue
from .objectid import ObjectId
from .types import (
    INT32_MAX,
    INT32_MIN,
    INT64_MAX,
    INT64_MIN,
    REGEX_FLAGS,
    Binary,
    Code,
    DBRef,
    Int64,
    MaxKey,
    MinKey,
    Regex,
    Symbol,
    Timestamp,
)

__all__ = [
    "BaseValue",
    "ObjectId",
    "Binary",
    "Code",
    "DBRef",
    "Int64",
    "MaxKey",
    "MinKey",
    "Regex",
    "Symbol",
    "Timestamp",
    "INT32_MIN",
    "INT32_MAX",
    "INT64_MIN",
    "INT64_MAX",
    "REGEX_FLAGS",
]
