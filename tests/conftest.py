"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import datetime
from typing import Any

import pytest

from bsonkit import (
    Binary,
    Code,
    DBRef,
    Int64,
    MaxKey,
    MinKey,
    ObjectId,
    Regex,
    Symbol,
    Timestamp,
)


@pytest.fixture
def sample_oid() -> ObjectId:
    """Fixed ObjectId for testing."""
    return ObjectId.from_hex("5f0c8a1e9d3b2a0012345678")


@pytest.fixture
def sample_document(sample_oid: ObjectId) -> dict[str, Any]:
    """Document holding one value of every supported variant."""
    return {
        "null": None,
        "flag": True,
        "int32": 42,
        "int64": Int64(1 << 40),
        "double": 41.99,
        "string": "hello, world",
        "binary": b"\x00\x01\x02",
        "binary_uuid": Binary(b"\x10" * 16, 4),
        "nested": {"age": 42, "name": "Spongebob", "shoe_size": 9.5},
        "array": [1, 2, "a", "b"],
        "oid": sample_oid,
        "date": datetime.datetime(2009, 2, 13, 23, 31, 30, 123000, tzinfo=datetime.timezone.utc),
        "regex": Regex("foobar", "i"),
        "symbol": Symbol("foo"),
        "code": Code("this.a.b < this.b"),
        "closure": Code("x + y", {"x": 1, "y": Int64(2)}),
        "empty_scope": Code("1", {}),
        "dbref": DBRef("namespace", sample_oid),
        "ts": Timestamp(1234567890, 7),
        "min": MinKey(),
        "max": MaxKey(),
    }
