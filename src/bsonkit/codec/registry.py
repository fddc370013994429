"""Type registry: the fixed mapping between value variants and wire tags.

This module is the single source of truth for tag semantics. The encoder asks
it which tag a value gets; the decoder asks it whether a tag byte exists and
how wide its payload is.
"""

from __future__ import annotations

import datetime
import enum
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

from ..exceptions import DecodeError, DecodeReason, EncodeError
from ..models import (
    INT32_MAX,
    INT32_MIN,
    INT64_MAX,
    INT64_MIN,
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


class TypeTag(enum.IntEnum):
    """One-byte element type tags."""

    DOUBLE = 0x01
    STRING = 0x02
    DOCUMENT = 0x03
    ARRAY = 0x04
    BINARY = 0x05
    OBJECTID = 0x07
    BOOLEAN = 0x08
    DATETIME = 0x09
    NULL = 0x0A
    REGEX = 0x0B
    DBREF = 0x0C
    CODE = 0x0D
    SYMBOL = 0x0E
    CODE_W_SCOPE = 0x0F
    INT32 = 0x10
    TIMESTAMP = 0x11
    INT64 = 0x12
    MAXKEY = 0x7F
    MINKEY = 0xFF


@dataclass(frozen=True)
class TypeSpec:
    """Registry entry for a single wire type.

    Attributes:
        tag: Wire tag byte
        name: Human-readable variant name
        fixed_size: Payload width in bytes, or None for variable-width payloads
        layout: Payload layout, as documented for the wire format
    """

    tag: TypeTag
    name: str
    fixed_size: Optional[int]
    layout: str

    @property
    def is_container(self) -> bool:
        return self.tag in (TypeTag.DOCUMENT, TypeTag.ARRAY)


class TypeRegistry:
    """Immutable table of TypeSpec rows keyed by tag.

    Example:
        >>> DEFAULT_REGISTRY.spec_for_tag(0x10).name
        'int32'
        >>> DEFAULT_REGISTRY.tag_for_value(2**40)
        <TypeTag.INT64: 18>
    """

    def __init__(self, specs: Iterable[TypeSpec]) -> None:
        by_tag: dict[int, TypeSpec] = {}
        for spec in specs:
            if spec.tag in by_tag:
                raise ValueError(f"Tag 0x{spec.tag:02x} registered twice")
            by_tag[int(spec.tag)] = spec
        self._by_tag: Mapping[int, TypeSpec] = MappingProxyType(by_tag)

    def __contains__(self, tag: object) -> bool:
        return tag in self._by_tag

    def __iter__(self) -> Iterator[TypeSpec]:
        return iter(self._by_tag.values())

    def __len__(self) -> int:
        return len(self._by_tag)

    def tags(self) -> tuple[TypeTag, ...]:
        return tuple(spec.tag for spec in self._by_tag.values())

    def spec_for_tag(self, tag: int, offset: Optional[int] = None) -> TypeSpec:
        """Look up a tag byte read off the wire.

        Raises:
            DecodeError: UNKNOWN_TYPE_TAG if the tag is not registered
        """
        spec = self._by_tag.get(tag)
        if spec is None:
            raise DecodeError(DecodeReason.UNKNOWN_TYPE_TAG, f"tag 0x{tag:02x}", offset)
        return spec

    def tag_for_value(self, value: Any) -> TypeTag:
        """Map a Python value to its wire variant.

        This is the closed set of accepted Python types; anything else is an
        encode error.

        Raises:
            EncodeError: If the value has no wire representation
        """
        if value is None:
            return TypeTag.NULL
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return TypeTag.BOOLEAN
        if isinstance(value, Int64):
            return TypeTag.INT64
        if isinstance(value, int):
            if INT32_MIN <= value <= INT32_MAX:
                return TypeTag.INT32
            if INT64_MIN <= value <= INT64_MAX:
                return TypeTag.INT64
            raise EncodeError(f"Integer {value} does not fit in 64 bits")
        if isinstance(value, float):
            return TypeTag.DOUBLE
        # Symbol before str: Symbol is a str subclass
        if isinstance(value, Symbol):
            return TypeTag.SYMBOL
        if isinstance(value, str):
            return TypeTag.STRING
        if isinstance(value, (bytes, Binary)):
            return TypeTag.BINARY
        if isinstance(value, Mapping):
            return TypeTag.DOCUMENT
        if isinstance(value, (list, tuple)):
            return TypeTag.ARRAY
        if isinstance(value, ObjectId):
            return TypeTag.OBJECTID
        if isinstance(value, datetime.datetime):
            return TypeTag.DATETIME
        if isinstance(value, (Regex, re.Pattern)):
            return TypeTag.REGEX
        if isinstance(value, Code):
            return TypeTag.CODE if value.scope is None else TypeTag.CODE_W_SCOPE
        if isinstance(value, DBRef):
            return TypeTag.DBREF
        if isinstance(value, Timestamp):
            return TypeTag.TIMESTAMP
        if isinstance(value, MinKey):
            return TypeTag.MINKEY
        if isinstance(value, MaxKey):
            return TypeTag.MAXKEY
        raise EncodeError(f"Cannot encode object of type {type(value).__name__}")


DEFAULT_REGISTRY = TypeRegistry(
    [
        TypeSpec(TypeTag.DOUBLE, "double", 8, "8 bytes IEEE-754 binary64"),
        TypeSpec(TypeTag.STRING, "string", None, "int32 length | utf8 | 0x00"),
        TypeSpec(TypeTag.DOCUMENT, "document", None, "int32 length | elements | 0x00"),
        TypeSpec(TypeTag.ARRAY, "array", None, "document with keys '0', '1', ..."),
        TypeSpec(TypeTag.BINARY, "binary", None, "int32 length | subtype | bytes"),
        TypeSpec(TypeTag.OBJECTID, "objectid", 12, "12 raw bytes"),
        TypeSpec(TypeTag.BOOLEAN, "boolean", 1, "0x00 or 0x01"),
        TypeSpec(TypeTag.DATETIME, "datetime", 8, "int64 milliseconds since epoch"),
        TypeSpec(TypeTag.NULL, "null", 0, "no payload"),
        TypeSpec(TypeTag.REGEX, "regex", None, "cstring pattern | cstring flags"),
        TypeSpec(TypeTag.DBREF, "dbref", None, "cstring namespace | 12-byte ObjectId"),
        TypeSpec(TypeTag.CODE, "code", None, "string"),
        TypeSpec(TypeTag.SYMBOL, "symbol", None, "string"),
        TypeSpec(
            TypeTag.CODE_W_SCOPE,
            "code_w_scope",
            None,
            "int32 length | string code | document scope",
        ),
        TypeSpec(TypeTag.INT32, "int32", 4, "4 bytes two's complement"),
        TypeSpec(TypeTag.TIMESTAMP, "timestamp", 8, "uint32 inc | uint32 time"),
        TypeSpec(TypeTag.INT64, "int64", 8, "8 bytes two's complement"),
        TypeSpec(TypeTag.MAXKEY, "maxkey", 0, "no payload"),
        TypeSpec(TypeTag.MINKEY, "minkey", 0, "no payload"),
    ]
)
