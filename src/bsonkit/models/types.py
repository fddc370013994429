"""Extended value types.

Plain Python types cover most of the value model (None, bool, int, float,
str, bytes, dict, list, datetime). The types here cover the variants that have
no native Python counterpart, or that need to stay distinguishable from one.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from pydantic import field_validator

from ..exceptions import ConstructionError
from .base import BaseValue
from .objectid import ObjectId

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1
INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT32_MAX = (1 << 32) - 1

# Allowed regex option characters, in canonical (ascending) order
REGEX_FLAGS = "ilmsux"

_RE_FLAG_LETTERS = (
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.UNICODE, "u"),
    (re.VERBOSE, "x"),
)


def _check_text(value: str, what: str) -> str:
    """Reject text that has no wire form: embedded NUL or invalid UTF-8.

    Raises:
        ValueError: If value contains NUL or lone surrogates
    """
    if "\x00" in value:
        raise ValueError(f"{what} must not contain NUL characters")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValueError(f"{what} is not encodable as UTF-8: {e.reason}") from e
    return value


class Int64(int):
    """An integer that is always encoded as a 64-bit value.

    Plain ints are encoded as Int32 when they fit; wrap them in Int64 to force
    the wider encoding. Decoded Int64 values come back as Int64 so re-encoding
    keeps the same width.
    """

    __slots__ = ()

    def __new__(cls, value: int = 0) -> Int64:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConstructionError(f"Int64 requires an int, got {type(value).__name__}")
        if not INT64_MIN <= value <= INT64_MAX:
            raise ConstructionError(f"Int64 value {value} out of range")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"Int64({int(self)})"


class Symbol(str):
    """A symbol: text that decodes to a distinct type from plain strings."""

    __slots__ = ()

    def __new__(cls, value: str = "") -> Symbol:
        if not isinstance(value, str):
            raise ConstructionError(f"Symbol requires a str, got {type(value).__name__}")
        try:
            _check_text(value, "Symbol")
        except ValueError as err:
            raise ConstructionError(str(err)) from err
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"Symbol({str(self)!r})"


class Binary(BaseValue):
    """Binary blob with an explicit subtype.

    Plain ``bytes`` are encoded with subtype 0 and subtype 0 decodes back to
    ``bytes``. Use Binary for any other subtype.
    """

    data: bytes
    subtype: int = 0

    def __init__(self, data: bytes, subtype: int = 0) -> None:
        super().__init__(data=data, subtype=subtype)

    @field_validator("subtype")
    @classmethod
    def _check_subtype(cls, value: int) -> int:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"Binary subtype must be 0-255, got {value}")
        return value


class Regex(BaseValue):
    """A regular expression as stored on the wire: pattern plus option letters.

    Flags are validated against ``ilmsux`` at construction. Values read off
    the wire keep whatever flags were stored, in their original order.
    """

    pattern: str
    flags: str = ""

    def __init__(self, pattern: str, flags: str = "") -> None:
        super().__init__(pattern=pattern, flags=flags)

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        return _check_text(value, "Regex pattern")

    @field_validator("flags")
    @classmethod
    def _check_flags(cls, value: str) -> str:
        unknown = sorted(set(value) - set(REGEX_FLAGS))
        if unknown:
            raise ValueError(f"Unsupported regex flags {''.join(unknown)!r}")
        return value

    @classmethod
    def from_native(cls, compiled: re.Pattern[str]) -> Regex:
        """Convert a compiled Python pattern; flags come out in canonical order.

        Raises:
            ConstructionError: If the pattern is a bytes pattern
        """
        if not isinstance(compiled.pattern, str):
            raise ConstructionError("Only str patterns can be converted to Regex")
        letters = "".join(letter for flag, letter in _RE_FLAG_LETTERS if compiled.flags & flag)
        return cls(compiled.pattern, "".join(sorted(letters)))

    def try_compile(self) -> re.Pattern[str]:
        """Compile into a Python pattern.

        Raises:
            ValueError: If a flag has no Python equivalent
            re.error: If the pattern is not valid Python regex syntax
        """
        by_letter = {letter: flag for flag, letter in _RE_FLAG_LETTERS}
        flags = 0
        for letter in self.flags:
            if letter not in by_letter:
                raise ValueError(f"Regex flag {letter!r} has no Python equivalent")
            flags |= by_letter[letter]
        return re.compile(self.pattern, flags)

    def __repr__(self) -> str:
        return f"Regex({self.pattern!r}, {self.flags!r})"


class Code(BaseValue):
    """Executable source, optionally with a scope document.

    ``scope=None`` and ``scope={}`` are different values with different wire
    tags. The scope is copied at construction and exposed as a read-only
    mapping. Hashing uses the code and the scope's variable names, since
    scope values may themselves be unhashable.
    """

    code: str
    # Validated as a dict, stored as a read-only view of a private copy
    scope: Optional[dict[str, Any]] = None

    def __init__(self, code: str, scope: Optional[Mapping[str, Any]] = None) -> None:
        if isinstance(scope, Mapping):
            scope = dict(scope)
        super().__init__(code=code, scope=scope)

    @field_validator("code")
    @classmethod
    def _check_code(cls, value: str) -> str:
        return _check_text(value, "Code")

    @field_validator("scope")
    @classmethod
    def _freeze_scope(cls, value: Optional[dict[str, Any]]) -> Optional[Mapping[str, Any]]:
        if value is None:
            return None
        for name in value:
            _check_text(name, "Code scope variable name")
        return MappingProxyType(dict(value))

    def __hash__(self) -> int:
        names = None if self.scope is None else tuple(self.scope)
        return hash((type(self), self.code, names))

    def __repr__(self) -> str:
        if self.scope is None:
            return f"Code({self.code!r})"
        return f"Code({self.code!r}, {dict(self.scope)!r})"


class DBRef(BaseValue):
    """A reference to another document by namespace and ObjectId.

    A DBRef never holds the referenced or the owning document. Resolve it on
    demand with :meth:`dereference`.

    Example:
        >>> ref = DBRef("users", ObjectId.generate())
        >>> store = {ref.key: {"name": "Patrick"}}
        >>> ref.dereference(lambda ns, oid: store.get((ns, oid)))
        {'name': 'Patrick'}
    """

    namespace: str
    id: ObjectId

    def __init__(self, namespace: str, id: ObjectId) -> None:
        super().__init__(namespace=namespace, id=id)

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str) -> str:
        return _check_text(value, "DBRef namespace")

    @property
    def key(self) -> tuple[str, ObjectId]:
        """Lookup key identifying the referenced document."""
        return (self.namespace, self.id)

    def dereference(
        self, resolver: Callable[[str, ObjectId], Optional[Mapping[str, Any]]]
    ) -> Optional[Mapping[str, Any]]:
        """Look up the referenced document through a caller-supplied resolver."""
        return resolver(self.namespace, self.id)

    def __repr__(self) -> str:
        return f"DBRef({self.namespace!r}, {self.id!r})"


class Timestamp(BaseValue):
    """Internal replication timestamp: seconds plus an ordinal within the second."""

    time: int
    inc: int

    def __init__(self, time: int, inc: int) -> None:
        super().__init__(time=time, inc=inc)

    @field_validator("time", "inc")
    @classmethod
    def _check_uint32(cls, value: int) -> int:
        if not 0 <= value <= UINT32_MAX:
            raise ValueError(f"Timestamp fields must be 0-{UINT32_MAX}, got {value}")
        return value


class MinKey(BaseValue):
    """Compares lower than every other value."""

    def __repr__(self) -> str:
        return "MinKey()"


class MaxKey(BaseValue):
    """Compares higher than every other value."""

    def __repr__(self) -> str:
        return "MaxKey()"
