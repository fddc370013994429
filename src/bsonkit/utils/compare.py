"""Structural comparison of documents.

Plain ``==`` on dicts ignores key order and treats ``1 == 1.0 == True``. The
round-trip guarantee is stricter: same keys in the same order, and the same
wire variant with the same payload for every value.
"""

from __future__ import annotations

import struct
from typing import Any, Mapping, Optional

from ..codec.extended import binary_parts, datetime_to_millis, regex_parts
from ..codec.registry import DEFAULT_REGISTRY, TypeTag
from ..exceptions import EncodeError


def documents_equal(left: Mapping[str, Any], right: Mapping[str, Any]) -> bool:
    """Return True if two documents would encode to the same elements in the same order.

    Example:
        >>> documents_equal({"a": 1, "b": 2}, {"b": 2, "a": 1})
        False
        >>> documents_equal({"n": 1}, {"n": 1.0})
        False
    """
    if not isinstance(left, Mapping) or not isinstance(right, Mapping):
        return False
    return _values_equal(left, right)


def _kind(value: Any) -> Optional[TypeTag]:
    try:
        return DEFAULT_REGISTRY.tag_for_value(value)
    except EncodeError:
        return None


def _values_equal(left: Any, right: Any) -> bool:
    kind = _kind(left)
    if kind != _kind(right):
        return False

    if kind is TypeTag.DOCUMENT:
        if list(left.keys()) != list(right.keys()):
            return False
        return all(_values_equal(left[key], right[key]) for key in left)

    if kind is TypeTag.ARRAY:
        if len(left) != len(right):
            return False
        return all(_values_equal(a, b) for a, b in zip(left, right))

    if kind is TypeTag.CODE_W_SCOPE:
        return left.code == right.code and _values_equal(left.scope, right.scope)

    if kind is TypeTag.DOUBLE:
        # Bit-for-bit, so NaN payloads and -0.0 are told apart
        return struct.pack("<d", left) == struct.pack("<d", right)

    if kind is TypeTag.DATETIME:
        return datetime_to_millis(left) == datetime_to_millis(right)

    if kind is TypeTag.REGEX:
        return regex_parts(left) == regex_parts(right)

    if kind is TypeTag.BINARY:
        return binary_parts(left) == binary_parts(right)

    return bool(left == right)
