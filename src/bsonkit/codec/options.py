"""Configuration for encoding and decoding.

Options are plain dataclasses passed explicitly to each call. There is no
process-wide default that callers can mutate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

DuplicateKeyPolicy = Literal["first", "last"]

# Largest length that fits the signed 32-bit length prefix
MAX_WIRE_LENGTH = (1 << 31) - 1


@dataclass(frozen=True)
class EncodeOptions:
    """Options for :func:`bsonkit.encode`.

    Attributes:
        check_keys: Reject keys that start with ``$`` or contain ``.``
            (default False). Code scopes are exempt.
        max_document_size: Upper bound in bytes for the encoded root document,
            or None for the format's own 32-bit ceiling.

    Examples:
        ```python
        from bsonkit import EncodeOptions, encode

        # Documents destined for storage
        encode({"name": "Spongebob"}, EncodeOptions(check_keys=True))

        # Refuse anything larger than 16 MiB
        encode(doc, EncodeOptions(max_document_size=16 * 1024 * 1024))
        ```
    """

    check_keys: bool = False
    max_document_size: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.max_document_size is not None and not (
            5 <= self.max_document_size <= MAX_WIRE_LENGTH
        ):
            raise ValueError(
                f"max_document_size must be 5-{MAX_WIRE_LENGTH}, got {self.max_document_size}"
            )


@dataclass(frozen=True)
class DecodeOptions:
    """Options for :func:`bsonkit.decode`.

    Attributes:
        document_class: Mapping type for decoded documents, called with a
            ``dict`` of the decoded items; defaults to ``dict``. Arrays always
            decode to ``list``.
        tz_aware: Return UTC-aware datetimes (default True). When False,
            datetimes are naive and in UTC.
        allow_trailing: Ignore bytes after the root document (default False,
            which raises TRAILING_DATA).
        duplicate_keys: Which value wins when a document repeats a key on the
            wire: ``"last"`` (default) or ``"first"``. The key keeps the
            position of its first occurrence either way.
        max_depth: Maximum nesting of documents, arrays and code scopes
            (default 100). The root document is depth 1.

    Examples:
        ```python
        from collections import OrderedDict
        from bsonkit import DecodeOptions, decode

        decode(data, DecodeOptions(document_class=OrderedDict))
        decode(data, DecodeOptions(duplicate_keys="first", max_depth=16))
        ```
    """

    document_class: Callable[[dict[str, Any]], Any] = dict
    tz_aware: bool = True
    allow_trailing: bool = False
    duplicate_keys: DuplicateKeyPolicy = "last"
    max_depth: int = 100

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.duplicate_keys not in ("first", "last"):
            raise ValueError(
                f"duplicate_keys must be 'first' or 'last', got {self.duplicate_keys!r}"
            )

        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")

        if not callable(self.document_class):
            raise ValueError("document_class must be callable")


DEFAULT_ENCODE_OPTIONS = EncodeOptions()
DEFAULT_DECODE_OPTIONS = DecodeOptions()
