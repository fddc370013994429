"""Document decoder.

This module provides the decode() function that parses binary data back into
a document, plus decode_all()/decode_iter() for buffers holding several
documents back to back.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterator, Optional, Union

from ..exceptions import DecodeError, DecodeReason
from ..models import Code
from .buffer import ByteReader
from .extended import CONTAINER_TAGS, SCALAR_CODECS
from .options import DEFAULT_DECODE_OPTIONS, DecodeOptions
from .registry import DEFAULT_REGISTRY, TypeRegistry, TypeTag

logger = logging.getLogger(__name__)

if set(SCALAR_CODECS) | CONTAINER_TAGS != set(DEFAULT_REGISTRY.tags()):
    raise RuntimeError("Decoder payload table does not match the type registry")

# Smallest code-with-scope: total length, empty string, empty document
_MIN_CODE_W_SCOPE_SIZE = 4 + 5 + 5

BytesLike = Union[bytes, bytearray, memoryview]


def decode(data: BytesLike, options: Optional[DecodeOptions] = None) -> Any:
    """Decode binary data to a document.

    The input must hold exactly one document unless ``options.allow_trailing``
    is set. Nothing is returned on failure: either the whole document decodes
    or DecodeError is raised.

    Args:
        data: Encoded document
        options: Decoding options (defaults to DecodeOptions())

    Returns:
        Decoded document (an instance of ``options.document_class``)

    Raises:
        DecodeError: If data is truncated, corrupted, or has trailing bytes;
            ``err.reason`` tells which. A DateTime whose milliseconds fall
            outside what ``datetime.datetime`` can hold (years 1-9999) is
            reported as INVALID_ENCODING.

    Examples:
        ```python
        from bsonkit import decode, encode

        doc = decode(encode({"doc": [1, 2, "a", "b"]}))
        assert doc == {"doc": [1, 2, "a", "b"]}
        ```
    """
    options = options or DEFAULT_DECODE_OPTIONS
    reader = ByteReader(bytes(data))
    document = _read_root(_Decoder(options, DEFAULT_REGISTRY), reader)

    if not reader.at_end() and not options.allow_trailing:
        error = DecodeError(
            DecodeReason.TRAILING_DATA,
            f"{reader.remaining()} bytes after end of document",
            reader.position(),
        )
        _log_failure(error)
        raise error

    return document


def decode_iter(data: BytesLike, options: Optional[DecodeOptions] = None) -> Iterator[Any]:
    """Lazily decode a buffer holding zero or more concatenated documents.

    Raises:
        DecodeError: When the next document is malformed; documents before it
            have already been yielded
    """
    options = options or DEFAULT_DECODE_OPTIONS
    reader = ByteReader(bytes(data))
    decoder = _Decoder(options, DEFAULT_REGISTRY)

    while not reader.at_end():
        yield _read_root(decoder, reader)


def decode_all(data: BytesLike, options: Optional[DecodeOptions] = None) -> list[Any]:
    """Decode a buffer holding zero or more concatenated documents.

    Raises:
        DecodeError: If any document is malformed (no partial list is returned)
    """
    return list(decode_iter(data, options))


def _log_failure(error: DecodeError) -> None:
    logger.debug(
        "Decode failed: %s (reason=%s, offset=%s)", error, error.reason.name, error.offset
    )


def _read_root(decoder: _Decoder, reader: ByteReader) -> Any:
    """Read one top-level document, reporting every failure as DecodeError."""
    start = reader.position()
    try:
        return decoder.read_document(reader, 1)
    except RecursionError as e:
        error = DecodeError(
            DecodeReason.MAX_DEPTH_EXCEEDED,
            "nesting exceeds the interpreter recursion limit",
            start,
        )
        _log_failure(error)
        raise error from e
    except DecodeError as e:
        _log_failure(e)
        raise


class _Decoder:
    """Recursive-descent parser over bounded ByteReaders."""

    def __init__(self, options: DecodeOptions, registry: TypeRegistry) -> None:
        self._options = options
        self._registry = registry

    def read_document(self, reader: ByteReader, depth: int) -> Any:
        """Read a document; the reader advances past its terminator."""
        return self._options.document_class(self._read_items(reader, depth))

    def read_array(self, reader: ByteReader, depth: int) -> list[Any]:
        # Keys are positional ("0", "1", ...) by convention and not checked
        return list(self._read_items(reader, depth).values())

    def _read_items(self, reader: ByteReader, depth: int) -> dict[str, Any]:
        start = reader.position()
        if depth > self._options.max_depth:
            raise DecodeError(
                DecodeReason.MAX_DEPTH_EXCEEDED,
                f"nesting deeper than {self._options.max_depth}",
                start,
            )

        length = reader.read_int32()
        if length < 5:
            raise DecodeError(DecodeReason.LENGTH_MISMATCH, f"document length {length}", start)

        body = reader.bounded(length - 4)
        terminator = start + length - 1
        if body.peek_byte(terminator) != 0:
            raise DecodeError(
                DecodeReason.LENGTH_MISMATCH, "document does not end with NUL", terminator
            )
        elements = body.bounded(length - 5)

        items: dict[str, Any] = {}
        keep_first = self._options.duplicate_keys == "first"
        while not elements.at_end():
            tag_offset = elements.position()
            tag = elements.read_byte()
            if tag == 0:
                raise DecodeError(
                    DecodeReason.LENGTH_MISMATCH,
                    f"document ends {terminator - tag_offset} bytes before its declared length",
                    tag_offset,
                )
            spec = self._registry.spec_for_tag(tag, tag_offset)
            key = elements.read_cstring()
            value = self._read_value(spec.tag, elements, depth)
            if keep_first and key in items:
                continue
            items[key] = value
        return items

    def _read_value(self, tag: TypeTag, reader: ByteReader, depth: int) -> Any:
        if tag is TypeTag.DOCUMENT:
            return self.read_document(reader, depth + 1)
        if tag is TypeTag.ARRAY:
            return self.read_array(reader, depth + 1)
        if tag is TypeTag.CODE_W_SCOPE:
            return self._read_code_w_scope(reader, depth)
        return SCALAR_CODECS[tag].read(reader, self._options)

    def _read_code_w_scope(self, reader: ByteReader, depth: int) -> Code:
        start = reader.position()
        total = reader.read_int32()
        if total < _MIN_CODE_W_SCOPE_SIZE:
            raise DecodeError(
                DecodeReason.LENGTH_MISMATCH, f"code with scope length {total}", start
            )

        body = reader.bounded(total - 4)
        code = body.read_string()
        # Scopes are always plain dicts, whatever document_class is
        scope = self._read_items(body, depth + 1)
        if not body.at_end():
            raise DecodeError(
                DecodeReason.LENGTH_MISMATCH,
                f"code with scope declares {total} bytes, contents use {body.position() - start}",
                start,
            )
        return Code.model_construct(code=code, scope=MappingProxyType(scope))
