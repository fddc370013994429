"""Document encoder.

This module provides the encode() function that converts a document (any
Mapping with str keys) into its length-prefixed binary form.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from ..exceptions import EncodeError
from ..models import Code
from .buffer import ByteWriter, utf8
from .extended import CONTAINER_TAGS, SCALAR_CODECS, string_size
from .options import DEFAULT_ENCODE_OPTIONS, MAX_WIRE_LENGTH, EncodeOptions
from .registry import DEFAULT_REGISTRY, TypeRegistry, TypeTag

logger = logging.getLogger(__name__)

if set(SCALAR_CODECS) | CONTAINER_TAGS != set(DEFAULT_REGISTRY.tags()):
    raise RuntimeError("Encoder payload table does not match the type registry")


def encode(document: Mapping[str, Any], options: Optional[EncodeOptions] = None) -> bytes:
    """Encode a document to binary.

    Sizes are computed first, bottom-up over nested containers; the bytes are
    then written top-down, each length prefix ahead of its contents. Keys are
    written in the mapping's iteration order.

    Args:
        document: Mapping of str keys to encodable values
        options: Encoding options (defaults to EncodeOptions())

    Returns:
        Encoded document

    Raises:
        EncodeError: If a value has no wire representation, a key or string is
            invalid, the structure is cyclic, or a length exceeds its limit

    Examples:
        ```python
        from bsonkit import ObjectId, encode

        data = encode({"doc": "hello, world"})
        data = encode({"_id": ObjectId.generate(), "tags": ["a", "b"]})
        ```
    """
    if not isinstance(document, Mapping):
        raise EncodeError(f"Top-level value must be a mapping, got {type(document).__name__}")

    options = options or DEFAULT_ENCODE_OPTIONS
    encoder = _Encoder(DEFAULT_REGISTRY)

    writer = ByteWriter()
    try:
        size = encoder.document_size(document, options.check_keys)
        if options.max_document_size is not None and size > options.max_document_size:
            raise EncodeError(
                f"Encoded document size ({size} bytes) exceeds "
                f"max_document_size={options.max_document_size}"
            )
        encoder.write_document(writer, document, options.check_keys)
    except RecursionError as e:
        raise EncodeError("Document nesting is too deep to encode") from e

    if writer.position() != size:
        raise EncodeError(
            f"Document changed while encoding: sized {size} bytes, wrote {writer.position()}"
        )

    logger.debug("Encoded document of %d bytes", size)
    return writer.to_bytes()


def _items(container: Any) -> Iterable[tuple[Any, Any]]:
    if isinstance(container, Mapping):
        return container.items()
    return ((str(index), value) for index, value in enumerate(container))


class _Encoder:
    """Per-call encoding state: cached container sizes and the cycle guard."""

    def __init__(self, registry: TypeRegistry) -> None:
        self._registry = registry
        # id(container) -> (size, container); the reference keeps the id valid
        self._sizes: dict[int, tuple[int, Any]] = {}
        self._active: set[int] = set()

    def _key_bytes(self, key: Any, check_keys: bool) -> bytes:
        if not isinstance(key, str):
            raise EncodeError(f"Document keys must be str, got {type(key).__name__}")
        if check_keys:
            if key.startswith("$"):
                raise EncodeError(f"Key {key!r} must not start with '$'")
            if "." in key:
                raise EncodeError(f"Key {key!r} must not contain '.'")
        return utf8(key, "key")

    def document_size(self, container: Any, check_keys: bool) -> int:
        """Encoded size of a document or array, including prefix and terminator."""
        marker = id(container)
        cached = self._sizes.get(marker)
        if cached is not None:
            return cached[0]
        if marker in self._active:
            raise EncodeError("Cannot encode a container that contains itself")

        self._active.add(marker)
        size = 4 + 1
        for key, value in _items(container):
            size += self.element_size(key, value, check_keys)
        self._active.discard(marker)

        if size > MAX_WIRE_LENGTH:
            raise EncodeError(f"Document of {size} bytes exceeds the 32-bit length limit")
        self._sizes[marker] = (size, container)
        return size

    def element_size(self, key: Any, value: Any, check_keys: bool) -> int:
        """Encoded size of one element: tag, key and payload."""
        tag = self._registry.tag_for_value(value)
        key_size = len(self._key_bytes(key, check_keys)) + 1
        return 1 + key_size + self._payload_size(tag, value, check_keys)

    def _payload_size(self, tag: TypeTag, value: Any, check_keys: bool) -> int:
        if tag is TypeTag.DOCUMENT or tag is TypeTag.ARRAY:
            return self.document_size(value, check_keys)
        if tag is TypeTag.CODE_W_SCOPE:
            return self._code_w_scope_size(value)

        codec = SCALAR_CODECS[tag]
        if codec.size is None:
            return self._registry.spec_for_tag(tag).fixed_size or 0
        size = codec.size(value)
        if size > MAX_WIRE_LENGTH:
            raise EncodeError(f"Value of {size} bytes exceeds the 32-bit length limit")
        return size

    def _code_w_scope_size(self, value: Code) -> int:
        # Scope keys are variable names, never checked
        size = 4 + string_size(value.code) + self.document_size(value.scope, False)
        if size > MAX_WIRE_LENGTH:
            raise EncodeError(f"Code with scope of {size} bytes exceeds the 32-bit length limit")
        return size

    def write_document(self, writer: ByteWriter, container: Any, check_keys: bool) -> None:
        writer.write_int32(self.document_size(container, check_keys))
        for key, value in _items(container):
            tag = self._registry.tag_for_value(value)
            writer.write_byte(tag)
            writer.write_cstring(self._key_bytes(key, check_keys))
            self._write_payload(writer, tag, value, check_keys)
        writer.write_byte(0)

    def _write_payload(
        self, writer: ByteWriter, tag: TypeTag, value: Any, check_keys: bool
    ) -> None:
        if tag is TypeTag.DOCUMENT or tag is TypeTag.ARRAY:
            self.write_document(writer, value, check_keys)
            return

        if tag is TypeTag.CODE_W_SCOPE:
            writer.write_int32(self._code_w_scope_size(value))
            writer.write_string(utf8(value.code, "code"))
            self.write_document(writer, value.scope, False)
            return

        SCALAR_CODECS[tag].write(writer, value)


def sizeof_document(document: Mapping[str, Any], check_keys: bool = False) -> int:
    """Calculate the encoded size of a document without encoding it.

    Raises:
        EncodeError: Under the same conditions as encode()
    """
    return _Encoder(DEFAULT_REGISTRY).document_size(document, check_keys)


def sizeof_elements(document: Mapping[str, Any], check_keys: bool = False) -> dict[str, int]:
    """Encoded size of each top-level element (tag + key + payload), by key."""
    encoder = _Encoder(DEFAULT_REGISTRY)
    return {key: encoder.element_size(key, value, check_keys) for key, value in document.items()}
