"""Byte-level writing and reading utilities.

This module provides the low-level primitives for the wire format. All
multi-byte integers and doubles are little-endian.
"""

from __future__ import annotations

import struct

from ..exceptions import DecodeError, DecodeReason, EncodeError

_INT32 = struct.Struct("<i")
_UINT32 = struct.Struct("<I")
_INT64 = struct.Struct("<q")
_DOUBLE = struct.Struct("<d")


def utf8(text: str, what: str) -> bytes:
    """Encode text for the wire.

    Both C strings and length-prefixed strings are NUL-terminated, and the
    decoder requires the first NUL to be the terminator, so embedded NULs are
    rejected here.

    Args:
        text: Text to encode
        what: Description used in error messages (e.g. "key", "string")

    Raises:
        EncodeError: If text contains NUL or cannot be encoded as UTF-8
    """
    try:
        data = text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodeError(f"{what} {text!r} is not encodable as UTF-8: {e.reason}") from e
    if b"\x00" in data:
        raise EncodeError(f"{what} {text!r} must not contain NUL characters")
    return data


class ByteWriter:
    """Appends wire primitives to a growing byte buffer.

    Example:
        >>> writer = ByteWriter()
        >>> writer.write_int32(5)
        >>> writer.write_byte(0)
        >>> writer.to_bytes()
        b'\\x05\\x00\\x00\\x00\\x00'
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write_byte(self, value: int) -> None:
        self._buffer.append(value)

    def write_int32(self, value: int) -> None:
        self._buffer += _INT32.pack(value)

    def write_uint32(self, value: int) -> None:
        self._buffer += _UINT32.pack(value)

    def write_int64(self, value: int) -> None:
        self._buffer += _INT64.pack(value)

    def write_double(self, value: float) -> None:
        self._buffer += _DOUBLE.pack(value)

    def write_bytes(self, data: bytes) -> None:
        self._buffer += data

    def write_cstring(self, data: bytes) -> None:
        """Write already-encoded text followed by a NUL terminator."""
        self._buffer += data
        self._buffer.append(0)

    def write_string(self, data: bytes) -> None:
        """Write already-encoded text as int32 length, bytes, NUL."""
        self._buffer += _INT32.pack(len(data) + 1)
        self._buffer += data
        self._buffer.append(0)

    def position(self) -> int:
        """Return the number of bytes written so far."""
        return len(self._buffer)

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)


class ByteReader:
    """Reads wire primitives from a byte buffer with a forward-only cursor.

    Every read is checked against ``limit``. Child readers created with
    :meth:`bounded` share the same underlying buffer but can never read past
    their own window, so a corrupted length in a nested value cannot reach
    into sibling data.

    Example:
        >>> reader = ByteReader(b"\\x2a\\x00\\x00\\x00")
        >>> reader.read_int32()
        42
        >>> reader.at_end()
        True
    """

    def __init__(self, data: bytes, start: int = 0, limit: int | None = None) -> None:
        """Initialize a reader over ``data[start:limit]``.

        Args:
            data: Byte buffer to read
            start: Initial cursor position
            limit: Exclusive upper bound for reads (defaults to len(data))
        """
        self._data = data
        self._position = start
        self._limit = len(data) if limit is None else limit

    def _require(self, num_bytes: int) -> int:
        """Reserve ``num_bytes`` for reading and return their start offset.

        Raises:
            DecodeError: TRUNCATED_INPUT if fewer bytes remain in the window
        """
        start = self._position
        if num_bytes > self._limit - start:
            raise DecodeError(
                DecodeReason.TRUNCATED_INPUT,
                f"need {num_bytes} bytes, have {self._limit - start}",
                start,
            )
        self._position = start + num_bytes
        return start

    def read_byte(self) -> int:
        return self._data[self._require(1)]

    def read_int32(self) -> int:
        return _INT32.unpack_from(self._data, self._require(4))[0]

    def read_uint32(self) -> int:
        return _UINT32.unpack_from(self._data, self._require(4))[0]

    def read_int64(self) -> int:
        return _INT64.unpack_from(self._data, self._require(8))[0]

    def read_double(self) -> float:
        return _DOUBLE.unpack_from(self._data, self._require(8))[0]

    def read_bytes(self, num_bytes: int) -> bytes:
        start = self._require(num_bytes)
        return self._data[start : start + num_bytes]

    def peek_byte(self, offset: int) -> int:
        """Return the byte at an absolute offset inside the window."""
        if not self._position <= offset < self._limit:
            raise DecodeError(DecodeReason.TRUNCATED_INPUT, "read past end of window", offset)
        return self._data[offset]

    def read_cstring(self) -> str:
        """Read UTF-8 text up to and including a NUL terminator.

        Raises:
            DecodeError: MALFORMED_STRING if no terminator is found in the window,
                INVALID_ENCODING if the text is not valid UTF-8
        """
        start = self._position
        end = self._data.find(b"\x00", start, self._limit)
        if end < 0:
            raise DecodeError(DecodeReason.MALFORMED_STRING, "unterminated C string", start)
        self._position = end + 1
        return _decode_utf8(self._data[start:end], start)

    def read_string(self) -> str:
        """Read a length-prefixed, NUL-terminated UTF-8 string.

        The declared length counts the terminator. The first NUL in the payload
        must sit exactly at the declared end.

        Raises:
            DecodeError: MALFORMED_STRING for a bad length or misplaced terminator,
                TRUNCATED_INPUT if the declared length runs past the window,
                INVALID_ENCODING if the text is not valid UTF-8
        """
        length_offset = self._position
        length = self.read_int32()
        start = self._position
        if length < 1:
            raise DecodeError(
                DecodeReason.MALFORMED_STRING, f"invalid string length {length}", length_offset
            )
        end = start + length - 1
        terminator = self._data.find(b"\x00", start, min(end + 1, self._limit))
        if terminator >= 0 and terminator != end:
            raise DecodeError(
                DecodeReason.MALFORMED_STRING,
                f"terminator at offset {terminator}, declared length puts it at {end}",
                length_offset,
            )
        if end >= self._limit:
            raise DecodeError(
                DecodeReason.TRUNCATED_INPUT,
                f"string of {length} bytes runs past end of window",
                length_offset,
            )
        if terminator < 0:
            raise DecodeError(
                DecodeReason.MALFORMED_STRING, "missing string terminator", length_offset
            )
        self._position = end + 1
        return _decode_utf8(self._data[start:end], start)

    def bounded(self, num_bytes: int) -> ByteReader:
        """Split off a child reader over the next ``num_bytes`` and skip past them.

        Raises:
            DecodeError: TRUNCATED_INPUT if fewer bytes remain in the window
        """
        start = self._require(num_bytes)
        return ByteReader(self._data, start, start + num_bytes)

    def position(self) -> int:
        """Return the absolute cursor offset."""
        return self._position

    def limit(self) -> int:
        return self._limit

    def remaining(self) -> int:
        return self._limit - self._position

    def at_end(self) -> bool:
        return self._position >= self._limit


def _decode_utf8(raw: bytes, offset: int) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(
            DecodeReason.INVALID_ENCODING, f"invalid UTF-8: {e.reason}", offset + e.start
        ) from e
