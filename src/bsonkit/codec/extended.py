"""Payload rules for the non-container wire types.

Each entry pairs a size rule, a write rule and a read rule for one tag. The
container types (document, array, code with scope) recurse into the codec and
are handled by the encoder and decoder themselves.
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from ..exceptions import DecodeError, DecodeReason
from ..models import Binary, Code, DBRef, Int64, MaxKey, MinKey, ObjectId, Regex, Symbol, Timestamp
from ..models.objectid import OBJECTID_SIZE
from .buffer import ByteReader, ByteWriter, utf8
from .options import DecodeOptions
from .registry import TypeTag

EPOCH_AWARE = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
EPOCH_NAIVE = datetime.datetime(1970, 1, 1)

_ONE_MILLISECOND = datetime.timedelta(milliseconds=1)

# Binary subtype whose payload decodes to plain bytes
BINARY_SUBTYPE_GENERIC = 0


@dataclass(frozen=True)
class PayloadCodec:
    """Size, write and read rules for one wire type.

    Attributes:
        write: Writes the payload of a value
        read: Reads a payload and returns the Python value
        size: Payload size of a value; None means the registry's fixed width
    """

    write: Callable[[ByteWriter, Any], None]
    read: Callable[[ByteReader, DecodeOptions], Any]
    size: Optional[Callable[[Any], int]] = None


def string_size(text: str) -> int:
    return 4 + len(utf8(text, "string")) + 1


# DateTime


def datetime_to_millis(value: datetime.datetime) -> int:
    """Milliseconds since the epoch, floored; naive datetimes are UTC."""
    epoch = EPOCH_NAIVE if value.tzinfo is None else EPOCH_AWARE
    return (value - epoch) // _ONE_MILLISECOND


def millis_to_datetime(millis: int, tz_aware: bool = True, offset: int | None = None) -> datetime.datetime:
    """Inverse of datetime_to_millis, exact to the millisecond.

    Raises:
        DecodeError: INVALID_ENCODING if the instant is outside Python's datetime range
    """
    try:
        value = EPOCH_AWARE + datetime.timedelta(milliseconds=millis)
    except OverflowError as e:
        raise DecodeError(
            DecodeReason.INVALID_ENCODING, f"datetime {millis}ms out of range", offset
        ) from e
    return value if tz_aware else value.replace(tzinfo=None)


def _write_datetime(writer: ByteWriter, value: datetime.datetime) -> None:
    writer.write_int64(datetime_to_millis(value))


def _read_datetime(reader: ByteReader, options: DecodeOptions) -> datetime.datetime:
    offset = reader.position()
    return millis_to_datetime(reader.read_int64(), options.tz_aware, offset)


# Regex


def regex_parts(value: Regex | re.Pattern[str]) -> tuple[str, str]:
    """Pattern and flags of a Regex or a compiled Python pattern."""
    if isinstance(value, re.Pattern):
        value = Regex.from_native(value)
    return value.pattern, value.flags


def _regex_size(value: Regex | re.Pattern[str]) -> int:
    pattern, flags = regex_parts(value)
    return len(utf8(pattern, "regex pattern")) + 1 + len(utf8(flags, "regex flags")) + 1


def _write_regex(writer: ByteWriter, value: Regex | re.Pattern[str]) -> None:
    pattern, flags = regex_parts(value)
    writer.write_cstring(utf8(pattern, "regex pattern"))
    writer.write_cstring(utf8(flags, "regex flags"))


def _read_regex(reader: ByteReader, options: DecodeOptions) -> Regex:
    pattern = reader.read_cstring()
    flags = reader.read_cstring()
    # Flags read off the wire are kept verbatim, even unrecognized ones
    return Regex.model_construct(pattern=pattern, flags=flags)


# DBRef


def _dbref_size(value: DBRef) -> int:
    return len(utf8(value.namespace, "namespace")) + 1 + OBJECTID_SIZE


def _write_dbref(writer: ByteWriter, value: DBRef) -> None:
    writer.write_cstring(utf8(value.namespace, "namespace"))
    writer.write_bytes(value.id.binary)


def _read_dbref(reader: ByteReader, options: DecodeOptions) -> DBRef:
    namespace = reader.read_cstring()
    oid = ObjectId.model_construct(binary=reader.read_bytes(OBJECTID_SIZE))
    return DBRef.model_construct(namespace=namespace, id=oid)


# Binary


def binary_parts(value: bytes | Binary) -> tuple[bytes, int]:
    if isinstance(value, Binary):
        return value.data, value.subtype
    return bytes(value), BINARY_SUBTYPE_GENERIC


def _binary_size(value: bytes | Binary) -> int:
    data, _ = binary_parts(value)
    return 4 + 1 + len(data)


def _write_binary(writer: ByteWriter, value: bytes | Binary) -> None:
    data, subtype = binary_parts(value)
    writer.write_int32(len(data))
    writer.write_byte(subtype)
    writer.write_bytes(data)


def _read_binary(reader: ByteReader, options: DecodeOptions) -> bytes | Binary:
    offset = reader.position()
    length = reader.read_int32()
    if length < 0:
        raise DecodeError(DecodeReason.LENGTH_MISMATCH, f"negative binary length {length}", offset)
    subtype = reader.read_byte()
    data = reader.read_bytes(length)
    if subtype == BINARY_SUBTYPE_GENERIC:
        return data
    return Binary.model_construct(data=data, subtype=subtype)


# Strings: plain, code and symbol share the string payload


def _write_string(writer: ByteWriter, value: str) -> None:
    writer.write_string(utf8(value, "string"))


def _read_string(reader: ByteReader, options: DecodeOptions) -> str:
    return reader.read_string()


def _code_size(value: Code) -> int:
    return string_size(value.code)


def _write_code(writer: ByteWriter, value: Code) -> None:
    writer.write_string(utf8(value.code, "code"))


def _read_code(reader: ByteReader, options: DecodeOptions) -> Code:
    return Code.model_construct(code=reader.read_string(), scope=None)


def _read_symbol(reader: ByteReader, options: DecodeOptions) -> Symbol:
    return Symbol(reader.read_string())


# Fixed-width scalars


def _read_boolean(reader: ByteReader, options: DecodeOptions) -> bool:
    offset = reader.position()
    value = reader.read_byte()
    if value > 1:
        raise DecodeError(DecodeReason.INVALID_ENCODING, f"boolean byte 0x{value:02x}", offset)
    return value == 1


def _write_timestamp(writer: ByteWriter, value: Timestamp) -> None:
    writer.write_uint32(value.inc)
    writer.write_uint32(value.time)


def _read_timestamp(reader: ByteReader, options: DecodeOptions) -> Timestamp:
    inc = reader.read_uint32()
    time = reader.read_uint32()
    return Timestamp.model_construct(time=time, inc=inc)


def _write_nothing(writer: ByteWriter, value: Any) -> None:
    return None


SCALAR_CODECS: Mapping[TypeTag, PayloadCodec] = MappingProxyType(
    {
        TypeTag.DOUBLE: PayloadCodec(
            write=lambda w, v: w.write_double(v),
            read=lambda r, o: r.read_double(),
        ),
        TypeTag.STRING: PayloadCodec(write=_write_string, read=_read_string, size=string_size),
        TypeTag.BINARY: PayloadCodec(write=_write_binary, read=_read_binary, size=_binary_size),
        TypeTag.OBJECTID: PayloadCodec(
            write=lambda w, v: w.write_bytes(v.binary),
            read=lambda r, o: ObjectId.model_construct(binary=r.read_bytes(OBJECTID_SIZE)),
        ),
        TypeTag.BOOLEAN: PayloadCodec(
            write=lambda w, v: w.write_byte(1 if v else 0),
            read=_read_boolean,
        ),
        TypeTag.DATETIME: PayloadCodec(write=_write_datetime, read=_read_datetime),
        TypeTag.NULL: PayloadCodec(write=_write_nothing, read=lambda r, o: None),
        TypeTag.REGEX: PayloadCodec(write=_write_regex, read=_read_regex, size=_regex_size),
        TypeTag.DBREF: PayloadCodec(write=_write_dbref, read=_read_dbref, size=_dbref_size),
        TypeTag.CODE: PayloadCodec(write=_write_code, read=_read_code, size=_code_size),
        TypeTag.SYMBOL: PayloadCodec(write=_write_string, read=_read_symbol, size=string_size),
        TypeTag.INT32: PayloadCodec(
            write=lambda w, v: w.write_int32(v),
            read=lambda r, o: r.read_int32(),
        ),
        TypeTag.TIMESTAMP: PayloadCodec(write=_write_timestamp, read=_read_timestamp),
        TypeTag.INT64: PayloadCodec(
            write=lambda w, v: w.write_int64(v),
            read=lambda r, o: Int64(r.read_int64()),
        ),
        TypeTag.MAXKEY: PayloadCodec(write=_write_nothing, read=lambda r, o: MaxKey()),
        TypeTag.MINKEY: PayloadCodec(write=_write_nothing, read=lambda r, o: MinKey()),
    }
)

# Tags whose payload embeds a document
CONTAINER_TAGS = frozenset({TypeTag.DOCUMENT, TypeTag.ARRAY, TypeTag.CODE_W_SCOPE})
