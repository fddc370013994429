"""Unit tests for encoding/decoding."""

from __future__ import annotations

import datetime
import re
from collections import OrderedDict
from typing import Any

import pytest

from bsonkit import (
    Binary,
    Code,
    DBRef,
    DecodeError,
    DecodeOptions,
    EncodeError,
    EncodeOptions,
    Int64,
    MaxKey,
    MinKey,
    ObjectId,
    Regex,
    Symbol,
    Timestamp,
    decode,
    decode_all,
    decode_iter,
    documents_equal,
    encode,
)

UTC = datetime.timezone.utc


class TestWireLayout:
    """Test exact bytes produced by the encoder."""

    def test_empty_document(self) -> None:
        """Test the smallest document: length prefix and terminator."""
        assert encode({}) == b"\x05\x00\x00\x00\x00"

    def test_int32(self) -> None:
        """Test Int32 element layout."""
        assert encode({"doc": 42}) == b"\x0e\x00\x00\x00\x10doc\x00\x2a\x00\x00\x00\x00"

    def test_string(self) -> None:
        """Test string element layout."""
        expected = (
            b"\x1b\x00\x00\x00"  # total length 27
            b"\x02doc\x00"  # tag + key
            b"\x0d\x00\x00\x00hello, world\x00"  # length 13 + text + NUL
            b"\x00"
        )
        assert encode({"doc": "hello, world"}) == expected

    def test_array_keys(self) -> None:
        """Test arrays are documents keyed by position."""
        expected = b"\x13\x00\x00\x00\x10" b"0\x00\x01\x00\x00\x00" b"\x101\x00\x02\x00\x00\x00\x00"
        data = encode({"a": [1, 2]})

        assert data[4:7] == b"\x04a\x00"
        assert data[7:-1] == expected

    def test_boolean_and_null(self) -> None:
        """Test one-byte and zero-byte payloads."""
        assert encode({"t": True, "n": None}) == b"\x0c\x00\x00\x00\x08t\x00\x01\x0an\x00\x00"

    def test_double(self) -> None:
        """Test Double element layout."""
        assert encode({"d": 1.0}) == (
            b"\x10\x00\x00\x00\x01d\x00\x00\x00\x00\x00\x00\x00\xf0\x3f\x00"
        )

    def test_length_matches_prefix(self, sample_document: dict[str, Any]) -> None:
        """Test the declared root length equals the encoded size."""
        data = encode(sample_document)

        assert int.from_bytes(data[:4], "little") == len(data)
        assert data[-1] == 0

    def test_key_order_preserved(self) -> None:
        """Test keys are written in mapping order."""
        data = encode({"b": 1, "a": 2})

        assert data.index(b"b\x00") < data.index(b"a\x00")


class TestIntegers:
    """Test integer width selection."""

    def test_small_int_is_int32(self) -> None:
        """Test ints within 32 bits use the Int32 tag."""
        assert encode({"n": -(1 << 31)})[4] == 0x10
        assert encode({"n": (1 << 31) - 1})[4] == 0x10

    def test_large_int_is_int64(self) -> None:
        """Test ints beyond 32 bits use the Int64 tag."""
        data = encode({"n": 1 << 31})

        assert data[4] == 0x12
        decoded = decode(data)["n"]
        assert decoded == 1 << 31
        assert type(decoded) is Int64

    def test_explicit_int64(self) -> None:
        """Test Int64 forces the wide encoding even for small values."""
        data = encode({"n": Int64(5)})

        assert data[4] == 0x12
        assert len(data) == 4 + 1 + 2 + 8 + 1
        assert decode(data)["n"] == Int64(5)

    def test_int32_stays_int(self) -> None:
        """Test an Int32 decodes to a plain int."""
        decoded = decode(encode({"doc": 42}))["doc"]

        assert type(decoded) is int

    def test_int_too_large(self) -> None:
        """Test ints outside 64 bits cannot be encoded."""
        with pytest.raises(EncodeError, match="64 bits"):
            encode({"n": 1 << 63})

    def test_bool_is_not_int(self) -> None:
        """Test bool keeps its own tag."""
        data = encode({"b": False})

        assert data[4] == 0x08
        assert decode(data)["b"] is False


class TestExtendedTypes:
    """Test round trips of the extended types."""

    def test_objectid(self, sample_oid: ObjectId) -> None:
        """Test ObjectId keeps all 12 bytes."""
        decoded = decode(encode({"doc": sample_oid}))["doc"]

        assert decoded == sample_oid
        assert decoded.binary == sample_oid.binary

    def test_datetime_milliseconds(self) -> None:
        """Test datetimes keep millisecond precision and drop the rest."""
        value = datetime.datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=UTC)

        decoded = decode(encode({"date": value}))["date"]

        assert decoded == datetime.datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=UTC)

    def test_datetime_before_epoch_floors(self) -> None:
        """Test sub-millisecond times before the epoch round down."""
        value = datetime.datetime(1969, 12, 31, 23, 59, 59, 999500, tzinfo=UTC)

        decoded = decode(encode({"date": value}))["date"]

        assert decoded == datetime.datetime(1969, 12, 31, 23, 59, 59, 999000, tzinfo=UTC)

    def test_naive_datetime_is_utc(self) -> None:
        """Test naive datetimes are taken as UTC."""
        naive = datetime.datetime(2020, 5, 17, 12, 0, 0)

        decoded = decode(encode({"date": naive}))["date"]

        assert decoded == naive.replace(tzinfo=UTC)

    def test_datetime_other_timezone(self) -> None:
        """Test aware datetimes are converted to UTC instants."""
        plus_two = datetime.timezone(datetime.timedelta(hours=2))
        value = datetime.datetime(2020, 5, 17, 14, 0, 0, tzinfo=plus_two)

        decoded = decode(encode({"date": value}))["date"]

        assert decoded == value
        assert decoded.tzinfo == UTC

    def test_datetime_naive_decode(self) -> None:
        """Test tz_aware=False returns naive UTC datetimes."""
        value = datetime.datetime(2020, 5, 17, 12, 0, 0, tzinfo=UTC)

        decoded = decode(encode({"date": value}), DecodeOptions(tz_aware=False))["date"]

        assert decoded == datetime.datetime(2020, 5, 17, 12, 0, 0)
        assert decoded.tzinfo is None

    def test_regex(self) -> None:
        """Test Regex pattern and flags survive."""
        decoded = decode(encode({"doc": Regex("foobar", "i")}))["doc"]

        assert decoded == Regex("foobar", "i")

    def test_native_pattern(self) -> None:
        """Test compiled Python patterns encode as Regex."""
        decoded = decode(encode({"doc": re.compile("foobar", re.IGNORECASE)}))["doc"]

        assert isinstance(decoded, Regex)
        assert decoded.pattern == "foobar"
        assert decoded.flags == "iu"

    def test_regex_flags_preserved_verbatim(self) -> None:
        """Test unrecognized and out-of-order flags read off the wire are kept."""
        data = b"\x0e\x00\x00\x00\x0br\x00a\x00zqi\x00\x00"

        decoded = decode(data)["r"]

        assert decoded.pattern == "a"
        assert decoded.flags == "zqi"
        assert encode({"r": decoded}) == data

    def test_symbol_distinct_from_string(self) -> None:
        """Test symbols decode to Symbol, strings to str."""
        decoded = decode(encode({"sym": Symbol("foo"), "str": "foo"}))

        assert type(decoded["sym"]) is Symbol
        assert type(decoded["str"]) is str
        assert decoded["sym"] == "foo"

    def test_code_without_scope(self) -> None:
        """Test plain code uses its own tag and has no scope."""
        data = encode({"$where": Code("this.a.b < this.b")})

        assert data[4] == 0x0D
        decoded = decode(data)["$where"]
        assert decoded == Code("this.a.b < this.b")
        assert decoded.scope is None

    def test_where_string_stays_string(self) -> None:
        """Test a plain str is a String whatever key it sits under."""
        data = encode({"$where": "this.a.b < this.b"})

        assert data[4] == 0x02
        assert decode(data) == {"$where": "this.a.b < this.b"}

    def test_code_with_empty_scope(self) -> None:
        """Test an empty scope is kept distinct from no scope."""
        data = encode({"c": Code("x", {})})

        assert data[4] == 0x0F
        decoded = decode(data)["c"]
        assert decoded.scope == {}
        assert decoded != Code("x")

    def test_code_with_scope(self) -> None:
        """Test scope bindings survive, including nested values."""
        value = Code("x + y", {"x": 1, "y": {"z": [True]}})

        decoded = decode(encode({"c": value}))["c"]

        assert decoded == value

    def test_decoded_scope_read_only(self) -> None:
        """Test decoded scopes are as immutable as constructed ones."""
        decoded = decode(encode({"c": Code("x", {"x": 1})}))["c"]

        with pytest.raises(TypeError):
            decoded.scope["x"] = 2
        assert hash(decoded) == hash(Code("x", {"x": 1}))

    def test_code_scope_layout(self) -> None:
        """Test code-with-scope total length covers code and scope."""
        data = encode({"c": Code("x", {})})

        assert data[7:11] == b"\x0f\x00\x00\x00"  # 4 + (4 + 2) + 5
        assert data[11:17] == b"\x02\x00\x00\x00x\x00"
        assert data[17:22] == b"\x05\x00\x00\x00\x00"

    def test_dbref(self, sample_oid: ObjectId) -> None:
        """Test DBRef keeps namespace and id."""
        data = encode({"dbref": DBRef("namespace", sample_oid)})

        assert data[4] == 0x0C
        decoded = decode(data)["dbref"]
        assert decoded.namespace == "namespace"
        assert decoded.id == sample_oid

    def test_dbref_layout(self, sample_oid: ObjectId) -> None:
        """Test DBRef payload is C-string namespace then raw ObjectId."""
        data = encode({"r": DBRef("ns", sample_oid)})

        assert data[7:10] == b"ns\x00"
        assert data[10:22] == sample_oid.binary

    def test_binary_generic(self) -> None:
        """Test plain bytes round-trip as bytes."""
        decoded = decode(encode({"b": b"\x00\xff"}))["b"]

        assert decoded == b"\x00\xff"
        assert type(decoded) is bytes

    def test_binary_subtype(self) -> None:
        """Test non-generic subtypes round-trip as Binary."""
        value = Binary(b"\x01" * 16, 4)

        decoded = decode(encode({"b": value}))["b"]

        assert decoded == value

    def test_binary_subtype_zero_decodes_to_bytes(self) -> None:
        """Test Binary with subtype 0 comes back as bytes."""
        decoded = decode(encode({"b": Binary(b"abc")}))["b"]

        assert decoded == b"abc"

    def test_timestamp(self) -> None:
        """Test Timestamp words are kept apart."""
        data = encode({"ts": Timestamp(1, 2)})

        assert data[8:16] == b"\x02\x00\x00\x00\x01\x00\x00\x00"
        assert decode(data)["ts"] == Timestamp(1, 2)

    def test_min_max_keys(self) -> None:
        """Test MinKey and MaxKey have no payload."""
        data = encode({"lo": MinKey(), "hi": MaxKey()})

        assert len(data) == 4 + (1 + 3) + (1 + 3) + 1
        assert decode(data) == {"lo": MinKey(), "hi": MaxKey()}

    def test_tuple_encodes_as_array(self) -> None:
        """Test tuples are arrays and decode as lists."""
        assert decode(encode({"t": (1, "a")})) == {"t": [1, "a"]}


class TestRoundTrip:
    """Test whole-document round trips."""

    def test_every_variant(self, sample_document: dict[str, Any]) -> None:
        """Test a document holding every variant."""
        decoded = decode(encode(sample_document))

        assert documents_equal(decoded, sample_document)
        assert list(decoded) == list(sample_document)

    def test_nested_documents(self) -> None:
        """Test nested documents and arrays keep order and types."""
        doc = {"a": {"b": {"c": [1, [2, {"d": 3.5}]]}}, "e": []}

        assert documents_equal(decode(encode(doc)), doc)

    def test_reencode_is_identical(self, sample_document: dict[str, Any]) -> None:
        """Test decode then encode gives back the same bytes."""
        data = encode(sample_document)

        assert encode(decode(data)) == data

    def test_shared_subdocument(self) -> None:
        """Test the same container referenced twice is not a cycle."""
        shared = {"x": 1}

        assert decode(encode({"a": shared, "b": shared})) == {"a": {"x": 1}, "b": {"x": 1}}

    def test_document_class(self) -> None:
        """Test decoding into a different mapping type."""
        decoded = decode(encode({"a": {"b": 1}}), DecodeOptions(document_class=OrderedDict))

        assert isinstance(decoded, OrderedDict)
        assert isinstance(decoded["a"], OrderedDict)

    def test_mapping_input(self) -> None:
        """Test any Mapping can be encoded."""
        assert decode(encode(OrderedDict([("a", 1)]))) == {"a": 1}


class TestDecodeMany:
    """Test decoding concatenated documents."""

    def test_decode_all(self) -> None:
        """Test several documents back to back."""
        data = encode({"a": 1}) + encode({"b": 2}) + encode({})

        assert decode_all(data) == [{"a": 1}, {"b": 2}, {}]

    def test_decode_all_empty(self) -> None:
        """Test an empty buffer holds no documents."""
        assert decode_all(b"") == []

    def test_decode_iter_is_lazy(self) -> None:
        """Test documents before a corrupt one are still produced."""
        data = encode({"a": 1}) + b"\x01\x02"
        documents = decode_iter(data)

        assert next(documents) == {"a": 1}
        with pytest.raises(DecodeError):
            next(documents)


class TestEncodeErrors:
    """Test encoding error handling."""

    def test_unsupported_type(self) -> None:
        """Test types outside the value model are rejected."""
        with pytest.raises(EncodeError, match="set"):
            encode({"s": {1, 2}})

    def test_top_level_must_be_mapping(self) -> None:
        """Test lists cannot be encoded at the top level."""
        with pytest.raises(EncodeError, match="mapping"):
            encode([1, 2])  # type: ignore[arg-type]

    def test_non_str_key(self) -> None:
        """Test keys must be strings."""
        with pytest.raises(EncodeError, match="keys must be str"):
            encode({1: "a"})  # type: ignore[dict-item]

    def test_key_with_nul(self) -> None:
        """Test keys cannot contain NUL."""
        with pytest.raises(EncodeError, match="NUL"):
            encode({"a\x00b": 1})

    def test_string_with_nul(self) -> None:
        """Test string values cannot contain NUL."""
        with pytest.raises(EncodeError, match="NUL"):
            encode({"s": "a\x00b"})

    def test_cyclic_document(self) -> None:
        """Test a document containing itself is rejected."""
        doc: dict[str, Any] = {}
        doc["self"] = doc

        with pytest.raises(EncodeError, match="contains itself"):
            encode(doc)

    def test_cyclic_array(self) -> None:
        """Test an array containing itself is rejected."""
        items: list[Any] = [1]
        items.append(items)

        with pytest.raises(EncodeError, match="contains itself"):
            encode({"a": items})

    def test_check_keys(self) -> None:
        """Test reserved key characters with check_keys."""
        options = EncodeOptions(check_keys=True)

        with pytest.raises(EncodeError, match=r"\$"):
            encode({"$where": 1}, options)
        with pytest.raises(EncodeError, match=r"\."):
            encode({"a": {"b.c": 1}}, options)

        # Allowed without check_keys
        assert decode(encode({"$where": 1, "b.c": 2})) == {"$where": 1, "b.c": 2}

    def test_check_keys_skips_scope(self) -> None:
        """Test code scopes are not subject to key checks."""
        data = encode({"c": Code("x", {"$x": 1})}, EncodeOptions(check_keys=True))

        assert decode(data)["c"].scope == {"$x": 1}

    def test_max_document_size(self) -> None:
        """Test documents above max_document_size are refused."""
        options = EncodeOptions(max_document_size=16)

        assert len(encode({"doc": 42}, options)) == 14
        with pytest.raises(EncodeError, match="max_document_size"):
            encode({"doc": "x" * 20}, options)

    def test_deep_nesting(self) -> None:
        """Test structures deeper than the interpreter can walk."""
        doc: dict[str, Any] = {}
        for _ in range(5_000):
            doc = {"a": doc}

        with pytest.raises(EncodeError, match="too deep"):
            encode(doc)
