"""bsonkit: Binary Document Codec

A Python library for encoding documents (nested mappings and sequences) into a
compact, length-prefixed little-endian binary form and decoding them back.

Key Features:
- Bit-exact round trips for every supported value type
- Pydantic-based immutable value types (ObjectId, Regex, Code, DBRef, ...)
- Bounds-checked, single-pass decoder with typed failure reasons
- Pure Python implementation

Quick Start:
    >>> from bsonkit import ObjectId, decode, encode
    >>>
    >>> doc = {"_id": ObjectId.generate(), "name": "Spongebob", "shoe_size": 9.5}
    >>> data = encode(doc)
    >>> decode(data) == doc
    True
"""

from __future__ import annotations

import logging

from .codec import (
    DEFAULT_REGISTRY,
    DecodeOptions,
    EncodeOptions,
    TypeRegistry,
    TypeSpec,
    TypeTag,
    decode,
    decode_all,
    decode_iter,
    encode,
)
from .exceptions import (
    BsonkitError,
    ConstructionError,
    DecodeError,
    DecodeReason,
    EncodeError,
)
from .models import (
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
from .utils import (
    documents_equal,
    element_sizes,
    encoded_size,
    iter_refs,
    resolve_refs,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Core API
    "encode",
    "decode",
    "decode_all",
    "decode_iter",
    "EncodeOptions",
    "DecodeOptions",
    # Value types
    "ObjectId",
    "Binary",
    "Code",
    "DBRef",
    "Int64",
    "MaxKey",
    "MinKey",
    "Regex",
    "Symbol",
    "Timestamp",
    # Type registry
    "TypeTag",
    "TypeSpec",
    "TypeRegistry",
    "DEFAULT_REGISTRY",
    # Exceptions
    "BsonkitError",
    "ConstructionError",
    "EncodeError",
    "DecodeError",
    "DecodeReason",
    # Utilities
    "encoded_size",
    "element_sizes",
    "documents_equal",
    "iter_refs",
    "resolve_refs",
    # Version
    "__version__",
]
