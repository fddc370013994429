"""Binary document codec for bsonkit.

This module provides encoding and decoding between documents and their
length-prefixed binary form.
"""

from __future__ import annotations

from .decoder import decode, decode_all, decode_iter
from .encoder import encode, sizeof_document, sizeof_elements
from .options import DecodeOptions, EncodeOptions
from .registry import DEFAULT_REGISTRY, TypeRegistry, TypeSpec, TypeTag

__all__ = [
    "encode",
    "decode",
    "decode_all",
    "decode_iter",
    "sizeof_document",
    "sizeof_elements",
    "EncodeOptions",
    "DecodeOptions",
    "DEFAULT_REGISTRY",
    "TypeRegistry",
    "TypeSpec",
    "TypeTag",
]
