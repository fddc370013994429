"""File inspection CLI commands."""

from __future__ import annotations

import logging
import pprint
from pathlib import Path
from typing import Any

from ..codec.decoder import decode_all
from ..codec.registry import DEFAULT_REGISTRY
from ..utils.sizing import element_sizes, encoded_size

logger = logging.getLogger(__name__)

_WIDTH = 54


def load_documents(file_path: Path) -> list[Any]:
    """Decode every document stored back to back in a file.

    Raises:
        DecodeError: If the file contents are not valid encoded documents
    """
    data = file_path.read_bytes()
    logger.debug("Read %d bytes from %s", len(data), file_path)
    documents = decode_all(data)
    logger.debug("Decoded %d documents", len(documents))
    return documents


def _print_header(file_path: Path, count: int) -> None:
    print("|" * 7, "bsonkit: Binary Document Codec", "|" * 7)
    print(f"{file_path}: {count} document{'s' if count != 1 else ''} loaded.")
    print()


def dump_file(file_path: Path) -> None:
    """Print every document in a file."""
    documents = load_documents(file_path)
    _print_header(file_path, len(documents))

    for index, document in enumerate(documents):
        print(f"{'=' * 19} document {index} {'=' * 19}")
        pprint.pprint(document, sort_dicts=False)
        print()


def size_file(file_path: Path) -> None:
    """Print the encoded size of every document and of its top-level elements."""
    documents = load_documents(file_path)
    _print_header(file_path, len(documents))
    print("Sizes are in bytes.")
    print()

    for index, document in enumerate(documents):
        print(f"{'=' * 19} document {index} {'=' * 19}")
        total = encoded_size(document)
        print(f"Encoded size: {total} bytes")
        print(f"        length prefix{'.' * (_WIDTH - 22)}4")

        for position, (key, size) in enumerate(element_sizes(document).items(), 1):
            tag = DEFAULT_REGISTRY.tag_for_value(document[key])
            kind = DEFAULT_REGISTRY.spec_for_tag(tag).name
            field_desc = f"{position}. {key}"
            dots = "." * max(1, _WIDTH - len(field_desc) - len(str(size)) - len(kind) - 3)
            print(f"        {field_desc}{dots}{size} ({kind})")

        print(f"        terminator{'.' * (_WIDTH - 19)}1")
        print()


def hex_file(file_path: Path) -> None:
    """Print a hex dump of a file, 16 bytes per row."""
    data = file_path.read_bytes()
    print(f"{file_path}: {len(data)} bytes")
    for offset in range(0, len(data), 16):
        row = data[offset : offset + 16]
        text = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in row)
        print(f"{offset:08x}  {row.hex(' '):<47}  {text}")
