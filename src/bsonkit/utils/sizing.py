"""Document size calculation utilities.

This module provides functions to calculate the encoded size of documents
without actually encoding them.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..codec.encoder import sizeof_document, sizeof_elements


def encoded_size(document: Mapping[str, Any]) -> int:
    """Calculate the encoded size of a document in bytes.

    The size includes the 4-byte length prefix and the terminating NUL.

    Args:
        document: Document to calculate size for

    Returns:
        Size in bytes

    Raises:
        EncodeError: If the document cannot be encoded

    Example:
        >>> encoded_size({})
        5
        >>> encoded_size({"doc": 42})
        14
    """
    return sizeof_document(document)


def element_sizes(document: Mapping[str, Any]) -> dict[str, int]:
    """Get the size in bytes of each top-level element of a document.

    Each size covers the tag byte, the key and its terminator, and the payload.

    Args:
        document: Document to analyze

    Returns:
        Dictionary mapping keys to their encoded size in bytes

    Raises:
        EncodeError: If the document cannot be encoded

    Example:
        >>> element_sizes({"doc": 42, "ok": True})
        {'doc': 9, 'ok': 5}
    """
    return sizeof_elements(document)
