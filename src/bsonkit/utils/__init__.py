"""Utility functions for bsonkit.

This module provides size calculation, structural comparison and DBRef helpers.
"""

from __future__ import annotations

from .compare import documents_equal
from .refs import iter_refs, resolve_refs
from .sizing import element_sizes, encoded_size

__all__ = [
    # Sizing functions
    "encoded_size",
    "element_sizes",
    # Comparison
    "documents_equal",
    # References
    "iter_refs",
    "resolve_refs",
]
