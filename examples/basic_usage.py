#!/usr/bin/env python3
"""Basic usage example for bsonkit.

This example demonstrates:
1. Building a document from plain Python values and bsonkit value types
2. Encoding to the length-prefixed binary format
3. Decoding back to a document
4. Calculating element sizes
"""

from __future__ import annotations

import datetime
import json

from bsonkit import (
    Code,
    DBRef,
    ObjectId,
    Regex,
    decode,
    documents_equal,
    element_sizes,
    encode,
    encoded_size,
)


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("bsonkit Basic Usage Example")
    print("=" * 60)
    print()

    # Create a document
    print("1. Creating a document...")
    owner_id = ObjectId.generate()
    doc = {
        "_id": ObjectId.generate(),
        "name": "Spongebob",
        "age": 42,
        "shoe_size": 9.5,
        "friends": ["Patrick", "Sandy"],
        "created": datetime.datetime.now(datetime.timezone.utc),
        "pattern": Regex("^sponge", "i"),
        "owner": DBRef("users", owner_id),
        "$where": Code("this.age > x", {"x": 40}),
    }

    for key, value in doc.items():
        print(f"   {key}: {value!r}")
    print()

    # Analyze element sizes
    print("2. Analyzing element sizes...")
    sizes = element_sizes(doc)
    for key, size in sizes.items():
        print(f"   {key}: {size} bytes")

    print(f"   Total: 4 + {sum(sizes.values())} + 1 = {encoded_size(doc)} bytes")
    print()

    # Encode the document
    print("3. Encoding to binary...")
    encoded_data = encode(doc)

    print(f"   Encoded size: {len(encoded_data)} bytes")
    print(f"   Hex: {encoded_data[:32].hex(' ')} ...")
    print()

    # Decode the document
    print("4. Decoding from binary...")
    decoded_doc = decode(encoded_data)

    for key, value in decoded_doc.items():
        print(f"   {key}: {value!r}")
    print()

    # Verify round-trip
    print("5. Verifying round-trip...")
    if documents_equal(decoded_doc, doc):
        print("   ✓ Round-trip successful! Documents match.")
    else:
        print("   ✗ Round-trip failed! Documents don't match.")
    print()

    # Compare to JSON for the parts JSON can express
    print("6. Comparing to JSON encoding...")

    plain = {"name": doc["name"], "age": doc["age"], "shoe_size": doc["shoe_size"]}
    json_bytes = json.dumps(plain).encode("utf-8")
    binary_bytes = encode(plain)

    print(f"   bsonkit size: {len(binary_bytes)} bytes")
    print(f"   JSON size: {len(json_bytes)} bytes")
    print("   (bsonkit trades size for typed values and O(1) skipping of fields)")
    print()

    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
