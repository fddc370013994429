"""ObjectId: 12-byte globally unique identifier.

Layout (all big-endian, unlike the rest of the wire format):
- 4 bytes: seconds since the Unix epoch
- 5 bytes: random value, fixed per process
- 3 bytes: counter, starting at a random value
"""

from __future__ import annotations

import datetime
import os
import random
import struct
import threading

from pydantic import field_validator

from ..exceptions import ConstructionError
from .base import BaseValue

OBJECTID_SIZE = 12

_COUNTER_MASK = 0xFFFFFF


class _Generator:
    """Process-local source of the random and counter components."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pid = -1
        self._random = b""
        self._counter = 0

    def next(self) -> tuple[bytes, int]:
        with self._lock:
            # Forked children must not share the parent's sequence
            pid = os.getpid()
            if pid != self._pid:
                self._pid = pid
                self._random = os.urandom(5)
                self._counter = random.SystemRandom().randint(0, _COUNTER_MASK)
            self._counter = (self._counter + 1) & _COUNTER_MASK
            return self._random, self._counter


_GENERATOR = _Generator()


class ObjectId(BaseValue):
    """A 12-byte identifier.

    Example:
        >>> oid = ObjectId.generate()
        >>> ObjectId.from_hex(oid.hex) == oid
        True
    """

    binary: bytes

    def __init__(self, binary: bytes) -> None:
        super().__init__(binary=binary)

    @field_validator("binary")
    @classmethod
    def _check_size(cls, value: bytes) -> bytes:
        if len(value) != OBJECTID_SIZE:
            raise ValueError(f"ObjectId must be {OBJECTID_SIZE} bytes, got {len(value)}")
        return value

    @classmethod
    def generate(cls) -> ObjectId:
        """Create a new ObjectId for the current time."""
        seconds = int(datetime.datetime.now(datetime.timezone.utc).timestamp())
        rand, counter = _GENERATOR.next()
        binary = (
            struct.pack(">I", seconds & 0xFFFFFFFF) + rand + counter.to_bytes(3, "big")
        )
        return cls.model_construct(binary=binary)

    @classmethod
    def from_hex(cls, text: str) -> ObjectId:
        """Parse a 24-character hex string.

        Raises:
            ConstructionError: If text is not 24 hex digits
        """
        if not isinstance(text, str) or len(text) != OBJECTID_SIZE * 2:
            raise ConstructionError(f"ObjectId hex must be 24 characters, got {text!r}")
        try:
            return cls(bytes.fromhex(text))
        except ValueError as err:
            raise ConstructionError(f"Invalid ObjectId hex {text!r}: {err}") from err

    @classmethod
    def from_datetime(cls, when: datetime.datetime) -> ObjectId:
        """Build the smallest ObjectId for a given time, for range queries.

        Naive datetimes are taken as UTC.
        """
        if when.tzinfo is None:
            when = when.replace(tzinfo=datetime.timezone.utc)
        seconds = int(when.timestamp())
        return cls(struct.pack(">I", seconds & 0xFFFFFFFF) + b"\x00" * 8)

    @property
    def hex(self) -> str:
        return self.binary.hex()

    @property
    def generation_time(self) -> datetime.datetime:
        """Creation time encoded in the first four bytes (UTC, whole seconds)."""
        seconds = struct.unpack(">I", self.binary[:4])[0]
        return datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc)

    def __str__(self) -> str:
        return self.hex

    def __repr__(self) -> str:
        return f"ObjectId({self.hex!r})"
