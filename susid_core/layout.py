"""
susid_core/layout.py — SusId binary layout (16 bytes, big-endian).

    | timestamp (6) | random (8 - S) | type_id (1) | secret_id (1) | signature (S) |

S is the signature width, 1–4. The first 16 - S bytes are the prefix:
the input to signing. The layout is declared as a table of segments so the
"always exactly 16 bytes" invariant can be checked directly.

Conversion to the external form mirrors a standard UUID: 16 bytes, high
byte first, or two unsigned 64-bit halves (msb, lsb).
"""

from __future__ import annotations

import uuid
from functools import lru_cache
from typing import NamedTuple, Tuple

ID_BYTES = 16
TIMESTAMP_BYTES = 6
TIMESTAMP_MASK = (1 << (8 * TIMESTAMP_BYTES)) - 1

_U64_MASK = (1 << 64) - 1


class Segment(NamedTuple):
    name: str
    offset: int
    width: int

    @property
    def end(self) -> int:
        return self.offset + self.width


class UnpackedId(NamedTuple):
    """Raw fields of a 16-byte identifier. Carries no validity verdict."""
    timestamp: int
    random: bytes
    type_id: int
    secret_id: int
    signature: bytes
    prefix: bytes


class Layout:
    """Segment table for one signature width."""

    def __init__(self, signature_bytes: int) -> None:
        if not 1 <= signature_bytes <= 4:
            raise ValueError(
                f"Signature length must be 1-4, got {signature_bytes}"
            )
        self.signature_bytes = signature_bytes
        self.random_bytes = 8 - signature_bytes
        self.prefix_bytes = ID_BYTES - signature_bytes

        segments = []
        offset = 0
        for name, width in (
            ("timestamp", TIMESTAMP_BYTES),
            ("random", self.random_bytes),
            ("type_id", 1),
            ("secret_id", 1),
            ("signature", signature_bytes),
        ):
            segments.append(Segment(name, offset, width))
            offset += width
        self.segments: Tuple[Segment, ...] = tuple(segments)

        self.timestamp, self.random, self.type_id, self.secret_id, \
            self.signature = self.segments

    @classmethod
    def for_signature_bytes(cls, signature_bytes: int) -> "Layout":
        return _layout(signature_bytes)

    @property
    def total_bytes(self) -> int:
        return sum(s.width for s in self.segments)

    # ------------------------------------------------------------------
    # Packing
    # ------------------------------------------------------------------

    def pack_prefix(
        self,
        timestamp_ms: int,
        random: bytes,
        type_id: int,
        secret_id: int,
    ) -> bytes:
        """The signed bytes (everything but the signature). Timestamp
        wraps silently to 48 bits.

        Raises ValueError on a wrong-length random field or ids outside
        0-255.
        """
        if len(random) != self.random_bytes:
            raise ValueError(
                f"Random field must be {self.random_bytes} bytes, "
                f"got {len(random)}"
            )
        buf = bytearray(self.prefix_bytes)
        buf[self.timestamp.offset:self.timestamp.end] = (
            timestamp_ms & TIMESTAMP_MASK
        ).to_bytes(TIMESTAMP_BYTES, byteorder="big")
        buf[self.random.offset:self.random.end] = random
        buf[self.type_id.offset] = type_id
        buf[self.secret_id.offset] = secret_id
        return bytes(buf)

    def pack(
        self,
        timestamp_ms: int,
        random: bytes,
        type_id: int,
        secret_id: int,
        signature: bytes,
    ) -> bytes:
        """Assemble all 16 bytes."""
        if len(signature) != self.signature_bytes:
            raise ValueError(
                f"Signature must be {self.signature_bytes} bytes, "
                f"got {len(signature)}"
            )
        return (
            self.pack_prefix(timestamp_ms, random, type_id, secret_id)
            + signature
        )

    def unpack(self, data: bytes) -> UnpackedId:
        """Split 16 bytes into fields. Any 16 bytes are accepted."""
        if len(data) != ID_BYTES:
            raise ValueError(f"Identifier must be 16 bytes, got {len(data)}")
        ts = self.timestamp
        rnd = self.random
        sig = self.signature
        return UnpackedId(
            timestamp=int.from_bytes(data[ts.offset:ts.end], "big"),
            random=bytes(data[rnd.offset:rnd.end]),
            type_id=data[self.type_id.offset],
            secret_id=data[self.secret_id.offset],
            signature=bytes(data[sig.offset:sig.end]),
            prefix=bytes(data[:self.prefix_bytes]),
        )


@lru_cache(maxsize=None)
def _layout(signature_bytes: int) -> Layout:
    return Layout(signature_bytes)


# ---------------------------------------------------------------------------
# External representation
# ---------------------------------------------------------------------------

def to_uuid(data: bytes) -> uuid.UUID:
    return uuid.UUID(bytes=bytes(data))


def from_uuid(value: uuid.UUID) -> bytes:
    return value.bytes


def to_halves(data: bytes) -> Tuple[int, int]:
    """16 bytes → (msb, lsb) as unsigned 64-bit ints."""
    if len(data) != ID_BYTES:
        raise ValueError(f"Identifier must be 16 bytes, got {len(data)}")
    return (
        int.from_bytes(data[:8], "big"),
        int.from_bytes(data[8:], "big"),
    )


def from_halves(msb: int, lsb: int) -> bytes:
    """(msb, lsb) → 16 bytes.

    Signed 64-bit halves (as produced by JVM UUIDs) are accepted and
    reinterpreted as unsigned.
    """
    for half in (msb, lsb):
        if not -(1 << 63) <= half <= _U64_MASK:
            raise ValueError(f"Value does not fit in 64 bits: {half}")
    return (
        (msb & _U64_MASK).to_bytes(8, "big")
        + (lsb & _U64_MASK).to_bytes(8, "big")
    )
