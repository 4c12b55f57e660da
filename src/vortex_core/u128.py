"""128-bit values as opaque 16-byte little-endian blobs."""
from __future__ import annotations

from vortex_core.protocol import U128_LEN

U128_MAX = (1 << 128) - 1


def to_int(blob: bytes) -> int:
    """Interpret a 16-byte wire blob as an unsigned integer."""
    if len(blob) != U128_LEN:
        raise ValueError(f"u128 blob must be {U128_LEN} bytes, got {len(blob)}")
    return int.from_bytes(blob, "little")


def from_int(value: int) -> bytes:
    """Encode an unsigned integer as a 16-byte wire blob."""
    if not 0 <= value <= U128_MAX:
        raise ValueError(f"u128 out of range: {value}")
    return value.to_bytes(U128_LEN, "little")


def parse_decimal(text: str) -> int:
    """Parse a decimal numeral into a u128. Signs, whitespace and other bases are rejected."""
    if not text or not text.isascii() or not text.isdigit():
        raise ValueError(f"not a decimal numeral: {text!r}")
    value = int(text, 10)
    if value > U128_MAX:
        raise ValueError(f"does not fit in 128 bits: {text}")
    return value
