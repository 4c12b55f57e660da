"""Whole-record codec driven by the layout tables in `vortex_core.protocol`.

Records are plain dicts keyed by layout field name. 128-bit fields stay 16-byte blobs.
"""
from __future__ import annotations

from typing import Any, Iterable

from vortex_core.errors import FramingError

from .framing import FramedReader, FramedWriter

Layout = tuple[tuple[str, str], ...]

_READERS = {
    "B": FramedReader.u8,
    "H": FramedReader.u16,
    "I": FramedReader.u32,
    "Q": FramedReader.u64,
    "16s": FramedReader.u128,
}

_WRITERS = {
    "B": FramedWriter.u8,
    "H": FramedWriter.u16,
    "I": FramedWriter.u32,
    "Q": FramedWriter.u64,
    "16s": FramedWriter.u128,
}

_ZERO = {"B": 0, "H": 0, "I": 0, "Q": 0, "16s": bytes(16)}


def decode(reader: FramedReader, layout: Layout, ignored: Iterable[str] = ()) -> dict[str, Any]:
    """Decode one record. Fields in `ignored` are consumed from the wire but not returned."""
    skip = frozenset(ignored)
    record: dict[str, Any] = {}
    for name, code in layout:
        value = _READERS[code](reader)
        if name not in skip:
            record[name] = value
    return record


def encode(writer: FramedWriter, layout: Layout, record: dict[str, Any], zeroed: Iterable[str] = ()) -> None:
    """Encode one record. Fields in `zeroed` are written as zero whatever the record holds."""
    zero = frozenset(zeroed)
    for name, code in layout:
        if name in zero:
            value = _ZERO[code]
        else:
            try:
                value = record[name]
            except KeyError:
                raise FramingError(f"record is missing field {name!r}") from None
        _WRITERS[code](writer, value)
