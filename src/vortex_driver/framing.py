"""Sized read and write buffers for the driver byte protocol.

Reader: `begin(n)` pulls exactly n bytes from the input, then typed values are
decoded from that buffer in order. The whole buffer must be consumed before
the next `begin`.

Writer: `begin(n)` allocates exactly n bytes, typed values are encoded into
it in order, and `flush` sends it. The buffer must be completely filled
before `flush` or the next `begin`.
"""
from __future__ import annotations

import struct
from typing import BinaryIO

from vortex_core.errors import EndOfStream, FramingError
from vortex_core.protocol import U128_LEN

U8 = struct.Struct("<B")
U16 = struct.Struct("<H")
U32 = struct.Struct("<I")
U64 = struct.Struct("<Q")

# Per-read upper bound: a bogus count runs out of input before it runs out of memory.
READ_CHUNK = 1 << 20


class FramedReader:
    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.buffer = b""
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.buffer) - self.offset

    def begin(self, count: int) -> None:
        if self.remaining:
            raise FramingError(f"existing read buffer has {self.remaining} bytes remaining")

        chunks: list[bytes] = []
        received = 0
        while received < count:
            chunk = self.stream.read(min(count - received, READ_CHUNK))
            if not chunk:
                raise EndOfStream(count, received)
            chunks.append(chunk)
            received += len(chunk)

        self.buffer = b"".join(chunks)
        self.offset = 0

    def _take(self, s: struct.Struct) -> int:
        if s.size > self.remaining:
            raise FramingError(f"read of {s.size} bytes with {self.remaining} remaining")
        (value,) = s.unpack_from(self.buffer, self.offset)
        self.offset += s.size
        return value

    def u8(self) -> int:
        return self._take(U8)

    def u16(self) -> int:
        return self._take(U16)

    def u32(self) -> int:
        return self._take(U32)

    def u64(self) -> int:
        return self._take(U64)

    def u128(self) -> bytes:
        if U128_LEN > self.remaining:
            raise FramingError(f"read of {U128_LEN} bytes with {self.remaining} remaining")
        value = self.buffer[self.offset:self.offset + U128_LEN]
        self.offset += U128_LEN
        return value


class FramedWriter:
    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.buffer = bytearray()
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.buffer) - self.offset

    def begin(self, size: int) -> None:
        if self.remaining:
            raise FramingError(f"existing write buffer has {self.remaining} bytes remaining")
        self.buffer = bytearray(size)
        self.offset = 0

    def flush(self) -> None:
        """Write the buffer to the output. The buffer must be filled."""
        if self.remaining:
            raise FramingError(f"buffer has {self.remaining} bytes remaining, refusing to write")

        view = memoryview(self.buffer)
        sent = 0
        while sent < len(view):
            # Raw streams may accept fewer bytes than offered, or none (None) when they would block.
            n = self.stream.write(view[sent:])
            sent += n or 0
        self.stream.flush()

        self.buffer = bytearray()
        self.offset = 0

    def _put(self, s: struct.Struct, value: int) -> None:
        if s.size > self.remaining:
            raise FramingError(f"write of {s.size} bytes with {self.remaining} remaining")
        try:
            s.pack_into(self.buffer, self.offset, value)
        except struct.error as e:
            raise FramingError(f"cannot encode {value!r} in {s.size} bytes: {e}") from e
        self.offset += s.size

    def u8(self, value: int) -> None:
        self._put(U8, value)

    def u16(self, value: int) -> None:
        self._put(U16, value)

    def u32(self, value: int) -> None:
        self._put(U32, value)

    def u64(self, value: int) -> None:
        self._put(U64, value)

    def u128(self, value: bytes) -> None:
        if len(value) != U128_LEN:
            raise FramingError(f"u128 value must be {U128_LEN} bytes, got {len(value)}")
        if U128_LEN > self.remaining:
            raise FramingError(f"write of {U128_LEN} bytes with {self.remaining} remaining")
        self.buffer[self.offset:self.offset + U128_LEN] = value
        self.offset += U128_LEN
