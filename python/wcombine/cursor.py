"""Bounds-checked sequential reader over a packet buffer.

All multi-byte integers on the wire are big-endian.  The two extensible
fields work like this:

  varint7   1 byte, or 2 bytes when bit 7 of the first byte is set
            (the remaining 15 bits form the value)
  varint15  2 bytes, or 4 bytes when bit 15 of the first word is set
            (the remaining 31 bits form the value)
"""

from __future__ import annotations

import struct

from .constants import VARINT7_FLAG, VARINT15_FLAG
from .errors import UnexpectedEof


class ByteCursor:
    """Reads primitives from an immutable byte buffer, advancing a cursor."""

    def __init__(self, data: bytes, position: int = 0):
        self.data = bytes(data)
        self.position = position

    def __len__(self) -> int:
        return len(self.data)

    @property
    def remaining(self) -> int:
        return len(self.data) - self.position

    def _require(self, n: int) -> None:
        if n > self.remaining:
            raise UnexpectedEof(self.position, n, max(self.remaining, 0))

    def unpack(self, fmt: str) -> int | float:
        """Read one value with a single-field struct format, e.g. ">h"."""
        size = struct.calcsize(fmt)
        self._require(size)
        value = struct.unpack_from(fmt, self.data, self.position)[0]
        self.position += size
        return value

    def read_u8(self) -> int:
        return self.unpack(">B")

    def read_u16_be(self) -> int:
        return self.unpack(">H")

    def read_u32_be(self) -> int:
        return self.unpack(">I")

    def read_u64_be(self) -> int:
        high = self.read_u32_be()
        low = self.read_u32_be()
        return (high << 32) | low

    def read_bytes(self, n: int) -> bytes:
        self._require(n)
        chunk = self.data[self.position:self.position + n]
        self.position += n
        return chunk

    def read_cstring(self) -> str:
        """Read up to a NUL terminator, or to the end of the buffer.

        Hitting the end without a terminator is not an error; the text read
        so far is returned.  Devices rely on this, so keep it lax.
        """
        end = self.data.find(b"\x00", self.position)
        if end < 0:
            raw = self.data[self.position:]
            self.position = len(self.data)
        else:
            raw = self.data[self.position:end]
            self.position = end + 1
        return raw.decode("latin-1")

    def read_varint7(self) -> int:
        first = self.read_u8()
        if first & VARINT7_FLAG:
            return ((first & 0x7F) << 8) | self.read_u8()
        return first

    def read_varint15(self) -> int:
        first = self.read_u16_be()
        if first & VARINT15_FLAG:
            return ((first & 0x7FFF) << 16) | self.read_u16_be()
        return first
