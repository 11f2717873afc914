"""Exceptions raised by the packet codec."""

from __future__ import annotations


class DecodeError(ValueError):
    """Base class for packets that cannot be decoded."""


class BadHeader(DecodeError):
    """The first two bytes are not the 0x2424 packet marker."""

    def __init__(self, found: int):
        self.found = found
        super().__init__(f"Bad packet header: 0x{found:04x}")


class UnexpectedEof(DecodeError):
    """A read needed more bytes than the buffer holds."""

    def __init__(self, position: int, needed: int, available: int):
        self.position = position
        self.needed = needed
        self.available = available
        super().__init__(
            f"Unexpected end of data at offset {position}: "
            f"need {needed} bytes, {available} available"
        )


class InvalidPictureLength(UnexpectedEof):
    """A picture subrecord declares more image bytes than remain."""

    def __init__(self, position: int, needed: int, available: int):
        super().__init__(position, needed, available)
        self.args = (
            f"Picture length {needed} exceeds remaining {available} bytes "
            f"at offset {position}",
        )


class InvalidHexInput(ValueError):
    """Hex text has an odd number of digits."""
