"""Hex text helpers for captured packets."""

from __future__ import annotations

import re
from pathlib import Path

from .errors import InvalidHexInput

_NON_HEX = re.compile(r"[^0-9a-fA-F]")


def from_hex(text: str) -> bytes:
    """Convert hex text to bytes, ignoring every non-hex character."""
    digits = _NON_HEX.sub("", text)
    if len(digits) % 2:
        raise InvalidHexInput(f"Odd number of hex digits: {len(digits)}")
    return bytes.fromhex(digits)


def read_hex_file(path: str | Path) -> bytes:
    """Load a text file holding one packet as hex digits."""
    return from_hex(Path(path).read_text())
