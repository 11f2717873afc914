"""Server acknowledgment frames.

  [0x40 0x40][code: u8][sequence: u16 BE]
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from .constants import RESPONSE_HEAD

RESPONSE_FMT = ">HBH"

CODE_REGISTERED = 0
CODE_AUTH_ERROR = 1
CODE_BAD_PASSWORD = 2
CODE_NOT_REGISTERED = 3
CODE_CRC_ERROR = 4
CODE_DEVICE_COMMAND = 255

RESPONSE_DESCRIPTIONS = {
    CODE_REGISTERED: "registered",
    CODE_AUTH_ERROR: "auth error",
    CODE_BAD_PASSWORD: "bad password",
    CODE_NOT_REGISTERED: "not registered",
    CODE_CRC_ERROR: "CRC error",
    CODE_DEVICE_COMMAND: "device command",
}


@dataclass(frozen=True)
class ServerResponse:
    code: int
    sequence: int
    raw_bytes: bytes
    description: str


def describe_response(code: int) -> str:
    return RESPONSE_DESCRIPTIONS.get(code, "unknown response code")


def build_response(code: int, sequence: int) -> ServerResponse:
    """Build the acknowledgment for packet *sequence* with result *code*."""
    raw = struct.pack(RESPONSE_FMT, RESPONSE_HEAD, code, sequence)
    return ServerResponse(code, sequence, raw, describe_response(code))
