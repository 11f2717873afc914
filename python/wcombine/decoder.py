"""Single-packet decoder for Wialon Combine packets.

The packet format is:
  [head: 0x2424][type: varint7][sequence: u16][length: varint15]
  [payload: per type][crc16: u16]

All integers are big-endian.  The CRC is CRC-16/ARC over every byte before
the trailing two.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .constants import (
    CRC_SIZE,
    MIN_PACKET_SIZE,
    PACKET_DATA,
    PACKET_HEAD,
    PACKET_KEEP_ALIVE,
    PACKET_LOGIN,
)
from .crc import crc16
from .cursor import ByteCursor
from .errors import BadHeader, UnexpectedEof
from .payload import (
    KeepAliveBody,
    PacketBody,
    UnknownBody,
    decode_data,
    decode_login,
)
from .records import Record, flatten
from .response import CODE_CRC_ERROR, CODE_REGISTERED, ServerResponse, build_response

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrcResult:
    received: int
    calculated: int
    valid: bool


@dataclass(frozen=True)
class Packet:
    head: int
    type: int
    sequence: int
    length: int
    payload: PacketBody
    crc: CrcResult | None
    records: tuple[Record, ...]
    response: ServerResponse

    @property
    def crc_valid(self) -> bool:
        """True when the checksum matched or was not present."""
        return self.crc is None or self.crc.valid


def _decode_payload(cursor: ByteCursor, packet_type: int, length: int) -> PacketBody:
    if packet_type == PACKET_LOGIN:
        return decode_login(cursor)
    if packet_type == PACKET_DATA:
        return decode_data(cursor, length)
    if packet_type == PACKET_KEEP_ALIVE:
        return KeepAliveBody()
    return UnknownBody(cursor.read_bytes(length))


def _check_crc(cursor: ByteCursor) -> CrcResult | None:
    """Validate the trailing checksum if one follows the payload.

    With fewer than two bytes left the check is skipped and the packet
    counts as valid; short keep-alives from real trackers arrive that way.
    """
    if cursor.remaining < CRC_SIZE:
        logger.debug("no CRC after payload at offset %d, check skipped",
                     cursor.position)
        return None

    received = cursor.read_u16_be()
    calculated = crc16(cursor.data[:-CRC_SIZE])
    if received != calculated:
        logger.warning("CRC mismatch: received 0x%04x, calculated 0x%04x",
                       received, calculated)
    return CrcResult(received, calculated, received == calculated)


def decode(data: bytes) -> Packet:
    """Decode one complete packet.

    Raises BadHeader if the packet marker is wrong and UnexpectedEof if any
    field runs past the end of *data*.  A CRC mismatch is not an error: the
    packet is returned with ``crc.valid`` False and a CRC-error response.
    """
    if len(data) < MIN_PACKET_SIZE:
        raise UnexpectedEof(0, MIN_PACKET_SIZE, len(data))

    cursor = ByteCursor(data)

    head = cursor.read_u16_be()
    if head != PACKET_HEAD:
        raise BadHeader(head)

    packet_type = cursor.read_varint7()
    sequence = cursor.read_u16_be()
    length = cursor.read_varint15()
    logger.debug("packet type=%d seq=%d length=%d", packet_type, sequence, length)

    payload = _decode_payload(cursor, packet_type, length)
    crc = _check_crc(cursor)

    valid = crc is None or crc.valid
    response = build_response(CODE_REGISTERED if valid else CODE_CRC_ERROR, sequence)

    return Packet(
        head=head,
        type=packet_type,
        sequence=sequence,
        length=length,
        payload=payload,
        crc=crc,
        records=tuple(flatten(payload)),
        response=response,
    )
