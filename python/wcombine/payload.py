"""Payload types and decoders for Login, Data and Keep-Alive packets.

A Data payload is a run of messages:

  [time: u32][count: u8][subrecord × count]

and each subrecord starts with a varint7 tag:

  0  custom parameters   [count: varint7][sensor × count]
  1  position            fixed 17 bytes
  3  picture             [index: varint7][length: varint15][fragments: varint7]
                         [name: cstring][data: length bytes]
  4  LBS                 [count: u8][6 × u16 × count]

A custom parameter is [sensor_number: varint7][sensor_type: u8][value].  The
low five bits of sensor_type pick the value encoding (ParamType) and bits
5-7 a decimal scale applied to integer encodings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from .constants import (
    COORD_SCALE,
    HDOP_SCALE,
    PARAM_SCALE_MASK,
    PARAM_SCALE_SHIFT,
    PARAM_TYPE_MASK,
    SUBRECORD_CUSTOM_PARAMETERS,
    SUBRECORD_LBS,
    SUBRECORD_PICTURE,
    SUBRECORD_POSITION,
)
from .cursor import ByteCursor
from .errors import InvalidPictureLength

logger = logging.getLogger(__name__)


class IdType(IntEnum):
    """Encoding of the login id (high nibble of flags) and password (low nibble)."""
    ABSENT = 0
    U16 = 1
    U32 = 2
    U64 = 3
    STRING = 4


class ParamType(IntEnum):
    U8 = 0
    U16 = 1
    U32 = 2
    U64 = 3
    I8 = 4
    I32 = 5
    I16 = 6
    I64 = 7
    F32 = 8
    F64 = 9
    STRING = 10


# struct formats for the fixed-width parameter encodings (big-endian)
_PARAM_FMT = {
    ParamType.U8: ">B",
    ParamType.U16: ">H",
    ParamType.U32: ">I",
    ParamType.I8: ">b",
    ParamType.I32: ">i",
    ParamType.I16: ">h",
    ParamType.F32: ">f",
    ParamType.F64: ">d",
}

IdValue = Union[int, str]
ParamValue = Union[int, float, str, None]


# ---------------------------------------------------------------------------
# Packet bodies
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LoginBody:
    protocol_version: int
    flags: int
    id: IdValue | None
    password: IdValue | None

    @property
    def id_code(self) -> int:
        return (self.flags >> 4) & 0x0F

    @property
    def password_code(self) -> int:
        return self.flags & 0x0F


@dataclass(frozen=True)
class Message:
    time: int
    subrecords: tuple[Subrecord, ...]


@dataclass(frozen=True)
class DataBody:
    messages: tuple[Message, ...]


@dataclass(frozen=True)
class KeepAliveBody:
    pass


@dataclass(frozen=True)
class UnknownBody:
    raw_bytes: bytes


PacketBody = Union[LoginBody, DataBody, KeepAliveBody, UnknownBody]


# ---------------------------------------------------------------------------
# Subrecords
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CustomParameter:
    sensor_number: int
    sensor_type: int
    value: ParamValue

    @property
    def type_code(self) -> int:
        return self.sensor_type & PARAM_TYPE_MASK

    @property
    def scale(self) -> int:
        return (self.sensor_type >> PARAM_SCALE_SHIFT) & PARAM_SCALE_MASK


@dataclass(frozen=True)
class CustomParameters:
    parameters: tuple[CustomParameter, ...]


@dataclass(frozen=True)
class PositionData:
    latitude: float
    longitude: float
    speed: int
    course: int
    height: int
    satellites: int
    hdop: float


@dataclass(frozen=True)
class Picture:
    index: int
    byte_length: int
    fragment_count: int
    name: str
    data: bytes


@dataclass(frozen=True)
class LbsEntry:
    mcc: int
    mnc: int
    lac: int
    cell_id: int
    rx_level: int
    ta: int


@dataclass(frozen=True)
class LbsParameters:
    entries: tuple[LbsEntry, ...]


@dataclass(frozen=True)
class UnsupportedSubrecord:
    type_code: int


Subrecord = Union[
    CustomParameters, PositionData, Picture, LbsParameters, UnsupportedSubrecord,
]


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

def _read_id_value(cursor: ByteCursor, code: int) -> IdValue | None:
    if code == IdType.U16:
        return cursor.read_u16_be()
    if code == IdType.U32:
        return cursor.read_u32_be()
    if code == IdType.U64:
        return cursor.read_u64_be()
    if code == IdType.STRING:
        return cursor.read_cstring()
    # ABSENT and unassigned codes carry no bytes
    return None


def decode_login(cursor: ByteCursor) -> LoginBody:
    protocol_version = cursor.read_varint7()
    flags = cursor.read_u8()
    ident = _read_id_value(cursor, (flags >> 4) & 0x0F)
    password = _read_id_value(cursor, flags & 0x0F)
    return LoginBody(protocol_version, flags, ident, password)


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

def decode_data(cursor: ByteCursor, length: int) -> DataBody:
    """Decode messages until *length* bytes past the current position.

    The boundary is only checked between messages: a message that runs past
    it is still read to the end.
    """
    data_end = cursor.position + length
    messages: list[Message] = []

    while cursor.position < data_end:
        time = cursor.read_u32_be()
        count = cursor.read_u8()
        subrecords = tuple(decode_subrecord(cursor) for _ in range(count))
        messages.append(Message(time, subrecords))

    return DataBody(tuple(messages))


def decode_subrecord(cursor: ByteCursor) -> Subrecord:
    tag = cursor.read_varint7()

    if tag == SUBRECORD_CUSTOM_PARAMETERS:
        return decode_custom_parameters(cursor)
    if tag == SUBRECORD_POSITION:
        return decode_position(cursor)
    if tag == SUBRECORD_PICTURE:
        return decode_picture(cursor)
    if tag == SUBRECORD_LBS:
        return decode_lbs(cursor)

    # Width of an unknown subrecord is unknowable; nothing is consumed.
    logger.warning("unsupported subrecord type %d at offset %d",
                   tag, cursor.position)
    return UnsupportedSubrecord(tag)


def _read_param_value(cursor: ByteCursor, type_code: int) -> ParamValue:
    fmt = _PARAM_FMT.get(type_code)
    if fmt is not None:
        return cursor.unpack(fmt)
    if type_code in (ParamType.U64, ParamType.I64):
        # I64 is returned without sign extension
        return cursor.read_u64_be()
    if type_code == ParamType.STRING:
        return cursor.read_cstring()
    logger.debug("unknown custom parameter type %d, no value read", type_code)
    return None


def decode_custom_parameters(cursor: ByteCursor) -> CustomParameters:
    count = cursor.read_varint7()
    params: list[CustomParameter] = []

    for _ in range(count):
        sensor_number = cursor.read_varint7()
        sensor_type = cursor.read_u8()
        type_code = sensor_type & PARAM_TYPE_MASK
        scale = (sensor_type >> PARAM_SCALE_SHIFT) & PARAM_SCALE_MASK

        value = _read_param_value(cursor, type_code)
        if scale > 0 and type_code < ParamType.F32:
            value = value / 10 ** scale

        params.append(CustomParameter(sensor_number, sensor_type, value))

    return CustomParameters(tuple(params))


def decode_position(cursor: ByteCursor) -> PositionData:
    return PositionData(
        latitude=cursor.unpack(">i") / COORD_SCALE,
        longitude=cursor.unpack(">i") / COORD_SCALE,
        speed=cursor.read_u16_be(),
        course=cursor.read_u16_be(),
        height=cursor.read_u16_be(),
        satellites=cursor.read_u8(),
        hdop=cursor.read_u16_be() / HDOP_SCALE,
    )


def decode_picture(cursor: ByteCursor) -> Picture:
    index = cursor.read_varint7()
    byte_length = cursor.read_varint15()
    fragment_count = cursor.read_varint7()
    name = cursor.read_cstring()

    if byte_length > cursor.remaining:
        raise InvalidPictureLength(cursor.position, byte_length, cursor.remaining)
    data = cursor.read_bytes(byte_length)

    return Picture(index, byte_length, fragment_count, name, data)


def decode_lbs(cursor: ByteCursor) -> LbsParameters:
    count = cursor.read_u8()
    entries = tuple(
        LbsEntry(
            mcc=cursor.read_u16_be(),
            mnc=cursor.read_u16_be(),
            lac=cursor.read_u16_be(),
            cell_id=cursor.read_u16_be(),
            rx_level=cursor.read_u16_be(),
            ta=cursor.read_u16_be(),
        )
        for _ in range(count)
    )
    return LbsParameters(entries)
