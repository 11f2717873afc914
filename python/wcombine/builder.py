"""Packet construction helpers, mainly for tests and tooling."""

from __future__ import annotations

import struct

from .constants import (
    COORD_SCALE,
    HDOP_SCALE,
    PACKET_HEAD,
    PACKET_LOGIN,
    SUBRECORD_CUSTOM_PARAMETERS,
    SUBRECORD_LBS,
    SUBRECORD_PICTURE,
    SUBRECORD_POSITION,
    VARINT7_FLAG,
    VARINT15_FLAG,
)
from .crc import crc16
from .payload import IdType, LbsEntry, ParamType


def encode_varint7(value: int) -> bytes:
    if not 0 <= value <= 0x7FFF:
        raise ValueError(f"varint7 value out of range: {value}")
    if value < VARINT7_FLAG:
        return bytes([value])
    return struct.pack(">H", value | 0x8000)


def encode_varint15(value: int) -> bytes:
    if not 0 <= value <= 0x7FFFFFFF:
        raise ValueError(f"varint15 value out of range: {value}")
    if value < VARINT15_FLAG:
        return struct.pack(">H", value)
    return struct.pack(">I", value | 0x80000000)


def build_packet(packet_type: int, sequence: int, payload: bytes,
                 with_crc: bool = True) -> bytes:
    """Wrap *payload* in a packet header and, optionally, a CRC trailer."""
    buf = bytearray(struct.pack(">H", PACKET_HEAD))
    buf += encode_varint7(packet_type)
    buf += struct.pack(">H", sequence)
    buf += encode_varint15(len(payload))
    buf += payload
    if with_crc:
        buf += struct.pack(">H", crc16(bytes(buf)))
    return bytes(buf)


_ID_FMT = {IdType.U16: ">H", IdType.U32: ">I", IdType.U64: ">Q"}


def _encode_id(value, id_type: IdType) -> bytes:
    if id_type == IdType.ABSENT:
        return b""
    if id_type == IdType.STRING:
        return str(value).encode("latin-1") + b"\x00"
    return struct.pack(_ID_FMT[id_type], value)


def build_login(protocol_version: int, ident, password=None,
                id_type: IdType = IdType.U64,
                password_type: IdType = IdType.ABSENT) -> bytes:
    """Login payload (not wrapped; pass to build_packet with PACKET_LOGIN)."""
    flags = (id_type << 4) | password_type
    return (encode_varint7(protocol_version) + bytes([flags])
            + _encode_id(ident, id_type) + _encode_id(password, password_type))


def build_login_packet(sequence: int, protocol_version: int, ident, **kwargs) -> bytes:
    return build_packet(PACKET_LOGIN, sequence,
                        build_login(protocol_version, ident, **kwargs))


def build_message(time: int, subrecords: list[bytes]) -> bytes:
    """One data message from already-encoded subrecords."""
    return struct.pack(">IB", time, len(subrecords)) + b"".join(subrecords)


def build_position(latitude: float, longitude: float, speed: int = 0,
                   course: int = 0, height: int = 0, satellites: int = 0,
                   hdop: float = 0.0) -> bytes:
    return encode_varint7(SUBRECORD_POSITION) + struct.pack(
        ">iiHHHBH",
        round(latitude * COORD_SCALE), round(longitude * COORD_SCALE),
        speed, course, height, satellites, round(hdop * HDOP_SCALE),
    )


_PARAM_FMT = {
    ParamType.U8: ">B",
    ParamType.U16: ">H",
    ParamType.U32: ">I",
    ParamType.U64: ">Q",
    ParamType.I8: ">b",
    ParamType.I32: ">i",
    ParamType.I16: ">h",
    ParamType.I64: ">Q",
    ParamType.F32: ">f",
    ParamType.F64: ">d",
}


def build_custom_parameters(params: list[tuple[int, int, object]]) -> bytes:
    """Encode (sensor_number, sensor_type, raw_value) triples.

    raw_value is the unscaled wire value; for STRING it is a str.
    """
    buf = bytearray(encode_varint7(SUBRECORD_CUSTOM_PARAMETERS))
    buf += encode_varint7(len(params))
    for sensor_number, sensor_type, raw in params:
        buf += encode_varint7(sensor_number)
        buf.append(sensor_type)
        type_code = sensor_type & 0x1F
        if type_code == ParamType.STRING:
            buf += str(raw).encode("latin-1") + b"\x00"
        else:
            buf += struct.pack(_PARAM_FMT[ParamType(type_code)], raw)
    return bytes(buf)


def build_picture(index: int, name: str, data: bytes, fragment_count: int = 1) -> bytes:
    return (encode_varint7(SUBRECORD_PICTURE) + encode_varint7(index)
            + encode_varint15(len(data)) + encode_varint7(fragment_count)
            + name.encode("latin-1") + b"\x00" + data)


def build_lbs(entries: list[LbsEntry]) -> bytes:
    buf = bytearray(encode_varint7(SUBRECORD_LBS))
    buf.append(len(entries))
    for e in entries:
        buf += struct.pack(">6H", e.mcc, e.mnc, e.lac, e.cell_id, e.rx_level, e.ta)
    return bytes(buf)
