"""Test cursor primitives, CRC-16/ARC and whole-packet decoding.

Run from the repo root:
    python3 tests/test_decoder.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "python"))

import struct

from wcombine.cursor import ByteCursor
from wcombine.crc import crc16, crc16_update, CRC16_TABLE
from wcombine.decoder import decode
from wcombine.errors import BadHeader, UnexpectedEof, InvalidPictureLength
from wcombine.hexdata import from_hex
from wcombine.payload import (
    LoginBody, DataBody, KeepAliveBody, UnknownBody, PositionData,
    CustomParameters,
)
from wcombine.records import LoginRecord, KeepAliveRecord
from wcombine.builder import (
    build_packet, build_message, build_position, encode_varint7, encode_varint15,
)

LOGIN_HEX = "24 24 00 00 00 00 0a 01 30 00 03 0e 42 59 8b 46 ec 76 7f"

DATA_HEX = (
    "24 24 01 00 01 00 62 64 d0 8e f8 02 01 02 8e 3f 10 02 d6 a8 90 00 00 01 "
    "08 ff fd 11 00 40 00 80 10 19 00 00 09 02 00 28 ad ba 0b 00 01 6d 00 0b "
    "6e 00 09 71 08 47 30 83 45 72 00 00 84 d9 00 00 84 e2 08 42 10 00 00 84 "
    "e4 08 41 4b 0a 3d 84 e5 08 40 85 c2 8f 87 d5 00 1f 8a f1 00 00 8a f2 00 "
    "00 8a f8 00 00 8a f9 00 00 39 ea"
)

DATA2_HEX = (
    "24 24 01 00 02 00 5a 68 9f 10 f9 02 01 02 65 23 68 02 a7 64 0c 00 37 00 "
    "2c 03 fc 10 00 3f 00 80 0e 19 00 00 09 02 00 36 05 8e 0b 00 01 6d 00 0d "
    "6e 00 0a 71 08 47 10 e2 7b 72 00 01 84 d9 00 01 84 e2 08 42 48 00 00 84 "
    "e4 08 41 49 70 a4 84 e5 08 3f d3 33 33 87 d5 00 14 8a f3 00 03 8b 43 00 "
    "03 b8 cf"
)


def expect_raises(exc_type, fn, *args):
    try:
        fn(*args)
    except exc_type as e:
        return e
    raise AssertionError(f"{exc_type.__name__} not raised")


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------

def test_cursor_integers():
    print("test_cursor_integers...", end="")

    cur = ByteCursor(bytes.fromhex("01 0203 04050607 08090a0b0c0d0e0f".replace(" ", "")))
    assert cur.read_u8() == 0x01
    assert cur.read_u16_be() == 0x0203
    assert cur.read_u32_be() == 0x04050607
    assert cur.read_u64_be() == 0x08090A0B0C0D0E0F
    assert cur.remaining == 0

    e = expect_raises(UnexpectedEof, cur.read_u8)
    assert e.position == 15
    assert e.needed == 1
    assert e.available == 0

    print(" OK")


def test_cursor_varints():
    print("test_cursor_varints...", end="")

    cur = ByteCursor(bytes([0x7F, 0x80, 0x10, 0xFF, 0xFF]))
    assert cur.read_varint7() == 0x7F
    assert cur.read_varint7() == 0x10
    assert cur.read_varint7() == 0x7FFF

    cur = ByteCursor(bytes([0x00, 0x62, 0x80, 0x01, 0x00, 0x02]))
    assert cur.read_varint15() == 0x62
    assert cur.read_varint15() == (0x0001 << 16) | 0x0002

    # second byte of a long varint7 missing
    expect_raises(UnexpectedEof, ByteCursor(bytes([0x81])).read_varint7)

    print(" OK")


def test_cursor_strings_and_bytes():
    print("test_cursor_strings_and_bytes...", end="")

    cur = ByteCursor(b"abc\x00def")
    assert cur.read_cstring() == "abc"
    assert cur.position == 4
    # unterminated string runs to the end without error
    assert cur.read_cstring() == "def"
    assert cur.remaining == 0
    assert cur.read_cstring() == ""

    cur = ByteCursor(b"\x01\x02\x03")
    assert cur.read_bytes(2) == b"\x01\x02"
    expect_raises(UnexpectedEof, cur.read_bytes, 2)
    assert cur.position == 2

    print(" OK")


# ---------------------------------------------------------------------------
# CRC
# ---------------------------------------------------------------------------

def test_crc16_vectors():
    print("test_crc16_vectors...", end="")

    assert crc16(b"") == 0x0000
    assert crc16(b"123456789") == 0xBB3D
    assert len(CRC16_TABLE) == 256
    assert CRC16_TABLE[1] == 0xC0C1
    assert CRC16_TABLE[255] == 0x4040

    running = 0
    for b in b"123456789":
        running = crc16_update(running, b)
    assert running == 0xBB3D

    # continuing from a partial checksum gives the same result
    assert crc16(b"6789", crc16(b"12345")) == 0xBB3D

    print(" OK")


# ---------------------------------------------------------------------------
# Packet decoding
# ---------------------------------------------------------------------------

def test_decode_login_packet():
    print("test_decode_login_packet...", end="")

    pkt = decode(from_hex(LOGIN_HEX))
    assert pkt.head == 0x2424
    assert pkt.type == 0
    assert pkt.sequence == 0
    assert pkt.length == 10
    assert isinstance(pkt.payload, LoginBody)
    assert pkt.payload.protocol_version == 1
    assert pkt.payload.flags == 48
    assert pkt.payload.id == 860103063062252
    assert pkt.payload.password is None

    assert pkt.crc is not None
    assert pkt.crc.received == 0x767F
    assert pkt.crc.calculated == 0x767F
    assert pkt.crc.valid

    assert pkt.records == (LoginRecord(1, 48, 860103063062252, None),)
    assert pkt.response.code == 0
    assert pkt.response.sequence == 0
    assert pkt.response.raw_bytes == bytes([0x40, 0x40, 0x00, 0x00, 0x00])
    assert pkt.response.description == "registered"

    print(" OK")


def test_decode_data_packet():
    print("test_decode_data_packet...", end="")

    pkt = decode(from_hex(DATA_HEX))
    assert pkt.type == 1
    assert pkt.sequence == 1
    assert pkt.length == 98
    assert pkt.crc.valid
    assert pkt.crc.received == 0x39EA

    assert isinstance(pkt.payload, DataBody)
    assert len(pkt.payload.messages) == 1
    msg = pkt.payload.messages[0]
    assert msg.time == 1691389688
    assert len(msg.subrecords) == 2

    pos = msg.subrecords[0]
    assert isinstance(pos, PositionData)
    assert abs(pos.latitude - 42.876688) < 1e-9
    assert abs(pos.longitude - 47.622288) < 1e-9
    assert pos.speed == 0
    assert pos.course == 264
    assert pos.height == 65533
    assert pos.satellites == 17
    assert abs(pos.hdop - 0.64) < 1e-9

    params = msg.subrecords[1]
    assert isinstance(params, CustomParameters)
    assert len(params.parameters) == 16
    by_sensor = {p.sensor_number: p.value for p in params.parameters}
    assert by_sensor[25] == 0
    assert by_sensor[9] == 2665914
    assert by_sensor[1250] == 36.0
    assert abs(by_sensor[1252] - 12.69) < 1e-5
    assert by_sensor[2005] == 31

    # one position record + one per custom parameter
    assert len(pkt.records) == 17
    assert all(r.time == 1691389688 for r in pkt.records)
    assert pkt.response.raw_bytes == bytes([0x40, 0x40, 0x00, 0x00, 0x01])

    print(" OK")


def test_decode_second_data_packet():
    print("test_decode_second_data_packet...", end="")

    pkt = decode(from_hex(DATA2_HEX))
    assert pkt.sequence == 2
    assert pkt.length == 90
    assert pkt.crc.valid

    msg = pkt.payload.messages[0]
    assert msg.time == 1755255033
    pos = msg.subrecords[0]
    assert abs(pos.latitude - 40.182632) < 1e-9
    assert abs(pos.longitude - 44.524556) < 1e-9
    assert (pos.speed, pos.course, pos.height, pos.satellites) == (55, 44, 1020, 16)
    assert len(msg.subrecords[1].parameters) == 14
    assert len(pkt.records) == 15

    print(" OK")


def test_decode_crc_mismatch():
    """A bad checksum still decodes, but flags the packet and answers code 4."""
    print("test_decode_crc_mismatch...", end="")

    data = bytearray(from_hex(LOGIN_HEX))
    data[-1] ^= 0xFF
    pkt = decode(bytes(data))

    assert not pkt.crc.valid
    assert not pkt.crc_valid
    assert pkt.crc.calculated == 0x767F
    assert pkt.payload.id == 860103063062252
    assert len(pkt.records) == 1
    assert pkt.response.code == 4
    assert pkt.response.description == "CRC error"
    assert pkt.response.raw_bytes == bytes([0x40, 0x40, 0x04, 0x00, 0x00])

    print(" OK")


def test_decode_minimal_keep_alive():
    print("test_decode_minimal_keep_alive...", end="")

    pkt = decode(bytes([0x24, 0x24, 0x02, 0x00, 0x07, 0x00, 0x00]))
    assert isinstance(pkt.payload, KeepAliveBody)
    assert pkt.sequence == 7
    assert pkt.crc is None
    assert pkt.crc_valid
    assert pkt.records == (KeepAliveRecord(),)
    assert pkt.response.code == 0
    assert pkt.response.sequence == 7

    # same packet with a CRC trailer
    pkt = decode(build_packet(2, 7, b""))
    assert pkt.crc is not None and pkt.crc.valid

    print(" OK")


def test_decode_unknown_type():
    print("test_decode_unknown_type...", end="")

    pkt = decode(build_packet(5, 3, b"abc"))
    assert pkt.type == 5
    assert pkt.payload == UnknownBody(b"abc")
    assert pkt.records == ()
    assert pkt.crc.valid

    # two-byte type field
    pkt = decode(build_packet(0x1234, 3, b"\x01"))
    assert pkt.type == 0x1234
    assert pkt.payload == UnknownBody(b"\x01")

    # declared length beyond the buffer
    raw = bytes([0x24, 0x24, 0x05, 0x00, 0x00, 0x00, 0x10, 0xAA])
    expect_raises(UnexpectedEof, decode, raw)

    print(" OK")


def test_decode_long_length_field():
    print("test_decode_long_length_field...", end="")

    msgs = [build_message(1000 + i, [build_position(1.0, 2.0)]) for i in range(2000)]
    payload = b"".join(msgs)
    assert len(payload) >= 0x8000

    pkt = decode(build_packet(1, 9, payload))
    assert pkt.length == len(payload)
    assert len(pkt.payload.messages) == 2000
    assert pkt.crc.valid

    print(" OK")


def test_decode_message_overruns_length():
    """A message is always read whole, even past the declared length."""
    print("test_decode_message_overruns_length...", end="")

    msg = build_message(42, [build_position(10.5, -20.25, speed=3)])
    header = struct.pack(">HB", 0x2424, 1) + struct.pack(">H", 0) + encode_varint15(1)
    body = header + msg
    raw = body + struct.pack(">H", crc16(body))

    pkt = decode(raw)
    assert pkt.length == 1
    assert len(pkt.payload.messages) == 1
    pos = pkt.payload.messages[0].subrecords[0]
    assert pos.latitude == 10.5
    assert pos.longitude == -20.25
    assert pos.speed == 3
    assert pkt.crc.valid

    print(" OK")


def test_decode_errors():
    print("test_decode_errors...", end="")

    e = expect_raises(BadHeader, decode, from_hex("25 25 01 00 02 00 5a"))
    assert e.found == 0x2525

    expect_raises(UnexpectedEof, decode, from_hex("24 24"))
    expect_raises(UnexpectedEof, decode, b"")

    # login truncated inside the u64 id
    raw = from_hex(LOGIN_HEX)[:12]
    expect_raises(UnexpectedEof, decode, raw)

    print(" OK")


def test_decode_picture_length_overflow():
    print("test_decode_picture_length_overflow...", end="")

    picture = (encode_varint7(3) + encode_varint7(0) + encode_varint15(10)
               + encode_varint7(1) + b"img\x00" + b"abc")
    raw = build_packet(1, 0, build_message(100, [picture]), with_crc=False)

    e = expect_raises(InvalidPictureLength, decode, raw)
    assert isinstance(e, UnexpectedEof)
    assert e.needed == 10
    assert e.available == 3

    print(" OK")


def test_decode_deterministic():
    print("test_decode_deterministic...", end="")

    raw = from_hex(DATA_HEX)
    assert decode(raw) == decode(raw)

    print(" OK")


if __name__ == "__main__":
    print("wcombine decoder tests")
    print("======================\n")

    test_cursor_integers()
    test_cursor_varints()
    test_cursor_strings_and_bytes()
    test_crc16_vectors()
    test_decode_login_packet()
    test_decode_data_packet()
    test_decode_second_data_packet()
    test_decode_crc_mismatch()
    test_decode_minimal_keep_alive()
    test_decode_unknown_type()
    test_decode_long_length_field()
    test_decode_message_overruns_length()
    test_decode_errors()
    test_decode_picture_length_overflow()
    test_decode_deterministic()

    print("\nAll tests passed.")
