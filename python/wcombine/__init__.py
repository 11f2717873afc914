"""wcombine - Wialon Combine telemetry packet codec."""

from .errors import (
    DecodeError, BadHeader, UnexpectedEof, InvalidPictureLength, InvalidHexInput,
)
from .crc import crc16
from .cursor import ByteCursor
from .decoder import Packet, CrcResult, decode
from .payload import (
    IdType, ParamType, LoginBody, DataBody, KeepAliveBody, UnknownBody, Message,
    CustomParameter, CustomParameters, PositionData, Picture, LbsEntry,
    LbsParameters, UnsupportedSubrecord,
)
from .records import (
    Record, LoginRecord, KeepAliveRecord, PositionRecord, CustomParameterRecord,
    PictureRecord, LbsRecord, flatten, group_by_time,
)
from .response import ServerResponse, build_response
from .hexdata import from_hex, read_hex_file

__all__ = [
    "DecodeError", "BadHeader", "UnexpectedEof", "InvalidPictureLength",
    "InvalidHexInput",
    "crc16", "ByteCursor", "Packet", "CrcResult", "decode",
    "IdType", "ParamType", "LoginBody", "DataBody", "KeepAliveBody",
    "UnknownBody", "Message", "CustomParameter", "CustomParameters",
    "PositionData", "Picture", "LbsEntry", "LbsParameters",
    "UnsupportedSubrecord",
    "Record", "LoginRecord", "KeepAliveRecord", "PositionRecord",
    "CustomParameterRecord", "PictureRecord", "LbsRecord",
    "flatten", "group_by_time",
    "ServerResponse", "build_response",
    "from_hex", "read_hex_file",
]
