"""Flat record view of a decoded packet.

Each leaf fact in the decode tree becomes one record.  Records from a data
packet carry the time of the message they came from; Login and Keep-Alive
packets produce a single record without a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .payload import (
    CustomParameters,
    DataBody,
    IdValue,
    KeepAliveBody,
    LbsParameters,
    LoginBody,
    PacketBody,
    ParamValue,
    Picture,
    PositionData,
)


@dataclass(frozen=True)
class LoginRecord:
    protocol_version: int
    flags: int
    id: IdValue | None
    password: IdValue | None
    kind = "login"


@dataclass(frozen=True)
class KeepAliveRecord:
    kind = "keep_alive"


@dataclass(frozen=True)
class PositionRecord:
    time: int
    latitude: float
    longitude: float
    speed: int
    course: int
    height: int
    satellites: int
    hdop: float
    kind = "position"


@dataclass(frozen=True)
class CustomParameterRecord:
    time: int
    sensor: int
    sensor_type: int
    value: ParamValue
    kind = "custom_parameter"


@dataclass(frozen=True)
class PictureRecord:
    time: int
    index: int
    length: int
    count: int
    name: str
    kind = "picture"


@dataclass(frozen=True)
class LbsRecord:
    time: int
    mcc: int
    mnc: int
    lac: int
    cell_id: int
    rx_level: int
    ta: int
    kind = "lbs"


Record = Union[
    LoginRecord, KeepAliveRecord, PositionRecord,
    CustomParameterRecord, PictureRecord, LbsRecord,
]


def flatten(payload: PacketBody) -> list[Record]:
    """Project a packet body onto a flat list of records."""
    if isinstance(payload, LoginBody):
        return [LoginRecord(payload.protocol_version, payload.flags,
                            payload.id, payload.password)]
    if isinstance(payload, KeepAliveBody):
        return [KeepAliveRecord()]
    if not isinstance(payload, DataBody):
        return []

    records: list[Record] = []
    for message in payload.messages:
        t = message.time
        for sub in message.subrecords:
            if isinstance(sub, PositionData):
                records.append(PositionRecord(
                    t, sub.latitude, sub.longitude, sub.speed, sub.course,
                    sub.height, sub.satellites, sub.hdop,
                ))
            elif isinstance(sub, CustomParameters):
                records.extend(
                    CustomParameterRecord(t, p.sensor_number, p.sensor_type, p.value)
                    for p in sub.parameters
                )
            elif isinstance(sub, Picture):
                # image bytes stay on the subrecord
                records.append(PictureRecord(
                    t, sub.index, sub.byte_length, sub.fragment_count, sub.name,
                ))
            elif isinstance(sub, LbsParameters):
                records.extend(
                    LbsRecord(t, e.mcc, e.mnc, e.lac, e.cell_id, e.rx_level, e.ta)
                    for e in sub.entries
                )
    return records


def group_by_time(records: list[Record]) -> dict[int, list[Record]]:
    """Group timed records by message time, keeping their order."""
    groups: dict[int, list[Record]] = {}
    for rec in records:
        t = getattr(rec, "time", None)
        if t is None:
            continue
        groups.setdefault(t, []).append(rec)
    return groups
