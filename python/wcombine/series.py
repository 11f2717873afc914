"""numpy time-series extraction from flattened records."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Iterable

import numpy as np

from .records import CustomParameterRecord, LbsRecord, PositionRecord, Record

POSITION_FIELDS = tuple(f.name for f in fields(PositionRecord) if f.name != "time")
LBS_FIELDS = tuple(f.name for f in fields(LbsRecord) if f.name != "time")


@dataclass
class ChannelData:
    """Time-series data for one channel."""

    times: np.ndarray  # uint32, unix seconds
    values: np.ndarray

    def __len__(self) -> int:
        return len(self.times)


def _series(rows: list[tuple[int, object]], dtype) -> ChannelData:
    times = np.fromiter((t for t, _ in rows), dtype=np.uint32, count=len(rows))
    values = np.array([v for _, v in rows], dtype=dtype)
    return ChannelData(times, values)


def position_series(records: Iterable[Record], field: str) -> ChannelData:
    """Return one position field (e.g. "latitude") over time."""
    if field not in POSITION_FIELDS:
        raise KeyError(f"Unknown position field: {field}")
    rows = [(r.time, getattr(r, field)) for r in records
            if isinstance(r, PositionRecord)]
    dtype = np.float64 if field in ("latitude", "longitude", "hdop") else np.int64
    return _series(rows, dtype)


def lbs_series(records: Iterable[Record], field: str) -> ChannelData:
    """Return one LBS cell field (e.g. "rx_level") over time."""
    if field not in LBS_FIELDS:
        raise KeyError(f"Unknown LBS field: {field}")
    rows = [(r.time, getattr(r, field)) for r in records
            if isinstance(r, LbsRecord)]
    return _series(rows, np.int64)


def sensor_series(records: Iterable[Record], sensor_number: int) -> ChannelData:
    """Return all readings of one custom parameter sensor over time.

    Numeric sensors yield float64 values; a sensor reporting any string or
    missing value yields an object array.
    """
    rows = [(r.time, r.value) for r in records
            if isinstance(r, CustomParameterRecord) and r.sensor == sensor_number]
    numeric = all(isinstance(v, (int, float)) for _, v in rows)
    return _series(rows, np.float64 if numeric else object)
