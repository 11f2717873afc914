#!/usr/bin/env python3
"""Generate a synthetic drive, decode it and summarise the position track.

Usage:
    python examples/track_summary.py
"""

import math

import numpy as np

from wcombine import decode
from wcombine.builder import (
    build_packet, build_message, build_position, build_custom_parameters,
)
from wcombine.payload import ParamType
from wcombine.series import position_series, sensor_series

BATTERY_SENSOR = 7
START = 1_700_000_000

# --- One data packet, one message every 10 seconds ---

messages = []
for i in range(30):
    lat = 55.75 + 0.001 * i
    lon = 37.61 + 0.002 * math.sin(i / 5)
    messages.append(build_message(START + 10 * i, [
        build_position(lat, lon, speed=40 + i % 7, course=90,
                       satellites=10, hdop=0.8),
        # battery in centivolts, scale 2 -> volts
        build_custom_parameters([
            (BATTERY_SENSOR, (2 << 5) | ParamType.U16, 1260 - i),
        ]),
    ]))

packet = decode(build_packet(1, 1, b"".join(messages)))
print(f"seq={packet.sequence} crc_ok={packet.crc_valid} "
      f"records={len(packet.records)} ack={packet.response.raw_bytes.hex()}")

lat = position_series(packet.records, "latitude")
lon = position_series(packet.records, "longitude")
speed = position_series(packet.records, "speed")
battery = sensor_series(packet.records, BATTERY_SENSOR)

duration = int(lat.times[-1]) - int(lat.times[0])
print(f"duration:  {duration}s over {len(lat)} fixes")
print(f"lat range: {lat.values.min():.6f} .. {lat.values.max():.6f}")
print(f"lon range: {lon.values.min():.6f} .. {lon.values.max():.6f}")
print(f"speed:     mean {np.mean(speed.values):.1f} km/h")
print(f"battery:   {battery.values[0]:.2f} V -> {battery.values[-1]:.2f} V")
