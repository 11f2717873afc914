"""Wire format constants for the Wialon Combine protocol."""

PACKET_HEAD = 0x2424
RESPONSE_HEAD = 0x4040

# head(2) + type(>=1) + sequence(2) + length(>=2)
MIN_PACKET_SIZE = 7
CRC_SIZE = 2

# Packet types
PACKET_LOGIN = 0
PACKET_DATA = 1
PACKET_KEEP_ALIVE = 2

# Subrecord tags inside a data message
SUBRECORD_CUSTOM_PARAMETERS = 0
SUBRECORD_POSITION = 1
SUBRECORD_PICTURE = 3
SUBRECORD_LBS = 4

# Fixed-point divisors
COORD_SCALE = 1_000_000.0
HDOP_SCALE = 100.0

# Custom parameter sensor_type bit layout
PARAM_TYPE_MASK = 0x1F
PARAM_SCALE_SHIFT = 5
PARAM_SCALE_MASK = 0x07

# Extensible field continuation bits
VARINT7_FLAG = 0x80
VARINT15_FLAG = 0x8000
