# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by this package"""

GLASS_PORT = 2323
"""The UDP port on which glass devices broadcast their telemetry."""

DEFAULT_BIND_ADDRESS = "0.0.0.0"
"""Bind to all local interfaces by default."""

BROADCAST_ADDRESS = "255.255.255.255"
"""The address glass devices send telemetry to."""

GLASS_DEVICE_TYPE = "glass"
"""The type tag of devices created by GlassDriver."""

DEFAULT_SEND_INTERVAL = 0.2
"""Minimum number of seconds between telemetry sends from a single device."""

MAX_DATAGRAM_SIZE = 65507

STREAM_HEADING = "heading"
STREAM_ACCEL_X = "accelX"
STREAM_ACCEL_Y = "accelY"
STREAM_ACCEL_Z = "accelZ"
STREAM_PITCH = "pitch"
STREAM_LIGHT_LEVEL = "light-level"

STREAM_NAMES = (
    STREAM_HEADING,
    STREAM_ACCEL_X,
    STREAM_ACCEL_Y,
    STREAM_ACCEL_Z,
    STREAM_PITCH,
    STREAM_LIGHT_LEVEL,
  )
"""The closed set of stream names registered by every GlassDriver, in registration order."""
