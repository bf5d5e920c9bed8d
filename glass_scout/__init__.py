# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Package glass_scout discovers head-mounted "glass" sensor devices on the local network
and publishes their telemetry as named streams for a home automation hub.

Glass devices broadcast a small JSON telemetry object over UDP port 2323 several times
a second (heading, pitch, ambient light level, linear acceleration, location, ...). A
GlassScout listens on that port, decodes each datagram into a TelemetryPacket tagged
with the sender's IP address, and announces it to the hub. The hub creates one
GlassDriver per address; the driver registers six streams with the hub

    heading, accelX, accelY, accelZ, pitch, light-level

and copies the corresponding fields of each update onto them.
"""

from .version import __version__

from .internal_types import Jsonable, JsonableDict, HostAndPort, StreamValue

from .exceptions import GlassScoutError, GlassScoutBindError, GlassScoutConfigError

from .telemetry_packet import TelemetryPacket, DecodeResult, DecodeErrorKind, decode_datagram
from .host import StreamEmitter, StreamRegistry, StreamSink, StreamConfig, DeviceHub
from .glass_driver import GlassDriver
from .scout import GlassScout, TelemetrySubscription
from .sender import GlassTelemetrySender
from .config import ScoutConfig
from .constants import (
    GLASS_PORT,
    DEFAULT_BIND_ADDRESS,
    BROADCAST_ADDRESS,
    GLASS_DEVICE_TYPE,
    STREAM_NAMES,
  )

__all__ = [
    '__version__',
    'Jsonable', 'JsonableDict', 'HostAndPort', 'StreamValue',
    'GlassScoutError', 'GlassScoutBindError', 'GlassScoutConfigError',
    'TelemetryPacket', 'DecodeResult', 'DecodeErrorKind', 'decode_datagram',
    'StreamEmitter', 'StreamRegistry', 'StreamSink', 'StreamConfig', 'DeviceHub',
    'GlassDriver',
    'GlassScout', 'TelemetrySubscription',
    'GlassTelemetrySender',
    'ScoutConfig',
    'GLASS_PORT', 'DEFAULT_BIND_ADDRESS', 'BROADCAST_ADDRESS', 'GLASS_DEVICE_TYPE', 'STREAM_NAMES',
]
