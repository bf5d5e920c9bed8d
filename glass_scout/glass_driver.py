#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
GlassDriver -- the host-side model of one glass device.

The driver publishes six streams to the host:

    heading, accelX, accelY, accelZ, pitch, light-level

and copies the matching fields of every telemetry packet received from its
device onto them, unchanged.
"""

from __future__ import annotations

from .internal_types import *
from .pkg_logging import logger
from .constants import (
    GLASS_DEVICE_TYPE,
    STREAM_NAMES,
    STREAM_HEADING,
    STREAM_ACCEL_X,
    STREAM_ACCEL_Y,
    STREAM_ACCEL_Z,
    STREAM_PITCH,
    STREAM_LIGHT_LEVEL,
  )
from .host import StreamEmitter, StreamRegistry
from .telemetry_packet import TelemetryPacket

if TYPE_CHECKING:
    from .scout import GlassScout, TelemetrySubscription

STREAM_FIELDS: Dict[str, Callable[[TelemetryPacket], StreamValue]] = {
    STREAM_HEADING: lambda packet: packet.heading,
    STREAM_ACCEL_X: lambda packet: packet.accel_x,
    STREAM_ACCEL_Y: lambda packet: packet.accel_y,
    STREAM_ACCEL_Z: lambda packet: packet.accel_z,
    STREAM_PITCH: lambda packet: packet.pitch,
    STREAM_LIGHT_LEVEL: lambda packet: packet.light_level,
}
"""Maps each stream name to the packet field forwarded on it."""

class GlassDriver:
    type: str = GLASS_DEVICE_TYPE
    name: str
    address: str
    state: str = 'on'

    data: TelemetryPacket
    """The packet that announced this device."""

    scout: GlassScout

    missing_stream_count: int = 0
    """Number of values not forwarded because their stream had no registered emitter."""

    _streams: Dict[str, StreamEmitter]
    _subscription: Optional[TelemetrySubscription] = None
    _warned_missing: Set[str]

    def __init__(self, data: TelemetryPacket, scout: GlassScout):
        if data.source_address is None:
            raise ValueError("GlassDriver requires a packet with a source address")
        self.data = data
        self.scout = scout
        self.address = data.source_address
        self.name = f"glass {self.address}"
        self._streams = {}
        self._warned_missing = set()

    @property
    def streams(self) -> Mapping[str, StreamEmitter]:
        """The emitters registered so far, by stream name."""
        return dict(self._streams)

    def init(self, config: StreamRegistry) -> None:
        """Registers all streams with the host and starts listening for this device's telemetry.

        May be called again; the newest emitters replace the old ones and the previous
        telemetry subscription is dropped.
        """
        for name in STREAM_NAMES:
            config = config.stream(name, self._registration_handler(name))

        if not self._subscription is None:
            self._subscription.close()
        self._subscription = self.scout.subscribe(self.address, self.on_update)
        logger.debug(f"{self.name}: initialized with streams {sorted(self._streams)}")

    def _registration_handler(self, name: str) -> Callable[[StreamEmitter], None]:
        def on_registered(emitter: StreamEmitter) -> None:
            self._streams[name] = emitter
        return on_registered

    def on_update(self, data: TelemetryPacket) -> None:
        for name, field in STREAM_FIELDS.items():
            emitter = self._streams.get(name)
            if emitter is None:
                self.missing_stream_count += 1
                if name in self._warned_missing:
                    logger.debug(f"{self.name}: no emitter registered for stream '{name}'; value dropped")
                else:
                    self._warned_missing.add(name)
                    logger.warning(f"{self.name}: no emitter registered for stream '{name}'; values will be dropped")
                continue
            emitter.emit(field(data))

    def close(self) -> None:
        if not self._subscription is None:
            self._subscription.close()
            self._subscription = None

    def __str__(self) -> str:
        return f"GlassDriver({self.name}, state={self.state})"

    def __repr__(self) -> str:
        return str(self)
