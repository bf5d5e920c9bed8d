#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
The host side of the scout/driver plugin contract.

A host automation hub provides drivers with a StreamRegistry; the driver calls
registry.stream(name, on_registered) once per stream it publishes, and the host
hands back a StreamEmitter for that stream through on_registered.

This module defines those interfaces as Protocols, plus a minimal in-process
host (StreamConfig, StreamSink and DeviceHub) that is sufficient to run the
scout standalone from the command line.
"""

from __future__ import annotations

from .internal_types import *
from .pkg_logging import logger

if TYPE_CHECKING:
    from .scout import GlassScout
    from .telemetry_packet import TelemetryPacket

class StreamEmitter(Protocol):
    """A host-managed sink for the values of one named stream."""

    def emit(self, value: StreamValue) -> None: ...

class StreamRegistry(Protocol):
    """The host's stream registration interface. stream() returns the registry so calls can be chained."""

    def stream(self, name: str, on_registered: Callable[[StreamEmitter], None]) -> StreamRegistry: ...

class DeviceDriver(Protocol):
    """The interface a driver class must provide to be instantiated by DeviceHub."""

    address: str
    name: str

    def init(self, config: StreamRegistry) -> None: ...

    def close(self) -> None: ...

DriverFactory = Callable[['TelemetryPacket', 'GlassScout'], DeviceDriver]

StreamCallback = Callable[[str, str, str, StreamValue], None]
"""Called as callback(device_name, address, stream_name, value) for every value emitted on a StreamSink."""

class StreamSink:
    """A StreamEmitter that remembers the last emitted value and optionally forwards it to a callback."""

    device_name: str
    address: str
    stream_name: str
    callback: Optional[StreamCallback]
    last_value: StreamValue = None
    emit_count: int = 0

    def __init__(self, device_name: str, address: str, stream_name: str, callback: Optional[StreamCallback]=None):
        self.device_name = device_name
        self.address = address
        self.stream_name = stream_name
        self.callback = callback

    def emit(self, value: StreamValue) -> None:
        self.last_value = value
        self.emit_count += 1
        if not self.callback is None:
            self.callback(self.device_name, self.address, self.stream_name, value)

    def __str__(self) -> str:
        return f"StreamSink({self.device_name}/{self.stream_name})"

    def __repr__(self) -> str:
        return str(self)

class StreamConfig:
    """An in-process StreamRegistry. Each registration creates a new StreamSink and delivers it immediately."""

    device_name: str
    address: str
    callback: Optional[StreamCallback]
    sinks: Dict[str, StreamSink]

    def __init__(self, device_name: str, address: str, callback: Optional[StreamCallback]=None):
        self.device_name = device_name
        self.address = address
        self.callback = callback
        self.sinks = {}

    def stream(self, name: str, on_registered: Callable[[StreamEmitter], None]) -> StreamConfig:
        sink = StreamSink(self.device_name, self.address, name, callback=self.callback)
        self.sinks[name] = sink
        on_registered(sink)
        return self

class DeviceHub:
    """
    A minimal device registry. Install on_discover as a GlassScout discover handler; the first
    time an address is announced, the hub constructs the announced driver class, gives it a
    StreamConfig and keeps it until close().
    """

    stream_callback: Optional[StreamCallback]
    devices: Dict[str, DeviceDriver]
    configs: Dict[str, StreamConfig]

    def __init__(self, stream_callback: Optional[StreamCallback]=None):
        self.stream_callback = stream_callback
        self.devices = {}
        self.configs = {}

    def on_discover(self, driver_class: DriverFactory, packet: TelemetryPacket, scout: GlassScout) -> None:
        address = packet.source_address
        if address is None or address in self.devices:
            return
        driver = driver_class(packet, scout)
        config = StreamConfig(driver.name, driver.address, callback=self.stream_callback)
        driver.init(config)
        self.devices[address] = driver
        self.configs[address] = config
        logger.info(f"Discovered new device {driver.name}")

    def close(self) -> None:
        devices = list(self.devices.values())
        self.devices.clear()
        self.configs.clear()
        for driver in devices:
            try:
                driver.close()
            except Exception as e:
                logger.warning(f"Error closing driver {driver.name}: {e}")
