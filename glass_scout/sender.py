#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
GlassTelemetrySender -- sends TelemetryPacket datagrams the way a glass device does:

  1. Serializes the packet as a UTF-8 JSON object with capitalized keys
  2. Sends it to the broadcast address on the glass port (or any other target)
  3. Drops sends that come sooner than min_interval after the previous one

Useful for simulating a device on the local network.
"""

from __future__ import annotations

import asyncio
import socket
import time

from .internal_types import *
from .pkg_logging import logger
from .constants import BROADCAST_ADDRESS, GLASS_PORT, DEFAULT_SEND_INTERVAL
from .exceptions import GlassScoutError
from .telemetry_packet import TelemetryPacket

class GlassTelemetrySender(AsyncContextManager['GlassTelemetrySender']):
    target: HostAndPort
    min_interval: float

    packets_sent: int = 0
    packets_throttled: int = 0

    _transport: Optional[asyncio.DatagramTransport] = None
    _last_send_time: Optional[float] = None

    def __init__(
            self,
            target: Optional[HostAndPort]=None,
            min_interval: float=DEFAULT_SEND_INTERVAL,
          ):
        self.target = (BROADCAST_ADDRESS, GLASS_PORT) if target is None else target
        self.min_interval = min_interval

    def create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.setblocking(False)
        return sock

    async def start(self) -> None:
        if not self._transport is None:
            raise GlassScoutError("GlassTelemetrySender has already been started")
        loop = asyncio.get_running_loop()
        sock = self.create_socket()
        try:
            untyped_transport, _ = await loop.create_datagram_endpoint(asyncio.DatagramProtocol, sock=sock)
        except BaseException:
            sock.close()
            raise
        self._transport = untyped_transport # type: ignore[assignment]
        logger.debug(f"GlassTelemetrySender ready to send to {self.target}")

    def send(self, packet: TelemetryPacket) -> bool:
        """Sends one packet. Returns False if the send was skipped because it came too soon
           after the previous one."""
        if self._transport is None:
            raise GlassScoutError("GlassTelemetrySender is not started")
        now = time.monotonic()
        if not self._last_send_time is None and now - self._last_send_time < self.min_interval:
            self.packets_throttled += 1
            return False
        self._last_send_time = now
        data = packet.to_bytes()
        logger.debug(f"Sending telemetry to {self.target}: {data!r}")
        self._transport.sendto(data, self.target)
        self.packets_sent += 1
        return True

    async def stop(self) -> None:
        transport = self._transport
        self._transport = None
        if not transport is None:
            transport.close()

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        await self.stop()
        return False
