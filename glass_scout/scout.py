#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
GlassScout -- A UDP listener that discovers glass devices on the local network:

  1. Listens on a UDP port (2323 by default) on all local interfaces
  2. Decodes each received datagram into a TelemetryPacket tagged with the sender's IP address
  3. Announces every decoded packet to discover handlers, together with the driver class
     that can model the device
  4. Delivers every decoded packet to the telemetry subscribers registered for the sender's address

  Malformed datagrams are logged and dropped; they never stop the scout. A socket error after
  the socket is bound is logged and closes the scout.
"""

from __future__ import annotations

import asyncio
from asyncio import Future
import socket

from .internal_types import *
from .pkg_logging import logger
from .constants import GLASS_PORT, DEFAULT_BIND_ADDRESS
from .exceptions import GlassScoutError, GlassScoutBindError
from .telemetry_packet import TelemetryPacket, decode_datagram
from .glass_driver import GlassDriver

TelemetryHandler = Callable[[TelemetryPacket], None]
"""A callback that receives each telemetry packet from one device address."""

DiscoverHandler = Callable[[Type[GlassDriver], TelemetryPacket, 'GlassScout'], None]
"""A callback that receives (driver_class, packet, scout) for each telemetry packet from any address."""

class TelemetrySubscription:
    """A handle for one telemetry handler registered with a GlassScout for a single device address."""

    scout: GlassScout
    address: str
    handler: TelemetryHandler
    active: bool = True

    def __init__(self, scout: GlassScout, address: str, handler: TelemetryHandler):
        self.scout = scout
        self.address = address
        self.handler = handler

    def close(self) -> None:
        """Stops delivery to this subscription. Safe to call more than once."""
        self.scout.unsubscribe(self)

    def __str__(self) -> str:
        return f"TelemetrySubscription({self.address}, active={self.active})"

    def __repr__(self) -> str:
        return str(self)

class _GlassScoutProtocol(asyncio.DatagramProtocol):
    """An adapter between the asyncio transport and GlassScout."""

    scout: GlassScout

    def __init__(self, scout: GlassScout):
        self.scout = scout

    def connection_made(self, transport: asyncio.BaseTransport):
        """Called when a connection is made."""
        self.scout.connection_made(transport) # type: ignore[arg-type]

    def datagram_received(self, data: bytes, addr: Tuple[str, int]):
        """Called when some datagram is received."""
        self.scout.feed_datagram(data, addr)

    def error_received(self, exc: Exception):
        """Called when a send or receive operation raises an OSError.

        (Other than BlockingIOError or InterruptedError.)
        """
        self.scout.error_received(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        """Called when the connection is lost or closed."""
        self.scout.connection_lost(exc)

class GlassScout(AsyncContextManager['GlassScout']):
    """
    Listens for glass telemetry datagrams and fans them out to discover handlers and to
    per-address telemetry subscribers.

    The scout is the only owner of its socket and transport. Drivers only subscribe.
    """

    port: int
    """The UDP port to bind to. 0 selects an ephemeral port (see local_address)."""

    bind_address: str
    """The local IP address to bind to. Defaults to all interfaces."""

    driver_class: Type[GlassDriver]
    """The driver class announced to discover handlers."""

    packets_received: int = 0
    packets_accepted: int = 0
    packets_dropped: int = 0

    known_addresses: Set[str]
    """Every sender address from which a valid packet has been received."""

    _sock: Optional[socket.socket] = None
    _transport: Optional[asyncio.DatagramTransport] = None
    _final_result: Optional[Future[None]] = None
    _subscriptions: Dict[str, List[TelemetrySubscription]]
    _discover_handlers: List[DiscoverHandler]

    def __init__(
            self,
            port: int=GLASS_PORT,
            bind_address: str=DEFAULT_BIND_ADDRESS,
            driver_class: Type[GlassDriver]=GlassDriver,
          ):
        self.port = port
        self.bind_address = bind_address
        self.driver_class = driver_class
        self.known_addresses = set()
        self._subscriptions = {}
        self._discover_handlers = []

    # ======================= event routing

    def add_discover_handler(self, handler: DiscoverHandler) -> None:
        self._discover_handlers.append(handler)

    def remove_discover_handler(self, handler: DiscoverHandler) -> None:
        self._discover_handlers.remove(handler)

    def subscribe(self, address: str, handler: TelemetryHandler) -> TelemetrySubscription:
        """Registers handler to receive every telemetry packet sent from address."""
        subscription = TelemetrySubscription(self, address, handler)
        self._subscriptions.setdefault(address, []).append(subscription)
        logger.debug(f"Added {subscription}")
        return subscription

    def unsubscribe(self, subscription: TelemetrySubscription) -> None:
        if not subscription.active:
            return
        subscription.active = False
        subscriptions = self._subscriptions.get(subscription.address)
        if subscriptions is None:
            return
        if subscription in subscriptions:
            subscriptions.remove(subscription)
        if len(subscriptions) == 0:
            del self._subscriptions[subscription.address]
        logger.debug(f"Removed {subscription}")

    def subscribed_addresses(self) -> List[str]:
        return sorted(self._subscriptions.keys())

    def subscriptions_for(self, address: str) -> List[TelemetrySubscription]:
        return list(self._subscriptions.get(address, []))

    def feed_datagram(self, data: bytes, addr: HostAndPort) -> None:
        """Processes one received datagram. Never raises for bad input or misbehaving handlers."""
        self.packets_received += 1
        sender = addr[0]
        result = decode_datagram(data, sender)
        if not result.ok:
            self.packets_dropped += 1
            logger.warning(f"Dropping malformed datagram from {addr} ({result.kind.value}), raw=[{data!r}]: {result.error}")
            return
        packet = result.packet
        assert not packet is None
        self.packets_accepted += 1
        self.known_addresses.add(sender)
        logger.debug(f"Received telemetry from {addr}: {packet}")

        for discover_handler in list(self._discover_handlers):
            try:
                discover_handler(self.driver_class, packet, self)
            except Exception as e:
                logger.warning(f"Discover handler raised exception processing packet from {sender}: {e}")

        for subscription in self.subscriptions_for(sender):
            if not subscription.active:
                continue
            try:
                subscription.handler(packet)
            except Exception as e:
                logger.warning(f"Telemetry handler raised exception processing packet from {sender}: {e}")

    # ======================= socket lifecycle

    @property
    def final_result(self) -> Future[None]:
        if self._final_result is None:
            raise GlassScoutError("GlassScout has not been started")
        return self._final_result

    @property
    def is_running(self) -> bool:
        return not self._final_result is None and not self._final_result.done()

    @property
    def local_address(self) -> Optional[HostAndPort]:
        """The (host, port) the socket is bound to, or None if not bound."""
        if self._sock is None:
            return None
        sockname = self._sock.getsockname()
        return (sockname[0], sockname[1])

    def create_socket(self) -> socket.socket:
        """Creates and binds the UDP socket. Raises GlassScoutBindError if the bind fails."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.bind_address, self.port))
        except OSError as e:
            sock.close()
            raise GlassScoutBindError(self.port, self.bind_address, e) from e
        sock.setblocking(False)
        return sock

    async def start(self) -> None:
        if not self._final_result is None:
            raise GlassScoutError("GlassScout has already been started")
        loop = asyncio.get_running_loop()
        self._final_result = loop.create_future()
        try:
            self._sock = self.create_socket()
            untyped_transport, _ = await loop.create_datagram_endpoint(
                lambda: _GlassScoutProtocol(self),
                sock=self._sock
              )
            transport: asyncio.DatagramTransport = untyped_transport # type: ignore[assignment]
            self._transport = transport
            logger.info(f"GlassScout listening on {self.local_address}")
        except BaseException as e:
            self.set_final_exception(e)
            try:
                await self._final_result
            except BaseException:
                pass
            raise

    async def stop(self) -> None:
        """Closes the socket and completes final_result."""
        self._close_transport()
        self.set_final_result()

    async def wait_for_done(self) -> None:
        await self.final_result

    async def stop_and_wait(self) -> None:
        await self.stop()
        await self.wait_for_done()

    def connection_made(self, transport: asyncio.DatagramTransport) -> None:
        logger.debug(f"Connection made: {transport}")
        self._transport = transport

    def error_received(self, exc: Exception) -> None:
        logger.error(f"GlassScout socket error: {exc}")
        self.set_final_exception(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        logger.debug(f"Connection to transport lost, exc={exc}")
        self._transport = None
        if exc is None:
            self.set_final_result()
        else:
            self.set_final_exception(exc)

    def _close_transport(self) -> None:
        transport = self._transport
        self._transport = None
        if not transport is None:
            try:
                transport.close()
            except Exception as e:
                logger.error(f"Error closing transport: {e}")
        # the transport owns the socket once the endpoint has been created
        if transport is None and not self._sock is None:
            self._sock.close()
        self._sock = None

    def set_final_exception(self, exc: BaseException) -> None:
        assert not exc is None
        if not self._final_result is None and not self._final_result.done():
            logger.debug(f"GlassScout: Setting final exception: {exc}")
            self._final_result.set_exception(exc)
        self._close_transport()

    def set_final_result(self) -> None:
        if not self._final_result is None and not self._final_result.done():
            logger.debug("GlassScout: Setting final result to success")
            self._final_result.set_result(None)
        self._close_transport()

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        if exc is None:
            self.set_final_result()
        else:
            self.set_final_exception(exc)
        try:
            # ensure that final_result has been awaited
            await self.wait_for_done()
        except BaseException:
            pass
        return False
