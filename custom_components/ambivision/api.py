"""UDP transport for AmbiVision appliances."""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Callable

from .const import BROADCAST_ADDRESS, PORT_LISTEN, TIMEOUT_COMMAND, TIMEOUT_DISCOVERY, UDP_PORT
from .exceptions import MalformedReply, TransportError
from .protocol import DiscoveryRecord, encode_ping, parse_discovery_reply

_LOGGER = logging.getLogger(__name__)

DatagramCallback = Callable[[bytes, str], None]


def _create_socket(port: int) -> socket.socket:
    """Create a non-blocking UDP socket that may broadcast."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
    sock.setblocking(False)
    try:
        sock.bind(("", port))
    except OSError:
        sock.close()
        raise
    return sock


class AmbiVisionTransport:
    """Sends datagrams to the appliance and listens for its replies.

    Commands and pings go out from the listening socket, so discovery
    replies come back to it and are handed to the datagram callback
    together with the sender address.
    """

    def __init__(
        self,
        on_datagram_received: DatagramCallback | None = None,
        port: int = PORT_LISTEN,
        timeout: float = TIMEOUT_COMMAND,
    ) -> None:
        """Initialize the transport.

        Args:
            on_datagram_received: Called with (payload, sender IP).
            port: Local port to listen on (0 for an ephemeral port).
            timeout: Timeout in seconds for each send.
        """
        self.on_datagram_received = on_datagram_received
        self._port = port
        self._timeout = timeout
        self._sock: socket.socket | None = None
        self._reader: asyncio.Task[None] | None = None

    @property
    def started(self) -> bool:
        """Return True while the socket is open."""
        return self._sock is not None

    async def async_start(self) -> None:
        """Open the socket and start reading datagrams."""
        if self._sock is not None:
            return
        try:
            self._sock = _create_socket(self._port)
        except OSError as err:
            raise TransportError(f"Failed to bind to port {self._port}: {err}") from err
        _LOGGER.debug("Listening on %s", self._sock.getsockname())
        self._reader = asyncio.get_running_loop().create_task(self._async_read_loop())

    async def async_stop(self) -> None:
        """Stop reading and close the socket."""
        sock, self._sock = self._sock, None
        reader, self._reader = self._reader, None
        if reader is not None:
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass
        if sock is not None:
            sock.close()

    async def send_datagram(self, data: bytes, ip: str, port: int = UDP_PORT) -> None:
        """Send a datagram to one address.

        Raises:
            TransportError: If the send fails or times out.
        """
        await self._async_send(data, (ip, port))

    async def send_broadcast(self, data: bytes, port: int = UDP_PORT) -> None:
        """Send a datagram to the broadcast address.

        Raises:
            TransportError: If the send fails or times out.
        """
        await self._async_send(data, (BROADCAST_ADDRESS, port))

    async def _async_send(self, data: bytes, addr: tuple[str, int]) -> None:
        if self._sock is None:
            raise TransportError("Transport is not started")
        loop = asyncio.get_running_loop()
        _LOGGER.debug("Sending to %s:%d: %r", addr[0], addr[1], data)
        try:
            await asyncio.wait_for(loop.sock_sendto(self._sock, data, addr), timeout=self._timeout)
        except asyncio.TimeoutError as err:
            raise TransportError(f"Timeout sending to {addr[0]}:{addr[1]}") from err
        except OSError as err:
            raise TransportError(f"Socket error sending to {addr[0]}:{addr[1]}: {err}") from err

    async def _async_read_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while self._sock is not None:
            try:
                data, addr = await loop.sock_recvfrom(self._sock, 4096)
            except OSError as err:
                if self._sock is None:
                    break
                _LOGGER.debug("Socket error while listening: %s", err)
                continue
            _LOGGER.debug("Received from %s: %r", addr[0], data)
            if self.on_datagram_received is not None:
                self.on_datagram_received(data, addr[0])


async def async_discover_devices(timeout: float = TIMEOUT_DISCOVERY) -> list[DiscoveryRecord]:
    """Broadcast one ping and collect the appliances that reply.

    Args:
        timeout: Time in seconds to wait for replies.

    Returns:
        One DiscoveryRecord per replying device id.
    """
    devices: dict[str, DiscoveryRecord] = {}

    def _on_datagram(data: bytes, source_ip: str) -> None:
        try:
            record = parse_discovery_reply(data, source_ip)
        except MalformedReply as err:
            _LOGGER.debug("Ignoring reply: %s", err)
            return
        if record is not None and record.device_id not in devices:
            devices[record.device_id] = record
            _LOGGER.info(
                "Discovered AmbiVision %s (%s) at %s",
                record.device_id,
                record.firmware_version,
                record.ip,
            )

    transport = AmbiVisionTransport(_on_datagram)
    try:
        await transport.async_start()
        await transport.send_broadcast(encode_ping())
        await asyncio.sleep(timeout)
    except TransportError as err:
        _LOGGER.error("Discovery failed: %s", err)
    finally:
        await transport.async_stop()

    return list(devices.values())
