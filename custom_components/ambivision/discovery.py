"""Periodic discovery of the AmbiVision appliance."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from enum import Enum

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.event import async_track_time_interval

from .const import DISCOVERY_INTERVAL, UDP_PORT
from .exceptions import TransportError
from .protocol import encode_ping

_LOGGER = logging.getLogger(__name__)

SendBroadcast = Callable[[bytes, int], Awaitable[None]]


class DiscoveryState(Enum):
    """Discovery scheduler state."""

    IDLE = "idle"
    DISCOVERING = "discovering"


class DiscoveryScheduler:
    """Broadcasts discovery pings on a fixed period.

    A trigger only sends the ping; replies arrive through the transport's
    datagram callback. There is no backoff and no limit on retries.
    """

    def __init__(
        self,
        send_broadcast: SendBroadcast,
        interval: timedelta = timedelta(seconds=DISCOVERY_INTERVAL),
        port: int = UDP_PORT,
    ) -> None:
        """Initialize the scheduler.

        Args:
            send_broadcast: Transport broadcast coroutine.
            interval: Time between periodic pings.
            port: Destination UDP port.
        """
        self._send_broadcast = send_broadcast
        self._interval = interval
        self._port = port
        self._state = DiscoveryState.IDLE
        self._unsub: CALLBACK_TYPE | None = None

    @property
    def state(self) -> DiscoveryState:
        """Return the scheduler state."""
        return self._state

    @property
    def running(self) -> bool:
        """Return True while periodic discovery is armed."""
        return self._unsub is not None

    async def async_trigger(self) -> bool:
        """Send one discovery ping.

        Returns:
            True if the ping was sent; False if a ping was already in
            flight.

        Raises:
            TransportError: If the ping could not be sent.
        """
        if self._state is DiscoveryState.DISCOVERING:
            _LOGGER.debug("Discovery already in progress")
            return False

        self._state = DiscoveryState.DISCOVERING
        try:
            _LOGGER.debug("Starting device discovery")
            await self._send_broadcast(encode_ping(), self._port)
        finally:
            self._state = DiscoveryState.IDLE
        return True

    @callback
    def async_start(self, hass: HomeAssistant) -> None:
        """Arm periodic discovery."""
        if self._unsub is not None:
            return
        self._unsub = async_track_time_interval(
            hass, self._async_tick, self._interval, name="AmbiVision discovery"
        )

    @callback
    def async_stop(self) -> None:
        """Disarm periodic discovery."""
        if self._unsub is not None:
            self._unsub()
            self._unsub = None

    async def _async_tick(self, _now: datetime) -> None:
        try:
            await self.async_trigger()
        except TransportError as err:
            _LOGGER.warning("Discovery failed: %s", err)
