"""Per-device context for an AmbiVision appliance.

One ``AmbiVisionDevice`` exists per config entry. It owns the address
resolver, the asserted lighting state, the command sequencer and the
discovery scheduler, and exposes the operations the entities call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Any, Protocol

from homeassistant.core import CALLBACK_TYPE, callback

from .api import AmbiVisionTransport
from .const import (
    ATTR_ADDRESS_STALE,
    ATTR_COLOR,
    ATTR_DEVICE_ID,
    ATTR_FIRMWARE_VERSION,
    ATTR_HUE,
    ATTR_IP_ADDRESS,
    ATTR_LEVEL,
    ATTR_MODE,
    ATTR_SATURATION,
    ATTR_SUB_MODE,
    ATTR_SWITCH,
    DEFAULT_SETTLE_TIME,
    DEFAULT_STALE_AFTER,
    DISCOVERY_INTERVAL,
    PING_MESSAGE,
)
from .discovery import DiscoveryScheduler
from .exceptions import DispatchFailed, MalformedReply, TransportError
from .protocol import (
    DiscoveryRecord,
    Mode,
    hsv_to_rgb,
    mode_from_name,
    parse_discovery_reply,
    sub_mode_from_name,
)
from .resolver import AddressResolver
from .sequencer import CommandSequencer
from .state import (
    LightingState,
    ModeStateTracker,
    Operation,
    SetBrightness,
    SetColor,
    SetMode,
    SetPower,
    SetSubMode,
)

_LOGGER = logging.getLogger(__name__)


class Transport(Protocol):
    """Transport collaborator used by the device."""

    on_datagram_received: Callable[[bytes, str], None] | None

    async def async_start(self) -> None: ...

    async def async_stop(self) -> None: ...

    async def send_datagram(self, data: bytes, ip: str, port: int) -> None: ...

    async def send_broadcast(self, data: bytes, port: int) -> None: ...


class AmbiVisionDevice:
    """An AmbiVision appliance and everything asserted about it."""

    def __init__(
        self,
        manual_ip: str | None = None,
        transport: Transport | None = None,
        settle_time: float = DEFAULT_SETTLE_TIME,
        stale_after: timedelta = timedelta(seconds=DEFAULT_STALE_AFTER),
        discovery_interval: timedelta = timedelta(seconds=DISCOVERY_INTERVAL),
        device_id: str | None = None,
    ) -> None:
        """Initialize the device.

        Args:
            manual_ip: Configured address used until discovery succeeds.
            transport: UDP transport; a new one is created if omitted.
            settle_time: Seconds between consecutive commands of a sequence.
            stale_after: Age after which the discovered address is stale.
            discovery_interval: Time between periodic discovery pings.
            device_id: Only replies from this appliance update the address.
                Without one, the latest reply from any appliance wins.
        """
        self.transport = transport or AmbiVisionTransport()
        self.transport.on_datagram_received = self.handle_datagram
        self.resolver = AddressResolver(manual_ip, stale_after=stale_after)
        self.tracker = ModeStateTracker()
        self.sequencer = CommandSequencer(
            self.tracker,
            self.resolver,
            self.transport.send_datagram,
            settle_time=settle_time,
        )
        self.scheduler = DiscoveryScheduler(
            self.transport.send_broadcast, interval=discovery_interval
        )
        self._device_id = device_id
        self._listeners: list[CALLBACK_TYPE] = []

    @property
    def state(self) -> LightingState:
        """Return the last asserted lighting state."""
        return self.tracker.state

    @property
    def attributes(self) -> dict[str, Any]:
        """Return the attributes published to the host."""
        identity = self.resolver.identity
        address = self.resolver.address
        state = self.tracker.state
        color = state.color
        return {
            ATTR_DEVICE_ID: identity.device_id if identity else None,
            ATTR_FIRMWARE_VERSION: identity.firmware_version if identity else None,
            ATTR_IP_ADDRESS: address.ip if address else None,
            ATTR_ADDRESS_STALE: self.resolver.is_stale(),
            ATTR_MODE: state.mode.label if state.mode else None,
            ATTR_SUB_MODE: state.sub_mode.label if state.sub_mode else None,
            ATTR_SWITCH: "on" if state.switch_on else "off",
            ATTR_LEVEL: color.level,
            ATTR_HUE: color.hue,
            ATTR_SATURATION: color.saturation,
            ATTR_COLOR: hsv_to_rgb(color.hue, color.saturation, color.level),
        }

    async def async_start(self) -> None:
        """Open the transport."""
        await self.transport.async_start()

    async def async_stop(self) -> None:
        """Stop discovery and close the transport."""
        self.scheduler.async_stop()
        await self.transport.async_stop()

    @callback
    def async_add_listener(self, update_callback: CALLBACK_TYPE) -> CALLBACK_TYPE:
        """Register a callback for address or state changes."""
        self._listeners.append(update_callback)

        @callback
        def remove_listener() -> None:
            if update_callback in self._listeners:
                self._listeners.remove(update_callback)

        return remove_listener

    @callback
    def _async_notify(self) -> None:
        for update_callback in list(self._listeners):
            update_callback()

    @callback
    def handle_datagram(self, payload: bytes, source_ip: str) -> DiscoveryRecord | None:
        """Handle one inbound datagram from the transport."""
        if payload == PING_MESSAGE:
            return None
        try:
            record = parse_discovery_reply(payload, source_ip)
        except MalformedReply as err:
            _LOGGER.warning("Discarding discovery reply: %s", err)
            return None
        if record is None:
            _LOGGER.debug("Ignoring datagram from %s: %r", source_ip, payload)
            return None
        if self._device_id is not None and record.device_id != self._device_id:
            _LOGGER.debug(
                "Ignoring AmbiVision %s at %s, configured for %s",
                record.device_id,
                record.ip,
                self._device_id,
            )
            return None

        self.resolver.update(record)
        self._async_notify()
        return record

    async def _async_execute(self, operation: Operation) -> dict[str, Any]:
        try:
            await self.sequencer.execute(operation)
        finally:
            # Partially sent sequences change the asserted state too
            self._async_notify()
        return self.attributes

    async def async_set_power(self, on: bool) -> dict[str, Any]:
        """Turn on (last mode, Mood by default) or off (mode Off)."""
        _LOGGER.debug("Turning %s", "on" if on else "off")
        return await self._async_execute(SetPower(on))

    async def async_set_brightness(self, level: int) -> dict[str, Any]:
        """Set the overall brightness (0-100)."""
        _LOGGER.debug("Setting brightness to %s%%", level)
        return await self._async_execute(SetBrightness(level))

    async def async_set_color(
        self,
        hue: int | None = None,
        saturation: int | None = None,
        level: int | None = None,
    ) -> dict[str, Any]:
        """Set a direct color; missing components keep their asserted value.

        Switches to Mood mode with the Manual sub-mode first if needed.
        """
        operation = SetColor(hue=hue, saturation=saturation, level=level)
        _LOGGER.debug("Setting color: %s", operation)
        return await self._async_execute(operation)

    async def async_set_hue(self, hue: int) -> dict[str, Any]:
        """Set the hue (0-100), keeping saturation and level."""
        return await self.async_set_color(hue=hue)

    async def async_set_saturation(self, saturation: int) -> dict[str, Any]:
        """Set the saturation (0-100), keeping hue and level."""
        return await self.async_set_color(saturation=saturation)

    async def async_set_mode(self, name: str) -> dict[str, Any]:
        """Set the mode by name: Capture, Mood, Audio or Off."""
        _LOGGER.debug("Setting mode to: %s", name)
        return await self._async_execute(SetMode(mode_from_name(name)))

    async def async_set_sub_mode(self, mode_name: str, name: str) -> dict[str, Any]:
        """Set a sub-mode from the vocabulary of the named mode."""
        mode = mode_from_name(mode_name)
        _LOGGER.debug("Setting %s sub-mode to: %s", mode.label, name)
        return await self._async_execute(SetSubMode(mode, sub_mode_from_name(mode, name)))

    async def async_set_capture_sub_mode(self, name: str) -> dict[str, Any]:
        """Set a Capture sub-mode."""
        return await self.async_set_sub_mode(Mode.CAPTURE.label, name)

    async def async_set_mood_sub_mode(self, name: str) -> dict[str, Any]:
        """Set a Mood sub-mode."""
        return await self.async_set_sub_mode(Mode.MOOD.label, name)

    async def async_set_audio_sub_mode(self, name: str) -> dict[str, Any]:
        """Set an Audio sub-mode."""
        return await self.async_set_sub_mode(Mode.AUDIO.label, name)

    async def async_discover(self) -> dict[str, Any]:
        """Broadcast one discovery ping; replies update the address later.

        Raises:
            DispatchFailed: If the ping could not be sent.
        """
        try:
            await self.scheduler.async_trigger()
        except TransportError as err:
            raise DispatchFailed(
                f"Failed to send discovery ping: {err}", completed_steps=0, total_steps=1
            ) from err
        return self.attributes
