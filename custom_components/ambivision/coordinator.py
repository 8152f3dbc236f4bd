"""DataUpdateCoordinator for AmbiVision."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import device_registry as dr
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .const import ATTR_FIRMWARE_VERSION, CONF_DEVICE_ID, DOMAIN
from .device import AmbiVisionDevice
from .exceptions import AmbiVisionError

_LOGGER = logging.getLogger(__name__)


def device_identifier(entry: ConfigEntry) -> tuple[str, str]:
    """Return the device registry identifier of an entry's appliance."""
    return (DOMAIN, entry.data.get(CONF_DEVICE_ID) or entry.entry_id)


@callback
def async_update_sw_version(hass: HomeAssistant, entry: ConfigEntry, firmware: str) -> bool:
    """Record a newly discovered firmware version in the device registry.

    Returns:
        True if the registry entry was changed.
    """
    registry = dr.async_get(hass)
    device_entry = registry.async_get_device(identifiers={device_identifier(entry)})
    if device_entry is None or device_entry.sw_version == firmware:
        return False
    _LOGGER.debug("Firmware of %s is now %s", entry.title, firmware)
    registry.async_update_device(device_entry.id, sw_version=firmware)
    return True


class AmbiVisionCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Coordinator publishing the attributes of an AmbiVision device.

    The appliance never reports status, so nothing is polled. Data is
    pushed whenever a discovery reply arrives or a command is sent. A
    refresh sends a discovery ping.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        entry: ConfigEntry,
        device: AmbiVisionDevice,
        name: str,
        auto_discover: bool,
    ) -> None:
        """Initialize the coordinator.

        Args:
            hass: Home Assistant instance.
            entry: The config entry.
            device: The device context.
            name: Name of the device for logging.
            auto_discover: Whether to ping periodically and on refresh.
        """
        super().__init__(
            hass,
            _LOGGER,
            config_entry=entry,
            name=f"{DOMAIN}_{name}",
            update_interval=None,
        )
        self.device = device
        self.auto_discover = auto_discover
        self._entry = entry
        self._firmware_version: str | None = None
        self._remove_listener = device.async_add_listener(self._handle_device_update)

    @callback
    def _handle_device_update(self) -> None:
        data = self.device.attributes
        firmware = data.get(ATTR_FIRMWARE_VERSION)
        if firmware is not None and firmware != self._firmware_version:
            self._firmware_version = firmware
            async_update_sw_version(self.hass, self._entry, firmware)
        self.async_set_updated_data(data)

    @callback
    def async_start_discovery(self) -> None:
        """Arm periodic discovery if enabled."""
        if self.auto_discover:
            self.device.scheduler.async_start(self.hass)

    async def async_shutdown(self) -> None:
        """Stop discovery and detach from the device."""
        self._remove_listener()
        self.device.scheduler.async_stop()
        await super().async_shutdown()

    async def _async_update_data(self) -> dict[str, Any]:
        """Send a discovery ping and return the current attributes."""
        if self.auto_discover:
            try:
                await self.device.async_discover()
            except AmbiVisionError as err:
                # The last asserted state stays valid without a reply
                _LOGGER.debug("Discovery ping for %s failed: %s", self.name, err)
        return self.device.attributes
