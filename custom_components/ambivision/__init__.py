"""The AmbiVision integration."""

from __future__ import annotations

import logging
from datetime import timedelta

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST, CONF_NAME, Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .const import (
    CONF_AUTO_DISCOVER,
    CONF_DEVICE_ID,
    CONF_SETTLE_TIME,
    CONF_STALE_AFTER,
    DEFAULT_AUTO_DISCOVER,
    DEFAULT_NAME,
    DEFAULT_SETTLE_TIME,
    DEFAULT_STALE_AFTER,
    DOMAIN,
)
from .coordinator import AmbiVisionCoordinator
from .device import AmbiVisionDevice
from .exceptions import TransportError

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.BUTTON, Platform.LIGHT, Platform.SELECT]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up AmbiVision from a config entry."""
    host = entry.data.get(CONF_HOST) or None
    name = entry.data.get(CONF_NAME, DEFAULT_NAME)
    auto_discover = entry.options.get(CONF_AUTO_DISCOVER, DEFAULT_AUTO_DISCOVER)

    _LOGGER.debug("Setting up AmbiVision %s (host %s)", name, host)

    device = AmbiVisionDevice(
        manual_ip=host,
        device_id=entry.data.get(CONF_DEVICE_ID),
        settle_time=entry.options.get(CONF_SETTLE_TIME, DEFAULT_SETTLE_TIME),
        stale_after=timedelta(
            seconds=entry.options.get(CONF_STALE_AFTER, DEFAULT_STALE_AFTER)
        ),
    )
    try:
        await device.async_start()
    except TransportError as err:
        raise ConfigEntryNotReady(str(err)) from err

    coordinator = AmbiVisionCoordinator(hass, entry, device, name, auto_discover)

    try:
        await coordinator.async_config_entry_first_refresh()
    except Exception:
        await device.async_stop()
        raise
    coordinator.async_start_discovery()

    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = coordinator

    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry when its options change."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        coordinator: AmbiVisionCoordinator = hass.data[DOMAIN].pop(entry.entry_id)
        await coordinator.async_shutdown()
        await coordinator.device.async_stop()

    return unload_ok
