"""Base entity for the AmbiVision integration."""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_NAME
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import ATTR_FIRMWARE_VERSION, DEFAULT_NAME
from .coordinator import AmbiVisionCoordinator, device_identifier
from .device import AmbiVisionDevice


class AmbiVisionEntity(CoordinatorEntity[AmbiVisionCoordinator]):
    """Entity attached to an AmbiVision device."""

    _attr_has_entity_name = True
    # The appliance never reports its state
    _attr_assumed_state = True

    def __init__(self, coordinator: AmbiVisionCoordinator, entry: ConfigEntry, key: str) -> None:
        """Initialize the entity.

        Args:
            coordinator: The data update coordinator.
            entry: The config entry.
            key: Suffix making the unique id distinct per entity.
        """
        super().__init__(coordinator)
        self._entry = entry
        self._attr_unique_id = f"{entry.entry_id}_{key}"

        data = coordinator.data or {}
        self._attr_device_info = DeviceInfo(
            identifiers={device_identifier(entry)},
            name=entry.data.get(CONF_NAME, DEFAULT_NAME),
            manufacturer="AmbiVision",
            model="AmbiVision PRO",
            sw_version=data.get(ATTR_FIRMWARE_VERSION),
        )

    @property
    def device(self) -> AmbiVisionDevice:
        """Return the device context."""
        return self.coordinator.device
