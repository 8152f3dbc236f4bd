"""Mode and sub-mode selects for the AmbiVision integration."""

from __future__ import annotations

import logging

from homeassistant.components.select import SelectEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import ATTR_MODE, ATTR_SUB_MODE, DOMAIN
from .coordinator import AmbiVisionCoordinator
from .entity import AmbiVisionEntity
from .exceptions import InvalidArgument
from .protocol import Mode

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up AmbiVision selects from a config entry."""
    coordinator: AmbiVisionCoordinator = hass.data[DOMAIN][entry.entry_id]

    async_add_entities(
        [
            AmbiVisionModeSelect(coordinator, entry),
            AmbiVisionSubModeSelect(coordinator, entry),
        ]
    )


class AmbiVisionModeSelect(AmbiVisionEntity, SelectEntity):
    """Primary mode of the appliance."""

    _attr_translation_key = "mode"
    _attr_options = Mode.labels()

    def __init__(self, coordinator: AmbiVisionCoordinator, entry: ConfigEntry) -> None:
        """Initialize the select."""
        super().__init__(coordinator, entry, "mode")

    @property
    def current_option(self) -> str | None:
        """Return the last asserted mode."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data[ATTR_MODE]

    async def async_select_option(self, option: str) -> None:
        """Switch the mode."""
        await self.device.async_set_mode(option)


class AmbiVisionSubModeSelect(AmbiVisionEntity, SelectEntity):
    """Sub-mode within the last asserted mode."""

    _attr_translation_key = "sub_mode"

    def __init__(self, coordinator: AmbiVisionCoordinator, entry: ConfigEntry) -> None:
        """Initialize the select."""
        super().__init__(coordinator, entry, "sub_mode")

    @property
    def _mode(self) -> Mode | None:
        if self.coordinator.data is None or self.coordinator.data[ATTR_MODE] is None:
            return None
        return Mode.from_label(self.coordinator.data[ATTR_MODE])

    @property
    def available(self) -> bool:
        """Return True while the asserted mode has sub-modes."""
        mode = self._mode
        return super().available and mode is not None and mode.sub_mode_type is not None

    @property
    def options(self) -> list[str]:
        """Return the sub-modes of the asserted mode."""
        mode = self._mode
        if mode is None or mode.sub_mode_type is None:
            return []
        return mode.sub_mode_type.labels()

    @property
    def current_option(self) -> str | None:
        """Return the last asserted sub-mode."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data[ATTR_SUB_MODE]

    async def async_select_option(self, option: str) -> None:
        """Switch the sub-mode within the asserted mode."""
        mode = self._mode
        if mode is None:
            raise InvalidArgument(f"No mode asserted, cannot select sub-mode {option}")
        await self.device.async_set_sub_mode(mode.label, option)
