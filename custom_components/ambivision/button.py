"""Discover button for the AmbiVision integration."""

from __future__ import annotations

from homeassistant.components.button import ButtonEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import EntityCategory
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN
from .coordinator import AmbiVisionCoordinator
from .entity import AmbiVisionEntity


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the AmbiVision discover button from a config entry."""
    coordinator: AmbiVisionCoordinator = hass.data[DOMAIN][entry.entry_id]

    async_add_entities([AmbiVisionDiscoverButton(coordinator, entry)])


class AmbiVisionDiscoverButton(AmbiVisionEntity, ButtonEntity):
    """Broadcasts a discovery ping to refresh the appliance's address."""

    _attr_translation_key = "discover"
    _attr_entity_category = EntityCategory.DIAGNOSTIC

    def __init__(self, coordinator: AmbiVisionCoordinator, entry: ConfigEntry) -> None:
        """Initialize the button."""
        super().__init__(coordinator, entry, "discover")

    async def async_press(self) -> None:
        """Send one discovery ping."""
        await self.device.async_discover()
