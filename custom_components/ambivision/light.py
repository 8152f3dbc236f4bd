"""Light entity for the AmbiVision integration."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.light import (
    ATTR_BRIGHTNESS,
    ATTR_HS_COLOR,
    ColorMode,
    LightEntity,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import (
    ATTR_ADDRESS_STALE,
    ATTR_DEVICE_ID,
    ATTR_FIRMWARE_VERSION,
    ATTR_HUE,
    ATTR_IP_ADDRESS,
    ATTR_LEVEL,
    ATTR_MODE,
    ATTR_SATURATION,
    ATTR_SUB_MODE,
    ATTR_SWITCH,
    DOMAIN,
    MAX_PERCENT,
)
from .coordinator import AmbiVisionCoordinator
from .entity import AmbiVisionEntity
from .protocol import clamp

_LOGGER = logging.getLogger(__name__)

# Home Assistant hue is 0-360, the appliance's color model uses 0-100
HUE_SCALE = 360 / MAX_PERCENT


def to_ha_brightness(level: int) -> int:
    """Convert a 0-100 level to Home Assistant brightness (0-255)."""
    return round(level / MAX_PERCENT * 255)


def from_ha_brightness(brightness: int) -> int:
    """Convert Home Assistant brightness (0-255) to a 0-100 level.

    Any non-zero brightness maps to at least 1.
    """
    lower = 1 if brightness > 0 else 0
    return clamp(brightness / 255 * MAX_PERCENT, lower, MAX_PERCENT)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the AmbiVision light from a config entry."""
    coordinator: AmbiVisionCoordinator = hass.data[DOMAIN][entry.entry_id]

    async_add_entities([AmbiVisionLight(coordinator, entry)])


class AmbiVisionLight(AmbiVisionEntity, LightEntity):
    """Representation of an AmbiVision appliance as a light."""

    _attr_name = None
    _attr_color_mode = ColorMode.HS
    _attr_supported_color_modes = {ColorMode.HS}

    def __init__(self, coordinator: AmbiVisionCoordinator, entry: ConfigEntry) -> None:
        """Initialize the light entity."""
        super().__init__(coordinator, entry, "light")

    @property
    def is_on(self) -> bool | None:
        """Return true if the last asserted mode is not Off."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data[ATTR_SWITCH] == "on"

    @property
    def brightness(self) -> int | None:
        """Return the brightness of the light (0-255)."""
        if self.coordinator.data is None:
            return None
        return to_ha_brightness(self.coordinator.data[ATTR_LEVEL])

    @property
    def hs_color(self) -> tuple[float, float] | None:
        """Return the hue and saturation."""
        if self.coordinator.data is None:
            return None
        return (
            self.coordinator.data[ATTR_HUE] * HUE_SCALE,
            float(self.coordinator.data[ATTR_SATURATION]),
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        """Return discovery details and the asserted mode."""
        if self.coordinator.data is None:
            return None
        return {
            key: self.coordinator.data[key]
            for key in (
                ATTR_DEVICE_ID,
                ATTR_FIRMWARE_VERSION,
                ATTR_IP_ADDRESS,
                ATTR_ADDRESS_STALE,
                ATTR_MODE,
                ATTR_SUB_MODE,
            )
        }

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn the light on."""
        level = None
        if ATTR_BRIGHTNESS in kwargs:
            level = from_ha_brightness(kwargs[ATTR_BRIGHTNESS])

        # Direct color switches the appliance to Mood/Manual, which is on
        if ATTR_HS_COLOR in kwargs:
            hue, saturation = kwargs[ATTR_HS_COLOR]
            await self.device.async_set_color(
                hue=round(hue / HUE_SCALE), saturation=round(saturation), level=level
            )
            return

        if not self.is_on:
            await self.device.async_set_power(True)
        if level is not None:
            await self.device.async_set_brightness(level)

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Turn the light off."""
        await self.device.async_set_power(False)
