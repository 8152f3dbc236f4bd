"""Config flow for the AmbiVision integration."""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant.config_entries import (
    ConfigEntry,
    ConfigFlow,
    ConfigFlowResult,
    OptionsFlow,
)
from homeassistant.const import CONF_HOST, CONF_NAME
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError

from .api import async_discover_devices
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
    MAX_SETTLE_TIME,
)
from .exceptions import InvalidArgument
from .protocol import DiscoveryRecord
from .resolver import validate_ip

_LOGGER = logging.getLogger(__name__)

STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_HOST, default=""): str,
        vol.Optional(CONF_NAME, default=DEFAULT_NAME): str,
    }
)


async def validate_input(hass: HomeAssistant, data: dict[str, Any]) -> dict[str, Any]:
    """Validate the user input.

    Data has the keys from STEP_USER_DATA_SCHEMA with values provided by the user.

    The appliance never answers commands, so only the address format is
    checked. An empty host leaves the address to discovery.
    """
    host = data.get(CONF_HOST, "").strip()

    if host:
        try:
            host = validate_ip(host)
        except InvalidArgument as err:
            raise CannotConnect from err

    return {
        "title": data.get(CONF_NAME) or DEFAULT_NAME,
        "host": host,
    }


class AmbiVisionConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for AmbiVision."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the config flow."""
        self._discovered_devices: dict[str, DiscoveryRecord] = {}

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> OptionsFlow:
        """Return the options flow."""
        return AmbiVisionOptionsFlow()

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle the initial step - attempt discovery first."""
        if user_input is None:
            _LOGGER.debug("Starting device discovery")
            discovered = await async_discover_devices()

            if discovered:
                self._discovered_devices = {
                    record.device_id: record for record in discovered
                }
                return await self.async_step_select_device()

            _LOGGER.debug("No devices discovered, showing manual entry form")
            return self.async_show_form(
                step_id="user",
                data_schema=STEP_USER_DATA_SCHEMA,
            )

        return await self._async_create_manual_entry("user", user_input)

    async def async_step_select_device(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle device selection from discovered devices."""
        if user_input is not None:
            selected = user_input["device"]

            if selected == "manual":
                return await self.async_step_manual()

            record = self._discovered_devices[selected]
            await self.async_set_unique_id(record.device_id)
            self._abort_if_unique_id_configured(updates={CONF_HOST: record.ip})

            return self.async_create_entry(
                title=f"{DEFAULT_NAME} {record.device_id}",
                data={
                    CONF_HOST: record.ip,
                    CONF_NAME: f"{DEFAULT_NAME} {record.device_id}",
                    CONF_DEVICE_ID: record.device_id,
                },
            )

        device_options = {
            device_id: f"{device_id} {record.firmware_version} ({record.ip})"
            for device_id, record in self._discovered_devices.items()
        }
        device_options["manual"] = "Enter IP address manually"

        return self.async_show_form(
            step_id="select_device",
            data_schema=vol.Schema(
                {vol.Required("device"): vol.In(device_options)}
            ),
        )

    async def async_step_manual(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle manual IP entry."""
        if user_input is None:
            return self.async_show_form(
                step_id="manual",
                data_schema=STEP_USER_DATA_SCHEMA,
            )

        return await self._async_create_manual_entry("manual", user_input)

    async def _async_create_manual_entry(
        self, step_id: str, user_input: dict[str, Any]
    ) -> ConfigFlowResult:
        errors: dict[str, str] = {}

        try:
            info = await validate_input(self.hass, user_input)
        except CannotConnect:
            errors["base"] = "cannot_connect"
        except Exception:
            _LOGGER.exception("Unexpected exception")
            errors["base"] = "unknown"
        else:
            # One appliance per entry; without a host the domain is the id
            await self.async_set_unique_id(info["host"] or DOMAIN)
            self._abort_if_unique_id_configured()

            return self.async_create_entry(
                title=info["title"],
                data={
                    CONF_HOST: info["host"],
                    CONF_NAME: info["title"],
                },
            )

        return self.async_show_form(
            step_id=step_id,
            data_schema=STEP_USER_DATA_SCHEMA,
            errors=errors,
        )


class AmbiVisionOptionsFlow(OptionsFlow):
    """Handle AmbiVision options."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Manage discovery and timing options."""
        if user_input is not None:
            return self.async_create_entry(data=user_input)

        options = self.config_entry.options
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Optional(
                        CONF_AUTO_DISCOVER,
                        default=options.get(CONF_AUTO_DISCOVER, DEFAULT_AUTO_DISCOVER),
                    ): bool,
                    vol.Optional(
                        CONF_SETTLE_TIME,
                        default=options.get(CONF_SETTLE_TIME, DEFAULT_SETTLE_TIME),
                    ): vol.All(vol.Coerce(float), vol.Range(min=0, max=MAX_SETTLE_TIME)),
                    vol.Optional(
                        CONF_STALE_AFTER,
                        default=options.get(CONF_STALE_AFTER, DEFAULT_STALE_AFTER),
                    ): vol.All(vol.Coerce(int), vol.Range(min=1)),
                }
            ),
        )


class CannotConnect(HomeAssistantError):
    """Error to indicate the address is not usable."""
