"""Address resolution for the AmbiVision appliance."""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from homeassistant.util import dt as dt_util

from .const import DEFAULT_STALE_AFTER
from .exceptions import InvalidArgument, NoAddress
from .protocol import DiscoveryRecord

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceIdentity:
    """Identity reported by the appliance in its discovery reply."""

    device_id: str
    firmware_version: str


@dataclass(frozen=True)
class ResolvedAddress:
    """Best known address of the appliance.

    ``last_seen_at`` is None for a manually configured address that no
    discovery reply has confirmed yet.
    """

    ip: str
    last_seen_at: datetime | None = None


def validate_ip(ip: str) -> str:
    """Return the normalized form of a four-octet address."""
    try:
        return str(ipaddress.IPv4Address(ip.strip()))
    except (AttributeError, ValueError) as err:
        raise InvalidArgument(f"Invalid IPv4 address: {ip!r}") from err


class AddressResolver:
    """Holds the best known address and identity of the appliance.

    Discovery replies overwrite both wholesale (last reply wins). A stale
    address is still returned by ``resolve`` since there is no other way
    to reach the appliance.
    """

    def __init__(
        self,
        manual_ip: str | None = None,
        stale_after: timedelta = timedelta(seconds=DEFAULT_STALE_AFTER),
    ) -> None:
        """Initialize the resolver.

        Args:
            manual_ip: Configured address used until discovery succeeds.
            stale_after: Age after which a discovered address is stale.
        """
        self._address: ResolvedAddress | None = None
        self._identity: DeviceIdentity | None = None
        self._stale_after = stale_after
        if manual_ip:
            self._address = ResolvedAddress(ip=validate_ip(manual_ip))

    @property
    def address(self) -> ResolvedAddress | None:
        """Return the current address, if any."""
        return self._address

    @property
    def identity(self) -> DeviceIdentity | None:
        """Return the last discovered identity, if any."""
        return self._identity

    def update(self, record: DiscoveryRecord, now: datetime | None = None) -> bool:
        """Overwrite address and identity with a discovery record.

        Returns:
            True if the address or identity changed.
        """
        identity = DeviceIdentity(
            device_id=record.device_id,
            firmware_version=record.firmware_version,
        )
        previous_ip = self._address.ip if self._address else None
        changed = previous_ip != record.ip or self._identity != identity

        self._identity = identity
        self._address = ResolvedAddress(
            ip=record.ip,
            last_seen_at=now or dt_util.utcnow(),
        )

        if changed:
            _LOGGER.info(
                "AmbiVision %s (%s) resolved to %s (was %s)",
                identity.device_id,
                identity.firmware_version,
                record.ip,
                previous_ip,
            )
        return changed

    def resolve(self) -> ResolvedAddress:
        """Return the address commands should be sent to.

        Raises:
            NoAddress: If no discovery succeeded and no address was configured.
        """
        if self._address is None:
            raise NoAddress(
                "No IP address configured or discovered; run discovery or set one manually"
            )
        return self._address

    def is_stale(self, now: datetime | None = None) -> bool:
        """Return True if no discovery reply arrived within the stale window."""
        if self._address is None:
            return True
        if self._address.last_seen_at is None:
            return True
        return (now or dt_util.utcnow()) - self._address.last_seen_at > self._stale_after
