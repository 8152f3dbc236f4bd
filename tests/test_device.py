"""Tests for the device context."""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock, call

import pytest

from custom_components.ambivision.const import UDP_PORT
from custom_components.ambivision.device import AmbiVisionDevice
from custom_components.ambivision.exceptions import (
    DispatchFailed,
    InvalidArgument,
    NoAddress,
    TransportError,
)
from custom_components.ambivision.protocol import Mode, MoodSubMode

REPLY = b"AmbiVision(605533_V.18) MagicLink(21393430v7)"


@pytest.fixture
def transport() -> MagicMock:
    """Return a transport whose sends succeed."""
    transport = MagicMock()
    transport.async_start = AsyncMock()
    transport.async_stop = AsyncMock()
    transport.send_datagram = AsyncMock()
    transport.send_broadcast = AsyncMock()
    return transport


@pytest.fixture
def device(transport: MagicMock) -> AmbiVisionDevice:
    """Return a device without an address."""
    return AmbiVisionDevice(transport=transport, settle_time=0)


class TestInbound:
    """Tests for inbound datagrams."""

    def test_transport_callback_wired(
        self, device: AmbiVisionDevice, transport: MagicMock
    ) -> None:
        """Test the transport hands datagrams to the device."""
        assert transport.on_datagram_received == device.handle_datagram

    def test_discovery_reply(self, device: AmbiVisionDevice) -> None:
        """Test a reply sets identity and address and notifies listeners."""
        listener = MagicMock()
        device.async_add_listener(listener)

        record = device.handle_datagram(REPLY, "192.168.1.50")

        assert record is not None
        listener.assert_called_once_with()
        attributes = device.attributes
        assert attributes["device_id"] == "605533"
        assert attributes["firmware_version"] == "V.18"
        assert attributes["ip_address"] == "192.168.1.50"
        assert attributes["address_stale"] is False

    def test_not_a_reply(self, device: AmbiVisionDevice) -> None:
        """Test unrelated datagrams change nothing."""
        listener = MagicMock()
        device.async_add_listener(listener)

        assert device.handle_datagram(b"hello", "192.168.1.9") is None

        listener.assert_not_called()
        assert device.resolver.address is None

    def test_malformed_reply(
        self, device: AmbiVisionDevice, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a malformed reply is logged and discarded."""
        with caplog.at_level(logging.WARNING):
            assert device.handle_datagram(b"AmbiVision(oops)", "192.168.1.9") is None

        assert "Discarding discovery reply" in caplog.text
        assert device.resolver.address is None

    def test_ping_echo_ignored(
        self, device: AmbiVisionDevice, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test our own broadcast echoed back is not a malformed reply."""
        with caplog.at_level(logging.WARNING):
            assert device.handle_datagram(b"AmbiVisionPing", "192.168.1.2") is None
        assert caplog.text == ""

    def test_latest_reply_wins_without_device_id(self, device: AmbiVisionDevice) -> None:
        """Test any appliance may take over the address when none is configured."""
        device.handle_datagram(REPLY, "192.168.1.50")
        device.handle_datagram(b"AmbiVision(999999_V.20)", "192.168.1.99")

        assert device.attributes["device_id"] == "999999"
        assert device.attributes["ip_address"] == "192.168.1.99"

    def test_other_appliance_ignored(
        self, transport: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test replies from a different appliance leave the address alone."""
        device = AmbiVisionDevice(transport=transport, device_id="605533")
        listener = MagicMock()
        device.async_add_listener(listener)

        assert device.handle_datagram(REPLY, "192.168.1.50") is not None
        with caplog.at_level(logging.DEBUG):
            assert device.handle_datagram(b"AmbiVision(999999_V.20)", "192.168.1.99") is None

        assert "Ignoring AmbiVision 999999" in caplog.text
        listener.assert_called_once_with()
        assert device.attributes["device_id"] == "605533"
        assert device.attributes["ip_address"] == "192.168.1.50"

    def test_remove_listener(self, device: AmbiVisionDevice) -> None:
        """Test removed listeners are not called."""
        listener = MagicMock()
        remove = device.async_add_listener(listener)
        remove()

        device.handle_datagram(REPLY, "192.168.1.50")

        listener.assert_not_called()


class TestOperations:
    """Tests for host operations."""

    async def test_no_address(self, device: AmbiVisionDevice, transport: MagicMock) -> None:
        """Test commands fail without an address."""
        with pytest.raises(NoAddress):
            await device.async_set_color(hue=10)
        transport.send_datagram.assert_not_called()

    async def test_set_color_after_discovery(
        self, device: AmbiVisionDevice, transport: MagicMock
    ) -> None:
        """Test color goes to the discovered address after Mood/Manual."""
        device.handle_datagram(REPLY, "192.168.1.50")

        attributes = await device.async_set_color(hue=0, saturation=100, level=100)

        assert transport.send_datagram.mock_calls == [
            call(b"AmbiVision22", "192.168.1.50", UDP_PORT),
            call(b"AmbiVision31", "192.168.1.50", UDP_PORT),
            call(b"AmbiVision1 R{255} G{0} B{0} \n", "192.168.1.50", UDP_PORT),
        ]
        assert attributes["mode"] == "Mood"
        assert attributes["sub_mode"] == "Manual"
        assert attributes["switch"] == "on"
        assert attributes["color"] == (255, 0, 0)

    async def test_manual_address(self, transport: MagicMock) -> None:
        """Test a configured address is used before discovery."""
        device = AmbiVisionDevice("192.168.1.20", transport=transport, settle_time=0)

        attributes = await device.async_set_brightness(150)

        transport.send_datagram.assert_awaited_once_with(
            b"AmbiVision4 OVERALL_BRIGHTNESS={100} \n", "192.168.1.20", UDP_PORT
        )
        assert attributes["level"] == 100
        assert attributes["ip_address"] == "192.168.1.20"
        assert attributes["address_stale"] is True

    async def test_invalid_mode(self, transport: MagicMock) -> None:
        """Test unknown modes are rejected before any send."""
        device = AmbiVisionDevice("192.168.1.20", transport=transport)

        with pytest.raises(InvalidArgument):
            await device.async_set_mode("Party")
        with pytest.raises(InvalidArgument):
            await device.async_set_audio_sub_mode("Disco")

        transport.send_datagram.assert_not_called()

    async def test_sub_modes(self, transport: MagicMock) -> None:
        """Test each sub-mode command family."""
        device = AmbiVisionDevice("192.168.1.20", transport=transport, settle_time=0)

        await device.async_set_mode("Mood")
        attributes = await device.async_set_mood_sub_mode("Rainbow")
        assert attributes["sub_mode"] == "Rainbow"

        await device.async_set_mode("Capture")
        attributes = await device.async_set_capture_sub_mode("Average")
        assert attributes["sub_mode"] == "Average"

        await device.async_set_mode("Audio")
        attributes = await device.async_set_audio_sub_mode("Freq Bins")
        assert attributes["mode"] == "Audio"
        assert attributes["sub_mode"] == "Freq Bins"

        assert [c.args[0] for c in transport.send_datagram.mock_calls] == [
            b"AmbiVision22",
            b"AmbiVision33",
            b"AmbiVision21",
            b"AmbiVision34",
            b"AmbiVision23",
            b"AmbiVision35",
        ]

    async def test_power_restores_last_mode(self, transport: MagicMock) -> None:
        """Test power on returns to the last mode that was not Off."""
        device = AmbiVisionDevice("192.168.1.20", transport=transport, settle_time=0)

        await device.async_set_mode("Capture")
        attributes = await device.async_set_power(False)
        assert attributes["switch"] == "off"
        assert attributes["mode"] == "Off"

        attributes = await device.async_set_power(True)
        assert attributes["switch"] == "on"
        assert attributes["mode"] == "Capture"
        assert transport.send_datagram.mock_calls[-1].args[0] == b"AmbiVision21"

    async def test_set_hue_keeps_other_components(self, transport: MagicMock) -> None:
        """Test hue and saturation setters keep the asserted color."""
        device = AmbiVisionDevice("192.168.1.20", transport=transport, settle_time=0)

        await device.async_set_color(hue=10, saturation=50, level=40)
        await device.async_set_hue(60)
        attributes = await device.async_set_saturation(70)

        assert (attributes["hue"], attributes["saturation"], attributes["level"]) == (60, 70, 40)
        assert device.state.mode is Mode.MOOD
        assert device.state.sub_mode is MoodSubMode.MANUAL
        # Only the first color needed Mood/Manual
        assert transport.send_datagram.await_count == 5

    async def test_concurrent_partial_colors_build_on_each_other(
        self, transport: MagicMock
    ) -> None:
        """Test queued hue and saturation changes both survive."""

        async def _yielding_send(data: bytes, ip: str, port: int) -> None:
            await asyncio.sleep(0)

        transport.send_datagram.side_effect = _yielding_send
        device = AmbiVisionDevice("192.168.1.20", transport=transport, settle_time=0)

        await device.async_set_color(hue=10, saturation=50, level=40)
        await asyncio.gather(device.async_set_hue(60), device.async_set_saturation(70))

        color = device.state.color
        assert (color.hue, color.saturation, color.level) == (60, 70, 40)

    async def test_dispatch_failure_notifies(self, transport: MagicMock) -> None:
        """Test listeners see the partially applied state after a failure."""
        transport.send_datagram.side_effect = [None, TransportError("timeout")]
        device = AmbiVisionDevice("192.168.1.20", transport=transport, settle_time=0)
        listener = MagicMock()
        device.async_add_listener(listener)

        with pytest.raises(DispatchFailed):
            await device.async_set_color(hue=10)

        listener.assert_called_once_with()
        assert device.attributes["mode"] == "Mood"
        assert device.attributes["sub_mode"] is None

    async def test_discover(self, device: AmbiVisionDevice, transport: MagicMock) -> None:
        """Test discover broadcasts one ping."""
        await device.async_discover()
        transport.send_broadcast.assert_awaited_once_with(b"AmbiVisionPing", UDP_PORT)

    async def test_discover_failure_is_raised(
        self, device: AmbiVisionDevice, transport: MagicMock
    ) -> None:
        """Test a ping that cannot be sent is reported to the caller."""
        transport.send_broadcast.side_effect = TransportError("network unreachable")

        with pytest.raises(DispatchFailed, match="network unreachable") as exc_info:
            await device.async_discover()

        assert exc_info.value.completed_steps == 0
        assert exc_info.value.total_steps == 1
        # The next ping is not blocked by the failed one
        transport.send_broadcast.side_effect = None
        await device.async_discover()
        assert transport.send_broadcast.await_count == 2

    async def test_start_and_stop(self, device: AmbiVisionDevice, transport: MagicMock) -> None:
        """Test the device opens and closes its transport."""
        await device.async_start()
        await device.async_stop()
        transport.async_start.assert_awaited_once()
        transport.async_stop.assert_awaited_once()
