"""Errors raised by the AmbiVision integration."""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class AmbiVisionError(HomeAssistantError):
    """Base error for the AmbiVision integration."""


class InvalidArgument(AmbiVisionError):
    """Unrecognized mode or sub-mode, or a sub-mode outside its mode."""


class NoAddress(AmbiVisionError):
    """No address was discovered or configured for the device."""


class MalformedReply(AmbiVisionError):
    """A discovery reply carried the signature but not the expected format."""


class TransportError(AmbiVisionError):
    """A datagram could not be sent within the timeout."""


class DispatchFailed(AmbiVisionError):
    """A command sequence was aborted because a step could not be sent."""

    def __init__(self, message: str, completed_steps: int, total_steps: int) -> None:
        """Initialize the error.

        Args:
            message: Human readable reason.
            completed_steps: Number of steps sent before the failure.
            total_steps: Number of steps in the aborted sequence.
        """
        super().__init__(message)
        self.completed_steps = completed_steps
        self.total_steps = total_steps
