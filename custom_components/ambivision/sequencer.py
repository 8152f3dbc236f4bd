"""Ordered dispatch of dependent commands."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from .const import DEFAULT_SETTLE_TIME, UDP_PORT
from .exceptions import DispatchFailed, InvalidArgument, TransportError
from .protocol import encode_brightness, encode_color, encode_mode, encode_sub_mode, hsv_to_rgb
from .resolver import AddressResolver
from .state import (
    LightingState,
    ModeStateTracker,
    Operation,
    SetBrightness,
    SetColor,
    SetMode,
    SetSubMode,
)

_LOGGER = logging.getLogger(__name__)

SendDatagram = Callable[[bytes, str, int], Awaitable[None]]


def encode_operation(operation: Operation) -> bytes:
    """Encode a wire-level operation into its datagram payload."""
    if isinstance(operation, SetMode):
        return encode_mode(operation.mode)
    if isinstance(operation, SetSubMode):
        return encode_sub_mode(operation.sub_mode)
    if isinstance(operation, SetBrightness):
        return encode_brightness(operation.level)
    if isinstance(operation, SetColor):
        return encode_color(*hsv_to_rgb(operation.hue, operation.saturation, operation.level))
    raise InvalidArgument(f"Operation has no wire encoding: {operation!r}")


@dataclass
class SequenceStep:
    """One encoded command of a sequence."""

    operation: Operation
    payload: bytes


@dataclass
class PendingSequence:
    """Encoded commands to send in order, separated by the settle time."""

    steps: list[SequenceStep]
    settle_time: float
    completed: list[SequenceStep] = field(default_factory=list)

    @property
    def remaining(self) -> list[SequenceStep]:
        """Return the steps not sent yet."""
        return self.steps[len(self.completed):]


class CommandSequencer:
    """Sends one operation at a time as a sequence of datagrams.

    Requests that arrive while a sequence is being sent wait for it to
    finish (first come, first served).
    """

    def __init__(
        self,
        tracker: ModeStateTracker,
        resolver: AddressResolver,
        send_datagram: SendDatagram,
        settle_time: float = DEFAULT_SETTLE_TIME,
        port: int = UDP_PORT,
    ) -> None:
        """Initialize the sequencer.

        Args:
            tracker: Asserted state, consulted for prerequisites.
            resolver: Supplies the destination address.
            send_datagram: Transport send coroutine.
            settle_time: Seconds to wait between consecutive steps.
            port: Destination UDP port.
        """
        self._tracker = tracker
        self._resolver = resolver
        self._send_datagram = send_datagram
        self._settle_time = settle_time
        self._port = port
        # asyncio.Lock wakes waiters in FIFO order
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        """Return True while a sequence is being sent."""
        return self._lock.locked()

    def build(self, operation: Operation) -> PendingSequence:
        """Build the sequence for an operation against the asserted state."""
        steps = [
            SequenceStep(operation=step, payload=encode_operation(step))
            for step in self._tracker.plan(operation)
        ]
        return PendingSequence(steps=steps, settle_time=self._settle_time)

    async def execute(self, operation: Operation) -> LightingState:
        """Send an operation and its prerequisites, then commit the state.

        Returns:
            The asserted state after the sequence.

        Raises:
            NoAddress: If there is no destination; nothing is sent.
            DispatchFailed: If a step could not be sent. Steps sent before
                the failure stay asserted; later steps are never sent.
        """
        async with self._lock:
            sequence = self.build(operation)
            ip = self._resolver.resolve().ip
            total = len(sequence.steps)

            try:
                for index, step in enumerate(sequence.steps):
                    if index:
                        await asyncio.sleep(sequence.settle_time)
                    _LOGGER.debug(
                        "Sending step %d/%d to %s: %r", index + 1, total, ip, step.payload
                    )
                    await self._send_datagram(step.payload, ip, self._port)
                    sequence.completed.append(step)
            except TransportError as err:
                self._tracker.apply(step.operation for step in sequence.completed)
                _LOGGER.warning(
                    "Aborted after %d of %d steps sending to %s: %s",
                    len(sequence.completed),
                    total,
                    ip,
                    err,
                )
                raise DispatchFailed(
                    f"Failed to send command to {ip}: {err}",
                    completed_steps=len(sequence.completed),
                    total_steps=total,
                ) from err
            except asyncio.CancelledError:
                self._tracker.apply(step.operation for step in sequence.completed)
                _LOGGER.debug(
                    "Sequence cancelled after %d of %d steps", len(sequence.completed), total
                )
                raise

            return self._tracker.apply(step.operation for step in sequence.steps)
