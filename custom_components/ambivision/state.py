"""Asserted lighting state and mode prerequisites.

The appliance never reports its status. ``LightingState`` is therefore
the state this integration last issued to the appliance, not a confirmed
reading. It only changes after the matching command has been sent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Union

from .const import MAX_PERCENT
from .exceptions import InvalidArgument
from .protocol import Mode, MoodSubMode, SubMode, clamp, is_sub_mode_of

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Color:
    """Color on 0-100 scales, as published to the host."""

    hue: int = 0
    saturation: int = 100
    level: int = 100


@dataclass(frozen=True)
class LightingState:
    """Last asserted state of the appliance.

    ``mode`` is None until a mode has been asserted. ``sub_mode`` is None
    when unknown or while the mode is Off.
    """

    mode: Mode | None = None
    sub_mode: SubMode | None = None
    color: Color = field(default_factory=Color)
    switch_on: bool = False
    last_mode: Mode = Mode.MOOD

    def __post_init__(self) -> None:
        """Reject sub-modes outside the vocabulary of the mode."""
        if self.sub_mode is not None and (
            self.mode is None or not is_sub_mode_of(self.sub_mode, self.mode)
        ):
            raise InvalidArgument(
                f"Sub-mode {self.sub_mode.label} is not valid in mode "
                f"{self.mode.label if self.mode else None}"
            )


@dataclass(frozen=True)
class SetPower:
    """Turn the appliance on (last mode) or off (mode Off)."""

    on: bool


@dataclass(frozen=True)
class SetMode:
    """Switch the primary mode."""

    mode: Mode

    def __post_init__(self) -> None:
        if not isinstance(self.mode, Mode):
            raise InvalidArgument(f"Invalid mode: {self.mode!r}")


@dataclass(frozen=True)
class SetSubMode:
    """Switch the sub-mode of a given mode family."""

    mode: Mode
    sub_mode: SubMode

    def __post_init__(self) -> None:
        if not isinstance(self.mode, Mode) or not is_sub_mode_of(self.sub_mode, self.mode):
            raise InvalidArgument(
                f"Sub-mode {self.sub_mode!r} is not valid in mode {self.mode!r}"
            )


@dataclass(frozen=True)
class SetBrightness:
    """Set the overall brightness (0-100)."""

    level: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", clamp(self.level, 0, MAX_PERCENT))


@dataclass(frozen=True)
class SetColor:
    """Set a direct color (each component 0-100).

    A component left as None keeps its asserted value; it is filled in
    when the operation is planned against the committed state.
    """

    hue: int | None = None
    saturation: int | None = None
    level: int | None = None

    def __post_init__(self) -> None:
        for name in ("hue", "saturation", "level"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, clamp(value, 0, MAX_PERCENT))

    def resolve(self, color: Color) -> SetColor:
        """Return this operation with missing components taken from a color."""
        return SetColor(
            hue=color.hue if self.hue is None else self.hue,
            saturation=color.saturation if self.saturation is None else self.saturation,
            level=color.level if self.level is None else self.level,
        )


Operation = Union[SetPower, SetMode, SetSubMode, SetBrightness, SetColor]


def _apply_one(state: LightingState, operation: Operation) -> LightingState:
    """Return the state after one sent operation."""
    if isinstance(operation, SetPower):
        target = state.last_mode if operation.on else Mode.OFF
        return _apply_one(state, SetMode(target))

    if isinstance(operation, SetMode):
        mode = operation.mode
        return replace(
            state,
            mode=mode,
            sub_mode=state.sub_mode if mode is state.mode else None,
            switch_on=mode is not Mode.OFF,
            last_mode=mode if mode is not Mode.OFF else state.last_mode,
        )

    if isinstance(operation, SetSubMode):
        # The appliance applies the wire code within its current mode.
        if state.mode is operation.mode:
            sub_mode = operation.sub_mode
        elif state.mode is not None and state.mode.sub_mode_type is not None:
            sub_mode = state.mode.sub_mode_type.from_code(operation.sub_mode.code)
        else:
            sub_mode = None
        return replace(state, sub_mode=sub_mode)

    if isinstance(operation, SetBrightness):
        return replace(state, color=replace(state.color, level=operation.level))

    if isinstance(operation, SetColor):
        operation = operation.resolve(state.color)
        return replace(
            state,
            color=Color(
                hue=operation.hue,
                saturation=operation.saturation,
                level=operation.level,
            ),
        )

    raise InvalidArgument(f"Unsupported operation: {operation!r}")


class ModeStateTracker:
    """Tracks the asserted lighting state and derives mode prerequisites."""

    def __init__(self, state: LightingState | None = None) -> None:
        self._state = state or LightingState()

    @property
    def state(self) -> LightingState:
        """Return the last asserted state."""
        return self._state

    def required_prerequisites(self, operation: Operation) -> list[Operation]:
        """Return the mode transitions needed before an operation is valid.

        Direct color needs Mood mode with the Manual sub-mode. When either
        is not asserted, both a mode switch and a sub-mode switch are
        prepended.
        """
        if isinstance(operation, SetColor) and (
            self._state.mode is not Mode.MOOD
            or self._state.sub_mode is not MoodSubMode.MANUAL
        ):
            return [SetMode(Mode.MOOD), SetSubMode(Mode.MOOD, MoodSubMode.MANUAL)]
        return []

    def plan(self, operation: Operation) -> list[Operation]:
        """Return prerequisites followed by the wire-level payload operation.

        Missing color components are filled from the committed state here,
        so queued operations build on the one sent before them.
        """
        payload = operation
        if isinstance(operation, SetColor):
            payload = operation.resolve(self._state.color)
        elif isinstance(operation, SetPower):
            payload = SetMode(self._state.last_mode if operation.on else Mode.OFF)
        return [*self.required_prerequisites(operation), payload]

    def project(self, operations: Iterable[Operation]) -> LightingState:
        """Return the state the operations would assert, without committing."""
        state = self._state
        for operation in operations:
            state = _apply_one(state, operation)
        return state

    def apply(self, operations: Iterable[Operation]) -> LightingState:
        """Commit the state of operations that have been sent."""
        self._state = self.project(operations)
        _LOGGER.debug("Asserted state is now %s", self._state)
        return self._state
