"""Tests for the asserted lighting state."""

import pytest

from custom_components.ambivision.exceptions import InvalidArgument
from custom_components.ambivision.protocol import AudioSubMode, CaptureSubMode, Mode, MoodSubMode
from custom_components.ambivision.state import (
    Color,
    LightingState,
    ModeStateTracker,
    SetBrightness,
    SetColor,
    SetMode,
    SetPower,
    SetSubMode,
)

MOOD_MANUAL = LightingState(mode=Mode.MOOD, sub_mode=MoodSubMode.MANUAL, switch_on=True)


class TestLightingState:
    """Tests for LightingState."""

    def test_defaults(self) -> None:
        """Test nothing is asserted initially."""
        state = LightingState()
        assert state.mode is None
        assert state.sub_mode is None
        assert state.color == Color(hue=0, saturation=100, level=100)
        assert state.switch_on is False
        assert state.last_mode is Mode.MOOD

    def test_sub_mode_must_match_mode(self) -> None:
        """Test a sub-mode from another vocabulary is rejected."""
        with pytest.raises(InvalidArgument):
            LightingState(mode=Mode.AUDIO, sub_mode=MoodSubMode.DISCO)

    def test_off_has_no_sub_mode(self) -> None:
        """Test Off mode takes no sub-mode."""
        with pytest.raises(InvalidArgument):
            LightingState(mode=Mode.OFF, sub_mode=CaptureSubMode.FAST)


class TestOperations:
    """Tests for operation construction."""

    def test_sub_mode_validated_against_target_mode(self) -> None:
        """Test "Disco" cannot be issued as an Audio sub-mode."""
        with pytest.raises(InvalidArgument):
            SetSubMode(Mode.AUDIO, MoodSubMode.DISCO)

    def test_values_are_clamped(self) -> None:
        """Test numeric operations clamp instead of rejecting."""
        assert SetBrightness(150).level == 100
        assert SetColor(hue=-3, saturation=250, level=50) == SetColor(0, 100, 50)


class TestModeStateTracker:
    """Tests for ModeStateTracker."""

    def test_color_needs_mood_manual(self) -> None:
        """Test color from an unknown mode needs both prerequisites."""
        tracker = ModeStateTracker()
        assert tracker.required_prerequisites(SetColor(10, 20, 30)) == [
            SetMode(Mode.MOOD),
            SetSubMode(Mode.MOOD, MoodSubMode.MANUAL),
        ]

    def test_color_in_mood_with_other_sub_mode(self) -> None:
        """Test Mood without Manual still needs both prerequisites."""
        tracker = ModeStateTracker(LightingState(mode=Mode.MOOD, sub_mode=MoodSubMode.DISCO))
        assert len(tracker.required_prerequisites(SetColor(10, 20, 30))) == 2

    def test_color_in_mood_manual(self) -> None:
        """Test color in Mood/Manual needs nothing."""
        tracker = ModeStateTracker(MOOD_MANUAL)
        assert tracker.required_prerequisites(SetColor(10, 20, 30)) == []
        assert tracker.plan(SetColor(10, 20, 30)) == [SetColor(10, 20, 30)]

    def test_mode_and_sub_mode_have_no_prerequisites(self) -> None:
        """Test direct mode operations have no prerequisites."""
        tracker = ModeStateTracker()
        assert tracker.required_prerequisites(SetMode(Mode.AUDIO)) == []
        assert tracker.required_prerequisites(SetSubMode(Mode.AUDIO, AudioSubMode.LAMP)) == []

    def test_power_plans_last_mode(self) -> None:
        """Test power on asserts the last non-Off mode."""
        tracker = ModeStateTracker(LightingState(mode=Mode.OFF, last_mode=Mode.CAPTURE))
        assert tracker.plan(SetPower(True)) == [SetMode(Mode.CAPTURE)]
        assert tracker.plan(SetPower(False)) == [SetMode(Mode.OFF)]

    def test_power_defaults_to_mood(self) -> None:
        """Test power on without history asserts Mood."""
        assert ModeStateTracker().plan(SetPower(True)) == [SetMode(Mode.MOOD)]

    def test_project_does_not_commit(self) -> None:
        """Test projecting leaves the asserted state alone."""
        tracker = ModeStateTracker()
        projected = tracker.project([SetMode(Mode.AUDIO)])
        assert projected.mode is Mode.AUDIO
        assert tracker.state == LightingState()

    def test_apply_mode(self) -> None:
        """Test asserting modes updates switch and last mode."""
        tracker = ModeStateTracker()
        state = tracker.apply([SetMode(Mode.CAPTURE)])
        assert state.switch_on
        assert state.last_mode is Mode.CAPTURE

        state = tracker.apply([SetMode(Mode.OFF)])
        assert not state.switch_on
        assert state.mode is Mode.OFF
        assert state.last_mode is Mode.CAPTURE

    def test_apply_mode_change_forgets_sub_mode(self) -> None:
        """Test switching modes leaves the sub-mode unknown."""
        tracker = ModeStateTracker(MOOD_MANUAL)
        assert tracker.apply([SetMode(Mode.MOOD)]).sub_mode is MoodSubMode.MANUAL
        assert tracker.apply([SetMode(Mode.AUDIO)]).sub_mode is None

    def test_apply_sub_mode_of_other_family(self) -> None:
        """Test a sub-mode sent in another mode asserts that mode's code."""
        tracker = ModeStateTracker(LightingState(mode=Mode.CAPTURE, switch_on=True))
        state = tracker.apply([SetSubMode(Mode.MOOD, MoodSubMode.DISCO)])
        assert state.mode is Mode.CAPTURE
        assert state.sub_mode is CaptureSubMode.SMOOTH

    def test_apply_sub_mode_while_off(self) -> None:
        """Test a sub-mode sent while Off asserts nothing."""
        tracker = ModeStateTracker(LightingState(mode=Mode.OFF))
        assert tracker.apply([SetSubMode(Mode.MOOD, MoodSubMode.DISCO)]).sub_mode is None

    def test_apply_color_sequence(self) -> None:
        """Test a full color sequence asserts Mood/Manual and the color."""
        tracker = ModeStateTracker()
        operation = SetColor(hue=33, saturation=80, level=60)
        state = tracker.apply(tracker.plan(operation))
        assert state.mode is Mode.MOOD
        assert state.sub_mode is MoodSubMode.MANUAL
        assert state.color == Color(hue=33, saturation=80, level=60)
        assert state.switch_on

    def test_apply_brightness_keeps_hue(self) -> None:
        """Test brightness only changes the level."""
        tracker = ModeStateTracker(LightingState(color=Color(hue=33, saturation=80, level=60)))
        state = tracker.apply([SetBrightness(20)])
        assert state.color == Color(hue=33, saturation=80, level=20)

    def test_plan_fills_missing_color_components(self) -> None:
        """Test a partial color takes the other components from the committed state."""
        tracker = ModeStateTracker(
            LightingState(
                mode=Mode.MOOD,
                sub_mode=MoodSubMode.MANUAL,
                color=Color(hue=10, saturation=50, level=40),
                switch_on=True,
            )
        )
        assert tracker.plan(SetColor(hue=60)) == [SetColor(hue=60, saturation=50, level=40)]

        tracker.apply([SetColor(saturation=70)])
        assert tracker.plan(SetColor(hue=60)) == [SetColor(hue=60, saturation=70, level=40)]
