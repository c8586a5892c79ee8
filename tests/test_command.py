import json
import math

import pytest

from gesture_gcs.command import CommandValidator, CommandVector, map_command
from gesture_gcs.hand_control import GestureSymbol

NEUTRAL = CommandVector(roll=1500, pitch=1500, throttle=1000, yaw=1500)


def test_neutral_vector():
    assert CommandVector.neutral() == NEUTRAL


def test_forward_pitches_down():
    assert map_command(GestureSymbol.FORWARD, 0.5).pitch == 1500 - 225


def test_backward_pitches_up():
    assert map_command(GestureSymbol.BACKWARD, 1.0).pitch == 1950


def test_up_raises_throttle():
    cmd = map_command(GestureSymbol.UP, 0.5)
    assert cmd.throttle == 1400
    assert (cmd.roll, cmd.pitch, cmd.yaw) == (1500, 1500, 1500)


@pytest.mark.parametrize("gesture", [GestureSymbol.HOVER, GestureSymbol.NONE])
def test_hover_and_none_are_neutral(gesture):
    assert map_command(gesture, 0.9) == NEUTRAL


def test_amplitude_floors():
    # 0.999 * 450 = 449.55
    assert map_command(GestureSymbol.FORWARD, 0.999).pitch == 1051
    # 0.999 * 800 = 799.2
    assert map_command(GestureSymbol.UP, 0.999).throttle == 1799


@pytest.mark.parametrize("gesture", list(GestureSymbol))
@pytest.mark.parametrize("intensity", [i / 20 for i in range(21)])
def test_channels_within_bounds(gesture, intensity):
    cmd = map_command(gesture, intensity)
    for value in (cmd.roll, cmd.pitch, cmd.throttle, cmd.yaw):
        assert 1000 <= value <= 2000
        assert isinstance(value, int)


@pytest.mark.parametrize("intensity", [1.7, -0.4])
def test_out_of_range_intensity_is_clamped(intensity):
    cmd = map_command(GestureSymbol.BACKWARD, intensity)
    assert 1500 <= cmd.pitch <= 1950


@pytest.mark.parametrize("intensity", [math.nan, math.inf])
def test_non_finite_intensity_is_zero(intensity):
    assert map_command(GestureSymbol.FORWARD, intensity) == NEUTRAL


def test_channels_and_json():
    cmd = CommandVector(roll=1600, pitch=1400, throttle=1200, yaw=1500)
    assert cmd.as_channels() == {"ch1": 1600, "ch2": 1400, "ch3": 1200, "ch4": 1500}
    assert json.loads(cmd.to_json()) == {"roll": 1600, "pitch": 1400, "throttle": 1200, "yaw": 1500}


class TestCommandValidator:

    def test_accepts_valid(self):
        v = CommandValidator()
        assert v.validate(NEUTRAL) == (True, "ok")
        assert v.get_stats()["validated"] == 1

    def test_rejects_out_of_bounds(self):
        v = CommandValidator()
        ok, reason = v.validate(CommandVector(roll=2100, pitch=1500, throttle=1000, yaw=1500))
        assert not ok
        assert reason == "roll_out_of_bounds"
        assert v.get_stats()["dropped"] == 1

    def test_rejects_non_finite(self):
        ok, reason = CommandValidator().validate(
            CommandVector(roll=1500, pitch=math.nan, throttle=1000, yaw=1500)
        )
        assert not ok
        assert reason == "pitch_not_finite"

    def test_clamp_and_validate(self):
        v = CommandValidator()
        cmd = CommandVector(roll=900, pitch=2500, throttle=math.inf, yaw=1499.6)
        clamped, ok, reason = v.clamp_and_validate(cmd)
        assert ok, reason
        assert clamped == CommandVector(roll=1000, pitch=2000, throttle=1000, yaw=1500)

    def test_reset_stats(self):
        v = CommandValidator()
        v.validate(NEUTRAL)
        v.reset_stats()
        assert v.get_stats()["total_commands"] == 0
