import math

import pytest

from gesture_gcs.calibration import CalibrationStage, CalibrationState
from gesture_gcs.config import ControlConfig
from gesture_gcs.intensity import (
    IntensityFilter,
    InvalidCalibrationError,
    apply_deadzone,
    ema,
    normalize_span,
)

READY = CalibrationState(stage=CalibrationStage.READY, far_span=0.1, near_span=0.3)


def test_normalize_midpoint():
    assert normalize_span(0.2, 0.1, 0.3) == pytest.approx(0.5)


@pytest.mark.parametrize("span,expected", [(0.0, 0.0), (0.1, 0.0), (0.3, 1.0), (0.9, 1.0)])
def test_normalize_clamps(span, expected):
    assert normalize_span(span, 0.1, 0.3) == expected


def test_normalize_is_monotonic():
    spans = [i / 100 for i in range(0, 50)]
    values = [normalize_span(s, 0.1, 0.3) for s in spans]
    assert all(b >= a for a, b in zip(values, values[1:]))
    assert all(0.0 <= v <= 1.0 for v in values)


@pytest.mark.parametrize("far,near", [(0.2, 0.2), (0.3, 0.1), (None, 0.3), (0.1, math.inf)])
def test_degenerate_calibration_raises(far, near):
    with pytest.raises(InvalidCalibrationError):
        normalize_span(0.2, far, near)


def test_non_finite_span_raises():
    with pytest.raises(InvalidCalibrationError):
        normalize_span(math.nan, 0.1, 0.3)


@pytest.mark.parametrize("value", [0.0, 0.01, 0.05])
def test_deadzone_zeroes_small_values(value):
    assert apply_deadzone(value, 0.05) == 0.0


@pytest.mark.parametrize("value", [0.0500001, 0.06, 0.5, 1.0])
def test_deadzone_passes_larger_values_unscaled(value):
    assert apply_deadzone(value, 0.05) == value


def test_ema_step():
    assert ema(1.0, 0.0, 0.2) == pytest.approx(0.2)
    assert ema(0.5, 0.5, 0.2) == pytest.approx(0.5)


def test_filter_starts_at_zero_and_steps():
    f = IntensityFilter()
    assert f.smoothed == 0.0
    reading = f.update(0.3, READY)
    assert reading.normalized == 1.0
    assert reading.smoothed == pytest.approx(0.2)
    assert reading.intensity == pytest.approx(0.2)
    assert reading.valid


def test_filter_converges_to_constant_target():
    f = IntensityFilter()
    for _ in range(200):
        reading = f.update(0.2, READY)
    assert reading.smoothed == pytest.approx(0.5, abs=1e-9)
    assert reading.intensity == pytest.approx(0.5, abs=1e-9)


def test_filter_deadzone_applies_after_smoothing():
    f = IntensityFilter()
    # normalized 0.2 -> smoothed 0.04 on the first step
    reading = f.update(0.14, READY)
    assert reading.smoothed == pytest.approx(0.04)
    assert reading.intensity == 0.0


def test_alpha_one_tracks_input():
    f = IntensityFilter(ControlConfig(ema_alpha=1.0))
    assert f.update(0.25, READY).smoothed == pytest.approx(0.75)


def test_invalid_calibration_reports_zero_and_keeps_state():
    f = IntensityFilter()
    f.update(0.3, READY)
    before = f.smoothed
    bad = CalibrationState(stage=CalibrationStage.READY, far_span=0.2, near_span=0.2)
    reading = f.update(0.25, bad)
    assert not reading.valid
    assert reading.intensity == 0.0
    assert f.smoothed == before
