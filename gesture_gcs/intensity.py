"""
Intensity Normalizer and Filter.

Maps the raw hand span onto [0, 1] between the calibrated far and near
spans, smooths it with a single-pole exponential moving average and applies
a truncating deadzone.
"""

import logging
import math
from dataclasses import dataclass

from .calibration import CalibrationState
from .config import ControlConfig, DEFAULT_CONFIG
from .hand_control import clamp

logger = logging.getLogger(__name__)


class InvalidCalibrationError(ValueError):
    """Calibration bounds cannot be used for normalization."""


def ema(current: float, previous: float, alpha: float) -> float:
    """Exponential moving average: alpha * current + (1 - alpha) * previous."""
    return alpha * current + (1.0 - alpha) * previous


def normalize_span(span: float, far_span: float, near_span: float) -> float:
    """
    Position of span between far and near, clamped to [0, 1].

    Raises:
        InvalidCalibrationError: If the bounds are missing, non-finite or
            near_span is not greater than far_span.
    """
    if far_span is None or near_span is None:
        raise InvalidCalibrationError("calibration spans not set")
    if not (math.isfinite(span) and math.isfinite(far_span) and math.isfinite(near_span)):
        raise InvalidCalibrationError(
            f"non-finite values: span={span}, far={far_span}, near={near_span}"
        )
    width = near_span - far_span
    if width <= 0:
        raise InvalidCalibrationError(
            f"near span {near_span:.4f} not greater than far span {far_span:.4f}"
        )
    return clamp((span - far_span) / width, 0.0, 1.0)


def apply_deadzone(value: float, threshold: float) -> float:
    """Zero out values at or below threshold; larger values pass unscaled."""
    return value if value > threshold else 0.0


@dataclass(frozen=True)
class IntensityReading:
    """
    One filter step.

    Attributes:
        normalized: Pre-filter position between the calibration spans
        smoothed: EMA output
        intensity: Smoothed value after the deadzone
        valid: False if the calibration could not be used
    """
    normalized: float
    smoothed: float
    intensity: float
    valid: bool = True


class IntensityFilter:
    """
    Stateful intensity filter.

    Holds the smoothed intensity across frames. It is only advanced on
    frames with a hand while calibration is ready; on every other frame the
    previous value is kept.
    """

    def __init__(self, config: ControlConfig = DEFAULT_CONFIG):
        self.alpha = config.ema_alpha
        self.deadzone = config.deadzone
        self.smoothed = 0.0

    def update(self, span: float, calibration: CalibrationState) -> IntensityReading:
        """
        Advance the filter with a new span measurement.

        Args:
            span: Hand span measured this frame
            calibration: Calibration providing the far/near bounds

        Returns:
            IntensityReading; on invalid calibration the filter state is left
            unchanged and the intensity is 0.
        """
        try:
            normalized = normalize_span(span, calibration.far_span, calibration.near_span)
        except InvalidCalibrationError as e:
            logger.warning(f"Invalid calibration, intensity forced to 0: {e}")
            return IntensityReading(0.0, self.smoothed, 0.0, valid=False)

        self.smoothed = ema(normalized, self.smoothed, self.alpha)
        intensity = apply_deadzone(self.smoothed, self.deadzone)
        return IntensityReading(normalized, self.smoothed, intensity)
