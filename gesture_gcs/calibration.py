"""
Calibration State Machine - Two-point hand distance calibration.

The operator holds the hand at full reach (far) and presses sample, then
brings it close to the camera (near) and samples again. The two recorded
spans bound the intensity range used by the control pipeline.

Transitions are computed by a pure function so the protocol can be driven
from any input source and tested without a UI.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Optional

logger = logging.getLogger(__name__)

REJECT_NEAR_NOT_GREATER = "near_not_greater_than_far"


class CalibrationStage(IntEnum):
    """Stages of the calibration protocol."""
    IDLE = 0
    WAIT_FAR = 1
    WAIT_NEAR = 2
    READY = 3


class CalibrationEvent(Enum):
    """Discrete events driving the calibration protocol."""
    BEGIN = "begin_calibration"
    SAMPLE = "sample"
    RESET = "reset"


@dataclass(frozen=True)
class CalibrationState:
    """
    Calibration progress and reference spans.

    Attributes:
        stage: Current protocol stage
        far_span: Span sampled at full reach (None until sampled)
        near_span: Span sampled close to the camera (None until sampled)
    """
    stage: CalibrationStage = CalibrationStage.IDLE
    far_span: Optional[float] = None
    near_span: Optional[float] = None

    @property
    def ready(self) -> bool:
        return self.stage == CalibrationStage.READY


@dataclass(frozen=True)
class CalibrationOutcome:
    """Result of one transition: the new state plus an optional rejection reason."""
    state: CalibrationState
    rejection: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


def transition(
    state: CalibrationState,
    event: CalibrationEvent,
    span: float = 0.0,
) -> CalibrationOutcome:
    """
    Apply one calibration event.

    Args:
        state: Current calibration state
        event: Event to apply
        span: Most recently measured hand span (used by SAMPLE only)

    Returns:
        CalibrationOutcome with the resulting state. A rejected SAMPLE leaves
        the state untouched and carries the rejection reason.
    """
    if event is CalibrationEvent.BEGIN:
        logger.info("Calibration started. Step 1: hold hand at full reach and sample")
        return CalibrationOutcome(CalibrationState(stage=CalibrationStage.WAIT_FAR))

    if event is CalibrationEvent.RESET:
        if state.stage != CalibrationStage.IDLE:
            logger.info("Calibration reset")
        return CalibrationOutcome(CalibrationState())

    # SAMPLE
    if state.stage == CalibrationStage.WAIT_FAR:
        logger.info(f"Far span sampled: {span:.3f}. Step 2: bring hand close and sample")
        return CalibrationOutcome(
            replace(state, stage=CalibrationStage.WAIT_NEAR, far_span=span)
        )

    if state.stage == CalibrationStage.WAIT_NEAR:
        if span <= state.far_span:
            logger.error(
                f"Calibration rejected: near span ({span:.3f}) must be greater "
                f"than far span ({state.far_span:.3f})"
            )
            return CalibrationOutcome(state, REJECT_NEAR_NOT_GREATER)
        logger.info(f"Near span sampled: {span:.3f}. Gesture control ready")
        return CalibrationOutcome(
            replace(state, stage=CalibrationStage.READY, near_span=span)
        )

    # IDLE or READY: sampling is ignored
    return CalibrationOutcome(state)


def describe(state: CalibrationState) -> str:
    """Short progress text for display."""
    if state.stage == CalibrationStage.IDLE:
        return "Standby - press C to calibrate"
    if state.stage == CalibrationStage.WAIT_FAR:
        return "Step 1: hold hand far, press S"
    if state.stage == CalibrationStage.WAIT_NEAR:
        return f"Step 2: hold hand near, press S (far={state.far_span:.3f})"
    return f"Ready (far={state.far_span:.3f}, near={state.near_span:.3f})"
