"""
Control Pipeline - Gesture to RC command, one frame at a time.

Owns the calibration state, the intensity filter and the link-loss failsafe.
Frame processing and calibration events may arrive from different threads
(render loop vs. input callbacks), so every full mutation runs under a
single lock.

Per frame:
    landmarks -> HandFrame -> gesture
    span + calibration -> intensity filter -> intensity
    (gesture, intensity) -> RC mapping -> failsafe -> command
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

from .calibration import (
    CalibrationEvent,
    CalibrationOutcome,
    CalibrationStage,
    CalibrationState,
    transition,
)
from .command import CommandVector, map_command
from .config import ControlConfig, DEFAULT_CONFIG
from .failsafe import FailsafeRegime, LinkLossFailsafe, now_ms
from .hand_control import GestureSymbol, HandFrame, classify_frame, extract_hand_frame
from .intensity import IntensityFilter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HudInfo:
    """Latest values for the HUD overlay and status panels."""
    gesture: GestureSymbol
    intensity: float
    span: float
    hand_present: bool
    calibration: CalibrationState
    rejection: Optional[str]
    regime: FailsafeRegime
    time_since_hand_ms: Optional[float]
    hold_remaining_ms: float

    @property
    def ready(self) -> bool:
        return self.calibration.ready


@dataclass(frozen=True)
class FrameResult:
    """Output of one pipeline step."""
    command: CommandVector
    hud: HudInfo


class ControlPipeline:
    """
    Gesture control pipeline.

    Usage:
        pipeline = ControlPipeline()
        pipeline.handle_event(CalibrationEvent.BEGIN)
        result = pipeline.process_frame(landmarks, now_ms)
        sink.send(result.command)
    """

    def __init__(self, config: ControlConfig = DEFAULT_CONFIG):
        self.config = config
        self._lock = threading.Lock()

        self._calibration = CalibrationState()
        self._rejection: Optional[str] = None
        self._filter = IntensityFilter(config)
        self._failsafe = LinkLossFailsafe(config)

        # Span of the most recent hand-present frame, read by SAMPLE
        self._last_span = 0.0

    @property
    def calibration(self) -> CalibrationState:
        with self._lock:
            return self._calibration

    @property
    def smoothed_intensity(self) -> float:
        with self._lock:
            return self._filter.smoothed

    def process_frame(self, landmarks: Any, now: Optional[float] = None) -> FrameResult:
        """
        Advance the pipeline by one camera frame.

        Args:
            landmarks: 21-point landmark set for the frame, or None if no hand
            now: Frame timestamp in milliseconds (monotonic clock if omitted)

        Returns:
            FrameResult with the command to transmit and HUD values
        """
        if now is None:
            now = now_ms()
        frame = landmarks if isinstance(landmarks, HandFrame) else extract_hand_frame(landmarks)
        gesture = classify_frame(frame)

        with self._lock:
            intensity = 0.0
            fresh: Optional[CommandVector] = None

            if frame.present:
                self._last_span = frame.span
                if self._calibration.stage == CalibrationStage.READY:
                    reading = self._filter.update(frame.span, self._calibration)
                    intensity = reading.intensity
                    fresh = map_command(gesture, intensity, self.config)

            command, regime = self._failsafe.update(now, frame.present, fresh)

            hud = HudInfo(
                gesture=gesture,
                intensity=intensity,
                span=frame.span if frame.present else self._last_span,
                hand_present=frame.present,
                calibration=self._calibration,
                rejection=self._rejection,
                regime=regime,
                time_since_hand_ms=self._failsafe.time_since_hand_ms(now),
                hold_remaining_ms=self._failsafe.hold_remaining_ms(now),
            )
            result = FrameResult(command=command, hud=hud)

        logger.debug(
            f"frame gesture={gesture.name} intensity={intensity:.3f} "
            f"cmd={command.as_channels()} regime={regime.value}"
        )
        return result

    def handle_event(self, event: CalibrationEvent) -> CalibrationOutcome:
        """
        Apply a calibration event.

        SAMPLE uses the span remembered from the latest hand-present frame;
        it never triggers a new measurement.

        Returns:
            CalibrationOutcome; a rejection is also kept for the HUD until
            the next accepted transition.
        """
        with self._lock:
            outcome = transition(self._calibration, event, self._last_span)
            self._calibration = outcome.state
            self._rejection = outcome.rejection
            return outcome

    def on_disconnect(self) -> None:
        """Control session ended: calibration returns to idle."""
        self.handle_event(CalibrationEvent.RESET)
