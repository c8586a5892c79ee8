"""
HUD Overlay - Draws the control state on top of a video frame.
"""

from typing import Any, Optional

import cv2
import numpy as np

from .calibration import CalibrationStage, describe
from .failsafe import FailsafeRegime
from .hand_control import HAND_CONNECTIONS, landmark_points
from .pipeline import HudInfo

FONT = cv2.FONT_HERSHEY_SIMPLEX

# BGR
GREEN = (0, 255, 0)
RED = (0, 0, 255)
WHITE = (255, 255, 255)
YELLOW = (0, 255, 255)
AMBER = (36, 191, 251)
ORANGE = (0, 165, 255)
BLUE = (246, 130, 59)
SLATE = (139, 116, 100)


def blank_canvas(width: int = 640, height: int = 480) -> np.ndarray:
    """Black BGR frame for sessions without video."""
    return np.zeros((height, width, 3), dtype=np.uint8)


def draw_landmarks(frame: np.ndarray, landmarks: Any) -> None:
    """Draw the hand skeleton from normalized landmarks."""
    points = landmark_points(landmarks)
    if points is None:
        return
    h, w = frame.shape[:2]
    pts = [(int(x * w), int(y * h)) for x, y in points]
    for a, b in HAND_CONNECTIONS:
        cv2.line(frame, pts[a], pts[b], GREEN, 2)
    for p in pts:
        cv2.circle(frame, p, 2, RED, -1)


def _draw_calibration_overlay(frame: np.ndarray, hud: HudInfo) -> None:
    overlay = frame.copy()
    bottom = 125 if hud.rejection else 95
    cv2.rectangle(overlay, (10, 10), (430, bottom), (0, 0, 0), -1)
    cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, frame)
    cv2.putText(frame, f"Raw span: {hud.span:.4f}", (20, 35), FONT, 0.55, GREEN, 1)
    cv2.putText(frame, f"Stage: {int(hud.calibration.stage)}", (20, 58), FONT, 0.55, WHITE, 1)
    cv2.putText(frame, describe(hud.calibration), (20, 80), FONT, 0.45, YELLOW, 1)
    if hud.rejection:
        cv2.putText(frame, "Near must exceed far - resample", (20, 110), FONT, 0.5, RED, 1)


def _draw_intensity_bar(frame: np.ndarray, intensity: float) -> None:
    h, w = frame.shape[:2]
    bar_h = int(h * 0.5)
    bar_w = 15
    bar_x = w - 30
    bar_y = (h - bar_h) // 2

    cv2.rectangle(frame, (bar_x, bar_y), (bar_x + bar_w, bar_y + bar_h), (0, 0, 0), -1)
    fill_h = int(bar_h * intensity)
    if intensity > 0.8:
        color = RED
    elif intensity > 0:
        color = BLUE
    else:
        color = SLATE
    if fill_h > 0:
        cv2.rectangle(
            frame,
            (bar_x, bar_y + bar_h - fill_h),
            (bar_x + bar_w, bar_y + bar_h),
            color, -1,
        )
    cv2.rectangle(frame, (bar_x, bar_y), (bar_x + bar_w, bar_y + bar_h), WHITE, 1)


def draw_hud(frame: np.ndarray, hud: HudInfo, landmarks: Optional[Any] = None) -> np.ndarray:
    """
    Render the HUD onto frame in place.

    Args:
        frame: BGR image
        hud: Values from the latest pipeline step
        landmarks: Optional landmarks to draw as a skeleton

    Returns:
        The same frame, for chaining
    """
    h, w = frame.shape[:2]
    draw_landmarks(frame, landmarks)

    # Crosshair
    cx, cy = w // 2, h // 2
    cv2.line(frame, (cx - 20, cy), (cx + 20, cy), WHITE, 1)
    cv2.line(frame, (cx, cy - 20), (cx, cy + 20), WHITE, 1)

    stage = hud.calibration.stage
    if stage in (CalibrationStage.WAIT_FAR, CalibrationStage.WAIT_NEAR):
        _draw_calibration_overlay(frame, hud)

    if hud.ready:
        if hud.hand_present:
            _draw_intensity_bar(frame, hud.intensity)
            cv2.putText(frame, hud.gesture.label, (30, h - 40), FONT, 1.0, GREEN, 2)
            cv2.putText(
                frame, f"Intensity: {hud.intensity * 100:.0f}%",
                (30, h - 12), FONT, 0.55, WHITE, 1,
            )
        elif hud.regime is FailsafeRegime.HOLD:
            cv2.putText(
                frame, f"SIGNAL LOST - HOLDING ({hud.hold_remaining_ms:.0f}ms)",
                (cx - 200, cy - 50), FONT, 0.6, ORANGE, 2,
            )
        else:
            cv2.putText(frame, "!! FAILSAFE ACTIVE !!", (cx - 140, cy - 50), FONT, 0.8, RED, 2)
            cv2.putText(frame, "RC channels centered", (cx - 100, cy - 20), FONT, 0.55, RED, 1)
    elif stage == CalibrationStage.IDLE:
        cv2.rectangle(frame, (cx - 160, cy - 40), (cx + 160, cy + 40), (0, 0, 0), -1)
        cv2.putText(frame, "STANDBY - AWAITING CALIBRATION", (cx - 150, cy - 5), FONT, 0.5, AMBER, 1)
        cv2.putText(frame, "Press 'C' to start calibration", (cx - 130, cy + 22), FONT, 0.45, WHITE, 1)

    return frame
