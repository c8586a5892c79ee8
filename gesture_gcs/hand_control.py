"""
Hand Geometry and Gesture Logic.

This module turns one frame of hand landmarks into the measurements the
control pipeline works on: a hand-span distance (proxy for how close the hand
is to the camera) and a four-finger extension pattern, which is then mapped
onto a fixed set of gesture symbols.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# ============================================================================
# Hand Landmark Indices
# ============================================================================

NUM_LANDMARKS = 21

WRIST = 0
INDEX_MCP, INDEX_PIP, INDEX_DIP, INDEX_TIP = 5, 6, 7, 8
MIDDLE_MCP, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP = 9, 10, 11, 12
RING_MCP, RING_PIP, RING_DIP, RING_TIP = 13, 14, 15, 16
PINKY_MCP, PINKY_PIP, PINKY_DIP, PINKY_TIP = 17, 18, 19, 20

# Index, middle, ring, pinky - order of HandFrame.fingers
FINGER_TIPS = (INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP)

HAND_CONNECTIONS = (
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (5, 9), (9, 10), (10, 11), (11, 12),
    (9, 13), (13, 14), (14, 15), (15, 16),
    (13, 17), (17, 18), (18, 19), (19, 20),
    (0, 17),
)


# ============================================================================
# Utility Functions
# ============================================================================

def clamp(v: float, lo: float, hi: float) -> float:
    """Clamp value between lo and hi."""
    return max(lo, min(hi, v))


def _xy(lm, i: int) -> np.ndarray:
    """Get 2D image-plane vector from landmark."""
    p = lm[i]
    if hasattr(p, "x"):
        return np.array([p.x, p.y], dtype=np.float64)
    if isinstance(p, dict):
        return np.array([p["x"], p["y"]], dtype=np.float64)
    return np.array([p[0], p[1]], dtype=np.float64)


def landmark_points(lm) -> Optional[np.ndarray]:
    """Convert a landmark set to a (21, 2) array, or None if malformed."""
    if lm is None:
        return None
    if hasattr(lm, "landmark"):
        lm = lm.landmark
    try:
        if len(lm) < NUM_LANDMARKS:
            return None
        pts = np.stack([_xy(lm, i) for i in range(NUM_LANDMARKS)])
    except (TypeError, IndexError, KeyError, ValueError, AttributeError):
        return None
    if not np.all(np.isfinite(pts)):
        return None
    return pts


# ============================================================================
# Geometry Extraction
# ============================================================================

@dataclass(frozen=True)
class HandFrame:
    """
    One frame's hand observation.

    Attributes:
        present: Whether a usable hand was detected this frame
        span: Wrist to middle-finger base distance (normalized image units)
        fingers: Extension flags for index, middle, ring, pinky
    """
    present: bool
    span: float = 0.0
    fingers: Tuple[bool, bool, bool, bool] = (False, False, False, False)

    @classmethod
    def absent(cls) -> 'HandFrame':
        """Frame with no hand."""
        return cls(present=False)


def hand_span(pts: np.ndarray) -> float:
    """Planar distance between wrist and middle-finger MCP."""
    return float(np.linalg.norm(pts[WRIST] - pts[MIDDLE_MCP]))


def finger_pattern(pts: np.ndarray) -> Tuple[bool, bool, bool, bool]:
    """
    Per-finger extension flags.

    A finger counts as extended when its tip sits above its PIP joint in
    image coordinates (y grows downwards).
    """
    return tuple(bool(pts[tip][1] < pts[tip - 2][1]) for tip in FINGER_TIPS)


def extract_hand_frame(lm: Any) -> HandFrame:
    """
    Build a HandFrame from a landmark set.

    Args:
        lm: 21 landmarks (objects with .x/.y or (x, y[, z]) sequences), a
            detector hand object exposing .landmark, or None

    Returns:
        HandFrame; malformed input yields an absent frame
    """
    pts = landmark_points(lm)
    if pts is None:
        if lm is not None:
            logger.debug("Malformed landmark set, treating frame as no-hand")
        return HandFrame.absent()
    return HandFrame(present=True, span=hand_span(pts), fingers=finger_pattern(pts))


def frame_from_results(results) -> HandFrame:
    """
    Extract the first detected hand from hand-detector results.

    Args:
        results: Detector output exposing multi_hand_landmarks

    Returns:
        HandFrame for the first hand, or an absent frame
    """
    hands = getattr(results, "multi_hand_landmarks", None)
    if not hands:
        return HandFrame.absent()
    return extract_hand_frame(hands[0])


# ============================================================================
# Gesture Classification
# ============================================================================

class GestureSymbol(Enum):
    """Discrete gestures recognised from the finger pattern."""
    NONE = "none"
    HOVER = "hover"
    FORWARD = "forward"
    BACKWARD = "backward"
    UP = "up"

    @property
    def label(self) -> str:
        return self.name.capitalize()


def classify_gesture(fingers: Sequence[bool]) -> GestureSymbol:
    """
    Map a four-finger extension pattern to a gesture.

    Open palm flies forward, a fist flies backward and a lone index finger
    climbs. Any other pattern hovers.
    """
    total = sum(1 for f in fingers if f)
    if total == 4:
        return GestureSymbol.FORWARD
    if total == 0:
        return GestureSymbol.BACKWARD
    if fingers[0] and total == 1:
        return GestureSymbol.UP
    return GestureSymbol.HOVER


def classify_frame(frame: HandFrame) -> GestureSymbol:
    """Classify a frame; frames without a hand are NONE."""
    if not frame.present:
        return GestureSymbol.NONE
    return classify_gesture(frame.fingers)
