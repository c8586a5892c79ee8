"""Shared fixtures: synthetic hand landmark sets."""

from types import SimpleNamespace

import pytest

from gesture_gcs.config import ControlConfig

WRIST_XY = (0.5, 0.8)
PIP_Y = 0.5
EXTENDED_TIP_Y = 0.4
CURLED_TIP_Y = 0.6


def make_landmarks(span=0.2, fingers=(True, True, True, True)):
    """
    Build 21 [x, y] points with a given wrist-to-middle-MCP span and
    finger extension pattern (index, middle, ring, pinky).
    """
    pts = [[0.5, 0.5] for _ in range(21)]
    pts[0] = list(WRIST_XY)
    pts[9] = [WRIST_XY[0], WRIST_XY[1] - span]
    for extended, tip in zip(fingers, (8, 12, 16, 20)):
        pts[tip - 2] = [0.5, PIP_Y]
        pts[tip] = [0.5, EXTENDED_TIP_Y if extended else CURLED_TIP_Y]
    return pts


def as_objects(points):
    """Landmarks as objects with .x/.y/.z like a hand detector returns."""
    return [SimpleNamespace(x=x, y=y, z=0.0) for x, y in points]


@pytest.fixture
def config():
    return ControlConfig()


@pytest.fixture
def landmarks():
    return make_landmarks
