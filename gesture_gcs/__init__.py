"""
Gesture Ground Control - Hand gesture control pipeline for a simulated
remotely piloted aircraft.

Turns per-frame hand landmarks into filtered, failsafe-aware RC channel
commands, driven by a two-point distance calibration. The hand-landmark
detector, camera capture and the vehicle link are external collaborators;
a simulated telemetry link stands in for the real vehicle.
"""

__version__ = "1.0.0"
