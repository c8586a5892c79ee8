"""
RC Command Vector, Gesture Mapping and Validation.

Defines the four-channel PWM command produced every frame, maps a gesture
plus intensity onto it, and validates commands before they are handed to
the link.
"""

import json
import logging
import math
from dataclasses import dataclass, asdict
from typing import Dict, Tuple

from .config import ControlConfig, DEFAULT_CONFIG
from .hand_control import GestureSymbol, clamp

logger = logging.getLogger(__name__)

CHANNELS = ("roll", "pitch", "throttle", "yaw")


@dataclass(frozen=True)
class CommandVector:
    """
    RC override command.

    Attributes:
        roll: Channel 1 PWM (neutral at RC_MID)
        pitch: Channel 2 PWM (neutral at RC_MID, lower is nose down)
        throttle: Channel 3 PWM (idle at RC_MIN)
        yaw: Channel 4 PWM (neutral at RC_MID)
    """
    roll: int
    pitch: int
    throttle: int
    yaw: int

    @classmethod
    def neutral(cls, config: ControlConfig = DEFAULT_CONFIG) -> 'CommandVector':
        """Centered sticks, idle throttle."""
        return cls(
            roll=config.rc_mid,
            pitch=config.rc_mid,
            throttle=config.rc_min,
            yaw=config.rc_mid,
        )

    def as_channels(self) -> Dict[str, int]:
        """Channel-numbered view (ch1..ch4)."""
        return {
            "ch1": self.roll,
            "ch2": self.pitch,
            "ch3": self.throttle,
            "ch4": self.yaw,
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(asdict(self))


def map_command(
    gesture: GestureSymbol,
    intensity: float,
    config: ControlConfig = DEFAULT_CONFIG,
) -> CommandVector:
    """
    Map gesture and intensity onto RC channels.

    Forward pitches down, backward pitches up, up raises throttle from idle.
    Hover and no-hand leave the neutral vector unchanged.

    Args:
        gesture: Classified gesture
        intensity: Filtered intensity in [0, 1]
        config: RC limits and amplitudes

    Returns:
        CommandVector with every channel inside [rc_min, rc_max]
    """
    if not math.isfinite(intensity):
        logger.warning(f"Non-finite intensity {intensity}, using 0")
        intensity = 0.0
    intensity = clamp(intensity, 0.0, 1.0)

    roll, pitch, throttle, yaw = config.rc_mid, config.rc_mid, config.rc_min, config.rc_mid
    amp = math.floor(intensity * config.pitch_amplitude)

    if gesture is GestureSymbol.FORWARD:
        pitch = config.rc_mid - amp
    elif gesture is GestureSymbol.BACKWARD:
        pitch = config.rc_mid + amp
    elif gesture is GestureSymbol.UP:
        throttle = config.rc_min + math.floor(intensity * config.throttle_amplitude)

    lo, hi = config.rc_min, config.rc_max
    return CommandVector(
        roll=int(clamp(roll, lo, hi)),
        pitch=int(clamp(pitch, lo, hi)),
        throttle=int(clamp(throttle, lo, hi)),
        yaw=int(clamp(yaw, lo, hi)),
    )


class CommandValidator:
    """
    Validates outgoing commands before they reach the link.

    Ensures:
    - every channel is an integer
    - every channel is finite and within [rc_min, rc_max]
    """

    def __init__(self, config: ControlConfig = DEFAULT_CONFIG):
        self.rc_min = config.rc_min
        self.rc_max = config.rc_max
        self._dropped_count: int = 0
        self._validated_count: int = 0

    def validate(self, cmd: CommandVector) -> Tuple[bool, str]:
        """
        Validate a command.

        Args:
            cmd: The command to validate

        Returns:
            Tuple of (is_valid, reason_string)
        """
        for name in CHANNELS:
            value = getattr(cmd, name)
            if isinstance(value, float) and not math.isfinite(value):
                self._dropped_count += 1
                logger.warning(f"Invalid command: {name}={value} is not finite")
                return False, f"{name}_not_finite"
            if isinstance(value, bool) or not isinstance(value, int):
                self._dropped_count += 1
                logger.warning(f"Invalid command: {name}={value!r} is not an integer")
                return False, f"{name}_not_integer"
            if not self.rc_min <= value <= self.rc_max:
                self._dropped_count += 1
                logger.warning(
                    f"Invalid command: {name}={value} outside [{self.rc_min}, {self.rc_max}]"
                )
                return False, f"{name}_out_of_bounds"

        self._validated_count += 1
        return True, "ok"

    def clamp_and_validate(self, cmd: CommandVector) -> Tuple[CommandVector, bool, str]:
        """
        Clamp channels to bounds and then validate.

        Non-finite channels are replaced by the neutral value of that channel
        before clamping.

        Returns:
            Tuple of (clamped_command, is_valid, reason)
        """
        values = {}
        for name in CHANNELS:
            value = getattr(cmd, name)
            if isinstance(value, float):
                if not math.isfinite(value):
                    value = self.rc_min if name == "throttle" else (self.rc_min + self.rc_max) // 2
                value = int(round(value))
            if isinstance(value, int) and not isinstance(value, bool):
                value = int(clamp(value, self.rc_min, self.rc_max))
            values[name] = value

        clamped = CommandVector(**values)
        valid, reason = self.validate(clamped)
        return clamped, valid, reason

    def get_stats(self) -> dict:
        """Get validation statistics."""
        total = self._validated_count + self._dropped_count
        return {
            "total_commands": total,
            "validated": self._validated_count,
            "dropped": self._dropped_count,
            "drop_rate": self._dropped_count / total if total > 0 else 0.0,
        }

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self._dropped_count = 0
        self._validated_count = 0
