"""
Link-Loss Failsafe - Hold-then-neutral policy for lost hand tracking.

Brief detection flicker is bridged by re-emitting the last good command.
Once the hand has been gone for the hold window, the neutral vector is
emitted until the hand comes back.
"""

import logging
import time
from enum import Enum
from typing import Optional, Tuple

from .command import CommandVector
from .config import ControlConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


def now_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000.0


class FailsafeRegime(Enum):
    """Which policy produced the emitted command."""
    ACTIVE = "active"
    HOLD = "hold"
    FAILSAFE = "failsafe"


class LinkLossFailsafe:
    """
    Tracks time since the last hand-present frame and overrides the output.

    State:
    - last_hand_seen_at: timestamp (ms) of the latest frame with a hand
    - last_command: latest command computed while calibrated with a hand
    """

    def __init__(self, config: ControlConfig = DEFAULT_CONFIG):
        self.hold_window_ms = config.hold_window_ms
        self._neutral = CommandVector.neutral(config)
        self.last_hand_seen_at: Optional[float] = None
        self.last_command: CommandVector = self._neutral
        # None until the first frame is processed
        self.regime: Optional[FailsafeRegime] = None

    def update(
        self,
        now: float,
        hand_present: bool,
        fresh_command: Optional[CommandVector] = None,
    ) -> Tuple[CommandVector, FailsafeRegime]:
        """
        Decide the command to emit this frame.

        Args:
            now: Frame timestamp in milliseconds
            hand_present: Whether a hand was detected this frame
            fresh_command: Command computed this frame (only when calibrated)

        Returns:
            Tuple of (command, regime)
        """
        if hand_present:
            if fresh_command is not None:
                self.last_command = fresh_command
            self._set_regime(FailsafeRegime.ACTIVE)
            self.last_hand_seen_at = now
            return self.last_command, self.regime

        elapsed = self.time_since_hand_ms(now)
        if elapsed is not None and elapsed < self.hold_window_ms:
            self._set_regime(FailsafeRegime.HOLD)
            return self.last_command, self.regime

        self._set_regime(FailsafeRegime.FAILSAFE)
        return self._neutral, self.regime

    def _set_regime(self, regime: FailsafeRegime) -> None:
        if regime is self.regime:
            return
        if regime is FailsafeRegime.FAILSAFE and self.last_hand_seen_at is not None:
            logger.warning("Failsafe triggered: hand lost, RC channels centered")
        elif regime is FailsafeRegime.HOLD:
            logger.debug("Hand lost, holding last command")
        elif self.regime is FailsafeRegime.FAILSAFE and self.last_hand_seen_at is not None:
            logger.info("Hand detected, failsafe cleared")
        self.regime = regime

    def time_since_hand_ms(self, now: float) -> Optional[float]:
        """Milliseconds since the last hand-present frame, None if never seen."""
        if self.last_hand_seen_at is None:
            return None
        return now - self.last_hand_seen_at

    def hold_remaining_ms(self, now: float) -> float:
        """Time left in the hold window (0 when not holding)."""
        elapsed = self.time_since_hand_ms(now)
        if elapsed is None:
            return 0.0
        return max(0.0, self.hold_window_ms - elapsed)
