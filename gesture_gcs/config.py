"""
Control configuration.

All tunable constants of the control pipeline and the simulated link live in
one frozen dataclass. Defaults match the reference ground station; each value
can be overridden from the environment.

Environment Variables:
    GCS_EMA_ALPHA: Smoothing factor of the intensity filter (default: 0.2)
    GCS_DEADZONE: Intensity deadzone threshold (default: 0.05)
    GCS_HOLD_WINDOW_MS: Failsafe hold window in milliseconds (default: 500)
    GCS_TELEMETRY_INTERVAL_MS: Simulated telemetry period (default: 50)
    GCS_CONNECT_DELAY_MS: Simulated link handshake delay (default: 1500)
    GCS_FRAME_RATE: Session replay frame rate in Hz (default: 30)
"""

import logging
import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "GCS_"


@dataclass(frozen=True)
class ControlConfig:
    """
    Fixed configuration constants.

    Attributes:
        ema_alpha: Weight of the newest sample in the intensity EMA
        deadzone: Smoothed intensities at or below this value map to 0
        rc_min: Lowest PWM value of every channel (idle throttle)
        rc_mid: Neutral PWM value of roll, pitch and yaw
        rc_max: Highest PWM value of every channel
        hold_window_ms: How long the last command is held after the hand is lost
        pitch_amplitude: PWM swing of pitch at full intensity
        throttle_amplitude: PWM swing of throttle at full intensity
        telemetry_interval_ms: Period of the simulated telemetry stream (20 Hz)
        connect_delay_ms: Simulated time from connect request to heartbeat
        log_capacity: Number of entries kept for the log panel
        emergency_lock_code: Code reported when the emergency stop fires
        frame_rate: Replay rate of recorded sessions (Hz)
    """
    ema_alpha: float = 0.2
    deadzone: float = 0.05
    rc_min: int = 1000
    rc_mid: int = 1500
    rc_max: int = 2000
    hold_window_ms: float = 500.0
    pitch_amplitude: int = 450
    throttle_amplitude: int = 800
    telemetry_interval_ms: float = 50.0
    connect_delay_ms: float = 1500.0
    log_capacity: int = 50
    emergency_lock_code: int = 21196
    frame_rate: float = 30.0

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ValueError if the constants are inconsistent."""
        if not 0.0 < self.ema_alpha <= 1.0:
            raise ValueError(f"ema_alpha must be in (0, 1], got {self.ema_alpha}")
        if not 0.0 <= self.deadzone < 1.0:
            raise ValueError(f"deadzone must be in [0, 1), got {self.deadzone}")
        if not self.rc_min < self.rc_mid < self.rc_max:
            raise ValueError(
                f"RC limits must satisfy min < mid < max, got "
                f"{self.rc_min}/{self.rc_mid}/{self.rc_max}"
            )
        if self.pitch_amplitude < 0 or self.pitch_amplitude > min(
            self.rc_mid - self.rc_min, self.rc_max - self.rc_mid
        ):
            raise ValueError(
                f"pitch_amplitude {self.pitch_amplitude} exceeds the RC range around mid"
            )
        if self.throttle_amplitude < 0 or self.throttle_amplitude > self.rc_max - self.rc_min:
            raise ValueError(
                f"throttle_amplitude {self.throttle_amplitude} exceeds the RC range"
            )
        if self.hold_window_ms <= 0:
            raise ValueError("hold_window_ms must be positive")
        if self.telemetry_interval_ms <= 0 or self.connect_delay_ms < 0:
            raise ValueError("telemetry_interval_ms must be positive and connect_delay_ms >= 0")
        if self.log_capacity <= 0:
            raise ValueError("log_capacity must be positive")
        if self.frame_rate <= 0:
            raise ValueError("frame_rate must be positive")

    @property
    def frame_interval_ms(self) -> float:
        """Time between replayed frames in milliseconds."""
        return 1000.0 / self.frame_rate

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ControlConfig':
        """
        Build a config from GCS_* environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            ControlConfig with overrides applied
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            caster = int if f.type in (int, 'int') else float
            try:
                overrides[f.name] = caster(raw)
            except ValueError:
                raise ValueError(
                    f"{ENV_PREFIX}{f.name.upper()}={raw!r} is not a valid {caster.__name__}"
                ) from None
            logger.debug(f"Config override {f.name}={overrides[f.name]}")
        return cls(**overrides)


DEFAULT_CONFIG = ControlConfig()
