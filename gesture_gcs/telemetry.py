"""
Simulated Telemetry Link.

Stands in for the vehicle link: a connection lifecycle with a simulated
heartbeat delay, a 20 Hz telemetry stream with sensor noise, arm/disarm and
emergency stop handling, and a command sink that validates RC commands and
only accepts them while connected.

No real protocol is spoken; everything happens in-process.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

import numpy as np

from .command import CommandValidator, CommandVector
from .config import ControlConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)

MIN_BATTERY_VOLTAGE = 10.5
BATTERY_DRAIN_PER_STEP = 0.0005


class ConnectionState(Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


@dataclass(frozen=True)
class TelemetryData:
    """Vehicle state as reported by the (simulated) link."""
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0
    altitude: float = 0.0
    battery_voltage: float = 12.6  # 3S LiPo, full
    satellite_count: int = 0
    armed: bool = False


INITIAL_TELEMETRY = TelemetryData()


def generate_mock_telemetry(
    current: TelemetryData,
    armed: bool,
    rng: np.random.Generator,
) -> TelemetryData:
    """
    Produce the next telemetry sample.

    Roll and pitch decay towards level with noise that grows when armed,
    yaw wanders slowly, altitude only moves while armed and the battery
    drains a little every step.
    """
    def noise(amount: float) -> float:
        return float((rng.random() - 0.5) * amount)

    drift = 2.0 if armed else 0.1
    return replace(
        current,
        roll=current.roll * 0.95 + noise(drift),
        pitch=current.pitch * 0.95 + noise(drift),
        yaw=(current.yaw + noise(0.5)) % 360.0,
        altitude=max(0.0, current.altitude + noise(0.1)) if armed else 0.0,
        battery_voltage=max(MIN_BATTERY_VOLTAGE, current.battery_voltage - BATTERY_DRAIN_PER_STEP),
        satellite_count=12 + int(rng.integers(0, 3)),
        armed=armed,
    )


class SimulatedLink:
    """
    In-process replacement for the vehicle telemetry/command link.

    Usage:
        link = SimulatedLink(on_disconnected=pipeline.on_disconnect)
        link.connect(now)
        link.tick(now)             # every loop iteration
        link.send_command(cmd)     # every frame
    """

    def __init__(
        self,
        config: ControlConfig = DEFAULT_CONFIG,
        rng: Optional[np.random.Generator] = None,
        on_disconnected: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize the link.

        Args:
            config: Timing constants and RC limits
            rng: Random generator for sensor noise (seed it for repeatable runs)
            on_disconnected: Callback when the link goes down
        """
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng()
        self.on_disconnected = on_disconnected
        self.validator = CommandValidator(config)

        self.state = ConnectionState.DISCONNECTED
        self.telemetry = INITIAL_TELEMETRY
        self.last_command: Optional[CommandVector] = None

        self._connect_requested_at: Optional[float] = None
        self._next_telemetry_at: Optional[float] = None
        self._commands_accepted = 0
        self._commands_rejected = 0

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def armed(self) -> bool:
        return self.telemetry.armed

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self, now: float) -> None:
        """Start connecting; the link comes up after connect_delay_ms."""
        if self.state is not ConnectionState.DISCONNECTED:
            return
        self.state = ConnectionState.CONNECTING
        self._connect_requested_at = now
        logger.info("Initializing link to simulated vehicle...")

    def disconnect(self) -> None:
        """Drop the link. An armed vehicle is force-disarmed."""
        if self.state is ConnectionState.DISCONNECTED:
            return
        if self.telemetry.armed:
            logger.error("Failsafe: link lost while armed, forced disarm")
        else:
            logger.warning("Link disconnected by user")
        self.state = ConnectionState.DISCONNECTED
        self.telemetry = INITIAL_TELEMETRY
        self.last_command = None
        self._connect_requested_at = None
        self._next_telemetry_at = None
        if self.on_disconnected:
            self.on_disconnected()

    def toggle_connection(self, now: float) -> None:
        if self.state is ConnectionState.DISCONNECTED:
            self.connect(now)
        else:
            self.disconnect()

    def tick(self, now: float) -> Optional[TelemetryData]:
        """
        Advance the simulation.

        Completes a pending connection and produces a telemetry sample once
        per telemetry interval.

        Returns:
            The new TelemetryData if a sample was produced, else None
        """
        if self.state is ConnectionState.CONNECTING:
            if now - self._connect_requested_at >= self.config.connect_delay_ms:
                self.state = ConnectionState.CONNECTED
                self._next_telemetry_at = now
                logger.info("Heartbeat received. System ID: 1, Component ID: 1")
            return None

        if not self.connected or now < self._next_telemetry_at:
            return None

        self.telemetry = generate_mock_telemetry(self.telemetry, self.telemetry.armed, self.rng)
        self._next_telemetry_at = now + self.config.telemetry_interval_ms
        return self.telemetry

    # ------------------------------------------------------------------
    # Arming
    # ------------------------------------------------------------------

    def arm(self) -> bool:
        """Arm the vehicle. Only possible while connected."""
        if not self.connected:
            logger.warning("Cannot arm: link not connected")
            return False
        if not self.telemetry.armed:
            self.telemetry = replace(self.telemetry, armed=True)
            logger.warning("Command: ARM executed")
        return True

    def disarm(self) -> bool:
        """Disarm the vehicle. Only possible while connected."""
        if not self.connected:
            return False
        if self.telemetry.armed:
            self.telemetry = replace(self.telemetry, armed=False)
            logger.info("Command: DISARM executed")
        return True

    def toggle_arm(self) -> bool:
        if self.telemetry.armed:
            return self.disarm()
        return self.arm()

    def emergency_stop(self) -> bool:
        """
        Immediately disarm.

        Returns:
            True if the vehicle was armed and has been stopped
        """
        if not self.telemetry.armed:
            return False
        self.telemetry = replace(self.telemetry, armed=False)
        logger.error(f"Emergency stop triggered (code {self.config.emergency_lock_code})")
        return True

    # ------------------------------------------------------------------
    # Command sink
    # ------------------------------------------------------------------

    def send_command(self, cmd: CommandVector) -> bool:
        """
        Hand an RC command to the link.

        Returns:
            True if the command was validated and accepted
        """
        if not self.connected:
            self._commands_rejected += 1
            return False

        clamped, valid, reason = self.validator.clamp_and_validate(cmd)
        if not valid:
            self._commands_rejected += 1
            logger.warning(f"Command validation failed: {reason}")
            return False

        self.last_command = clamped
        self._commands_accepted += 1
        return True

    def get_stats(self) -> dict:
        """Get link statistics."""
        return {
            "state": self.state.value,
            "armed": self.telemetry.armed,
            "commands_accepted": self._commands_accepted,
            "commands_rejected": self._commands_rejected,
            "validator": self.validator.get_stats(),
        }
