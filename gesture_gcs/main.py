#!/usr/bin/env python3
"""
Gesture Ground Control - Main Entry Point

Replays a recorded hand-landmark session through the control pipeline and a
simulated vehicle link. Each line of the session file is a JSON object:

    {"t_ms": 33.3, "landmarks": [[x, y], ... 21 points] | null, "keys": "s"}

Points may also be written as {"x": x, "y": y} objects.

`keys` holds operator key presses applied before that frame:
    c  begin calibration        s  sample current hand span
    a  toggle arm               l  toggle link connection
    space  emergency stop       q  quit

Usage:
    python -m gesture_gcs.main --session flight.jsonl --connect
    python -m gesture_gcs.main --session flight.jsonl --preview --realtime
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
import time
from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Optional

import cv2

from .calibration import CalibrationEvent
from .config import ControlConfig
from .hud import blank_canvas, draw_hud
from .log_buffer import LogBuffer
from .pipeline import ControlPipeline, FrameResult
from .telemetry import SimulatedLink

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "gesture_gcs"
ESC = "\x1b"


@dataclass(frozen=True)
class SessionFrame:
    """One recorded camera frame plus the keys pressed before it."""
    t_ms: float
    landmarks: Optional[Any]
    keys: str = ""


def parse_session(lines: Iterable[str], frame_interval_ms: float) -> List[SessionFrame]:
    """
    Parse JSON-lines session records.

    Missing timestamps are filled in at the configured frame interval.

    Raises:
        ValueError: On a malformed line (message carries the line number)
    """
    frames: List[SessionFrame] = []
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            d = json.loads(line)
            if not isinstance(d, dict):
                raise ValueError("record is not an object")
            default_t = frames[-1].t_ms + frame_interval_ms if frames else 0.0
            frames.append(SessionFrame(
                t_ms=float(d.get("t_ms", default_t)),
                landmarks=d.get("landmarks"),
                keys=str(d.get("keys", "")),
            ))
        except (ValueError, TypeError) as e:
            raise ValueError(f"line {lineno}: {e}") from e
    return frames


def load_session(path: str, frame_interval_ms: float) -> List[SessionFrame]:
    """Read a session file from disk."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_session(f, frame_interval_ms)


class GroundControlApp:
    """
    Integrates the ground station components:
    - Gesture control pipeline
    - Simulated telemetry/command link
    - Operator key bindings
    - Log panel buffer
    """

    def __init__(
        self,
        config: Optional[ControlConfig] = None,
        link: Optional[SimulatedLink] = None,
        show_preview: bool = False,
    ):
        self.config = config or ControlConfig()
        self.pipeline = ControlPipeline(self.config)
        self.link = link or SimulatedLink(self.config)
        self.link.on_disconnected = self.pipeline.on_disconnect
        self.show_preview = show_preview

        # DEBUG records reach the panel as DATA entries when --debug is set
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        self.log_buffer = LogBuffer(
            capacity=self.config.log_capacity,
            level=min(logging.INFO, package_logger.getEffectiveLevel()),
        )
        package_logger.addHandler(self.log_buffer)

        self._running = False
        self.frames_processed = 0
        self.commands_sent = 0
        self.last_result: Optional[FrameResult] = None

    def close(self) -> None:
        logging.getLogger(PACKAGE_LOGGER).removeHandler(self.log_buffer)
        if self.show_preview:
            cv2.destroyAllWindows()

    @property
    def running(self) -> bool:
        return self._running

    def handle_key(self, key: str, now: float) -> None:
        """Dispatch one operator key press."""
        key = key.lower()
        if key == "c":
            self.pipeline.handle_event(CalibrationEvent.BEGIN)
        elif key == "s":
            self.pipeline.handle_event(CalibrationEvent.SAMPLE)
        elif key == " ":
            self.link.emergency_stop()
        elif key == "a":
            self.link.toggle_arm()
        elif key == "l":
            self.link.toggle_connection(now)
        elif key in ("q", ESC):
            logger.info("Quit requested")
            self._running = False
        else:
            logger.debug(f"Unbound key {key!r}")

    def step(self, landmarks: Any, now: float, keys: str = "") -> FrameResult:
        """
        Process one frame: keys, pipeline, link.

        Returns:
            FrameResult from the pipeline
        """
        for key in keys:
            self.handle_key(key, now)

        result = self.pipeline.process_frame(landmarks, now)
        self.link.tick(now)

        # Commands only leave the station while the link is up
        if self.link.connected and self.link.send_command(result.command):
            self.commands_sent += 1

        self.frames_processed += 1
        self.last_result = result
        return result

    async def run(
        self,
        frames: List[SessionFrame],
        realtime: bool = False,
        emit: bool = False,
    ) -> None:
        """Replay a session through the station."""
        self._running = True
        start = time.monotonic()

        for frame in frames:
            if not self._running:
                break

            if realtime:
                due = start + frame.t_ms / 1000.0
                delay = due - time.monotonic()
                if delay > 0:
                    await asyncio.sleep(delay)

            result = self.step(frame.landmarks, frame.t_ms, frame.keys)
            if emit:
                print(result.command.to_json(), flush=True)

            if self.show_preview:
                self._show_preview(frame)

        self._running = False
        logger.info(
            f"Session finished: {self.frames_processed} frames, "
            f"{self.commands_sent} commands sent, link {self.link.state.value}"
        )
        logger.debug(f"Stats: {self.get_stats()}")

    def _show_preview(self, frame: SessionFrame) -> None:
        canvas = draw_hud(blank_canvas(), self.last_result.hud, frame.landmarks)
        cv2.imshow("Gesture Ground Control", canvas)
        key = cv2.waitKey(1) & 0xFF
        if key != 0xFF:
            self.handle_key(chr(key), frame.t_ms)

    def get_stats(self) -> dict:
        return {
            "frames_processed": self.frames_processed,
            "commands_sent": self.commands_sent,
            "link": self.link.get_stats(),
        }


async def main_async(args: argparse.Namespace) -> int:
    """Async main entry point."""
    try:
        config = ControlConfig.from_env()
        if args.rate is not None:
            config = replace(config, frame_rate=args.rate)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    try:
        frames = load_session(args.session, config.frame_interval_ms)
    except OSError as e:
        logger.error(f"Cannot read session file: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Malformed session file: {e}")
        return 1

    app = GroundControlApp(config=config, show_preview=args.preview)
    if args.connect:
        app.link.connect(frames[0].t_ms if frames else 0.0)

    loop = asyncio.get_event_loop()

    def signal_handler():
        logger.info("Shutdown signal received")
        app.handle_key("q", 0.0)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            pass

    try:
        await app.run(frames, realtime=args.realtime, emit=args.emit)
    finally:
        app.close()
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Gesture Ground Control (session replay)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--session",
        type=str,
        required=True,
        help="JSON-lines session recording",
    )
    parser.add_argument(
        "--connect",
        action="store_true",
        help="Connect the simulated link at session start",
    )
    parser.add_argument(
        "--rate",
        type=float,
        default=None,
        help="Frame rate (Hz) for records without timestamps",
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Pace replay by the recorded timestamps",
    )
    parser.add_argument(
        "--emit",
        action="store_true",
        help="Print each frame's command as JSON on stdout",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Show HUD preview window",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        sys.exit(asyncio.run(main_async(args)))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
