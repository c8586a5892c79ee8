"""
Log Panel Buffer - Keeps the most recent log records for display.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

# Levels shown by the log panel
LEVEL_TYPES = {
    logging.DEBUG: "DATA",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}

_FORMATTER = logging.Formatter()


@dataclass(frozen=True)
class LogEntry:
    """One line of the log panel."""
    id: int
    timestamp: str
    type: str
    message: str
    details: Optional[str] = None


def format_timestamp(created: float) -> str:
    """HH:MM:SS.cc wall-clock time."""
    dt = datetime.fromtimestamp(created)
    return f"{dt:%H:%M:%S}.{dt.microsecond // 10000:02d}"


class LogBuffer(logging.Handler):
    """
    Logging handler retaining the last `capacity` records as LogEntry items.

    Attach it to the package logger to feed an on-screen log panel:

        buffer = LogBuffer(capacity=50)
        logging.getLogger("gesture_gcs").addHandler(buffer)
    """

    def __init__(self, capacity: int = 50, level: int = logging.INFO):
        super().__init__(level=level)
        self._entries = deque(maxlen=capacity)
        self._next_id = 0
        self._entries_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            self.handleError(record)
            return
        details = None
        if record.exc_info:
            details = _FORMATTER.formatException(record.exc_info)
        with self._entries_lock:
            entry = LogEntry(
                id=self._next_id,
                timestamp=format_timestamp(record.created),
                type=LEVEL_TYPES.get(record.levelno, "INFO"),
                message=message,
                details=details,
            )
            self._next_id += 1
            self._entries.append(entry)

    def entries(self) -> List[LogEntry]:
        """Snapshot of buffered entries, oldest first."""
        with self._entries_lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._entries_lock:
            self._entries.clear()
