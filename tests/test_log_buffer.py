import logging
import re

import pytest

from gesture_gcs.log_buffer import LogBuffer


@pytest.fixture
def buffered_logger():
    log = logging.getLogger("gesture_gcs.test_log_buffer")
    log.setLevel(logging.DEBUG)
    buffer = LogBuffer(capacity=3)
    log.addHandler(buffer)
    yield log, buffer
    log.removeHandler(buffer)


def test_keeps_most_recent_entries(buffered_logger):
    log, buffer = buffered_logger
    for i in range(5):
        log.info("message %d", i)
    entries = buffer.entries()
    assert [e.message for e in entries] == ["message 2", "message 3", "message 4"]
    assert [e.id for e in entries] == [2, 3, 4]


def test_level_types(buffered_logger):
    log, buffer = buffered_logger
    log.debug("hidden")
    log.info("info")
    log.warning("warn")
    log.error("error")
    assert [e.type for e in buffer.entries()] == ["INFO", "WARN", "ERROR"]


def test_timestamp_format(buffered_logger):
    log, buffer = buffered_logger
    log.info("tick")
    assert re.fullmatch(r"\d{2}:\d{2}:\d{2}\.\d{2}", buffer.entries()[0].timestamp)


def test_exception_details(buffered_logger):
    log, buffer = buffered_logger
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        log.exception("failed")
    entry = buffer.entries()[-1]
    assert entry.type == "ERROR"
    assert "RuntimeError: boom" in entry.details


def test_clear(buffered_logger):
    log, buffer = buffered_logger
    log.info("x")
    buffer.clear()
    assert buffer.entries() == []
