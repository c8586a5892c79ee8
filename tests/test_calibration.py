import pytest

from gesture_gcs.calibration import (
    REJECT_NEAR_NOT_GREATER,
    CalibrationEvent,
    CalibrationStage,
    CalibrationState,
    describe,
    transition,
)

BEGIN = CalibrationEvent.BEGIN
SAMPLE = CalibrationEvent.SAMPLE
RESET = CalibrationEvent.RESET


def wait_near(far=0.1):
    return CalibrationState(stage=CalibrationStage.WAIT_NEAR, far_span=far)


def ready(far=0.1, near=0.3):
    return CalibrationState(stage=CalibrationStage.READY, far_span=far, near_span=near)


@pytest.mark.parametrize("start", [
    CalibrationState(),
    CalibrationState(stage=CalibrationStage.WAIT_FAR),
    wait_near(),
    ready(),
])
def test_begin_from_any_stage_clears_spans(start):
    outcome = transition(start, BEGIN)
    assert outcome.accepted
    assert outcome.state == CalibrationState(stage=CalibrationStage.WAIT_FAR)


def test_far_sample_always_accepted():
    outcome = transition(CalibrationState(stage=CalibrationStage.WAIT_FAR), SAMPLE, 0.42)
    assert outcome.accepted
    assert outcome.state.stage == CalibrationStage.WAIT_NEAR
    assert outcome.state.far_span == 0.42
    assert outcome.state.near_span is None


@pytest.mark.parametrize("span", [0.1, 0.05, 0.0])
def test_near_sample_not_greater_is_rejected(span):
    start = wait_near(far=0.1)
    outcome = transition(start, SAMPLE, span)
    assert outcome.rejection == REJECT_NEAR_NOT_GREATER
    assert outcome.state == start
    assert outcome.state.near_span is None


def test_near_sample_greater_reaches_ready():
    outcome = transition(wait_near(far=0.1), SAMPLE, 0.3)
    assert outcome.accepted
    assert outcome.state.stage == CalibrationStage.READY
    assert outcome.state.near_span == 0.3
    assert outcome.state.near_span > outcome.state.far_span


def test_retry_after_rejection():
    state = wait_near(far=0.2)
    state = transition(state, SAMPLE, 0.15).state
    outcome = transition(state, SAMPLE, 0.25)
    assert outcome.state.stage == CalibrationStage.READY


@pytest.mark.parametrize("start", [CalibrationState(), ready()])
def test_sample_ignored_in_idle_and_ready(start):
    outcome = transition(start, SAMPLE, 0.9)
    assert outcome.accepted
    assert outcome.state == start


def test_reset_returns_to_idle():
    assert transition(ready(), RESET).state == CalibrationState()


def test_full_protocol():
    state = CalibrationState()
    for event, span in [(BEGIN, 0.0), (SAMPLE, 0.1), (SAMPLE, 0.3)]:
        state = transition(state, event, span).state
    assert state == ready(0.1, 0.3)
    assert state.ready


def test_describe_mentions_far_span():
    assert "0.100" in describe(wait_near(far=0.1))
    assert "calibrate" in describe(CalibrationState())
