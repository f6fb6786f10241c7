import logging

import pytest

from session import PHASE_HOLDING, ExerciseFamily
from workout import ExerciseSession, frame_timestamp


def test_session_counts_and_summarizes(frames):
    session = ExerciseSession("bicep_curl")
    for i, angle in enumerate([170, 40, 170, 40, 170]):
        session.process(frames.arm(angle).to_list(), timestamp=float(i))
    assert session.state.rep_count == 2

    summary = session.summary()
    assert summary["exercise"] == "bicep_curl"
    assert summary["reps"] == 2
    assert summary["calories"] == pytest.approx(0.6)


def test_hold_calories_use_time(frames):
    session = ExerciseSession("plank")
    for i in range(11):
        session.process(frames.plank().to_list(), timestamp=i * 0.1)
    assert session.state.hold_time_seconds == pytest.approx(1.0)
    assert session.estimated_calories() == pytest.approx(round(1.0 / 60.0 * 4.0, 2))


def test_select_exercise_starts_fresh(frames):
    session = ExerciseSession("bicep_curl")
    session.add_rep(3)
    dispatch = session.select_exercise("zorblax", "isometric-hold")
    assert dispatch.config.id == "plank"
    assert dispatch.match == "fallback"
    assert session.exercise == "plank"
    assert session.state.rep_count == 0


def test_reset_and_manual_reps(frames):
    session = ExerciseSession("squat", ExerciseFamily.DYNAMIC_REP)
    assert session.add_rep().rep_count == 1
    assert session.add_rep(2).rep_count == 3
    state = session.reset()
    assert state.rep_count == 0
    assert state.exercise == "squat"
    assert session.reset() == state


@pytest.mark.parametrize(
    "value, expected",
    [(1.5, 1.5), ("2.25", 2.25), (3, 3.0), ("abc", None), (None, None), (True, None), (float("nan"), None), ({}, None)],
)
def test_frame_timestamp(value, expected):
    assert frame_timestamp(value) == expected


def test_bad_timestamp_does_not_break_hold(frames):
    session = ExerciseSession("plank")
    session.process(frames.plank().to_list(), timestamp="abc")
    for i in range(6):
        state = session.process(frames.plank().to_list(), timestamp=i * 0.1)
    assert state.phase == PHASE_HOLDING
    assert isinstance(state.last_update_timestamp, float)
    assert state.hold_time_seconds == pytest.approx(0.5)


def test_unknown_exercise_is_resolved_once(frames, caplog):
    with caplog.at_level(logging.WARNING, logger="exercises"):
        session = ExerciseSession("zorblax")
        for i in range(5):
            session.process(frames.arm(170).to_list(), timestamp=float(i))
    fallbacks = [r for r in caplog.records if "falling back" in r.getMessage()]
    assert len(fallbacks) == 1
    assert session.exercise == "squat"
