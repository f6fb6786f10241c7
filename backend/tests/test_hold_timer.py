import pytest

from exercises import EXERCISE_REGISTRY
from hold_timer import HoldValidator
from session import PHASE_HOLDING, PHASE_INVALID
from settings import EngineSettings

PLANK = EXERCISE_REGISTRY["plank"]


def hold_for(frames, timestamps, state=None, analyzer=None, **pose):
    analyzer = analyzer or HoldValidator()
    for ts in timestamps:
        state = analyzer.update(frames.plank(**pose), PLANK, state, now=ts)
    return state


def test_ten_frames_accrue_nine_intervals(frames):
    state = hold_for(frames, [i * 0.1 for i in range(10)])
    assert state.phase == PHASE_HOLDING
    assert state.hold_time_seconds == pytest.approx(0.9)


def test_long_gap_adds_nothing(frames):
    state = hold_for(frames, [i * 0.1 for i in range(10)])
    state = hold_for(frames, [0.9 + 2.0], state=state)
    assert state.hold_time_seconds == pytest.approx(0.9)
    # Accrual resumes from the new timestamp.
    state = hold_for(frames, [3.0], state=state)
    assert state.hold_time_seconds == pytest.approx(1.0)


def test_gap_bound_comes_from_settings(frames):
    analyzer = HoldValidator(EngineSettings(max_hold_gap_seconds=1.0))
    state = hold_for(frames, [0.0, 0.8], analyzer=analyzer)
    assert state.hold_time_seconds == pytest.approx(0.8)


def test_non_increasing_timestamps_add_nothing(frames):
    state = hold_for(frames, [1.0, 1.0, 0.5])
    assert state.hold_time_seconds == 0.0


def test_good_plank_is_scored(frames):
    state = hold_for(frames, [0.0])
    assert state.form_score == pytest.approx(95.0)
    assert state.form_feedback == "Excellent plank form!"


def test_broken_line_invalidates_hold(frames):
    state = hold_for(frames, [0.0, 0.1, 0.2])
    state = hold_for(frames, [0.3], state=state, hip_y=260.0)
    assert state.phase == PHASE_INVALID
    assert state.form_feedback == "Try to form a straight line with your body"
    assert state.form_score == pytest.approx(50.0)
    assert state.hold_time_seconds == pytest.approx(0.2)

    # The first valid frame after an invalid one starts a new interval.
    state = hold_for(frames, [0.4], state=state)
    assert state.phase == PHASE_HOLDING
    assert state.hold_time_seconds == pytest.approx(0.2)
    state = hold_for(frames, [0.5], state=state)
    assert state.hold_time_seconds == pytest.approx(0.3)


def test_missing_constraint_landmarks_hold_state(frames):
    state = hold_for(frames, [0.0, 0.1])
    pose = frames.plank()
    del pose.keypoints["left_wrist"]
    del pose.keypoints["right_wrist"]
    after = HoldValidator().update(pose, PLANK, state, now=0.2)
    assert after.phase == state.phase
    assert after.hold_time_seconds == state.hold_time_seconds
    assert after.debug == "elbow_under_shoulder unavailable"


def test_low_visibility_keeps_time(frames):
    state = hold_for(frames, [0.0, 0.1, 0.2])
    weak = frames.build({name: (kp.x, kp.y, 0.1) for name, kp in frames.plank().keypoints.items()})
    after = HoldValidator().update(weak, PLANK, state, now=0.3)
    assert after.phase == PHASE_HOLDING
    assert after.hold_time_seconds == pytest.approx(0.2)
    assert after.form_feedback == PLANK.visibility_feedback


def test_low_visibility_never_leaves_invalid(frames):
    state = hold_for(frames, [0.0, 0.1])
    state = hold_for(frames, [0.2], state=state, hip_y=260.0)
    assert state.phase == PHASE_INVALID
    weak = frames.build({name: (kp.x, kp.y, 0.1) for name, kp in frames.plank().keypoints.items()})
    after = HoldValidator().update(weak, PLANK, state, now=0.3)
    assert after.phase == PHASE_INVALID
    assert after.hold_time_seconds == pytest.approx(0.1)
