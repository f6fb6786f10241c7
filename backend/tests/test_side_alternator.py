from exercises import EXERCISE_REGISTRY
from session import PHASE_NEUTRAL, SessionState
from side_alternator import SideAlternator

CLIMBER = EXERCISE_REGISTRY["mountain_climber"]


def run_sides(frames, sides, state=None):
    analyzer = SideAlternator()
    for i, side in enumerate(sides):
        state = analyzer.update(frames.climber(side), CLIMBER, state, now=i * 0.1)
    return state


def test_alternating_sides_count(frames):
    state = run_sides(frames, [None, "left", None, "right", None, "left"])
    assert state.rep_count == 3
    assert state.last_side == "left_knee"


def test_same_side_through_neutral_does_not_double_count(frames):
    state = run_sides(frames, ["left", None, "left", None, "left"])
    assert state.rep_count == 1


def test_lingering_on_a_side_counts_once(frames):
    state = run_sides(frames, ["left", "left", "left", "right", "right"])
    assert state.rep_count == 2


def test_neutral_phase_and_labels(frames):
    state = run_sides(frames, [None])
    assert state.phase == PHASE_NEUTRAL
    assert state.rep_count == 0
    assert state.debug == "Side: neutral"


def test_last_side_survives_state_threading(frames):
    state = run_sides(frames, ["left", None])
    restored = SessionState.from_dict(state.to_dict())
    state = run_sides(frames, ["left", "right"], state=restored)
    assert state.rep_count == 2


def test_low_confidence_keeps_phase_and_count(frames):
    state = run_sides(frames, [None, "left"])
    weak = frames.build({name: (kp.x, kp.y, 0.1) for name, kp in frames.climber("right").keypoints.items()})
    after = SideAlternator().update(weak, CLIMBER, state, now=0.2)
    assert after.phase == state.phase
    assert after.rep_count == 1
    assert after.last_side == "left_knee"
    assert after.form_feedback == CLIMBER.visibility_feedback


# ---- russian twist ----

TWIST = EXERCISE_REGISTRY["russian_twist"]


def twist_frame(frames, shift=0.0):
    """Seated V-sit with both wrists moved ``shift`` px from the midline."""
    return frames.build(
        {
            "left_shoulder": (180, 200),
            "right_shoulder": (220, 200),
            "left_hip": (185, 300),
            "right_hip": (215, 300),
            "left_wrist": (190 + shift, 260),
            "right_wrist": (210 + shift, 260),
        }
    )


def test_russian_twist_counts_from_captured_center(frames):
    analyzer = SideAlternator()
    state = analyzer.update(twist_frame(frames), TWIST, None, now=0.0)
    assert state.baseline_references == {"center_x": 200.0}
    assert state.rep_count == 0

    for i, shift in enumerate([0, 60, 0, -60, -60, 60], start=1):
        state = analyzer.update(twist_frame(frames, shift), TWIST, state, now=i * 0.1)
    assert state.rep_count == 3
    assert state.last_side == "right"
    assert state.form_feedback == "Good V-sit position"


def test_russian_twist_small_rotation_stays_neutral(frames):
    analyzer = SideAlternator()
    state = analyzer.update(twist_frame(frames), TWIST, None, now=0.0)
    for i, shift in enumerate([20, -20, 30], start=1):
        state = analyzer.update(twist_frame(frames, shift), TWIST, state, now=i * 0.1)
    assert state.phase == PHASE_NEUTRAL
    assert state.rep_count == 0
