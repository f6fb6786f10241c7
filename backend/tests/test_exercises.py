import pytest

from analyzer import BASELINE_FEEDBACK, ExerciseConfig
from exercises import EXERCISE_REGISTRY, analyze_frame, build_analyzer
from pose_sources import CANONICAL_LANDMARKS
from session import PHASE_CONTRACTED, PHASE_EXTENDED, ExerciseFamily

CATALOGUE = {
    ExerciseFamily.DYNAMIC_REP: {
        "bicep_curl", "squat", "push_up", "jumping_jack", "lunge", "calf_raise", "overhead_press",
        "lateral_raise", "front_raise", "tricep_dip", "bench_press", "bent_over_row", "deadlift",
        "glute_bridge", "leg_raise", "superman", "burpee",
    },
    ExerciseFamily.ISOMETRIC_HOLD: {"plank", "childs_pose", "cobra_stretch", "hamstring_stretch"},
    ExerciseFamily.ALTERNATING_BILATERAL: {
        "russian_twist", "bicycle_crunch", "bird_dog", "mountain_climber", "high_knee", "butt_kick", "cat_cow",
    },
}


def test_catalogue_families():
    for family, ids in CATALOGUE.items():
        registered = {cid for cid, config in EXERCISE_REGISTRY.items() if config.family == family}
        assert registered == ids


def test_aliases_are_unique_and_never_shadow_ids():
    seen = set()
    for config in EXERCISE_REGISTRY.values():
        for alias in config.aliases:
            assert alias not in EXERCISE_REGISTRY
            assert alias not in seen
            seen.add(alias)


def standing_pose(frames, timestamp=None):
    """Upright, arms hanging, feet under hips; every canonical landmark present."""
    layout = {
        "nose": (200, 60),
        "left_eye": (195, 55),
        "right_eye": (205, 55),
        "left_ear": (190, 60),
        "right_ear": (210, 60),
        "left_shoulder": (170, 120),
        "right_shoulder": (230, 120),
        "left_elbow": (165, 200),
        "right_elbow": (235, 200),
        "left_wrist": (165, 270),
        "right_wrist": (235, 270),
        "left_hip": (180, 280),
        "right_hip": (220, 280),
        "left_knee": (180, 380),
        "right_knee": (220, 380),
        "left_ankle": (180, 480),
        "right_ankle": (220, 480),
    }
    assert set(layout) == set(CANONICAL_LANDMARKS)
    return frames.build(layout, timestamp=timestamp)


@pytest.mark.parametrize("exercise_id", sorted(EXERCISE_REGISTRY))
def test_every_exercise_handles_a_standing_pose(frames, exercise_id):
    config = EXERCISE_REGISTRY[exercise_id]
    analyzer = build_analyzer(config.resolved_engine)
    state = None
    for i in range(3):
        state = analyzer.update(standing_pose(frames), config, state, now=i * 0.1)
        assert 0.0 <= state.form_score <= 100.0
        assert isinstance(state.form_feedback, str)
        assert state.exercise == exercise_id
        assert state.rep_count == 0
        assert config.phase_graph.knows(state.phase)


@pytest.mark.parametrize("exercise_id", sorted(EXERCISE_REGISTRY))
def test_every_exercise_survives_an_empty_frame(frames, exercise_id):
    state = analyze_frame(frames.build({}), exercise_id, None, now=0.0)
    assert state.rep_count == 0
    assert state.phase == ""
    assert state.form_feedback == EXERCISE_REGISTRY[exercise_id].visibility_feedback


def test_dynamic_configs_validate_thresholds():
    with pytest.raises(ValueError):
        ExerciseConfig(
            id="broken",
            display_name="Broken",
            family=ExerciseFamily.DYNAMIC_REP,
            metric=lambda ctx: 0.0,
            contracted_threshold=150,
            extended_threshold=60,
        )


def shoulders_at(frames, y, timestamp=None):
    points = {}
    for side, x in (("left", 150), ("right", 250)):
        points.update(
            {
                f"{side}_shoulder": (x, y),
                f"{side}_elbow": (x, y + 60),
                f"{side}_wrist": (x, y + 120),
                f"{side}_hip": (x + 100, y + 5),
            }
        )
    return frames.build(points, timestamp=timestamp)


def test_push_up_counts_from_shoulder_baseline(frames):
    state = analyze_frame(shoulders_at(frames, 200), "push-ups", None, now=0.0)
    assert state.baseline_references == {"shoulder_y": 200.0}
    assert state.form_feedback == BASELINE_FEEDBACK
    assert state.phase == ""

    for i, y in enumerate([200, 240, 200], start=1):
        state = analyze_frame(shoulders_at(frames, y), "push-ups", state, now=float(i))
    assert state.rep_count == 1
    assert state.phase == PHASE_EXTENDED
    # Baselines are read-only once captured.
    assert state.baseline_references == {"shoulder_y": 200.0}


def upright_row_pose(frames, hip_x):
    return frames.build(
        {
            "left_shoulder": (100, 100),
            "left_elbow": (100, 200),
            "left_wrist": (100, 300),
            "left_hip": (hip_x, 300),
        }
    )


def test_row_requires_a_hip_hinge(frames):
    state = analyze_frame(upright_row_pose(frames, 100), "bent over row", None, now=0.0)
    assert state.debug == "Gate failed: torso_hinge"
    assert state.form_feedback == "Bend forward at your hips"
    assert state.form_score == 50.0
    assert state.phase == ""

    hinged = analyze_frame(upright_row_pose(frames, 250), "bent over row", state, now=1.0)
    assert hinged.phase == PHASE_EXTENDED


def jack_pose(frames, open_):
    arm_y = 40 if open_ else 260
    ankle_spread = 80 if open_ else 20
    return frames.build(
        {
            "left_shoulder": (170, 120),
            "right_shoulder": (230, 120),
            "left_elbow": (150, 80 if open_ else 190),
            "right_elbow": (250, 80 if open_ else 190),
            "left_wrist": (140, arm_y),
            "right_wrist": (260, arm_y),
            "left_hip": (180, 280),
            "right_hip": (220, 280),
            "left_ankle": (200 - ankle_spread, 480),
            "right_ankle": (200 + ankle_spread, 480),
        }
    )


def test_jumping_jack_counts_on_return(frames):
    state = None
    for i, open_ in enumerate([False, True, False, True, False]):
        state = analyze_frame(jack_pose(frames, open_), "jumping jacks", state, now=float(i))
    assert state.rep_count == 2
    assert state.phase == PHASE_CONTRACTED
    assert state.debug == "State: arms_down"
