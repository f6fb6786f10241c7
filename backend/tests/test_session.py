from session import (
    PHASE_CONTRACTED,
    PHASE_EXTENDED,
    PHASE_HOLDING,
    ExerciseFamily,
    SessionState,
    add_manual_rep,
    alternating_graph,
    dynamic_rep_graph,
    new_session_state,
    reset_session_state,
    trim_sequence,
)


def test_family_parse():
    assert ExerciseFamily.parse("isometric_hold") is ExerciseFamily.ISOMETRIC_HOLD
    assert ExerciseFamily.parse("Dynamic-Rep") is ExerciseFamily.DYNAMIC_REP
    assert ExerciseFamily.parse(None) is ExerciseFamily.UNKNOWN
    assert ExerciseFamily.parse("yoga") is ExerciseFamily.UNKNOWN


def test_reset_is_idempotent():
    worn = SessionState(
        phase=PHASE_CONTRACTED,
        rep_count=12,
        hold_time_seconds=3.5,
        baseline_references={"ankle_y": 400.0},
        last_update_timestamp=10.0,
        last_side="left",
        sequence=("standing", "plank"),
        exercise="squat",
    )
    once = reset_session_state(worn)
    assert once == SessionState(exercise="squat")
    assert reset_session_state(once) == once
    assert reset_session_state(None) == new_session_state()


def test_manual_rep_override():
    state = SessionState(rep_count=3)
    assert add_manual_rep(state).rep_count == 4
    assert add_manual_rep(state, 5).rep_count == 8
    assert add_manual_rep(state, 0) is state
    assert state.rep_count == 3


def test_evolve_does_not_share_baselines():
    state = SessionState(baseline_references={"hip_y": 300.0})
    copy = state.evolve(rep_count=1)
    copy.baseline_references["hip_y"] = 0.0
    assert state.baseline_references == {"hip_y": 300.0}


def test_baseline_keys_are_write_once():
    state = SessionState().with_baseline({"hip_y": 300.0})
    state = state.with_baseline({"hip_y": 250.0, "shoulder_y": 200.0})
    assert state.baseline_references == {"hip_y": 300.0, "shoulder_y": 200.0}


def test_phase_graphs():
    graph = dynamic_rep_graph()
    assert graph.allows("", PHASE_EXTENDED)
    assert graph.allows(PHASE_EXTENDED, PHASE_CONTRACTED)
    assert not graph.allows(PHASE_EXTENDED, PHASE_HOLDING)
    assert not graph.knows(PHASE_HOLDING)

    sides = alternating_graph("cat", "cow")
    assert sides.allows("cat", "cow")
    assert sides.knows("neutral")


def test_rejected_transition_keeps_phase():
    state = SessionState(phase=PHASE_EXTENDED)
    assert state.transition(dynamic_rep_graph(), PHASE_HOLDING) is state


def test_dict_round_trip_is_lenient():
    state = SessionState.from_dict({"rep_count": -3, "hold_time_seconds": None, "sequence": ["standing"]})
    assert state.rep_count == 0
    assert state.hold_time_seconds == 0.0
    assert state.sequence == ("standing",)
    assert SessionState.from_dict(None) == SessionState()

    full = SessionState(phase=PHASE_HOLDING, hold_time_seconds=2.5, last_update_timestamp=4.0, exercise="plank")
    assert SessionState.from_dict(full.to_dict()) == full


def test_trim_sequence():
    assert trim_sequence(["a", "b", "c", "d"], 3) == ("b", "c", "d")
