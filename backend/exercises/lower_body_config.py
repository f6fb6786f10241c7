"""Leg and hip exercises."""

from typing import Optional

from analyzer import ExerciseConfig
from form_scorer import ExcellenceBonus, FormCheck, FrameContext, Priority
from session import PHASE_CONTRACTED, PHASE_EXTENDED, ExerciseFamily

from .metrics import (
    capture_mean_y,
    capture_side_y,
    current_metric,
    horizontal_gap,
    in_phase,
    rise_from_baseline,
    side_angle,
    side_rise_from_baseline,
)

LEG = ("hip", "knee", "ankle")

SQUAT_LABELS = {PHASE_CONTRACTED: "down", PHASE_EXTENDED: "up"}
RAISE_LABELS = {PHASE_CONTRACTED: "up", PHASE_EXTENDED: "down"}


def _bridge_sag(ctx: FrameContext) -> Optional[float]:
    """Hip distance from the shoulder-knee line at the top of a bridge."""
    shoulder, hip, knee = ctx.either("shoulder"), ctx.either("hip"), ctx.either("knee")
    if shoulder is None or hip is None or knee is None:
        return None
    return abs(hip.y - (shoulder.y + knee.y) / 2.0)


SQUAT = ExerciseConfig(
    id="squat",
    display_name="Squat",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("squats", "air_squat", "bodyweight_squat"),
    side_parts=LEG,
    visibility_feedback="Please position yourself so your legs are visible",
    metric=side_angle("hip", "knee", "ankle"),
    contracted_threshold=120,
    extended_threshold=160,
    count_on=PHASE_EXTENDED,
    phase_labels=SQUAT_LABELS,
    checks=(
        FormCheck(
            "knee_over_ankle",
            horizontal_gap("knee", "ankle"),
            limit=50,
            fault_feedback="Keep knees aligned with ankles",
            ok_feedback="Good knee alignment",
            fault_score=70,
            penalty=0.5,
        ),
    ),
    bonuses=(
        ExcellenceBonus(current_metric, 120, 90, "Good squat depth!", when="below", phase=PHASE_CONTRACTED),
        ExcellenceBonus(current_metric, 90, 95, "Excellent squat depth!", when="below", phase=PHASE_CONTRACTED),
        ExcellenceBonus(current_metric, 170, 95, "Good full extension!", phase=PHASE_EXTENDED),
    ),
)

LUNGE = ExerciseConfig(
    id="lunge",
    display_name="Lunge",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("lunges", "forward_lunge", "reverse_lunge"),
    side_parts=LEG,
    visibility_feedback="Please position yourself so your legs are visible",
    metric=side_angle("hip", "knee", "ankle"),
    contracted_threshold=110,
    extended_threshold=160,
    count_on=PHASE_EXTENDED,
    phase_labels=SQUAT_LABELS,
    checks=(
        FormCheck(
            "front_knee_over_ankle",
            horizontal_gap("knee", "ankle"),
            limit=40,
            fault_feedback="Keep front knee aligned over ankle",
            ok_feedback="Good knee alignment",
            fault_score=50,
            penalty=0.5,
        ),
    ),
    bonuses=(
        ExcellenceBonus(current_metric, 90, 95, "Great lunge depth!", when="below", phase=PHASE_CONTRACTED),
        ExcellenceBonus(current_metric, 170, 90, "Good extension!", phase=PHASE_EXTENDED),
    ),
)

DEADLIFT = ExerciseConfig(
    id="deadlift",
    display_name="Deadlift",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("deadlifts", "romanian_deadlift", "rdl"),
    side_parts=("shoulder", "hip", "knee"),
    visibility_feedback="Please position camera to see your full body from the side",
    metric=side_angle("shoulder", "hip", "knee"),
    metric_label="Hip angle",
    contracted_threshold=120,
    extended_threshold=160,
    count_on=PHASE_EXTENDED,
    phase_labels=SQUAT_LABELS,
    checks=(
        FormCheck(
            "back_straight",
            in_phase(PHASE_EXTENDED, horizontal_gap("shoulder", "hip")),
            limit=40,
            fault_feedback="Keep your back straight",
            ok_feedback="Good back position",
        ),
    ),
    bonuses=(
        ExcellenceBonus(current_metric, 170, 95, "Good hip extension!", phase=PHASE_EXTENDED),
    ),
)

CALF_RAISE = ExerciseConfig(
    id="calf_raise",
    display_name="Calf Raise",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("calf_raises", "heel_raise", "heel_raises"),
    side_parts=("knee", "ankle"),
    visibility_feedback="Please position camera to see your legs and feet",
    baseline=capture_side_y(ankle_y="ankle"),
    metric=side_rise_from_baseline("ankle_y", "ankle"),
    metric_label="Heel rise",
    contracted_when="above",
    contracted_threshold=20,
    extended_threshold=10,
    count_on=PHASE_EXTENDED,
    phase_labels=RAISE_LABELS,
    checks=(
        FormCheck(
            "leg_straight",
            horizontal_gap("ankle", "knee"),
            limit=30,
            fault_feedback="Keep your legs straight",
            ok_feedback="Good alignment",
        ),
    ),
    bonuses=(
        ExcellenceBonus(current_metric, 40, 95, "Great height on calf raise!", phase=PHASE_CONTRACTED),
    ),
)

GLUTE_BRIDGE = ExerciseConfig(
    id="glute_bridge",
    display_name="Glute Bridge",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("glute_bridges", "hip_bridge", "bridge"),
    required=(
        "left_shoulder",
        "right_shoulder",
        "left_hip",
        "right_hip",
        "left_knee",
        "right_knee",
    ),
    visibility_feedback="Please position camera to see your body from the side",
    baseline=capture_mean_y(hip_y="hip"),
    metric=rise_from_baseline("hip_y", "hip"),
    metric_label="Hip rise",
    contracted_when="above",
    contracted_threshold=30,
    extended_threshold=15,
    count_on=PHASE_EXTENDED,
    phase_labels=RAISE_LABELS,
    checks=(
        FormCheck(
            "bridge_line",
            in_phase(PHASE_CONTRACTED, _bridge_sag),
            limit=30,
            fault_feedback="Raise hips higher for full extension",
            ok_feedback="Good bridge position",
            ok_score=85,
            priority=Priority.RANGE,
        ),
    ),
    bonuses=(
        ExcellenceBonus(_bridge_sag, 15, 95, "Excellent hip extension!", when="below", phase=PHASE_CONTRACTED),
    ),
    default_feedback="Drive through your heels to lift your hips",
)

CONFIGS = (
    SQUAT,
    LUNGE,
    DEADLIFT,
    CALF_RAISE,
    GLUTE_BRIDGE,
)
