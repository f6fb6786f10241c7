"""Arm, shoulder and chest exercises."""

import math
from typing import Optional

from analyzer import ExerciseConfig
from form_scorer import ExcellenceBonus, FormCheck, FrameContext, Priority
from session import PHASE_CONTRACTED, PHASE_EXTENDED, ExerciseFamily

from .metrics import (
    bilateral_angle,
    capture_mean_y,
    current_metric,
    drop_from_baseline,
    height_above,
    horizontal_gap,
    in_phase,
    mean_x,
    side_angle,
    side_height_above,
)

ARMS = ("shoulder", "elbow", "wrist")
BOTH_ARMS = (
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
)

CURL_LABELS = {PHASE_CONTRACTED: "up", PHASE_EXTENDED: "down"}
PRESS_LABELS = {PHASE_CONTRACTED: "down", PHASE_EXTENDED: "up"}


def _torso_height(ctx: FrameContext) -> Optional[float]:
    shoulder, hip = ctx.point("shoulder"), ctx.point("hip")
    if shoulder is None or hip is None:
        return None
    return abs(shoulder.y - hip.y)


def _hips_piking(ctx: FrameContext) -> Optional[float]:
    # Side-view push-up: shoulder-to-hip drop of about 100px is a straight body.
    height = _torso_height(ctx)
    return None if height is None else 100.0 - height


def _hips_sagging(ctx: FrameContext) -> Optional[float]:
    height = _torso_height(ctx)
    return None if height is None else height - 100.0


def _wrist_stack_offset(ctx: FrameContext) -> Optional[float]:
    wrist_x, shoulder_x = mean_x(ctx, "wrist"), mean_x(ctx, "shoulder")
    if wrist_x is None or shoulder_x is None:
        return None
    return abs(wrist_x - shoulder_x)


def _shoulder_roll_forward(ctx: FrameContext) -> Optional[float]:
    shoulder_x, elbow_x = mean_x(ctx, "shoulder"), mean_x(ctx, "elbow")
    if shoulder_x is None or elbow_x is None:
        return None
    return shoulder_x - elbow_x


def _elbow_flare(ctx: FrameContext) -> Optional[float]:
    (le, re), (ls, rs) = ctx.pair("elbow"), ctx.pair("shoulder")
    if None in (le, re, ls, rs):
        return None
    return abs(le.x - re.x) - abs(ls.x - rs.x)


def _torso_lean(ctx: FrameContext) -> Optional[float]:
    """Torso angle from vertical, in degrees."""
    shoulder, hip = ctx.point("shoulder"), ctx.point("hip")
    if shoulder is None or hip is None:
        return None
    return math.degrees(math.atan2(abs(shoulder.x - hip.x), abs(hip.y - shoulder.y)))


BICEP_CURL = ExerciseConfig(
    id="bicep_curl",
    display_name="Bicep Curl",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("bicep_curls", "curl", "curls", "biceps_curl"),
    side_parts=ARMS,
    visibility_feedback="Please position yourself so your arms are visible",
    metric=side_angle("shoulder", "elbow", "wrist"),
    contracted_threshold=60,
    extended_threshold=150,
    count_on=PHASE_EXTENDED,
    phase_labels=CURL_LABELS,
    checks=(
        FormCheck(
            "elbow_drift",
            horizontal_gap("elbow", "shoulder"),
            limit=40,
            fault_feedback="Keep your elbow closer to your body",
            ok_feedback="Good form, elbow position is stable",
            fault_score=70,
            penalty=1.0,
        ),
    ),
    bonuses=(
        ExcellenceBonus(current_metric, 30, 95, "Excellent curl depth!", when="below", phase=PHASE_CONTRACTED),
        ExcellenceBonus(current_metric, 170, 95, "Good arm extension!", phase=PHASE_EXTENDED),
    ),
)

PUSH_UP = ExerciseConfig(
    id="push_up",
    display_name="Push-up",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("pushup", "pushups", "push_ups", "press_up"),
    required=BOTH_ARMS,
    visibility_feedback="Please position camera to see your full upper body",
    baseline=capture_mean_y(shoulder_y="shoulder"),
    metric=drop_from_baseline("shoulder_y", "shoulder"),
    metric_label="Shoulder drop",
    contracted_when="above",
    contracted_threshold=25,
    extended_threshold=10,
    count_on=PHASE_EXTENDED,
    phase_labels=PRESS_LABELS,
    checks=(
        FormCheck(
            "hips_piking",
            _hips_piking,
            limit=30,
            fault_feedback="Keep your hips from piking up",
            ok_feedback="Good body alignment",
            fault_score=65,
            penalty=0.5,
        ),
        FormCheck(
            "body_line",
            _hips_sagging,
            limit=30,
            fault_feedback="Keep your body in a straight line",
            ok_feedback="Good body alignment",
            fault_score=65,
            penalty=0.5,
        ),
    ),
    bonuses=(
        ExcellenceBonus(
            bilateral_angle("shoulder", "elbow", "wrist"), 90, 95, "Excellent push-up depth!",
            when="below", phase=PHASE_CONTRACTED,
        ),
        ExcellenceBonus(
            bilateral_angle("shoulder", "elbow", "wrist"), 160, 95, "Good arm extension!", phase=PHASE_EXTENDED
        ),
    ),
)

OVERHEAD_PRESS = ExerciseConfig(
    id="overhead_press",
    display_name="Overhead Press",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("shoulder_press", "military_press", "ohp"),
    required=BOTH_ARMS,
    visibility_feedback="Please position camera to see your arms and shoulders",
    metric=height_above("wrist", "shoulder"),
    metric_label="Wrist height",
    contracted_threshold=0,
    extended_threshold=80,
    count_on=PHASE_EXTENDED,
    phase_labels=PRESS_LABELS,
    checks=(
        FormCheck(
            "wrist_stack",
            _wrist_stack_offset,
            limit=50,
            fault_feedback="Keep weights stacked over shoulders",
            ok_feedback="Good alignment",
            fault_score=70,
            penalty=0.2,
            floor=50,
        ),
    ),
    bonuses=(
        ExcellenceBonus(bilateral_angle("shoulder", "elbow", "wrist"), 160, 95, "Great arm extension!", phase=PHASE_EXTENDED),
    ),
)

LATERAL_RAISE = ExerciseConfig(
    id="lateral_raise",
    display_name="Lateral Raise",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("lateral_raises", "side_raise", "side_lateral_raise"),
    required=BOTH_ARMS,
    visibility_feedback="Please position camera to see your arms and shoulders",
    metric=height_above("elbow", "shoulder"),
    metric_label="Elbow height",
    contracted_when="above",
    contracted_threshold=0,
    extended_threshold=-15,
    count_on=PHASE_EXTENDED,
    phase_labels=CURL_LABELS,
    checks=(
        FormCheck(
            "arm_straightness",
            bilateral_angle("shoulder", "elbow", "wrist"),
            limit=150,
            fault_when="below",
            fault_feedback="Keep arms straighter during raise",
            ok_feedback="Good arm position",
        ),
    ),
    bonuses=(
        ExcellenceBonus(current_metric, 20, 95, "Great height on lateral raise!", phase=PHASE_CONTRACTED),
    ),
)

FRONT_RAISE = ExerciseConfig(
    id="front_raise",
    display_name="Front Raise",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("front_raises", "front_delt_raise"),
    side_parts=ARMS,
    visibility_feedback="Please position camera to see your arms clearly",
    metric=side_height_above("wrist", "shoulder"),
    metric_label="Wrist height",
    contracted_when="above",
    contracted_threshold=20,
    extended_threshold=0,
    count_on=PHASE_EXTENDED,
    phase_labels=CURL_LABELS,
    checks=(
        FormCheck(
            "arm_straightness",
            side_angle("shoulder", "elbow", "wrist"),
            limit=150,
            fault_when="below",
            fault_feedback="Keep arms straighter during raise",
            ok_feedback="Good arm position",
        ),
    ),
    bonuses=(
        ExcellenceBonus(current_metric, 50, 95, "Good height on front raise!", phase=PHASE_CONTRACTED),
    ),
)

TRICEP_DIP = ExerciseConfig(
    id="tricep_dip",
    display_name="Tricep Dip",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("tricep_dips", "triceps_dip", "dip", "dips", "bench_dip"),
    required=BOTH_ARMS,
    visibility_feedback="Please position camera to see your upper body",
    baseline=capture_mean_y(shoulder_y="shoulder"),
    metric=drop_from_baseline("shoulder_y", "shoulder"),
    metric_label="Shoulder drop",
    contracted_when="above",
    contracted_threshold=30,
    extended_threshold=15,
    count_on=PHASE_EXTENDED,
    phase_labels=PRESS_LABELS,
    checks=(
        FormCheck(
            "shoulder_roll",
            _shoulder_roll_forward,
            limit=30,
            fault_feedback="Keep shoulders back, don't roll forward",
            ok_feedback="Good shoulder position",
        ),
    ),
    bonuses=(
        ExcellenceBonus(
            bilateral_angle("shoulder", "elbow", "wrist"), 90, 95, "Good dip depth!", when="below", phase=PHASE_CONTRACTED
        ),
        ExcellenceBonus(
            bilateral_angle("shoulder", "elbow", "wrist"), 150, 95, "Good arm extension at top!", phase=PHASE_EXTENDED
        ),
    ),
)

BENCH_PRESS = ExerciseConfig(
    id="bench_press",
    display_name="Bench Press",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("bench", "chest_press"),
    required=BOTH_ARMS,
    visibility_feedback="Please position camera to see your arms and chest",
    metric=bilateral_angle("shoulder", "elbow", "wrist"),
    contracted_threshold=90,
    extended_threshold=150,
    count_on=PHASE_EXTENDED,
    phase_labels=PRESS_LABELS,
    checks=(
        FormCheck(
            "elbow_flare",
            _elbow_flare,
            limit=30,
            fault_feedback="Keep elbows closer to body",
            ok_feedback="Good elbow position",
            fault_score=79,
            penalty=0.2,
            floor=60,
        ),
    ),
    bonuses=(
        ExcellenceBonus(current_metric, 60, 95, "Good bench press depth!", when="below", phase=PHASE_CONTRACTED),
        ExcellenceBonus(current_metric, 170, 95, "Good arm extension!", phase=PHASE_EXTENDED),
    ),
)

BENT_OVER_ROW = ExerciseConfig(
    id="bent_over_row",
    display_name="Bent-over Row",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("row", "rows", "dumbbell_row", "barbell_row"),
    side_parts=ARMS + ("hip",),
    visibility_feedback="Please position camera to see your arms clearly",
    gates=(
        FormCheck(
            "torso_hinge",
            _torso_lean,
            limit=20,
            fault_when="below",
            fault_feedback="Bend forward at your hips",
            fault_score=50,
        ),
    ),
    metric=side_angle("shoulder", "elbow", "wrist"),
    contracted_threshold=90,
    extended_threshold=150,
    count_on=PHASE_EXTENDED,
    phase_labels=CURL_LABELS,
    checks=(
        FormCheck(
            "elbow_pull",
            in_phase(PHASE_CONTRACTED, side_height_above("elbow", "shoulder")),
            limit=10,
            fault_when="below",
            fault_feedback="Pull elbows higher towards ribcage",
            ok_feedback="Good elbow height, pulling to ribcage",
            priority=Priority.RANGE,
        ),
    ),
    bonuses=(
        ExcellenceBonus(side_height_above("elbow", "shoulder"), 30, 95, "Excellent row height!", phase=PHASE_CONTRACTED),
        ExcellenceBonus(current_metric, 170, 90, "Good arm extension!", phase=PHASE_EXTENDED),
    ),
)

CONFIGS = (
    BICEP_CURL,
    PUSH_UP,
    OVERHEAD_PRESS,
    LATERAL_RAISE,
    FRONT_RAISE,
    TRICEP_DIP,
    BENCH_PRESS,
    BENT_OVER_ROW,
)
