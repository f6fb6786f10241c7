"""Core and trunk exercises."""

from typing import Dict, Optional, Tuple

from analyzer import ExerciseConfig, Params
from form_scorer import ExcellenceBonus, FormCheck, FrameContext, clamp_score
from kinematics import angle_at_vertex, distance
from session import PHASE_CONTRACTED, PHASE_EXTENDED, PHASE_NEUTRAL, ExerciseFamily

from .metrics import (
    capture_mean_y,
    capture_side_y,
    cross_distance,
    current_metric,
    mean_x,
    mean_y,
    side_angle,
    side_rise_from_baseline,
    vertical_gap,
)

RAISE_LABELS = {PHASE_CONTRACTED: "up", PHASE_EXTENDED: "down"}


def _torso_drop(ctx: FrameContext) -> Optional[float]:
    shoulder_y, hip_y = mean_y(ctx, "shoulder"), mean_y(ctx, "hip")
    if shoulder_y is None or hip_y is None:
        return None
    return abs(shoulder_y - hip_y)


# ---- plank ----

def _plank_elbow(ctx: FrameContext) -> Optional[float]:
    return angle_at_vertex(ctx.either("shoulder"), ctx.either("elbow"), ctx.either("wrist"))


def _plank_points(ctx: FrameContext):
    points = [ctx.either(part) for part in ("shoulder", "hip", "knee", "ankle")]
    return None if None in points else points


def _plank_body_spread(ctx: FrameContext) -> Optional[float]:
    points = _plank_points(ctx)
    if points is None:
        return None
    ys = [p.y for p in points]
    return max(ys) - min(ys)


def _plank_hip_offset(ctx: FrameContext) -> Optional[float]:
    points = _plank_points(ctx)
    if points is None:
        return None
    shoulder, hip, knee, _ = points
    return abs(hip.y - (shoulder.y + knee.y) / 2.0)


def _plank_score(ctx: FrameContext, params: Params) -> Optional[Tuple[float, str]]:
    spread, hip_offset = _plank_body_spread(ctx), _plank_hip_offset(ctx)
    if spread is None or hip_offset is None:
        return None
    score = clamp_score(min(95.0, max(60.0, 100.0 - (hip_offset + spread / 3.0))))
    if score > 85:
        return score, "Excellent plank form!"
    if score > 70:
        return score, "Good plank position"
    return score, "Try to keep your body in a straight line"


PLANK = ExerciseConfig(
    id="plank",
    display_name="Plank",
    family=ExerciseFamily.ISOMETRIC_HOLD,
    aliases=("planks", "forearm_plank", "plank_hold"),
    required=(
        "left_shoulder",
        "right_shoulder",
        "left_elbow",
        "right_elbow",
        "left_hip",
        "right_hip",
        "left_knee",
        "right_knee",
        "left_ankle",
        "right_ankle",
    ),
    visibility_feedback="Please position camera to see your full body",
    constraints=(
        FormCheck("elbow_under_shoulder", _plank_elbow, limit=120,
                  fault_feedback="Position your elbows under your shoulders", fault_score=40),
        FormCheck("body_line", _plank_body_spread, limit=30,
                  fault_feedback="Try to form a straight line with your body", fault_score=50),
        FormCheck("hip_alignment", _plank_hip_offset, limit=20,
                  fault_feedback="Keep your hips in line with shoulders and knees", fault_score=60),
    ),
    hold_score=_plank_score,
)


# ---- russian twist ----

def _capture_wrist_center(ctx: FrameContext) -> Optional[Dict[str, float]]:
    center = mean_x(ctx, "wrist")
    return None if center is None else {"center_x": center}


def _twist_side(ctx: FrameContext, params: Params) -> Optional[str]:
    center, wrist_x = ctx.baseline.get("center_x"), mean_x(ctx, "wrist")
    if center is None or wrist_x is None:
        return None
    offset = wrist_x - center
    threshold = params.get("twist_offset", 40.0)
    if offset > threshold:
        return "right"
    if offset < -threshold:
        return "left"
    return PHASE_NEUTRAL


RUSSIAN_TWIST = ExerciseConfig(
    id="russian_twist",
    display_name="Russian Twist",
    family=ExerciseFamily.ALTERNATING_BILATERAL,
    aliases=("russian_twists", "seated_twist"),
    required=("left_shoulder", "right_shoulder", "left_hip", "right_hip", "left_wrist", "right_wrist"),
    visibility_feedback="Please position camera to see your upper body clearly",
    baseline=_capture_wrist_center,
    classify=_twist_side,
    params={"twist_offset": 40.0},
    checks=(
        FormCheck(
            "v_sit_lean",
            _torso_drop,
            limit=30,
            fault_when="below",
            fault_feedback="Lean back more for proper V-sit position",
            ok_feedback="Good V-sit position",
            fault_score=60,
        ),
    ),
)


# ---- leg raise ----

LEG_RAISE = ExerciseConfig(
    id="leg_raise",
    display_name="Leg Raise",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("leg_raises", "lying_leg_raise"),
    side_parts=("hip", "knee", "ankle"),
    visibility_feedback="Please position camera to see your legs clearly",
    baseline=capture_side_y(ankle_y="ankle"),
    metric=side_rise_from_baseline("ankle_y", "ankle"),
    metric_label="Leg rise",
    contracted_when="above",
    contracted_threshold=50,
    extended_threshold=25,
    count_on=PHASE_EXTENDED,
    phase_labels=RAISE_LABELS,
    checks=(
        FormCheck(
            "leg_straight",
            side_angle("hip", "knee", "ankle"),
            limit=150,
            fault_when="below",
            fault_feedback="Keep legs straighter during raises",
            ok_feedback="Good leg position",
        ),
    ),
    bonuses=(
        ExcellenceBonus(current_metric, 100, 95, "Excellent leg raise height!", phase=PHASE_CONTRACTED),
    ),
)


# ---- bicycle crunch ----

def _crunch_side(ctx: FrameContext, params: Params) -> Optional[str]:
    left_reach = distance(ctx.left("elbow"), ctx.right("knee"))
    right_reach = distance(ctx.right("elbow"), ctx.left("knee"))
    if left_reach is None and right_reach is None:
        return None
    threshold = params.get("touch_distance", 50.0)
    if left_reach is not None and left_reach < threshold:
        return "left"
    if right_reach is not None and right_reach < threshold:
        return "right"
    return PHASE_NEUTRAL


BICYCLE_CRUNCH = ExerciseConfig(
    id="bicycle_crunch",
    display_name="Bicycle Crunch",
    family=ExerciseFamily.ALTERNATING_BILATERAL,
    aliases=("bicycle_crunches", "bicycle", "bicycles"),
    required=(
        "left_shoulder",
        "right_shoulder",
        "left_elbow",
        "right_elbow",
        "left_hip",
        "right_hip",
        "left_knee",
        "right_knee",
    ),
    visibility_feedback="Please position camera to see your full body",
    classify=_crunch_side,
    params={"touch_distance": 50.0},
    checks=(
        FormCheck(
            "torso_lift",
            _torso_drop,
            limit=20,
            fault_when="below",
            fault_feedback="Lift upper body more off the ground",
            ok_feedback="Good upper body position",
            ok_score=85,
            fault_score=60,
        ),
    ),
    bonuses=(
        ExcellenceBonus(cross_distance("elbow", "knee"), 30, 95, "Good twist, connecting elbow and knee!", when="below"),
    ),
)


# ---- superman ----

def _lifts(ctx: FrameContext) -> Optional[Tuple[float, float]]:
    base_shoulder, base_hip = ctx.baseline.get("shoulder_y"), ctx.baseline.get("hip_y")
    shoulder_y, hip_y = mean_y(ctx, "shoulder"), mean_y(ctx, "hip")
    if None in (base_shoulder, base_hip, shoulder_y, hip_y):
        return None
    return base_shoulder - shoulder_y, base_hip - hip_y


def _superman_lift(ctx: FrameContext) -> Optional[float]:
    lifts = _lifts(ctx)
    return None if lifts is None else min(lifts)


def _superman_average_lift(ctx: FrameContext) -> Optional[float]:
    lifts = _lifts(ctx)
    return None if lifts is None else sum(lifts) / 2.0


def _superman_imbalance(ctx: FrameContext) -> Optional[float]:
    lifts = _lifts(ctx)
    return None if lifts is None else abs(lifts[0] - lifts[1])


SUPERMAN = ExerciseConfig(
    id="superman",
    display_name="Superman",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("supermans", "superman_raise", "back_extension"),
    required=("left_shoulder", "right_shoulder", "left_hip", "right_hip", "left_ankle", "right_ankle"),
    visibility_feedback="Please position camera to see your full body from the side",
    baseline=capture_mean_y(shoulder_y="shoulder", hip_y="hip"),
    metric=_superman_lift,
    metric_label="Lift",
    contracted_when="above",
    contracted_threshold=20,
    extended_threshold=10,
    count_on=PHASE_EXTENDED,
    phase_labels=RAISE_LABELS,
    checks=(
        FormCheck(
            "even_lift",
            _superman_imbalance,
            limit=30,
            fault_feedback="Try to lift chest and legs evenly",
            ok_feedback="Good balanced lifting",
        ),
    ),
    bonuses=(
        ExcellenceBonus(_superman_average_lift, 40, 95, "Excellent height on superman!", phase=PHASE_CONTRACTED),
    ),
)


# ---- bird dog ----

BIRD_DOG_SIDES = ("right_arm_left_leg", "left_arm_right_leg")


def _extensions(ctx: FrameContext) -> Optional[Dict[str, float]]:
    """Arm reach above the shoulder and leg lift above the hip, per limb."""
    values = {}
    for limb, upper, lower in (
        ("left_arm", "shoulder", "wrist"),
        ("right_arm", "shoulder", "wrist"),
        ("left_leg", "hip", "ankle"),
        ("right_leg", "hip", "ankle"),
    ):
        pick = ctx.left if limb.startswith("left") else ctx.right
        a, b = pick(upper), pick(lower)
        if a is None or b is None:
            return None
        values[limb] = a.y - b.y
    return values


def _bird_dog_side(ctx: FrameContext, params: Params) -> Optional[str]:
    ext = _extensions(ctx)
    if ext is None:
        return None
    threshold = params.get("extension", 20.0)
    if ext["right_arm"] > threshold and ext["left_leg"] > threshold:
        return BIRD_DOG_SIDES[0]
    if ext["left_arm"] > threshold and ext["right_leg"] > threshold:
        return BIRD_DOG_SIDES[1]
    return PHASE_NEUTRAL


def _bird_dog_reach(ctx: FrameContext) -> Optional[float]:
    ext = _extensions(ctx)
    if ext is None or ctx.phase not in BIRD_DOG_SIDES:
        return None
    arm, leg = ("right_arm", "left_leg") if ctx.phase == BIRD_DOG_SIDES[0] else ("left_arm", "right_leg")
    return min(ext[arm], ext[leg])


BIRD_DOG = ExerciseConfig(
    id="bird_dog",
    display_name="Bird Dog",
    family=ExerciseFamily.ALTERNATING_BILATERAL,
    aliases=("bird_dogs", "birddog"),
    required=(
        "left_shoulder",
        "right_shoulder",
        "left_elbow",
        "right_elbow",
        "left_wrist",
        "right_wrist",
        "left_hip",
        "right_hip",
        "left_knee",
        "right_knee",
        "left_ankle",
        "right_ankle",
    ),
    visibility_feedback="Please position camera to see your full body from the side",
    classify=_bird_dog_side,
    side_labels=BIRD_DOG_SIDES,
    params={"extension": 20.0},
    checks=(
        FormCheck(
            "flat_back",
            vertical_gap("shoulder", "hip"),
            limit=30,
            fault_feedback="Keep your back flat and parallel to the ground",
            ok_feedback="Good back alignment",
            fault_score=60,
        ),
    ),
    bonuses=(
        ExcellenceBonus(_bird_dog_reach, 40, 95, "Great extension of arm and leg!"),
    ),
)

CONFIGS = (
    PLANK,
    RUSSIAN_TWIST,
    LEG_RAISE,
    BICYCLE_CRUNCH,
    SUPERMAN,
    BIRD_DOG,
)
