"""Cardio and plyometric exercises."""

from typing import Dict, Optional

from analyzer import ENGINE_SEQUENCE, ExerciseConfig, Params
from form_scorer import ExcellenceBonus, FormCheck, FrameContext, Priority
from session import PHASE_CONTRACTED, PHASE_EXTENDED, PHASE_NEUTRAL, ExerciseFamily

from .metrics import bilateral_angle, constant, in_phase, mean_y, worst_side_horizontal_gap

LOWER_BODY = ("left_hip", "right_hip", "left_knee", "right_knee", "left_ankle", "right_ankle")
FULL_BODY = ("left_shoulder", "right_shoulder") + LOWER_BODY


# ---- jumping jack ----

def _jack_pose(ctx: FrameContext):
    (lw, rw), (ls, rs), (la, ra) = ctx.pair("wrist"), ctx.pair("shoulder"), ctx.pair("ankle")
    if None in (lw, rw, ls, rs, la, ra):
        return None
    arms_up = lw.y < ls.y - 30 and rw.y < rs.y - 30
    legs_apart = abs(la.x - ra.x) > 50
    return arms_up, legs_apart


def _jack_phase(ctx: FrameContext, params: Params) -> Optional[str]:
    pose = _jack_pose(ctx)
    if pose is None:
        return None
    arms_up, legs_apart = pose
    if arms_up and legs_apart:
        return PHASE_EXTENDED
    if not arms_up and not legs_apart:
        return PHASE_CONTRACTED
    # Mid-jump frames keep the previous phase.
    return None


def _jack_mismatch(ctx: FrameContext) -> Optional[float]:
    pose = _jack_pose(ctx)
    if pose is None:
        return None
    return 0.0 if pose[0] == pose[1] else 1.0


JUMPING_JACK = ExerciseConfig(
    id="jumping_jack",
    display_name="Jumping Jack",
    family=ExerciseFamily.DYNAMIC_REP,
    aliases=("jumping_jacks", "star_jump", "star_jumps"),
    required=(
        "left_shoulder",
        "right_shoulder",
        "left_elbow",
        "right_elbow",
        "left_wrist",
        "right_wrist",
        "left_hip",
        "right_hip",
        "left_ankle",
        "right_ankle",
    ),
    visibility_feedback="Please position camera to see your full body",
    classify=_jack_phase,
    count_on=PHASE_CONTRACTED,
    phase_labels={PHASE_EXTENDED: "arms_up", PHASE_CONTRACTED: "arms_down"},
    checks=(
        FormCheck(
            "coordination",
            _jack_mismatch,
            limit=0.5,
            fault_feedback="Try to coordinate arms and legs",
            ok_feedback="Good coordination!",
            fault_score=60,
        ),
    ),
    bonuses=(
        ExcellenceBonus(
            bilateral_angle("shoulder", "elbow", "wrist"), 150, 95, "Excellent arm extension!", phase=PHASE_EXTENDED
        ),
    ),
)


# ---- burpee ----

BURPEE_POSITIONS = ("standing", "squat", "plank", "pushup", "jump", "transition")


def _heights(ctx: FrameContext) -> Optional[Dict[str, float]]:
    """Shoulder, hip and knee heights above the ankles."""
    ankle = mean_y(ctx, "ankle")
    if ankle is None:
        return None
    heights = {}
    for part in ("shoulder", "hip", "knee"):
        y = mean_y(ctx, part)
        if y is None:
            return None
        heights[part] = ankle - y
    return heights


def _burpee_position(ctx: FrameContext, params: Params) -> Optional[str]:
    h = _heights(ctx)
    if h is None:
        return None
    shoulder, hip, knee = h["shoulder"], h["hip"], h["knee"]
    if shoulder > 150 and hip > 80:
        return "standing"
    if shoulder > 100 and hip < 60:
        return "squat"
    if abs(shoulder - hip) < 30 and shoulder < 80:
        return "plank"
    if shoulder < hip - 20 and shoulder < 60:
        return "pushup"
    if shoulder > 180 and hip > 100 and knee > 50:
        return "jump"
    return "transition"


def _plank_tilt(ctx: FrameContext) -> Optional[float]:
    h = _heights(ctx)
    return None if h is None else abs(h["shoulder"] - h["hip"])


BURPEE = ExerciseConfig(
    id="burpee",
    display_name="Burpee",
    family=ExerciseFamily.DYNAMIC_REP,
    engine=ENGINE_SEQUENCE,
    aliases=("burpees",),
    required=FULL_BODY,
    visibility_feedback="Please position camera to see your full body",
    classify=_burpee_position,
    positions=BURPEE_POSITIONS,
    checks=(
        FormCheck(
            "plank_alignment",
            in_phase("plank", _plank_tilt),
            limit=10,
            fault_feedback="Keep body straight in plank position",
            ok_feedback="Great plank alignment!",
            ok_score=95,
            fault_score=75,
        ),
    ),
    bonuses=(
        ExcellenceBonus(constant(1.0), 0, 90, "Good depth on push-up!", phase="pushup"),
        ExcellenceBonus(constant(1.0), 0, 95, "Great jump height!", phase="jump"),
    ),
    default_feedback="Continue the burpee motion",
)


# ---- alternating leg drills ----

def _knee_heights(ctx: FrameContext) -> Optional[Dict[str, float]]:
    """Knee height above the mean hip line, per side."""
    hip = mean_y(ctx, "hip")
    lk, rk = ctx.pair("knee")
    if hip is None or lk is None or rk is None:
        return None
    return {"left": hip - lk.y, "right": hip - rk.y}


def _own_hip_knee_heights(ctx: FrameContext) -> Optional[Dict[str, float]]:
    """Knee height above the hip on the same side."""
    (lh, rh), (lk, rk) = ctx.pair("hip"), ctx.pair("knee")
    if None in (lh, rh, lk, rk):
        return None
    return {"left": lh.y - lk.y, "right": rh.y - rk.y}


def _heel_heights(ctx: FrameContext) -> Optional[Dict[str, float]]:
    (lh, rh), (la, ra) = ctx.pair("hip"), ctx.pair("ankle")
    if None in (lh, rh, la, ra):
        return None
    return {"left": lh.y - la.y, "right": rh.y - ra.y}


def _dominant_side(heights: Optional[Dict[str, float]], minimum: float, margin: float, labels: Dict[str, str]):
    if heights is None:
        return None
    left, right = heights["left"], heights["right"]
    if left > minimum and left > right + margin:
        return labels["left"]
    if right > minimum and right > left + margin:
        return labels["right"]
    return PHASE_NEUTRAL


def _active_height(heights_of, labels: Dict[str, str]):
    """Height of the currently active limb, measured only while a side is active."""
    by_label = {label: side for side, label in labels.items()}

    def measure(ctx: FrameContext) -> Optional[float]:
        side = by_label.get(ctx.phase)
        heights = heights_of(ctx)
        if side is None or heights is None:
            return None
        return heights[side]

    return measure


CLIMBER_SIDES = {"left": "left_knee", "right": "right_knee"}


def _climber_side(ctx: FrameContext, params: Params) -> Optional[str]:
    return _dominant_side(
        _knee_heights(ctx), params.get("knee_height", 30.0), params.get("knee_margin", 20.0), CLIMBER_SIDES
    )


def _body_tilt(ctx: FrameContext) -> Optional[float]:
    shoulder, hip = mean_y(ctx, "shoulder"), mean_y(ctx, "hip")
    if shoulder is None or hip is None:
        return None
    return abs(shoulder - hip)


MOUNTAIN_CLIMBER = ExerciseConfig(
    id="mountain_climber",
    display_name="Mountain Climber",
    family=ExerciseFamily.ALTERNATING_BILATERAL,
    aliases=("mountain_climbers", "climber", "climbers"),
    required=FULL_BODY,
    visibility_feedback="Please position camera to see your full body from the side",
    classify=_climber_side,
    side_labels=(CLIMBER_SIDES["left"], CLIMBER_SIDES["right"]),
    params={"knee_height": 30.0, "knee_margin": 20.0},
    checks=(
        FormCheck(
            "body_line",
            _body_tilt,
            limit=30,
            fault_feedback="Keep your body in a straight line",
            ok_feedback="Good plank position",
        ),
    ),
    bonuses=(
        ExcellenceBonus(_active_height(_knee_heights, CLIMBER_SIDES), 50, 95, "Great knee drive!"),
    ),
)


HIGH_KNEE_SIDES = {"left": "left_knee_up", "right": "right_knee_up"}


def _high_knee_side(ctx: FrameContext, params: Params) -> Optional[str]:
    return _dominant_side(
        _own_hip_knee_heights(ctx), params.get("knee_height", 20.0), params.get("knee_margin", 10.0), HIGH_KNEE_SIDES
    )


def _highest_knee(ctx: FrameContext) -> Optional[float]:
    heights = _own_hip_knee_heights(ctx)
    return None if heights is None else max(heights.values())


HIGH_KNEE = ExerciseConfig(
    id="high_knee",
    display_name="High Knees",
    family=ExerciseFamily.ALTERNATING_BILATERAL,
    aliases=("high_knees", "running_in_place"),
    required=LOWER_BODY,
    visibility_feedback="Please position camera to see your legs clearly",
    classify=_high_knee_side,
    side_labels=(HIGH_KNEE_SIDES["left"], HIGH_KNEE_SIDES["right"]),
    params={"knee_height": 20.0, "knee_margin": 10.0},
    checks=(
        FormCheck(
            "knee_height",
            _highest_knee,
            limit=40,
            fault_when="below",
            fault_feedback="Lift knees higher (hip level is ideal)",
            ok_feedback="Good knee height",
            priority=Priority.RANGE,
        ),
    ),
    bonuses=(
        ExcellenceBonus(_active_height(_own_hip_knee_heights, HIGH_KNEE_SIDES), 60, 95, "Great knee height!"),
    ),
)


BUTT_KICK_SIDES = {"left": "left_heel_up", "right": "right_heel_up"}


def _butt_kick_side(ctx: FrameContext, params: Params) -> Optional[str]:
    return _dominant_side(_heel_heights(ctx), 0.0, params.get("heel_margin", 20.0), BUTT_KICK_SIDES)


BUTT_KICK = ExerciseConfig(
    id="butt_kick",
    display_name="Butt Kicks",
    family=ExerciseFamily.ALTERNATING_BILATERAL,
    aliases=("butt_kicks", "butt_kickers", "heel_kicks"),
    required=LOWER_BODY,
    visibility_feedback="Please position camera to see your legs clearly",
    classify=_butt_kick_side,
    side_labels=(BUTT_KICK_SIDES["left"], BUTT_KICK_SIDES["right"]),
    params={"heel_margin": 20.0},
    checks=(
        FormCheck(
            "knees_down",
            worst_side_horizontal_gap("knee", "ankle"),
            limit=40,
            fault_feedback="Keep knees pointing down, not forward",
            ok_score=None,
        ),
        FormCheck(
            "heel_height",
            _active_height(_heel_heights, BUTT_KICK_SIDES),
            limit=30,
            fault_when="below",
            fault_feedback="Try to kick heels closer to buttocks",
            ok_feedback="Great heel height!",
            ok_score=95,
            fault_score=75,
            priority=Priority.RANGE,
        ),
    ),
    default_feedback="Keep kicking those heels up",
)

CONFIGS = (
    JUMPING_JACK,
    BURPEE,
    MOUNTAIN_CLIMBER,
    HIGH_KNEE,
    BUTT_KICK,
)
