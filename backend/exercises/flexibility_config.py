"""Stretches and mobility drills, scored as holds or slow alternations."""

from typing import Dict, Optional

from analyzer import ExerciseConfig, Params
from form_scorer import ExcellenceBonus, FormCheck, FrameContext, Priority
from kinematics import angle_at_vertex
from session import PHASE_NEUTRAL, ExerciseFamily

from .metrics import horizontal_gap, in_phase

SIDE_VIEW_TORSO = ("left_shoulder", "right_shoulder", "left_hip", "right_hip")


def _either_gap(a: str, b: str):
    """Vertical distance between two landmarks of whichever side is visible."""

    def measure(ctx: FrameContext) -> Optional[float]:
        pa, pb = ctx.either(a), ctx.either(b)
        if pa is None or pb is None:
            return None
        return abs(pa.y - pb.y)

    return measure


# ---- cat-cow ----

def _capture_spine(ctx: FrameContext) -> Optional[Dict[str, float]]:
    shoulder, hip = ctx.either("shoulder"), ctx.either("hip")
    if shoulder is None or hip is None:
        return None
    return {"shoulder_y": shoulder.y, "hip_y": hip.y}


def _spine_curvature(ctx: FrameContext) -> Optional[float]:
    """Positive when the back rounds (cat), negative when it arches (cow)."""
    shoulder, hip = ctx.either("shoulder"), ctx.either("hip")
    base_shoulder, base_hip = ctx.baseline.get("shoulder_y"), ctx.baseline.get("hip_y")
    if None in (shoulder, hip, base_shoulder, base_hip):
        return None
    return (shoulder.y - base_shoulder) - (hip.y - base_hip)


def _arch_depth(ctx: FrameContext) -> Optional[float]:
    value = _spine_curvature(ctx)
    return None if value is None else -value


def _cat_cow_side(ctx: FrameContext, params: Params) -> Optional[str]:
    curvature = _spine_curvature(ctx)
    if curvature is None:
        return None
    threshold = params.get("curvature", 20.0)
    if curvature > threshold:
        return "cat"
    if curvature < -threshold:
        return "cow"
    return PHASE_NEUTRAL


CAT_COW = ExerciseConfig(
    id="cat_cow",
    display_name="Cat-Cow Stretch",
    family=ExerciseFamily.ALTERNATING_BILATERAL,
    aliases=("cat_cow_stretch", "catcow", "cat_camel"),
    required=SIDE_VIEW_TORSO,
    visibility_feedback="Please position camera to see your upper body from the side",
    baseline=_capture_spine,
    classify=_cat_cow_side,
    side_labels=("cat", "cow"),
    params={"curvature": 20.0},
    checks=(
        FormCheck(
            "cat_rounding",
            in_phase("cat", _spine_curvature),
            limit=40,
            fault_when="below",
            fault_feedback="Try to round your back more",
            ok_feedback="Good cat pose, round your back fully",
            ok_score=95,
            fault_score=80,
            priority=Priority.RANGE,
        ),
        FormCheck(
            "cow_arch",
            in_phase("cow", _arch_depth),
            limit=40,
            fault_when="below",
            fault_feedback="Try to extend your back more",
            ok_feedback="Good cow pose, arch your back fully",
            ok_score=95,
            fault_score=80,
            priority=Priority.RANGE,
        ),
    ),
    default_feedback="Move between cat and cow poses smoothly",
)


# ---- child's pose ----

def _deep_fold(ctx: FrameContext) -> Optional[float]:
    """Hip height over the shoulders, once the chest rests close to the knees."""
    chest_gap = _either_gap("shoulder", "knee")(ctx)
    if chest_gap is None or chest_gap >= 20:
        return None
    return _either_gap("hip", "shoulder")(ctx)


CHILDS_POSE = ExerciseConfig(
    id="childs_pose",
    display_name="Child's Pose",
    family=ExerciseFamily.ISOMETRIC_HOLD,
    aliases=("child_pose", "balasana"),
    required=SIDE_VIEW_TORSO + ("left_knee", "right_knee"),
    visibility_feedback="Please position camera to see your body from the side",
    constraints=(
        FormCheck("chest_to_knees", _either_gap("shoulder", "knee"), limit=40,
                  fault_feedback="Try to bring chest towards knees and sit back on heels"),
        FormCheck("hips_above_knees", _either_gap("hip", "knee"), limit=30, fault_when="below",
                  fault_feedback="Try to bring chest towards knees and sit back on heels"),
        FormCheck("hips_above_shoulders", _either_gap("hip", "shoulder"), limit=30, fault_when="below",
                  fault_feedback="Try to bring chest towards knees and sit back on heels"),
    ),
    bonuses=(
        ExcellenceBonus(_deep_fold, 50, 95, "Excellent Child's Pose depth!"),
    ),
    default_score=85,
    default_feedback="Good Child's Pose position",
)


# ---- cobra ----

def _capture_shoulder(ctx: FrameContext) -> Optional[Dict[str, float]]:
    shoulder = ctx.either("shoulder")
    return None if shoulder is None else {"shoulder_y": shoulder.y}


def _chest_lift(ctx: FrameContext) -> Optional[float]:
    shoulder, base = ctx.either("shoulder"), ctx.baseline.get("shoulder_y")
    if shoulder is None or base is None:
        return None
    return base - shoulder.y


COBRA = ExerciseConfig(
    id="cobra_stretch",
    display_name="Cobra Stretch",
    family=ExerciseFamily.ISOMETRIC_HOLD,
    aliases=("cobra", "cobra_pose", "bhujangasana"),
    required=SIDE_VIEW_TORSO + ("left_elbow", "right_elbow"),
    visibility_feedback="Please position camera to see your body from the side",
    baseline=_capture_shoulder,
    constraints=(
        FormCheck("chest_lift", _chest_lift, limit=20, fault_when="below",
                  fault_feedback="Lift your chest while keeping hips on the ground", fault_score=60),
    ),
    checks=(
        FormCheck(
            "elbows_tucked",
            horizontal_gap("elbow", "shoulder"),
            limit=40,
            fault_feedback="Keep elbows closer to your body",
            ok_score=None,
        ),
        FormCheck(
            "extension",
            _chest_lift,
            limit=40,
            fault_when="below",
            fault_feedback="Try to lift chest a bit higher if comfortable",
            ok_feedback="Excellent cobra extension!",
            ok_score=95,
            fault_score=85,
            priority=Priority.RANGE,
        ),
    ),
)


# ---- hamstring stretch ----

def _hip_fold(ctx: FrameContext) -> Optional[float]:
    return angle_at_vertex(ctx.either("shoulder"), ctx.either("hip"), ctx.either("knee"))


def _knee_extension(ctx: FrameContext) -> Optional[float]:
    return angle_at_vertex(ctx.either("hip"), ctx.either("knee"), ctx.either("ankle"))


HAMSTRING_STRETCH = ExerciseConfig(
    id="hamstring_stretch",
    display_name="Hamstring Stretch",
    family=ExerciseFamily.ISOMETRIC_HOLD,
    aliases=("hamstring", "forward_fold", "toe_touch"),
    required=SIDE_VIEW_TORSO + ("left_knee", "right_knee", "left_ankle", "right_ankle"),
    visibility_feedback="Please position camera to see your body from the side",
    constraints=(
        FormCheck("hip_hinge", _hip_fold, limit=120,
                  fault_feedback="Hinge at your hips and fold forward", fault_score=60),
        FormCheck("straight_leg", _knee_extension, limit=150, fault_when="below",
                  fault_feedback="Keep your leg straight for an effective stretch"),
    ),
    checks=(
        FormCheck(
            "leg_lockout",
            _knee_extension,
            limit=170,
            fault_when="below",
            fault_feedback="Try to keep your leg straighter",
            ok_score=None,
            fault_score=80,
        ),
        FormCheck(
            "fold_depth",
            _hip_fold,
            limit=90,
            fault_feedback="Try to fold a bit deeper if comfortable",
            ok_feedback="Great hamstring stretch depth!",
            ok_score=95,
            fault_score=85,
            priority=Priority.RANGE,
        ),
    ),
)

CONFIGS = (
    CAT_COW,
    CHILDS_POSE,
    COBRA,
    HAMSTRING_STRETCH,
)
