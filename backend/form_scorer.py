"""
Form scoring shared by every exercise analyzer.

Compares live geometry against per-exercise alignment checks and "excellent"
thresholds. Scores are recomputed from the current frame only and always come
with exactly one feedback string: the most actionable correction, with safety
and alignment issues taking precedence over depth and range issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pose_sources import Frame, Keypoint

DEFAULT_SCORE = 80.0
DEFAULT_FEEDBACK = "Keep going"


class Priority(IntEnum):
    SAFETY = 0
    RANGE = 1
    INFO = 2


@dataclass
class FrameContext:
    """Geometry available to measurements for one frame."""

    frame: Frame
    side: Optional[str] = None
    baseline: Dict[str, float] = field(default_factory=dict)
    metric: Optional[float] = None
    phase: str = ""

    def point(self, part: str) -> Optional[Keypoint]:
        """Landmark on the tracked side, e.g. ``point("elbow")`` -> ``left_elbow``."""
        if self.side:
            return self.frame.get(f"{self.side}_{part}")
        return self.either(part)

    def left(self, part: str) -> Optional[Keypoint]:
        return self.frame.get(f"left_{part}")

    def right(self, part: str) -> Optional[Keypoint]:
        return self.frame.get(f"right_{part}")

    def either(self, part: str) -> Optional[Keypoint]:
        """Left landmark if present, otherwise the right one (side-view exercises)."""
        return self.left(part) or self.right(part)

    def pair(self, part: str) -> Tuple[Optional[Keypoint], Optional[Keypoint]]:
        return self.left(part), self.right(part)


Measure = Callable[[FrameContext], Optional[float]]


def _beyond(value: float, limit: float, direction: str) -> bool:
    if direction == "below":
        return value < limit
    return value > limit


@dataclass(frozen=True)
class FormCheck:
    """
    One secondary geometric check, e.g. elbow drifting from the torso line.

    When the measured value is beyond ``limit`` the check reports a fault:
    ``fault_score`` minus ``penalty`` points per unit of excess, never below
    ``floor``. Otherwise it passes with ``ok_score``; a check whose
    ``ok_score`` is None only ever caps the score.
    """

    name: str
    measure: Measure
    limit: float
    fault_feedback: str
    ok_feedback: str = ""
    fault_when: str = "above"
    ok_score: Optional[float] = 90.0
    fault_score: float = 70.0
    penalty: float = 0.0
    floor: float = 0.0
    priority: Priority = Priority.SAFETY


@dataclass(frozen=True)
class ExcellenceBonus:
    """Raises the score when a range target is met (only without safety issues)."""

    measure: Measure
    threshold: float
    score: float
    feedback: str
    when: str = "above"
    phase: Optional[str] = None


@dataclass(frozen=True)
class CheckOutcome:
    name: str
    score: float
    feedback: str
    is_issue: bool
    priority: Priority


def run_check(check: FormCheck, ctx: FrameContext, limit: Optional[float] = None) -> Optional[CheckOutcome]:
    """Evaluate one check; None when its geometry is unavailable this frame."""
    value = check.measure(ctx)
    if value is None:
        return None
    limit = check.limit if limit is None else limit
    if _beyond(value, limit, check.fault_when):
        excess = abs(value - limit)
        score = max(check.floor, check.fault_score - check.penalty * excess)
        return CheckOutcome(check.name, score, check.fault_feedback, True, check.priority)
    if check.ok_score is None:
        return None
    return CheckOutcome(check.name, check.ok_score, check.ok_feedback, False, check.priority)


class FormScorer:
    """Combines check outcomes and excellence bonuses into one score and one tip."""

    def __init__(self, limit_overrides: Optional[Dict[str, float]] = None):
        self.limit_overrides = dict(limit_overrides or {})

    def evaluate(self, ctx: FrameContext, checks: Sequence[FormCheck]) -> List[CheckOutcome]:
        outcomes = []
        for check in checks:
            outcome = run_check(check, ctx, self.limit_overrides.get(check.name))
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    def score(
        self,
        ctx: FrameContext,
        checks: Sequence[FormCheck] = (),
        bonuses: Sequence[ExcellenceBonus] = (),
        default_score: float = DEFAULT_SCORE,
        default_feedback: str = DEFAULT_FEEDBACK,
    ) -> Tuple[float, str]:
        outcomes = self.evaluate(ctx, checks)
        issues = sorted((o for o in outcomes if o.is_issue), key=lambda o: o.priority)

        if outcomes:
            score = min(o.score for o in outcomes)
        else:
            score = default_score

        if issues:
            feedback = issues[0].feedback
        else:
            feedback = next((o.feedback for o in outcomes if o.feedback), default_feedback)

        has_safety_issue = any(o.priority == Priority.SAFETY for o in issues)
        if not has_safety_issue:
            for bonus in bonuses:
                if bonus.phase is not None and bonus.phase != ctx.phase:
                    continue
                value = bonus.measure(ctx)
                if value is None or not _beyond(value, bonus.threshold, bonus.when):
                    continue
                score = max(score, bonus.score)
                feedback = bonus.feedback

        return clamp_score(score), feedback


def clamp_score(score: float) -> float:
    return float(min(100.0, max(0.0, score)))
