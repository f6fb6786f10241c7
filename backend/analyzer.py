"""
Exercise configuration records and the shared analyzer pipeline.

Every exercise is a declarative ``ExerciseConfig``: which landmarks must be
visible, which quantity drives the state machine, its thresholds, the form
checks and the "excellent" bonuses. Analyzers (threshold state machine, hold
validator, side alternator, sequence counter) interpret those records; none
of them knows about a particular exercise.

Each ``Analyzer.update`` call follows the same steps:
    1. adopt the previous state (unknown phases fall back to the start phase)
    2. visibility gate: bail out with a positioning tip if landmarks are weak
    3. capture baselines on the first confident frame
    4. engine specific step (classification, counting, timing, scoring)
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from form_scorer import DEFAULT_FEEDBACK, DEFAULT_SCORE, ExcellenceBonus, FormCheck, FormScorer, FrameContext, Measure
from kinematics import confidence_of
from pose_sources import Frame
from session import (
    PHASE_EXTENDED,
    PHASE_START,
    ExerciseFamily,
    PhaseGraph,
    SessionState,
    alternating_graph,
    dynamic_rep_graph,
    isometric_hold_graph,
    sequence_graph,
)
from settings import EngineSettings

logger = logging.getLogger(__name__)

Params = Mapping[str, float]
Classifier = Callable[[FrameContext, Params], Optional[str]]
BaselineCapture = Callable[[FrameContext], Optional[Dict[str, float]]]
HoldScore = Callable[[FrameContext, Params], Optional[Tuple[float, str]]]

ENGINE_THRESHOLD = "threshold"
ENGINE_HOLD = "hold"
ENGINE_ALTERNATING = "alternating"
ENGINE_SEQUENCE = "sequence"

_ENGINE_BY_FAMILY = {
    ExerciseFamily.DYNAMIC_REP: ENGINE_THRESHOLD,
    ExerciseFamily.ISOMETRIC_HOLD: ENGINE_HOLD,
    ExerciseFamily.ALTERNATING_BILATERAL: ENGINE_ALTERNATING,
}

VISIBILITY_FEEDBACK = "Please position yourself so your whole body is visible"
BASELINE_FEEDBACK = "Hold still while we capture your starting position"


@dataclass(frozen=True)
class ExerciseConfig:
    """Static, declarative description of one exercise."""

    id: str
    display_name: str
    family: ExerciseFamily
    aliases: Tuple[str, ...] = ()
    engine: Optional[str] = None

    # Visibility: best of left/right for ``side_parts``, else mean of ``required``.
    side_parts: Tuple[str, ...] = ()
    required: Tuple[str, ...] = ()
    visibility_feedback: str = VISIBILITY_FEEDBACK

    # Controlling metric and thresholds (dynamic exercises).
    metric: Optional[Measure] = None
    metric_label: str = "Angle"
    contracted_threshold: float = 0.0
    extended_threshold: float = 0.0
    # "below": contracted when the metric drops (joint angles).
    # "above": contracted when it rises (heights above a baseline).
    contracted_when: str = "below"
    count_on: str = PHASE_EXTENDED
    phase_labels: Dict[str, str] = field(default_factory=dict)

    # Custom classifier (jumping jack, holds, sides, burpee positions).
    classify: Optional[Classifier] = None
    positions: Tuple[str, ...] = ()
    side_labels: Tuple[str, str] = ("left", "right")
    baseline: Optional[BaselineCapture] = None

    # Checks that must pass before anything else is evaluated (row: torso hinge).
    gates: Tuple[FormCheck, ...] = ()
    # Hold validity constraints; the first failing one explains the invalid pose.
    constraints: Tuple[FormCheck, ...] = ()
    checks: Tuple[FormCheck, ...] = ()
    bonuses: Tuple[ExcellenceBonus, ...] = ()
    hold_score: Optional[HoldScore] = None
    default_score: float = DEFAULT_SCORE
    default_feedback: str = DEFAULT_FEEDBACK

    params: Dict[str, float] = field(default_factory=dict)
    form_limits: Dict[str, float] = field(default_factory=dict)
    calories_per_rep: float = 0.3
    calories_per_minute: float = 4.0

    def __post_init__(self) -> None:
        if self.contracted_when not in ("below", "above"):
            raise ValueError(f"{self.id}: contracted_when must be 'below' or 'above'")
        if self.resolved_engine == ENGINE_THRESHOLD and self.classify is None:
            if self.metric is None:
                raise ValueError(f"{self.id}: dynamic exercises need a metric or classifier")
            if self.contracted_when == "below" and self.contracted_threshold >= self.extended_threshold:
                raise ValueError(f"{self.id}: contracted threshold must be below the extended threshold")
            if self.contracted_when == "above" and self.contracted_threshold <= self.extended_threshold:
                raise ValueError(f"{self.id}: contracted threshold must be above the extended threshold")

    @property
    def resolved_engine(self) -> str:
        if self.engine:
            return self.engine
        return _ENGINE_BY_FAMILY.get(self.family, ENGINE_THRESHOLD)

    @property
    def phase_graph(self) -> PhaseGraph:
        engine = self.resolved_engine
        if engine == ENGINE_HOLD:
            return isometric_hold_graph()
        if engine == ENGINE_ALTERNATING:
            return alternating_graph(*self.side_labels)
        if engine == ENGINE_SEQUENCE:
            return sequence_graph(self.positions)
        return dynamic_rep_graph()

    def param(self, name: str, default: float = 0.0) -> float:
        return float(self.params.get(name, default))

    def label(self, phase: str) -> str:
        return self.phase_labels.get(phase, phase or "start")

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "ExerciseConfig":
        """Copy with tuned thresholds applied; unknown keys are ignored with a warning."""
        if not overrides:
            return self
        tunable = {"contracted_threshold", "extended_threshold", "calories_per_rep", "calories_per_minute"}
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key in tunable:
                changes[key] = float(value)
            elif key == "form_limits":
                limits = dict(self.form_limits)
                limits.update({str(k): float(v) for k, v in dict(value).items()})
                changes["form_limits"] = limits
            elif key == "params":
                params = dict(self.params)
                params.update({str(k): float(v) for k, v in dict(value).items()})
                changes["params"] = params
            else:
                logger.warning("Ignoring unknown override %r for %s", key, self.id)
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.display_name,
            "family": self.family.value,
            "aliases": list(self.aliases),
        }


def select_side(frame: Frame, config: ExerciseConfig, settings: EngineSettings) -> Tuple[Optional[str], float]:
    """
    Decide which landmarks to track this frame.

    Returns ``(side, confidence)``: side is "left"/"right" for one-sided
    exercises, "both" for bilateral ones, or None when visibility is too poor.
    Ties go to the left side.
    """
    if config.side_parts:
        left = confidence_of([f"left_{p}" for p in config.side_parts], frame)
        right = confidence_of([f"right_{p}" for p in config.side_parts], frame)
        if left >= right and left > settings.side_confidence:
            return "left", left
        if right > settings.side_confidence:
            return "right", right
        return None, max(left, right)

    confidence = confidence_of(config.required, frame)
    if confidence >= settings.min_confidence:
        return "both", confidence
    return None, confidence


class Analyzer(ABC):
    """Base class of the exercise-agnostic state machines."""

    name = "base"

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()

    def update(
        self,
        frame: Frame,
        config: ExerciseConfig,
        previous: Optional[SessionState] = None,
        now: Optional[float] = None,
    ) -> SessionState:
        state = self._adopt(previous, config)
        if now is None:
            now = frame.timestamp if frame.timestamp is not None else time.time()

        side, confidence = select_side(frame, config, self.settings)
        if side is None:
            return state.evolve(
                confidence=confidence,
                form_feedback=config.visibility_feedback,
                debug=f"Low visibility ({confidence:.2f})",
            )

        ctx = FrameContext(
            frame=frame,
            side=side if side in ("left", "right") else None,
            baseline=state.baseline_references,
        )
        state = state.evolve(confidence=confidence)

        if config.baseline is not None and not state.baseline_references:
            references = config.baseline(ctx)
            if not references:
                return state.evolve(debug="Baseline landmarks unavailable")
            logger.debug("%s baseline captured: %s", config.id, references)
            return state.with_baseline(references).evolve(
                form_feedback=BASELINE_FEEDBACK,
                debug="Setting baseline position",
            )

        scorer = FormScorer(config.form_limits)
        for gate in config.gates:
            outcomes = scorer.evaluate(ctx, (gate,))
            if outcomes and outcomes[0].is_issue:
                return state.evolve(
                    form_score=outcomes[0].score,
                    form_feedback=outcomes[0].feedback,
                    debug=f"Gate failed: {gate.name}",
                )

        return self.step(ctx, config, state, now, scorer)

    def _adopt(self, previous: Optional[SessionState], config: ExerciseConfig) -> SessionState:
        state = previous if previous is not None else SessionState(exercise=config.id)
        if state.exercise is None:
            state = state.evolve(exercise=config.id)
        if not config.phase_graph.knows(state.phase):
            logger.warning(
                "%s: unknown phase %r in incoming state, restarting from the initial phase",
                config.id,
                state.phase,
            )
            state = state.evolve(phase=PHASE_START)
        return state

    @abstractmethod
    def step(
        self,
        ctx: FrameContext,
        config: ExerciseConfig,
        state: SessionState,
        now: float,
        scorer: FormScorer,
    ) -> SessionState:
        """Engine-specific update once visibility and baselines are settled."""


__all__ = [
    "Analyzer",
    "ENGINE_ALTERNATING",
    "ENGINE_HOLD",
    "ENGINE_SEQUENCE",
    "ENGINE_THRESHOLD",
    "ExerciseConfig",
    "select_side",
]
