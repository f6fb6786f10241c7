"""
Session state for the exercise analyzers.

A ``SessionState`` is the only mutable data in the engine, and it is never
mutated in place: every analyzer call receives the previous state and returns a
new one. The caller owns it, discards it on exercise switch or reset, and
persists it when the workout ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ExerciseFamily(str, Enum):
    """State-machine shapes covering every analyzed exercise."""

    DYNAMIC_REP = "dynamic-rep"
    ISOMETRIC_HOLD = "isometric-hold"
    ALTERNATING_BILATERAL = "alternating-bilateral"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "ExerciseFamily":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower().replace("_", "-")
        for member in cls:
            if member.value == text:
                return member
        return cls.UNKNOWN


# Phase names
PHASE_START = ""
PHASE_EXTENDED = "extended"
PHASE_CONTRACTED = "contracted"
PHASE_HOLDING = "holding"
PHASE_INVALID = "invalid"
PHASE_NEUTRAL = "neutral"


@dataclass(frozen=True)
class PhaseGraph:
    """Allowed phase transitions for one exercise's state machine."""

    phases: FrozenSet[str]
    edges: Dict[str, FrozenSet[str]]

    def allows(self, previous: str, new: str) -> bool:
        if previous == new:
            return True
        return new in self.edges.get(previous, frozenset())

    def knows(self, phase: str) -> bool:
        return phase == PHASE_START or phase in self.phases


def _fully_connected(phases: Iterable[str]) -> PhaseGraph:
    names = frozenset(phases)
    edges = {PHASE_START: names}
    for p in names:
        edges[p] = names - {p}
    return PhaseGraph(phases=names, edges=edges)


def dynamic_rep_graph() -> PhaseGraph:
    return _fully_connected((PHASE_EXTENDED, PHASE_CONTRACTED))


def isometric_hold_graph() -> PhaseGraph:
    return _fully_connected((PHASE_HOLDING, PHASE_INVALID))


def alternating_graph(side_a: str, side_b: str) -> PhaseGraph:
    return _fully_connected((PHASE_NEUTRAL, side_a, side_b))


def sequence_graph(positions: Iterable[str]) -> PhaseGraph:
    return _fully_connected(positions)


@dataclass
class SessionState:
    """Durable per-workout record threaded through every analyzer call."""

    phase: str = PHASE_START
    rep_count: int = 0
    hold_time_seconds: float = 0.0
    form_score: float = 0.0
    form_feedback: str = ""
    confidence: float = 0.0
    # Captured once per session (e.g. ankle Y at start) and then read-only.
    baseline_references: Dict[str, float] = field(default_factory=dict)
    last_update_timestamp: Optional[float] = None

    # Last non-neutral side for alternating exercises.
    last_side: Optional[str] = None
    # Recent body positions for sequence-counted exercises (burpees).
    sequence: Tuple[str, ...] = ()
    exercise: Optional[str] = None
    debug: str = ""

    def evolve(self, **changes: Any) -> "SessionState":
        """Copy of this state with ``changes`` applied; baselines are copied, not shared."""
        changes.setdefault("baseline_references", dict(self.baseline_references))
        return replace(self, **changes)

    def with_baseline(self, references: Dict[str, float]) -> "SessionState":
        """
        Record baseline references that are not captured yet.

        Already captured keys are kept as they are.
        """
        merged = dict(references)
        merged.update(self.baseline_references)
        return self.evolve(baseline_references=merged)

    def transition(self, graph: PhaseGraph, new_phase: str) -> "SessionState":
        """Move to ``new_phase`` if the graph allows it, otherwise keep the current phase."""
        if graph.allows(self.phase, new_phase):
            return self.evolve(phase=new_phase)
        logger.warning("Rejected phase transition %r -> %r", self.phase, new_phase)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase,
            "rep_count": self.rep_count,
            "hold_time_seconds": self.hold_time_seconds,
            "form_score": self.form_score,
            "form_feedback": self.form_feedback,
            "confidence": self.confidence,
            "baseline_references": dict(self.baseline_references),
            "last_update_timestamp": self.last_update_timestamp,
            "last_side": self.last_side,
            "sequence": list(self.sequence),
            "exercise": self.exercise,
            "debug": self.debug,
        }

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "SessionState":
        if not data:
            return SessionState()
        return SessionState(
            phase=str(data.get("phase") or PHASE_START),
            rep_count=max(0, int(data.get("rep_count", 0) or 0)),
            hold_time_seconds=max(0.0, float(data.get("hold_time_seconds", 0.0) or 0.0)),
            form_score=float(data.get("form_score", 0.0) or 0.0),
            form_feedback=str(data.get("form_feedback") or ""),
            confidence=float(data.get("confidence", 0.0) or 0.0),
            baseline_references={
                str(k): float(v) for k, v in (data.get("baseline_references") or {}).items()
            },
            last_update_timestamp=(
                float(data["last_update_timestamp"])
                if data.get("last_update_timestamp") is not None
                else None
            ),
            last_side=data.get("last_side"),
            sequence=tuple(data.get("sequence") or ()),
            exercise=data.get("exercise"),
            debug=str(data.get("debug") or ""),
        )


def new_session_state(exercise: Optional[str] = None) -> SessionState:
    """Empty state for the start of a workout."""
    return SessionState(exercise=exercise)


def reset_session_state(state: Optional[SessionState] = None) -> SessionState:
    """
    Clear phase, counters, baselines and timestamps.

    Idempotent: resetting a fresh state yields an equal fresh state. The
    exercise id is kept so the caller can continue the same exercise.
    """
    exercise = state.exercise if state is not None else None
    return SessionState(exercise=exercise)


def add_manual_rep(state: SessionState, count: int = 1) -> SessionState:
    """Caller-side "add rep" override; the analyzers continue counting from the new value."""
    if count <= 0:
        return state
    return state.evolve(rep_count=state.rep_count + count)


def trim_sequence(sequence: List[str], limit: int) -> Tuple[str, ...]:
    return tuple(sequence[-limit:])
