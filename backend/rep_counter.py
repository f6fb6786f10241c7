"""
Rep counting for dynamic exercises.

``ThresholdStateMachine`` is a two-phase hysteresis machine over a single
controlling metric (a joint angle, or a height relative to a baseline):

    extended --(metric crosses contracted threshold)--> contracted
    contracted --(metric crosses extended threshold)--> extended

Values between the two thresholds leave the phase unchanged, which absorbs
keypoint jitter. A rep is counted once per completed cycle, on the transition
into the exercise's ``count_on`` phase.

``SequenceRepCounter`` handles compound movements (burpees) where a rep is a
sequence of distinct body positions rather than one metric crossing.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from analyzer import Analyzer, ExerciseConfig
from form_scorer import FormScorer, FrameContext
from session import PHASE_CONTRACTED, PHASE_EXTENDED, SessionState, trim_sequence

logger = logging.getLogger(__name__)


def classify_by_threshold(metric: float, config: ExerciseConfig) -> Optional[str]:
    """Phase implied by the metric alone, or None inside the hysteresis band."""
    if config.contracted_when == "below":
        if metric <= config.contracted_threshold:
            return PHASE_CONTRACTED
        if metric >= config.extended_threshold:
            return PHASE_EXTENDED
        return None

    if metric >= config.contracted_threshold:
        return PHASE_CONTRACTED
    if metric <= config.extended_threshold:
        return PHASE_EXTENDED
    return None


def _opposite(phase: str) -> str:
    return PHASE_CONTRACTED if phase == PHASE_EXTENDED else PHASE_EXTENDED


class ThresholdStateMachine(Analyzer):
    name = "threshold"

    def step(
        self,
        ctx: FrameContext,
        config: ExerciseConfig,
        state: SessionState,
        now: float,
        scorer: FormScorer,
    ) -> SessionState:
        metric = config.metric(ctx) if config.metric is not None else None

        if config.classify is not None:
            target = config.classify(ctx, config.params)
        elif metric is None:
            # Degenerate geometry (coincident or missing points): skip this frame.
            return state.evolve(debug=f"{config.metric_label} unavailable")
        else:
            target = classify_by_threshold(metric, config)

        updated = state.transition(config.phase_graph, target) if target else state
        rep_count = state.rep_count
        if state.phase == _opposite(config.count_on) and updated.phase == config.count_on:
            rep_count += 1
            logger.debug("%s rep completed (%d)", config.id, rep_count)

        ctx.metric = metric
        ctx.phase = updated.phase
        score, feedback = scorer.score(
            ctx, config.checks, config.bonuses, config.default_score, config.default_feedback
        )

        debug = f"State: {config.label(updated.phase)}"
        if metric is not None:
            debug = f"{config.metric_label}: {metric:.1f}, {debug}"
        return updated.evolve(
            rep_count=rep_count,
            form_score=score,
            form_feedback=feedback,
            last_update_timestamp=now,
            debug=debug,
        )


def _last_index(sequence: List[str], *positions: str) -> int:
    found = [i for i, p in enumerate(sequence) if p in positions]
    return found[-1] if found else -1


class SequenceRepCounter(Analyzer):
    """
    Counts a rep when the recent positions contain standing -> floor -> standing.

    The config's classifier labels each frame with a body position. Distinct
    positions are appended to a bounded history (``transition`` frames are not
    recorded). A fresh history starts empty; after a counted rep it restarts
    from ``("standing",)``.
    """

    name = "sequence"

    start_position = "standing"
    floor_positions = ("plank", "pushup")
    transition_position = "transition"

    def step(
        self,
        ctx: FrameContext,
        config: ExerciseConfig,
        state: SessionState,
        now: float,
        scorer: FormScorer,
    ) -> SessionState:
        position = config.classify(ctx, config.params) if config.classify is not None else None
        if position is None:
            return state.evolve(debug="Position unavailable")

        updated = state.transition(config.phase_graph, position)
        sequence = list(state.sequence)
        rep_count = state.rep_count

        if updated.phase != state.phase and position != self.transition_position:
            sequence.append(position)
            sequence = list(trim_sequence(sequence, self.settings.sequence_limit))
            if self._completes_rep(sequence):
                rep_count += 1
                logger.debug("%s rep completed (%d)", config.id, rep_count)
                sequence = [self.start_position]

        ctx.phase = updated.phase
        score, feedback = scorer.score(
            ctx, config.checks, config.bonuses, config.default_score, config.default_feedback
        )
        return updated.evolve(
            rep_count=rep_count,
            sequence=tuple(sequence),
            form_score=score,
            form_feedback=feedback,
            last_update_timestamp=now,
            debug=f"Position: {position}, Sequence: {'->'.join(sequence[-3:])}",
        )

    def _completes_rep(self, sequence: List[str]) -> bool:
        if len(sequence) < 3:
            return False
        floor = _last_index(sequence, *self.floor_positions)
        if floor < 0:
            return False
        standing_before = any(p == self.start_position for p in sequence[:floor])
        return standing_before and _last_index(sequence, self.start_position) > floor
