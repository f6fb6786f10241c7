"""
Rep counting for alternating bilateral exercises (mountain climbers, high
knees, russian twists, bird dog...).

The config's classifier labels each frame with an active side or ``neutral``.
A rep is counted every time a side becomes active that differs from the last
active side, so lingering on one side or flickering through neutral and back
to the same side never double counts.
"""

from __future__ import annotations

import logging

from analyzer import Analyzer, ExerciseConfig
from form_scorer import FormScorer, FrameContext
from session import PHASE_NEUTRAL, SessionState

logger = logging.getLogger(__name__)


class SideAlternator(Analyzer):
    name = "alternating"

    def step(
        self,
        ctx: FrameContext,
        config: ExerciseConfig,
        state: SessionState,
        now: float,
        scorer: FormScorer,
    ) -> SessionState:
        side = config.classify(ctx, config.params) if config.classify is not None else None
        if side is None:
            return state.evolve(debug="Side unavailable")

        updated = state.transition(config.phase_graph, side)
        rep_count = state.rep_count
        last_side = state.last_side
        if updated.phase != PHASE_NEUTRAL and updated.phase != state.phase:
            if updated.phase != state.last_side:
                rep_count += 1
                logger.debug("%s rep completed on %s (%d)", config.id, updated.phase, rep_count)
            last_side = updated.phase

        ctx.phase = updated.phase
        score, feedback = scorer.score(
            ctx, config.checks, config.bonuses, config.default_score, config.default_feedback
        )
        return updated.evolve(
            rep_count=rep_count,
            last_side=last_side,
            form_score=score,
            form_feedback=feedback,
            last_update_timestamp=now,
            debug=f"Side: {config.label(updated.phase)}",
        )
