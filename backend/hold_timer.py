"""
Isometric hold validation (plank, stretches, static poses).

A hold is either ``holding`` (every constraint satisfied) or ``invalid``.
Time accrues only between consecutive valid frames that are less than the
configured gap apart, so dropped frames or a pause never inflate the total.
"""

from __future__ import annotations

import logging

from analyzer import Analyzer, ExerciseConfig
from form_scorer import FormScorer, FrameContext, run_check
from session import PHASE_HOLDING, PHASE_INVALID, SessionState

logger = logging.getLogger(__name__)


class HoldValidator(Analyzer):
    name = "hold"

    def step(
        self,
        ctx: FrameContext,
        config: ExerciseConfig,
        state: SessionState,
        now: float,
        scorer: FormScorer,
    ) -> SessionState:
        for constraint in config.constraints:
            outcome = run_check(constraint, ctx, config.form_limits.get(constraint.name))
            if outcome is None:
                return state.evolve(debug=f"{constraint.name} unavailable")
            if outcome.is_issue:
                updated = state.transition(config.phase_graph, PHASE_INVALID)
                return updated.evolve(
                    form_score=outcome.score,
                    form_feedback=outcome.feedback,
                    last_update_timestamp=now,
                    debug=f"Invalid: {constraint.name}",
                )

        updated = state.transition(config.phase_graph, PHASE_HOLDING)
        hold_time = state.hold_time_seconds
        if updated.phase == PHASE_HOLDING and state.phase == PHASE_HOLDING and state.last_update_timestamp is not None:
            delta = now - state.last_update_timestamp
            if 0 < delta <= self.settings.max_hold_gap_seconds:
                hold_time += delta
            else:
                logger.debug("%s: frame gap of %.3fs not accrued", config.id, delta)

        ctx.phase = updated.phase
        result = config.hold_score(ctx, config.params) if config.hold_score is not None else None
        if result is None:
            result = scorer.score(ctx, config.checks, config.bonuses, config.default_score, config.default_feedback)
        score, feedback = result

        return updated.evolve(
            hold_time_seconds=hold_time,
            form_score=score,
            form_feedback=feedback,
            last_update_timestamp=now,
            debug=f"Holding: {hold_time:.1f}s",
        )
