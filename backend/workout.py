"""Per-connection workout driver: one selected exercise, one threaded state."""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Dict, Optional

from exercises import DispatchResult, ExerciseDescriptor, analyze_frame, configured, resolve_exercise
from pose_sources import normalize_keypoints
from session import ExerciseFamily, SessionState, add_manual_rep, new_session_state, reset_session_state
from settings import EngineSettings, ThresholdStore, get_settings

logger = logging.getLogger(__name__)


def frame_timestamp(value: Any) -> Optional[float]:
    """Client timestamp as seconds, or ``None`` when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        ts = float(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric frame timestamp %r", value)
        return None
    return ts if math.isfinite(ts) else None


class ExerciseSession:
    """
    Holds the state for a live workout and feeds frames to the dispatcher.

    The session owns nothing but the current ``SessionState``; switching
    exercise or resetting starts from a fresh state.
    """

    def __init__(
        self,
        exercise: str = "squat",
        family: ExerciseFamily = ExerciseFamily.UNKNOWN,
        settings: Optional[EngineSettings] = None,
        store: Optional[ThresholdStore] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.started_at = time.time()
        self.select_exercise(exercise, family)

    @property
    def exercise(self) -> str:
        return self.dispatch.config.id

    def select_exercise(self, name: str, family: Any = ExerciseFamily.UNKNOWN) -> DispatchResult:
        self.descriptor = ExerciseDescriptor(name=name, family=ExerciseFamily.parse(family))
        self.dispatch = resolve_exercise(self.descriptor)
        self.state = new_session_state(self.dispatch.config.id)
        self.started_at = time.time()
        logger.info("Session exercise set to %s (%s)", self.exercise, self.dispatch.match)
        return self.dispatch

    def process(self, keypoints: Any, timestamp: Any = None, layout: Optional[str] = None) -> SessionState:
        timestamp = frame_timestamp(timestamp)
        frame = normalize_keypoints(keypoints, timestamp=timestamp, layout=layout or self.settings.keypoint_layout)
        self.state = analyze_frame(
            frame,
            self.dispatch,
            self.state,
            now=timestamp,
            settings=self.settings,
            store=self.store,
        )
        return self.state

    def reset(self) -> SessionState:
        self.state = reset_session_state(self.state)
        self.started_at = time.time()
        return self.state

    def add_rep(self, count: int = 1) -> SessionState:
        self.state = add_manual_rep(self.state, count)
        return self.state

    def estimated_calories(self) -> float:
        config = configured(self.dispatch.config, self.store)
        if config.family == ExerciseFamily.ISOMETRIC_HOLD:
            return round(self.state.hold_time_seconds / 60.0 * config.calories_per_minute, 2)
        return round(self.state.rep_count * config.calories_per_rep, 2)

    def summary(self) -> Dict[str, Any]:
        return {
            "exercise": self.exercise,
            "name": self.dispatch.config.display_name,
            "family": self.dispatch.config.family.value,
            "reps": self.state.rep_count,
            "hold_seconds": round(self.state.hold_time_seconds, 2),
            "last_form_score": self.state.form_score,
            "calories": self.estimated_calories(),
            "duration_seconds": round(time.time() - self.started_at, 1),
        }
