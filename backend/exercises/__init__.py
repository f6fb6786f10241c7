"""Exercise registry and dispatcher.

Every supported exercise is a declarative ``ExerciseConfig`` record; the
dispatcher resolves a requested name to one of them and hands the frame to the
analyzer its family needs. Resolution never fails: unrecognized names fall
back to a family default, loudly.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, Union

from analyzer import (
    ENGINE_ALTERNATING,
    ENGINE_HOLD,
    ENGINE_SEQUENCE,
    ENGINE_THRESHOLD,
    Analyzer,
    ExerciseConfig,
)
from hold_timer import HoldValidator
from pose_sources import Frame, normalize_keypoints
from rep_counter import SequenceRepCounter, ThresholdStateMachine
from session import ExerciseFamily, SessionState, new_session_state
from settings import EngineSettings, ThresholdStore, get_settings, get_threshold_store
from side_alternator import SideAlternator

from . import cardio_config, core_config, flexibility_config, lower_body_config, upper_body_config

logger = logging.getLogger(__name__)


EXERCISE_REGISTRY: Dict[str, ExerciseConfig] = {}
ALIASES: Dict[str, str] = {}

for _module in (upper_body_config, lower_body_config, core_config, cardio_config, flexibility_config):
    for _config in _module.CONFIGS:
        EXERCISE_REGISTRY[_config.id] = _config
        for _alias in _config.aliases:
            ALIASES[_alias] = _config.id

FAMILY_FALLBACK: Dict[ExerciseFamily, str] = {
    ExerciseFamily.DYNAMIC_REP: "squat",
    ExerciseFamily.ISOMETRIC_HOLD: "plank",
    ExerciseFamily.ALTERNATING_BILATERAL: "mountain_climber",
    ExerciseFamily.UNKNOWN: "squat",
}

ANALYZER_REGISTRY: Dict[str, Type[Analyzer]] = {
    ENGINE_THRESHOLD: ThresholdStateMachine,
    ENGINE_SEQUENCE: SequenceRepCounter,
    ENGINE_HOLD: HoldValidator,
    ENGINE_ALTERNATING: SideAlternator,
}

MATCH_EXACT = "exact"
MATCH_ALIAS = "alias"
MATCH_FUZZY = "fuzzy"
MATCH_FALLBACK = "fallback"

# Shortest name fragment matched inside a word; shorter names (row, ohp) must
# appear as a whole word.
_MIN_FUZZY_LENGTH = 4


@dataclass(frozen=True)
class ExerciseDescriptor:
    """What the caller asked for: a free-form name and, optionally, its family."""

    name: str
    family: ExerciseFamily = ExerciseFamily.UNKNOWN

    @staticmethod
    def coerce(value: Any) -> "ExerciseDescriptor":
        if isinstance(value, ExerciseDescriptor):
            return value
        if isinstance(value, dict):
            return ExerciseDescriptor(
                name=str(value.get("name") or value.get("exercise") or ""),
                family=ExerciseFamily.parse(value.get("family")),
            )
        return ExerciseDescriptor(name=str(value or ""))


@dataclass(frozen=True)
class DispatchResult:
    config: ExerciseConfig
    match: str
    requested: str

    def to_dict(self) -> Dict[str, Any]:
        return {"exercise": self.config.id, "match": self.match, "requested": self.requested}


def normalize_name(name: str) -> str:
    """``"Bicep Curls"`` -> ``"bicep_curls"``; ``"push-ups"`` -> ``"push_ups"``."""
    text = re.sub(r"[^a-z0-9]+", "_", str(name or "").strip().lower())
    return text.strip("_")


def _fuzzy_match(key: str) -> Optional[str]:
    if not key:
        return None
    words = set(key.split("_"))
    candidates = list(EXERCISE_REGISTRY.keys()) + list(ALIASES.keys())
    # Longest fragment wins, so "bicep_curl" beats "curl".
    for candidate in sorted(candidates, key=len, reverse=True):
        if len(candidate) < _MIN_FUZZY_LENGTH:
            matched = candidate in words
        else:
            matched = candidate in key or (len(key) >= _MIN_FUZZY_LENGTH and key in candidate)
        if matched:
            return ALIASES.get(candidate, candidate)
    return None


def resolve_exercise(descriptor: Union[str, ExerciseDescriptor, Dict[str, Any], None]) -> DispatchResult:
    """Map a requested exercise onto a registered config. Never raises."""
    desc = ExerciseDescriptor.coerce(descriptor)
    key = normalize_name(desc.name)

    if key in EXERCISE_REGISTRY:
        return DispatchResult(EXERCISE_REGISTRY[key], MATCH_EXACT, desc.name)

    if key in ALIASES:
        return DispatchResult(EXERCISE_REGISTRY[ALIASES[key]], MATCH_ALIAS, desc.name)

    fuzzy = _fuzzy_match(key)
    if fuzzy is not None:
        logger.info("Exercise %r matched %r by keyword", desc.name, fuzzy)
        return DispatchResult(EXERCISE_REGISTRY[fuzzy], MATCH_FUZZY, desc.name)

    fallback = FAMILY_FALLBACK[desc.family]
    logger.warning(
        "Unknown exercise %r (family %s), falling back to %s", desc.name, desc.family.value, fallback
    )
    return DispatchResult(EXERCISE_REGISTRY[fallback], MATCH_FALLBACK, desc.name)


def build_analyzer(engine: str, settings: Optional[EngineSettings] = None) -> Analyzer:
    """Instantiate an analyzer by engine name."""
    analyzer_cls = ANALYZER_REGISTRY.get(engine)
    if not analyzer_cls:
        raise ValueError(
            f"Unknown analyzer '{engine}'. "
            f"Available options: {', '.join(ANALYZER_REGISTRY.keys())}"
        )
    return analyzer_cls(settings)


def configured(config: ExerciseConfig, store: Optional[ThresholdStore] = None) -> ExerciseConfig:
    """Config with any tuned thresholds from the override store applied."""
    store = store if store is not None else get_threshold_store()
    return config.with_overrides(store.overrides_for(config.id))


def analyze_frame(
    frame: Any,
    descriptor: Union[str, ExerciseDescriptor, DispatchResult, Dict[str, Any], None],
    previous_state: Optional[SessionState] = None,
    now: Optional[float] = None,
    settings: Optional[EngineSettings] = None,
    store: Optional[ThresholdStore] = None,
) -> SessionState:
    """
    Analyze one frame for the requested exercise.

    ``frame`` may be a ``Frame`` or a raw keypoint list in the configured
    layout. An already resolved ``DispatchResult`` is used without another
    lookup. A previous state produced by a different exercise is discarded.
    """
    settings = settings or get_settings()
    result = descriptor if isinstance(descriptor, DispatchResult) else resolve_exercise(descriptor)
    config = configured(result.config, store)

    if previous_state is not None and previous_state.exercise not in (None, config.id):
        logger.info("Exercise changed from %s to %s, starting a new session", previous_state.exercise, config.id)
        previous_state = new_session_state(config.id)

    if not isinstance(frame, Frame):
        frame = normalize_keypoints(frame, timestamp=now, layout=settings.keypoint_layout)

    analyzer = build_analyzer(config.resolved_engine, settings)
    return analyzer.update(frame, config, previous_state, now)


def list_exercises() -> List[Dict[str, Any]]:
    """Catalogue entries for the service surface, sorted by id."""
    entries = []
    for exercise_id in sorted(EXERCISE_REGISTRY):
        config = EXERCISE_REGISTRY[exercise_id]
        entry = config.to_dict()
        entry["engine"] = config.resolved_engine
        if config.resolved_engine == ENGINE_THRESHOLD and config.classify is None:
            entry["thresholds"] = {
                "contracted": config.contracted_threshold,
                "extended": config.extended_threshold,
                "contracted_when": config.contracted_when,
            }
        entries.append(entry)
    return entries


__all__ = [
    "ALIASES",
    "ANALYZER_REGISTRY",
    "DispatchResult",
    "EXERCISE_REGISTRY",
    "ExerciseDescriptor",
    "FAMILY_FALLBACK",
    "analyze_frame",
    "build_analyzer",
    "configured",
    "list_exercises",
    "normalize_name",
    "resolve_exercise",
]
