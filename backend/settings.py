"""
Engine configuration.

Process-wide knobs come from environment variables; per-exercise threshold
overrides live in a JSON file so they can be tuned without touching the
exercise catalogue:

    {
      "exercises": {
        "bicep_curl": {
          "contracted_threshold": 55,
          "form_limits": {"elbow_drift": 35}
        }
      }
    }
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "REPCOACH_"


def _env_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(ENV_PREFIX + key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{key} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class EngineSettings:
    # Bilateral landmark sets must reach this mean confidence.
    min_confidence: float = 0.4
    # A single side must exceed this to be tracked.
    side_confidence: float = 0.5
    # Longer gaps between hold frames are not accrued.
    max_hold_gap_seconds: float = 0.5
    sequence_limit: int = 10
    keypoint_layout: str = "movenet"
    thresholds_file: Optional[Path] = None

    def __post_init__(self) -> None:
        for name in ("min_confidence", "side_confidence"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.max_hold_gap_seconds <= 0:
            raise ValueError("max_hold_gap_seconds must be positive")
        if self.sequence_limit < 3:
            raise ValueError("sequence_limit must be at least 3")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        environ = os.environ if environ is None else environ
        thresholds = environ.get(ENV_PREFIX + "THRESHOLDS_FILE")
        return cls(
            min_confidence=_env_float(environ, "MIN_CONFIDENCE", cls.min_confidence),
            side_confidence=_env_float(environ, "SIDE_CONFIDENCE", cls.side_confidence),
            max_hold_gap_seconds=_env_float(environ, "MAX_HOLD_GAP_MS", cls.max_hold_gap_seconds * 1000.0)
            / 1000.0,
            keypoint_layout=environ.get(ENV_PREFIX + "KEYPOINT_LAYOUT", cls.keypoint_layout),
            thresholds_file=Path(thresholds) if thresholds else None,
        )


class ThresholdStore:
    """JSON-backed per-exercise threshold overrides."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self.exercises: Dict[str, Dict[str, Any]] = {}
        self._load()

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise ValueError(f"Could not read threshold overrides from {self.path}: {exc}") from exc

        exercises = data.get("exercises", {}) if isinstance(data, dict) else {}
        for name, fields in exercises.items():
            if not isinstance(fields, dict):
                logger.warning("Ignoring malformed overrides for %s", name)
                continue
            self.exercises[str(name)] = dict(fields)
        logger.info("Loaded threshold overrides for %d exercises from %s", len(self.exercises), self.path)

    def save(self) -> None:
        if self.path is None:
            raise ValueError("ThresholdStore has no backing file")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"exercises": self.exercises}, indent=2))

    # ---- API ----

    def overrides_for(self, exercise: str) -> Dict[str, Any]:
        fields = self.exercises.get(exercise)
        if not fields:
            return {}
        copied = dict(fields)
        if "form_limits" in copied:
            copied["form_limits"] = dict(copied["form_limits"])
        return copied

    def set_override(self, exercise: str, **fields: Any) -> None:
        entry = self.exercises.setdefault(exercise, {})
        limits = fields.pop("form_limits", None)
        entry.update(fields)
        if limits:
            entry.setdefault("form_limits", {}).update(limits)

    def clear(self, exercise: str) -> bool:
        return self.exercises.pop(exercise, None) is not None


_settings: Optional[EngineSettings] = None
_store: Optional[ThresholdStore] = None


def get_settings() -> EngineSettings:
    global _settings
    if _settings is None:
        _settings = EngineSettings.from_env()
    return _settings


def get_threshold_store() -> ThresholdStore:
    global _store
    if _store is None:
        _store = ThresholdStore(get_settings().thresholds_file)
    return _store


def configure(settings: Optional[EngineSettings] = None, store: Optional[ThresholdStore] = None) -> None:
    """Replace the process-wide settings (used by the service and tests)."""
    global _settings, _store
    _settings = settings
    _store = store
