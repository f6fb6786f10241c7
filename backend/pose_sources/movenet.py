"""Named COCO-17 keypoints as produced by MoveNet / PoseNet style detectors."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from .base import CANONICAL_LANDMARKS, Frame, KeypointLayout

logger = logging.getLogger(__name__)


class MoveNetLayout(KeypointLayout):
    """
    Accepts an order-unspecified list of ``{"name", "x", "y", "score"}`` dicts.

    ``confidence`` / ``visibility`` are accepted in place of ``score``. Entries
    with unknown names or unusable coordinates are dropped. When a name repeats,
    the most confident observation wins.
    """

    name = "movenet"

    def normalize(self, raw: Iterable[Any], timestamp: Optional[float] = None) -> Frame:
        frame = Frame(timestamp=timestamp)
        if not raw:
            return frame

        for entry in raw:
            if not isinstance(entry, Mapping):
                continue
            name = str(entry.get("name", "")).strip().lower()
            if name not in CANONICAL_LANDMARKS:
                continue

            score = entry.get("score", entry.get("confidence", entry.get("visibility", 0.0)))
            kp = self._make_keypoint(name, entry.get("x"), entry.get("y"), score)
            if kp is None:
                logger.debug("Dropping keypoint %s with unusable coordinates", name)
                continue

            existing = frame.keypoints.get(name)
            if existing is None or kp.confidence > existing.confidence:
                frame.keypoints[name] = kp

        return frame
