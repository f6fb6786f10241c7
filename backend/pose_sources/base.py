"""Common keypoint types shared by every pose source layout."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

# Canonical landmark names (COCO-17 ordering).
CANONICAL_LANDMARKS: Tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)


@dataclass(frozen=True)
class Keypoint:
    """One named, confidence-scored 2-D landmark observation."""

    name: str
    x: float
    y: float
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "x": self.x, "y": self.y, "score": self.confidence}


@dataclass
class Frame:
    """
    Keypoints of a single observation instant, indexed by canonical name.

    Missing landmarks are simply absent; ``get`` returns None for them.
    """

    keypoints: Dict[str, Keypoint] = field(default_factory=dict)
    timestamp: Optional[float] = None

    def get(self, name: str) -> Optional[Keypoint]:
        return self.keypoints.get(name)

    def __getitem__(self, name: str) -> Keypoint:
        return self.keypoints[name]

    def __contains__(self, name: object) -> bool:
        return name in self.keypoints

    def __iter__(self) -> Iterator[Keypoint]:
        return iter(self.keypoints.values())

    def __len__(self) -> int:
        return len(self.keypoints)

    def to_list(self) -> List[Dict[str, Any]]:
        return [kp.to_dict() for kp in self.keypoints.values()]


def _clamp_confidence(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if score != score:  # NaN
        return 0.0
    return min(1.0, max(0.0, score))


class KeypointLayout(ABC):
    """Maps one provider's raw landmark payload onto canonical names."""

    name: str = "base"

    @abstractmethod
    def normalize(self, raw: Iterable[Any], timestamp: Optional[float] = None) -> Frame:
        """Convert a raw landmark collection into a Frame."""

    @staticmethod
    def _make_keypoint(name: str, x: Any, y: Any, score: Any) -> Optional[Keypoint]:
        try:
            fx, fy = float(x), float(y)
        except (TypeError, ValueError):
            return None
        if fx != fx or fy != fy:
            return None
        return Keypoint(name=name, x=fx, y=fy, confidence=_clamp_confidence(score))
