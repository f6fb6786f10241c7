"""Keypoint layout registry.

Pose providers report landmarks in different shapes (named COCO lists,
index-ordered BlazePose lists). Each layout turns its payload into a ``Frame``
keyed by canonical landmark name so the exercise analyzers never see provider
specifics.
"""

from typing import Any, Dict, Iterable, Optional, Type, Union

from .base import CANONICAL_LANDMARKS, Frame, Keypoint, KeypointLayout
from .mediapipe import MediaPipeLayout
from .movenet import MoveNetLayout


LAYOUT_REGISTRY: Dict[str, Type[KeypointLayout]] = {
    MoveNetLayout.name: MoveNetLayout,
    MediaPipeLayout.name: MediaPipeLayout,
}


def get_available_layouts():
    """Return the list of registered layout names."""
    return list(LAYOUT_REGISTRY.keys())


def build_keypoint_layout(name: str, **kwargs: Any) -> KeypointLayout:
    """Instantiate a keypoint layout by registry name."""
    layout_cls = LAYOUT_REGISTRY.get(name)
    if not layout_cls:
        raise ValueError(
            f"Unknown keypoint layout '{name}'. "
            f"Available options: {', '.join(get_available_layouts())}"
        )
    return layout_cls(**kwargs)


def normalize_keypoints(
    raw: Union[Frame, Iterable[Any], None],
    timestamp: Optional[float] = None,
    layout: Union[str, KeypointLayout] = "movenet",
) -> Frame:
    """
    Re-index a raw keypoint collection by canonical name.

    A ``Frame`` passes through untouched (its timestamp is filled in when it has
    none). ``None`` or an empty payload yields an empty Frame.
    """
    if isinstance(raw, Frame):
        if raw.timestamp is None and timestamp is not None:
            return Frame(keypoints=raw.keypoints, timestamp=timestamp)
        return raw
    if isinstance(layout, str):
        layout = build_keypoint_layout(layout)
    return layout.normalize(raw or [], timestamp=timestamp)


__all__ = [
    "CANONICAL_LANDMARKS",
    "Frame",
    "Keypoint",
    "KeypointLayout",
    "LAYOUT_REGISTRY",
    "MediaPipeLayout",
    "MoveNetLayout",
    "build_keypoint_layout",
    "get_available_layouts",
    "normalize_keypoints",
]
