"""BlazePose-33 landmark lists (MediaPipe Pose / Holistic output order)."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from .base import Frame, KeypointLayout

# BlazePose index -> canonical name. Hands, heels and feet have no canonical slot.
BLAZEPOSE_INDEX: Dict[int, str] = {
    0: "nose",
    2: "left_eye",
    5: "right_eye",
    7: "left_ear",
    8: "right_ear",
    11: "left_shoulder",
    12: "right_shoulder",
    13: "left_elbow",
    14: "right_elbow",
    15: "left_wrist",
    16: "right_wrist",
    23: "left_hip",
    24: "right_hip",
    25: "left_knee",
    26: "right_knee",
    27: "left_ankle",
    28: "right_ankle",
}


class MediaPipeLayout(KeypointLayout):
    """
    Accepts the index-ordered ``[{"x", "y", "z", "visibility"}, ...]`` list.

    MediaPipe reports coordinates normalized to [0, 1]. Pass the image size so
    the pixel tolerances used by the exercise configs keep their meaning.
    """

    name = "mediapipe"

    def __init__(self, image_width: float = 1.0, image_height: float = 1.0):
        self.image_width = float(image_width)
        self.image_height = float(image_height)

    def normalize(self, raw: Iterable[Any], timestamp: Optional[float] = None) -> Frame:
        frame = Frame(timestamp=timestamp)
        if not raw:
            return frame

        for idx, lm in enumerate(raw):
            name = BLAZEPOSE_INDEX.get(idx)
            if name is None or not isinstance(lm, Mapping):
                continue
            x, y = lm.get("x"), lm.get("y")
            if x is None or y is None:
                continue
            kp = self._make_keypoint(
                name,
                float(x) * self.image_width,
                float(y) * self.image_height,
                lm.get("visibility", lm.get("score", 0.0)),
            )
            if kp is not None:
                frame.keypoints[name] = kp

        return frame
