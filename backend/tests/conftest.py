import math
import os
import sys

import pytest

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from pose_sources import Frame, Keypoint  # noqa: E402
from settings import EngineSettings, ThresholdStore, configure  # noqa: E402


@pytest.fixture(autouse=True)
def default_settings():
    """Every test starts from default settings and an empty override store."""
    configure(EngineSettings(), ThresholdStore())
    yield
    configure(None, None)


def build_frame(points, confidence=0.9, timestamp=None):
    """``points`` maps canonical names to ``(x, y)`` or ``(x, y, confidence)``."""
    keypoints = {}
    for name, value in points.items():
        score = value[2] if len(value) > 2 else confidence
        keypoints[name] = Keypoint(name=name, x=float(value[0]), y=float(value[1]), confidence=score)
    return Frame(keypoints=keypoints, timestamp=timestamp)


def arm_at(angle, side="left", confidence=0.9, timestamp=None):
    """Shoulder above elbow, wrist placed so the elbow angle equals ``angle``."""
    theta = math.radians(angle)
    elbow = (100.0, 200.0)
    wrist = (elbow[0] + 100.0 * math.sin(theta), elbow[1] - 100.0 * math.cos(theta))
    return build_frame(
        {
            f"{side}_shoulder": (100.0, 100.0),
            f"{side}_elbow": elbow,
            f"{side}_wrist": wrist,
        },
        confidence=confidence,
        timestamp=timestamp,
    )


def plank_pose(timestamp=None, hip_y=205.0):
    """Side-view forearm plank; both sides share coordinates."""
    points = {}
    for side in ("left", "right"):
        points.update(
            {
                f"{side}_shoulder": (100, 200),
                f"{side}_elbow": (100, 250),
                f"{side}_wrist": (160, 250),
                f"{side}_hip": (200, hip_y),
                f"{side}_knee": (300, 210),
                f"{side}_ankle": (400, 215),
            }
        )
    return build_frame(points, timestamp=timestamp)


def climber_pose(active=None, timestamp=None):
    """Mountain climber frame; ``active`` is "left", "right" or None for neutral."""
    knees = {"left": 350.0, "right": 350.0}
    if active:
        knees[active] = 250.0
    points = {}
    for side, x in (("left", 190), ("right", 210)):
        points.update(
            {
                f"{side}_shoulder": (x - 100, 290),
                f"{side}_hip": (x, 300),
                f"{side}_knee": (x + 50, knees[side]),
                f"{side}_ankle": (x + 150, 380),
            }
        )
    return build_frame(points, timestamp=timestamp)


@pytest.fixture
def frames():
    class Builders:
        build = staticmethod(build_frame)
        arm = staticmethod(arm_at)
        plank = staticmethod(plank_pose)
        climber = staticmethod(climber_pose)

    return Builders
