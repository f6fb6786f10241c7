"""
Planar geometry utilities for the exercise analyzers.

Everything here is pure and exercise-agnostic:
- Three-point joint angle at a vertex
- Confidence-weighted visibility of a landmark set
- Small vector helpers (distance, midpoint, mean of optional angles)

Image coordinates are assumed (Y grows downward), so "above" means a smaller Y.
"""

from typing import Iterable, Optional, Sequence

import numpy as np

from pose_sources import Frame, Keypoint

# Rays shorter than this (pixels) carry no direction.
_MIN_RAY_LENGTH = 1e-6


def _xy(point: Keypoint) -> np.ndarray:
    return np.array([point.x, point.y], dtype=float)


def angle_at_vertex(
    a: Optional[Keypoint], b: Optional[Keypoint], c: Optional[Keypoint]
) -> Optional[float]:
    """
    Angle in degrees at vertex ``b`` formed by the rays b->a and b->c.

    Returns a value in [0, 180], or None when any point is missing or one of
    the rays is degenerate.
    """
    if a is None or b is None or c is None:
        return None

    pa, pb, pc = _xy(a), _xy(b), _xy(c)
    if np.linalg.norm(pa - pb) < _MIN_RAY_LENGTH or np.linalg.norm(pc - pb) < _MIN_RAY_LENGTH:
        return None

    radians = np.arctan2(pc[1] - pb[1], pc[0] - pb[0]) - np.arctan2(pa[1] - pb[1], pa[0] - pb[0])
    angle = np.abs(radians * 180.0 / np.pi)
    if angle > 180.0:
        angle = 360.0 - angle
    if not np.isfinite(angle):
        return None
    return float(angle)


def confidence_of(landmark_names: Iterable[str], frame: Frame) -> float:
    """Mean confidence of the named landmarks present in the frame (0 if none are)."""
    scores = [frame[name].confidence for name in landmark_names if name in frame]
    if not scores:
        return 0.0
    return float(np.mean(scores))


def distance(a: Optional[Keypoint], b: Optional[Keypoint]) -> Optional[float]:
    """Euclidean pixel distance, None if either point is missing."""
    if a is None or b is None:
        return None
    return float(np.linalg.norm(_xy(a) - _xy(b)))


def midpoint_y(a: Optional[Keypoint], b: Optional[Keypoint]) -> Optional[float]:
    """Average Y of two landmarks, falling back to whichever one is present."""
    ys = [p.y for p in (a, b) if p is not None]
    if not ys:
        return None
    return float(np.mean(ys))


def midpoint_x(a: Optional[Keypoint], b: Optional[Keypoint]) -> Optional[float]:
    """Average X of two landmarks, falling back to whichever one is present."""
    xs = [p.x for p in (a, b) if p is not None]
    if not xs:
        return None
    return float(np.mean(xs))


def mean_angle(angles: Sequence[Optional[float]]) -> Optional[float]:
    """Mean of the defined angles; None when none are defined."""
    defined = [a for a in angles if a is not None]
    if not defined:
        return None
    return float(np.mean(defined))


def rise_above(reference_y: Optional[float], point: Optional[Keypoint]) -> Optional[float]:
    """How far ``point`` sits above ``reference_y`` in pixels (positive = higher)."""
    if reference_y is None or point is None:
        return None
    return float(reference_y - point.y)
