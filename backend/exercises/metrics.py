"""
Measurement builders used by the exercise catalogue.

Each builder returns a ``Measure``: a function of the frame context that
yields one number, or None when the landmarks it needs are missing. Heights
are in image pixels and positive when a landmark is higher on screen.
"""

from __future__ import annotations

from typing import Dict, Optional

from form_scorer import FrameContext, Measure
from kinematics import angle_at_vertex, distance, mean_angle, midpoint_x, midpoint_y


def side_angle(a: str, vertex: str, c: str) -> Measure:
    """Joint angle on the tracked side, e.g. ``side_angle("shoulder", "elbow", "wrist")``."""

    def measure(ctx: FrameContext) -> Optional[float]:
        return angle_at_vertex(ctx.point(a), ctx.point(vertex), ctx.point(c))

    return measure


def bilateral_angle(a: str, vertex: str, c: str) -> Measure:
    """Mean of the left and right joint angles (whichever are defined)."""

    def measure(ctx: FrameContext) -> Optional[float]:
        return mean_angle(
            [
                angle_at_vertex(ctx.left(a), ctx.left(vertex), ctx.left(c)),
                angle_at_vertex(ctx.right(a), ctx.right(vertex), ctx.right(c)),
            ]
        )

    return measure


def mean_y(ctx: FrameContext, part: str) -> Optional[float]:
    return midpoint_y(*ctx.pair(part))


def mean_x(ctx: FrameContext, part: str) -> Optional[float]:
    return midpoint_x(*ctx.pair(part))


def capture_mean_y(**keys: str):
    """Baseline capture recording the mean Y of each part, e.g. ``shoulder_y="shoulder"``."""

    def capture(ctx: FrameContext) -> Optional[Dict[str, float]]:
        refs = {}
        for key, part in keys.items():
            value = mean_y(ctx, part)
            if value is None:
                return None
            refs[key] = value
        return refs

    return capture


def capture_side_y(**keys: str):
    """Like ``capture_mean_y`` but reads the tracked side only."""

    def capture(ctx: FrameContext) -> Optional[Dict[str, float]]:
        refs = {}
        for key, part in keys.items():
            point = ctx.point(part)
            if point is None:
                return None
            refs[key] = point.y
        return refs

    return capture


def rise_from_baseline(key: str, part: str) -> Measure:
    """How far the mean Y of ``part`` has risen above its baseline."""

    def measure(ctx: FrameContext) -> Optional[float]:
        ref = ctx.baseline.get(key)
        current = mean_y(ctx, part)
        if ref is None or current is None:
            return None
        return ref - current

    return measure


def side_rise_from_baseline(key: str, part: str) -> Measure:
    def measure(ctx: FrameContext) -> Optional[float]:
        ref = ctx.baseline.get(key)
        point = ctx.point(part)
        if ref is None or point is None:
            return None
        return ref - point.y

    return measure


def drop_from_baseline(key: str, part: str) -> Measure:
    """How far the mean Y of ``part`` has dropped below its baseline."""
    rise = rise_from_baseline(key, part)

    def measure(ctx: FrameContext) -> Optional[float]:
        value = rise(ctx)
        return None if value is None else -value

    return measure


def height_above(part: str, reference: str) -> Measure:
    """Mean height of ``part`` above ``reference`` (both averaged over sides)."""

    def measure(ctx: FrameContext) -> Optional[float]:
        ref, current = mean_y(ctx, reference), mean_y(ctx, part)
        if ref is None or current is None:
            return None
        return ref - current

    return measure


def side_height_above(part: str, reference: str) -> Measure:
    def measure(ctx: FrameContext) -> Optional[float]:
        ref, current = ctx.point(reference), ctx.point(part)
        if ref is None or current is None:
            return None
        return ref.y - current.y

    return measure


def horizontal_gap(a: str, b: str) -> Measure:
    """Absolute X distance between two landmarks on the tracked side."""

    def measure(ctx: FrameContext) -> Optional[float]:
        pa, pb = ctx.point(a), ctx.point(b)
        if pa is None or pb is None:
            return None
        return abs(pa.x - pb.x)

    return measure


def vertical_gap(a: str, b: str) -> Measure:
    """Absolute Y distance between two landmarks on the tracked side."""

    def measure(ctx: FrameContext) -> Optional[float]:
        pa, pb = ctx.point(a), ctx.point(b)
        if pa is None or pb is None:
            return None
        return abs(pa.y - pb.y)

    return measure


def worst_side_horizontal_gap(a: str, b: str) -> Measure:
    """Larger of the left and right X gaps between two landmarks."""

    def measure(ctx: FrameContext) -> Optional[float]:
        gaps = []
        for pick in (ctx.left, ctx.right):
            pa, pb = pick(a), pick(b)
            if pa is not None and pb is not None:
                gaps.append(abs(pa.x - pb.x))
        return max(gaps) if gaps else None

    return measure


def cross_distance(a: str, b: str) -> Measure:
    """Smaller of left ``a`` to right ``b`` and right ``a`` to left ``b`` distances."""

    def measure(ctx: FrameContext) -> Optional[float]:
        values = [
            d
            for d in (
                distance(ctx.left(a), ctx.right(b)),
                distance(ctx.right(a), ctx.left(b)),
            )
            if d is not None
        ]
        return min(values) if values else None

    return measure


def in_phase(phase: str, measure: Measure) -> Measure:
    """Only measure while the machine is in ``phase``."""

    def gated(ctx: FrameContext) -> Optional[float]:
        if ctx.phase != phase:
            return None
        return measure(ctx)

    return gated


def constant(value: float) -> Measure:
    def measure(ctx: FrameContext) -> Optional[float]:
        return value

    return measure


def current_metric(ctx: FrameContext) -> Optional[float]:
    """The controlling metric already computed for this frame."""
    return ctx.metric
