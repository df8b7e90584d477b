"""Pen-lift polyline construction from flagged device points.

The builder walks points in order with a pen that is either down (extending
the current segment) or up. A point extends the segment only when it is
valid, lies within the canvas grown by a margin, and does not jump vertically
by more than the discontinuity threshold relative to the previous accepted
point. A jump closes the segment; the jumping point starts the next one.
Segments with fewer than two points are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .classifier import Classification, ClassificationResult, STANDARD
from .config import DEFAULT_CONFIG, PlotConfig
from .domain import Viewport
from .evaluator import SamplePoint


@dataclass(frozen=True)
class PathSegment:
    """Ordered, unbroken run of at least two valid points."""

    points: Tuple[SamplePoint, ...]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[SamplePoint]:
        return iter(self.points)

    @property
    def param_range(self) -> Tuple[float, float]:
        """Return the first and last sampled parameter of the segment."""
        return self.points[0].param, self.points[-1].param

    def device_xy(self) -> np.ndarray:
        """Return an ``(n, 2)`` array of device coordinates."""
        return np.array([(p.device_x, p.device_y) for p in self.points], dtype=float)


def max_jump_for(classification: ClassificationResult, config: PlotConfig = DEFAULT_CONFIG) -> float:
    """Return the discontinuity threshold (device units) for a classification."""
    if classification.tag is Classification.ASYMPTOTIC_PERIODIC:
        return config.asymptotic_max_jump
    return config.max_jump


def build_segments(
    points: Sequence[SamplePoint],
    viewport: Viewport,
    classification: ClassificationResult = STANDARD,
    *,
    max_jump: Optional[float] = None,
    config: PlotConfig = DEFAULT_CONFIG,
) -> List[PathSegment]:
    """Split ``points`` into drawable polyline segments.

    Parameters
    ----------
    points : sequence of SamplePoint
        Points in sampling order.
    viewport : Viewport
        Supplies the device canvas extent.
    classification : ClassificationResult
        Selects the default discontinuity threshold.
    max_jump : float, optional
        Explicit threshold override in device units.

    Returns
    -------
    list of PathSegment
        In input order; every point is valid and inside the expanded canvas.
    """
    threshold = max_jump_for(classification, config) if max_jump is None else float(max_jump)
    x_min, y_min, x_max, y_max = viewport.expanded_bounds(config.canvas_margin)

    segments: List[PathSegment] = []
    current: List[SamplePoint] = []

    def lift() -> None:
        if len(current) >= 2:
            segments.append(PathSegment(tuple(current)))
        current.clear()

    for point in points:
        inside = (
            point.valid
            and x_min <= point.device_x <= x_max
            and y_min <= point.device_y <= y_max
        )
        if not inside:
            lift()
            continue
        if current and abs(point.device_y - current[-1].device_y) > threshold:
            lift()
        current.append(point)
    lift()
    return segments


__all__ = ["PathSegment", "build_segments", "max_jump_for"]
