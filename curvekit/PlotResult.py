"""Immutable result of one plotting pipeline run.

A ``PlotResult`` captures everything a renderer or inspection UI needs from a
single evaluation: the sampled parameters, the flagged points, the polyline
segments, and the inputs that determined them (mode, classification, domain,
generation). It also answers nearest-point queries for selection UIs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .classifier import ClassificationResult
from .config import DEFAULT_CONFIG, PlotConfig
from .domain import Mode
from .evaluator import SamplePoint
from .path_builder import PathSegment


@dataclass(frozen=True)
class PickedPoint:
    """Nearest valid sample to a device-space query.

    Parameters
    ----------
    param : float
        Sampled parameter value.
    device_x, device_y : float
        Device coordinates of the sample.
    x, y : float
        Math coordinates of the sample, for display.
    distance : float
        Device-space distance from the query point.
    """

    param: float
    device_x: float
    device_y: float
    x: float
    y: float
    distance: float


@dataclass(frozen=True)
class PlotResult:
    """Immutable record of one pipeline run.

    Parameters
    ----------
    formula_id : str
        Identifier of the plotted formula.
    generation : int
        Caller-supplied request generation, echoed back unchanged.
    mode : Mode
        Fidelity the samples were produced with.
    classification : ClassificationResult
        Strategy chosen for the formula.
    domain : tuple[float, float] or None
        Sampled parameter interval (``None`` when nothing was visible).
    points : tuple[SamplePoint, ...]
        All evaluated samples in order, valid or not.
    segments : tuple[PathSegment, ...]
        Drawable polylines in order.
    config : PlotConfig
        Configuration the run used; supplies the default pick radius.
    """

    formula_id: str
    generation: int
    mode: Mode
    classification: ClassificationResult
    domain: Optional[Tuple[float, float]]
    points: Tuple[SamplePoint, ...]
    segments: Tuple[PathSegment, ...]
    config: PlotConfig = field(default=DEFAULT_CONFIG, repr=False, compare=False)

    @property
    def params(self) -> np.ndarray:
        """Return the sampled parameters as a read-only array."""
        values = np.array([p.param for p in self.points], dtype=float)
        values.flags.writeable = False
        return values

    @property
    def sample_count(self) -> int:
        return len(self.points)

    def is_stale(self, latest_generation: int) -> bool:
        """Return True when a newer generation has been requested."""
        return self.generation < latest_generation

    def pick(
        self,
        device_x: float,
        device_y: float,
        max_distance: Optional[float] = None,
    ) -> Optional[PickedPoint]:
        """Return the nearest valid point within ``max_distance``; see :func:`pick_point`.

        ``max_distance`` defaults to the run's ``config.pick_distance``.
        """
        return pick_point(self.points, device_x, device_y, max_distance, config=self.config)

    def __repr__(self) -> str:
        return (
            f"PlotResult(formula_id={self.formula_id!r}, generation={self.generation}, "
            f"mode={self.mode.value!r}, classification={self.classification.tag.value!r}, "
            f"points={len(self.points)}, segments={len(self.segments)})"
        )


def pick_point(
    points: Tuple[SamplePoint, ...],
    device_x: float,
    device_y: float,
    max_distance: Optional[float] = None,
    *,
    config: PlotConfig = DEFAULT_CONFIG,
) -> Optional[PickedPoint]:
    """Return the valid sample nearest to ``(device_x, device_y)``.

    Returns ``None`` when no valid sample lies within ``max_distance`` device
    units (``config.pick_distance`` when omitted). Ties resolve to the
    earliest sample.
    """
    if max_distance is None:
        max_distance = config.pick_distance
    candidates = [p for p in points if p.valid]
    if not candidates:
        return None
    coords = np.array([(p.device_x, p.device_y) for p in candidates], dtype=float)
    distances = np.hypot(coords[:, 0] - float(device_x), coords[:, 1] - float(device_y))
    index = int(np.argmin(distances))
    distance = float(distances[index])
    if distance > max_distance:
        return None
    best = candidates[index]
    return PickedPoint(
        param=best.param,
        device_x=best.device_x,
        device_y=best.device_y,
        x=best.x,
        y=best.y,
        distance=distance,
    )


__all__ = ["PickedPoint", "PlotResult", "pick_point"]
