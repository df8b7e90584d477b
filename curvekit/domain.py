"""Viewport model and math-space visible-range mapping.

A :class:`Viewport` describes where the math origin sits on the device canvas,
how many device units make one math unit, and the canvas extent. The mapper
turns that into the parameter interval worth sampling.

Tangent-like curves are the exception: their interval is the single branch
around the origin, independent of panning, so one readable branch is drawn
instead of a stack of near-vertical asymptote segments.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .classifier import Classification, ClassificationResult
from .config import DEFAULT_CONFIG, PlotConfig

Range = Tuple[float, float]


class Mode(enum.Enum):
    """Sampling fidelity requested for one evaluation."""

    SETTLED = "settled"
    INTERACTIVE = "interactive"


@dataclass(frozen=True)
class Viewport:
    """Device-space placement of the math coordinate system.

    Parameters
    ----------
    origin : tuple[float, float]
        Device point that maps to math ``(0, 0)``.
    units_per_math_unit : float
        Device units per math unit (> 0).
    extent : tuple[float, float]
        Device canvas ``(width, height)``.
    mode : Mode
        Fidelity to use when the caller does not pass one explicitly.
    """

    origin: Tuple[float, float]
    units_per_math_unit: float
    extent: Tuple[float, float] = (1000.0, 800.0)
    mode: Mode = Mode.SETTLED

    def __post_init__(self) -> None:
        if not (math.isfinite(self.units_per_math_unit) and self.units_per_math_unit > 0):
            raise ValueError("units_per_math_unit must be a finite number > 0")
        width, height = self.extent
        if width <= 0 or height <= 0:
            raise ValueError("extent must have positive width and height")
        object.__setattr__(self, "origin", (float(self.origin[0]), float(self.origin[1])))
        object.__setattr__(self, "extent", (float(width), float(height)))
        object.__setattr__(self, "units_per_math_unit", float(self.units_per_math_unit))

    def to_math_x(self, device_x: float) -> float:
        """Map a device x coordinate to math space."""
        return (device_x - self.origin[0]) / self.units_per_math_unit

    def to_math_y(self, device_y: float) -> float:
        """Map a device y coordinate to math space (y axis inverted)."""
        return (self.origin[1] - device_y) / self.units_per_math_unit

    def to_device(self, x: float, y: float) -> Tuple[float, float]:
        """Map a math point to device space (y axis inverted)."""
        return (
            self.origin[0] + x * self.units_per_math_unit,
            self.origin[1] - y * self.units_per_math_unit,
        )

    def expanded_bounds(self, margin: float) -> Tuple[float, float, float, float]:
        """Return ``(x_min, y_min, x_max, y_max)`` grown by ``margin`` device units."""
        width, height = self.extent
        return (-margin, -margin, width + margin, height + margin)


def padding_for(mode: Mode, config: PlotConfig = DEFAULT_CONFIG) -> float:
    """Return the math-unit padding used for ``mode``."""
    if mode is Mode.INTERACTIVE:
        return config.interactive_padding
    return config.settled_padding


def tangent_branch(linear: Optional[Tuple[float, float]], epsilon: float) -> Range:
    """Return the branch of ``tan(a*x + b)`` containing ``x = 0``.

    The interval keeps ``epsilon`` (measured in the tangent's argument) away
    from both poles. Without a linear form the branch of ``tan(x)`` is used.
    """
    a, b = linear if linear is not None else (1.0, 0.0)
    half = math.pi / 2
    n = math.floor((b + half) / math.pi)
    u_low = n * math.pi - half + epsilon
    u_high = n * math.pi + half - epsilon
    ends = sorted(((u_low - b) / a, (u_high - b) / a))
    return ends[0], ends[1]


def intersect(first: Range, second: Range) -> Optional[Range]:
    """Return the overlap of two closed intervals, or ``None``."""
    low, high = max(first[0], second[0]), min(first[1], second[1])
    if low >= high:
        return None
    return low, high


def visible_range(
    viewport: Viewport,
    declared_domain: Range,
    padding: float,
    classification: Optional[ClassificationResult] = None,
    *,
    config: PlotConfig = DEFAULT_CONFIG,
) -> Optional[Range]:
    """Return the math-space interval to sample, or ``None`` if empty.

    Parameters
    ----------
    viewport : Viewport
        Current device placement.
    declared_domain : tuple[float, float]
        The formula's outer clamp.
    padding : float
        Math units added on each side of the visible span.
    classification : ClassificationResult, optional
        Tangent-like classifications ignore the viewport and return one branch.

    Examples
    --------
    >>> vp = Viewport(origin=(400, 300), units_per_math_unit=50, extent=(800, 600))
    >>> visible_range(vp, (-10, 10), 1.0)
    (-9.0, 9.0)
    """
    if classification is not None and classification.tag is Classification.ASYMPTOTIC_PERIODIC:
        branch = tangent_branch(classification.linear_form, config.tangent_epsilon)
        return intersect(branch, declared_domain)

    width = viewport.extent[0]
    low = viewport.to_math_x(0.0) - padding
    high = viewport.to_math_x(width) + padding
    return intersect((low, high), declared_domain)


__all__ = [
    "Mode",
    "Range",
    "Viewport",
    "intersect",
    "padding_for",
    "tangent_branch",
    "visible_range",
]
