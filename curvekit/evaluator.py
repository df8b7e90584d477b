"""Vectorized evaluation of sampled parameters into flagged device points.

The evaluator runs the expression over the whole parameter array at once,
scales and clamps the output, flags validity, and maps math coordinates to
device coordinates with the y axis inverted. Undefined results never raise;
they become points with ``valid=False`` and ``nan`` placeholder coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

import numpy as np

from .classifier import ClassificationResult, STANDARD
from .config import DEFAULT_CONFIG, PlotConfig
from .domain import Viewport
from .expression import ExpressionModel


@dataclass(frozen=True)
class SamplePoint:
    """One evaluated sample.

    Parameters
    ----------
    param : float
        Sampled parameter (``x``, ``t`` or ``theta``).
    device_x, device_y : float
        Device coordinates (``nan`` when invalid).
    valid : bool
        Defined, finite and within the accepted domain.
    x, y : float
        Math-space coordinates after scaling and clamping (``nan`` when invalid).
    """

    param: float
    device_x: float
    device_y: float
    valid: bool
    x: float = float("nan")
    y: float = float("nan")


@dataclass(frozen=True)
class EvaluatedCurve:
    """Column-oriented evaluation result shared by the pipeline stages."""

    params: np.ndarray
    x: np.ndarray
    y: np.ndarray
    device_x: np.ndarray
    device_y: np.ndarray
    valid: np.ndarray

    def __len__(self) -> int:
        return int(self.params.size)

    def points(self) -> Tuple[SamplePoint, ...]:
        """Return the curve as a tuple of :class:`SamplePoint` records."""
        return tuple(
            SamplePoint(
                param=float(p),
                device_x=float(dx),
                device_y=float(dy),
                valid=bool(ok),
                x=float(mx),
                y=float(my),
            )
            for p, dx, dy, ok, mx, my in zip(
                self.params, self.device_x, self.device_y, self.valid, self.x, self.y
            )
        )


def clamp_magnitude(values: np.ndarray, bound: float) -> np.ndarray:
    """Clip finite entries of ``values`` to ``[-bound, bound]``."""
    return np.where(np.isfinite(values), np.clip(values, -bound, bound), values)


def _to_device(
    x: np.ndarray,
    y: np.ndarray,
    valid: np.ndarray,
    viewport: Viewport,
) -> Tuple[np.ndarray, np.ndarray]:
    scale = viewport.units_per_math_unit
    # np.where evaluates both branches, including overflowing ones
    with np.errstate(all="ignore"):
        device_x = np.where(valid, viewport.origin[0] + x * scale, np.nan)
        device_y = np.where(valid, viewport.origin[1] - y * scale, np.nan)
    return device_x, device_y


def _curve(params: np.ndarray, x: np.ndarray, y: np.ndarray, valid: np.ndarray, viewport: Viewport) -> EvaluatedCurve:
    x = np.where(valid, x, np.nan)
    y = np.where(valid, y, np.nan)
    device_x, device_y = _to_device(x, y, valid, viewport)
    return EvaluatedCurve(params=params, x=x, y=y, device_x=device_x, device_y=device_y, valid=valid)


def evaluate_explicit(
    model: ExpressionModel,
    params: np.ndarray,
    viewport: Viewport,
    scale_factor: float = 1.0,
    classification: ClassificationResult = STANDARD,
    bindings: Optional[Mapping[str, float]] = None,
    *,
    config: PlotConfig = DEFAULT_CONFIG,
) -> EvaluatedCurve:
    """Evaluate ``y = f(x)`` at each sampled ``x``.

    ``y' = f(x) * scale_factor`` is clamped to ``config.max_magnitude`` and
    mapped with ``device_y = origin_y - y' * units_per_math_unit``. For an
    unguarded logarithm-like classification only ``x > 0`` is valid.
    """
    params = np.asarray(params, dtype=float)
    raw = model.evaluate_array(params, bindings)
    with np.errstate(all="ignore"):
        scaled = raw * float(scale_factor)
    valid = np.isfinite(scaled)
    if classification.requires_positive_param:
        valid &= params > 0
    y = clamp_magnitude(scaled, config.max_magnitude)
    return _curve(params, params, y, valid, viewport)


def evaluate_parametric(
    x_model: ExpressionModel,
    y_model: ExpressionModel,
    params: np.ndarray,
    viewport: Viewport,
    scale_factor: float = 1.0,
    bindings: Optional[Mapping[str, float]] = None,
    *,
    config: PlotConfig = DEFAULT_CONFIG,
) -> EvaluatedCurve:
    """Evaluate ``x = f(t)``, ``y = g(t) * scale_factor`` at each ``t``."""
    params = np.asarray(params, dtype=float)
    x = x_model.evaluate_array(params, bindings)
    with np.errstate(all="ignore"):
        y = y_model.evaluate_array(params, bindings) * float(scale_factor)
    valid = np.isfinite(x) & np.isfinite(y)
    x = clamp_magnitude(x, config.max_magnitude)
    y = clamp_magnitude(y, config.max_magnitude)
    return _curve(params, x, y, valid, viewport)


def evaluate_polar(
    model: ExpressionModel,
    params: np.ndarray,
    viewport: Viewport,
    scale_factor: float = 1.0,
    bindings: Optional[Mapping[str, float]] = None,
    *,
    config: PlotConfig = DEFAULT_CONFIG,
) -> EvaluatedCurve:
    """Evaluate ``r = f(theta) * scale_factor`` and convert to cartesian."""
    params = np.asarray(params, dtype=float)
    with np.errstate(all="ignore"):
        r = model.evaluate_array(params, bindings) * float(scale_factor)
        x = r * np.cos(params)
        y = r * np.sin(params)
    valid = np.isfinite(x) & np.isfinite(y)
    x = clamp_magnitude(x, config.max_magnitude)
    y = clamp_magnitude(y, config.max_magnitude)
    return _curve(params, x, y, valid, viewport)


__all__ = [
    "EvaluatedCurve",
    "SamplePoint",
    "clamp_magnitude",
    "evaluate_explicit",
    "evaluate_parametric",
    "evaluate_polar",
]
