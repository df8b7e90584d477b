"""Tuning defaults shared by the curve-sampling pipeline.

Purpose
-------
Every constant the pipeline uses to trade fidelity against latency lives on a
single immutable :class:`PlotConfig`. The values are empirically chosen UI
tuning numbers (magnitude clamp, pen-lift jump thresholds, padding), so they
are exposed as overridable defaults rather than hard-coded module constants.

Examples
--------
>>> from curvekit.config import DEFAULT_CONFIG
>>> DEFAULT_CONFIG.max_jump
100.0
>>> DEFAULT_CONFIG.replace(max_jump=80).max_jump
80.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace as _dc_replace
from typing import Any, Tuple

DEFAULT_EXPLICIT_DOMAIN: Tuple[float, float] = (-10000.0, 10000.0)
DEFAULT_PARAMETER_DOMAIN: Tuple[float, float] = (0.0, 2.0 * math.pi)
DEFAULT_SAMPLE_TARGET = 500

MicroBand = Tuple[float, float, int]


@dataclass(frozen=True)
class PlotConfig:
    """Immutable bundle of sampling, clamping and pen-lift defaults.

    Parameters
    ----------
    min_samples, max_samples : int
        Bounds applied to a formula's requested sample count.
    max_magnitude : float
        Largest absolute math-space output kept after scaling; larger values
        are clamped so a single spike cannot destroy the visible scale.
    canvas_margin : float
        Device units a segment may extend past the visible canvas.
    max_jump, asymptotic_max_jump : float
        Device-space vertical jump treated as a discontinuity.
    settled_padding, interactive_padding : float
        Math units added on each side of the visible range.
    interactive_divisor : int
        Sample-count divisor used while the viewport is moving.
    tangent_epsilon : float
        Distance kept from the poles of a tangent-like branch.
    singular_epsilon : float
        Lower bound of the geometric progression for logarithm-like curves.
    micro_bands : tuple of (low, high, count)
        Extra geometric bands injected next to zero for logarithm-like curves.
    samples_per_oscillation : int
        Target density for high-frequency trigonometric curves.
    interaction_window_ms : float
        Requests closer together than this run in interactive mode.
    pick_distance : float
        Default search radius (device units) for point picking.
    """

    min_samples: int = 100
    max_samples: int = 2000
    max_magnitude: float = 1000.0
    canvas_margin: float = 1000.0
    max_jump: float = 100.0
    asymptotic_max_jump: float = 50.0
    settled_padding: float = 10.0
    interactive_padding: float = 5.0
    interactive_divisor: int = 5
    tangent_epsilon: float = 0.1
    singular_epsilon: float = 1e-5
    micro_bands: Tuple[MicroBand, ...] = ((1e-6, 1e-4, 30), (1e-5, 1e-1, 30))
    samples_per_oscillation: int = 20
    interaction_window_ms: float = 300.0
    pick_distance: float = 15.0

    def __post_init__(self) -> None:
        if self.min_samples < 1:
            raise ValueError("min_samples must be >= 1")
        if self.max_samples < self.min_samples:
            raise ValueError("max_samples must be >= min_samples")
        if self.interactive_divisor < 1:
            raise ValueError("interactive_divisor must be >= 1")
        if self.samples_per_oscillation < 1:
            raise ValueError("samples_per_oscillation must be >= 1")
        for name in (
            "max_magnitude",
            "max_jump",
            "asymptotic_max_jump",
            "interaction_window_ms",
            "pick_distance",
        ):
            if not getattr(self, name) > 0:
                raise ValueError(f"{name} must be > 0")
        for name in ("canvas_margin", "settled_padding", "interactive_padding"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if not 0 < self.tangent_epsilon < math.pi / 2:
            raise ValueError("tangent_epsilon must lie in (0, pi/2)")
        if not self.singular_epsilon > 0:
            raise ValueError("singular_epsilon must be > 0")
        for low, high, count in self.micro_bands:
            if not 0 < low < high or count < 2:
                raise ValueError(f"invalid micro band: {(low, high, count)!r}")

    def replace(self, **changes: Any) -> "PlotConfig":
        """Return a validated copy with ``changes`` applied."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise TypeError(f"Unknown PlotConfig field(s): {', '.join(unknown)}")
        coerced = {
            key: float(value) if isinstance(getattr(self, key), float) else value
            for key, value in changes.items()
        }
        return _dc_replace(self, **coerced)

    def clamp_samples(self, samples: int) -> int:
        """Clamp a requested sample count to ``[min_samples, max_samples]``."""
        return min(max(int(samples), self.min_samples), self.max_samples)


DEFAULT_CONFIG = PlotConfig()


__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_EXPLICIT_DOMAIN",
    "DEFAULT_PARAMETER_DOMAIN",
    "DEFAULT_SAMPLE_TARGET",
    "PlotConfig",
]
