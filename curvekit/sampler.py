"""Parameter sampling policies keyed by classification and mode.

Every policy returns a strictly ascending ``numpy.ndarray`` without
near-duplicates:

- standard: ``n + 1`` evenly spaced values,
- singular at zero: a geometric progression from a small positive epsilon
  plus high-density micro-bands next to zero,
- high frequency: standard spacing with the count scaled to roughly
  ``samples_per_oscillation`` points per period.

Interactive mode divides the base count before any multiplier is applied.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from .classifier import Classification, ClassificationResult, STANDARD
from .config import DEFAULT_CONFIG, PlotConfig
from .domain import Mode, Range

_RELATIVE_TOLERANCE = 1e-12


def base_sample_count(sample_target: int, mode: Mode, config: PlotConfig = DEFAULT_CONFIG) -> int:
    """Return the clamped sample count before classification multipliers."""
    count = config.clamp_samples(sample_target)
    if mode is Mode.INTERACTIVE:
        count = max(1, count // config.interactive_divisor)
    return count


def sample_cap(mode: Mode, config: PlotConfig = DEFAULT_CONFIG) -> int:
    """Return the largest count any policy may produce for ``mode``."""
    if mode is Mode.INTERACTIVE:
        return max(1, config.max_samples // config.interactive_divisor)
    return config.max_samples


def oscillation_multiplier(frequency: float, width: float, config: PlotConfig = DEFAULT_CONFIG) -> int:
    """Return ``max(1, ceil(k * frequency * width / 2π))``."""
    cycles = config.samples_per_oscillation * frequency * width / (2.0 * math.pi)
    if not math.isfinite(cycles):
        return 1
    return max(1, math.ceil(cycles))


def dedupe_sorted(values: np.ndarray) -> np.ndarray:
    """Sort ``values`` and drop entries within floating tolerance of their predecessor."""
    ordered = np.sort(np.asarray(values, dtype=float))
    ordered = ordered[np.isfinite(ordered)]
    if ordered.size < 2:
        return ordered
    keep = [0]
    for i in range(1, ordered.size):
        last = ordered[keep[-1]]
        tolerance = _RELATIVE_TOLERANCE * max(1.0, abs(last), abs(ordered[i]))
        if ordered[i] - last > tolerance:
            keep.append(i)
    return ordered[keep]


def linear_samples(domain: Range, count: int) -> np.ndarray:
    """Return ``count + 1`` evenly spaced values across ``domain``."""
    return np.linspace(domain[0], domain[1], num=int(count) + 1)


def _with_zero(values: np.ndarray, domain: Range) -> np.ndarray:
    if not domain[0] < 0.0 < domain[1]:
        return values
    # the exact pole wins over a rounded neighbour
    values = values[np.abs(values) > _RELATIVE_TOLERANCE]
    return dedupe_sorted(np.append(values, 0.0))


def singular_samples(domain: Range, count: int, config: PlotConfig = DEFAULT_CONFIG) -> np.ndarray:
    """Return geometric samples hugging zero from the positive side.

    Falls back to linear spacing when the range does not reach down to the
    singular epsilon.
    """
    low, high = domain
    epsilon = config.singular_epsilon
    if low > epsilon or high <= epsilon:
        return linear_samples(domain, count)
    start = max(low, epsilon)
    values = [np.geomspace(start, high, num=int(count) + 1)]
    for band_low, band_high, band_count in config.micro_bands:
        band = np.geomspace(band_low, band_high, num=band_count)
        values.append(band[(band > low) & (band <= high)])
    return dedupe_sorted(np.concatenate(values))


def sample(
    domain: Optional[Range],
    classification: ClassificationResult = STANDARD,
    sample_target: int = 500,
    mode: Mode = Mode.SETTLED,
    *,
    config: PlotConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """Return ascending parameter values for ``domain``.

    Parameters
    ----------
    domain : tuple[float, float] or None
        Interval to sample; ``None`` (an empty intersection) yields no samples.
    classification : ClassificationResult
        Strategy selector.
    sample_target : int
        Requested count, clamped to the configured bounds.
    mode : Mode
        Interactive mode divides the count before multipliers.

    Examples
    --------
    >>> sample((0.0, 1.0), sample_target=100).size
    101
    """
    if domain is None or not domain[0] < domain[1]:
        return np.empty(0, dtype=float)

    count = base_sample_count(sample_target, mode, config)
    cap = sample_cap(mode, config)
    tag = classification.tag

    if tag is Classification.SINGULAR_AT_ZERO and not classification.negative_guard:
        return singular_samples(domain, count, config)

    if tag is Classification.HIGH_FREQUENCY_OSCILLATORY:
        width = domain[1] - domain[0]
        count = min(count * oscillation_multiplier(classification.frequency, width, config), cap)

    values = linear_samples(domain, count)
    if classification.pole_at_zero:
        values = _with_zero(values, domain)
    return values


__all__ = [
    "base_sample_count",
    "dedupe_sorted",
    "linear_samples",
    "oscillation_multiplier",
    "sample",
    "sample_cap",
    "singular_samples",
]
