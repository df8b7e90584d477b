from __future__ import annotations

import math

import numpy as np
import pytest

from curvekit.classifier import Classification, ClassificationResult, STANDARD
from curvekit.config import DEFAULT_CONFIG
from curvekit.domain import Mode
from curvekit.sampler import (
    base_sample_count,
    dedupe_sorted,
    oscillation_multiplier,
    sample,
    sample_cap,
    singular_samples,
)

SINGULAR = ClassificationResult(tag=Classification.SINGULAR_AT_ZERO, pole_at_zero=True)
GUARDED_POLE = ClassificationResult(negative_guard=True, pole_at_zero=True)


def _fast(frequency: float) -> ClassificationResult:
    return ClassificationResult(tag=Classification.HIGH_FREQUENCY_OSCILLATORY, frequency=frequency)


def _strictly_ascending(values: np.ndarray) -> bool:
    return bool(np.all(np.diff(values) > 0))


def test_standard_samples_are_evenly_spaced() -> None:
    values = sample((0.0, 1.0), STANDARD, 100)
    assert values.size == 101
    assert values[0] == 0.0
    assert values[-1] == 1.0
    assert np.allclose(np.diff(values), 0.01)


def test_sample_target_is_clamped() -> None:
    assert sample((0.0, 1.0), STANDARD, 5).size == DEFAULT_CONFIG.min_samples + 1
    assert sample((0.0, 1.0), STANDARD, 10**6).size == DEFAULT_CONFIG.max_samples + 1


def test_empty_domain_yields_no_samples() -> None:
    assert sample(None).size == 0
    assert sample((1.0, 1.0)).size == 0


def test_interactive_mode_divides_the_count() -> None:
    assert base_sample_count(500, Mode.SETTLED) == 500
    assert base_sample_count(500, Mode.INTERACTIVE) == 100
    assert sample((0.0, 1.0), STANDARD, 500, Mode.INTERACTIVE).size == 101


def test_singular_samples_hug_zero_from_the_positive_side() -> None:
    values = sample((-10.0, 10.0), SINGULAR, 500)
    assert _strictly_ascending(values)
    assert values[0] > 0.0
    assert values[0] <= DEFAULT_CONFIG.singular_epsilon
    assert values[-1] == pytest.approx(10.0)
    assert np.count_nonzero(values < 1e-4) >= 30


def test_singular_samples_fall_back_to_linear_away_from_zero() -> None:
    values = singular_samples((2.0, 5.0), 100)
    assert values.size == 101
    assert np.allclose(np.diff(values), 0.03)


def test_guarded_pole_inserts_zero() -> None:
    values = sample((-1.0, 2.0), GUARDED_POLE, 100)
    assert 0.0 in values
    assert values.size == 102
    assert _strictly_ascending(values)


def test_guarded_pole_outside_domain_changes_nothing() -> None:
    assert sample((1.0, 2.0), GUARDED_POLE, 100).size == 101


def test_high_frequency_count_is_scaled_and_capped() -> None:
    domain = (0.0, 2.0 * math.pi)
    assert sample(domain, _fast(10.0), 100).size == DEFAULT_CONFIG.max_samples + 1
    assert sample(domain, _fast(10.0), 100, Mode.INTERACTIVE).size == sample_cap(Mode.INTERACTIVE) + 1


def test_high_frequency_short_window_keeps_base_count() -> None:
    assert oscillation_multiplier(1.5, 0.1) == 1
    assert sample((0.0, 0.1), _fast(1.5), 100).size == 101


def test_oscillation_multiplier() -> None:
    assert oscillation_multiplier(3.0, 1.0) == 10
    assert oscillation_multiplier(0.01, 1.0) == 1
    assert oscillation_multiplier(float("inf"), 1.0) == 1


@pytest.mark.parametrize(
    "classification",
    [STANDARD, SINGULAR, GUARDED_POLE, ClassificationResult(tag=Classification.HIGH_FREQUENCY_OSCILLATORY, frequency=3.0)],
)
def test_interactive_is_never_denser_than_settled(classification: ClassificationResult) -> None:
    settled = sample((-10.0, 10.0), classification, 500, Mode.SETTLED)
    interactive = sample((-10.0, 10.0), classification, 500, Mode.INTERACTIVE)
    assert interactive.size < settled.size


def test_dedupe_sorted() -> None:
    values = dedupe_sorted(np.array([3.0, 1.0, 2.0, 1.0 + 1e-15, np.nan]))
    assert values.tolist() == [1.0, 2.0, 3.0]
