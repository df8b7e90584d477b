from __future__ import annotations

import pytest

from curvekit.config import DEFAULT_CONFIG, PlotConfig


def test_defaults() -> None:
    assert DEFAULT_CONFIG.max_magnitude == 1000.0
    assert DEFAULT_CONFIG.canvas_margin == 1000.0
    assert (DEFAULT_CONFIG.max_jump, DEFAULT_CONFIG.asymptotic_max_jump) == (100.0, 50.0)
    assert (DEFAULT_CONFIG.settled_padding, DEFAULT_CONFIG.interactive_padding) == (10.0, 5.0)
    assert DEFAULT_CONFIG.interaction_window_ms == 300.0


def test_replace_validates_and_coerces() -> None:
    cfg = DEFAULT_CONFIG.replace(max_jump=80)
    assert cfg.max_jump == 80.0
    assert isinstance(cfg.max_jump, float)
    assert DEFAULT_CONFIG.max_jump == 100.0
    with pytest.raises(TypeError, match="Unknown PlotConfig field"):
        DEFAULT_CONFIG.replace(jump=1)
    with pytest.raises(ValueError):
        DEFAULT_CONFIG.replace(max_jump=0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_samples": 0},
        {"min_samples": 10, "max_samples": 5},
        {"tangent_epsilon": 2.0},
        {"micro_bands": ((1e-4, 1e-6, 30),)},
        {"interactive_divisor": 0},
    ],
)
def test_invalid_configs(kwargs) -> None:
    with pytest.raises(ValueError):
        PlotConfig(**kwargs)


def test_clamp_samples() -> None:
    assert DEFAULT_CONFIG.clamp_samples(1) == 100
    assert DEFAULT_CONFIG.clamp_samples(750) == 750
    assert DEFAULT_CONFIG.clamp_samples(5000) == 2000
