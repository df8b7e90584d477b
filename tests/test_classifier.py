from __future__ import annotations

import math

import pytest

from curvekit.classifier import (
    Classification,
    ClassificationResult,
    STANDARD,
    classify,
    combine,
    constant_value,
    is_negative_guarded,
    linear_form,
    oscillation_frequency,
)
from curvekit.expression import parse, parse_parametric


def test_tangent_of_variable_is_asymptotic_periodic() -> None:
    result = classify(parse("tan(x)"))
    assert result.tag is Classification.ASYMPTOTIC_PERIODIC
    assert result.linear_form == (1.0, 0.0)


def test_tangent_of_linear_argument_carries_linear_form() -> None:
    result = classify(parse("3*tan(2*x + 1)"))
    assert result.tag is Classification.ASYMPTOTIC_PERIODIC
    assert result.linear_form == (2.0, 1.0)


def test_tangent_of_nonlinear_argument_degrades_to_standard() -> None:
    assert classify(parse("tan(x^2)")).tag is Classification.STANDARD


@pytest.mark.parametrize("text", ["log(x)", "log10(x)", "log2(x)", "ln(2*x)", "log(x + 5)"])
def test_unguarded_logarithm_is_singular(text: str) -> None:
    result = classify(parse(text))
    assert result.tag is Classification.SINGULAR_AT_ZERO
    assert result.requires_positive_param
    assert result.pole_at_zero


@pytest.mark.parametrize("text", ["log(abs(x))", "log(-x)", "ln(abs(x)) + 1"])
def test_guarded_logarithm_is_standard_with_pole(text: str) -> None:
    result = classify(parse(text))
    assert result.tag is Classification.STANDARD
    assert result.negative_guard
    assert result.pole_at_zero
    assert not result.requires_positive_param


def test_logarithm_of_constant_is_ignored() -> None:
    assert classify(parse("log(2) * x")) == STANDARD


@pytest.mark.parametrize(
    ("text", "frequency"),
    [
        ("sin(10*x)", 10.0),
        ("cos(x*3)", 3.0),
        ("sin(2*pi*x)", 2.0 * math.pi),
        ("2*sin(-4*x)", 4.0),
    ],
)
def test_fast_trigonometric_is_high_frequency(text: str, frequency: float) -> None:
    result = classify(parse(text))
    assert result.tag is Classification.HIGH_FREQUENCY_OSCILLATORY
    assert result.frequency == pytest.approx(frequency)


@pytest.mark.parametrize("text", ["sin(x)", "sin(0.5*x)", "x*x", "exp(x)", "1/x", "sin(x) * 10"])
def test_everything_else_is_standard(text: str) -> None:
    result = classify(parse(text))
    assert result.tag is Classification.STANDARD
    assert result.frequency == 1.0


def test_priority_prefers_tangent_over_logarithm() -> None:
    result = classify(parse("tan(x) + log(x)"))
    assert result.tag is Classification.ASYMPTOTIC_PERIODIC
    assert result.pole_at_zero


def test_priority_prefers_logarithm_over_oscillation() -> None:
    assert classify(parse("log(x) + sin(10*x)")).tag is Classification.SINGULAR_AT_ZERO


def test_parameters_are_not_constant_factors() -> None:
    model = parse("sin(k*x)", parameters=("k",))
    assert classify(model).tag is Classification.STANDARD


def test_linear_form_helpers() -> None:
    assert linear_form(parse("3 - x/2").root) == (-0.5, 3.0)
    assert linear_form(parse("-(x + pi)").root) == pytest.approx((-1.0, -math.pi))
    assert linear_form(parse("5").root) is None
    assert linear_form(parse("x*x").root) is None


def test_constant_value() -> None:
    assert constant_value(parse("2^3").root) == 8.0
    assert constant_value(parse("x + 1").root) is None
    assert constant_value(parse("1/0").root) is None


def test_negative_guard_and_frequency_helpers() -> None:
    assert is_negative_guarded(parse("abs(x) + 1").root)
    assert not is_negative_guarded(parse("x + 1").root)
    assert oscillation_frequency(parse("7*x").root) == 7.0
    assert oscillation_frequency(parse("x").root) == 1.0


@pytest.mark.parametrize(
    ("text", "frequency"),
    [
        ("sin(x*2*3)", 6.0),
        ("cos(2*(3*x + 1))", 6.0),
        ("sin(4*x/2 + 2*x)", 4.0),
    ],
)
def test_frequency_multiplies_chained_factors(text: str, frequency: float) -> None:
    result = classify(parse(text))
    assert result.tag is Classification.HIGH_FREQUENCY_OSCILLATORY
    assert result.frequency == pytest.approx(frequency)


def test_frequency_of_nonlinear_argument_uses_largest_factor() -> None:
    assert oscillation_frequency(parse("3*x^2").root) == 3.0


def test_long_tangent_argument_classifies_without_recursion() -> None:
    text = "tan(" + "+".join(["x"] * 2000) + ")"
    result = classify(parse(text))
    assert result.tag is Classification.ASYMPTOTIC_PERIODIC
    assert result.linear_form == (2000.0, 0.0)


def test_combine_keeps_only_oscillation_density() -> None:
    models = parse_parametric("cos(t); sin(5*t)")
    result = combine(*(classify(m) for m in models))
    assert result.tag is Classification.HIGH_FREQUENCY_OSCILLATORY
    assert result.frequency == 5.0

    tangent = combine(classify(parse("tan(t)", "t")), classify(parse("t", "t")))
    assert tangent == STANDARD


def test_result_is_frozen() -> None:
    with pytest.raises(AttributeError):
        ClassificationResult().tag = Classification.SINGULAR_AT_ZERO  # type: ignore[misc]
