from __future__ import annotations

import math

import pytest

from curvekit.Formula import (
    DetectedParameter,
    Formula,
    FormulaConfigError,
    FormulaKind,
    create_default_formula,
    detect_parameters,
    generate_formula_id,
    validate_formula_text,
)
from curvekit.config import DEFAULT_CONFIG
from curvekit.expression import ExpressionParseError, ParseErrorReason


def test_defaults_per_kind() -> None:
    explicit = Formula("x*x")
    assert explicit.kind is FormulaKind.EXPLICIT
    assert explicit.domain == (-10000.0, 10000.0)
    assert explicit.sample_target == 500
    assert explicit.scale_factor == 1.0
    assert explicit.id.startswith("formula-")

    parametric = Formula("cos(t); sin(t)", "parametric")
    assert parametric.domain == pytest.approx((0.0, 2.0 * math.pi))
    assert len(parametric.models) == 2


def test_kind_accepts_strings_and_names() -> None:
    assert Formula("1 + cos(theta)", "polar").kind is FormulaKind.POLAR
    assert Formula("1 + cos(θ)", "POLAR").kind is FormulaKind.POLAR
    with pytest.raises(FormulaConfigError, match="Unknown formula kind"):
        Formula("x", "implicit")


def test_model_access_per_kind() -> None:
    assert Formula("x + 1").model.evaluate(1.0) == 2.0
    with pytest.raises(AttributeError):
        Formula("cos(t); sin(t)", "parametric").model


def test_sample_target_is_clamped() -> None:
    f = Formula("x", sample_target=5)
    assert f.sample_target == DEFAULT_CONFIG.min_samples
    f.sample_target = 10**6
    assert f.sample_target == DEFAULT_CONFIG.max_samples
    f.sample_target = "250"
    assert f.sample_target == 250


@pytest.mark.parametrize("value", [0, -1, "abc", float("nan"), float("inf")])
def test_scale_factor_must_be_positive_and_finite(value) -> None:
    with pytest.raises(FormulaConfigError, match="scale_factor must be a finite number > 0"):
        Formula("x", scale_factor=value)


def test_scale_factor_accepts_constant_text() -> None:
    assert Formula("x", scale_factor="pi/2").scale_factor == pytest.approx(math.pi / 2)


def test_domain_validation() -> None:
    f = Formula("x", domain=("-pi", "pi"))
    assert f.domain == pytest.approx((-math.pi, math.pi))
    with pytest.raises(FormulaConfigError, match="minimum must be < maximum"):
        f.domain = (5, 5)
    with pytest.raises(FormulaConfigError, match="Invalid domain"):
        f.domain = ("a", 1)
    f.domain = None
    assert f.domain == (-10000.0, 10000.0)


def test_invalid_expression_keeps_previous_state() -> None:
    f = Formula("x*x")
    with pytest.raises(ExpressionParseError):
        f.expression = "x*("
    assert f.expression == "x*x"
    assert f.model.evaluate(2.0) == 4.0


def test_parametric_requires_separator() -> None:
    with pytest.raises(ExpressionParseError) as excinfo:
        Formula("cos(t)", FormulaKind.PARAMETRIC)
    assert excinfo.value.reason is ParseErrorReason.MISSING_SEPARATOR


def test_kind_change_reparses_or_fails_atomically() -> None:
    f = Formula("x")
    with pytest.raises(ExpressionParseError):
        f.kind = "polar"
    assert f.kind is FormulaKind.EXPLICIT

    f.update(kind="polar", expression="1 + cos(theta)")
    assert f.kind is FormulaKind.POLAR
    assert f.model.variable == "theta"


def test_parameters_are_declared_and_bound() -> None:
    f = Formula("a*x + b", parameters={"a": 2, "b": "pi"})
    assert f.parameters == pytest.approx({"a": 2.0, "b": math.pi})
    f.set_parameter("a", 3)
    assert f.parameters["a"] == 3.0
    with pytest.raises(KeyError):
        f.set_parameter("c", 1)


@pytest.mark.parametrize("name", ["x", "e", "pi", "ab", "1"])
def test_invalid_parameter_names(name: str) -> None:
    with pytest.raises(FormulaConfigError, match="Invalid parameter name"):
        Formula("x", parameters={name: 1.0})


def test_parameters_setter_reparses() -> None:
    f = Formula("x", parameters={"k": 1.0})
    f.parameters = {"k": 2.0, "m": 0.0}
    assert set(f.parameters) == {"k", "m"}
    with pytest.raises(ExpressionParseError):
        Formula("k*x", parameters={"k": 1.0}).parameters = {}


def test_update_rejects_unknown_keys() -> None:
    with pytest.raises(TypeError, match="unexpected keys"):
        Formula("x").update(color="red")


def test_update_applies_numeric_fields() -> None:
    f = Formula("x")
    f.update(name="line", domain=(0, 1), sample_target=200, scale_factor=3, stroke_style={"color": "#000"})
    assert (f.name, f.domain, f.sample_target, f.scale_factor) == ("line", (0.0, 1.0), 200, 3.0)
    assert f.stroke_style == {"color": "#000"}


def test_detect_parameters() -> None:
    names = [p.name for p in detect_parameters("a*x^2 + b*x + c")]
    assert names == ["a", "b", "c"]
    assert detect_parameters("sin(x) + e*pi") == []
    assert [p.name for p in detect_parameters("a*cos(t); b*sin(t)", "parametric")] == ["a", "b"]
    assert detect_parameters("k*θ", "polar") == [DetectedParameter(name="k")]
    assert detect_parameters("x $ y") == []


def test_validate_formula_text() -> None:
    assert validate_formula_text("sin(x)") == (True, None)
    ok, message = validate_formula_text("sin(x")
    assert not ok
    assert "parenthesis" in message


def test_generate_formula_id_is_prefixed() -> None:
    assert generate_formula_id().startswith("formula-")


def test_create_default_formula() -> None:
    f = create_default_formula("parametric")
    assert f.expression == "cos(t); sin(t)"
    assert f.stroke_style["color"].startswith("#")
    assert create_default_formula().expression == "x*x"


def test_repr_mentions_kind_and_expression() -> None:
    text = repr(Formula("x", id="f1"))
    assert "f1" in text
    assert "'function'" in text
    assert "'x'" in text


def test_default_domain_follows_kind_changes() -> None:
    f = Formula("1")
    f.kind = "polar"
    assert f.domain == pytest.approx((0.0, 2.0 * math.pi))

    pinned = Formula("1", domain=(-2, 2))
    pinned.update(kind="polar")
    assert pinned.domain == (-2.0, 2.0)
