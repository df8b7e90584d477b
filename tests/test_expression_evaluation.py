from __future__ import annotations

import numpy as np
import pytest

from curvekit.expression import ExpressionModel, Literal, fold, parse


@pytest.mark.parametrize(
    ("text", "value"),
    [
        ("sqrt(x)", -1.0),
        ("1/x", 0.0),
        ("log(x)", 0.0),
        ("log(x)", -2.0),
        ("exp(x)", 1000.0),
        ("asin(x)", 2.0),
        ("tan(x)/0", 1.0),
    ],
)
def test_undefined_results_are_none(text: str, value: float) -> None:
    assert parse(text).evaluate(value) is None


def test_evaluate_array_never_raises_on_numeric_failures() -> None:
    values = np.array([-1.0, 0.0, 1.0, 4.0])
    out = parse("sqrt(x) + 1/x").evaluate_array(values)
    assert out.shape == values.shape
    assert np.isnan(out[0])
    assert np.isinf(out[1])
    assert out[2] == 2.0
    assert out[3] == 2.25


def test_evaluate_array_broadcasts_constants() -> None:
    out = parse("2").evaluate_array([1.0, 2.0, 3.0])
    assert out.tolist() == [2.0, 2.0, 2.0]


def test_round_is_half_up() -> None:
    model = parse("round(x)")
    assert model.evaluate(2.5) == 3.0
    assert model.evaluate(-2.5) == -2.0
    assert model.evaluate(1.2) == 1.0


@pytest.mark.parametrize(
    ("text", "value", "expected"),
    [
        ("abs(x)", -3.0, 3.0),
        ("floor(x)", 1.7, 1.0),
        ("ceil(x)", 1.2, 2.0),
        ("log10(x)", 1000.0, 3.0),
        ("log2(x)", 8.0, 3.0),
        ("cosh(x)", 0.0, 1.0),
        ("atan(x)", 0.0, 0.0),
    ],
)
def test_function_table(text: str, value: float, expected: float) -> None:
    assert parse(text).evaluate(value) == pytest.approx(expected)


def test_missing_binding_raises_key_error() -> None:
    model = parse("a*x + b", parameters=("a", "b"))
    with pytest.raises(KeyError, match="Missing bound values"):
        model.evaluate(1.0, {"a": 1.0})


def test_extra_bindings_are_ignored() -> None:
    assert parse("x").evaluate(2.0, {"q": 5.0}) == 2.0


def test_model_is_immutable() -> None:
    model = parse("x")
    with pytest.raises(AttributeError):
        model.text = "y"  # type: ignore[misc]


def test_model_built_from_node_evaluates() -> None:
    assert ExpressionModel(text="", root=Literal(4.0)).evaluate(0.0) == 4.0


def test_str_is_canonical_text() -> None:
    assert str(parse("2x+1")) == "2*x + 1"


def test_long_sum_evaluates() -> None:
    model = parse("+".join(["x"] * 3000))
    assert model.evaluate(1.0) == 3000.0
    assert model.evaluate_array(np.array([0.0, 2.0])).tolist() == [0.0, 6000.0]


def test_fold_visits_children_before_parents() -> None:
    order = []

    def visit(node, parts):
        order.append(type(node).__name__)
        return len(parts)

    assert fold(parse("-sin(x) + 2").root, visit) == 2
    assert order == ["Variable", "Call", "UnaryOp", "Literal", "BinaryOp"]
