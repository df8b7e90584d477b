"""Starter formulas offered by formula editors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .Formula import Formula, FormulaKind
from .config import DEFAULT_EXPLICIT_DOMAIN, DEFAULT_PARAMETER_DOMAIN

CATEGORIES = (
    "basic",
    "trigonometric",
    "exponential",
    "special",
    "polynomial",
    "parametric",
    "polar",
)


@dataclass(frozen=True)
class FormulaExample:
    """A named, categorized starter formula."""

    name: str
    kind: FormulaKind
    expression: str
    category: str
    description: str
    domain: Tuple[float, float] = DEFAULT_EXPLICIT_DOMAIN

    def to_formula(self, **kwargs) -> Formula:
        """Return a new :class:`Formula` initialised from this example."""
        return Formula(self.expression, self.kind, name=self.name, domain=self.domain, **kwargs)


def _explicit(name: str, expression: str, category: str, description: str) -> FormulaExample:
    return FormulaExample(name, FormulaKind.EXPLICIT, expression, category, description)


_EXAMPLES: Tuple[FormulaExample, ...] = (
    _explicit("Linear function", "2*x + 1", "basic", "f(x) = 2x + 1"),
    _explicit("Quadratic function", "x*x", "basic", "f(x) = x²"),
    _explicit("Cubic function", "x*x*x", "basic", "f(x) = x³"),
    _explicit("Sine function", "sin(x)", "trigonometric", "f(x) = sin(x)"),
    _explicit("Cosine function", "cos(x)", "trigonometric", "f(x) = cos(x)"),
    _explicit("Tangent function", "tan(x)", "trigonometric", "f(x) = tan(x)"),
    _explicit("Fast sine", "sin(10*x)", "trigonometric", "f(x) = sin(10x)"),
    _explicit("Exponential function", "exp(x)", "exponential", "f(x) = e^x"),
    _explicit("Natural logarithm", "log(abs(x))", "exponential", "f(x) = ln|x|"),
    _explicit("Logarithm", "log(x)", "exponential", "f(x) = ln(x), x > 0"),
    _explicit("Absolute value", "abs(x)", "special", "f(x) = |x|"),
    _explicit("Square root", "sqrt(abs(x))", "special", "f(x) = √|x|"),
    _explicit("Sigmoid function", "1 / (1 + exp(-x))", "special", "f(x) = 1/(1+e^(-x))"),
    _explicit("Quartic function", "x^4 - 3*x^2", "polynomial", "f(x) = x⁴ - 3x²"),
    _explicit("Quintic function", "x^5 - 5*x^3 + 4*x", "polynomial", "f(x) = x⁵ - 5x³ + 4x"),
    FormulaExample(
        "Circle", FormulaKind.PARAMETRIC, "cos(t); sin(t)", "parametric",
        "x = cos(t), y = sin(t)", DEFAULT_PARAMETER_DOMAIN,
    ),
    FormulaExample(
        "Lissajous curve", FormulaKind.PARAMETRIC, "sin(3*t); sin(2*t)", "parametric",
        "x = sin(3t), y = sin(2t)", DEFAULT_PARAMETER_DOMAIN,
    ),
    FormulaExample(
        "Cardioid", FormulaKind.POLAR, "1 + cos(theta)", "polar",
        "r = 1 + cos(θ)", DEFAULT_PARAMETER_DOMAIN,
    ),
    FormulaExample(
        "Rose", FormulaKind.POLAR, "cos(4*theta)", "polar",
        "r = cos(4θ)", DEFAULT_PARAMETER_DOMAIN,
    ),
)


def get_formula_examples(category: Optional[str] = None) -> List[FormulaExample]:
    """Return the example catalogue, optionally filtered by ``category``."""
    if category is not None and category not in CATEGORIES:
        raise ValueError(f"Unknown example category: {category!r}")
    return [ex for ex in _EXAMPLES if category is None or ex.category == category]


__all__ = ["CATEGORIES", "FormulaExample", "get_formula_examples"]
