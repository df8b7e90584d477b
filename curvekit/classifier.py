"""Structural classification of parsed formulas into sampling strategies.

Purpose
-------
Choose how densely, and over which interval, a formula should be sampled by
matching patterns in its AST:

- ``tan`` applied to a linear function of the variable -> asymptotic-periodic,
- an unguarded ``log``/``log10``/``log2`` of the variable -> singular at zero,
- ``sin``/``cos`` whose argument multiplies the variable by a constant
  factor greater than one -> high-frequency oscillatory.

Classification is advisory. Anything that does not match cleanly degrades to
:attr:`Classification.STANDARD`; nothing in this module raises on a valid
:class:`~curvekit.expression.ExpressionModel`.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .expression import (
    BinaryOp,
    Call,
    Constant,
    ExpressionModel,
    Literal,
    Node,
    Parameter,
    UnaryOp,
    Variable,
    contains_variable,
    fold,
    walk,
)

_LOG_FUNCTIONS = frozenset({"log", "log10", "log2"})
_OSCILLATORS = frozenset({"sin", "cos"})


class Classification(enum.Enum):
    """Sampling strategy tag."""

    STANDARD = "standard"
    ASYMPTOTIC_PERIODIC = "asymptotic_periodic"
    SINGULAR_AT_ZERO = "singular_at_zero"
    HIGH_FREQUENCY_OSCILLATORY = "high_frequency_oscillatory"


@dataclass(frozen=True)
class ClassificationResult:
    """Classification tag plus the pattern details the pipeline needs.

    Parameters
    ----------
    tag : Classification
        Selected strategy.
    frequency : float
        Detected frequency multiplier (``1.0`` unless high-frequency).
    linear_form : tuple[float, float] or None
        ``(a, b)`` for a tangent argument ``a*x + b``.
    negative_guard : bool
        A logarithm's argument is wrapped by ``abs`` or a sign flip, so
        negative parameter values are valid.
    pole_at_zero : bool
        A logarithm of the variable occurs anywhere (guarded or not), so the
        curve has a pole at ``param == 0``.
    """

    tag: Classification = Classification.STANDARD
    frequency: float = 1.0
    linear_form: Optional[Tuple[float, float]] = None
    negative_guard: bool = False
    pole_at_zero: bool = False

    @property
    def requires_positive_param(self) -> bool:
        """Return True when only ``param > 0`` can be valid."""
        return self.tag is Classification.SINGULAR_AT_ZERO and not self.negative_guard


STANDARD = ClassificationResult()


def constant_value(node: Node) -> Optional[float]:
    """Return the numeric value of a variable-free subtree, else ``None``.

    Subtrees containing parameters are not constant: their value is only known
    at evaluation time.
    """
    if any(isinstance(sub, (Variable, Parameter)) for sub in walk(node)):
        return None
    model = ExpressionModel(text="", root=node)
    return model.evaluate(0.0)


def linear_form(node: Node) -> Optional[Tuple[float, float]]:
    """Return ``(a, b)`` when ``node`` equals ``a*x + b`` with ``a != 0``."""
    form = fold(node, _linear_step)
    if form is None or form[0] == 0 or not all(map(math.isfinite, form)):
        return None
    return form


def _linear_step(node: Node, forms: Tuple[Optional[Tuple[float, float]], ...]) -> Optional[Tuple[float, float]]:
    if isinstance(node, Variable):
        return 1.0, 0.0
    if isinstance(node, (Literal, Constant)):
        return 0.0, constant_value(node) or 0.0
    if isinstance(node, UnaryOp):
        inner = forms[0]
        return None if inner is None else (-inner[0], -inner[1])
    if isinstance(node, BinaryOp):
        if node.op in "+-":
            left, right = forms
            if left is None or right is None:
                return None
            sign = 1.0 if node.op == "+" else -1.0
            return left[0] + sign * right[0], left[1] + sign * right[1]
        if node.op == "*":
            for factor, inner in ((node.left, forms[1]), (node.right, forms[0])):
                k = constant_value(factor) if inner is not None else None
                if k is not None:
                    return k * inner[0], k * inner[1]
            return None
        if node.op == "/":
            k = constant_value(node.right)
            inner = forms[0]
            if k is None or k == 0 or inner is None:
                return None
            return inner[0] / k, inner[1] / k
    if not contains_variable(node):
        value = constant_value(node)
        return None if value is None else (0.0, value)
    return None


def is_negative_guarded(node: Node) -> bool:
    """Return True when ``node`` contains ``abs`` or a negated variable."""
    for sub in walk(node):
        if isinstance(sub, Call) and sub.name == "abs":
            return True
        if isinstance(sub, UnaryOp) and isinstance(sub.operand, Variable):
            return True
    return False


def oscillation_frequency(node: Node) -> float:
    """Return the angular frequency (> 1) of a ``sin``/``cos`` argument.

    A linear argument ``a*x + b`` has frequency ``|a|``, so chained factors
    such as ``x*2*3`` multiply out. Otherwise the argument is scanned for
    ``k * <variable term>`` products and the largest ``|k|`` wins. Returns
    ``1.0`` when neither yields a factor above one.
    """
    form = linear_form(node)
    if form is not None:
        return max(1.0, abs(form[0]))
    best = 1.0
    for sub in walk(node):
        if not (isinstance(sub, BinaryOp) and sub.op == "*"):
            continue
        for factor, other in ((sub.left, sub.right), (sub.right, sub.left)):
            if not contains_variable(other):
                continue
            k = constant_value(factor)
            if k is not None and abs(k) > best:
                best = abs(k)
    return best


def classify(model: ExpressionModel) -> ClassificationResult:
    """Pick a sampling strategy for ``model`` from its AST.

    Priority follows pattern specificity: a tangent branch, then a logarithm
    singularity, then high-frequency oscillation, else standard.
    """
    tangent: Optional[Tuple[float, float]] = None
    unguarded_log = False
    guarded_log = False
    frequency = 1.0

    for node in model.walk():
        if not isinstance(node, Call):
            continue
        if node.name == "tan" and tangent is None:
            tangent = linear_form(node.argument)
        elif node.name in _LOG_FUNCTIONS and contains_variable(node.argument):
            if is_negative_guarded(node.argument):
                guarded_log = True
            else:
                unguarded_log = True
        elif node.name in _OSCILLATORS:
            frequency = max(frequency, oscillation_frequency(node.argument))

    pole_at_zero = unguarded_log or guarded_log
    if tangent is not None:
        return ClassificationResult(
            tag=Classification.ASYMPTOTIC_PERIODIC,
            linear_form=tangent,
            pole_at_zero=pole_at_zero,
        )
    if unguarded_log:
        return ClassificationResult(
            tag=Classification.SINGULAR_AT_ZERO,
            negative_guard=False,
            pole_at_zero=True,
        )
    if frequency > 1.0 and np.isfinite(frequency):
        return ClassificationResult(
            tag=Classification.HIGH_FREQUENCY_OSCILLATORY,
            frequency=frequency,
            negative_guard=guarded_log,
            pole_at_zero=pole_at_zero,
        )
    return ClassificationResult(negative_guard=guarded_log, pole_at_zero=pole_at_zero)


def combine(*results: ClassificationResult) -> ClassificationResult:
    """Merge per-coordinate classifications of a parametric or polar curve.

    Only oscillation density carries over; the parameter is not a
    viewport axis, so branch windows and zero-avoidance do not apply.
    """
    frequency = max((r.frequency for r in results), default=1.0)
    if frequency > 1.0:
        return ClassificationResult(tag=Classification.HIGH_FREQUENCY_OSCILLATORY, frequency=frequency)
    return STANDARD


__all__ = [
    "Classification",
    "ClassificationResult",
    "STANDARD",
    "classify",
    "combine",
    "constant_value",
    "is_negative_guarded",
    "linear_form",
    "oscillation_frequency",
]
