"""Human-facing renderings of parsed formulas.

Two routes are provided:

- :func:`to_sympy` / :func:`to_latex` convert the AST into a SymPy expression
  and use SymPy's printers, so the LaTeX shown next to a curve is produced by
  a real typesetting printer rather than regex substitution.
- :func:`format_for_display` prints the AST directly with typographic
  symbols (``π``, ``×``, ``√``, ``|x|``) while keeping the user's structure.
"""

from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional, Tuple, Union

import sympy as sp

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
    fold,
    unparse,
)

_SYMPY_FUNCTIONS: Dict[str, Callable[[sp.Expr], sp.Expr]] = {
    "sin": sp.sin,
    "cos": sp.cos,
    "tan": sp.tan,
    "asin": sp.asin,
    "acos": sp.acos,
    "atan": sp.atan,
    "sinh": sp.sinh,
    "cosh": sp.cosh,
    "tanh": sp.tanh,
    "log": sp.log,
    "log10": lambda arg: sp.log(arg, 10),
    "log2": lambda arg: sp.log(arg, 2),
    "sqrt": sp.sqrt,
    "abs": sp.Abs,
    "exp": sp.exp,
    "floor": sp.floor,
    "ceil": sp.ceiling,
    "round": sp.Function("round"),
}

_SYMBOL_NAMES = {"theta": "theta"}

_DISPLAY_SYMBOLS = {"*": "×", "pi": "π", "theta": "θ"}
_DISPLAY_CALLS = {"sqrt": "√({})", "abs": "|{}|", "log": "ln({})"}


def _number(value: float) -> sp.Expr:
    if float(value).is_integer():
        return sp.Integer(int(value))
    return sp.Float(value)


def to_sympy(model_or_node: Union[ExpressionModel, Node], *, evaluate: bool = True) -> sp.Expr:
    """Convert a parsed expression into an equivalent SymPy expression.

    Parameters
    ----------
    model_or_node : ExpressionModel or Node
        Parsed expression.
    evaluate : bool, optional
        Forwarded to SymPy constructors; ``False`` keeps the user's structure
        (``x*x`` stays a product instead of becoming ``x**2``).

    Examples
    --------
    >>> from curvekit.expression import parse
    >>> to_sympy(parse("2*sin(x)^2"))
    2*sin(x)**2
    """
    root = model_or_node.root if isinstance(model_or_node, ExpressionModel) else model_or_node
    symbols: Dict[str, sp.Symbol] = {}

    def symbol(name: str) -> sp.Symbol:
        if name not in symbols:
            symbols[name] = sp.Symbol(_SYMBOL_NAMES.get(name, name), real=True)
        return symbols[name]

    def convert(node: Node, parts: Tuple[sp.Expr, ...]) -> sp.Expr:
        if isinstance(node, Literal):
            return _number(node.value)
        if isinstance(node, (Variable, Parameter)):
            return symbol(node.name)
        if isinstance(node, Constant):
            return sp.pi if node.name == "pi" else sp.E
        if isinstance(node, UnaryOp):
            return sp.Mul(sp.Integer(-1), parts[0], evaluate=evaluate)
        if isinstance(node, Call):
            return _SYMPY_FUNCTIONS[node.name](parts[0])
        if isinstance(node, BinaryOp):
            left, right = parts
            if node.op == "+":
                return sp.Add(left, right, evaluate=evaluate)
            if node.op == "-":
                return sp.Add(left, sp.Mul(sp.Integer(-1), right, evaluate=evaluate), evaluate=evaluate)
            if node.op == "*":
                return sp.Mul(left, right, evaluate=evaluate)
            if node.op == "/":
                return sp.Mul(left, sp.Pow(right, sp.Integer(-1), evaluate=evaluate), evaluate=evaluate)
            return sp.Pow(left, right, evaluate=evaluate)
        raise TypeError(f"Unsupported expression node: {type(node).__name__}")

    return fold(root, convert)


def to_latex(model: Union[ExpressionModel, Node], **settings: object) -> str:
    """Return LaTeX for ``model`` via :func:`sympy.latex`.

    Examples
    --------
    >>> from curvekit.expression import parse
    >>> to_latex(parse("sqrt(x)"))
    '\\\\sqrt{x}'
    """
    return sp.latex(to_sympy(model), **settings)


def format_for_display(
    model: Union[ExpressionModel, Node],
    *,
    symbols: Optional[Mapping[str, str]] = None,
) -> str:
    """Return a compact typographic rendering of ``model``.

    Examples
    --------
    >>> from curvekit.expression import parse
    >>> format_for_display(parse("2*pi*sqrt(abs(x))"))
    '2×π×√(|x|)'
    """
    root = model.root if isinstance(model, ExpressionModel) else model
    merged = dict(_DISPLAY_SYMBOLS)
    merged.update(symbols or {})
    return unparse(root, symbols=merged, calls=_DISPLAY_CALLS)


__all__ = ["format_for_display", "to_latex", "to_sympy"]
