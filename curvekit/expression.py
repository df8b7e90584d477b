"""
expression: closed-grammar formula parsing and safe numeric evaluation
=====================================================================

Purpose
-------
Turn formula text such as ``"sin(2*x) + log(abs(x))"`` into an explicit
abstract syntax tree and evaluate it with NumPy, without ever executing
user-supplied code.

The grammar is intentionally closed:

- numeric literals (``2``, ``.5``, ``1e-3``),
- the plot variable (``x`` for explicit curves, ``t`` / ``theta`` otherwise),
- declared single-letter parameters (only when the caller declares them),
- binary ``+ - * / ^`` (``**`` is accepted as ``^``), unary ``-`` / ``+``,
- parentheses and implicit multiplication (``2x``, ``3(x+1)``, ``2sin(x)``),
- the fixed one-argument function table :data:`FUNCTIONS`,
- the constants ``pi`` (``π``) and ``e``.

Anything else is an :class:`ExpressionParseError` with a specific
:class:`ParseErrorReason`.

Evaluation
----------
:meth:`ExpressionModel.evaluate_array` evaluates the tree over a NumPy array
under ``np.errstate(all="ignore")``. Division by zero, domain errors and
overflow surface as ``nan``/``inf`` entries rather than exceptions, so a curve
sampled at thousands of points never raises or logs per point.
:meth:`ExpressionModel.evaluate` is the scalar convenience wrapper and returns
``None`` for an undefined result.

Examples
--------
>>> from curvekit.expression import parse
>>> model = parse("x^2 + 1")
>>> model.evaluate(3.0)
10.0
>>> parse("sqrt(x)").evaluate(-1.0) is None
True

Logging
-------
Uses the standard :mod:`logging` library and is silent by default.
"""

from __future__ import annotations

import enum
import logging
import re
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

__all__ = [
    "BinaryOp",
    "Call",
    "Constant",
    "CONSTANTS",
    "MAX_NESTING_DEPTH",
    "ExpressionModel",
    "ExpressionParseError",
    "FUNCTIONS",
    "Literal",
    "Node",
    "Parameter",
    "ParseErrorReason",
    "PARAMETRIC_SEPARATOR",
    "UnaryOp",
    "Variable",
    "children",
    "contains_variable",
    "fold",
    "parse",
    "parse_cached",
    "parse_parametric",
    "tokenize",
    "unparse",
    "walk",
]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


PARAMETRIC_SEPARATOR = ";"

# Parentheses, calls, signs and exponents each open one level.
MAX_NESTING_DEPTH = 100


def _round_half_up(values: Any) -> Any:
    return np.floor(np.add(values, 0.5))


FUNCTIONS: Dict[str, Callable[[Any], Any]] = {
    "sin": np.sin,
    "cos": np.cos,
    "tan": np.tan,
    "asin": np.arcsin,
    "acos": np.arccos,
    "atan": np.arctan,
    "sinh": np.sinh,
    "cosh": np.cosh,
    "tanh": np.tanh,
    "log": np.log,
    "log10": np.log10,
    "log2": np.log2,
    "sqrt": np.sqrt,
    "abs": np.abs,
    "exp": np.exp,
    "floor": np.floor,
    "ceil": np.ceil,
    "round": _round_half_up,
}

FUNCTION_ALIASES: Dict[str, str] = {"ln": "log"}

CONSTANTS: Dict[str, float] = {"pi": float(np.pi), "e": float(np.e)}

CONSTANT_ALIASES: Dict[str, str] = {"π": "pi"}

_BINARY_UFUNCS: Dict[str, Callable[[Any, Any], Any]] = {
    "+": np.add,
    "-": np.subtract,
    "*": np.multiply,
    "/": np.true_divide,
    "^": np.power,
}


# =============================================================================
# SECTION: Errors
# =============================================================================

class ParseErrorReason(enum.Enum):
    """Category of an :class:`ExpressionParseError`."""

    EMPTY = "empty"
    UNEXPECTED_CHARACTER = "unexpected_character"
    UNKNOWN_SYMBOL = "unknown_symbol"
    UNBALANCED_PARENTHESES = "unbalanced_parentheses"
    UNEXPECTED_TOKEN = "unexpected_token"
    UNEXPECTED_END = "unexpected_end"
    MISSING_SEPARATOR = "missing_separator"
    TOO_DEEP = "too_deep"


class ExpressionParseError(ValueError):
    """Raised when formula text is not a sentence of the closed grammar.

    Parameters
    ----------
    message : str
        Short user-facing reason.
    reason : ParseErrorReason
        Machine-readable category.
    text : str
        The full text that failed to parse.
    position : int or None
        Character offset of the offending token, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: ParseErrorReason,
        text: str = "",
        position: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.text = text
        self.position = position


# =============================================================================
# SECTION: AST nodes
# =============================================================================

@dataclass(frozen=True)
class Literal:
    value: float


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Parameter:
    name: str


@dataclass(frozen=True)
class Constant:
    name: str

    @property
    def value(self) -> float:
        return CONSTANTS[self.name]


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    argument: "Node"


Node = Union[Literal, Variable, Parameter, Constant, UnaryOp, BinaryOp, Call]


def children(node: Node) -> Tuple[Node, ...]:
    """Return the direct sub-nodes of ``node``."""
    if isinstance(node, UnaryOp):
        return (node.operand,)
    if isinstance(node, BinaryOp):
        return (node.left, node.right)
    if isinstance(node, Call):
        return (node.argument,)
    return ()


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and all of its descendants in pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def contains_variable(node: Node) -> bool:
    """Return True when the plot variable occurs anywhere below ``node``."""
    return any(isinstance(sub, Variable) for sub in walk(node))


def fold(node: Node, visit: Callable[[Node, Tuple[Any, ...]], Any]) -> Any:
    """Reduce the tree bottom-up without recursion.

    ``visit(current, results)`` is called once per node, after all of its
    children, with their results in :func:`children` order. Long sums parse
    into left-deep trees thousands of levels tall, so this is the traversal
    every whole-tree computation uses.

    Examples
    --------
    >>> fold(parse("x + 2*x").root, lambda node, parts: 1 + sum(parts))
    5
    """
    results: list[Any] = []
    stack: list[Tuple[Node, bool]] = [(node, False)]
    while stack:
        current, expanded = stack.pop()
        kids = children(current)
        if kids and not expanded:
            stack.append((current, True))
            stack.extend((child, False) for child in reversed(kids))
            continue
        parts: Tuple[Any, ...] = ()
        if kids:
            parts = tuple(results[-len(kids):])
            del results[-len(kids):]
        results.append(visit(current, parts))
    return results[0]


# =============================================================================
# SECTION: Tokenizer
# =============================================================================

@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    position: int


_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*|[πθ])
  | (?P<op>\*\*|[-+*/^])
  | (?P<lparen>\()
  | (?P<rparen>\))
    """,
    re.VERBOSE,
)


def tokenize(text: str, *, offset: int = 0, source: Optional[str] = None) -> list[Token]:
    """Split ``text`` into tokens, ending with an ``end`` token.

    Raises
    ------
    ExpressionParseError
        On a character outside the grammar's alphabet.
    """
    source = text if source is None else source
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            char = text[pos]
            raise ExpressionParseError(
                f"Unexpected character '{char}'. Check your formula syntax.",
                reason=ParseErrorReason.UNEXPECTED_CHARACTER,
                text=source,
                position=offset + pos,
            )
        kind = match.lastgroup or ""
        if kind != "ws":
            value = match.group()
            if kind == "op" and value == "**":
                value = "^"
            tokens.append(Token(kind, value, offset + pos))
        pos = match.end()
    tokens.append(Token("end", "", offset + len(text)))
    return tokens


# =============================================================================
# SECTION: Parser
# =============================================================================

class _Parser:
    """Recursive-descent parser over the closed formula grammar.

    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary | <implicit> power)*
    unary   := ('-' | '+') unary | power
    power   := primary ('^' unary)?
    primary := NUMBER | NAME | NAME '(' expr ')' | '(' expr ')'
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        *,
        source: str,
        variable: str,
        variable_names: frozenset[str],
        parameters: frozenset[str],
    ) -> None:
        self._tokens = tokens
        self._index = 0
        self._source = source
        self._variable = variable
        self._variable_names = variable_names
        self._parameters = parameters
        self._depth = 0

    def _enter(self, token: Token) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            raise self._error(
                f"Expression is nested too deeply (more than {MAX_NESTING_DEPTH} levels)",
                ParseErrorReason.TOO_DEEP,
                token,
            )

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _error(self, message: str, reason: ParseErrorReason, token: Token) -> ExpressionParseError:
        return ExpressionParseError(message, reason=reason, text=self._source, position=token.position)

    def parse(self) -> Node:
        if self._current.kind == "end":
            raise self._error("Expression cannot be empty", ParseErrorReason.EMPTY, self._current)
        node = self._expr()
        token = self._current
        if token.kind == "rparen":
            raise self._error(
                "Unmatched ')' in expression",
                ParseErrorReason.UNBALANCED_PARENTHESES,
                token,
            )
        if token.kind != "end":
            raise self._error(
                f"Unexpected '{token.value}' in expression",
                ParseErrorReason.UNEXPECTED_TOKEN,
                token,
            )
        return node

    def _expr(self) -> Node:
        node = self._term()
        while self._current.kind == "op" and self._current.value in "+-":
            op = self._advance().value
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while True:
            token = self._current
            if token.kind == "op" and token.value in "*/":
                self._advance()
                node = BinaryOp(token.value, node, self._unary())
            elif token.kind in ("name", "lparen"):
                node = BinaryOp("*", node, self._power())
            else:
                return node

    def _unary(self) -> Node:
        token = self._current
        if not (token.kind == "op" and token.value in "+-"):
            return self._power()
        self._enter(token)
        try:
            self._advance()
            operand = self._unary()
            return UnaryOp("-", operand) if token.value == "-" else operand
        finally:
            self._depth -= 1

    def _power(self) -> Node:
        # parentheses, calls and exponents all recurse through here
        self._enter(self._current)
        try:
            base = self._primary()
            if self._current.kind == "op" and self._current.value == "^":
                self._advance()
                return BinaryOp("^", base, self._unary())
            return base
        finally:
            self._depth -= 1

    def _primary(self) -> Node:
        token = self._current
        if token.kind == "number":
            self._advance()
            return Literal(float(token.value))
        if token.kind == "lparen":
            self._advance()
            node = self._expr()
            self._expect_rparen(token)
            return node
        if token.kind == "name":
            return self._name()
        if token.kind == "end":
            raise self._error(
                "Expression ends unexpectedly",
                ParseErrorReason.UNEXPECTED_END,
                token,
            )
        if token.kind == "rparen":
            raise self._error(
                "Unmatched ')' in expression",
                ParseErrorReason.UNBALANCED_PARENTHESES,
                token,
            )
        raise self._error(
            f"Unexpected '{token.value}' in expression",
            ParseErrorReason.UNEXPECTED_TOKEN,
            token,
        )

    def _expect_rparen(self, opening: Token) -> None:
        token = self._current
        if token.kind == "rparen":
            self._advance()
            return
        if token.kind == "end":
            raise self._error(
                "Missing closing parenthesis",
                ParseErrorReason.UNBALANCED_PARENTHESES,
                opening,
            )
        raise self._error(
            f"Unexpected '{token.value}' in expression",
            ParseErrorReason.UNEXPECTED_TOKEN,
            token,
        )

    def _name(self) -> Node:
        token = self._advance()
        name = token.value
        func = FUNCTION_ALIASES.get(name, name)
        if func in FUNCTIONS:
            if self._current.kind != "lparen":
                raise self._error(
                    f"Function '{name}' must be followed by '('",
                    ParseErrorReason.UNEXPECTED_TOKEN,
                    token,
                )
            opening = self._advance()
            argument = self._expr()
            self._expect_rparen(opening)
            return Call(func, argument)
        if self._current.kind == "lparen":
            raise self._error(
                f"Unknown function: '{name}'",
                ParseErrorReason.UNKNOWN_SYMBOL,
                token,
            )
        if name in self._variable_names:
            return Variable(self._variable)
        constant = CONSTANT_ALIASES.get(name, name)
        if constant in CONSTANTS:
            return Constant(constant)
        if name in self._parameters:
            return Parameter(name)
        raise self._error(
            f"Unknown function or variable: '{name}'",
            ParseErrorReason.UNKNOWN_SYMBOL,
            token,
        )


def _check_parameter_names(parameters: Sequence[str], variable_names: frozenset[str]) -> frozenset[str]:
    reserved = set(FUNCTIONS) | set(FUNCTION_ALIASES) | set(CONSTANTS) | set(CONSTANT_ALIASES)
    names = frozenset(parameters)
    clashes = sorted(name for name in names if name in reserved or name in variable_names)
    if clashes:
        raise ValueError(f"Parameter names clash with reserved names: {clashes!r}")
    return names


def _parse_root(
    text: str,
    *,
    variable: str,
    aliases: Sequence[str],
    parameters: Sequence[str],
    offset: int = 0,
    source: Optional[str] = None,
) -> Node:
    source = text if source is None else source
    variable_names = frozenset((variable, *aliases))
    param_names = _check_parameter_names(parameters, variable_names)
    tokens = tokenize(text, offset=offset, source=source)
    parser = _Parser(
        tokens,
        source=source,
        variable=variable,
        variable_names=variable_names,
        parameters=param_names,
    )
    return parser.parse()


# =============================================================================
# SECTION: ExpressionModel
# =============================================================================

@dataclass(frozen=True)
class ExpressionModel:
    """Parsed formula: AST root plus the names it was parsed against.

    Parameters
    ----------
    text : str
        Source text (stripped).
    root : Node
        AST root.
    variable : str
        Canonical plot-variable name (``x``, ``t`` or ``theta``).
    parameters : tuple[str, ...]
        Parameter names that occur in the tree, sorted.
    """

    text: str
    root: Node
    variable: str = "x"
    parameters: Tuple[str, ...] = field(default=())

    def walk(self) -> Iterator[Node]:
        """Yield every node of the tree in pre-order."""
        return walk(self.root)

    def evaluate_array(
        self,
        values: Any,
        bindings: Optional[Mapping[str, float]] = None,
    ) -> np.ndarray:
        """Evaluate over ``values`` and return a float array of the same shape.

        Undefined results are ``nan`` or ``±inf``; nothing is raised for
        numeric failures.

        Raises
        ------
        KeyError
            If a parameter used by the expression has no binding.
        """
        params = np.asarray(values, dtype=float)
        resolved = self._resolve_bindings(bindings)
        with np.errstate(all="ignore"):
            result = _evaluate_node(self.root, params, resolved)
            return np.array(np.broadcast_to(result, params.shape), dtype=float)

    def evaluate(self, value: float, bindings: Optional[Mapping[str, float]] = None) -> Optional[float]:
        """Evaluate at one parameter value; ``None`` means undefined."""
        result = float(self.evaluate_array(np.array([value], dtype=float), bindings)[0])
        if not np.isfinite(result):
            return None
        return result

    def unparse(self) -> str:
        """Return canonical text for this expression."""
        return unparse(self.root)

    def _resolve_bindings(self, bindings: Optional[Mapping[str, float]]) -> Dict[str, float]:
        bindings = bindings or {}
        missing = [name for name in self.parameters if name not in bindings]
        if missing:
            raise KeyError(f"Missing bound values: [{', '.join(missing)}]")
        return {name: float(bindings[name]) for name in self.parameters}

    def __str__(self) -> str:
        return self.unparse()


def _evaluate_node(node: Node, params: np.ndarray, bindings: Mapping[str, float]) -> Any:
    def visit(current: Node, parts: Tuple[Any, ...]) -> Any:
        if isinstance(current, Literal):
            return current.value
        if isinstance(current, Variable):
            return params
        if isinstance(current, Constant):
            return current.value
        if isinstance(current, Parameter):
            return bindings[current.name]
        if isinstance(current, UnaryOp):
            return np.negative(parts[0])
        if isinstance(current, BinaryOp):
            ufunc = _BINARY_UFUNCS[current.op]
            return ufunc(np.asarray(parts[0], dtype=float), np.asarray(parts[1], dtype=float))
        if isinstance(current, Call):
            return FUNCTIONS[current.name](np.asarray(parts[0], dtype=float))
        raise TypeError(f"Unsupported expression node: {type(current).__name__}")

    return fold(node, visit)


def parse(
    text: str,
    variable: str = "x",
    *,
    aliases: Sequence[str] = (),
    parameters: Sequence[str] = (),
) -> ExpressionModel:
    """Parse ``text`` into an :class:`ExpressionModel`.

    Parameters
    ----------
    text : str
        Formula text.
    variable : str, optional
        Canonical plot-variable name.
    aliases : sequence of str, optional
        Extra spellings accepted for the variable (e.g. ``"θ"``).
    parameters : sequence of str, optional
        Declared parameter names. Undeclared names are parse errors.

    Raises
    ------
    ExpressionParseError
        If ``text`` is empty or not in the grammar.
    ValueError
        If a declared parameter name collides with a reserved name.
    """
    if not isinstance(text, str):
        raise TypeError(f"parse() expects str, got {type(text).__name__}")
    start = time.perf_counter()
    stripped = text.strip()
    root = _parse_root(stripped, variable=variable, aliases=aliases, parameters=parameters)
    used = tuple(sorted({node.name for node in walk(root) if isinstance(node, Parameter)}))
    model = ExpressionModel(text=stripped, root=root, variable=variable, parameters=used)
    logger.debug("parsed %r in %.3f ms", stripped, (time.perf_counter() - start) * 1000.0)
    return model


@lru_cache(maxsize=256)
def parse_cached(
    text: str,
    variable: str = "x",
    aliases: Tuple[str, ...] = (),
    parameters: Tuple[str, ...] = (),
) -> ExpressionModel:
    """Cached :func:`parse`; models are immutable and safe to share."""
    return parse(text, variable, aliases=aliases, parameters=parameters)


def parse_parametric(
    text: str,
    variable: str = "t",
    *,
    aliases: Sequence[str] = (),
    parameters: Sequence[str] = (),
) -> Tuple[ExpressionModel, ExpressionModel]:
    """Parse ``"f(t); g(t)"`` into two models sharing the parameter name.

    Raises
    ------
    ExpressionParseError
        With reason ``MISSING_SEPARATOR`` when the text does not split into
        exactly two non-empty parts, or the sub-expression's own error.
    """
    parts = text.split(PARAMETRIC_SEPARATOR)
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise ExpressionParseError(
            "Parametric expression must be in format 'x(t); y(t)'",
            reason=ParseErrorReason.MISSING_SEPARATOR,
            text=text,
        )
    models = []
    offset = 0
    for part in parts:
        root = _parse_root(
            part,
            variable=variable,
            aliases=aliases,
            parameters=parameters,
            offset=offset,
            source=text,
        )
        used = tuple(sorted({node.name for node in walk(root) if isinstance(node, Parameter)}))
        models.append(ExpressionModel(text=part.strip(), root=root, variable=variable, parameters=used))
        offset += len(part) + len(PARAMETRIC_SEPARATOR)
    return models[0], models[1]


# =============================================================================
# SECTION: Unparsing
# =============================================================================

_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "^": 4}
_UNARY_PRECEDENCE = 3
_ATOM_PRECEDENCE = 5


def _precedence(node: Node) -> int:
    if isinstance(node, BinaryOp):
        return _PRECEDENCE[node.op]
    if isinstance(node, UnaryOp):
        return _UNARY_PRECEDENCE
    if isinstance(node, Literal) and node.value < 0:
        return _UNARY_PRECEDENCE
    return _ATOM_PRECEDENCE


def _format_number(value: float) -> str:
    if float(value).is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(float(value))


def unparse(
    node: Node,
    *,
    symbols: Optional[Mapping[str, str]] = None,
    calls: Optional[Mapping[str, str]] = None,
) -> str:
    """Render ``node`` as text with the minimum parentheses needed.

    Parameters
    ----------
    symbols : mapping, optional
        Overrides for operator, constant and variable spellings
        (e.g. ``{"*": "×", "pi": "π"}``).
    calls : mapping, optional
        ``str.format`` templates per function name (e.g. ``{"abs": "|{}|"}``).
    """
    symbols = symbols or {}
    calls = calls or {}

    def wrap(rendered: str, needs_parens: bool) -> str:
        return f"({rendered})" if needs_parens else rendered

    def render(current: Node, parts: Tuple[str, ...]) -> str:
        if isinstance(current, Literal):
            return _format_number(current.value)
        if isinstance(current, (Variable, Constant, Parameter)):
            return symbols.get(current.name, current.name)
        if isinstance(current, UnaryOp):
            return "-" + wrap(parts[0], _precedence(current.operand) < _UNARY_PRECEDENCE)
        if isinstance(current, Call):
            template = calls.get(current.name, current.name + "({})")
            return template.format(parts[0])
        if isinstance(current, BinaryOp):
            prec = _PRECEDENCE[current.op]
            if current.op == "^":
                left = wrap(parts[0], _precedence(current.left) <= prec)
                right = wrap(parts[1], _precedence(current.right) < _UNARY_PRECEDENCE)
                return f"{left}{symbols.get('^', '^')}{right}"
            left = wrap(parts[0], _precedence(current.left) < prec)
            right = wrap(parts[1], _precedence(current.right) <= prec)
            op = symbols.get(current.op, current.op)
            return f"{left} {op} {right}" if prec == 1 else f"{left}{op}{right}"
        raise TypeError(f"Unsupported expression node: {type(current).__name__}")

    return fold(node, render)
