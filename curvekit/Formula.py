"""Caller-owned formula records consumed by the plotting pipeline.

Purpose
-------
Defines ``Formula``, the unit that pairs formula text with everything needed
to sample it: kind (explicit, parametric, polar), declared domain, requested
sample count, output scale factor, parameter values and opaque stroke style.

Concepts and structure
----------------------
A ``Formula`` is mutated only between plot calls. Every setter validates
eagerly so bad input is reported at edit time:

- ``expression`` re-parses immediately and raises
  :class:`~curvekit.expression.ExpressionParseError` on malformed text,
- ``scale_factor`` and ``domain`` raise :class:`FormulaConfigError`,
- ``sample_target`` is clamped to the configured bounds.

The parsed models are cached on the instance; the pipeline never re-parses.

Examples
--------
>>> f = Formula("x*x")
>>> f.model.evaluate(3.0)
9.0
>>> f.scale_factor = 0  # doctest: +SKIP
Traceback (most recent call last):
FormulaConfigError: scale_factor must be a finite number > 0
"""

from __future__ import annotations

import enum
import random
import re
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .InputConvert import InputConvert
from .config import (
    DEFAULT_CONFIG,
    DEFAULT_EXPLICIT_DOMAIN,
    DEFAULT_PARAMETER_DOMAIN,
    DEFAULT_SAMPLE_TARGET,
    PlotConfig,
)
from .expression import (
    CONSTANT_ALIASES,
    CONSTANTS,
    FUNCTION_ALIASES,
    FUNCTIONS,
    ExpressionModel,
    ExpressionParseError,
    parse_cached,
    parse_parametric,
    tokenize,
)

NumberLike = Union[int, float, str]
RangeLike = Tuple[NumberLike, NumberLike]

_PARAMETER_NAME_RE = re.compile(r"^[A-Za-z]$")


class FormulaConfigError(ValueError):
    """Raised when a formula's numeric configuration is unusable."""


class FormulaKind(enum.Enum):
    """How the expression text maps to a curve."""

    EXPLICIT = "function"
    PARAMETRIC = "parametric"
    POLAR = "polar"

    @property
    def variable(self) -> str:
        """Canonical name of the sampled parameter."""
        return _VARIABLES[self][0]

    @property
    def aliases(self) -> Tuple[str, ...]:
        """Accepted alternative spellings of the sampled parameter."""
        return _VARIABLES[self][1]

    @property
    def default_domain(self) -> Tuple[float, float]:
        if self is FormulaKind.EXPLICIT:
            return DEFAULT_EXPLICIT_DOMAIN
        return DEFAULT_PARAMETER_DOMAIN


_VARIABLES: Dict[FormulaKind, Tuple[str, Tuple[str, ...]]] = {
    FormulaKind.EXPLICIT: ("x", ()),
    FormulaKind.PARAMETRIC: ("t", ()),
    FormulaKind.POLAR: ("theta", ("θ", "t")),
}


def _coerce_kind(value: Union[FormulaKind, str]) -> FormulaKind:
    if isinstance(value, FormulaKind):
        return value
    try:
        return FormulaKind(str(value).lower())
    except ValueError:
        try:
            return FormulaKind[str(value).upper()]
        except KeyError:
            raise FormulaConfigError(f"Unknown formula kind: {value!r}") from None


def _is_reserved(name: str, kind: FormulaKind) -> bool:
    return (
        name in FUNCTIONS
        or name in FUNCTION_ALIASES
        or name in CONSTANTS
        or name in CONSTANT_ALIASES
        or name == kind.variable
        or name in kind.aliases
    )


def parse_formula_text(
    text: str,
    kind: Union[FormulaKind, str] = FormulaKind.EXPLICIT,
    parameters: Tuple[str, ...] = (),
) -> Tuple[ExpressionModel, ...]:
    """Parse ``text`` for ``kind``: one model, or two for parametric curves."""
    kind = _coerce_kind(kind)
    if kind is FormulaKind.PARAMETRIC:
        return parse_parametric(text, kind.variable, aliases=kind.aliases, parameters=parameters)
    return (parse_cached(text.strip(), kind.variable, kind.aliases, tuple(parameters)),)


def validate_formula_text(
    text: str,
    kind: Union[FormulaKind, str] = FormulaKind.EXPLICIT,
    parameters: Tuple[str, ...] = (),
) -> Tuple[bool, Optional[str]]:
    """Return ``(True, None)`` or ``(False, reason)`` without raising."""
    try:
        parse_formula_text(text, kind, tuple(parameters))
    except ExpressionParseError as e:
        return False, str(e)
    return True, None


@dataclass(frozen=True)
class DetectedParameter:
    """Slider defaults for a free single-letter name found in formula text."""

    name: str
    default_value: float = 1.0
    min_value: float = -10.0
    max_value: float = 10.0
    step: float = 0.1


def detect_parameters(
    text: str,
    kind: Union[FormulaKind, str] = FormulaKind.EXPLICIT,
) -> List[DetectedParameter]:
    """Return free single-letter names in ``text`` in order of appearance.

    Function names, constants and the plot variable are excluded. Text the
    tokenizer rejects yields an empty list.
    """
    kind = _coerce_kind(kind)
    try:
        tokens = tokenize(text.replace(";", " "))
    except ExpressionParseError:
        return []
    found: Dict[str, DetectedParameter] = {}
    for token, following in zip(tokens, tokens[1:]):
        if token.kind != "name" or following.kind == "lparen":
            continue
        name = token.value
        if _PARAMETER_NAME_RE.match(name) and not _is_reserved(name, kind) and name not in found:
            found[name] = DetectedParameter(name=name)
    return list(found.values())


def generate_formula_id() -> str:
    """Return a fresh opaque formula identifier."""
    return f"formula-{int(time.time() * 1000)}-{random.randrange(1000)}"


class Formula:
    """
    A caller-owned formula: expression text plus sampling configuration.

    Parameters
    ----------
    expression : str
        Formula text. Parametric formulas use ``"f(t); g(t)"``.
    kind : FormulaKind or str, optional
        ``"function"`` (explicit ``y = f(x)``), ``"parametric"`` or ``"polar"``.
    id : str, optional
        Stable identifier; generated when omitted.
    name : str, optional
        Display name.
    domain : RangeLike, optional
        Outer clamp on the sampled parameter. Defaults per kind.
    sample_target : int, optional
        Requested sample count, clamped to the configured bounds.
    scale_factor : float, optional
        Positive multiplier applied to the output before mapping.
    parameters : mapping[str, float], optional
        Declared single-letter parameters and their current values.
    stroke_style : Any, optional
        Opaque display metadata passed through to renderers.
    config : PlotConfig, optional
        Bounds used to clamp ``sample_target``.

    Raises
    ------
    ExpressionParseError
        If the expression does not parse.
    FormulaConfigError
        If the numeric configuration is unusable.
    """

    def __init__(
        self,
        expression: str,
        kind: Union[FormulaKind, str] = FormulaKind.EXPLICIT,
        *,
        id: Optional[str] = None,
        name: str = "",
        domain: Optional[RangeLike] = None,
        sample_target: NumberLike = DEFAULT_SAMPLE_TARGET,
        scale_factor: NumberLike = 1.0,
        parameters: Optional[Mapping[str, NumberLike]] = None,
        stroke_style: Any = None,
        config: PlotConfig = DEFAULT_CONFIG,
    ) -> None:
        self._config = config
        self.id = id or generate_formula_id()
        self.name = name
        self.stroke_style = stroke_style
        self._kind = _coerce_kind(kind)
        self._parameters: Dict[str, float] = self._validate_parameters(parameters or {})
        self._expression = ""
        self._models: Tuple[ExpressionModel, ...] = ()
        self.expression = expression
        self.domain = domain
        self.sample_target = sample_target
        self.scale_factor = scale_factor

    # ------------------------------------------------------------------
    # Expression and kind
    # ------------------------------------------------------------------

    @property
    def expression(self) -> str:
        """Return the formula text."""
        return self._expression

    @expression.setter
    def expression(self, value: str) -> None:
        """Set and immediately parse the formula text."""
        if not isinstance(value, str):
            raise TypeError(f"expression must be str, got {type(value).__name__}")
        self._models = parse_formula_text(value, self._kind, tuple(self._parameters))
        self._expression = value

    @property
    def kind(self) -> FormulaKind:
        return self._kind

    @kind.setter
    def kind(self, value: Union[FormulaKind, str]) -> None:
        """Change the kind; the expression is re-parsed for the new variable."""
        kind = _coerce_kind(value)
        self._models = parse_formula_text(self._expression, kind, tuple(self._parameters))
        self._kind = kind
        if self._domain_is_default:
            self._domain = kind.default_domain

    @property
    def models(self) -> Tuple[ExpressionModel, ...]:
        """Return the parsed models (two for parametric formulas)."""
        return self._models

    @property
    def model(self) -> ExpressionModel:
        """Return the single parsed model of an explicit or polar formula."""
        if self._kind is FormulaKind.PARAMETRIC:
            raise AttributeError("parametric formulas have two models; use .models")
        return self._models[0]

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def _validate_parameters(self, values: Mapping[str, NumberLike]) -> Dict[str, float]:
        result: Dict[str, float] = {}
        for key, raw in values.items():
            name = str(key)
            if not _PARAMETER_NAME_RE.match(name) or _is_reserved(name, self._kind):
                raise FormulaConfigError(f"Invalid parameter name: {name!r}")
            try:
                result[name] = float(InputConvert(raw, float))
            except ValueError as e:
                raise FormulaConfigError(f"Invalid value for parameter {name!r}: {raw!r}") from e
        return result

    @property
    def parameters(self) -> Dict[str, float]:
        """Return a copy of the parameter values."""
        return dict(self._parameters)

    @parameters.setter
    def parameters(self, values: Mapping[str, NumberLike]) -> None:
        """Replace the declared parameters; the expression is re-parsed."""
        validated = self._validate_parameters(values)
        self._models = parse_formula_text(self._expression, self._kind, tuple(validated))
        self._parameters = validated

    def set_parameter(self, name: str, value: NumberLike) -> None:
        """Update the value of one declared parameter."""
        if name not in self._parameters:
            raise KeyError(f"Unknown parameter: {name!r}")
        self._parameters.update(self._validate_parameters({name: value}))

    # ------------------------------------------------------------------
    # Numeric configuration
    # ------------------------------------------------------------------

    @property
    def domain(self) -> Tuple[float, float]:
        """Return the declared parameter interval."""
        return self._domain

    @domain.setter
    def domain(self, value: Optional[RangeLike]) -> None:
        """Set the declared interval; ``None`` restores the kind default."""
        if value is None:
            self._domain = self._kind.default_domain
            self._domain_is_default = True
            return
        try:
            low, high = (float(InputConvert(v, float)) for v in value)
        except (TypeError, ValueError) as e:
            raise FormulaConfigError(f"Invalid domain: {value!r}") from e
        if not low < high:
            raise FormulaConfigError("domain minimum must be < maximum")
        self._domain = (low, high)
        self._domain_is_default = False

    @property
    def sample_target(self) -> int:
        return self._sample_target

    @sample_target.setter
    def sample_target(self, value: NumberLike) -> None:
        try:
            requested = int(InputConvert(value, int))
        except ValueError as e:
            raise FormulaConfigError(f"Invalid sample_target: {value!r}") from e
        self._sample_target = self._config.clamp_samples(requested)

    @property
    def scale_factor(self) -> float:
        return self._scale_factor

    @scale_factor.setter
    def scale_factor(self, value: NumberLike) -> None:
        try:
            scale = float(InputConvert(value, float))
        except ValueError as e:
            raise FormulaConfigError("scale_factor must be a finite number > 0") from e
        if not scale > 0:
            raise FormulaConfigError("scale_factor must be a finite number > 0")
        self._scale_factor = scale

    def update(self, **kwargs: Any) -> None:
        """Update several attributes at once.

        Supported keys are ``expression``, ``kind``, ``name``, ``domain``,
        ``sample_target``, ``scale_factor``, ``parameters`` and
        ``stroke_style``. ``kind`` and ``parameters`` are applied together
        with ``expression`` so intermediate states need not parse.
        """
        unknown = set(kwargs) - {
            "expression", "kind", "name", "domain", "sample_target",
            "scale_factor", "parameters", "stroke_style",
        }
        if unknown:
            raise TypeError(f"Formula.update() got unexpected keys: {sorted(unknown)}")

        kind = _coerce_kind(kwargs.get("kind", self._kind))
        if "parameters" in kwargs:
            previous_kind, self._kind = self._kind, kind
            try:
                parameters = self._validate_parameters(kwargs["parameters"])
            finally:
                self._kind = previous_kind
        else:
            parameters = self._parameters
        expression = kwargs.get("expression", self._expression)
        models = parse_formula_text(expression, kind, tuple(parameters))
        self._kind, self._parameters, self._expression, self._models = kind, parameters, expression, models
        if self._domain_is_default:
            self._domain = kind.default_domain

        if "name" in kwargs:
            self.name = kwargs["name"]
        if "stroke_style" in kwargs:
            self.stroke_style = kwargs["stroke_style"]
        if "domain" in kwargs:
            self.domain = kwargs["domain"]
        if "sample_target" in kwargs:
            self.sample_target = kwargs["sample_target"]
        if "scale_factor" in kwargs:
            self.scale_factor = kwargs["scale_factor"]

    def __repr__(self) -> str:
        return (
            f"Formula(id={self.id!r}, kind={self._kind.value!r}, "
            f"expression={self._expression!r}, scale_factor={self._scale_factor!r})"
        )


def create_default_formula(kind: Union[FormulaKind, str] = FormulaKind.EXPLICIT) -> Formula:
    """Return a new formula with the editor's starter expression for ``kind``."""
    kind = _coerce_kind(kind)
    expression = {
        FormulaKind.EXPLICIT: "x*x",
        FormulaKind.PARAMETRIC: "cos(t); sin(t)",
        FormulaKind.POLAR: "1",
    }[kind]
    color = f"#{random.randrange(0x1000000):06x}"
    return Formula(expression, kind, stroke_style={"color": color, "width": 2})


__all__ = [
    "DetectedParameter",
    "Formula",
    "FormulaConfigError",
    "FormulaKind",
    "create_default_formula",
    "detect_parameters",
    "generate_formula_id",
    "parse_formula_text",
    "validate_formula_text",
]
