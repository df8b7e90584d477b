"""Top-level public API for the ``curvekit`` package.

This module re-exports the plotting pipeline so hosts can import from a
single namespace, for example:

>>> from curvekit import Formula, Viewport, plot_formula  # doctest: +SKIP

It intentionally exposes both the one-call pipeline (:func:`plot_formula`)
and the individual stages (parse, classify, visible range, sample, evaluate,
build segments) for hosts that schedule or cache stages themselves.
"""

from .Formula import (
    DetectedParameter,
    Formula,
    FormulaConfigError,
    FormulaKind,
    create_default_formula,
    detect_parameters,
    generate_formula_id,
    validate_formula_text,
)
from .InputConvert import InputConvert
from .PlotResult import PickedPoint, PlotResult, pick_point
from .classifier import Classification, ClassificationResult, classify
from .config import DEFAULT_CONFIG, PlotConfig
from .display import format_for_display, to_latex, to_sympy
from .domain import Mode, Viewport, visible_range
from .engine import classify_formula, plot_formula
from .evaluator import SamplePoint, evaluate_explicit, evaluate_parametric, evaluate_polar
from .expression import (
    ExpressionModel,
    ExpressionParseError,
    ParseErrorReason,
    parse,
    parse_cached,
    parse_parametric,
)
from .formula_examples import FormulaExample, get_formula_examples
from .interaction import GenerationCounter, InteractionModeController, next_mode
from .path_builder import PathSegment, build_segments
from .render import segments_to_path_commands, segments_to_scatter, segments_to_svg_path
from .sampler import sample

__all__ = [
    "Classification",
    "ClassificationResult",
    "DEFAULT_CONFIG",
    "DetectedParameter",
    "ExpressionModel",
    "ExpressionParseError",
    "Formula",
    "FormulaConfigError",
    "FormulaExample",
    "FormulaKind",
    "GenerationCounter",
    "InputConvert",
    "InteractionModeController",
    "Mode",
    "ParseErrorReason",
    "PathSegment",
    "PickedPoint",
    "PlotConfig",
    "PlotResult",
    "SamplePoint",
    "Viewport",
    "build_segments",
    "classify",
    "classify_formula",
    "create_default_formula",
    "detect_parameters",
    "evaluate_explicit",
    "evaluate_parametric",
    "evaluate_polar",
    "format_for_display",
    "generate_formula_id",
    "get_formula_examples",
    "next_mode",
    "parse",
    "parse_cached",
    "parse_parametric",
    "pick_point",
    "plot_formula",
    "sample",
    "segments_to_path_commands",
    "segments_to_scatter",
    "segments_to_svg_path",
    "to_latex",
    "to_sympy",
    "validate_formula_text",
    "visible_range",
]
