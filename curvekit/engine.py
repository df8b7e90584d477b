"""Plotting pipeline: formula + viewport -> flagged points -> polyline segments.

Purpose
-------
``plot_formula`` chains the pipeline stages for one formula:

1. classify the parsed expression (AST only),
2. map the viewport to a visible parameter interval,
3. sample that interval with the classification's policy,
4. evaluate, scale, clamp and map the samples to device space,
5. split the flagged points into pen-lift segments.

Architecture notes
------------------
The call is synchronous, reentrant and holds no locks or module state, so
hosts may run it on worker threads. Stale-result handling is the caller's
job: pass a generation token from
:class:`~curvekit.interaction.GenerationCounter` and discard any
:class:`~curvekit.PlotResult.PlotResult` whose ``generation`` is behind.

Examples
--------
>>> from curvekit import Formula, Viewport, plot_formula
>>> vp = Viewport(origin=(400, 300), units_per_math_unit=50, extent=(800, 600))
>>> result = plot_formula(Formula("x*x", domain=(-10, 10)), vp)
>>> len(result.segments)
1
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import numpy as np

from .Formula import Formula, FormulaKind
from .PlotResult import PlotResult
from .classifier import ClassificationResult, classify, combine
from .config import DEFAULT_CONFIG, PlotConfig
from .domain import Mode, Viewport, padding_for, visible_range
from .evaluator import EvaluatedCurve, evaluate_explicit, evaluate_parametric, evaluate_polar
from .path_builder import build_segments
from .sampler import sample

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def classify_formula(formula: Formula) -> ClassificationResult:
    """Return the sampling classification for ``formula``."""
    if formula.kind is FormulaKind.EXPLICIT:
        return classify(formula.model)
    return combine(*(classify(model) for model in formula.models))


def _evaluate(
    formula: Formula,
    params: np.ndarray,
    viewport: Viewport,
    classification: ClassificationResult,
    config: PlotConfig,
) -> EvaluatedCurve:
    bindings = formula.parameters
    if formula.kind is FormulaKind.PARAMETRIC:
        x_model, y_model = formula.models
        return evaluate_parametric(
            x_model, y_model, params, viewport, formula.scale_factor, bindings, config=config
        )
    if formula.kind is FormulaKind.POLAR:
        return evaluate_polar(formula.model, params, viewport, formula.scale_factor, bindings, config=config)
    return evaluate_explicit(
        formula.model, params, viewport, formula.scale_factor, classification, bindings, config=config
    )


def plot_formula(
    formula: Formula,
    viewport: Viewport,
    *,
    mode: Optional[Mode] = None,
    generation: int = 0,
    config: PlotConfig = DEFAULT_CONFIG,
) -> PlotResult:
    """Run the full pipeline for one formula and viewport.

    Parameters
    ----------
    formula : Formula
        Formula to plot; read-only during the call.
    viewport : Viewport
        Device placement of the math coordinate system.
    mode : Mode, optional
        Fidelity override; defaults to ``viewport.mode``.
    generation : int, optional
        Request token echoed on the result for stale-result checks.
    config : PlotConfig, optional
        Tuning defaults.

    Returns
    -------
    PlotResult
        Points, segments and the decisions that produced them.
    """
    start = time.perf_counter()
    mode = viewport.mode if mode is None else mode
    classification = classify_formula(formula)

    if formula.kind is FormulaKind.EXPLICIT:
        domain = visible_range(
            viewport,
            formula.domain,
            padding_for(mode, config),
            classification,
            config=config,
        )
    else:
        domain = formula.domain

    params = sample(domain, classification, formula.sample_target, mode, config=config)
    curve = _evaluate(formula, params, viewport, classification, config)
    points = curve.points()
    segments = build_segments(points, viewport, classification, config=config)

    logger.debug(
        "plotted %s (%s, %s): %d samples, %d segments in %.2f ms",
        formula.id,
        classification.tag.value,
        mode.value,
        len(points),
        len(segments),
        (time.perf_counter() - start) * 1000.0,
    )
    return PlotResult(
        formula_id=formula.id,
        generation=int(generation),
        mode=mode,
        classification=classification,
        domain=domain,
        points=points,
        segments=tuple(segments),
        config=config,
    )


__all__ = ["classify_formula", "plot_formula"]
