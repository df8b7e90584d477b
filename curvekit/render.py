"""Renderer adapters for path segments.

The pipeline stops at device-space polylines. These helpers serialize them
for common consumers:

- :func:`segments_to_path_commands` emits one ``("M", x, y)`` move per
  segment followed by ``("L", x, y)`` line commands,
- :func:`segments_to_svg_path` joins those commands into SVG path data,
- :func:`segments_to_scatter` builds a Plotly ``Scatter`` trace, using
  ``None`` separators so Plotly lifts the pen between segments.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Tuple

import plotly.graph_objects as go

from .path_builder import PathSegment

PathCommand = Tuple[str, float, float]


def segments_to_path_commands(segments: Sequence[PathSegment]) -> List[PathCommand]:
    """Return move/line commands, one move per segment."""
    commands: List[PathCommand] = []
    for segment in segments:
        for i, point in enumerate(segment):
            commands.append(("M" if i == 0 else "L", point.device_x, point.device_y))
    return commands


def segments_to_svg_path(segments: Sequence[PathSegment], *, precision: int = 2) -> str:
    """Return SVG path data (``"M x y L x y ..."``) for ``segments``."""
    return " ".join(
        f"{cmd} {x:.{precision}f} {y:.{precision}f}" for cmd, x, y in segments_to_path_commands(segments)
    )


def _gapped_coordinates(segments: Sequence[PathSegment]) -> Tuple[List[Optional[float]], List[Optional[float]]]:
    xs: List[Optional[float]] = []
    ys: List[Optional[float]] = []
    for index, segment in enumerate(segments):
        if index:
            xs.append(None)
            ys.append(None)
        for point in segment:
            xs.append(point.device_x)
            ys.append(point.device_y)
    return xs, ys


def segments_to_scatter(
    segments: Sequence[PathSegment],
    *,
    name: str = "",
    stroke_style: Any = None,
    **trace: Any,
) -> go.Scatter:
    """Return a Plotly line trace drawing ``segments`` in device coordinates.

    Parameters
    ----------
    segments : sequence of PathSegment
        Pipeline output.
    name : str, optional
        Legend label.
    stroke_style : mapping, optional
        ``color``, ``width`` and ``dash`` keys are copied into the trace line;
        anything else is ignored.
    **trace : Any
        Extra ``go.Scatter`` fields.

    Notes
    -----
    Device y grows downward; display the trace with
    ``fig.update_yaxes(autorange="reversed")``.
    """
    xs, ys = _gapped_coordinates(segments)
    line = {}
    if isinstance(stroke_style, Mapping):
        line = {key: stroke_style[key] for key in ("color", "width", "dash") if key in stroke_style}
    return go.Scatter(
        x=xs,
        y=ys,
        mode="lines",
        name=name,
        line=line or None,
        connectgaps=False,
        **trace,
    )


__all__ = ["PathCommand", "segments_to_path_commands", "segments_to_scatter", "segments_to_svg_path"]
