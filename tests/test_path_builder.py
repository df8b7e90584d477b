from __future__ import annotations

import numpy as np
import pytest

from curvekit.classifier import Classification, ClassificationResult
from curvekit.config import DEFAULT_CONFIG
from curvekit.evaluator import SamplePoint
from curvekit.path_builder import PathSegment, build_segments, max_jump_for

NAN = float("nan")
ASYMPTOTIC = ClassificationResult(tag=Classification.ASYMPTOTIC_PERIODIC, linear_form=(1.0, 0.0))


def _points(ys, xs=None):
    xs = list(range(len(ys))) if xs is None else xs
    out = []
    for i, (dx, dy) in enumerate(zip(xs, ys)):
        if dy is None:
            out.append(SamplePoint(param=float(i), device_x=NAN, device_y=NAN, valid=False))
        else:
            out.append(SamplePoint(param=float(i), device_x=float(dx), device_y=float(dy), valid=True))
    return out


def _params(segment: PathSegment):
    return [p.param for p in segment]


def test_continuous_points_form_one_segment(viewport) -> None:
    segments = build_segments(_points([100, 110, 120, 130]), viewport)
    assert len(segments) == 1
    assert _params(segments[0]) == [0.0, 1.0, 2.0, 3.0]
    assert segments[0].param_range == (0.0, 3.0)


def test_invalid_point_lifts_the_pen(viewport) -> None:
    segments = build_segments(_points([100, 110, None, 120, 130]), viewport)
    assert [_params(s) for s in segments] == [[0.0, 1.0], [3.0, 4.0]]


def test_single_point_segments_are_dropped(viewport) -> None:
    segments = build_segments(_points([100, None, 120, 130, None, 140]), viewport)
    assert [_params(s) for s in segments] == [[2.0, 3.0]]


def test_points_outside_the_expanded_canvas_lift_the_pen(viewport) -> None:
    segments = build_segments(_points([100, 110, -1500, 120, 130]), viewport)
    assert [_params(s) for s in segments] == [[0.0, 1.0], [3.0, 4.0]]

    margin_edge = build_segments(_points([-1000, -990]), viewport)
    assert len(margin_edge) == 1

    wide = build_segments(_points([100, 110], xs=[0, 1900]), viewport)
    assert wide == []


def test_large_jump_closes_segment_and_starts_the_next(viewport) -> None:
    segments = build_segments(_points([100, 110, 260, 270]), viewport)
    assert [_params(s) for s in segments] == [[0.0, 1.0], [2.0, 3.0]]


def test_asymptotic_curves_use_the_tighter_threshold(viewport) -> None:
    ys = [100, 120, 180, 190]
    assert len(build_segments(_points(ys), viewport)) == 1
    assert len(build_segments(_points(ys), viewport, ASYMPTOTIC)) == 2


def test_explicit_threshold_override(viewport) -> None:
    assert len(build_segments(_points([100, 120, 140]), viewport, max_jump=10.0)) == 0
    assert len(build_segments(_points([100, 105, 110]), viewport, max_jump=10.0)) == 1


def test_max_jump_for() -> None:
    assert max_jump_for(ASYMPTOTIC) == DEFAULT_CONFIG.asymptotic_max_jump
    assert max_jump_for(ClassificationResult()) == DEFAULT_CONFIG.max_jump


def test_no_points_no_segments(viewport) -> None:
    assert build_segments([], viewport) == []
    assert build_segments(_points([None, None]), viewport) == []


def test_segment_device_xy(viewport) -> None:
    (segment,) = build_segments(_points([100, 110]), viewport)
    assert len(segment) == 2
    np.testing.assert_array_equal(segment.device_xy(), np.array([[0.0, 100.0], [1.0, 110.0]]))


def test_segment_is_frozen(viewport) -> None:
    (segment,) = build_segments(_points([100, 110]), viewport)
    with pytest.raises(AttributeError):
        segment.points = ()  # type: ignore[misc]
