from __future__ import annotations

import numpy as np
import pytest

from mirror_engine.overlay.shapes import (
    ClosePath,
    Color,
    CubicTo,
    Glow,
    LinearGradient,
    LineTo,
    MoveTo,
    RadialGradient,
    Shape,
    ShapeDescription,
    Stroke,
)
from mirror_engine.rendering.overlay_renderer import draw_shapes, flatten_path, paint_layer

SQUARE = (MoveTo((20, 20)), LineTo((80, 20)), LineTo((80, 80)), LineTo((20, 80)), ClosePath())


def test_flatten_splits_subpaths_and_tracks_closure() -> None:
    polylines = flatten_path(SQUARE + (MoveTo((0, 0)), LineTo((5, 5))))
    assert len(polylines) == 2
    (square, square_closed), (line, line_closed) = polylines
    assert square.shape == (4, 2)
    assert square_closed and not line_closed
    assert line.tolist() == [[0.0, 0.0], [5.0, 5.0]]


def test_flatten_curve_ends_on_its_endpoint() -> None:
    (points, _), = flatten_path((MoveTo((0, 0)), CubicTo((10, 0), (20, 10), (30, 30))), steps=8)
    assert points.shape == (9, 2)
    assert points[-1].tolist() == pytest.approx([30.0, 30.0])


def test_flatten_rejects_segment_without_start() -> None:
    with pytest.raises(ValueError):
        flatten_path((LineTo((1, 1)),))


def test_solid_paint_layer() -> None:
    layer = paint_layer(Color(10, 20, 30, 0.5), 0, 0, 4, 3)
    assert layer.shape == (3, 4, 4)
    assert layer[0, 0].tolist() == [30.0, 20.0, 10.0, 0.5]


def test_linear_gradient_interpolates_along_axis() -> None:
    gradient = LinearGradient(start=(0, 0), end=(10, 0), stops=((0.0, Color(0, 0, 0)), (1.0, Color(200, 0, 0))))
    layer = paint_layer(gradient, 0, 0, 11, 1)
    reds = layer[0, :, 2]
    assert reds[0] == pytest.approx(0.0)
    assert reds[5] == pytest.approx(100.0)
    assert reds[10] == pytest.approx(200.0)


def test_zero_length_gradient_uses_first_stop() -> None:
    gradient = LinearGradient(start=(5, 5), end=(5, 5), stops=((0.0, Color(1, 2, 3)), (1.0, Color(9, 9, 9))))
    layer = paint_layer(gradient, 0, 0, 3, 3)
    assert np.all(layer[..., :3] == [3.0, 2.0, 1.0])


def test_radial_gradient_clamps_inside_inner_radius() -> None:
    gradient = RadialGradient(
        center=(0, 0), inner_radius=2, outer_radius=12, stops=((0.0, Color(0, 0, 0)), (1.0, Color(0, 0, 250)))
    )
    layer = paint_layer(gradient, 0, 0, 13, 1)
    blues = layer[0, :, 0]
    assert blues[1] == pytest.approx(0.0)
    assert blues[7] == pytest.approx(125.0)
    assert blues[12] == pytest.approx(250.0)


def test_draw_fills_and_strokes_in_place() -> None:
    canvas = np.zeros((100, 100, 3), dtype=np.uint8)
    description = ShapeDescription(shapes=(Shape(SQUARE, fill=Color(0, 0, 255), stroke=Stroke(Color(255, 0, 0), 3)),))
    result = draw_shapes(canvas, description)
    assert result is canvas
    assert canvas[50, 50].tolist() == [255, 0, 0]
    assert canvas[20, 50].tolist() == [0, 0, 255]
    assert canvas[5, 5].tolist() == [0, 0, 0]


def test_glow_bleeds_outside_the_shape() -> None:
    plain = np.zeros((100, 100, 3), dtype=np.uint8)
    glowing = plain.copy()
    shape = Shape(SQUARE, fill=Color(255, 255, 255))
    draw_shapes(plain, ShapeDescription(shapes=(shape,)))
    draw_shapes(glowing, ShapeDescription(shapes=(shape,), glow=Glow(Color(255, 215, 0, 0.8), 10)))
    assert plain[15, 50].sum() == 0
    assert glowing[15, 50].sum() > 0


def test_empty_description_leaves_canvas_untouched() -> None:
    canvas = np.full((10, 10, 3), 7, dtype=np.uint8)
    draw_shapes(canvas, ShapeDescription())
    assert np.all(canvas == 7)
