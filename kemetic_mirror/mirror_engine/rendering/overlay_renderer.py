# kemetic_mirror/mirror_engine/rendering/overlay_renderer.py
"""Rasterises ShapeDescriptions onto BGR frames with OpenCV and NumPy."""

from __future__ import annotations

from typing import List, Tuple

import cv2
import numpy as np

from ..overlay.shapes import (
    ClosePath,
    Color,
    CubicTo,
    LinearGradient,
    LineTo,
    MoveTo,
    Paint,
    QuadTo,
    RadialGradient,
    Shape,
    ShapeDescription,
)

__all__ = ["flatten_path", "draw_shapes", "paint_layer"]

CURVE_STEPS = 24
"""Line segments used to approximate each bezier segment."""

Polyline = Tuple[np.ndarray, bool]


def _cubic(p0, p1, p2, p3, steps: int) -> np.ndarray:
    t = np.linspace(0.0, 1.0, steps + 1)[1:, None]
    mt = 1.0 - t
    return (mt ** 3) * p0 + 3 * (mt ** 2) * t * p1 + 3 * mt * (t ** 2) * p2 + (t ** 3) * p3


def _quadratic(p0, p1, p2, steps: int) -> np.ndarray:
    t = np.linspace(0.0, 1.0, steps + 1)[1:, None]
    mt = 1.0 - t
    return (mt ** 2) * p0 + 2 * mt * t * p1 + (t ** 2) * p2


def flatten_path(path, steps: int = CURVE_STEPS) -> List[Polyline]:
    """Turns path segments into (points, closed) polylines, one per subpath."""
    polylines: List[Polyline] = []
    current: List[np.ndarray] = []
    closed = False

    def flush():
        if len(current) >= 2:
            polylines.append((np.vstack(current), closed))

    for segment in path:
        if isinstance(segment, MoveTo):
            flush()
            current = [np.array([segment.point], dtype=np.float64)]
            closed = False
        elif not current:
            raise ValueError(f"Path segment {segment!r} has no starting point")
        elif isinstance(segment, LineTo):
            current.append(np.array([segment.point], dtype=np.float64))
        elif isinstance(segment, CubicTo):
            p0 = current[-1][-1]
            current.append(_cubic(p0, np.array(segment.control1), np.array(segment.control2), np.array(segment.point), steps))
        elif isinstance(segment, QuadTo):
            p0 = current[-1][-1]
            current.append(_quadratic(p0, np.array(segment.control), np.array(segment.point), steps))
        elif isinstance(segment, ClosePath):
            closed = True
        else:
            raise ValueError(f"Unknown path segment {segment!r}")
    flush()
    return polylines


def _to_int(points: np.ndarray) -> np.ndarray:
    return np.round(points).astype(np.int32).reshape(-1, 1, 2)


def _interpolate_stops(t: np.ndarray, stops) -> np.ndarray:
    """Maps gradient offsets to BGR float colors and alpha, shape (..., 4)."""
    offsets = [offset for offset, _ in stops]
    channels = []
    for getter in (lambda c: c.b, lambda c: c.g, lambda c: c.r, lambda c: c.a):
        channels.append(np.interp(t, offsets, [float(getter(color)) for _, color in stops]))
    return np.stack(channels, axis=-1)


def paint_layer(paint: Paint, x0: int, y0: int, width: int, height: int) -> np.ndarray:
    """Evaluates a paint over a pixel window, returning (h, w, 4) BGRA floats (alpha 0-1)."""
    if isinstance(paint, Color):
        layer = np.empty((height, width, 4), dtype=np.float64)
        layer[...] = (paint.b, paint.g, paint.r, paint.a)
        return layer

    ys, xs = np.mgrid[y0:y0 + height, x0:x0 + width].astype(np.float64)
    if isinstance(paint, LinearGradient):
        dx = paint.end[0] - paint.start[0]
        dy = paint.end[1] - paint.start[1]
        length_sq = dx * dx + dy * dy
        if length_sq == 0:
            t = np.zeros_like(xs)
        else:
            t = ((xs - paint.start[0]) * dx + (ys - paint.start[1]) * dy) / length_sq
    elif isinstance(paint, RadialGradient):
        span = paint.outer_radius - paint.inner_radius
        distance = np.hypot(xs - paint.center[0], ys - paint.center[1])
        t = (distance - paint.inner_radius) / span if span > 0 else np.zeros_like(xs)
    else:
        raise ValueError(f"Unsupported paint {paint!r}")
    return _interpolate_stops(np.clip(t, 0.0, 1.0), paint.stops)


def _blend(canvas: np.ndarray, mask: np.ndarray, paint: Paint) -> None:
    """Alpha-blends ``paint`` into ``canvas`` wherever ``mask`` (0-1 floats) is set."""
    ys, xs = np.nonzero(mask > 0)
    if ys.size == 0:
        return
    y0, y1 = ys.min(), ys.max() + 1
    x0, x1 = xs.min(), xs.max() + 1
    layer = paint_layer(paint, int(x0), int(y0), int(x1 - x0), int(y1 - y0))
    alpha = (layer[..., 3] * mask[y0:y1, x0:x1])[..., None]
    region = canvas[y0:y1, x0:x1].astype(np.float64)
    blended = region * (1.0 - alpha) + layer[..., :3] * alpha
    canvas[y0:y1, x0:x1] = np.clip(np.round(blended), 0, 255).astype(np.uint8)


def _fill_mask(shape_hw, polylines: List[Polyline]) -> np.ndarray:
    mask = np.zeros(shape_hw, dtype=np.uint8)
    polys = [_to_int(points) for points, _ in polylines if len(points) >= 3]
    if polys:
        cv2.fillPoly(mask, polys, 255, lineType=cv2.LINE_AA)
    return mask


def _stroke_mask(shape_hw, polylines: List[Polyline], width: int) -> np.ndarray:
    mask = np.zeros(shape_hw, dtype=np.uint8)
    for points, closed in polylines:
        cv2.polylines(mask, [_to_int(points)], closed, 255, max(1, int(width)), lineType=cv2.LINE_AA)
    return mask


def _draw_shape(canvas: np.ndarray, shape: Shape, glow) -> None:
    polylines = flatten_path(shape.path)
    if not polylines:
        return
    shape_hw = canvas.shape[:2]
    fill_mask = _fill_mask(shape_hw, polylines) if shape.fill is not None else None
    stroke_mask = _stroke_mask(shape_hw, polylines, shape.stroke.width) if shape.stroke is not None else None

    if glow is not None and glow.blur > 0 and glow.color.a > 0:
        silhouette = np.zeros(shape_hw, dtype=np.uint8)
        for mask in (fill_mask, stroke_mask):
            if mask is not None:
                np.maximum(silhouette, mask, out=silhouette)
        # Canvas shadowBlur corresponds to a Gaussian with sigma = blur / 2.
        halo = cv2.GaussianBlur(silhouette.astype(np.float32) / 255.0, (0, 0), sigmaX=glow.blur / 2.0)
        _blend(canvas, halo.astype(np.float64), glow.color)

    if fill_mask is not None:
        _blend(canvas, fill_mask.astype(np.float64) / 255.0, shape.fill)
    if stroke_mask is not None:
        _blend(canvas, stroke_mask.astype(np.float64) / 255.0, shape.stroke.color)


def draw_shapes(canvas: np.ndarray, description: ShapeDescription) -> np.ndarray:
    """Draws every shape of ``description`` onto ``canvas`` in place and returns it."""
    for shape in description.shapes:
        _draw_shape(canvas, shape, description.glow)
    return canvas
