# kemetic_mirror/mirror_engine/overlay/geometry.py
"""Pure construction of overlay shapes from a face's landmarks.

All offsets are absolute pixels in the mirrored surface space. Points are
mirrored here (``surface_width - x``) because the compositor draws the video
flipped while the landmark provider reports unflipped coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Tuple

from ..common.models import LandmarkSet
from ..landmarks import indices as idx
from .shapes import (
    EMPTY,
    ClosePath,
    Color,
    CubicTo,
    Glow,
    LinearGradient,
    LineTo,
    MoveTo,
    Point,
    QuadTo,
    RadialGradient,
    Shape,
    ShapeDescription,
    Stroke,
)
from .variants import OverlayVariant

__all__ = ["OverlayDefinition", "OVERLAYS", "build_geometry", "required_indices"]

GOLD = Color.hex("#FFD700")


class _Anchors:
    """Mirrored lookups into a LandmarkSet."""

    def __init__(self, landmarks: LandmarkSet, surface_width: float):
        self._landmarks = landmarks
        self._width = float(surface_width)

    def __call__(self, index: int) -> Point:
        x, y = self._landmarks.xy(index)
        return (self._width - x, y)

    @property
    def width(self) -> float:
        return self._width


def _striped_headdress(pt: _Anchors) -> ShapeDescription:
    top = pt(idx.FOREHEAD_TOP)
    left = pt(idx.LEFT_CHEEK)
    right = pt(idx.RIGHT_CHEEK)
    chin = pt(idx.CHIN)

    path = (
        MoveTo((top[0], top[1] - 120)),
        CubicTo((left[0] - 80, top[1]), (left[0] - 60, chin[1]), (left[0] - 20, chin[1] + 100)),
        LineTo((right[0] + 20, chin[1] + 100)),
        CubicTo((right[0] + 60, chin[1]), (right[0] + 80, top[1]), (top[0], top[1] - 120)),
    )
    gold, lapis = Color.hex("#DAA520"), Color.hex("#191970")
    fill = LinearGradient(
        start=(left[0], top[1]),
        end=(right[0], chin[1]),
        stops=((0.0, gold), (0.2, lapis), (0.4, gold), (0.6, lapis), (1.0, gold)),
    )
    return ShapeDescription(
        shapes=(Shape(path, fill=fill, stroke=Stroke(Color.hex("#B8860B"), 5)),),
        glow=Glow(Color(255, 215, 0, 0.8), 25),
    )


def _crown_headdress(pt: _Anchors) -> ShapeDescription:
    crown_height = 220
    top = pt(idx.FOREHEAD_TOP)
    left = pt(idx.LEFT_TEMPLE)
    right = pt(idx.RIGHT_TEMPLE)
    brow_y = top[1] - 20

    crown = (
        MoveTo((left[0], brow_y)),
        LineTo((left[0] - 10, top[1] - crown_height)),
        LineTo((right[0] + 10, top[1] - crown_height)),
        LineTo((right[0], brow_y)),
        ClosePath(),
    )
    navy, blue = Color.hex("#1e3a8a"), Color.hex("#3b82f6")
    fill = LinearGradient(
        start=(left[0], top[1]),
        end=(right[0], top[1]),
        stops=((0.0, navy), (0.5, blue), (1.0, navy)),
    )
    band = (MoveTo((left[0], brow_y)), LineTo((right[0], brow_y)))
    return ShapeDescription(
        shapes=(Shape(crown, fill=fill), Shape(band, stroke=Stroke(GOLD, 20))),
        glow=Glow(Color(59, 130, 246, 0.8), 30),
    )


def _collar(pt: _Anchors) -> ShapeDescription:
    neck = pt(idx.CHIN)
    l_shoulder = (neck[0] - 120, neck[1] + 150)
    r_shoulder = (neck[0] + 120, neck[1] + 150)

    path = (
        MoveTo((neck[0], neck[1] + 20)),
        CubicTo((l_shoulder[0], neck[1] + 40), l_shoulder, (neck[0], l_shoulder[1] + 20)),
        CubicTo((r_shoulder[0], l_shoulder[1]), (r_shoulder[0], neck[1] + 40), (neck[0], neck[1] + 20)),
    )
    fill = RadialGradient(
        center=(neck[0], neck[1] + 80),
        inner_radius=10,
        outer_radius=120,
        stops=(
            (0.0, Color.hex("#EF4444")),
            (0.3, Color.hex("#3B82F6")),
            (0.6, Color.hex("#10B981")),
            (1.0, Color.hex("#F59E0B")),
        ),
    )
    return ShapeDescription(
        shapes=(Shape(path, fill=fill, stroke=Stroke(GOLD, 3)),),
        glow=Glow(Color(245, 158, 11, 0.7), 25),
    )


def _facial_paint(pt: _Anchors) -> ShapeDescription:
    kohl = Stroke(Color(0, 0, 0, 0.7), 4)
    shapes = []
    for contour in (idx.LEFT_EYE_CONTOUR, idx.RIGHT_EYE_CONTOUR):
        eye = [pt(i) for i in contour]
        outline = (MoveTo(eye[0]),) + tuple(LineTo(p) for p in eye[1:]) + (ClosePath(),)
        shapes.append(Shape(outline, stroke=kohl))

        # The flick points away from the centre of the frame.
        cx, cy = eye[idx.EYE_CORNER_POSITION]
        direction = 1 if cx > pt.width / 2 else -1
        flick = (
            MoveTo((cx, cy)),
            QuadTo((cx + direction * 40, cy - 5), (cx + direction * 60, cy - 20)),
        )
        shapes.append(Shape(flick, stroke=kohl))
    return ShapeDescription(shapes=tuple(shapes), glow=Glow(Color(45, 212, 191, 0.5), 15))


def _full_mask(pt: _Anchors) -> ShapeDescription:
    top = pt(idx.FOREHEAD_TOP)
    chin = pt(idx.CHIN)
    left = pt(idx.LEFT_CHEEK)
    right = pt(idx.RIGHT_CHEEK)
    brow_y = top[1] - 50

    snout = (
        MoveTo((left[0], brow_y)),
        LineTo((right[0], brow_y)),
        LineTo((right[0] - 20, chin[1])),
        LineTo((chin[0], chin[1] + 40)),
        LineTo((left[0] + 20, chin[1])),
        ClosePath(),
    )
    ears = (
        MoveTo((left[0], brow_y)),
        LineTo((left[0] - 40, top[1] - 200)),
        LineTo((top[0], brow_y)),
        LineTo((right[0] + 40, top[1] - 200)),
        LineTo((right[0], brow_y)),
        ClosePath(),
    )
    jet = Color.hex("#111111")
    outline = Stroke(GOLD, 2)
    return ShapeDescription(
        shapes=(Shape(snout, fill=jet, stroke=outline), Shape(ears, fill=jet, stroke=outline)),
        glow=Glow(Color(147, 51, 234, 0.8), 35),
    )


@dataclass(frozen=True)
class OverlayDefinition:
    variant: OverlayVariant
    indices: FrozenSet[int]
    build: Callable[[_Anchors], ShapeDescription]


OVERLAYS: Dict[OverlayVariant, OverlayDefinition] = {
    definition.variant: definition
    for definition in (
        OverlayDefinition(
            OverlayVariant.HEADDRESS_STRIPED,
            frozenset({idx.FOREHEAD_TOP, idx.LEFT_CHEEK, idx.RIGHT_CHEEK, idx.CHIN}),
            _striped_headdress,
        ),
        OverlayDefinition(
            OverlayVariant.HEADDRESS_CROWN,
            frozenset({idx.FOREHEAD_TOP, idx.LEFT_TEMPLE, idx.RIGHT_TEMPLE}),
            _crown_headdress,
        ),
        OverlayDefinition(OverlayVariant.COLLAR, frozenset({idx.CHIN}), _collar),
        OverlayDefinition(
            OverlayVariant.FACIAL_PAINT,
            frozenset(idx.LEFT_EYE_CONTOUR + idx.RIGHT_EYE_CONTOUR),
            _facial_paint,
        ),
        OverlayDefinition(
            OverlayVariant.FULL_MASK,
            frozenset({idx.FOREHEAD_TOP, idx.CHIN, idx.LEFT_CHEEK, idx.RIGHT_CHEEK}),
            _full_mask,
        ),
    )
}


def required_indices(variant: OverlayVariant) -> Tuple[int, ...]:
    definition = OVERLAYS.get(OverlayVariant(variant))
    return tuple(sorted(definition.indices)) if definition else ()


def build_geometry(variant: OverlayVariant, landmarks: LandmarkSet, surface_width: float) -> ShapeDescription:
    """Returns the shapes for ``variant`` or an empty description when it cannot be drawn.

    An empty description is returned for ``OverlayVariant.NONE`` and whenever
    ``landmarks`` lacks one of the variant's required indices; this function
    never raises for a valid LandmarkSet.
    """
    definition = OVERLAYS.get(OverlayVariant(variant))
    if definition is None or landmarks is None:
        return EMPTY
    if not landmarks.has(definition.indices):
        return EMPTY
    return definition.build(_Anchors(landmarks, surface_width))
