# kemetic_mirror/mirror_engine/overlay/shapes.py
"""Immutable description of what an overlay looks like for one frame.

The geometry library produces these and the renderer rasterises them; nothing
here knows about OpenCV.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

Point = Tuple[float, float]


@dataclass(frozen=True)
class Color:
    """RGB in 0-255 with alpha in 0-1."""

    r: int
    g: int
    b: int
    a: float = 1.0

    @classmethod
    def hex(cls, value: str, alpha: float = 1.0) -> "Color":
        value = value.lstrip("#")
        if len(value) == 3:
            value = "".join(ch * 2 for ch in value)
        if len(value) != 6:
            raise ValueError(f"Not a hex color: #{value}")
        return cls(int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16), alpha)

    def bgr(self) -> Tuple[int, int, int]:
        return (self.b, self.g, self.r)


ColorStop = Tuple[float, Color]


@dataclass(frozen=True)
class MoveTo:
    point: Point


@dataclass(frozen=True)
class LineTo:
    point: Point


@dataclass(frozen=True)
class CubicTo:
    control1: Point
    control2: Point
    point: Point


@dataclass(frozen=True)
class QuadTo:
    control: Point
    point: Point


@dataclass(frozen=True)
class ClosePath:
    pass


PathSegment = Union[MoveTo, LineTo, CubicTo, QuadTo, ClosePath]


@dataclass(frozen=True)
class LinearGradient:
    start: Point
    end: Point
    stops: Tuple[ColorStop, ...]


@dataclass(frozen=True)
class RadialGradient:
    """Concentric radial gradient: offset 0 at ``inner_radius``, 1 at ``outer_radius``."""

    center: Point
    inner_radius: float
    outer_radius: float
    stops: Tuple[ColorStop, ...]


Paint = Union[Color, LinearGradient, RadialGradient]


@dataclass(frozen=True)
class Stroke:
    color: Color
    width: int


@dataclass(frozen=True)
class Glow:
    color: Color
    blur: float


@dataclass(frozen=True)
class Shape:
    path: Tuple[PathSegment, ...]
    fill: Optional[Paint] = None
    stroke: Optional[Stroke] = None


@dataclass(frozen=True)
class ShapeDescription:
    """Shapes in draw order plus the glow shared by all of them."""

    shapes: Tuple[Shape, ...] = field(default_factory=tuple)
    glow: Optional[Glow] = None

    @property
    def is_empty(self) -> bool:
        return not self.shapes


EMPTY = ShapeDescription()
