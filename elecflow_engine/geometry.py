"""Drawable primitives for the flow diagram.

Shapes are plain value objects with explicit coordinates and CSS-style
colors. Mapping them onto a concrete drawing API is left to a renderer.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .schemas import INTERSECT_EPSILON, MIN_CROSS_SECTION

log = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass
class Ribbon:
    """Closed patch: start_l -> (bezier) -> end_l -> end_r -> (bezier) -> start_r."""
    start_l: Point
    start_r: Point
    end_l: Point
    end_r: Point
    ctrl_start_l: Point
    ctrl_end_l: Point
    ctrl_end_r: Point
    ctrl_start_r: Point
    css_class: str = ""
    color: Optional[str] = None

    kind = "ribbon"


@dataclass
class Rect:
    x: float
    y: float
    width: float
    height: float
    css_class: str = ""
    color: Optional[str] = None
    shape_id: Optional[str] = None

    kind = "rect"


@dataclass
class GradientRect:
    x: float
    y: float
    width: float
    height: float
    horizontal: bool
    # Gradient vector as fractions of the rect (0.0 or 1.0).
    x1: float
    y1: float
    x2: float
    y2: float
    start_color: str
    end_color: str
    shape_id: str

    kind = "gradient_rect"


@dataclass
class Polygon:
    points: List[Point]
    css_class: str = ""
    color: Optional[str] = None

    kind = "polygon"


def line_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> Optional[Tuple[float, float, bool, bool]]:
    """Intersection of the line p1->p2 with the line p3->p4.

    Lines are extrapolated; the two flags say whether the point lies within
    each segment. Returns None for parallel lines.
    """
    x1, y1 = p1
    x2, y2 = p2
    x3, y3 = p3
    x4, y4 = p4
    denom = (y4 - y3) * (x2 - x1) - (x4 - x3) * (y2 - y1)
    if abs(denom) < INTERSECT_EPSILON:
        log.warning("Lines do not intersect: %s-%s / %s-%s", p1, p2, p3, p4)
        return None
    ua = ((x4 - x3) * (y1 - y3) - (y4 - y3) * (x1 - x3)) / denom
    ub = ((x2 - x1) * (y1 - y3) - (y2 - y1) * (x1 - x3)) / denom
    x = x1 + ua * (x2 - x1)
    y = y1 + ua * (y2 - y1)
    return x, y, 0 <= ua <= 1, 0 <= ub <= 1


def flow_by_corners(
    start_l: Point,
    start_r: Point,
    end_l: Point,
    end_r: Point,
    css_class: str = "",
    color: Optional[str] = None,
) -> Optional[Ribbon]:
    """Join two cross-sections with a 4-corner bezier patch.

    Curves of constant width overlap badly when a wide trunk fans out and
    turns sharply. Instead each control point is where the line
    perpendicular to its cross-section meets the mirror line halfway between
    start and end.
    """
    s_lx, s_ly = start_l
    s_rx, s_ry = start_r
    e_lx, e_ly = end_l
    e_rx, e_ry = end_r

    if (math.hypot(s_lx - s_rx, s_ly - s_ry) < MIN_CROSS_SECTION
            or math.hypot(e_lx - e_rx, e_ly - e_ry) < MIN_CROSS_SECTION):
        return None

    mirror_a = ((s_lx + e_lx) / 2, (s_ly + e_ly) / 2)
    mirror_b = ((s_rx + e_rx) / 2, (s_ry + e_ry) / 2)

    ret1 = line_intersect(
        start_l, (s_lx - (s_ry - s_ly), s_ly - (s_lx - s_rx)), mirror_a, mirror_b)
    ret2 = line_intersect(
        end_l, (e_lx + (e_ry - e_ly), e_ly + (e_lx - e_rx)), mirror_a, mirror_b)
    ret3 = line_intersect(
        end_r, (e_rx + (e_ry - e_ly), e_ry + (e_lx - e_rx)), mirror_a, mirror_b)
    ret4 = line_intersect(
        start_r, (s_rx - (s_ry - s_ly), s_ry - (s_lx - s_rx)), mirror_a, mirror_b)
    if ret1 is None or ret2 is None or ret3 is None or ret4 is None:
        log.warning("Render flow failed for %s class=%r", (start_l, start_r, end_l, end_r), css_class)
        return None

    return Ribbon(
        start_l=start_l,
        start_r=start_r,
        end_l=end_l,
        end_r=end_r,
        ctrl_start_l=(ret1[0], ret1[1]),
        ctrl_end_l=(ret2[0], ret2[1]),
        ctrl_end_r=(ret3[0], ret3[1]),
        ctrl_start_r=(ret4[0], ret4[1]),
        css_class=css_class,
        color=color,
    )


def rect(x: float, y: float, width: float, height: float, css_class: str = "",
         color: Optional[str] = None, shape_id: Optional[str] = None) -> Rect:
    return Rect(x=x, y=y, width=width, height=height, css_class=css_class, color=color, shape_id=shape_id)


def blend_rect(
    start_l: Point,
    start_r: Point,
    end_l: Point,
    end_r: Point,
    start_color: str,
    end_color: str,
    shape_id: str,
) -> Optional[GradientRect]:
    """Rect whose fill blends from start_color to end_color.

    Only horizontal and vertical blends are supported.
    """
    s_lx, s_ly = start_l
    s_rx, s_ry = start_r
    e_lx, e_ly = end_l
    e_rx, e_ry = end_r
    if not ((s_lx == s_rx and e_lx == e_rx) or (s_ly == s_ry and e_ly == e_ry)):
        log.error("Unsupported blend flow dimensions for %s - only horiz/vert are implemented.", shape_id)
        return None

    # A vertical start cross-section means the blend runs horizontally.
    horizontal = s_lx == s_rx
    if horizontal:
        height = abs(s_ly - s_ry)
        width = abs(s_lx - e_lx)
        y1 = y2 = 0.0
        x1, x2 = (0.0, 1.0) if s_lx < e_lx else (1.0, 0.0)
    else:
        height = abs(s_ly - e_ly)
        width = abs(s_lx - s_rx)
        x1 = x2 = 0.0
        y1, y2 = (0.0, 1.0) if s_ly < e_ly else (1.0, 0.0)

    return GradientRect(
        x=min(s_lx, s_rx, e_lx, e_rx),
        y=min(s_ly, s_ry, e_ly, e_ry),
        width=width,
        height=height,
        horizontal=horizontal,
        x1=x1, y1=y1, x2=x2, y2=y2,
        start_color=start_color,
        end_color=end_color,
        shape_id=shape_id,
    )


def polygon(points: List[Point], css_class: str = "", color: Optional[str] = None) -> Polygon:
    return Polygon(points=list(points), css_class=css_class, color=color)
