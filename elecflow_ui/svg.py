"""SVG output for a Diagram.

Each panel becomes a nested <svg> sharing one vertical scale. The left
panel keeps its aspect ratio; the others stretch horizontally
(preserveAspectRatio="none"). Labels are drawn in the outer document so
the text is never stretched.
"""
from __future__ import annotations

from html import escape
from typing import Dict, List, Optional

from elecflow_engine.draw import PANELS, Diagram, Label
from elecflow_engine.schemas import (
    ARROW_HEAD_LENGTH,
    FONT_SIZE_PX,
    SVG_LHS_VISIBLE_WIDTH,
    TEXT_PADDING,
)

from .theme import FALLBACK_FILL, FONT_FAMILY, LABEL_WIDTH_PX, TEXT, TEXT_DIM, TINT

DEFAULT_PANEL_WIDTHS_PX = {
    "left": SVG_LHS_VISIBLE_WIDTH,
    "mid": 100.0,
    "right": 160.0,
}


def _num(v: float) -> str:
    return f"{v:.3f}".rstrip("0").rstrip(".")


def _pt(p) -> str:
    return f"{_num(p[0])},{_num(p[1])}"


def _fill(shape, diagram: Diagram) -> str:
    if getattr(shape, "color", None):
        return shape.color
    by_class = {
        "generation": diagram.colors.generation,
        "grid": diagram.colors.grid,
        "battery": diagram.colors.battery,
        "tint": TINT,
    }
    return by_class.get(getattr(shape, "css_class", ""), FALLBACK_FILL)


def shape_to_svg(shape, diagram: Diagram, id_prefix: str = "") -> List[str]:
    """Returns the elements for one shape; gradients also return their def."""
    if shape.kind == "ribbon":
        d = (f"M {_pt(shape.start_l)} C {_pt(shape.ctrl_start_l)} {_pt(shape.ctrl_end_l)} {_pt(shape.end_l)} "
             f"L {_pt(shape.end_r)} C {_pt(shape.ctrl_end_r)} {_pt(shape.ctrl_start_r)} {_pt(shape.start_r)} Z")
        return [f'<path class="{shape.css_class}" d="{d}" fill="{_fill(shape, diagram)}"/>']

    if shape.kind == "rect":
        sid = f' id="{id_prefix}{shape.shape_id}"' if shape.shape_id else ""
        return [f'<rect{sid} class="{shape.css_class}" x="{_num(shape.x)}" y="{_num(shape.y)}" '
                f'width="{_num(shape.width)}" height="{_num(shape.height)}" fill="{_fill(shape, diagram)}"/>']

    if shape.kind == "gradient_rect":
        gid = f"{id_prefix}{shape.shape_id}-gradient"
        grad = (f'<linearGradient id="{gid}" x1="{_num(shape.x1 * 100)}%" y1="{_num(shape.y1 * 100)}%" '
                f'x2="{_num(shape.x2 * 100)}%" y2="{_num(shape.y2 * 100)}%">'
                f'<stop offset="0%" stop-color="{shape.start_color}"/>'
                f'<stop offset="100%" stop-color="{shape.end_color}"/></linearGradient>')
        body = (f'<rect id="{id_prefix}{shape.shape_id}" x="{_num(shape.x)}" y="{_num(shape.y)}" '
                f'width="{_num(shape.width)}" height="{_num(shape.height)}" fill="url(#{gid})"/>')
        return [f"<defs>{grad}</defs>", body]

    if shape.kind == "polygon":
        points = " ".join(_pt(p) for p in shape.points)
        return [f'<polygon class="{shape.css_class}" points="{points}" fill="{_fill(shape, diagram)}"/>']

    raise ValueError(f"unknown shape kind: {shape.kind}")


def _panel_widths(diagram: Diagram, panel_widths_px: Optional[Dict[str, float]]) -> Dict[str, float]:
    widths = dict(DEFAULT_PANEL_WIDTHS_PX)
    widths.update(panel_widths_px or {})
    # Arrow heads and extras are drawn 1:1 in pixels.
    widths["far_right"] = diagram.panels["far_right"].width
    return widths


def _text(x: float, y: float, lines: List[str], anchor: str = "start", first_dim: bool = False) -> str:
    spans = []
    for i, line in enumerate(lines):
        fill = TEXT_DIM if first_dim and i == 0 else TEXT
        dy = "0" if i == 0 else _num(FONT_SIZE_PX)
        spans.append(f'<tspan x="{_num(x)}" dy="{dy}" fill="{fill}">{escape(line)}</tspan>')
    return (f'<text x="{_num(x)}" y="{_num(y)}" text-anchor="{anchor}" '
            f'font-family="{FONT_FAMILY}" font-size="{_num(FONT_SIZE_PX)}">{"".join(spans)}</text>')


def _label_lines(label: Label) -> List[str]:
    lines = [label.text] if label.text else []
    if label.kind == "grid":
        lines += [f"→ {label.formatted_a}", f"← {label.formatted_b}"]
    elif label.kind == "battery":
        lines += [f"↓ {label.formatted_a}", f"↑ {label.formatted_b}"]
    else:
        lines.append(label.formatted_a)
    return lines


def diagram_to_svg(diagram: Diagram, panel_widths_px: Optional[Dict[str, float]] = None,
                   id_prefix: str = "") -> str:
    widths = _panel_widths(diagram, panel_widths_px)
    scale = diagram.svg_scale_x
    height_px = diagram.height * scale
    top = FONT_SIZE_PX * 2 + TEXT_PADDING * 2
    left = LABEL_WIDTH_PX

    offsets: Dict[str, float] = {}
    x = left
    for name in PANELS:
        offsets[name] = x
        x += widths[name]
    total_width = x + LABEL_WIDTH_PX
    total_height = top + height_px + TEXT_PADDING

    parts = [f'<svg xmlns="http://www.w3.org/2000/svg" width="{_num(total_width)}" '
             f'height="{_num(total_height)}" viewBox="0 0 {_num(total_width)} {_num(total_height)}">']
    for name in PANELS:
        panel = diagram.panels[name]
        aspect = "" if name == "left" else ' preserveAspectRatio="none"'
        parts.append(f'<svg x="{_num(offsets[name])}" y="{_num(top)}" width="{_num(widths[name])}" '
                     f'height="{_num(height_px)}" viewBox="0 0 {_num(panel.width)} {_num(diagram.height)}"{aspect}>')
        for shape in panel.shapes:
            parts.extend(shape_to_svg(shape, diagram, id_prefix))
        parts.append("</svg>")

    for label in diagram.labels:
        panel = diagram.panels[label.panel]
        px = offsets[label.panel] + label.x * widths[label.panel] / panel.width
        py = top + label.y * scale
        lines = _label_lines(label)
        if label.kind == "generation":
            parts.append(_text(px, TEXT_PADDING + FONT_SIZE_PX, lines[-2:], "middle", first_dim=len(lines) > 1))
        elif label.kind == "grid":
            parts.append(_text(left - TEXT_PADDING, py - FONT_SIZE_PX, lines, "end", first_dim=True))
        elif label.kind == "battery":
            parts.append(_text(px + ARROW_HEAD_LENGTH + TEXT_PADDING, py, lines, first_dim=True))
        else:
            px = offsets["far_right"] + widths["far_right"] + TEXT_PADDING
            parts.append(_text(px, py, lines, first_dim=len(lines) > 1))
    parts.append("</svg>")
    return "".join(parts)
