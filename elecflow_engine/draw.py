"""Turn a snapshot into an ordered draw list.

Pipeline for one cycle: reconcile -> scale -> group -> layout -> draw. No
state is kept between cycles; DiagramCache is the only memoisation and it
is keyed explicitly on the snapshot fingerprint.
"""
from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Tuple

from .core import ReconciledFlows, reconcile
from .geometry import blend_rect, flow_by_corners, polygon, rect
from .grouping import group_consumers
from .layout import Layout, compute_layout
from .scale import FlowWidths
from .schemas import (
    ARROW_HEAD_LENGTH,
    BATTERIES_FAN_OUT_VERTICAL_GAP,
    BATTERY_LABEL_HEIGHT,
    CONSUMER_BLEND_LENGTH,
    CONSUMER_BLEND_LENGTH_PRE_FAN_OUT,
    CONSUMER_LABEL_HEIGHT,
    CONSUMER_PANEL_WIDTH,
    CONSUMERS_FAN_OUT_VERTICAL_GAP,
    DiagramColors,
    FlowSnapshot,
    GENERATION_FAN_OUT_HORIZONTAL_GAP,
    ICON_BATTERY,
    ICON_BATTERY_CHARGING,
    ICON_GRID,
    OTHER_ID,
    PAD_ANTIALIAS,
    PHANTOM_GENERATION_KEY,
    Route,
    TERMINATOR_BLOCK_LENGTH,
    TEXT_PADDING,
    UNTRACKED_ID,
    clean_rate,
)

log = logging.getLogger(__name__)

PANELS = ("left", "mid", "right", "far_right")


class LabelFormatter:
    """Rounds and formats label values. Replace to localise numbers."""

    def round_value(self, value: float, unit: str) -> float:
        return round(value * 10) / 10

    def format_value(self, value: float, unit: str) -> str:
        text = f"{self.round_value(value, unit):.1f}"
        if text.endswith(".0"):
            text = text[:-2]
        return f"{text} {unit}"


class UnitLabelFormatter(LabelFormatter):
    """One decimal for energy units, whole numbers for power."""

    def round_value(self, value: float, unit: str) -> float:
        digits = 1 if unit.lower().endswith("wh") else 0
        return round(value, digits)

    def format_value(self, value: float, unit: str) -> str:
        digits = 1 if unit.lower().endswith("wh") else 0
        return f"{value:,.{digits}f} {unit}"


class ExtrasRenderer:
    """Draws decorations just before each consumer arrow head.

    length is the width reserved for them in the far-right panel.
    """
    length = 0.0

    def render(self, x: float, y: float, width: float, color: str, route: Route) -> list:
        return []


class BarExtras(ExtrasRenderer):
    def __init__(self, length: float = 30.0):
        self.length = float(length)

    def render(self, x: float, y: float, width: float, color: str, route: Route) -> list:
        return [rect(0.0, y, self.length, width, "extra", color)]


@dataclass
class Label:
    panel: str
    x: float
    y: float
    kind: str
    text: Optional[str] = None
    value_a: float = 0.0
    value_b: Optional[float] = None
    formatted_a: str = ""
    formatted_b: Optional[str] = None
    icon: Optional[str] = None
    route_id: Optional[str] = None


@dataclass
class Panel:
    name: str
    width: float
    shapes: list = field(default_factory=list)

    def add(self, *shapes) -> None:
        # Degenerate geometry comes back as None and is simply not drawn.
        self.shapes.extend(s for s in shapes if s is not None)


@dataclass
class Diagram:
    unit: str
    flows: ReconciledFlows
    widths: FlowWidths
    layout: Layout
    consumers: Dict[str, Route]
    panels: Dict[str, Panel]
    labels: List[Label]
    height: float
    colors: DiagramColors = field(default_factory=DiagramColors)

    @property
    def svg_scale_x(self) -> float:
        return self.layout.svg_scale_x


class _Drawer:
    """Draws one diagram. Lives only for the duration of build_diagram."""

    def __init__(self, snapshot: FlowSnapshot, flows: ReconciledFlows, widths: FlowWidths,
                 layout: Layout, colors: DiagramColors, formatter: LabelFormatter,
                 extras: ExtrasRenderer):
        self.snapshot = snapshot
        self.flows = flows
        self.w = widths
        self.lay = layout
        self.colors = colors
        self.formatter = formatter
        self.extras = extras
        self.unit = snapshot.unit
        self.labels: List[Label] = []
        self.panels = {
            "left": Panel("left", layout.x1),
            "mid": Panel("mid", CONSUMER_PANEL_WIDTH),
            "right": Panel("right", CONSUMER_PANEL_WIDTH),
            "far_right": Panel("far_right", ARROW_HEAD_LENGTH + extras.length),
        }

    def label(self, panel: str, x: float, y: float, kind: str, value_a: float,
              value_b: Optional[float] = None, text: Optional[str] = None,
              icon: Optional[str] = None, route_id: Optional[str] = None) -> None:
        self.labels.append(Label(
            panel=panel,
            x=x,
            y=y,
            kind=kind,
            text=text,
            value_a=self.formatter.round_value(value_a, self.unit),
            value_b=self.formatter.round_value(value_b, self.unit) if value_b is not None else None,
            formatted_a=self.formatter.format_value(value_a, self.unit),
            formatted_b=self.formatter.format_value(value_b, self.unit) if value_b is not None else None,
            icon=icon,
            route_id=route_id,
        ))

    # -- left panel -----------------------------------------------------

    def generation_to_consumers(self) -> None:
        lay, w = self.lay, self.w
        left = self.panels["left"]
        routes = dict(self.snapshot.generation_routes)
        phantom = self.flows.phantom_generation
        if phantom is not None:
            routes[PHANTOM_GENERATION_KEY] = phantom
        if w.generation_to_consumers == 0 and not routes:
            return

        total_width = w.generation_in
        gap = GENERATION_FAN_OUT_HORIZONTAL_GAP / lay.svg_scale_x
        fan_out_width = total_width + (len(routes) - 1) * gap
        x_a = lay.x0 + total_width / 2 - fan_out_width / 2
        x_b = lay.x0
        phantom_rate = phantom.rate if phantom is not None else 0.0

        for route in routes.values():
            rate = max(clean_rate(route.rate), 0.0)
            width = 0.0
            # Zero-rate sources are skipped unless a phantom source exists.
            if rate or phantom_rate > 0:
                width = w.width(rate)
                left.add(
                    flow_by_corners(
                        (x_a + width, 0.0), (x_a, 0.0),
                        (x_b + width, TERMINATOR_BLOCK_LENGTH), (x_b, TERMINATOR_BLOCK_LENGTH),
                        "generation"),
                    polygon([(x_a + width, 0.0), (x_a, 0.0), (x_a + width / 2, ARROW_HEAD_LENGTH)], "tint"),
                )
            self.label("left", x_a + width / 2, 0.0, "generation", rate,
                       text=route.text, icon=route.icon, route_id=route.id)
            x_a += width + gap
            x_b += width

        if w.generation_to_consumers > 0:
            left.add(flow_by_corners(
                (lay.x16, lay.y0 - PAD_ANTIALIAS), (lay.x15, lay.y0 - PAD_ANTIALIAS),
                (lay.x1, lay.y1), (lay.x1, lay.y2),
                "generation"))

    def generation_to_grid(self) -> None:
        lay = self.lay
        width = self.w.generation_to_grid
        if width == 0:
            return
        self.panels["left"].add(
            flow_by_corners(
                (lay.x0 + width, lay.y0), (lay.x0, lay.y0),
                (lay.x11, lay.y10 + width), (lay.x11, lay.y10),
                "generation"),
            rect(lay.arrow_head_length, lay.y10, lay.x11 - lay.arrow_head_length, width, "generation"),
        )

    def generation_to_grid_blend(self) -> None:
        lay = self.lay
        if not self.w.generation_to_grid:
            return
        self.panels["left"].add(blend_rect(
            (lay.x11, lay.y11), (lay.x11, lay.y10), (lay.x10, lay.y11), (lay.x10, lay.y10),
            self.colors.generation, lay.grid_out_blend_color, "gen-grid-out-blend-rect"))

    def grid_out_arrow(self) -> None:
        lay = self.lay
        if self.w.grid_out == 0:
            return
        self.panels["left"].add(polygon(
            [(lay.x10, lay.y10), (lay.x10, lay.y2), (lay.x10 - lay.arrow_head_length, (lay.y10 + lay.y2) / 2)],
            "grid-out-arrow", lay.grid_out_blend_color))

    def generation_to_batteries(self) -> None:
        lay = self.lay
        if self.w.generation_to_batteries == 0:
            return
        self.panels["left"].add(rect(lay.x14, lay.y0, lay.x15 - lay.x14, lay.y17 - lay.y0, "generation"))

    def grid_to_batteries(self) -> None:
        lay = self.lay
        if self.w.grid_to_batteries == 0:
            return
        self.panels["left"].add(flow_by_corners(
            (lay.x10, lay.y5), (lay.x10, lay.y13), (lay.x14, lay.y17), (lay.x17, lay.y17), "grid"))

    def batteries_to_grid_blend(self) -> None:
        lay = self.lay
        if not self.w.batteries_to_grid:
            return
        self.panels["left"].add(blend_rect(
            (lay.x11, lay.y2), (lay.x11, lay.y11), (lay.x10, lay.y2), (lay.x10, lay.y11),
            self.colors.battery, lay.grid_out_blend_color, "batt-grid-out-blend-rect"))

    def grid_in(self) -> None:
        lay = self.lay
        grid_route = self.snapshot.grid_in_route or self.snapshot.grid_out_route
        if grid_route is None:
            return
        in_width = lay.y13 - lay.y2
        arrow = lay.arrow_head_length
        self.panels["left"].add(
            rect(0.0, lay.y2, arrow, in_width, "grid", shape_id="grid-in-rect"),
            polygon([(0.0, lay.y2), (0.0, lay.y2 + in_width), (arrow, lay.y2 + in_width / 2)], "tint"),
        )
        self.label("left", 0.0, (lay.y10 + lay.y13) / 2, "grid",
                   self.flows.grid_import, self.flows.grid_export,
                   text=grid_route.text, icon=ICON_GRID, route_id=grid_route.id)

    def grid_to_consumers(self) -> None:
        lay = self.lay
        if self.w.grid_to_consumers == 0:
            return
        self.panels["left"].add(rect(
            lay.x10, lay.y2, lay.x1 - lay.x10, lay.y5 - lay.y2, "grid", shape_id="grid-to-cons-rect"))

    def batteries_to_consumers(self) -> None:
        lay = self.lay
        if self.w.batteries_to_consumers == 0:
            return
        self.panels["left"].add(flow_by_corners(
            (lay.x20, lay.y17), (lay.x21, lay.y17), (lay.x1, lay.y5), (lay.x1, lay.y4), "battery"))

    def batteries_to_grid(self) -> None:
        lay = self.lay
        if self.w.batteries_to_grid == 0:
            return
        self.panels["left"].add(flow_by_corners(
            (lay.x15, lay.y17), (lay.x20, lay.y17), (lay.x11, lay.y2), (lay.x11, lay.y11), "battery"))

    def batteries_in_out(self) -> float:
        """Battery charge blend, bus and per-battery fan-out.

        Returns the bottom of the battery labels.
        """
        lay, w = self.lay, self.w
        left = self.panels["left"]
        bottom: list = []
        top: list = []
        gap = BATTERIES_FAN_OUT_VERTICAL_GAP / lay.svg_scale_x
        arrow = lay.arrow_head_length
        batt_out_color = lay.to_batteries_blend_color

        if w.grid_to_batteries != 0:
            bottom.append(blend_rect(
                (lay.x14, lay.y17), (lay.x17, lay.y17), (lay.x14, lay.y18), (lay.x17, lay.y18),
                self.colors.grid, batt_out_color, "grid-to-batt-blend"))
        if w.generation_to_batteries != 0:
            bottom.append(blend_rect(
                (lay.x15, lay.y17), (lay.x14, lay.y17), (lay.x15, lay.y18), (lay.x14, lay.y18),
                self.colors.generation, batt_out_color, "gen-to-batt-blend"))
        if self.flows.battery_discharge > 0:
            bottom.append(rect(lay.x15, lay.y17, lay.x21 - lay.x15, lay.y18 - lay.y17, "battery"))

        x_a = lay.x21
        y_a = lay.y18
        x_b = lay.x15
        curve_pad = lay.x1 - lay.x21 if self.snapshot.battery_routes else 0.0

        for key, pair in self.snapshot.battery_routes.items():
            out_rate = pair.charge_rate()
            in_rate = pair.discharge_rate()
            width_out = w.width(out_rate) if out_rate > 0 else 0.0
            width_in = w.width(in_rate) if in_rate > 0 else 0.0
            band = gap + width_out + width_in

            if width_in > 0:
                bottom.append(flow_by_corners(
                    (x_a, y_a), (x_a - width_in, y_a),
                    (lay.x1, y_a + curve_pad), (lay.x1, y_a + curve_pad + width_in),
                    "battery"))
                bottom.append(polygon([
                    (lay.x1, y_a + curve_pad),
                    (lay.x1 - arrow, y_a + curve_pad + width_in / 2),
                    (lay.x1, y_a + curve_pad + width_in),
                ], "tint"))
                x_a -= width_in
            if x_a - lay.x15 > 1:
                bottom.append(rect(lay.x15, y_a, x_a - lay.x15, band, "battery"))
            if width_out > 0:
                top.append(flow_by_corners(
                    (x_b, y_a), (x_b - width_out, y_a),
                    (lay.x1 - arrow, y_a + curve_pad + width_in),
                    (lay.x1 - arrow, y_a + curve_pad + width_in + width_out),
                    "battery", batt_out_color))
                bottom.append(polygon([
                    (lay.x1 - arrow, y_a + curve_pad + width_in),
                    (lay.x1, y_a + curve_pad + width_in + width_out / 2),
                    (lay.x1 - arrow, y_a + curve_pad + width_in + width_out),
                ], "battery-out-arrow", batt_out_color))
                x_b -= width_out
            if x_b - lay.x17 > 1:
                bottom.append(rect(lay.x17, y_a, x_b - lay.x17, band, "battery-in", batt_out_color))

            self.label("left", lay.x1, y_a + curve_pad + (width_out + width_in) / 2, "battery",
                       out_rate, in_rate,
                       text=pair.in_route.text,
                       icon=ICON_BATTERY_CHARGING if out_rate > 0 else ICON_BATTERY,
                       route_id=pair.in_route.id or key)
            y_a += band

        left.add(*bottom)
        left.add(*top)
        return y_a - gap + curve_pad + BATTERY_LABEL_HEIGHT / 2

    # -- mid panel ------------------------------------------------------

    def consumer_blends(self) -> None:
        lay, w = self.lay, self.w
        mid = self.panels["mid"]
        end = CONSUMER_BLEND_LENGTH + 1
        color = lay.to_consumers_blend_color
        if w.generation_to_consumers:
            mid.add(blend_rect((0.0, lay.y1), (0.0, lay.y2), (end, lay.y1), (end, lay.y2),
                               self.colors.generation, color, "gen-in-blend-rect"))
        if w.grid_to_consumers:
            mid.add(blend_rect((0.0, lay.y2), (0.0, lay.y5), (end, lay.y2), (end, lay.y5),
                               self.colors.grid, color, "grid-in-blend-rect"))
        if w.batteries_to_consumers:
            mid.add(blend_rect((0.0, lay.y5), (0.0, lay.y4), (end, lay.y5), (end, lay.y4),
                               self.colors.battery, color, "batt-in-blend-rect"))
        mid.add(rect(CONSUMER_BLEND_LENGTH, lay.y1, CONSUMER_BLEND_LENGTH_PRE_FAN_OUT + 1, lay.y4 - lay.y1,
                     "blend", color, shape_id="blended-flow-pre-fan-out-rect"))

    # -- right panels ---------------------------------------------------

    def consumer_flow(self, y_left: float, y_right: float, route: Route) -> Tuple[float, float]:
        color = self.lay.to_consumers_blend_color
        rate = max(clean_rate(route.rate), 0.0)
        width = self.w.width(rate)
        x_right = CONSUMER_PANEL_WIDTH
        y_end = y_right + width / 2

        self.panels["right"].add(flow_by_corners(
            (0.0, y_left), (0.0, y_left + width),
            (x_right + PAD_ANTIALIAS, y_right), (x_right + PAD_ANTIALIAS, y_right + width),
            "consumer", color))
        far_right = self.panels["far_right"]
        far_right.add(*self.extras.render(x_right, y_right, width, color, route))
        ext = self.extras.length
        far_right.add(polygon(
            [(ext, y_end - width / 2), (ext, y_end + width / 2), (ext + ARROW_HEAD_LENGTH, y_end)],
            "consumer-arrow", color))

        route_id = None if route.id in (UNTRACKED_ID, OTHER_ID) else route.id
        self.label("right", x_right, y_end, "consumer", rate, text=route.text, route_id=route_id)

        # A zero-rate branch is still drawn one unit wide, but does not
        # consume any of the trunk.
        bottom_left = y_left + (width if rate != 0 else 0.0)
        return bottom_left, y_right + width

    def consumer_flows(self, consumers: Dict[str, Route]) -> float:
        """Fan the consumer trunk out; returns the bottom of the last label."""
        lay = self.lay
        gap = CONSUMERS_FAN_OUT_VERTICAL_GAP / lay.svg_scale_x
        total_height = lay.y4 - lay.y1 + len(consumers) * gap
        y_left = lay.y1
        y_right = max((lay.y1 + lay.y4) / 2 - total_height / 2, TEXT_PADDING)

        for route in consumers.values():
            y_left, y_right = self.consumer_flow(y_left, y_right, route)
            y_right += gap
        y_left, y_right = self.consumer_flow(y_left, y_right, self.flows.untracked_consumer)
        return y_right + CONSUMER_LABEL_HEIGHT / 2


def build_diagram(snapshot: FlowSnapshot, label_formatter: Optional[LabelFormatter] = None,
                  extras: Optional[ExtrasRenderer] = None,
                  colors: Optional[DiagramColors] = None) -> Diagram:
    colors = colors or DiagramColors()
    flows = reconcile(snapshot)
    widths = FlowWidths.from_flows(flows)
    consumers = group_consumers(
        snapshot.consumer_routes, snapshot.hide_consumers_below, snapshot.max_consumer_branches)
    layout = compute_layout(widths, colors)

    d = _Drawer(snapshot, flows, widths, layout, colors,
                label_formatter or LabelFormatter(), extras or ExtrasRenderer())
    d.generation_to_consumers()
    d.generation_to_grid()
    d.generation_to_grid_blend()
    d.grid_out_arrow()
    d.generation_to_batteries()
    d.grid_to_batteries()
    d.batteries_to_grid_blend()
    d.grid_in()
    d.grid_to_consumers()
    d.batteries_to_consumers()
    d.batteries_to_grid()
    y22 = d.batteries_in_out()
    d.consumer_blends()
    y8 = d.consumer_flows(consumers)

    height = max(layout.y4, y8, y22 + 30)
    log.debug("diagram: %d consumer branches, height %.1f", len(consumers) + 1, height)
    return Diagram(
        unit=snapshot.unit,
        flows=flows,
        widths=widths,
        layout=layout,
        consumers=consumers,
        panels=d.panels,
        labels=d.labels,
        height=height,
        colors=colors,
    )


def snapshot_fingerprint(snapshot: FlowSnapshot) -> str:
    blob = json.dumps(asdict(snapshot), sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


class DiagramCache:
    """Memoises build_diagram for unchanged snapshots.

    Keyed on the snapshot fingerprint; the cache never inspects the host's
    objects after the call returns.
    """

    def __init__(self, max_entries: int = 8, label_formatter: Optional[LabelFormatter] = None,
                 extras: Optional[ExtrasRenderer] = None, colors: Optional[DiagramColors] = None):
        self.max_entries = max_entries
        self.label_formatter = label_formatter
        self.extras = extras
        self.colors = colors
        self._entries: Dict[str, Diagram] = {}
        self.hits = 0
        self.misses = 0

    def get(self, snapshot: FlowSnapshot) -> Diagram:
        key = snapshot_fingerprint(snapshot)
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        diagram = build_diagram(snapshot.copy(), self.label_formatter, self.extras, self.colors)
        if len(self._entries) >= self.max_entries:
            self._entries.pop(next(iter(self._entries)))
        self._entries[key] = diagram
        return diagram

    def clear(self) -> None:
        self._entries.clear()
