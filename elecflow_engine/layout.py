"""Coordinate landmarks for the flow diagram.

The left panel is fixed aspect ratio: generation enters from the top and
splits towards the grid (left), the batteries (down) and the consumers
(right), while the grid enters from the left edge. Its canvas is x1 units
wide and is scaled by svg_scale_x so it fits SVG_LHS_VISIBLE_WIDTH pixels.
The consumer fan-out on the right stretches freely and uses a fixed
100-unit wide canvas.

Rough map of the landmarks (not to scale):

    x0  x14 x15 x16                    y0   generation terminators end
     |   |   |   |
     +---+---+---+  gen->grid | gen->batt | gen->cons
                                           y1   gen->cons reaches x1
    x10 x11                                y2   grid->cons top
                                           y5   batt->cons top
                                           y4   batt->cons bottom
    x17 x14 x15 x20 x21                    y17  battery bus
                                           y18  battery blend end
"""
from __future__ import annotations

from dataclasses import dataclass

from .colors import mix_hexes, mix3_hexes, safe_ratio
from .scale import FlowWidths
from .schemas import (
    ARROW_HEAD_LENGTH,
    BATTERY_BLEND_LENGTH,
    DiagramColors,
    GRID_BLEND_LENGTH,
    MIN_PAD,
    PAD_MULTIPLIER,
    SVG_LHS_VISIBLE_WIDTH,
    TERMINATOR_BLOCK_LENGTH,
)


@dataclass
class Layout:
    pad_x: float
    mid_x: float
    svg_scale_x: float

    x0: float
    x1: float
    x10: float
    x11: float
    x14: float
    x15: float
    x16: float
    x17: float
    x20: float
    x21: float

    y0: float
    y1: float
    y2: float
    y4: float
    y5: float
    y10: float
    y11: float
    y13: float
    y17: float
    y18: float

    grid_out_blend_color: str
    to_consumers_blend_color: str
    to_batteries_blend_color: str

    @property
    def arrow_head_length(self) -> float:
        """Arrow head length in left-panel canvas units."""
        return ARROW_HEAD_LENGTH / self.svg_scale_x


def grid_out_blend_color(widths: FlowWidths, colors: DiagramColors) -> str:
    total = widths.generation_to_grid + widths.batteries_to_grid
    return mix_hexes(colors.generation, colors.battery, safe_ratio(widths.generation_to_grid, total))


def to_consumers_blend_color(widths: FlowWidths, colors: DiagramColors) -> str:
    total = widths.generation_to_consumers + widths.grid_to_consumers + widths.batteries_to_consumers
    return mix3_hexes(
        colors.generation,
        colors.grid,
        colors.battery,
        safe_ratio(widths.generation_to_consumers, total),
        safe_ratio(widths.grid_to_consumers, total),
        safe_ratio(widths.batteries_to_consumers, total),
    )


def to_batteries_blend_color(widths: FlowWidths, colors: DiagramColors) -> str:
    grid_part = widths.grid_to_batteries
    if grid_part < 1:
        grid_part = 0.0
    total = widths.grid_to_batteries + widths.generation_to_batteries
    return mix_hexes(colors.grid, colors.generation, safe_ratio(grid_part, total))


def compute_layout(widths: FlowWidths, colors: DiagramColors = None) -> Layout:
    colors = colors or DiagramColors()
    w_gen_cons = widths.generation_to_consumers
    w_gen_grid = widths.generation_to_grid
    w_gen_batt = widths.generation_to_batteries
    w_batt_grid = widths.batteries_to_grid
    w_grid_batt = widths.grid_to_batteries
    w_batt_cons = widths.batteries_to_consumers
    w_grid_cons = widths.grid_to_consumers

    most_left = min(-w_gen_grid, -w_grid_batt)
    most_right = w_gen_batt + max(w_gen_cons, w_batt_grid + w_batt_cons)
    width = most_right - most_left
    # Keeps arrow heads and terminators clear of each other.
    pad_x = max(w_gen_grid, w_gen_cons, w_grid_batt, w_batt_cons, MIN_PAD) * PAD_MULTIPLIER
    mid_x = ARROW_HEAD_LENGTH + GRID_BLEND_LENGTH + width / 2 + pad_x

    if ARROW_HEAD_LENGTH + GRID_BLEND_LENGTH + w_gen_grid > w_grid_batt:
        x0 = mid_x - width / 2
    else:
        x0 = mid_x - width / 2 + w_grid_batt - w_gen_grid
    y0 = TERMINATOR_BLOCK_LENGTH

    y1 = TERMINATOR_BLOCK_LENGTH + max(
        pad_x,
        w_gen_cons,
        pad_x + w_gen_grid + w_batt_grid - w_gen_cons,
        w_gen_grid * 2 + w_batt_grid - w_gen_cons,
    )
    x1 = mid_x + width / 2 + pad_x
    y2 = y1 + w_gen_cons
    y5 = y2 + w_grid_cons
    y10 = y2 - w_gen_grid - w_batt_grid

    svg_scale_x = SVG_LHS_VISIBLE_WIDTH / x1
    x10 = ARROW_HEAD_LENGTH / svg_scale_x
    x11 = x10 + GRID_BLEND_LENGTH

    y11 = y2 - w_batt_grid
    y13 = y5 + w_grid_batt
    y17 = y13 + (y10 - y0)

    x14 = x0 + w_gen_grid
    x15 = x14 + w_gen_batt
    x16 = x15 + w_gen_cons
    x17 = x14 - w_grid_batt
    x20 = x15 + w_batt_grid
    x21 = x20 + w_batt_cons

    y4 = y5 + w_batt_cons
    y18 = y17 + BATTERY_BLEND_LENGTH

    return Layout(
        pad_x=pad_x,
        mid_x=mid_x,
        svg_scale_x=svg_scale_x,
        x0=x0, x1=x1, x10=x10, x11=x11, x14=x14, x15=x15, x16=x16, x17=x17, x20=x20, x21=x21,
        y0=y0, y1=y1, y2=y2, y4=y4, y5=y5, y10=y10, y11=y11, y13=y13, y17=y17, y18=y18,
        grid_out_blend_color=grid_out_blend_color(widths, colors),
        to_consumers_blend_color=to_consumers_blend_color(widths, colors),
        to_batteries_blend_color=to_batteries_blend_color(widths, colors),
    )
