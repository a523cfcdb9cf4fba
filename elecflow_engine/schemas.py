from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional

# Layout units are arbitrary; everything on the left panel is later scaled so
# that the canvas fits SVG_LHS_VISIBLE_WIDTH pixels.
TERMINATOR_BLOCK_LENGTH = 50.0
GENERATION_FAN_OUT_HORIZONTAL_GAP = 50.0
CONSUMERS_FAN_OUT_VERTICAL_GAP = 50.0
BATTERIES_FAN_OUT_VERTICAL_GAP = 70.0
CONSUMER_LABEL_HEIGHT = 50.0
TARGET_SCALED_TRUNK_WIDTH = 90.0
PAD_MULTIPLIER = 1.8
MIN_PAD = 30.0

# These two must add up to 100 (the width of the mid panel).
CONSUMER_BLEND_LENGTH = 80.0
CONSUMER_BLEND_LENGTH_PRE_FAN_OUT = 20.0

GRID_BLEND_LENGTH = 30.0
BATTERY_BLEND_LENGTH = 30.0

ARROW_HEAD_LENGTH = 10.0
TEXT_PADDING = 8.0
FONT_SIZE_PX = 16.0
ICON_SIZE_PX = 24.0
BATTERY_LABEL_HEIGHT = ICON_SIZE_PX + TEXT_PADDING + FONT_SIZE_PX * 2

SVG_LHS_VISIBLE_WIDTH = 110.0
CONSUMER_PANEL_WIDTH = 100.0
PAD_ANTIALIAS = 0.5

# Below this a phantom route is treated as floating point noise.
PHANTOM_EPSILON = 0.01
MIN_FLOW_WIDTH = 1.0
MIN_CROSS_SECTION = 1.0
INTERSECT_EPSILON = 1e-9

GEN_COLOR = "#0d6a04"
GRID_IN_COLOR = "#920e83"
BATT_IN_COLOR = "#01f4fc"

UNTRACKED_ID = "untracked"
OTHER_ID = "other"
PHANTOM_GENERATION_KEY = "phantom"

ICON_UNKNOWN_SOURCE = "mdi:help-rhombus"
ICON_GRID = "mdi:transmission-tower"
ICON_BATTERY = "mdi:battery"
ICON_BATTERY_CHARGING = "mdi:battery-charging"
ICON_GENERATION = "mdi:solar-power"


def clean_rate(value) -> float:
    """Coerce a rate to float, treating None/NaN as 0."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if v != v:
        return 0.0
    return v


@dataclass
class Route:
    rate: float = 0.0
    id: Optional[str] = None
    text: Optional[str] = None
    icon: Optional[str] = None


@dataclass
class RoutePair:
    """A battery seen from the distribution system.

    in_route is the flow into the system (discharging), out_route the flow
    out of the system into the battery (charging).
    """
    in_route: Route = field(default_factory=Route)
    out_route: Route = field(default_factory=Route)

    def discharge_rate(self) -> float:
        in_rate = clean_rate(self.in_route.rate)
        out_rate = clean_rate(self.out_route.rate)
        return max(in_rate, 0.0) + max(-out_rate, 0.0)

    def charge_rate(self) -> float:
        in_rate = clean_rate(self.in_route.rate)
        out_rate = clean_rate(self.out_route.rate)
        return max(out_rate, 0.0) + max(-in_rate, 0.0)


@dataclass
class DiagramColors:
    generation: str = GEN_COLOR
    grid: str = GRID_IN_COLOR
    battery: str = BATT_IN_COLOR


@dataclass
class FlowSnapshot:
    generation_routes: Dict[str, Route] = field(default_factory=dict)
    grid_in_route: Optional[Route] = None
    grid_out_route: Optional[Route] = None
    consumer_routes: Dict[str, Route] = field(default_factory=dict)
    battery_routes: Dict[str, RoutePair] = field(default_factory=dict)

    max_consumer_branches: int = 0
    hide_consumers_below: float = 0.0
    battery_charge_only_from_generation: bool = False
    unit: str = "W"

    def has_grid_route(self) -> bool:
        return self.grid_in_route is not None or self.grid_out_route is not None

    def copy(self) -> "FlowSnapshot":
        """Defensive copy for hosts that keep mutating their route maps."""
        return replace(
            self,
            generation_routes={k: replace(r) for k, r in self.generation_routes.items()},
            grid_in_route=replace(self.grid_in_route) if self.grid_in_route else None,
            grid_out_route=replace(self.grid_out_route) if self.grid_out_route else None,
            consumer_routes={k: replace(r) for k, r in self.consumer_routes.items()},
            battery_routes={
                k: RoutePair(replace(p.in_route), replace(p.out_route))
                for k, p in self.battery_routes.items()
            },
        )
