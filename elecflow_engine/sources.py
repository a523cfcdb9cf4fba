from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from .schemas import ICON_GENERATION, FlowSnapshot, Route, RoutePair, clean_rate
from .settings import FlowSettings

log = logging.getLogger(__name__)

# Scale of each unit relative to its base (W for power, Wh for energy).
UNIT_SCALE = {
    "W": 1.0,
    "kW": 1e3,
    "MW": 1e6,
    "Wh": 1.0,
    "kWh": 1e3,
    "MWh": 1e6,
}

# Battery charge side has no entity of its own.
BATTERY_OUT_ID = "null"


@dataclass
class Reading:
    """One already-fetched sensor value."""
    entity_id: str
    value: float
    name: Optional[str] = None
    unit: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.entity_id


def _is_energy(unit: str) -> bool:
    return unit.lower().endswith("wh")


def to_base_unit(value, unit: Optional[str], target: str = "W") -> float:
    """Convert value from unit to target.

    Readings without a unit, or with one that is not recognised, pass
    through unchanged.
    """
    v = clean_rate(value)
    if not unit or unit not in UNIT_SCALE or target not in UNIT_SCALE:
        return v
    if _is_energy(unit) != _is_energy(target):
        raise ValueError(f"cannot convert {unit} to {target}")
    return v * UNIT_SCALE[unit] / UNIT_SCALE[target]


def _route(reading: Reading, target: str, icon: Optional[str] = None) -> Route:
    return Route(
        rate=to_base_unit(reading.value, reading.unit, target),
        id=reading.entity_id,
        text=reading.label,
        icon=icon,
    )


def grid_routes(from_grid: Optional[Reading], to_grid: Optional[Reading] = None,
                independent: bool = False, target: str = "W") -> Tuple[Optional[Route], Optional[Route]]:
    """Grid in/out routes.

    By default from_grid is one signed sensor (negative means exporting) and
    to_grid is ignored. In independent mode both are unsigned.
    """
    grid_in = _route(from_grid, target) if from_grid is not None else None
    grid_out = None
    if independent and to_grid is not None:
        grid_out = _route(to_grid, target)
    return grid_in, grid_out


def battery_pair(reading: Reading, invert: bool = False, target: str = "W") -> RoutePair:
    """Split a signed battery sensor into discharge (in) and charge (out).

    Positive is power into the distribution system, i.e. out of the
    battery. invert flips that for sensors wired the other way round.
    """
    power_in = to_base_unit(reading.value, reading.unit, target)
    if invert:
        power_in = -power_in
    return RoutePair(
        in_route=Route(rate=power_in if power_in > 0 else 0.0, id=reading.entity_id, text=reading.label),
        out_route=Route(rate=-power_in if power_in < 0 else 0.0, id=BATTERY_OUT_ID, text=BATTERY_OUT_ID),
    )


def build_snapshot(settings: FlowSettings,
                   grid_in: Optional[Reading] = None,
                   grid_out: Optional[Reading] = None,
                   generation: Iterable[Reading] = (),
                   consumers: Iterable[Reading] = (),
                   batteries: Iterable[Reading] = ()) -> FlowSnapshot:
    """Turn readings into a snapshot in settings.unit.

    Without independent_grid_in_out, grid_in is the single signed grid
    sensor and grid_out is ignored; a snapshot with only grid_out then has
    no grid route and any consumer shortfall is drawn as phantom grid.
    """
    generation = list(generation)
    consumers = list(consumers)
    if grid_in is None and grid_out is None and not generation and not consumers:
        raise ValueError("At least one grid, generation or consumer reading is required")

    target = settings.unit
    if grid_out is not None and not settings.independent_grid_in_out:
        log.debug("ignoring grid_out reading %s: grid is one signed sensor", grid_out.entity_id)
    if grid_in is None and settings.independent_grid_in_out:
        # Export-only installs still get a grid route.
        grid_in_route, grid_out_route = None, (_route(grid_out, target) if grid_out else None)
    else:
        grid_in_route, grid_out_route = grid_routes(
            grid_in, grid_out, settings.independent_grid_in_out, target)

    generation_routes: Dict[str, Route] = {
        r.entity_id: _route(r, target, ICON_GENERATION) for r in generation
    }
    consumer_routes: Dict[str, Route] = {r.entity_id: _route(r, target) for r in consumers}
    battery_routes: Dict[str, RoutePair] = {
        r.entity_id: battery_pair(r, settings.invert_battery_flows, target) for r in batteries
    }

    return FlowSnapshot(
        generation_routes=generation_routes,
        grid_in_route=grid_in_route,
        grid_out_route=grid_out_route,
        consumer_routes=consumer_routes,
        battery_routes=battery_routes,
        max_consumer_branches=settings.max_consumer_branches,
        hide_consumers_below=settings.effective_hide_below(),
        battery_charge_only_from_generation=settings.battery_charge_only_from_generation,
        unit=settings.unit,
    )
