from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .schemas import (
    FlowSnapshot,
    Route,
    PHANTOM_EPSILON,
    ICON_UNKNOWN_SOURCE,
    UNTRACKED_ID,
    clean_rate,
)

log = logging.getLogger(__name__)

PHANTOM_TEXT = "Unknown source"
UNTRACKED_TEXT = "Untracked"


@dataclass
class ReconciledFlows:
    grid_import: float = 0.0
    grid_export: float = 0.0

    generation_tracked: float = 0.0
    consumer_tracked: float = 0.0
    battery_discharge: float = 0.0
    battery_charge: float = 0.0

    generation_to_consumers: float = 0.0
    generation_to_grid: float = 0.0
    generation_to_batteries: float = 0.0
    grid_to_consumers: float = 0.0
    grid_to_batteries: float = 0.0
    batteries_to_grid: float = 0.0
    batteries_to_consumers: float = 0.0

    phantom_grid_in: Optional[Route] = None
    phantom_generation: Optional[Route] = None
    untracked_consumer: Route = field(
        default_factory=lambda: Route(rate=0.0, id=UNTRACKED_ID, text=UNTRACKED_TEXT))

    @property
    def phantom_generation_rate(self) -> float:
        return self.phantom_generation.rate if self.phantom_generation else 0.0

    @property
    def phantom_grid_in_rate(self) -> float:
        return self.phantom_grid_in.rate if self.phantom_grid_in else 0.0

    @property
    def generation_total(self) -> float:
        return self.generation_tracked + self.phantom_generation_rate

    @property
    def grid_in_total(self) -> float:
        return self.grid_import + self.phantom_grid_in_rate

    @property
    def consumer_total(self) -> float:
        return self.consumer_tracked + self.untracked_consumer.rate

    @property
    def batteries_total(self) -> float:
        return self.batteries_to_grid + self.batteries_to_consumers

    @property
    def consumer_supply(self) -> float:
        return self.generation_to_consumers + self.grid_to_consumers + self.batteries_to_consumers


def grid_import_export(snapshot: FlowSnapshot) -> Tuple[float, float]:
    """Split the grid route(s) into unsigned import and export.

    A single route is signed (its sign gives the direction); when both are
    present each is authoritative for its own direction.
    """
    grid_in = snapshot.grid_in_route
    grid_out = snapshot.grid_out_route

    if grid_in is not None:
        rate = clean_rate(grid_in.rate)
        grid_import = rate if rate > 0 else 0.0
    elif grid_out is not None:
        rate = clean_rate(grid_out.rate)
        grid_import = -rate if rate < 0 else 0.0
    else:
        grid_import = 0.0

    if grid_out is not None:
        rate = clean_rate(grid_out.rate)
        grid_export = rate if rate > 0 else 0.0
    elif grid_in is not None:
        rate = clean_rate(grid_in.rate)
        grid_export = -rate if rate < 0 else 0.0
    else:
        grid_export = 0.0

    return grid_import, grid_export


def generation_tracked_total(snapshot: FlowSnapshot) -> float:
    return sum(max(clean_rate(r.rate), 0.0) for r in snapshot.generation_routes.values())


def consumer_tracked_total(snapshot: FlowSnapshot) -> float:
    return sum(max(clean_rate(r.rate), 0.0) for r in snapshot.consumer_routes.values())


def battery_discharge_total(snapshot: FlowSnapshot) -> float:
    """Rate into the distribution system from batteries."""
    return sum(p.discharge_rate() for p in snapshot.battery_routes.values())


def battery_charge_total(snapshot: FlowSnapshot) -> float:
    """Rate out of the distribution system into batteries."""
    return sum(p.charge_rate() for p in snapshot.battery_routes.values())


def _phantom_route(rate: float) -> Optional[Route]:
    if rate > PHANTOM_EPSILON:
        return Route(rate=rate, id=None, text=PHANTOM_TEXT, icon=ICON_UNKNOWN_SOURCE)
    return None


def reconcile(snapshot: FlowSnapshot) -> ReconciledFlows:
    """Balance the books for one snapshot.

    It is not possible to fully determine where electrons went, so the
    strategy leans in fixed directions where there is uncertainty: batteries
    feed the grid before consumers, the grid charges batteries before
    generation does, and any remaining shortfall or excess is absorbed by
    a synthetic route. Power and energy snapshots go through the
    same rules.
    """
    grid_import, grid_export = grid_import_export(snapshot)
    gen_tracked = generation_tracked_total(snapshot)
    cons_tracked = consumer_tracked_total(snapshot)
    batt_in = battery_discharge_total(snapshot)
    batt_out = battery_charge_total(snapshot)

    phantom_grid_in = 0.0
    phantom_generation = 0.0
    untracked = 0.0
    gen_to_batt = 0.0

    # Exporting more than generation plus discharge: infer a phantom
    # generation source and send all battery discharge to the grid.
    x = grid_export - gen_tracked - batt_in
    if x > 0:
        phantom_generation = x
        batt_to_grid = batt_in
    else:
        batt_to_grid = min(grid_export, batt_in)
    batt_to_cons = batt_in - batt_to_grid

    if snapshot.battery_charge_only_from_generation:
        grid_to_batt = 0.0
        gen_to_batt = batt_out
    elif grid_import > batt_out:
        grid_to_batt = batt_out
    else:
        grid_to_batt = grid_import
        gen_to_batt = batt_out - grid_to_batt
    x = grid_export + gen_to_batt - (gen_tracked + grid_to_batt + batt_in)
    if x > 0:
        phantom_generation = x

    grid_to_cons = grid_import - grid_to_batt

    gen_to_grid = grid_export - batt_in if grid_export > batt_in else 0.0

    gen_to_cons = max(gen_tracked - gen_to_grid - gen_to_batt, 0.0)
    x = gen_to_grid + gen_to_batt + gen_to_cons - gen_tracked
    if x > 0:
        phantom_generation = x

    consumer_supply = gen_to_cons + grid_to_cons + batt_to_cons
    x = cons_tracked - consumer_supply
    if x > 0 and not snapshot.has_grid_route():
        # Nothing tracks the grid at all, so the unknown source is shown
        # as a phantom grid import.
        phantom_grid_in = x
        grid_to_cons += x
        consumer_supply = gen_to_cons + grid_to_cons + batt_to_cons

    x = consumer_supply - cons_tracked
    if x > 0:
        untracked = x
    else:
        # Still short: the grid is configured but insufficient, so the
        # balance is attributed to generation.
        gen_to_cons += -x
        phantom_generation = gen_to_cons + gen_to_batt + gen_to_grid - gen_tracked

    if phantom_generation > PHANTOM_EPSILON:
        log.debug("phantom generation %.3f %s", phantom_generation, snapshot.unit)
    if phantom_grid_in > PHANTOM_EPSILON:
        log.debug("phantom grid import %.3f %s", phantom_grid_in, snapshot.unit)

    return ReconciledFlows(
        grid_import=grid_import,
        grid_export=grid_export,
        generation_tracked=gen_tracked,
        consumer_tracked=cons_tracked,
        battery_discharge=batt_in,
        battery_charge=batt_out,
        generation_to_consumers=gen_to_cons,
        generation_to_grid=gen_to_grid,
        generation_to_batteries=gen_to_batt,
        grid_to_consumers=grid_to_cons,
        grid_to_batteries=grid_to_batt,
        batteries_to_grid=batt_to_grid,
        batteries_to_consumers=batt_to_cons,
        phantom_grid_in=_phantom_route(phantom_grid_in),
        phantom_generation=_phantom_route(phantom_generation),
        untracked_consumer=Route(rate=max(untracked, 0.0), id=UNTRACKED_ID, text=UNTRACKED_TEXT),
    )
