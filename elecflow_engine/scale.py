from __future__ import annotations

from dataclasses import dataclass

from .core import ReconciledFlows
from .schemas import TARGET_SCALED_TRUNK_WIDTH, MIN_FLOW_WIDTH


def width_multiplier(flows: ReconciledFlows) -> float:
    """Single dynamic scale so the widest trunk renders at the target width."""
    widest_trunk = max(
        flows.generation_total,
        flows.grid_in_total,
        flows.consumer_total,
        flows.batteries_total,
        1.0,
    )
    return TARGET_SCALED_TRUNK_WIDTH / widest_trunk


def rate_to_width(rate: float, multiplier: float) -> float:
    # Every flow stays at least one unit wide so it remains visible.
    return max(rate * multiplier, MIN_FLOW_WIDTH)


def flow_width(rate: float, multiplier: float) -> float:
    return rate_to_width(rate, multiplier) if rate else 0.0


@dataclass
class FlowWidths:
    multiplier: float
    generation_in: float
    grid_out: float
    generation_to_consumers: float
    generation_to_grid: float
    generation_to_batteries: float
    grid_to_consumers: float
    grid_to_batteries: float
    batteries_to_grid: float
    batteries_to_consumers: float

    @classmethod
    def from_flows(cls, flows: ReconciledFlows) -> "FlowWidths":
        m = width_multiplier(flows)
        return cls(
            multiplier=m,
            generation_in=flow_width(flows.generation_total, m),
            grid_out=flow_width(flows.grid_export, m),
            generation_to_consumers=flow_width(flows.generation_to_consumers, m),
            generation_to_grid=flow_width(flows.generation_to_grid, m),
            generation_to_batteries=flow_width(flows.generation_to_batteries, m),
            grid_to_consumers=flow_width(flows.grid_to_consumers, m),
            grid_to_batteries=flow_width(flows.grid_to_batteries, m),
            batteries_to_grid=flow_width(flows.batteries_to_grid, m),
            batteries_to_consumers=flow_width(flows.batteries_to_consumers, m),
        )

    def width(self, rate: float) -> float:
        return rate_to_width(rate, self.multiplier)
