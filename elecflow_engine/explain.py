from typing import Dict, List

from .core import ReconciledFlows
from .schemas import PHANTOM_EPSILON


def flow_ledger(flows: ReconciledFlows) -> List[Dict]:
    return [
        {"source": "generation", "destination": "consumers", "rate": flows.generation_to_consumers},
        {"source": "generation", "destination": "grid", "rate": flows.generation_to_grid},
        {"source": "generation", "destination": "batteries", "rate": flows.generation_to_batteries},
        {"source": "grid", "destination": "consumers", "rate": flows.grid_to_consumers},
        {"source": "grid", "destination": "batteries", "rate": flows.grid_to_batteries},
        {"source": "batteries", "destination": "grid", "rate": flows.batteries_to_grid},
        {"source": "batteries", "destination": "consumers", "rate": flows.batteries_to_consumers},
    ]


def balance_report(flows: ReconciledFlows) -> List[Dict]:
    """Inflow vs outflow for every trunk. Residuals should all be ~0."""
    rows = [
        ("generation",
         flows.generation_tracked + flows.phantom_generation_rate,
         flows.generation_to_consumers + flows.generation_to_grid + flows.generation_to_batteries),
        ("grid import",
         flows.grid_import + flows.phantom_grid_in_rate,
         flows.grid_to_consumers + flows.grid_to_batteries),
        ("grid export",
         flows.generation_to_grid + flows.batteries_to_grid,
         flows.grid_export),
        ("battery discharge",
         flows.battery_discharge,
         flows.batteries_to_grid + flows.batteries_to_consumers),
        ("battery charge",
         flows.generation_to_batteries + flows.grid_to_batteries,
         flows.battery_charge),
        ("consumers",
         flows.consumer_supply,
         flows.consumer_tracked + flows.untracked_consumer.rate),
    ]
    return [
        {"trunk": name, "inflow": inflow, "outflow": outflow, "residual": inflow - outflow}
        for name, inflow, outflow in rows
    ]


def is_balanced(flows: ReconciledFlows, tolerance: float = PHANTOM_EPSILON) -> bool:
    return all(abs(r["residual"]) <= tolerance for r in balance_report(flows))


def phantom_hints(flows: ReconciledFlows, unit: str = "W") -> List[str]:
    """Plain-language notes on what had to be inferred."""
    hints = []
    if flows.phantom_generation is not None:
        hints.append(
            f"{flows.phantom_generation.rate:.1f} {unit} of generation is not measured by any "
            "generation route and was inferred.")
    if flows.phantom_grid_in is not None:
        hints.append(
            f"No grid route is configured; {flows.phantom_grid_in.rate:.1f} {unit} of consumption "
            "is shown as an unknown grid source.")
    if flows.untracked_consumer.rate > PHANTOM_EPSILON:
        hints.append(
            f"{flows.untracked_consumer.rate:.1f} {unit} reaches consumers that are not tracked individually.")
    if not hints:
        hints.append("All flows are covered by measured routes.")
    return hints
