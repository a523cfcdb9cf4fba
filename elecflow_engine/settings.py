from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .colors import hex_to_rgb
from .schemas import BATT_IN_COLOR, DiagramColors, GEN_COLOR, GRID_IN_COLOR

log = logging.getLogger(__name__)

SETTINGS_REL_PATH = Path("data") / "flow_settings.json"

HIDE_CONSUMERS_BELOW_THRESHOLD_W = 100.0
HIDE_CONSUMERS_BELOW_THRESHOLD_KWH = 0.1

ALLOWED_UNITS = {"W", "kW", "Wh", "kWh"}


@dataclass
class FlowSettings:
    unit: str = "W"
    max_consumer_branches: int = 0
    hide_consumers_below: float = 0.0
    # Uses the per-unit default threshold when no explicit one is set.
    hide_small_consumers: bool = False
    battery_charge_only_from_generation: bool = False
    # Two unsigned grid sensors instead of one signed one.
    independent_grid_in_out: bool = False
    invert_battery_flows: bool = False
    generation_color: str = GEN_COLOR
    grid_color: str = GRID_IN_COLOR
    battery_color: str = BATT_IN_COLOR

    def effective_hide_below(self) -> float:
        if self.hide_consumers_below > 0:
            return float(self.hide_consumers_below)
        if self.hide_small_consumers:
            return default_hide_below(self.unit)
        return 0.0

    def colors(self) -> DiagramColors:
        return DiagramColors(
            generation=self.generation_color,
            grid=self.grid_color,
            battery=self.battery_color,
        )


def default_hide_below(unit: str) -> float:
    if unit.lower().endswith("wh"):
        factor = 1000.0 if unit == "Wh" else 1.0
        return HIDE_CONSUMERS_BELOW_THRESHOLD_KWH * factor
    factor = 0.001 if unit == "kW" else 1.0
    return HIDE_CONSUMERS_BELOW_THRESHOLD_W * factor


def validate_settings(d: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    known = {f.name for f in fields(FlowSettings)}
    for k in d:
        if k not in known:
            errors.append(f"unknown setting: {k}")

    unit = d.get("unit", "W")
    if unit not in ALLOWED_UNITS:
        errors.append(f"unit must be one of {sorted(ALLOWED_UNITS)}")

    mcb = d.get("max_consumer_branches", 0)
    if isinstance(mcb, bool) or not isinstance(mcb, int) or mcb < 0:
        errors.append("max_consumer_branches must be int >= 0")

    hcb = d.get("hide_consumers_below", 0.0)
    if isinstance(hcb, bool) or not isinstance(hcb, (int, float)) or hcb < 0:
        errors.append("hide_consumers_below must be a number >= 0")

    for k in ("hide_small_consumers", "battery_charge_only_from_generation",
              "independent_grid_in_out", "invert_battery_flows"):
        if k in d and not isinstance(d[k], bool):
            errors.append(f"{k} must be true/false")

    for k in ("generation_color", "grid_color", "battery_color"):
        if k in d:
            try:
                hex_to_rgb(d[k])
            except (ValueError, AttributeError):
                errors.append(f"{k} must be a #rrggbb hex color")
    return errors


def settings_from_dict(d: Dict[str, Any]) -> FlowSettings:
    errors = validate_settings(d)
    if errors:
        raise ValueError("Settings validation failed:\n" + "\n".join(errors))
    return FlowSettings(**d)


def _default_settings_path(base_dir: Optional[Path] = None) -> Path:
    if base_dir is None:
        # Beside app.py (repo root)
        base_dir = Path(__file__).resolve().parents[1]
    return base_dir / SETTINGS_REL_PATH


def _hash_settings(payload: Dict[str, Any]) -> str:
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(blob).hexdigest()[:12]


def load_settings(base_dir: Optional[Path] = None) -> Tuple[FlowSettings, str]:
    path = _default_settings_path(base_dir)
    if not path.exists():
        settings = FlowSettings()
        return settings, _hash_settings(asdict(settings))

    payload = json.loads(path.read_text())
    payload.pop("settings_hash", None)
    settings = settings_from_dict(payload)
    log.info("loaded flow settings from %s", path)
    return settings, _hash_settings(asdict(settings))


def save_settings(settings: FlowSettings, base_dir: Optional[Path] = None) -> str:
    path = _default_settings_path(base_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = asdict(settings)
    settings_hash = _hash_settings(payload)
    payload["settings_hash"] = settings_hash
    path.write_text(json.dumps(payload, indent=2))
    log.info("saved flow settings to %s (%s)", path, settings_hash)
    return settings_hash
