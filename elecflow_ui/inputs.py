import streamlit as st
import pandas as pd

from elecflow_engine.settings import ALLOWED_UNITS, FlowSettings
from elecflow_engine.sources import Reading, build_snapshot

# Signed grid: positive is import. Batteries: positive is discharge.
PRESETS = {
    "Evening (grid + battery)": {
        "grid": 1200.0,
        "generation": {},
        "consumers": {"Kitchen": 1500.0, "Lights": 300.0, "EV charger": 0.0, "Heat pump": 900.0},
        "batteries": {"Home battery": 1500.0},
    },
    "Sunny export": {
        "grid": -2500.0,
        "generation": {"Roof east": 2200.0, "Roof west": 1800.0},
        "consumers": {"Kitchen": 400.0, "Lights": 100.0, "Heat pump": 600.0},
        "batteries": {"Home battery": -400.0},
    },
    "Unmetered solar": {
        "grid": 300.0,
        "generation": {"Roof": 200.0},
        "consumers": {"Kitchen": 350.0, "Office": 250.0},
        "batteries": {},
    },
    "No grid sensor": {
        "grid": None,
        "generation": {"Roof": 800.0},
        "consumers": {"Kitchen": 900.0, "Lights": 150.0, "Office": 350.0, "Garage": 60.0},
        "batteries": {},
    },
}


def _frame(values: dict) -> pd.DataFrame:
    return pd.DataFrame({"name": list(values.keys()), "value": [float(v) for v in values.values()]})


def _readings(df: pd.DataFrame, prefix: str, unit: str):
    readings = []
    for i, row in df.dropna(subset=["name"]).reset_index(drop=True).iterrows():
        name = str(row["name"]).strip()
        if not name:
            continue
        readings.append(Reading(f"{prefix}.{i}", float(row["value"]) if pd.notna(row["value"]) else 0.0, name, unit))
    return readings


def build_settings_from_sidebar(defaults: FlowSettings) -> FlowSettings:
    st.sidebar.header("Diagram settings")
    units = sorted(ALLOWED_UNITS)
    unit = st.sidebar.selectbox("Unit", units, index=units.index(defaults.unit))
    max_branches = st.sidebar.slider("Max consumer branches (0 = all)", 0, 10, defaults.max_consumer_branches, 1)
    hide_small = st.sidebar.checkbox("Hide small consumers", value=defaults.hide_small_consumers)
    hide_below = st.sidebar.number_input("Hide consumers below", min_value=0.0, value=float(defaults.hide_consumers_below))
    charge_from_gen = st.sidebar.checkbox("Batteries charge only from generation",
                                          value=defaults.battery_charge_only_from_generation)
    independent = st.sidebar.checkbox("Independent grid in/out sensors", value=defaults.independent_grid_in_out)
    invert = st.sidebar.checkbox("Invert battery flows", value=defaults.invert_battery_flows)

    st.sidebar.subheader("Colors")
    gen_color = st.sidebar.color_picker("Generation", defaults.generation_color)
    grid_color = st.sidebar.color_picker("Grid", defaults.grid_color)
    batt_color = st.sidebar.color_picker("Battery", defaults.battery_color)

    return FlowSettings(
        unit=unit,
        max_consumer_branches=int(max_branches),
        hide_consumers_below=float(hide_below),
        hide_small_consumers=bool(hide_small),
        battery_charge_only_from_generation=bool(charge_from_gen),
        independent_grid_in_out=bool(independent),
        invert_battery_flows=bool(invert),
        generation_color=gen_color,
        grid_color=grid_color,
        battery_color=batt_color,
    )


def render_readings_form(settings: FlowSettings, key_prefix: str = "readings"):
    """Editable readings for one snapshot. Returns the snapshot, or None on bad input."""
    preset_name = st.selectbox("Scenario", list(PRESETS.keys()), index=0, key=f"{key_prefix}_preset")
    preset = PRESETS[preset_name]
    unit = settings.unit

    c1, c2 = st.columns(2)
    has_grid = c1.checkbox("Grid sensor", value=preset["grid"] is not None, key=f"{key_prefix}_{preset_name}_has_grid")
    grid_in = grid_out = None
    if has_grid:
        if settings.independent_grid_in_out:
            start = preset["grid"] or 0.0
            imp = c1.number_input(f"From grid ({unit})", min_value=0.0, value=max(start, 0.0),
                                  key=f"{key_prefix}_{preset_name}_grid_in")
            exp = c2.number_input(f"To grid ({unit})", min_value=0.0, value=max(-start, 0.0),
                                  key=f"{key_prefix}_{preset_name}_grid_out")
            grid_in = Reading("sensor.grid_in", float(imp), "Grid", unit)
            grid_out = Reading("sensor.grid_out", float(exp), "Grid export", unit)
        else:
            signed = c2.number_input(f"Grid, signed ({unit})", value=float(preset["grid"] or 0.0),
                                     key=f"{key_prefix}_{preset_name}_grid")
            grid_in = Reading("sensor.grid", float(signed), "Grid", unit)

    tables = {}
    for group in ("generation", "consumers", "batteries"):
        st.caption(group.capitalize())
        tables[group] = st.data_editor(
            _frame(preset[group]),
            key=f"{key_prefix}_{preset_name}_{group}",
            hide_index=True,
            num_rows="dynamic",
            column_config={
                "name": st.column_config.TextColumn(),
                "value": st.column_config.NumberColumn(step=10.0),
            },
        )

    try:
        return build_snapshot(
            settings,
            grid_in=grid_in,
            grid_out=grid_out,
            generation=_readings(tables["generation"], "sensor.generation", unit),
            consumers=_readings(tables["consumers"], "sensor.consumer", unit),
            batteries=_readings(tables["batteries"], "sensor.battery", unit),
        )
    except ValueError as e:
        st.error(str(e))
        return None
