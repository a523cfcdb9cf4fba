import streamlit as st
import pandas as pd
import numpy as np

from elecflow_engine.settings import FlowSettings
from elecflow_engine.sources import Reading, build_snapshot

STEPS = 96  # 15-min


def solar_curve(n: int = STEPS, peak: float = 1.0):
    # Bell around solar noon, zero overnight
    x = np.linspace(0, 1, n)
    curve = np.exp(-((x - 0.5) / 0.13) ** 2)
    curve[(x < 0.25) | (x > 0.8)] = 0.0
    return np.clip(curve, 0.0, 1.0) * peak


def load_curve(n: int = STEPS, base: float = 1.0):
    # Simple morning/evening peaks over a flat base
    x = np.linspace(0, 1, n)
    curve = 0.3 + 0.45 * np.exp(-((x - 0.32) / 0.06) ** 2) + 0.7 * np.exp(-((x - 0.78) / 0.08) ** 2)
    return curve * base


def profile_frame(peak_generation: float, base_load: float, battery_power: float, n: int = STEPS) -> pd.DataFrame:
    """Signed battery and grid per step.

    The battery soaks up surplus and covers deficit up to battery_power;
    state of charge is not modelled. Positive battery means discharging,
    positive grid means importing.
    """
    gen = solar_curve(n, peak_generation)
    load = load_curve(n, base_load)
    battery = np.clip(load - gen, -battery_power, battery_power)
    grid = load - gen - battery
    return pd.DataFrame({
        "hour": np.arange(n) * 24.0 / n,
        "generation": gen,
        "load": load,
        "battery": battery,
        "grid": grid,
    })


def snapshot_at(frame: pd.DataFrame, step: int, settings: FlowSettings):
    row = frame.iloc[step]
    return build_snapshot(
        settings,
        grid_in=Reading("sensor.grid", float(row["grid"]), "Grid"),
        generation=[Reading("sensor.solar", float(row["generation"]), "Solar")],
        consumers=[Reading("sensor.house", float(row["load"]), "House")],
        batteries=[Reading("sensor.battery", float(row["battery"]), "Battery")],
    )


def render_day_profile(key_prefix: str = "day"):
    c1, c2, c3 = st.columns(3)
    peak = c1.slider("Solar peak (W)", 0, 10000, 4000, 250, key=f"{key_prefix}_peak")
    base = c2.slider("Base load (W)", 0, 5000, 800, 50, key=f"{key_prefix}_base")
    batt = c3.slider("Battery power (W)", 0, 5000, 1500, 250, key=f"{key_prefix}_batt")

    frame = profile_frame(float(peak), float(base), float(batt))
    st.line_chart(frame.set_index("hour")[["generation", "load", "battery", "grid"]])
    return frame
