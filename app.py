import json
import logging
import warnings
from dataclasses import asdict, replace
from typing import Any, Dict, Optional

import streamlit as st

from elecflow_ui.inputs import build_settings_from_sidebar, render_readings_form
from elecflow_ui.powerflow import render_powerflow_diagram
from elecflow_ui.summaries import render_metrics, render_sanity_warnings
from elecflow_ui.explain_ui import render_explain
from elecflow_ui.day_profile import render_day_profile, snapshot_at
from elecflow_ui.charts import line_chart

from elecflow_engine.draw import Diagram, DiagramCache, UnitLabelFormatter, BarExtras, build_diagram
from elecflow_engine.schemas import DiagramColors, FlowSnapshot, Route, RoutePair
from elecflow_engine.settings import load_settings, save_settings


st.set_page_config(page_title="Electricity Flow Sankey", layout="wide")

# UI-only deprecation noise; does not affect the diagram.
warnings.filterwarnings(
    "ignore",
    message=r"Please replace `use_container_width` with `width`\.",
)
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.title("Electricity Flow Sankey")
st.caption("Workbench for the flow reconciliation and sankey layout. Readings are entered by hand or generated.")


def _fingerprint_snapshot(snapshot: FlowSnapshot) -> str:
    return json.dumps(asdict(snapshot), sort_keys=True, separators=(",", ":"))


def _route_from_dict(d: Optional[Dict[str, Any]]) -> Optional[Route]:
    return Route(**d) if d is not None else None


def _snapshot_from_dict(d: Dict[str, Any]) -> FlowSnapshot:
    return FlowSnapshot(
        generation_routes={k: Route(**v) for k, v in (d.get("generation_routes") or {}).items()},
        grid_in_route=_route_from_dict(d.get("grid_in_route")),
        grid_out_route=_route_from_dict(d.get("grid_out_route")),
        consumer_routes={k: Route(**v) for k, v in (d.get("consumer_routes") or {}).items()},
        battery_routes={
            k: RoutePair(Route(**v["in_route"]), Route(**v["out_route"]))
            for k, v in (d.get("battery_routes") or {}).items()
        },
        max_consumer_branches=int(d.get("max_consumer_branches", 0)),
        hide_consumers_below=float(d.get("hide_consumers_below", 0.0)),
        battery_charge_only_from_generation=bool(d.get("battery_charge_only_from_generation", False)),
        unit=str(d.get("unit", "W")),
    )


@st.cache_data(show_spinner=False)
def _diagram_cached(snapshot_fingerprint: str, colors_fingerprint: str, show_extras: bool) -> Diagram:
    snapshot = _snapshot_from_dict(json.loads(snapshot_fingerprint))
    colors = DiagramColors(**json.loads(colors_fingerprint))
    extras = BarExtras() if show_extras else None
    return build_diagram(snapshot, UnitLabelFormatter(), extras, colors)


_settings, _settings_hash = load_settings()
settings = build_settings_from_sidebar(_settings)
st.sidebar.caption(f"Settings: {_settings_hash}")
if st.sidebar.button("Save settings"):
    _settings_hash = save_settings(settings)
    st.sidebar.success(f"Saved ({_settings_hash})")

show_extras = st.sidebar.checkbox("Consumer bars", value=False)
colors = settings.colors()
colors_fp = json.dumps(asdict(colors), sort_keys=True)

tabs = st.tabs(["Snapshot", "Day profile"])

with tabs[0]:
    snapshot = render_readings_form(settings)
    if snapshot is not None:
        diagram = _diagram_cached(_fingerprint_snapshot(snapshot), colors_fp, show_extras)
        st.subheader("Flows")
        render_powerflow_diagram(diagram, key_prefix="snapshot")

        st.subheader("Totals")
        render_metrics(diagram.flows, diagram.unit)
        render_sanity_warnings(diagram.flows, diagram.unit)

        st.subheader("Explain")
        render_explain(diagram.flows, diagram.unit, colors)

with tabs[1]:
    if "day_cache" not in st.session_state:
        st.session_state["day_cache"] = DiagramCache(max_entries=96, label_formatter=UnitLabelFormatter())
    cache = st.session_state["day_cache"]
    if cache.colors != colors:
        cache.colors = colors
        cache.clear()

    day_settings = settings
    if settings.unit != "W":
        st.info("The day profile is generated in W.")
        day_settings = replace(settings, unit="W")

    frame = render_day_profile()
    step = st.slider("Time of day (15-min step)", 0, len(frame) - 1, len(frame) // 2)
    day_diagram = cache.get(snapshot_at(frame, step, day_settings))
    render_powerflow_diagram(day_diagram, key_prefix="day")
    st.caption(f"{frame['hour'].iloc[step]:05.2f} h. Cache hits {cache.hits}, misses {cache.misses}.")

    grid_import = [cache.get(snapshot_at(frame, i, day_settings)).flows.grid_in_total for i in range(len(frame))]
    st.pyplot(line_chart("Grid import (W)", grid_import, list(frame["hour"]), ylabel="W"))
