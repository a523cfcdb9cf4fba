import streamlit as st

from elecflow_engine.core import ReconciledFlows
from elecflow_engine.explain import balance_report
from elecflow_engine.schemas import PHANTOM_EPSILON


def render_metrics(flows: ReconciledFlows, unit: str):
    c1, c2, c3, c4 = st.columns(4)
    c1.metric(f"Generation ({unit})", f"{flows.generation_total:,.1f}")
    c2.metric(f"Grid import ({unit})", f"{flows.grid_in_total:,.1f}")
    c3.metric(f"Grid export ({unit})", f"{flows.grid_export:,.1f}")
    c4.metric(f"Consumers ({unit})", f"{flows.consumer_total:,.1f}")

    c1, c2, c3 = st.columns(3)
    c1.metric(f"Battery discharge ({unit})", f"{flows.battery_discharge:,.1f}")
    c2.metric(f"Battery charge ({unit})", f"{flows.battery_charge:,.1f}")
    c3.metric(f"Untracked ({unit})", f"{flows.untracked_consumer.rate:,.1f}")


def render_sanity_warnings(flows: ReconciledFlows, unit: str):
    """Non-blocking warnings for readings that needed inference. No auto-fixes."""
    warnings = []

    if flows.phantom_generation is not None:
        warnings.append(f"Inferred {flows.phantom_generation.rate:,.1f} {unit} of unmeasured generation. "
                        "A generation sensor may be missing or lagging.")
    if flows.phantom_grid_in is not None:
        warnings.append(f"Inferred {flows.phantom_grid_in.rate:,.1f} {unit} from an unknown source "
                        "because no grid sensor is configured.")
    if flows.consumer_total > 0 and flows.untracked_consumer.rate / flows.consumer_total >= 0.5:
        warnings.append("More than half of consumption is untracked.")
    for row in balance_report(flows):
        if abs(row["residual"]) > PHANTOM_EPSILON:
            warnings.append(f"{row['trunk']} does not balance (residual {row['residual']:,.3f} {unit}).")

    if warnings:
        st.subheader("Sanity checks")
        for w in warnings:
            st.warning(w)
        st.caption("Warnings only. Readings are not modified.")
