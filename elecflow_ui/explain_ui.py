import streamlit as st
import pandas as pd

from elecflow_engine.core import ReconciledFlows
from elecflow_engine.explain import balance_report, flow_ledger, phantom_hints

from .charts import bar_chart


def render_explain(flows: ReconciledFlows, unit: str, colors=None):
    ledger = pd.DataFrame(flow_ledger(flows))
    st.write("Flow ledger")
    st.table(ledger.round(1))

    shown = ledger[ledger["rate"] > 0]
    if not shown.empty:
        names = [f"{s} → {d}" for s, d in zip(shown["source"], shown["destination"])]
        bar_colors = None
        if colors is not None:
            by_source = {"generation": colors.generation, "grid": colors.grid, "batteries": colors.battery}
            bar_colors = [by_source[s] for s in shown["source"]]
        st.pyplot(bar_chart("Flows by route", names, shown["rate"], ylabel=unit, colors=bar_colors))

    st.write("Balance")
    st.table(pd.DataFrame(balance_report(flows)).round(3))

    for hint in phantom_hints(flows, unit):
        st.info(hint)
