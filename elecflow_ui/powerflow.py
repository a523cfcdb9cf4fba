import streamlit as st

from elecflow_engine.draw import Diagram

from .svg import diagram_to_svg
from .theme import BORDER


def render_powerflow_diagram(diagram: Diagram, panel_widths_px: dict = None, key_prefix: str = "flow"):
    """Embed the sankey as inline SVG.

    Gradient ids are prefixed with key_prefix so several diagrams can share
    a page. Scrolls horizontally on narrow layouts instead of squashing the labels.
    """
    svg = diagram_to_svg(diagram, panel_widths_px, id_prefix=f"{key_prefix}-")
    st.markdown(
        f'<div style="overflow-x:auto;border:1px solid {BORDER};border-radius:10px;padding:8px">{svg}</div>',
        unsafe_allow_html=True,
    )
