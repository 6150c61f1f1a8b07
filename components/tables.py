"""Styled dataframe display helpers."""

import streamlit as st
import pandas as pd

from config.defaults import STATUS_COLORS

_COLOR_BY_LABEL = {s.value: c for s, c in STATUS_COLORS.items()}


def render_status_table(df: pd.DataFrame, status_column: str = "상태"):
    """Render a table whose status column is tinted with the workflow colors."""
    def color_status(val):
        color = _COLOR_BY_LABEL.get(val)
        if color is None:
            return ""
        return f"background-color: {color}; color: white; font-weight: bold"

    if status_column in df.columns:
        styled = df.style.map(color_status, subset=[status_column])
        st.dataframe(styled, use_container_width=True, hide_index=True)
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)
