"""Reusable KPI metric card widgets."""

import streamlit as st


def render_metric_row(metrics: list[dict]):
    """Render a row of metric cards.

    Each metric dict should have: label, value, and optionally delta, delta_color.
    """
    cols = st.columns(len(metrics))
    for col, m in zip(cols, metrics):
        with col:
            st.metric(
                label=m["label"],
                value=m["value"],
                delta=m.get("delta"),
                delta_color=m.get("delta_color", "normal"),
            )


def render_notification_card(message: str, type: str = "info"):
    """Render a notification with the styling of its type."""
    if type == "success":
        st.success(message, icon="✅")
    elif type == "warning":
        st.warning(message, icon="📢")
    elif type == "error":
        st.error(message, icon="🔴")
    else:
        st.info(message, icon="🔵")
