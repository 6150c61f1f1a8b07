"""Tab 2: Site Map — the active floor of every building at a glance."""

import pandas as pd
import streamlit as st

from components.tables import render_status_table
from data.session_store import get_buildings
from engine.progress import site_map
from config.defaults import STATUS_COLORS

TILE_COLUMNS = 4


def _tile(entry: dict):
    color = STATUS_COLORS[entry["status"]]
    pending = f"<br><small>승인대기 {entry['pending']}</small>" if entry["pending"] else ""
    st.markdown(
        f"<div style='border-left: 6px solid {color}; padding: 8px 12px; "
        f"margin-bottom: 8px; background: #F8FAFC; border-radius: 4px;'>"
        f"<b>{entry['building_name']}</b><br>"
        f"<span style='font-size: 1.4em'>{entry['active_floor']}</span> "
        f"<span style='color: {color}'>{entry['status'].value}</span>{pending}</div>",
        unsafe_allow_html=True,
    )


def render(sidebar_state):
    """Render the Site Map tab."""
    st.header("현장 배치도")
    st.caption("타설중 → 승인요청 → 설치중 순으로 가장 먼저 진행 중인 층을, 없으면 최고 양생층을 표시합니다.")

    buildings = get_buildings()
    if not buildings:
        st.info("표시할 동이 없습니다.")
        return

    entries = site_map(buildings)
    for start in range(0, len(entries), TILE_COLUMNS):
        cols = st.columns(TILE_COLUMNS)
        for col, entry in zip(cols, entries[start:start + TILE_COLUMNS]):
            with col:
                _tile(entry)

    st.divider()
    table = pd.DataFrame([{
        "동": e["building_name"],
        "작업층": e["active_floor"],
        "상태": e["status"].value,
        "승인대기": e["pending"],
    } for e in entries])
    render_status_table(table, status_column="상태")
