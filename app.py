"""Smart Framework Control System — Streamlit entry point."""

import logging
import streamlit as st
import sys
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from components.sidebar import render_sidebar
from data.session_store import initialize_session_state, get_sync
from tabs import tab_dashboard, tab_site_map, tab_live_chat, tab_admin
from config.defaults import APP_TITLE
from config.settings import LOG_LEVEL, SYNC_REFRESH_SECONDS

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@st.fragment(run_every=SYNC_REFRESH_SECONDS)
def _watch_store():
    """Pull snapshots from other sessions; redraw only when something arrived."""
    if get_sync().pump():
        st.rerun()


def main():
    st.set_page_config(
        page_title=APP_TITLE,
        page_icon="🏗️",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    initialize_session_state()
    sidebar_state = render_sidebar()
    _watch_store()

    tab1, tab2, tab3, tab4 = st.tabs([
        "📊 대시보드",
        "🗺️ 현장 배치도",
        "💬 현장 소통",
        "⚙️ 관리",
    ])

    with tab1:
        tab_dashboard.render(sidebar_state)
    with tab2:
        tab_site_map.render(sidebar_state)
    with tab3:
        tab_live_chat.render(sidebar_state)
    with tab4:
        tab_admin.render(sidebar_state)


if __name__ == "__main__":
    main()
