"""Tab 3: Live Chat — field messages and automatic workflow relays."""

from datetime import datetime

import streamlit as st

from data.session_store import get_relay
from models.role import UserRole

AVATARS = {
    UserRole.WORKER: "👷",
    UserRole.SUBCONTRACTOR: "🦺",
    UserRole.ADMIN: "🧑‍💼",
    UserRole.CREATOR: "🛠️",
}


def render(sidebar_state):
    """Render the Live Chat tab."""
    st.header("현장 소통")

    relay = get_relay()
    if relay is None:
        st.warning("메시지 중계가 설정되지 않았습니다.")
        return

    messages = relay.recent()
    box = st.container(height=480)
    with box:
        if not messages:
            st.caption("아직 메시지가 없습니다.")
        for m in messages:
            with st.chat_message(m.user_role.value, avatar=AVATARS.get(m.user_role)):
                sender = m.sender_name or m.user_role.value
                sent = datetime.fromtimestamp(m.timestamp / 1000)
                st.caption(f"{sender} · {sent:%m-%d %H:%M}")
                st.write(m.text)

    text = st.chat_input(f"{sidebar_state.role.value}(으)로 메시지 보내기")
    if text and text.strip():
        if relay.send(text.strip(), sidebar_state.role) is None:
            st.error("메시지를 보내지 못했습니다. 연결 상태를 확인하세요.")
        else:
            st.rerun()
