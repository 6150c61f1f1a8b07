"""Global sidebar: role switch, connection state and notifications."""

import streamlit as st
from dataclasses import dataclass
from typing import FrozenSet

from components.metrics_cards import render_notification_card
from data.session_store import (
    get_sync, get_role, set_role, get_capabilities, get_notifications,
    get_site_name, get_project_code,
)
from models.role import Capability, UserRole, resolve_role
from config.defaults import APP_TITLE, APP_SUBTITLE
from config.settings import ADMIN_PASSCODE, CREATOR_PASSCODE

PROTECTED_ROLES = (UserRole.ADMIN, UserRole.CREATOR)


@dataclass
class SidebarState:
    role: UserRole
    capabilities: FrozenSet[Capability]


def _render_role_switch():
    current = get_role()
    roles = list(UserRole)
    selected = st.selectbox(
        "사용자 권한",
        options=roles,
        format_func=lambda r: r.value,
        index=roles.index(current),
        key="sidebar_role",
    )
    if selected == current:
        return

    if selected not in PROTECTED_ROLES:
        set_role(selected)
        st.rerun()

    passcode = st.text_input(f"{selected.value} 비밀번호", type="password", key="sidebar_passcode")
    if st.button("권한 전환", key="btn_role_switch"):
        unlocked = resolve_role(passcode, ADMIN_PASSCODE, CREATOR_PASSCODE)
        if unlocked == selected:
            set_role(selected)
            st.rerun()
        else:
            st.error("비밀번호가 일치하지 않습니다.")


def _render_connection():
    sync = get_sync()
    if sync.connection_error:
        st.error(sync.connection_error)
    elif sync.is_live:
        st.success("실시간 동기화 중")
    else:
        st.warning("연결 대기 중")

    if sync.pending:
        st.caption(f"저장 대기: {sum(len(u) for u in sync.pending_units.values())}세대")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("재연결", key="btn_reconnect"):
            sync.reconnect()
            st.rerun()
    with col2:
        if st.button("재전송", key="btn_retry", disabled=not sync.pending):
            confirmed = sync.retry_pending()
            st.toast(f"{confirmed}개 동 저장 완료")
            st.rerun()


def _render_notifications():
    center = get_notifications()
    label = f"알림 ({center.unread_count})" if center.unread_count else "알림"
    with st.expander(label, expanded=False):
        items = center.items
        if not items:
            st.caption("새 알림이 없습니다.")
        for n in items[:20]:
            render_notification_card(f"{n.message}  \n{n.timestamp:%H:%M:%S}", n.type)
        col1, col2 = st.columns(2)
        with col1:
            if st.button("모두 읽음", key="btn_notif_read"):
                center.mark_all_read()
                st.rerun()
        with col2:
            if st.button("비우기", key="btn_notif_clear"):
                center.clear()
                st.rerun()


def render_sidebar() -> SidebarState:
    """Render the global sidebar controls and return current state."""
    with st.sidebar:
        st.title(APP_TITLE)
        st.caption(APP_SUBTITLE)
        st.caption(f"{get_site_name()} · {get_project_code()}")
        st.divider()

        _render_role_switch()
        st.divider()
        _render_connection()
        st.divider()
        _render_notifications()

    return SidebarState(role=get_role(), capabilities=get_capabilities())
