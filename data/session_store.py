"""Typed wrapper around st.session_state for application data."""

import streamlit as st
from typing import List, Optional
from datetime import datetime

from models.site_config import BuildingConfig
from models.building import Building
from models.role import UserRole, capabilities_for
from models.analysis import AnalysisResult
from models.audit import AuditEntry
from data.store import InMemoryDocumentStore
from data.notifications import NotificationCenter
from data.relay import MessageRelay
from data.sync import SyncController
from data.sample_data import DEFAULT_BUILDING_CONFIGS
from engine.structure import generate_buildings
from config.settings import SITE_NAME, PROJECT_CODE


@st.cache_resource
def get_shared_store() -> InMemoryDocumentStore:
    """One store per server process, shared by every browser session."""
    return InMemoryDocumentStore()


def _toast_alert(title: str, body: str):
    st.toast(f"**{title}**\n\n{body}", icon="🔔")


def initialize_session_state():
    """Initialize all session state keys with defaults."""
    defaults = {
        "user_role": UserRole.WORKER,
        "site_name": SITE_NAME,
        "project_code": PROJECT_CODE,
        "building_configs": list(DEFAULT_BUILDING_CONFIGS),
        "analysis_result": None,
        "audit_log": [],
    }
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default

    if "sync" not in st.session_state:
        store = get_shared_store()
        controller = SyncController(
            store,
            notifications=NotificationCenter(),
            relay=MessageRelay(store),
            alert=_toast_alert,
        )
        controller.initialize_if_empty(generate_buildings(get_building_configs()))
        controller.start()
        st.session_state["sync"] = controller
    get_sync().pump()


# --- Getters ---

def get_sync() -> SyncController:
    return st.session_state["sync"]


def get_relay() -> MessageRelay:
    return get_sync().relay


def get_notifications() -> NotificationCenter:
    return get_sync().notifications


def get_buildings() -> List[Building]:
    return get_sync().buildings


def get_role() -> UserRole:
    return st.session_state.get("user_role", UserRole.WORKER)


def get_capabilities():
    return capabilities_for(get_role())


def get_site_name() -> str:
    return st.session_state.get("site_name", SITE_NAME)


def get_project_code() -> str:
    return st.session_state.get("project_code", PROJECT_CODE)


def get_building_configs() -> List[BuildingConfig]:
    return st.session_state.get("building_configs", list(DEFAULT_BUILDING_CONFIGS))


def get_analysis_result() -> Optional[AnalysisResult]:
    return st.session_state.get("analysis_result")


def get_audit_log() -> List[AuditEntry]:
    return st.session_state.get("audit_log", [])


# --- Setters ---

def set_role(role: UserRole):
    st.session_state["user_role"] = role


def set_site_identity(site_name: str, project_code: Optional[str] = None):
    st.session_state["site_name"] = site_name
    if project_code:
        st.session_state["project_code"] = project_code


def set_building_configs(configs: List[BuildingConfig]):
    st.session_state["building_configs"] = configs


def set_analysis_result(result: AnalysisResult):
    st.session_state["analysis_result"] = result


# --- Audit ---

def add_audit_entry(
    action: str,
    field_changed: str,
    old_value: str,
    new_value: str,
    building_name: Optional[str] = None,
    unit_number: Optional[str] = None,
):
    entry = AuditEntry(
        timestamp=datetime.now(),
        action=action,
        role=get_role().value,
        building_name=building_name,
        unit_number=unit_number,
        field_changed=field_changed,
        old_value=old_value,
        new_value=new_value,
    )
    st.session_state["audit_log"].append(entry)
