"""Tab 1: Dashboard — site progress, approval queue and per-building unit control."""

import streamlit as st

from components.charts import status_totals_bar, building_progress_bar, cured_donut, floor_status_heatmap
from components.metrics_cards import render_metric_row
from data.session_store import get_sync, get_buildings, add_audit_entry
from engine.messages import share_report, transition_prompt
from engine.progress import building_progress, site_status_totals, filter_buildings, unit_rows
from engine.workflow import (
    ACTION_MARK_MEP, find_unit, locate, pending_approvals, resolve_action,
)
from models.building import Building, UnitLocation
from models.role import Capability
from models.unit import ProcessStatus, Unit
from config.defaults import STATUS_ORDER

GRID_COLUMNS = 6


def _advance(location: UnitLocation, unit: Unit, sidebar_state) -> bool:
    """Run whatever a tap on the unit means for the current role."""
    sync = get_sync()
    action = resolve_action(unit, sidebar_state.capabilities)
    if action is None:
        return False

    if action.kind == ACTION_MARK_MEP:
        changed = sync.change_mep(
            location.building_id, location.floor_level, location.unit_id, sidebar_state.role,
        )
        if changed is not None:
            add_audit_entry("mark_mep", "mepCompleted", "False", "True",
                            location.building_name, location.unit_number)
        return changed is not None

    nxt = action.transition.next
    changed = sync.change_status(
        location.building_id, location.floor_level, location.unit_id, nxt, sidebar_state.role,
    )
    if changed is not None:
        add_audit_entry("transition", "status", unit.status.value, nxt.value,
                        location.building_name, location.unit_number)
    return changed is not None


def _render_summary(buildings):
    progress = building_progress(buildings)
    live = int(progress["live_units"].sum()) if not progress.empty else 0
    cured = int(progress[ProcessStatus.CURED.value].sum()) if not progress.empty else 0
    dead = int(progress["dead_units"].sum()) if not progress.empty else 0
    waiting = int(progress[ProcessStatus.APPROVAL_REQ.value].sum()) if not progress.empty else 0

    render_metric_row([
        {"label": "동 수", "value": len(buildings)},
        {"label": "시공 세대", "value": f"{live:,}"},
        {"label": "양생 완료", "value": f"{cured:,}",
         "delta": f"{cured / live:.0%}" if live else None},
        {"label": "승인 대기", "value": waiting,
         "delta_color": "inverse"},
        {"label": "제외 세대", "value": dead},
    ])

    col1, col2 = st.columns([2, 1])
    with col1:
        st.plotly_chart(status_totals_bar(site_status_totals(buildings)), use_container_width=True)
    with col2:
        st.plotly_chart(cured_donut(cured, live), use_container_width=True)

    with st.expander("동별 공정 진행", expanded=False):
        st.plotly_chart(building_progress_bar(progress), use_container_width=True)


def _render_approval_queue(buildings, sidebar_state):
    queue = pending_approvals(buildings)
    st.subheader(f"승인 대기 ({len(queue)})")
    if not queue:
        st.caption("승인 대기 중인 세대가 없습니다.")
        return

    can_approve = Capability.APPROVE in sidebar_state.capabilities
    for loc in queue[:30]:
        col1, col2 = st.columns([4, 1])
        col1.write(f"📢 {loc.label}")
        if can_approve and col2.button("승인", key=f"approve_{loc.unit_id}"):
            found = find_unit(get_buildings(), loc.building_id, loc.floor_level, loc.unit_id)
            if found is not None and _advance(loc, found[2], sidebar_state):
                st.rerun()
    if len(queue) > 30:
        st.caption(f"외 {len(queue) - 30}세대")


def _unit_label(unit: Unit, pending: bool) -> str:
    mark = " ⚡" if unit.mep_completed else ""
    wait = " ⏳" if pending else ""
    return f"{unit.unit_number}{mark}{wait}\n{unit.status.value}"


def _render_floor_grid(building: Building):
    sync = get_sync()
    selected_key = f"selected_unit_{building.id}"
    for floor in sorted(building.floors, key=lambda f: f.level, reverse=True):
        # Wide floors wrap onto extra rows under the same floor label
        for row_idx, row in enumerate(unit_rows(floor.units, GRID_COLUMNS)):
            cols = st.columns([1] + [2] * GRID_COLUMNS)
            if row_idx == 0:
                cols[0].markdown(f"**{floor.level}F**")
            for i, unit in enumerate(row):
                with cols[i + 1]:
                    if unit.is_dead_unit:
                        st.button("—", key=f"unit_{unit.id}", disabled=True, use_container_width=True)
                    elif st.button(_unit_label(unit, sync.is_pending(unit.id)),
                                   key=f"unit_{unit.id}", use_container_width=True):
                        st.session_state[selected_key] = (floor.level, unit.id)


def _render_unit_panel(building: Building, sidebar_state):
    selected = st.session_state.get(f"selected_unit_{building.id}")
    if not selected:
        st.caption("세대를 선택하면 공정을 변경할 수 있습니다.")
        return
    found = find_unit([building], building.id, selected[0], selected[1])
    if found is None:
        return
    _, floor, unit = found
    loc = locate(building, floor, unit)

    st.markdown(f"#### {loc.label}")
    st.write(f"현재 상태: **{unit.status.value}** · 기전 {'완료' if unit.mep_completed else '미완료'}")
    st.caption(f"최종 변경: {unit.last_updated:%Y-%m-%d %H:%M}")

    action = resolve_action(unit, sidebar_state.capabilities)
    if action is None:
        st.info("현재 권한으로 가능한 작업이 없습니다.")
    elif action.kind == ACTION_MARK_MEP:
        st.write("기전(전기/설비) 작업 완료를 보고합니다.")
        if st.button("기전 완료", type="primary", key=f"mep_{unit.id}"):
            _advance(loc, unit, sidebar_state)
            st.rerun()
    else:
        t = action.transition
        st.write(transition_prompt(loc, t.current, t.next, t.is_revert))
        if st.button("되돌리기" if t.is_revert else "확인", type="primary", key=f"go_{unit.id}"):
            _advance(loc, unit, sidebar_state)
            st.rerun()

    report = share_report(loc, unit.status)
    if report:
        title, body = report
        with st.expander(f"공유: {title}"):
            st.code(body, language=None)


def render(sidebar_state):
    """Render the Dashboard tab."""
    st.header("공정 대시보드")

    buildings = get_buildings()
    if not buildings:
        st.warning("동 데이터가 없습니다. 관리 탭에서 구조를 동기화하세요.")
        return

    _render_summary(buildings)
    st.divider()
    _render_approval_queue(buildings, sidebar_state)
    st.divider()

    st.subheader("동별 세대 현황")
    col1, col2 = st.columns(2)
    with col1:
        search = st.text_input("동 검색", key="dash_search", placeholder="예: 2003")
    with col2:
        status_options = [None] + STATUS_ORDER
        status = st.selectbox(
            "상태 필터", status_options,
            format_func=lambda s: "전체" if s is None else s.value,
            key="dash_status",
        )

    visible = filter_buildings(buildings, search.strip(), status)
    if not visible:
        st.info("조건에 맞는 동이 없습니다.")
        return

    names = {b.id: b.name for b in visible}
    building_id = st.selectbox(
        "동 선택", list(names),
        format_func=lambda bid: names[bid],
        key="dash_building",
    )
    building = next(b for b in visible if b.id == building_id)
    view = st.radio("보기", ["세대 버튼", "히트맵"], horizontal=True, key="dash_view")
    if view == "히트맵":
        st.plotly_chart(floor_status_heatmap(building), use_container_width=True)
        return

    col_grid, col_panel = st.columns([3, 1])
    with col_grid:
        _render_floor_grid(building)
    with col_panel:
        _render_unit_panel(building, sidebar_state)
