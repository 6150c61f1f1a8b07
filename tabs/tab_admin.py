"""Tab 4: Admin — backup/restore, batch operations, site structure and audit trail."""

import logging

import streamlit as st
import pandas as pd

from data.loader import (
    load_file, load_json, dump_json, parse_building_configs,
    parse_analysis_result, analysis_to_record,
)
from data.validator import validate_backup, validate_building_config, validate_analysis
from data.sample_data import configs_to_df
from data.session_store import (
    get_sync, get_relay, get_buildings, get_building_configs, set_building_configs,
    get_site_name, get_project_code, set_site_identity, get_analysis_result,
    set_analysis_result, get_audit_log, add_audit_entry,
)
from data.store import StoreError
from engine.batch import BATCH_LABELS, BATCH_OPERATIONS, CLEARS_CHAT, REINITIALIZE, apply_batch
from engine.restore import backup_filename, build_backup, merge_backup, parse_backup
from engine.structure import count_dead_units, generate_buildings, structure_to_config
from models.role import Capability
from config.defaults import ANALYSIS_COLLECTION, ANALYSIS_RECORD_KEY

logger = logging.getLogger(__name__)


def _show_result(result) -> bool:
    for e in result.errors:
        st.error(e)
    for w in result.warnings:
        st.warning(w)
    return result.is_valid


def _render_backup():
    st.subheader("백업 / 복구")
    buildings = get_buildings()

    payload = build_backup(buildings, get_site_name(), get_project_code())
    st.download_button(
        "현재 상태 백업 (JSON)",
        dump_json(payload),
        backup_filename(),
        "application/json",
        key="btn_backup",
    )

    uploaded = st.file_uploader("백업 파일 복구", type=["json"], key="upload_backup")
    if uploaded is None or not st.button("복구 실행", type="primary", key="btn_restore"):
        return

    try:
        raw = load_json(uploaded)
    except ValueError as e:
        st.error(str(e))
        return
    if not _show_result(validate_backup(raw)):
        return
    try:
        backup = parse_backup(raw)
    except ValueError as e:
        st.error(str(e))
        return

    canonical = generate_buildings(get_building_configs())
    restored = merge_backup(canonical, backup.buildings)
    if get_sync().save_all(restored):
        set_site_identity(backup.site_name, backup.project_code)
        add_audit_entry("restore", "buildings", backup.timestamp or "-", backup.site_name)
        logger.info("Restored backup from %s (%d buildings)", backup.timestamp, len(backup.buildings))
        st.success(f"{backup.site_name} 백업을 복구했습니다.")
        st.rerun()
    else:
        st.error("복구 내용을 저장하지 못했습니다. 연결 상태를 확인한 뒤 재전송하세요.")


def _render_batch():
    st.subheader("일괄 작업")
    operation = st.selectbox(
        "작업", BATCH_OPERATIONS,
        format_func=lambda op: BATCH_LABELS[op],
        key="batch_operation",
    )
    if operation in CLEARS_CHAT:
        st.warning("이 작업은 모든 세대를 미착수로 되돌리고 채팅 기록을 삭제합니다.")
    confirmed = st.checkbox("내용을 확인했습니다.", key="batch_confirm")

    if not st.button("실행", type="primary", key="btn_batch", disabled=not confirmed):
        return

    sync = get_sync()
    try:
        tree = apply_batch(operation, get_buildings(), configs=get_building_configs())
    except ValueError as e:
        st.error(str(e))
        return

    saved = sync.replace_all(tree) if operation == REINITIALIZE else sync.save_all(tree)
    if not saved:
        st.error("일괄 작업을 저장하지 못했습니다.")
        return
    if operation in CLEARS_CHAT and get_relay() is not None:
        get_relay().clear()
    add_audit_entry("batch", "all_units", "", BATCH_LABELS[operation])
    st.success(f"{BATCH_LABELS[operation]} 완료")
    st.rerun()


def _render_site_config():
    st.subheader("동 구조 설정")
    configs = get_building_configs()
    config_df = configs_to_df(configs)
    st.dataframe(config_df, use_container_width=True, hide_index=True, height=250)
    st.download_button(
        "구조 설정 내보내기 (CSV)", config_df.to_csv(index=False), "site_config.csv", "text/csv",
        key="btn_config_export",
    )

    uploaded = st.file_uploader("구조 설정 업로드 (CSV/XLSX)", type=["csv", "xlsx"], key="upload_config")
    if uploaded is None or not st.button("설정 적용", key="btn_config_apply"):
        return
    try:
        df = load_file(uploaded)
    except Exception as e:
        st.error(f"Error loading file: {e}")
        return
    if not _show_result(validate_building_config(df)):
        return

    new_configs = parse_building_configs(df)
    set_building_configs(new_configs)
    add_audit_entry("config_change", "building_configs", f"{len(configs)}개 동", f"{len(new_configs)}개 동")
    st.success(f"{len(new_configs)}개 동 설정을 적용했습니다. 'DB 구조 강제 동기화'로 반영하세요.")


def _render_analysis_import():
    st.subheader("도면 분석 결과 가져오기")
    current = get_analysis_result()
    if current is not None:
        st.caption(f"최근 분석: {current.site_name} · 안전 점수 {current.overall_safety_score:.0f}")

    uploaded = st.file_uploader("분석 결과 (JSON)", type=["json"], key="upload_analysis")
    if uploaded is None or not st.button("구조 생성", type="primary", key="btn_analysis"):
        return
    try:
        raw = load_json(uploaded)
    except ValueError as e:
        st.error(str(e))
        return
    if not _show_result(validate_analysis(raw)):
        return

    result = parse_analysis_result(raw)
    sync = get_sync()
    try:
        sync.store.write(ANALYSIS_COLLECTION, ANALYSIS_RECORD_KEY, analysis_to_record(result))
    except StoreError as e:
        logger.error("Saving analysis failed (%s)", e.code)
        st.error("분석 결과를 저장하지 못했습니다.")
        return

    configs = [structure_to_config(s, idx) for idx, s in enumerate(result.building_structures)]
    buildings = generate_buildings(configs)
    set_analysis_result(result)
    set_building_configs(configs)
    set_site_identity(result.site_name or get_site_name(), result.project_code)
    if sync.replace_all(buildings):
        add_audit_entry("import_analysis", "buildings", "", f"{len(buildings)}개 동")
        st.success(
            f"{len(buildings)}개 동, {count_dead_units(buildings)}개 제외 세대로 구조를 생성했습니다."
        )
        st.rerun()
    else:
        st.error("생성한 구조를 저장하지 못했습니다.")


def _render_audit():
    st.subheader("변경 이력")
    audit_log = get_audit_log()
    if not audit_log:
        st.info("No audit entries yet.")
        return

    audit_data = []
    for entry in reversed(audit_log):
        audit_data.append({
            "Timestamp": entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            "Action": entry.action,
            "Role": entry.role,
            "Building": entry.building_name or "—",
            "Unit": entry.unit_number or "—",
            "Field": entry.field_changed,
            "Old Value": entry.old_value[:50],
            "New Value": entry.new_value[:50],
        })
    audit_df = pd.DataFrame(audit_data)
    st.dataframe(audit_df, use_container_width=True, height=300, hide_index=True)

    csv = audit_df.to_csv(index=False)
    st.download_button("Export Audit Log (CSV)", csv, "audit_log.csv", "text/csv")


def render(sidebar_state):
    """Render the Admin tab."""
    st.header("관리")
    caps = sidebar_state.capabilities

    if Capability.BACKUP_RESTORE not in caps:
        st.info("관리 기능은 관리자 또는 제작자 권한이 필요합니다.")
        _render_audit()
        return

    _render_backup()
    st.divider()

    if Capability.BATCH_OPERATIONS in caps:
        _render_batch()
        st.divider()
        _render_site_config()
        st.divider()

    if Capability.IMPORT_ANALYSIS in caps:
        _render_analysis_import()
        st.divider()

    _render_audit()
