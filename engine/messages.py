"""Human-readable texts for notifications, relay messages and field reports."""

from typing import Optional, Tuple

from models.building import UnitLocation
from models.unit import ProcessStatus
from config.defaults import (
    ALERT_TITLE_APPROVAL_REQ, ALERT_TITLE_APPROVED,
    RELAY_SENDER_FIELD, RELAY_SENDER_ADMIN,
)


def notification_text(location: UnitLocation, status: ProcessStatus) -> Optional[Tuple[str, str]]:
    """(message, type) for a noteworthy status, or None."""
    if status is ProcessStatus.APPROVAL_REQ:
        return f"[승인요청] {location.label}", "warning"
    if status is ProcessStatus.APPROVED:
        return f"[승인완료] {location.label}", "success"
    return None


def alert_text(location: UnitLocation, status: ProcessStatus) -> Optional[Tuple[str, str]]:
    """(title, body) for the sound/system alert."""
    if status is ProcessStatus.APPROVAL_REQ:
        return ALERT_TITLE_APPROVAL_REQ, f"{location.label}에서 검측 승인이 요청되었습니다."
    if status is ProcessStatus.APPROVED:
        return ALERT_TITLE_APPROVED, f"{location.label}가 승인되었습니다."
    return None


def relay_text(location: UnitLocation, status: ProcessStatus) -> Optional[Tuple[str, str]]:
    """(text, sender name) posted to the message relay after a transition."""
    if status is ProcessStatus.APPROVAL_REQ:
        return f"📢 [승인요청] {location.label} - 검측 요청합니다.", RELAY_SENDER_FIELD
    if status is ProcessStatus.APPROVED:
        return (
            f"✅ [승인완료] {location.label} - 승인 완료. 후속 공정 진행하세요.",
            RELAY_SENDER_ADMIN,
        )
    return None


def share_report(location: UnitLocation, status: ProcessStatus) -> Optional[Tuple[str, str]]:
    """(title, body) for pasting into a field messenger."""
    where = f"위치: {location.floor_level}층 {location.unit_number}호"
    if status is ProcessStatus.APPROVAL_REQ:
        return (
            "SFCS 설치완료 보고",
            f"[설치완료 보고]\n현장: {location.building_name}\n{where}\n"
            "상태: AL폼 조립 및 슬라브 완성, 서포트 설치 완료. 검측 요청합니다.",
        )
    if status is ProcessStatus.APPROVED:
        return (
            "SFCS 승인완료 통보",
            f"[승인완료 통보]\n현장: {location.building_name}\n{where}\n"
            "결과: 검측 합격(승인). 기전(전기/설비) 작업 진행 바랍니다.",
        )
    return None


def transition_prompt(location: UnitLocation, current: ProcessStatus, nxt: ProcessStatus,
                      is_revert: bool) -> str:
    if is_revert:
        return f"{location.label}: {current.value} → {nxt.value} 으로 되돌리시겠습니까?"
    return f"{location.label}: {current.value} → {nxt.value} 으로 변경하시겠습니까?"
