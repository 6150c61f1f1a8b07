"""Bulk operations over every live unit of the site."""

from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from models.building import Building
from models.site_config import BuildingConfig
from models.unit import MEP_ELIGIBLE_STATUSES, ProcessStatus, Unit
from engine.structure import generate_buildings

FULL_RESET = "full_reset"
REINITIALIZE = "reinitialize"
FORCE_INSTALL = "force_install"
FORCE_REQUEST = "force_request"
FORCE_APPROVE = "force_approve"
FORCE_MEP = "force_mep"

BATCH_OPERATIONS = [FULL_RESET, REINITIALIZE, FORCE_INSTALL, FORCE_REQUEST, FORCE_APPROVE, FORCE_MEP]

BATCH_LABELS = {
    FULL_RESET: "시스템 전체 초기화 (Reset)",
    REINITIALIZE: "DB 구조 강제 동기화 (Re-Init)",
    FORCE_INSTALL: "전체 설치중",
    FORCE_REQUEST: "전체 승인요청",
    FORCE_APPROVE: "전체 승인완료",
    FORCE_MEP: "전체 기전 완료",
}

# Operations that also clear the chat history
CLEARS_CHAT = {FULL_RESET, REINITIALIZE}


def _reset(unit: Unit) -> Unit:
    return replace(unit, status=ProcessStatus.NOT_STARTED, mep_completed=False)


def _set_status(status: ProcessStatus) -> Callable[[Unit], Unit]:
    # Direct field set: mepCompleted and lastUpdated stay as they were
    return lambda unit: replace(unit, status=status)


def _force_mep(unit: Unit) -> Unit:
    if unit.status in MEP_ELIGIBLE_STATUSES:
        return replace(unit, mep_completed=True)
    return unit


UNIT_EFFECTS: Dict[str, Callable[[Unit], Unit]] = {
    FULL_RESET: _reset,
    FORCE_INSTALL: _set_status(ProcessStatus.INSTALLING),
    FORCE_REQUEST: _set_status(ProcessStatus.APPROVAL_REQ),
    FORCE_APPROVE: _set_status(ProcessStatus.APPROVED),
    FORCE_MEP: _force_mep,
}


def map_live_units(buildings: Sequence[Building], effect: Callable[[Unit], Unit]) -> List[Building]:
    """Apply an effect to every non-dead unit; every building becomes a fresh record."""
    return [
        replace(b, floors=tuple(
            replace(f, units=tuple(u if u.is_dead_unit else effect(u) for u in f.units))
            for f in b.floors
        ))
        for b in buildings
    ]


def apply_batch(
    operation: str,
    buildings: Sequence[Building],
    configs: Optional[Sequence[BuildingConfig]] = None,
    now: Optional[datetime] = None,
) -> List[Building]:
    """Return the whole mutated tree for one batch operation."""
    if operation == REINITIALIZE:
        if configs is None:
            raise ValueError("Reinitialize requires the building configuration.")
        return generate_buildings(configs, now)

    effect = UNIT_EFFECTS.get(operation)
    if effect is None:
        raise ValueError(f"Unknown batch operation: {operation}")
    return map_live_units(buildings, effect)
