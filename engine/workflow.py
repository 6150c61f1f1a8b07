"""Unit status workflow: role-gated transitions and MEP completion."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from models.building import Building, Floor, UnitLocation
from models.role import Capability, is_elevated
from models.unit import MEP_ELIGIBLE_STATUSES, MEP_RESET_STATUSES, ProcessStatus, Unit

S = ProcessStatus

# current -> (next, is_revert)
ELEVATED_TRANSITIONS: Dict[ProcessStatus, Tuple[ProcessStatus, bool]] = {
    S.NOT_STARTED: (S.INSTALLING, False),
    S.INSTALLING: (S.APPROVAL_REQ, False),
    S.APPROVAL_REQ: (S.APPROVED, False),
    S.APPROVED: (S.POURING, False),      # only once MEP is complete
    S.POURING: (S.CURED, False),
    S.CURED: (S.NOT_STARTED, True),
}

BASE_TRANSITIONS: Dict[ProcessStatus, Tuple[ProcessStatus, bool]] = {
    S.NOT_STARTED: (S.INSTALLING, False),
    S.INSTALLING: (S.APPROVAL_REQ, False),
    S.APPROVAL_REQ: (S.INSTALLING, True),
}

ACTION_TRANSITION = "transition"
ACTION_MARK_MEP = "mark_mep"


@dataclass(frozen=True)
class Transition:
    current: ProcessStatus
    next: ProcessStatus
    is_revert: bool = False


@dataclass(frozen=True)
class UnitAction:
    kind: str                               # ACTION_TRANSITION or ACTION_MARK_MEP
    transition: Optional[Transition] = None


def _can_act(capabilities: FrozenSet[Capability]) -> bool:
    return Capability.ADVANCE_WORK in capabilities or is_elevated(capabilities)


def next_status(
    current: ProcessStatus,
    capabilities: FrozenSet[Capability],
    mep_completed: bool,
) -> Optional[Transition]:
    """Pure transition function. None means no transition is available."""
    if not _can_act(capabilities):
        return None
    table = ELEVATED_TRANSITIONS if is_elevated(capabilities) else BASE_TRANSITIONS
    entry = table.get(current)
    if entry is None:
        return None
    if current is S.APPROVED and not mep_completed:
        return None
    nxt, is_revert = entry
    return Transition(current=current, next=nxt, is_revert=is_revert)


def resolve_action(unit: Unit, capabilities: FrozenSet[Capability]) -> Optional[UnitAction]:
    """What a single tap on this unit does for the given caller."""
    if unit.is_dead_unit:
        return None
    # MEP completion can be reported by any acting role
    if unit.status is S.APPROVED and not unit.mep_completed and _can_act(capabilities):
        return UnitAction(kind=ACTION_MARK_MEP)
    transition = next_status(unit.status, capabilities, unit.mep_completed)
    if transition is None:
        return None
    return UnitAction(kind=ACTION_TRANSITION, transition=transition)


def apply_status(unit: Unit, new_status: ProcessStatus, now: Optional[datetime] = None) -> Unit:
    """Set a status with its MEP side effects. Dead units come back unchanged."""
    if unit.is_dead_unit or not new_status.is_workflow:
        return unit
    mep = False if new_status in MEP_RESET_STATUSES else unit.mep_completed
    return replace(unit, status=new_status, mep_completed=mep, last_updated=now or datetime.now())


def mark_mep_complete(unit: Unit, now: Optional[datetime] = None) -> Unit:
    """Mark MEP work done. Only meaningful at APPROVED or later; idempotent."""
    if unit.is_dead_unit or unit.status not in MEP_ELIGIBLE_STATUSES:
        return unit
    if unit.mep_completed:
        return unit
    return replace(unit, mep_completed=True, last_updated=now or datetime.now())


def set_mep(unit: Unit, completed: bool, now: Optional[datetime] = None) -> Unit:
    if completed:
        return mark_mep_complete(unit, now)
    if unit.is_dead_unit or not unit.mep_completed:
        return unit
    return replace(unit, mep_completed=False, last_updated=now or datetime.now())


def replace_unit(
    buildings: Sequence[Building],
    building_id: str,
    level: int,
    unit_id: str,
    mutate,
) -> Tuple[List[Building], Optional[Building], Optional[Unit]]:
    """Rebuild the one building that holds the unit; returns (tree, changed building, new unit)."""
    result = list(buildings)
    for b_idx, building in enumerate(buildings):
        if building.id != building_id:
            continue
        for f_idx, floor in enumerate(building.floors):
            if floor.level != level:
                continue
            for u_idx, unit in enumerate(floor.units):
                if unit.id != unit_id:
                    continue
                updated = mutate(unit)
                if updated is unit:
                    return result, None, None
                units = floor.units[:u_idx] + (updated,) + floor.units[u_idx + 1:]
                floors = (
                    building.floors[:f_idx]
                    + (replace(floor, units=units),)
                    + building.floors[f_idx + 1:]
                )
                new_building = replace(building, floors=floors)
                result[b_idx] = new_building
                return result, new_building, updated
    return result, None, None


def update_unit_status(
    buildings: Sequence[Building],
    building_id: str,
    level: int,
    unit_id: str,
    new_status: ProcessStatus,
    capabilities: FrozenSet[Capability],
    now: Optional[datetime] = None,
) -> Tuple[List[Building], Optional[Building]]:
    """Apply a status to one unit; the changed building is returned for persisting.

    The move is committed only when it is the caller's legal next step from the
    unit's current status. Anything else leaves the tree as it was.
    """
    def authorized(unit: Unit) -> Unit:
        transition = next_status(unit.status, capabilities, unit.mep_completed)
        if unit.is_dead_unit or transition is None or transition.next is not new_status:
            return unit
        return apply_status(unit, new_status, now)

    tree, changed, _ = replace_unit(buildings, building_id, level, unit_id, authorized)
    return tree, changed


def update_unit_mep(
    buildings: Sequence[Building],
    building_id: str,
    level: int,
    unit_id: str,
    completed: bool,
    capabilities: FrozenSet[Capability],
    now: Optional[datetime] = None,
) -> Tuple[List[Building], Optional[Building]]:
    # Withdrawing reported MEP work needs approval rights
    allowed = _can_act(capabilities) if completed else is_elevated(capabilities)

    def authorized(unit: Unit) -> Unit:
        return set_mep(unit, completed, now) if allowed else unit

    tree, changed, _ = replace_unit(buildings, building_id, level, unit_id, authorized)
    return tree, changed


def find_unit(
    buildings: Sequence[Building], building_id: str, level: int, unit_id: str,
) -> Optional[Tuple[Building, Floor, Unit]]:
    building = next((b for b in buildings if b.id == building_id), None)
    if building is None:
        return None
    floor = building.find_floor(level)
    if floor is None:
        return None
    unit = floor.find_unit(unit_id)
    if unit is None:
        return None
    return building, floor, unit


def locate(building: Building, floor: Floor, unit: Unit) -> UnitLocation:
    return UnitLocation(
        building_id=building.id,
        building_name=building.name,
        floor_level=floor.level,
        unit_id=unit.id,
        unit_number=unit.unit_number,
    )


def pending_approvals(buildings: Sequence[Building]) -> List[UnitLocation]:
    """Units currently waiting for approval, in tree order."""
    return [
        locate(b, f, u)
        for b in buildings
        for f, u in b.iter_units()
        if u.is_pending_approval and not u.is_dead_unit
    ]
