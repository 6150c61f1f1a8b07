"""Snapshot differ: detect announceable status changes between two full trees."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from models.building import Building, UnitLocation
from models.notification import SystemNotification
from models.unit import ProcessStatus
from engine.messages import notification_text

NOTEWORTHY_STATUSES = (ProcessStatus.APPROVAL_REQ, ProcessStatus.APPROVED)


@dataclass(frozen=True)
class StatusChange:
    location: UnitLocation
    old_status: ProcessStatus
    new_status: ProcessStatus

    @property
    def is_noteworthy(self) -> bool:
        return self.new_status in NOTEWORTHY_STATUSES


def diff_snapshots(
    previous: Sequence[Building],
    current: Sequence[Building],
) -> List[StatusChange]:
    """Every unit whose status differs, matched by building id, floor level, unit id.

    Entities present in only one snapshot are ignored.
    """
    prev_buildings = {b.id: b for b in previous}
    changes = []
    for new_b in current:
        old_b = prev_buildings.get(new_b.id)
        if old_b is None:
            continue
        old_floors = {f.level: f for f in old_b.floors}
        for new_f in new_b.floors:
            old_f = old_floors.get(new_f.level)
            if old_f is None:
                continue
            old_units = {u.id: u for u in old_f.units}
            for new_u in new_f.units:
                old_u = old_units.get(new_u.id)
                if old_u is None or old_u.status == new_u.status:
                    continue
                changes.append(StatusChange(
                    location=UnitLocation(
                        building_id=new_b.id,
                        building_name=new_b.name,
                        floor_level=new_f.level,
                        unit_id=new_u.id,
                        unit_number=new_u.unit_number,
                    ),
                    old_status=old_u.status,
                    new_status=new_u.status,
                ))
    return changes


def build_notifications(
    changes: Sequence[StatusChange],
    now: Optional[datetime] = None,
) -> List[SystemNotification]:
    """One notification per noteworthy change, in detection order."""
    now = now or datetime.now()
    notifications = []
    for change in changes:
        text = notification_text(change.location, change.new_status)
        if text is None:
            continue
        message, kind = text
        notifications.append(SystemNotification(
            id=uuid.uuid4().hex, message=message, type=kind, timestamp=now,
        ))
    return notifications


def process_snapshot(
    previous: Sequence[Building],
    current: Sequence[Building],
    now: Optional[datetime] = None,
) -> Tuple[List[StatusChange], List[SystemNotification], List[Building]]:
    """(noteworthy changes, notifications, new previous). An empty previous means no diff."""
    if not previous:
        return [], [], list(current)
    changes = [c for c in diff_snapshots(previous, current) if c.is_noteworthy]
    return changes, build_notifications(changes, now), list(current)
