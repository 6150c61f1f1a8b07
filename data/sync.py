"""Synchronization between the local view and the shared store.

The controller owns the previous snapshot used for change detection, the
per-unit pending-write markers and the user-facing connection state. Every
incoming snapshot is diffed, announced and committed as the new baseline
before the next one is looked at.
"""

import logging
import re
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Set

from data.notifications import NotificationCenter
from data.relay import MessageRelay
from data.store import (
    AuthMisconfiguredError, DocumentStore, PermissionDeniedError, SnapshotEvent,
    StoreError, StoreUnavailableError, Subscription,
)
from engine.differ import StatusChange, process_snapshot
from engine.messages import alert_text, relay_text
from engine.restore import building_from_dict, building_to_dict
from engine.workflow import find_unit, locate, update_unit_mep, update_unit_status
from models.building import Building
from models.role import UserRole, capabilities_for
from models.unit import ProcessStatus
from config.defaults import BUILDINGS_COLLECTION

logger = logging.getLogger(__name__)

AlertHook = Callable[[str, str], None]
WriteFailedHook = Callable[[Building, StoreError], None]


def log_alert(title: str, body: str):
    logger.info("ALERT %s: %s", title, body)


def describe_sync_error(error: StoreError) -> str:
    """User-facing advice for a store fault."""
    if isinstance(error, PermissionDeniedError):
        return "권한 거부됨: 공유 저장소의 읽기/쓰기 규칙을 확인하세요."
    if isinstance(error, StoreUnavailableError):
        return "서버 연결 불가: 인터넷 연결 또는 저장소 상태를 확인하세요."
    if isinstance(error, AuthMisconfiguredError):
        return "인증 오류: 저장소의 익명 접속 설정을 확인하세요."
    return f"연결 오류 ({error.code}): 저장소 접근 설정을 확인하세요."


def _natural_key(building: Building):
    return [int(t) if t.isdigit() else t for t in re.split(r"(\d+)", building.id)]


def decode_buildings(records: Sequence[dict]) -> List[Building]:
    buildings = []
    for record in records:
        try:
            buildings.append(building_from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping unreadable building record %s: %s", record.get("id"), e)
    buildings.sort(key=_natural_key)
    return buildings


class SyncController:
    def __init__(
        self,
        store: DocumentStore,
        notifications: Optional[NotificationCenter] = None,
        relay: Optional[MessageRelay] = None,
        alert: Optional[AlertHook] = None,
        on_write_failed: Optional[WriteFailedHook] = None,
        collection: str = BUILDINGS_COLLECTION,
    ):
        self.store = store
        self.notifications = notifications or NotificationCenter()
        self.relay = relay
        self.alert = alert or log_alert
        self.on_write_failed = on_write_failed
        self.collection = collection

        self.previous: List[Building] = []
        self.buildings: List[Building] = []
        self.is_live = False
        self.connection_error: Optional[str] = None

        # building id -> unconfirmed record, and the unit ids it changed
        self.pending: Dict[str, Building] = {}
        self.pending_units: Dict[str, Set[str]] = {}
        self._subscription: Optional[Subscription] = None

    # --- Subscription lifecycle ---

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.cancelled

    def start(self) -> bool:
        if self.subscribed:
            return True
        try:
            self._subscription = self.store.subscribe(self.collection)
        except StoreError as e:
            self._report_error(e)
            return False
        return True

    def stop(self):
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def reconnect(self) -> bool:
        """Re-subscribe; the first snapshot afterwards becomes a fresh baseline."""
        self.stop()
        self.previous = []
        return self.start()

    def pump(self) -> int:
        """Process every snapshot delivered since the last call, one at a time."""
        if self._subscription is None:
            return 0
        if self._subscription.cancelled:
            # Dropped by the store while idle; the kept baseline diffs the catch-up snapshot
            logger.info("Subscription to %s was dropped, resubscribing", self.collection)
            self._subscription = None
            if not self.start():
                return 0
        events = self._subscription.poll()
        for event in events:
            self.handle_event(event)
        return len(events)

    # --- Snapshot processing ---

    def handle_event(self, event: SnapshotEvent) -> List[StatusChange]:
        if event.error is not None:
            self._report_error(event.error)
            return []

        self.is_live = event.is_live
        self.connection_error = None
        incoming = decode_buildings(event.records)
        if not incoming:
            return []

        changes: List[StatusChange] = []
        try:
            changes, batch, _ = process_snapshot(self.previous, incoming)
            self.notifications.extend(batch)
            for change in changes:
                text = alert_text(change.location, change.new_status)
                if text:
                    self.alert(*text)
        except Exception:
            logger.exception("Notification processing failed; the view still updates")
        finally:
            self.previous = incoming

        self.buildings = [self.pending.get(b.id, b) for b in incoming]
        return changes

    def _report_error(self, error: StoreError):
        logger.error("Sync error (%s): %s", error.code, error)
        self.is_live = False
        self.connection_error = describe_sync_error(error)

    # --- Seeding ---

    def initialize_if_empty(self, buildings: Sequence[Building]) -> bool:
        """Upload the canonical tree when the store holds no buildings yet."""
        try:
            if self.store.read_all(self.collection):
                return False
            self.store.batch_write(self.collection, [(b.id, building_to_dict(b)) for b in buildings])
        except StoreError as e:
            logger.warning("Initial upload skipped (%s)", e.code)
            return False
        logger.info("Seeded store with %d buildings", len(buildings))
        if not self.buildings:
            self.buildings = list(buildings)
        return True

    # --- Writes ---

    def _mark_pending(self, building: Building, unit_ids: Sequence[str]):
        self.pending[building.id] = building
        self.pending_units.setdefault(building.id, set()).update(unit_ids)

    def _clear_pending(self, building: Building):
        if self.pending.get(building.id) is building:
            self.pending.pop(building.id, None)
            self.pending_units.pop(building.id, None)

    def is_pending(self, unit_id: str) -> bool:
        return any(unit_id in ids for ids in self.pending_units.values())

    def save_building(self, building: Building, unit_ids: Sequence[str] = ()) -> bool:
        """Apply locally first, then persist the whole building record."""
        self.buildings = [building if b.id == building.id else b for b in self.buildings]
        self._mark_pending(building, unit_ids)
        try:
            self.store.write(self.collection, building.id, building_to_dict(building))
        except StoreError as e:
            logger.error("Saving building %s failed (%s)", building.id, e.code)
            self.connection_error = describe_sync_error(e)
            if self.on_write_failed:
                self.on_write_failed(building, e)
            return False
        self._clear_pending(building)
        return True

    def save_all(self, buildings: Sequence[Building]) -> bool:
        """Replace every building record in one batch."""
        buildings = list(buildings)
        self.buildings = buildings
        for b in buildings:
            self._mark_pending(b, [u.id for _, u in b.iter_units()])
        try:
            self.store.batch_write(self.collection, [(b.id, building_to_dict(b)) for b in buildings])
        except StoreError as e:
            logger.error("Batch save of %d buildings failed (%s)", len(buildings), e.code)
            self.connection_error = describe_sync_error(e)
            if self.on_write_failed:
                for b in buildings:
                    self.on_write_failed(b, e)
            return False
        for b in buildings:
            self._clear_pending(b)
        return True

    def replace_all(self, buildings: Sequence[Building]) -> bool:
        """Drop every stored building, then write the new tree; used when ids may change."""
        try:
            self.store.delete_all(self.collection)
        except StoreError as e:
            logger.error("Clearing buildings failed (%s)", e.code)
            self.connection_error = describe_sync_error(e)
            return False
        self.pending.clear()
        self.pending_units.clear()
        return self.save_all(buildings)

    def retry_pending(self) -> int:
        """Re-attempt unconfirmed writes; returns how many are confirmed now."""
        confirmed = 0
        for building in list(self.pending.values()):
            units = list(self.pending_units.get(building.id, ()))
            if self.save_building(building, units):
                confirmed += 1
        return confirmed

    # --- Workflow entry points ---

    def change_status(
        self,
        building_id: str,
        level: int,
        unit_id: str,
        new_status: ProcessStatus,
        role: UserRole,
        now: Optional[datetime] = None,
    ) -> Optional[Building]:
        """Commit one unit transition, persist it, then post the relay message.

        Returns None when the move is not the role's legal next step.
        """
        tree, changed = update_unit_status(
            self.buildings, building_id, level, unit_id, new_status, capabilities_for(role), now,
        )
        if changed is None:
            return None
        self.buildings = tree
        self.save_building(changed, [unit_id])

        found = find_unit([changed], building_id, level, unit_id)
        if self.relay is not None and found is not None:
            text = relay_text(locate(*found), new_status)
            if text:
                message, sender = text
                self.relay.send(message, role, sender=sender)
        return changed

    def change_mep(
        self,
        building_id: str,
        level: int,
        unit_id: str,
        role: UserRole,
        completed: bool = True,
        now: Optional[datetime] = None,
    ) -> Optional[Building]:
        tree, changed = update_unit_mep(
            self.buildings, building_id, level, unit_id, completed, capabilities_for(role), now,
        )
        if changed is None:
            return None
        self.buildings = tree
        self.save_building(changed, [unit_id])
        return changed
