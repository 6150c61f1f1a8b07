"""Backup serialization and restore merge onto the current canonical structure."""

from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from models.backup import BackupFile
from models.building import Building, Floor
from models.unit import ProcessStatus, Unit
from config.defaults import BACKUP_VERSION, BACKUP_FILENAME_TEMPLATE


# --- Record <-> JSON ---

def unit_to_dict(unit: Unit) -> Dict[str, Any]:
    return {
        "id": unit.id,
        "unitNumber": unit.unit_number,
        "status": unit.status.value,
        "lastUpdated": unit.last_updated.isoformat(),
        "mepCompleted": unit.mep_completed,
        "isDeadUnit": unit.is_dead_unit,
    }


def building_to_dict(building: Building) -> Dict[str, Any]:
    return {
        "id": building.id,
        "name": building.name,
        "totalFloors": building.total_floors,
        "floors": [
            {"level": f.level, "units": [unit_to_dict(u) for u in f.units]}
            for f in building.floors
        ],
    }


def _parse_timestamp(value: Any) -> datetime:
    text = str(value)
    # Browser backups use a trailing "Z"
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def unit_from_dict(data: Dict[str, Any]) -> Unit:
    return Unit(
        id=str(data["id"]),
        unit_number=str(data["unitNumber"]),
        status=ProcessStatus(data["status"]),
        last_updated=_parse_timestamp(data["lastUpdated"]),
        mep_completed=bool(data.get("mepCompleted", False)),
        is_dead_unit=bool(data.get("isDeadUnit", False)),
    )


def building_from_dict(data: Dict[str, Any]) -> Building:
    floors = tuple(
        Floor(level=int(f["level"]), units=tuple(unit_from_dict(u) for u in f.get("units", [])))
        for f in data.get("floors", [])
    )
    return Building(
        id=str(data["id"]),
        name=str(data["name"]),
        total_floors=int(data.get("totalFloors", len(floors))),
        floors=floors,
    )


# --- Backup file ---

def build_backup(
    buildings: Sequence[Building],
    site_name: str,
    project_code: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    now = now or datetime.now()
    return {
        "buildings": [building_to_dict(b) for b in buildings],
        "siteName": site_name,
        "projectCode": project_code,
        "timestamp": now.isoformat(),
        "version": BACKUP_VERSION,
    }


def backup_filename(now: Optional[datetime] = None) -> str:
    return BACKUP_FILENAME_TEMPLATE.format(date=(now or datetime.now()).strftime("%Y-%m-%d"))


def parse_backup(payload: Dict[str, Any]) -> BackupFile:
    """Typed backup from an already validated payload. Raises ValueError on bad records."""
    try:
        buildings = [building_from_dict(b) for b in payload["buildings"]]
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Backup contains an unreadable building record: {e}") from e
    return BackupFile(
        buildings=buildings,
        site_name=str(payload["siteName"]),
        project_code=str(payload.get("projectCode") or ""),
        timestamp=str(payload.get("timestamp") or ""),
        version=str(payload.get("version") or ""),
    )


# --- Merge ---

def merge_unit(canonical: Unit, backup: Optional[Unit]) -> Unit:
    """Progress fields from the backup; identity and dead flag from the canonical unit."""
    if backup is None:
        return canonical
    if canonical.is_dead_unit:
        if backup.is_dead_unit:
            return replace(canonical, last_updated=backup.last_updated)
        return canonical
    if backup.is_dead_unit or not backup.status.is_workflow:
        return canonical
    return replace(
        canonical,
        status=backup.status,
        mep_completed=backup.mep_completed,
        last_updated=backup.last_updated,
    )


def merge_floor(canonical: Floor, backup: Optional[Floor]) -> Floor:
    if backup is None:
        return canonical
    backup_units = {u.id: u for u in backup.units}
    return replace(canonical, units=tuple(
        merge_unit(u, backup_units.get(u.id)) for u in canonical.units
    ))


def merge_building(canonical: Building, backup: Optional[Building]) -> Building:
    if backup is None:
        return canonical
    backup_floors = {f.level: f for f in backup.floors}
    return replace(canonical, floors=tuple(
        merge_floor(f, backup_floors.get(f.level)) for f in canonical.floors
    ))


def merge_backup(canonical: Sequence[Building], backup: Sequence[Building]) -> List[Building]:
    """Restore work progress onto the canonical tree. Every lookup miss keeps the canonical record."""
    backup_buildings = {b.id: b for b in backup}
    return [merge_building(b, backup_buildings.get(b.id)) for b in canonical]
