"""Progress summaries over the building tree."""

from collections import Counter
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from models.building import Building
from models.unit import ProcessStatus, Unit
from config.defaults import STATUS_ORDER, SITE_MAP_NO_ACTIVITY, SITE_MAP_FINISHED


def status_counts(building: Building) -> Counter:
    """Counts by status over live units only."""
    return Counter(u.status for u in building.live_units)


def building_progress(buildings: Sequence[Building]) -> pd.DataFrame:
    """One row per building: live units, count per status, cured %."""
    rows = []
    for b in buildings:
        counts = status_counts(b)
        live = sum(counts.values())
        row = {
            "building_id": b.id,
            "building_name": b.name,
            "total_floors": b.total_floors,
            "live_units": live,
            "dead_units": sum(1 for _, u in b.iter_units() if u.is_dead_unit),
        }
        for status in STATUS_ORDER:
            row[status.value] = counts.get(status, 0)
        row["cured_pct"] = counts.get(ProcessStatus.CURED, 0) / live if live else 0.0
        rows.append(row)
    return pd.DataFrame(rows)


def site_status_totals(buildings: Sequence[Building]) -> pd.DataFrame:
    """Site-wide live-unit counts per status, in workflow order."""
    totals = Counter()
    for b in buildings:
        totals.update(status_counts(b))
    return pd.DataFrame({
        "status": [s.value for s in STATUS_ORDER],
        "units": [totals.get(s, 0) for s in STATUS_ORDER],
    })


def active_floor(building: Building) -> Tuple[str, ProcessStatus]:
    """(floor label, status) shown on the site map for a building.

    First POURING floor, else APPROVAL_REQ, else INSTALLING, else the highest CURED floor.
    """
    active = [(f.level, u) for f, u in building.iter_units()
              if not u.is_dead_unit and u.status is not ProcessStatus.NOT_STARTED]
    if not active:
        return SITE_MAP_NO_ACTIVITY, ProcessStatus.NOT_STARTED

    for status in (ProcessStatus.POURING, ProcessStatus.APPROVAL_REQ, ProcessStatus.INSTALLING):
        level = next((lvl for lvl, u in active if u.status is status), None)
        if level is not None:
            return f"{level}F", status

    cured = [lvl for lvl, u in active if u.status is ProcessStatus.CURED]
    if cured:
        return f"{max(cured)}F", ProcessStatus.CURED

    return SITE_MAP_FINISHED, ProcessStatus.APPROVED


def site_map(buildings: Sequence[Building]) -> List[dict]:
    results = []
    for b in buildings:
        floor_label, status = active_floor(b)
        results.append({
            "building_id": b.id,
            "building_name": b.name,
            "active_floor": floor_label,
            "status": status,
            "pending": sum(1 for u in b.live_units if u.is_pending_approval),
        })
    return results


def filter_buildings(
    buildings: Sequence[Building],
    search_term: str = "",
    status: Optional[ProcessStatus] = None,
) -> List[Building]:
    """Buildings whose name contains the term and, if given, holding a unit in the status."""
    return [
        b for b in buildings
        if search_term in b.name
        and (status is None or any(u.status is status for _, u in b.iter_units()))
    ]


def unit_rows(units: Sequence[Unit], width: int) -> List[Tuple[Unit, ...]]:
    """Split a floor's units into display rows of at most ``width``, keeping order."""
    units = tuple(units)
    return [units[i:i + width] for i in range(0, len(units), width)]
