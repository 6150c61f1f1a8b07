"""Structure generation: building/floor/unit tree from per-building configuration."""

import re
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from models.building import Building, Floor
from models.site_config import BuildingConfig, BuildingStructure, DeadUnitRule
from models.unit import ProcessStatus, Unit, format_unit_number, make_unit_id
from config.defaults import DEAD_UNIT_LOGIC_PATTERN

DeadUnitPredicate = Callable[[int, int], bool]

_DEAD_UNIT_LOGIC_RE = re.compile(DEAD_UNIT_LOGIC_PATTERN)


def dead_unit_predicate(rules: Sequence[DeadUnitRule]) -> DeadUnitPredicate:
    """A position is dead if any rule covers its floor and lists the position."""
    rules = tuple(rules)

    def is_dead(floor: int, position: int) -> bool:
        return any(rule.matches(floor, position) for rule in rules)

    return is_dead


def parse_dead_unit_logic(logic: Optional[str], total_floors: int) -> Tuple[DeadUnitRule, ...]:
    """Parse "<N>층 이상 <a,b,...>호" into a single threshold rule.

    Anything that does not match yields no rules, so no unit is marked dead.
    """
    if not logic:
        return ()
    match = _DEAD_UNIT_LOGIC_RE.search(logic)
    if not match:
        return ()

    threshold = int(match.group(1))
    positions = frozenset(
        int(p) for p in (part.strip() for part in match.group(2).split(",")) if p
    )
    if not positions:
        return ()
    # Threshold beyond the roof still has to compare as "from floor N upward".
    max_floor = max(total_floors, threshold)
    return (DeadUnitRule(min_floor=threshold, max_floor=max_floor, positions=positions),)


def build_building(
    building_id: str,
    name: str,
    floor_count: int,
    units_per_floor: int,
    is_dead: DeadUnitPredicate,
    now: datetime,
) -> Building:
    floors = []
    for level in range(1, floor_count + 1):
        units = []
        for position in range(1, units_per_floor + 1):
            dead = is_dead(level, position)
            units.append(Unit(
                id=make_unit_id(name, level, position),
                unit_number=format_unit_number(level, position),
                status=ProcessStatus.EXCLUDED if dead else ProcessStatus.NOT_STARTED,
                last_updated=now,
                mep_completed=False,
                is_dead_unit=dead,
            ))
        floors.append(Floor(level=level, units=tuple(units)))
    return Building(id=building_id, name=name, total_floors=floor_count, floors=tuple(floors))


def generate_buildings(
    configs: Sequence[BuildingConfig],
    now: Optional[datetime] = None,
) -> List[Building]:
    """Generate the canonical tree from the configured buildings, in config order."""
    now = now or datetime.now()
    return [
        build_building(
            building_id=f"b-{cfg.id}",
            name=cfg.name,
            floor_count=cfg.floor_count,
            units_per_floor=cfg.units_per_floor,
            is_dead=dead_unit_predicate(cfg.dead_unit_rules),
            now=now,
        )
        for cfg in configs
    ]


def structure_to_config(structure: BuildingStructure, index: int) -> BuildingConfig:
    """Convert an analysed structure into a config; its building id becomes "b-{index}"."""
    return BuildingConfig(
        id=str(index),
        name=structure.name,
        floor_count=structure.total_floors,
        units_per_floor=structure.units_per_floor,
        dead_unit_rules=parse_dead_unit_logic(structure.dead_unit_logic, structure.total_floors),
    )


def generate_buildings_from_structures(
    structures: Sequence[BuildingStructure],
    now: Optional[datetime] = None,
) -> List[Building]:
    configs = [structure_to_config(s, idx) for idx, s in enumerate(structures)]
    return generate_buildings(configs, now)


def count_dead_units(buildings: Sequence[Building]) -> int:
    return sum(1 for b in buildings for _, u in b.iter_units() if u.is_dead_unit)
