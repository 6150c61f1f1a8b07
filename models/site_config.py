from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class DeadUnitRule:
    min_floor: int
    max_floor: int
    positions: FrozenSet[int]

    def matches(self, floor: int, position: int) -> bool:
        return self.min_floor <= floor <= self.max_floor and position in self.positions


@dataclass(frozen=True)
class BuildingConfig:
    id: str                  # e.g. "2001"; the building record id is "b-{id}"
    name: str                # e.g. "2001동"
    floor_count: int
    units_per_floor: int
    dead_unit_rules: Tuple[DeadUnitRule, ...] = ()


@dataclass
class BuildingStructure:
    """Building layout as reported by drawing analysis."""
    name: str
    total_floors: int
    units_per_floor: int
    dead_unit_logic: Optional[str] = None  # e.g. "20층 이상 2,3호 세대 없음"
