from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from models.unit import Unit


@dataclass(frozen=True)
class Floor:
    level: int               # 1 = ground
    units: Tuple[Unit, ...] = ()

    def find_unit(self, unit_id: str) -> Optional[Unit]:
        return next((u for u in self.units if u.id == unit_id), None)


@dataclass(frozen=True)
class Building:
    id: str
    name: str
    total_floors: int
    floors: Tuple[Floor, ...] = ()

    def find_floor(self, level: int) -> Optional[Floor]:
        return next((f for f in self.floors if f.level == level), None)

    def iter_units(self) -> Iterator[Tuple[Floor, Unit]]:
        for floor in self.floors:
            for unit in floor.units:
                yield floor, unit

    @property
    def live_units(self) -> List[Unit]:
        return [u for _, u in self.iter_units() if not u.is_dead_unit]


@dataclass(frozen=True)
class UnitLocation:
    """Where a unit sits in the tree, with display names resolved."""
    building_id: str
    building_name: str
    floor_level: int
    unit_id: str
    unit_number: str

    @property
    def label(self) -> str:
        return f"{self.building_name} {self.floor_level}층 {self.unit_number}호"
