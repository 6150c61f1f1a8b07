"""Built-in site definition and sample configuration files."""

import os
from typing import List

import pandas as pd

from models.site_config import BuildingConfig, DeadUnitRule


def _rule(min_floor: int, max_floor: int, *positions: int) -> DeadUnitRule:
    return DeadUnitRule(min_floor=min_floor, max_floor=max_floor, positions=frozenset(positions))


# Complex 2 and 3: setbacks at the top floors, pilotis on the lowest floors
DEFAULT_BUILDING_CONFIGS: List[BuildingConfig] = [
    BuildingConfig("2001", "2001동", 23, 4, (_rule(21, 23, 3, 4), _rule(18, 20, 4), _rule(1, 1, 1, 2, 3))),
    BuildingConfig("2002", "2002동", 22, 4, (_rule(1, 1, 2, 3),)),
    BuildingConfig("2003", "2003동", 28, 6, (_rule(24, 28, 5, 6), _rule(1, 1, 2, 3, 5))),
    BuildingConfig("2004", "2004동", 28, 6, (
        _rule(18, 28, 1), _rule(21, 28, 2), _rule(1, 2, 1), _rule(1, 1, 4, 5),
    )),
    BuildingConfig("2005", "2005동", 26, 6, (
        _rule(17, 26, 1), _rule(20, 26, 2), _rule(26, 26, 3, 4), _rule(1, 1, 2, 4, 6),
    )),
    BuildingConfig("2006", "2006동", 26, 6, (
        _rule(25, 26, 1, 3), _rule(26, 26, 4), _rule(21, 26, 5), _rule(19, 26, 6),
        _rule(1, 2, 1), _rule(1, 1, 3, 4, 5, 6),
    )),
    BuildingConfig("2007", "2007동", 27, 4, (_rule(26, 27, 3), _rule(23, 27, 4), _rule(1, 1, 2, 3))),
    BuildingConfig("2008", "2008동", 28, 6, (_rule(1, 1, 4),)),
    BuildingConfig("2009", "2009동", 28, 6, (_rule(1, 1, 1, 3, 5),)),
    BuildingConfig("2010", "2010동", 28, 6, (_rule(1, 1, 1, 2, 5),)),
    BuildingConfig("2011", "2011동", 28, 6, (_rule(1, 1, 2, 3), _rule(1, 2, 5, 6))),
    BuildingConfig("2012", "2012동", 28, 6, (_rule(1, 1, 3), _rule(1, 2, 1, 2, 5))),
    BuildingConfig("2013", "2013동", 28, 6, (_rule(22, 28, 1, 6), _rule(1, 1, 2, 4), _rule(1, 3, 5))),
    BuildingConfig("3001", "3001동", 21, 4, (_rule(20, 21, 1, 2, 3), _rule(17, 21, 4))),
    BuildingConfig("3002", "3002동", 26, 4, (_rule(1, 1, 2, 3),)),
    BuildingConfig("3003", "3003동", 23, 3, (_rule(19, 23, 2),)),
]


def configs_to_df(configs: List[BuildingConfig]) -> pd.DataFrame:
    """One row per dead-unit rule; buildings without rules get a single row with blank rule cells."""
    rows = []
    for cfg in configs:
        base = {
            "Building ID": cfg.id,
            "Building Name": cfg.name,
            "Floors": cfg.floor_count,
            "Units Per Floor": cfg.units_per_floor,
        }
        if not cfg.dead_unit_rules:
            rows.append({**base, "Dead Min Floor": None, "Dead Max Floor": None, "Dead Positions": None})
        for rule in cfg.dead_unit_rules:
            rows.append({
                **base,
                "Dead Min Floor": rule.min_floor,
                "Dead Max Floor": rule.max_floor,
                "Dead Positions": ",".join(str(p) for p in sorted(rule.positions)),
            })
    return pd.DataFrame(rows)


def generate_site_config_df() -> pd.DataFrame:
    return configs_to_df(DEFAULT_BUILDING_CONFIGS)


def generate_sample_csv(output_dir: str):
    os.makedirs(output_dir, exist_ok=True)
    generate_site_config_df().to_csv(os.path.join(output_dir, "site_config.csv"), index=False)


def generate_sample_excel(output_dir: str):
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "site_config.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        generate_site_config_df().to_excel(writer, sheet_name="Buildings", index=False)


if __name__ == "__main__":
    out = os.path.join(os.path.dirname(__file__), "..", "sample_files")
    generate_sample_csv(out)
    generate_sample_excel(out)
    print("Sample site configuration written to sample_files/")
