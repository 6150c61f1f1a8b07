"""Validation for uploaded configuration tables, backups and analysis results."""

from dataclasses import dataclass, field
from typing import Any, List

import pandas as pd

from config.defaults import BACKUP_REQUIRED_FIELDS
from engine.structure import parse_dead_unit_logic


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def error(self, message: str):
        self.is_valid = False
        self.errors.append(message)


CONFIG_REQUIRED_COLUMNS = [
    "Building ID",
    "Building Name",
    "Floors",
    "Units Per Floor",
]

CONFIG_RULE_COLUMNS = ["Dead Min Floor", "Dead Max Floor", "Dead Positions"]

ANALYSIS_REQUIRED_FIELDS = ["siteName", "buildingStructures"]
STRUCTURE_REQUIRED_FIELDS = ["name", "totalFloors", "unitsPerFloor"]


def _parse_positions(value: Any) -> List[int]:
    if pd.isna(value) or str(value).strip() == "":
        return []
    return [int(float(p)) for p in str(value).split(",") if p.strip()]


def validate_building_config(df: pd.DataFrame) -> ValidationResult:
    result = ValidationResult()
    missing = [col for col in CONFIG_REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        result.error(f"Site Configuration: Missing required columns: {', '.join(missing)}")
    if df.empty:
        result.error("Site Configuration: File contains no data rows.")
    if not result.is_valid:
        return result

    if (df["Floors"] <= 0).any() or (df["Units Per Floor"] <= 0).any():
        result.error("Site Configuration: Floors and Units Per Floor must be positive.")

    # The same building may span several rule rows, but its shape must agree
    shapes = df.groupby("Building ID")[["Building Name", "Floors", "Units Per Floor"]].nunique()
    conflicting = shapes[(shapes > 1).any(axis=1)].index.tolist()
    if conflicting:
        result.error(f"Site Configuration: Conflicting building definitions: {conflicting}")

    if all(col in df.columns for col in CONFIG_RULE_COLUMNS):
        for idx, row in df.iterrows():
            if pd.isna(row["Dead Min Floor"]) and pd.isna(row["Dead Max Floor"]):
                continue
            try:
                positions = _parse_positions(row["Dead Positions"])
            except ValueError:
                result.error(f"Site Configuration: Row {idx + 2}: unreadable Dead Positions.")
                continue
            if pd.isna(row["Dead Min Floor"]) or pd.isna(row["Dead Max Floor"]):
                result.error(f"Site Configuration: Row {idx + 2}: dead-unit rule needs both floors.")
                continue
            lo, hi = int(row["Dead Min Floor"]), int(row["Dead Max Floor"])
            if lo > hi:
                result.error(f"Site Configuration: Row {idx + 2}: Dead Min Floor exceeds Dead Max Floor.")
            if lo < 1 or hi > int(row["Floors"]):
                result.warnings.append(
                    f"Row {idx + 2} ({row['Building Name']}): rule floors {lo}-{hi} "
                    f"outside 1-{int(row['Floors'])}."
                )
            out_of_range = [p for p in positions if p < 1 or p > int(row["Units Per Floor"])]
            if out_of_range:
                result.warnings.append(
                    f"Row {idx + 2} ({row['Building Name']}): positions {out_of_range} do not exist."
                )
    elif any(col in df.columns for col in CONFIG_RULE_COLUMNS):
        result.warnings.append(
            "Site Configuration: Dead-unit columns incomplete; no units will be marked dead."
        )

    return result


def validate_backup(payload: Any) -> ValidationResult:
    """Reject backups that lack the top-level fields a restore needs."""
    result = ValidationResult()
    if not isinstance(payload, dict):
        result.error("Backup: Not a valid SFCS backup file.")
        return result

    missing = [f for f in BACKUP_REQUIRED_FIELDS if payload.get(f) in (None, "")]
    if missing:
        result.error(f"Backup: Missing required fields: {', '.join(missing)}")
        return result

    if not isinstance(payload["buildings"], list):
        result.error("Backup: 'buildings' must be a list.")
        return result

    if not payload.get("timestamp"):
        result.warnings.append("Backup has no timestamp.")
    if not payload.get("projectCode"):
        result.warnings.append("Backup has no project code; the current one is kept.")
    return result


def validate_analysis(payload: Any) -> ValidationResult:
    result = ValidationResult()
    if not isinstance(payload, dict):
        result.error("Analysis: Not a JSON object.")
        return result

    missing = [f for f in ANALYSIS_REQUIRED_FIELDS if f not in payload]
    if missing:
        result.error(f"Analysis: Missing required fields: {', '.join(missing)}")
        return result

    for idx, s in enumerate(payload["buildingStructures"] or []):
        absent = [f for f in STRUCTURE_REQUIRED_FIELDS if f not in s]
        if absent:
            result.error(f"Analysis: Building structure {idx + 1} missing {', '.join(absent)}")
        elif not s.get("deadUnitLogic"):
            result.warnings.append(f"{s['name']}: no dead-unit logic reported.")
        elif not parse_dead_unit_logic(s["deadUnitLogic"], int(s["totalFloors"])):
            result.warnings.append(
                f"{s['name']}: dead-unit logic '{s['deadUnitLogic']}' not understood; "
                "no units will be marked dead."
            )
    return result
