"""File upload parsing: site configuration tables, backups and analysis results."""

import json
import logging
from collections import OrderedDict
from typing import Any, Dict, List

import pandas as pd

from models.analysis import AnalysisResult, RiskFactor
from models.site_config import BuildingConfig, BuildingStructure, DeadUnitRule

logger = logging.getLogger(__name__)


def _positions(value: Any) -> frozenset:
    if pd.isna(value) or str(value).strip() == "":
        return frozenset()
    return frozenset(int(float(p)) for p in str(value).split(",") if p.strip())


def parse_building_configs(df: pd.DataFrame) -> List[BuildingConfig]:
    """Convert a validated site configuration DataFrame into BuildingConfig objects.

    Rows sharing a Building ID contribute one dead-unit rule each; building order
    follows first appearance.
    """
    has_rules = all(c in df.columns for c in ("Dead Min Floor", "Dead Max Floor", "Dead Positions"))
    shapes: "OrderedDict[str, dict]" = OrderedDict()
    for _, row in df.iterrows():
        b_id = str(row["Building ID"]).strip()
        shape = shapes.setdefault(b_id, {
            "name": str(row["Building Name"]).strip(),
            "floors": int(row["Floors"]),
            "units": int(row["Units Per Floor"]),
            "rules": [],
        })
        if not has_rules or pd.isna(row["Dead Min Floor"]) or pd.isna(row["Dead Max Floor"]):
            continue
        positions = _positions(row["Dead Positions"])
        if positions:
            shape["rules"].append(DeadUnitRule(
                min_floor=int(row["Dead Min Floor"]),
                max_floor=int(row["Dead Max Floor"]),
                positions=positions,
            ))

    return [
        BuildingConfig(
            id=b_id,
            name=s["name"],
            floor_count=s["floors"],
            units_per_floor=s["units"],
            dead_unit_rules=tuple(s["rules"]),
        )
        for b_id, s in shapes.items()
    ]


def load_file(uploaded_file) -> pd.DataFrame:
    """Load an uploaded file (CSV or XLSX) into a DataFrame."""
    name = uploaded_file.name.lower()
    if name.endswith(".csv"):
        return pd.read_csv(uploaded_file, dtype={"Building ID": str})
    elif name.endswith(".xlsx") or name.endswith(".xls"):
        return pd.read_excel(uploaded_file, engine="openpyxl", dtype={"Building ID": str})
    else:
        raise ValueError(f"Unsupported file format: {name}. Use CSV or XLSX.")


def load_csv_path(path: str) -> pd.DataFrame:
    return pd.read_csv(path, dtype={"Building ID": str})


def load_json(uploaded_file) -> Any:
    """Parse an uploaded JSON document (backup or analysis result)."""
    raw = uploaded_file.read()
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8-sig")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"File is not valid JSON: {e}") from e


def dump_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


def parse_analysis_result(payload: Dict[str, Any]) -> AnalysisResult:
    """Typed result from the drawing-analysis service's JSON."""
    structures = [
        BuildingStructure(
            name=str(s["name"]),
            total_floors=int(s["totalFloors"]),
            units_per_floor=int(s["unitsPerFloor"]),
            dead_unit_logic=s.get("deadUnitLogic") or None,
        )
        for s in payload.get("buildingStructures") or []
    ]
    risks = [
        RiskFactor(category=str(r.get("category", "")), score=float(r.get("score", 0)),
                   detail=str(r.get("detail", "")))
        for r in payload.get("riskFactors") or []
    ]
    logger.info("Parsed analysis for %s: %d buildings", payload.get("siteName"), len(structures))
    return AnalysisResult(
        site_name=str(payload.get("siteName", "")),
        project_code=str(payload.get("projectCode", "")),
        overall_safety_score=float(payload.get("overallSafetyScore", 0)),
        summary=str(payload.get("summary", "")),
        building_structures=structures,
        risk_factors=risks,
        action_items=[str(a) for a in payload.get("actionItems") or []],
    )


def analysis_to_record(result: AnalysisResult) -> Dict[str, Any]:
    return {
        "siteName": result.site_name,
        "projectCode": result.project_code,
        "overallSafetyScore": result.overall_safety_score,
        "summary": result.summary,
        "buildingStructures": [
            {
                "name": s.name,
                "totalFloors": s.total_floors,
                "unitsPerFloor": s.units_per_floor,
                **({"deadUnitLogic": s.dead_unit_logic} if s.dead_unit_logic else {}),
            }
            for s in result.building_structures
        ],
        "riskFactors": [
            {"category": r.category, "score": r.score, "detail": r.detail}
            for r in result.risk_factors
        ],
        "actionItems": list(result.action_items),
    }
