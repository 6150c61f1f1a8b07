from dataclasses import dataclass, field
from typing import List

from models.site_config import BuildingStructure


@dataclass
class RiskFactor:
    category: str
    score: float
    detail: str


@dataclass
class AnalysisResult:
    site_name: str
    project_code: str
    overall_safety_score: float
    summary: str
    building_structures: List[BuildingStructure] = field(default_factory=list)
    risk_factors: List[RiskFactor] = field(default_factory=list)
    action_items: List[str] = field(default_factory=list)
