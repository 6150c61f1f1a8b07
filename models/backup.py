from dataclasses import dataclass
from typing import List

from models.building import Building


@dataclass
class BackupFile:
    buildings: List[Building]
    site_name: str
    project_code: str = ""
    timestamp: str = ""      # ISO 8601
    version: str = ""
