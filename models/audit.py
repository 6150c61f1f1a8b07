from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class AuditEntry:
    timestamp: datetime
    action: str              # "transition", "mark_mep", "batch", "restore", "reinitialize"
    role: str
    building_name: Optional[str]
    unit_number: Optional[str]
    field_changed: str
    old_value: str
    new_value: str
