from models.unit import ProcessStatus, Unit
from models.building import Building, Floor, UnitLocation
from models.site_config import BuildingConfig, BuildingStructure, DeadUnitRule
from models.role import Capability, UserRole
from models.notification import ChatMessage, SystemNotification
from models.analysis import AnalysisResult, RiskFactor
from models.audit import AuditEntry
from models.backup import BackupFile
