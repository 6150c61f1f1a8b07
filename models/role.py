from enum import Enum
from typing import Dict, FrozenSet, Optional


class UserRole(str, Enum):
    WORKER = "작업자"
    SUBCONTRACTOR = "협력사"
    ADMIN = "관리자"
    CREATOR = "제작자"


class Capability(str, Enum):
    ADVANCE_WORK = "advance_work"          # start installing, request approval
    APPROVE = "approve"                    # approve, pour, cure, reset cured units
    BACKUP_RESTORE = "backup_restore"
    BATCH_OPERATIONS = "batch_operations"
    IMPORT_ANALYSIS = "import_analysis"


ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.WORKER: frozenset({Capability.ADVANCE_WORK}),
    UserRole.SUBCONTRACTOR: frozenset({Capability.ADVANCE_WORK}),
    UserRole.ADMIN: frozenset({
        Capability.ADVANCE_WORK, Capability.APPROVE, Capability.BACKUP_RESTORE,
    }),
    UserRole.CREATOR: frozenset(Capability),
}


def capabilities_for(role: UserRole) -> FrozenSet[Capability]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def is_elevated(capabilities: FrozenSet[Capability]) -> bool:
    return Capability.APPROVE in capabilities


def resolve_role(passcode: str, admin_passcode: str, creator_passcode: str) -> Optional[UserRole]:
    """Role unlocked by a passcode, or None when it matches neither."""
    if passcode == creator_passcode:
        return UserRole.CREATOR
    if passcode == admin_passcode:
        return UserRole.ADMIN
    return None
