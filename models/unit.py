from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ProcessStatus(str, Enum):
    NOT_STARTED = "미착수"
    INSTALLING = "설치중"
    APPROVAL_REQ = "승인요청"
    APPROVED = "승인완료"
    POURING = "타설중"
    CURED = "양생완료"
    EXCLUDED = "해당없음"  # dead units only, never reached by a transition

    @property
    def is_workflow(self) -> bool:
        return self is not ProcessStatus.EXCLUDED


# Statuses at which MEP work may be marked done
MEP_ELIGIBLE_STATUSES = (ProcessStatus.APPROVED, ProcessStatus.POURING, ProcessStatus.CURED)

# Entering any of these invalidates MEP work
MEP_RESET_STATUSES = (
    ProcessStatus.NOT_STARTED,
    ProcessStatus.INSTALLING,
    ProcessStatus.APPROVAL_REQ,
    ProcessStatus.APPROVED,
)


@dataclass(frozen=True)
class Unit:
    id: str                  # "{building name}-{floor}-{position}"
    unit_number: str         # e.g. "1203" for floor 12, position 3
    status: ProcessStatus
    last_updated: datetime
    mep_completed: bool = False
    is_dead_unit: bool = False

    @property
    def position(self) -> int:
        return int(self.id.rsplit("-", 1)[1])

    @property
    def is_pending_approval(self) -> bool:
        return self.status is ProcessStatus.APPROVAL_REQ


def format_unit_number(floor: int, position: int) -> str:
    """Display number floor*100 + position, zero-padded to at least 3 digits.

    Positions 10 and up stay arithmetic: floor 1 position 10 is "110", not the
    "1010" that plain floor-zero-position concatenation would give.
    """
    return f"{floor * 100 + position:03d}"


def make_unit_id(building_name: str, floor: int, position: int) -> str:
    return f"{building_name}-{floor}-{position}"
