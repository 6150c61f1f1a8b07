"""Default configuration constants for the Smart Framework Control System."""

from models.unit import ProcessStatus

APP_TITLE = "SFCS 3.2"
APP_SUBTITLE = "Smart Framework Control System"

# Site identity (overridable through settings / restored backups / analysis import)
DEFAULT_SITE_NAME = "용인 푸르지오 원클러스터 2,3단지 현장"
DEFAULT_PROJECT_CODE = "PRJ-YG-2025-PREMIUM"

# Backup file format
BACKUP_VERSION = "3.2"
BACKUP_FILENAME_TEMPLATE = "SFCS_Backup_{date}.json"
BACKUP_REQUIRED_FIELDS = ["buildings", "siteName"]

# Shared store collections
BUILDINGS_COLLECTION = "buildings"
MESSAGES_COLLECTION = "messages"
ANALYSIS_COLLECTION = "analysis"
ANALYSIS_RECORD_KEY = "latest"

# Chat history cap when reading the messages collection
CHAT_HISTORY_LIMIT = 50

# Unread snapshots a subscriber may fall behind before the store drops it
SUBSCRIPTION_BACKLOG = 100

# Workflow order (excluded sentinel is outside the workflow)
STATUS_ORDER = [
    ProcessStatus.NOT_STARTED,
    ProcessStatus.INSTALLING,
    ProcessStatus.APPROVAL_REQ,
    ProcessStatus.APPROVED,
    ProcessStatus.POURING,
    ProcessStatus.CURED,
]

STATUS_COLORS = {
    ProcessStatus.NOT_STARTED: "#CBD5E1",
    ProcessStatus.INSTALLING: "#3B82F6",
    ProcessStatus.APPROVAL_REQ: "#F97316",
    ProcessStatus.APPROVED: "#10B981",
    ProcessStatus.POURING: "#A855F7",
    ProcessStatus.CURED: "#059669",
    ProcessStatus.EXCLUDED: "#1E293B",
}

# Alert titles for the external notification hook
ALERT_TITLE_APPROVAL_REQ = "SFCS 승인 요청 알림"
ALERT_TITLE_APPROVED = "SFCS 승인 완료"

# Outbound relay sender names
RELAY_SENDER_FIELD = "현장 알림"
RELAY_SENDER_ADMIN = "관리자 알림"

# Dead-unit phrase produced by drawing analysis, e.g. "25층 이상 5,6호 세대 없음"
DEAD_UNIT_LOGIC_PATTERN = r"(\d+)층 이상 ([\d,\s]+)호"

# Site map label when a building has no active floor yet / is fully approved
SITE_MAP_NO_ACTIVITY = "-"
SITE_MAP_FINISHED = "마감"
