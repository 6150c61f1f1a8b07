from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from models.role import UserRole


@dataclass
class SystemNotification:
    id: str
    message: str
    type: str                # "success", "warning", "info"
    timestamp: datetime = field(default_factory=datetime.now)
    read: bool = False


@dataclass
class ChatMessage:
    text: str
    user_role: UserRole
    timestamp: int           # epoch milliseconds
    sender_name: Optional[str] = None
    id: Optional[str] = None
