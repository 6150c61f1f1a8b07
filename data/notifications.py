"""In-session notification list, newest first."""

import uuid
from datetime import datetime
from typing import List, Sequence

from models.notification import SystemNotification


class NotificationCenter:
    def __init__(self):
        self._items: List[SystemNotification] = []

    @property
    def items(self) -> List[SystemNotification]:
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.read)

    def extend(self, batch: Sequence[SystemNotification]):
        """Prepend a whole batch in one assignment."""
        if batch:
            self._items = list(batch) + self._items

    def add(self, message: str, type: str = "info") -> SystemNotification:
        notification = SystemNotification(
            id=uuid.uuid4().hex, message=message, type=type, timestamp=datetime.now(),
        )
        self.extend([notification])
        return notification

    def mark_all_read(self):
        for n in self._items:
            n.read = True

    def clear(self):
        self._items = []
