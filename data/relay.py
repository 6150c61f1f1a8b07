"""Chat-style outbound message relay on the shared store."""

import logging
import time
from typing import List, Optional

from data.store import DocumentStore, StoreError
from models.notification import ChatMessage
from models.role import UserRole
from config.defaults import CHAT_HISTORY_LIMIT, MESSAGES_COLLECTION

logger = logging.getLogger(__name__)


def message_from_record(record: dict) -> ChatMessage:
    return ChatMessage(
        id=record.get("id"),
        text=str(record.get("text", "")),
        user_role=UserRole(record.get("userRole", UserRole.WORKER.value)),
        timestamp=int(record.get("timestamp", 0)),
        sender_name=record.get("senderName"),
    )


def message_to_record(message: ChatMessage) -> dict:
    record = {
        "text": message.text,
        "userRole": message.user_role.value,
        "timestamp": message.timestamp,
    }
    if message.sender_name:
        record["senderName"] = message.sender_name
    return record


class MessageRelay:
    def __init__(self, store: DocumentStore, collection: str = MESSAGES_COLLECTION):
        self.store = store
        self.collection = collection

    def send(
        self,
        text: str,
        role: UserRole,
        timestamp: Optional[int] = None,
        sender: Optional[str] = None,
    ) -> Optional[str]:
        """Fire-and-forget. Returns the message id, or None if the store refused it."""
        message = ChatMessage(
            text=text,
            user_role=role,
            timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
            sender_name=sender,
        )
        try:
            return self.store.add(self.collection, message_to_record(message))
        except StoreError as e:
            logger.error("Message send failed (%s): %s", e.code, e)
            return None

    def recent(self, limit: int = CHAT_HISTORY_LIMIT) -> List[ChatMessage]:
        """Latest messages, oldest first."""
        try:
            records = self.store.read_all(self.collection)
        except StoreError as e:
            logger.warning("Chat history unavailable (%s)", e.code)
            return []
        messages = sorted((message_from_record(r) for r in records), key=lambda m: m.timestamp)
        return messages[-limit:] if limit > 0 else []

    def clear(self) -> bool:
        try:
            self.store.delete_all(self.collection)
        except StoreError as e:
            logger.error("Chat clear failed (%s): %s", e.code, e)
            return False
        return True
