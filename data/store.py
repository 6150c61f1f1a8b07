"""Shared document store: interface and an in-process implementation."""

import copy
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config.defaults import SUBSCRIPTION_BACKLOG

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class StoreError(Exception):
    code = "unknown"

    def __init__(self, message: str = "", code: Optional[str] = None):
        super().__init__(message or self.code)
        if code:
            self.code = code


class StoreUnavailableError(StoreError):
    code = "unavailable"


class PermissionDeniedError(StoreError):
    code = "permission-denied"


class AuthMisconfiguredError(StoreError):
    code = "auth/operation-not-allowed"


@dataclass
class SnapshotEvent:
    """Full record set of a collection at one point in time."""
    records: List[Record]
    is_live: bool = True            # False when served from a local cache
    error: Optional[StoreError] = None


class Subscription:
    """Cancelable stream of snapshot events for one collection.

    At most ``max_pending`` unread events are held. Every event is a full
    snapshot, so a reader that falls that far behind is dropped by the store
    rather than buffered without limit.
    """

    _CLOSED = object()

    def __init__(self, collection: str, on_cancel=None, max_pending: int = SUBSCRIPTION_BACKLOG):
        self.collection = collection
        self.max_pending = max_pending
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._cancelled = threading.Event()
        self._on_cancel = on_cancel

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def backlog(self) -> int:
        return self._queue.qsize()

    def push(self, event: SnapshotEvent) -> bool:
        """Queue an event; False when cancelled or the backlog is full."""
        if self.cancelled or self._queue.qsize() >= self.max_pending:
            return False
        self._queue.put(event)
        return True

    def cancel(self):
        if self.cancelled:
            return
        self._cancelled.set()
        self._drain()
        self._queue.put(self._CLOSED)
        if self._on_cancel:
            self._on_cancel(self)

    def _drain(self):
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return

    def poll(self) -> List[SnapshotEvent]:
        """All events delivered so far, without blocking."""
        events = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is self._CLOSED:
                break
            events.append(item)
        return [] if self.cancelled else events

    def next(self, timeout: Optional[float] = None) -> Optional[SnapshotEvent]:
        """Block for the next event; None on timeout or cancellation."""
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is self._CLOSED or self.cancelled:
            return None
        return item


class DocumentStore:
    """Replicated key/value document collections."""

    def subscribe(self, collection: str) -> Subscription:
        raise NotImplementedError

    def read_all(self, collection: str) -> List[Record]:
        raise NotImplementedError

    def write(self, collection: str, key: str, record: Record):
        raise NotImplementedError

    def batch_write(self, collection: str, items: Iterable[Tuple[str, Record]]):
        raise NotImplementedError

    def add(self, collection: str, record: Record) -> str:
        raise NotImplementedError

    def delete_all(self, collection: str):
        raise NotImplementedError


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe store shared by every session of one server process.

    Subscribers get the current snapshot on subscribe and again after every change.
    Records are deep-copied on the way in and out.
    """

    def __init__(self, subscription_backlog: int = SUBSCRIPTION_BACKLOG):
        self.subscription_backlog = subscription_backlog
        self._lock = threading.RLock()
        self._collections: Dict[str, Dict[str, Record]] = {}
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._next_id = 0
        self._failure: Optional[StoreError] = None

    # --- Fault injection ---

    def fail_with(self, error: Optional[StoreError]):
        """Make every call fail with the error (None restores service)."""
        with self._lock:
            self._failure = error
            subscribers = [s for subs in self._subscribers.values() for s in subs]
        if error is not None:
            for sub in subscribers:
                sub.push(SnapshotEvent(records=[], is_live=False, error=error))

    def _check(self):
        if self._failure is not None:
            raise self._failure

    # --- Reads ---

    def _snapshot(self, collection: str) -> List[Record]:
        docs = self._collections.get(collection, {})
        return [copy.deepcopy(docs[k]) for k in sorted(docs)]

    def read_all(self, collection: str) -> List[Record]:
        with self._lock:
            self._check()
            return self._snapshot(collection)

    def subscribe(self, collection: str) -> Subscription:
        with self._lock:
            self._check()
            sub = Subscription(collection, on_cancel=self._unsubscribe, max_pending=self.subscription_backlog)
            self._subscribers.setdefault(collection, []).append(sub)
            sub.push(SnapshotEvent(records=self._snapshot(collection), is_live=True))
        return sub

    def _unsubscribe(self, sub: Subscription):
        with self._lock:
            subs = self._subscribers.get(sub.collection, [])
            if sub in subs:
                subs.remove(sub)

    def _broadcast(self, collection: str):
        snapshot = self._snapshot(collection)
        for sub in list(self._subscribers.get(collection, [])):
            if not sub.push(SnapshotEvent(records=copy.deepcopy(snapshot), is_live=True)):
                # Nobody is reading this one any more
                logger.info("Dropping stalled subscriber on %s (%d unread)", collection, sub.backlog)
                sub.cancel()

    def subscriber_count(self, collection: str) -> int:
        with self._lock:
            return len(self._subscribers.get(collection, []))

    # --- Writes ---

    def write(self, collection: str, key: str, record: Record):
        with self._lock:
            self._check()
            self._collections.setdefault(collection, {})[key] = copy.deepcopy(record)
            self._broadcast(collection)

    def batch_write(self, collection: str, items: Iterable[Tuple[str, Record]]):
        with self._lock:
            self._check()
            docs = self._collections.setdefault(collection, {})
            for key, record in items:
                docs[key] = copy.deepcopy(record)
            self._broadcast(collection)

    def add(self, collection: str, record: Record) -> str:
        with self._lock:
            self._check()
            self._next_id += 1
            key = f"{self._next_id:012d}"
            self._collections.setdefault(collection, {})[key] = dict(copy.deepcopy(record), id=key)
            self._broadcast(collection)
            return key

    def delete_all(self, collection: str):
        with self._lock:
            self._check()
            self._collections[collection] = {}
            self._broadcast(collection)
        logger.info("Cleared collection %s", collection)
