"""
Polling reconciliation between the local TaskStore and the server.

State machine:
  IDLE     --(timer | sync_now)-->  SYNCING  --(response)-->  IDLE
  IDLE     --(interval = 0)------>  DISABLED --(interval > 0)--> IDLE

A fetched collection that differs from the store replaces it wholesale
(last fetch wins). There is no operation log, so no partial merge is tried.
"""
import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from workplan.core.config import settings
from workplan.client.api import TaskApi
from workplan.client.errors import ApiError
from workplan.client.events import EventHub
from workplan.client.store import TaskStore, snapshot

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    DISABLED = "disabled"


class SyncCoordinator:
    """Keeps a TaskStore in line with the server on a timer and on demand."""

    def __init__(
        self,
        store: TaskStore,
        api: TaskApi,
        interval: Optional[int] = None,
        events: Optional[EventHub] = None,
        is_busy: Optional[Callable[[], bool]] = None,
        timer_factory=threading.Timer,
    ):
        self.store = store
        self.api = api
        self.events = events or EventHub()
        self.interval = settings.SYNC_INTERVAL if interval is None else interval
        if self.interval < 0:
            raise ValueError("Sync interval cannot be negative")
        self.state = SyncState.IDLE if self.interval > 0 else SyncState.DISABLED
        self.last_synced_at: Optional[datetime] = None

        self._is_busy = is_busy or (lambda: False)
        self._timer_factory = timer_factory
        self._timer = None
        self._follow_up = False
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            self._schedule()

    def stop(self) -> None:
        with self._lock:
            self._cancel()

    def set_interval(self, seconds: int) -> None:
        """Change the polling period; 0 disables polling, > 0 restarts the timer."""
        if seconds < 0:
            raise ValueError("Sync interval cannot be negative")
        with self._lock:
            self.interval = seconds
            self._cancel()
            if self.state != SyncState.SYNCING:
                self.state = SyncState.IDLE if seconds > 0 else SyncState.DISABLED
                self._schedule()

    def sync_now(self) -> bool:
        """Fetch and reconcile. Returns True when the store was replaced.

        A call made while a fetch is in flight does not start a second one;
        it queues a single follow-up pass on the running sync instead.
        """
        with self._lock:
            if self.state == SyncState.SYNCING:
                self._follow_up = True
                return False
            self._cancel()
            self.state = SyncState.SYNCING

        replaced = False
        try:
            while True:
                replaced = self._sync_once() or replaced
                with self._lock:
                    if not self._follow_up:
                        self._finish()
                        return replaced
                    self._follow_up = False
        except Exception:
            with self._lock:
                self._finish()
            raise

    def _sync_once(self) -> bool:
        try:
            fetched = self.api.list_tasks()
        except ApiError as e:
            logger.warning(f"Sync failed, keeping local state: {e}")
            self.events.emit("sync_failed", e)
            return False

        # Sous le verrou : une écriture enregistrée avant de muter le store est vue ici
        with self.store.lock:
            if self._is_busy():
                logger.debug("Writes in flight, fetched state not applied")
                return False
            self.last_synced_at = datetime.now(timezone.utc)
            if snapshot(fetched) == self.store.snapshot():
                logger.debug("Sync: no change")
                return False
            self.store.load(fetched)

        logger.info(f"Store replaced from server ({len(fetched)} task(s))")
        self.events.emit("replaced", fetched)
        self.events.emit("changed", None)
        return True

    def _on_timer(self) -> None:
        with self._lock:
            self._timer = None
        self.sync_now()

    def _finish(self) -> None:
        self.state = SyncState.IDLE if self.interval > 0 else SyncState.DISABLED
        self._schedule()

    def _schedule(self) -> None:
        if self.interval <= 0 or self._timer is not None:
            return
        self._timer = self._timer_factory(self.interval, self._on_timer)
        self._timer.daemon = True
        self._timer.start()

    def _cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
