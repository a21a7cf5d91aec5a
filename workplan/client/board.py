"""
Board controller: the user-level operations of one kanban board.

Owns the store, the ordering engine, the sync coordinator and the drag
session, so several boards can live in the same process. Every user
operation emits a ``notification`` event; every store mutation emits
``changed`` with the ChangeSet that drives re-rendering.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from itertools import groupby
from typing import Iterable, List, Optional

from workplan.core.config import settings
from workplan.client.api import TaskApi
from workplan.client.bulk import parse_bulk_text
from workplan.client.drag import DragSession
from workplan.client.errors import (
    ApiError,
    DragSessionError,
    ImportDataError,
    TaskBusyError,
    TaskNotFoundError,
)
from workplan.client.events import EventHub
from workplan.client.ordering import ChangeSet, OrderingEngine
from workplan.client.preferences import ClientPreferences
from workplan.client.store import Task, TaskStore
from workplan.client.sync import SyncCoordinator
from workplan.client.transfer import export_payload, parse_import
from workplan.schemas.task import ReorderItem

logger = logging.getLogger(__name__)

OUT_OF_SYNC = "the board may be out of sync until the next refresh"


@dataclass(frozen=True)
class Notification:
    level: str  # "success" | "error"
    message: str


class BoardController:
    """Single-board task tracker client."""

    def __init__(
        self,
        api: Optional[TaskApi] = None,
        store: Optional[TaskStore] = None,
        events: Optional[EventHub] = None,
        preferences: Optional[ClientPreferences] = None,
        timer_factory=threading.Timer,
    ):
        self.api = api or TaskApi()
        self.store = store or TaskStore()
        self.events = events or EventHub()
        self.preferences = preferences or ClientPreferences.load()
        self.engine = OrderingEngine(self.store)
        self.drag = DragSession(self.engine)
        self.sync = SyncCoordinator(
            self.store,
            self.api,
            interval=self.preferences.sync_interval,
            events=self.events,
            is_busy=self.has_pending_writes,
            timer_factory=timer_factory,
        )
        self._pending = set()
        self._pending_lock = threading.Lock()

    # ── Lifecycle ───────────────────────────────────────────────

    def open(self) -> None:
        self.sync.sync_now()
        self.sync.start()

    def close(self) -> None:
        self.sync.stop()

    def refresh(self) -> bool:
        return self.sync.sync_now()

    def set_sync_interval(self, seconds: int) -> None:
        self.preferences.set_sync_interval(seconds)
        self.sync.set_interval(seconds)

    def set_column_visible(self, column_id: str, visible: bool) -> None:
        self.preferences.set_column_visible(column_id, visible)

    def visible_columns(self) -> List[str]:
        columns = list(settings.COLUMNS)
        columns += [c for c in self.store.columns() if c not in columns]
        return [c for c in columns if self.preferences.is_visible(c)]

    def column(self, column_id: str) -> tuple:
        return self.store.column_view(column_id)

    # ── Create / edit / delete ──────────────────────────────────

    def add_task(
        self,
        title: str,
        description: str = "",
        followup: str = "",
        column_id: Optional[str] = None,
    ) -> Optional[Task]:
        title = (title or "").strip()
        if not title:
            raise ValueError("Title cannot be empty")

        try:
            with self._writing(()):
                task = self.api.create_task(title, description, followup, column_id)
        except ApiError as e:
            logger.warning(f"Create failed: {e}")
            self._notify("error", "Error saving task")
            return None

        self.store.upsert(task)
        self.events.emit("changed", self._created([task]))
        self._notify("success", "Task added")
        return task

    def add_many(self, text: str, column_id: Optional[str] = None) -> List[Task]:
        """Create one task per pasted line, appended to ``column_id`` in order."""
        titles = parse_bulk_text(text)
        if not titles:
            self._notify("error", "No tasks found in pasted text")
            return []

        created = []
        try:
            with self._writing(()):
                for title in titles:
                    task = self.api.create_task(title, column_id=column_id)
                    self.store.upsert(task)
                    created.append(task)
        except ApiError as e:
            if created:
                self.events.emit("changed", self._created(created))
            self._write_failed(f"Added {len(created)} of {len(titles)} tasks", e)
            return created

        self.events.emit("changed", self._created(created))
        self._notify("success", f"{len(created)} tasks added")
        return created

    def edit_task(self, task_id: int, **fields) -> Optional[Task]:
        """Update ``title``, ``description`` and/or ``followup``."""
        unknown = set(fields) - {"title", "description", "followup"}
        if unknown:
            raise TypeError(f"Unexpected field(s): {sorted(unknown)}")
        if "title" in fields and not (fields["title"] or "").strip():
            raise ValueError("Title cannot be empty")
        self.store.require(task_id)

        changes = {k: v for k, v in fields.items() if v is not None}
        try:
            with self._writing([task_id]):
                task = self.api.update_task(task_id, **changes)
        except TaskNotFoundError:
            self._notify("error", "Task no longer exists")
            self.refresh()
            return None
        except ApiError as e:
            logger.warning(f"Update of task {task_id} failed: {e}")
            self._notify("error", "Error saving task")
            return None

        self.store.upsert(task)
        self.events.emit("changed", ChangeSet(columns={task.column_id}))
        self._notify("success", "Task updated")
        return task

    def delete_task(self, task_id: int) -> ChangeSet:
        """Hard delete, then close the gap in the column."""
        self.store.require(task_id)
        error = None
        changes = ChangeSet()
        with self._writing([task_id]):
            try:
                self.api.delete_task(task_id)
            except TaskNotFoundError:
                logger.info(f"Task {task_id} was already gone on the server")
            except ApiError as e:
                error = e
            if error is None:
                changes = self.engine.remove(task_id)
                self.events.emit("changed", changes)
                try:
                    self.api.reorder(changes.changes)
                except ApiError as e:
                    error = e

        if error is not None:
            self._write_failed("Error deleting task", error)
        else:
            self._notify("success", "Task deleted")
        return changes

    # ── Moves ───────────────────────────────────────────────────

    def move_task(self, task_id: int, column_id: str, index: int) -> ChangeSet:
        return self._reorder(
            task_id,
            lambda: self.engine.move_between_columns(task_id, column_id, index),
            "Task moved",
        )

    def nudge(self, task_id: int, direction) -> ChangeSet:
        return self._reorder(
            task_id,
            lambda: self.engine.swap_adjacent(task_id, direction),
            "Task moved",
        )

    def archive_task(self, task_id: int) -> ChangeSet:
        task = self.store.require(task_id)
        if task.column_id == settings.ARCHIVE_COLUMN:
            return ChangeSet(columns={task.column_id})
        return self._reorder(
            task_id,
            lambda: self.engine.move_to_end(task_id, settings.ARCHIVE_COLUMN),
            "Task archived",
        )

    def restore_task(self, task_id: int, column_id: Optional[str] = None) -> ChangeSet:
        task = self.store.require(task_id)
        if task.column_id != settings.ARCHIVE_COLUMN:
            return ChangeSet(columns={task.column_id})
        target = column_id or settings.RESTORE_COLUMN
        return self._reorder(
            task_id,
            lambda: self.engine.move_to_end(task_id, target),
            "Task restored",
        )

    def start_drag(self, task_id: int) -> DragSession:
        self.drag.begin(task_id)
        return self.drag

    def drop(self) -> ChangeSet:
        """Commit the active drag at its current target."""
        task_id = self.drag.task_id
        if task_id is None:
            raise DragSessionError("No drag in progress")
        try:
            return self._reorder(task_id, lambda: self.drag.end() or ChangeSet(), "Task moved")
        except TaskBusyError:
            self.drag.cancel()
            raise

    def cancel_drag(self) -> None:
        self.drag.cancel()

    # ── Export / import ─────────────────────────────────────────

    def export_tasks(self) -> dict:
        return export_payload(self.store.all())

    def import_tasks(self, data, mode: str = "replace") -> List[Task]:
        """Load an export. ``replace`` empties the board first, ``merge`` appends."""
        if mode not in ("replace", "merge"):
            raise ValueError(f"Unknown import mode: {mode}")
        try:
            payload = parse_import(data)
        except ImportDataError:
            self._notify("error", "Import rejected: invalid data")
            raise

        ordered = sorted(payload.tasks, key=lambda t: (t.column_id, t.position))
        created = []
        try:
            with self._writing([t.id for t in self.store.all()]):
                if mode == "replace":
                    self.api.clear_tasks()
                for column_id, items in groupby(ordered, key=lambda t: t.column_id):
                    for item in items:
                        created.append(self.api.create_task(
                            item.title, item.description, item.followup, column_id
                        ))
        except ApiError as e:
            self._write_failed(f"Import stopped after {len(created)} of {len(ordered)} tasks", e)
            return created

        logger.info(f"Imported {len(created)} task(s) in {mode} mode")
        self.refresh()
        self._notify("success", f"{len(created)} tasks imported")
        return created

    # ── Internals ───────────────────────────────────────────────

    def has_pending_writes(self) -> bool:
        with self._pending_lock:
            return bool(self._pending)

    @contextmanager
    def _writing(self, task_ids: Iterable[int]):
        """Soft lock: one outstanding write per task."""
        ids = set(task_ids)
        token = object()  # anonyme, pour les créations
        with self._pending_lock:
            busy = ids & self._pending
            if busy:
                logger.warning(f"Write already in flight for task(s) {sorted(busy)}")
                raise TaskBusyError(min(busy))
            self._pending |= ids | {token}
        try:
            yield
        finally:
            with self._pending_lock:
                self._pending -= ids | {token}

    def _reorder(self, task_id: int, operation, success_message: str) -> ChangeSet:
        error = None
        with self._writing([task_id]):
            changes = operation()
            if changes:
                self.events.emit("changed", changes)
                try:
                    self.api.reorder(changes.changes)
                except ApiError as e:
                    error = e

        if error is not None:
            self._write_failed("Error reordering tasks", error)
        elif changes:
            self._notify("success", success_message)
        return changes

    def _write_failed(self, message: str, error: Exception) -> None:
        # Pas de rollback : on recharge l'état du serveur
        logger.warning(f"{message}: {error}")
        self._notify("error", f"{message}; {OUT_OF_SYNC}")
        self.refresh()

    def _notify(self, level: str, message: str) -> None:
        self.events.emit("notification", Notification(level, message))

    @staticmethod
    def _created(tasks: List[Task]) -> ChangeSet:
        return ChangeSet(
            [ReorderItem(id=t.id, column_id=t.column_id, position=t.position) for t in tasks],
            {t.column_id for t in tasks},
        )
