"""
Pointer-drag state machine.

A UI layer translates its own events into three intents:
  begin(task_id)                          - drag started on a task
  update_target(column, pointer_y, slots) - pointer moved over a column
  end() / cancel()                        - dropped / aborted

Nothing touches the store until ``end()`` commits the move.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from workplan.client.errors import DragSessionError
from workplan.client.ordering import ChangeSet, OrderingEngine, TaskSlot, insertion_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DropTarget:
    column_id: str
    index: int
    before_id: Optional[int]  # task the drop lands in front of, None = end of column


class DragSession:
    """Tracks at most one in-progress drag."""

    def __init__(self, engine: OrderingEngine):
        self.engine = engine
        self.task_id: Optional[int] = None
        self.target: Optional[DropTarget] = None

    @property
    def active(self) -> bool:
        return self.task_id is not None

    def begin(self, task_id: int) -> None:
        if self.active:
            raise DragSessionError(f"Drag of task {self.task_id} already in progress")
        self.engine.store.require(task_id)
        self.task_id = task_id
        self.target = None

    def update_target(self, column_id: str, pointer_y: float, slots: Sequence[TaskSlot]) -> bool:
        """Recompute the drop point. Returns False when it did not move."""
        self._require_active()
        index, before_id = insertion_index(slots, pointer_y, exclude=self.task_id)
        current = self.target
        if current is not None and (current.column_id, current.before_id) == (column_id, before_id):
            return False

        self.target = DropTarget(column_id, index, before_id)
        logger.debug(f"Drag target for task {self.task_id}: {column_id}[{index}]")
        return True

    def leave(self, column_id: str) -> None:
        """Pointer left a column without dropping."""
        if self.target is not None and self.target.column_id == column_id:
            self.target = None

    def end(self, drop: bool = True) -> Optional[ChangeSet]:
        """Commit the drop, or discard it. Returns None when nothing was committed."""
        self._require_active()
        task_id, target = self.task_id, self.target
        self.task_id = None
        self.target = None

        if not drop or target is None:
            return None

        task = self.engine.store.require(task_id)
        if target.column_id == task.column_id:
            return self.engine.move_within_column(task_id, target.index)
        return self.engine.move_between_columns(task_id, target.column_id, target.index)

    def cancel(self) -> None:
        self.end(drop=False)

    def _require_active(self) -> None:
        if not self.active:
            raise DragSessionError("No drag in progress")
