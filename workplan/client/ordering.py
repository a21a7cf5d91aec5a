"""
Position bookkeeping for moves, nudges and removals.

Every operation leaves the affected column(s) numbered 0..n-1 in display
order and reports only the (id, column_id, position) triples that changed,
which is exactly the reorder batch sent to the server.
"""
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from workplan.client.store import Task, TaskStore
from workplan.schemas.task import ReorderItem


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass
class ChangeSet:
    """Result of an ordering operation."""
    changes: List[ReorderItem] = field(default_factory=list)
    columns: Set[str] = field(default_factory=set)
    boundary: bool = False  # nudge refused at the top/bottom of a column

    def __bool__(self) -> bool:
        return bool(self.changes)

    def task_ids(self) -> List[int]:
        return [item.id for item in self.changes]


@dataclass(frozen=True)
class TaskSlot:
    """On-screen extent of a rendered task, in document order."""
    task_id: int
    top: float
    height: float

    @property
    def midpoint(self) -> float:
        return self.top + self.height / 2


def insertion_index(
    slots: Sequence[TaskSlot], pointer_y: float, exclude: Optional[int] = None
) -> Tuple[int, Optional[int]]:
    """Where a drop at ``pointer_y`` lands among ``slots``.

    The first slot whose midpoint lies below the pointer is the one the task
    goes in front of. Returns (index, id of that slot); (len, None) means
    append at the end. The dragged task itself (``exclude``) is skipped.
    """
    candidates = [slot for slot in slots if slot.task_id != exclude]
    for index, slot in enumerate(candidates):
        if slot.midpoint > pointer_y:
            return index, slot.task_id
    return len(candidates), None


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


class OrderingEngine:
    """Computes column/position changes against a TaskStore."""

    def __init__(self, store: TaskStore):
        self.store = store

    def move_within_column(self, task_id: int, target_index: int) -> ChangeSet:
        with self.store.lock:
            task = self.store.require(task_id)
            column = self.store.tasks_in_column(task.column_id)
            before = self._state(column)

            column = [t for t in column if t.id != task_id]
            column.insert(_clamp(target_index, 0, len(column)), task)
            self._renumber(column, task.column_id)

            return ChangeSet(self._diff(before, column), {task.column_id})

    def move_between_columns(self, task_id: int, target_column: str, target_index: int) -> ChangeSet:
        with self.store.lock:
            task = self.store.require(task_id)
            source_column = task.column_id
            if target_column == source_column:
                return self.move_within_column(task_id, target_index)

            source = [t for t in self.store.tasks_in_column(source_column) if t.id != task_id]
            target = self.store.tasks_in_column(target_column)
            before = self._state(source + target + [task])

            target.insert(_clamp(target_index, 0, len(target)), task)
            self._renumber(source, source_column)
            self._renumber(target, target_column)

            return ChangeSet(self._diff(before, source + target), {source_column, target_column})

    def move_to_end(self, task_id: int, target_column: str) -> ChangeSet:
        return self.move_between_columns(task_id, target_column, sys.maxsize)

    def swap_adjacent(self, task_id: int, direction) -> ChangeSet:
        """Nudge a task one step up or down inside its column."""
        direction = Direction(direction)
        with self.store.lock:
            task = self.store.require(task_id)
            column = self.store.tasks_in_column(task.column_id)
            index = next(i for i, t in enumerate(column) if t.id == task_id)
            neighbour = index - 1 if direction == Direction.UP else index + 1
            if neighbour < 0 or neighbour >= len(column):
                return ChangeSet(columns={task.column_id}, boundary=True)

            before = self._state(column)
            column[index], column[neighbour] = column[neighbour], column[index]
            self._renumber(column, task.column_id)

            return ChangeSet(self._diff(before, column), {task.column_id})

    def remove(self, task_id: int) -> ChangeSet:
        """Drop a task from the store and close the gap it leaves."""
        with self.store.lock:
            task = self.store.remove(task_id)
            changes = self.compact(task.column_id)
            changes.columns.add(task.column_id)
            return changes

    def compact(self, column_id: str) -> ChangeSet:
        """Renumber a column 0..n-1 keeping its current order."""
        with self.store.lock:
            column = self.store.tasks_in_column(column_id)
            before = self._state(column)
            self._renumber(column, column_id)
            return ChangeSet(self._diff(before, column), {column_id})

    @staticmethod
    def _state(tasks: Iterable[Task]) -> Dict[int, Tuple[str, int]]:
        return {t.id: (t.column_id, t.position) for t in tasks}

    @staticmethod
    def _renumber(column: List[Task], column_id: str) -> None:
        for position, task in enumerate(column):
            task.column_id = column_id
            task.position = position

    @staticmethod
    def _diff(before: Dict[int, Tuple[str, int]], tasks: Iterable[Task]) -> List[ReorderItem]:
        return [
            ReorderItem(id=t.id, column_id=t.column_id, position=t.position)
            for t in tasks
            if before.get(t.id) != (t.column_id, t.position)
        ]
