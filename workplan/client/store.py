"""
In-memory task collection for one board session.

The store is the single shared mutable resource on the client: ordering
results, sync replacements and create/update/delete responses all land here.
Multi-step mutations hold ``store.lock`` so that a sync tick running on the
timer thread never observes a half-applied move.
"""
import threading
from typing import Dict, Iterable, Iterator, List, Optional

from workplan.client.errors import TaskNotFoundError
from workplan.schemas.task import TaskResponse as Task


def snapshot(tasks: Iterable[Task]) -> List[dict]:
    """Serialized, id-ordered view of a collection, used for value comparison."""
    return sorted((task.model_dump(mode="json") for task in tasks), key=lambda d: d["id"])


class TaskStore:
    """Authoritative in-memory task collection."""

    def __init__(self, tasks: Optional[Iterable[Task]] = None):
        # dict keeps insertion order, which is the tie-break for equal positions
        self._tasks: Dict[int, Task] = {}
        self.lock = threading.RLock()
        if tasks is not None:
            self.load(tasks)

    def load(self, tasks: Iterable[Task]) -> None:
        """Replace the whole collection. The server is trusted, nothing is validated."""
        with self.lock:
            self._tasks = {task.id: task for task in tasks}

    def get(self, task_id: int) -> Optional[Task]:
        return self._tasks.get(task_id)

    def require(self, task_id: int) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def tasks_in_column(self, column_id: str) -> List[Task]:
        """Tasks of one column, ascending by position (stable)."""
        with self.lock:
            column = [task for task in self._tasks.values() if task.column_id == column_id]
        return sorted(column, key=lambda task: task.position)

    def upsert(self, task: Task) -> None:
        with self.lock:
            self._tasks[task.id] = task

    def remove(self, task_id: int) -> Task:
        """Drop a task without renumbering its siblings."""
        with self.lock:
            task = self._tasks.pop(task_id, None)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def all(self) -> List[Task]:
        return list(self._tasks.values())

    def columns(self) -> List[str]:
        """Column ids in first-seen order."""
        seen = {}
        for task in self._tasks.values():
            seen.setdefault(task.column_id, None)
        return list(seen)

    def column_view(self, column_id: str) -> tuple:
        """Read-only copy of a column for renderers."""
        return tuple(task.model_copy() for task in self.tasks_in_column(column_id))

    def snapshot(self) -> List[dict]:
        with self.lock:
            return snapshot(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id) -> bool:
        return task_id in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self.all())
