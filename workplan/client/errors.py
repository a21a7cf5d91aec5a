"""Client exception taxonomy."""

from typing import Optional


class WorkplanError(Exception):
    """Base class for client-side errors."""
    pass


class TaskNotFoundError(WorkplanError, LookupError):
    """Raised when a task id is not known to the store or the server."""

    def __init__(self, task_id):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class DragSessionError(WorkplanError, RuntimeError):
    """Raised on drag misuse: double begin, end without begin."""
    pass


class TaskBusyError(WorkplanError):
    """Raised when a write is already outstanding for the task."""

    def __init__(self, task_id):
        super().__init__(f"Task {task_id} has a write in flight")
        self.task_id = task_id


class ApiError(WorkplanError):
    """Network failure or non-success HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ImportDataError(WorkplanError, ValueError):
    """Raised when an import payload is structurally invalid."""
    pass
