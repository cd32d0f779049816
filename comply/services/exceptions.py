# comply/services/exceptions.py
"""
Errors raised by the task store; the HTTP layer maps them to status codes.
"""


class TaskStoreError(Exception):
    """Base class for task store failures"""


class TaskValidationError(TaskStoreError):
    """A create/update payload is missing required fields or has invalid values"""


class TaskNotFoundError(TaskStoreError):
    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class ConcurrentUpdateError(TaskStoreError):
    """The row changed between read and write (update-if-unchanged failed)"""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} was modified concurrently; reload and retry")
        self.task_id = task_id


class StoreUnavailableError(TaskStoreError):
    """The database could not be reached or rejected the operation"""
