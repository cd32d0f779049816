# comply/services/task_views.py
"""
Read-side projections over a task collection: filtered/sorted list,
dashboard stats and upcoming tasks. Shared by the HTTP layer and the
sync client; statuses are expected to be already derived for ``as_of``.
"""

from datetime import timedelta
from typing import Dict, Iterable, List, Optional

from comply.models.task import TaskPriority, TaskStatus
from comply.utils.dates import DateLike, date_only

PRIORITY_ORDER = {
    TaskPriority.CRITICAL: 4,
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 1,
}

STATUS_ORDER = {
    TaskStatus.OVERDUE: 3,
    TaskStatus.IN_PROGRESS: 2,
    TaskStatus.COMPLETE: 1,
}

SORT_ALIASES = {
    "dueDate": "due_date",
    "due_date": "due_date",
    "priority": "priority",
    "status": "status",
    "heading": "heading",
}


def _sort_key(sort_by: str):
    if sort_by == "priority":
        return lambda t: -PRIORITY_ORDER[TaskPriority(t.priority)]
    if sort_by == "status":
        return lambda t: -STATUS_ORDER[TaskStatus(t.status)]
    if sort_by == "heading":
        return lambda t: t.heading.lower()
    return lambda t: t.due_date


def filter_and_sort_tasks(
    tasks: Iterable,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "due_date",
) -> List:
    """
    Filter by status ("all" or None keeps everything) and by a case-insensitive
    search over heading and description, then sort. Priority and status sort
    most urgent first; ties keep their incoming order.
    """
    if sort_by not in SORT_ALIASES:
        raise ValueError(f"Unknown sort key: {sort_by}")
    wanted = None if status in (None, "", "all") else TaskStatus(status)
    term = (search or "").strip().lower()

    result = []
    for task in tasks:
        if wanted is not None and TaskStatus(task.status) != wanted:
            continue
        if term and term not in task.heading.lower() and term not in (task.description or "").lower():
            continue
        result.append(task)

    return sorted(result, key=_sort_key(SORT_ALIASES[sort_by]))


def _is_upcoming(task, as_of: DateLike, window_days: int) -> bool:
    if TaskStatus(task.status) != TaskStatus.IN_PROGRESS:
        return False
    start = date_only(as_of)
    return start <= date_only(task.due_date) <= start + timedelta(days=window_days)


def compute_stats(tasks: Iterable, as_of: DateLike, window_days: int = 7) -> Dict[str, int]:
    """Aggregate counts; upcoming_due_soon = in-progress tasks due within ``window_days``"""
    tasks = list(tasks)
    statuses = [TaskStatus(t.status) for t in tasks]
    return {
        "total": len(tasks),
        "completed": statuses.count(TaskStatus.COMPLETE),
        "overdue": statuses.count(TaskStatus.OVERDUE),
        "in_progress": statuses.count(TaskStatus.IN_PROGRESS),
        "upcoming_due_soon": sum(1 for t in tasks if _is_upcoming(t, as_of, window_days)),
    }


def upcoming_tasks(tasks: Iterable, as_of: DateLike, window_days: int = 7, limit: int = 5) -> List:
    upcoming = [t for t in tasks if _is_upcoming(t, as_of, window_days)]
    return sorted(upcoming, key=lambda t: t.due_date)[:limit]
