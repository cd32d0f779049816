# comply/services/lifecycle.py
"""
Task status and reminder lifecycle rules.

Every function here takes the evaluation date explicitly (``as_of``) and
reads no clock, so the sweep, the HTTP layer and the sync client all apply
the same rules and tests can run against fixed simulated dates.

Works on ORM ``Task`` rows as well as any object exposing ``status``,
``due_date`` and ``reminders`` (the sync client uses plain records).
"""

from typing import List

from comply.models.task import TaskStatus
from comply.utils.dates import DateLike, date_only, days_between


def _status(task) -> TaskStatus:
    return TaskStatus(task.status)


def _due_status(task, as_of: DateLike, tz=None) -> TaskStatus:
    if date_only(task.due_date, tz) < date_only(as_of, tz):
        return TaskStatus.OVERDUE
    return TaskStatus.IN_PROGRESS


def derive_status(task, as_of: DateLike, tz=None) -> TaskStatus:
    """
    Status implied by the due date on the ``as_of`` calendar day.

    COMPLETE is terminal and only ever set by the user, so it is returned
    unchanged. Otherwise a due date strictly before ``as_of`` is OVERDUE;
    the same day or later is IN_PROGRESS.
    """
    if _status(task) == TaskStatus.COMPLETE:
        return TaskStatus.COMPLETE
    return _due_status(task, as_of, tz)


def apply_derived_status(task, as_of: DateLike, tz=None, requested=None) -> bool:
    """
    Set ``task.status`` to its derived value; the one place status changes.

    ``requested`` is the status a user asked for. COMPLETE is honoured; any
    other value on a completed task reopens it and the due date decides
    between IN_PROGRESS and OVERDUE. Everything else is re-derived.

    Leaving OVERDUE (to any status) clears ``overdue_alerted_at`` so a later
    overdue episode is alerted again. Returns True when the status changed.
    """
    current = _status(task)
    if requested is not None and TaskStatus(requested) == TaskStatus.COMPLETE:
        target = TaskStatus.COMPLETE
    elif requested is not None and current == TaskStatus.COMPLETE:
        target = _due_status(task, as_of, tz)
    else:
        target = derive_status(task, as_of, tz)

    if target == current:
        return False
    task.status = target
    if current == TaskStatus.OVERDUE and hasattr(task, "overdue_alerted_at"):
        task.overdue_alerted_at = None
    return True


def days_until_due(task, as_of: DateLike, tz=None) -> int:
    """Calendar days from ``as_of`` to the due date; negative once past due"""
    return days_between(as_of, task.due_date, tz)


def is_reminder_due(task, reminder, as_of: DateLike, catch_up: bool = True, tz=None) -> bool:
    if reminder.sent or _status(task) == TaskStatus.COMPLETE:
        return False
    remaining = days_until_due(task, as_of, tz)
    if catch_up:
        # Trigger day reached or missed, but the task is not yet past due
        return 0 <= remaining <= reminder.timing
    return remaining == reminder.timing


def due_reminders(task, as_of: DateLike, catch_up: bool = True, tz=None) -> List:
    """
    Unsent reminders of ``task`` that should fire on ``as_of``.

    With ``catch_up`` (the default) a reminder whose trigger day was missed,
    e.g. during sweep downtime, still fires on a later run as long as the
    task is not past due. Without it only the exact trigger day counts.
    Several reminders may be due at once; each is returned in list order.
    """
    return [
        reminder
        for reminder in (task.reminders or [])
        if is_reminder_due(task, reminder, as_of, catch_up, tz)
    ]
