# comply/services/sweep.py
"""
Daily compliance sweep: fires due reminders, derives task status and sends
overdue alerts.

The sweep has no scheduling-library coupling; ``TaskScheduler`` (or a test)
calls ``run``/``run_scheduled`` directly. Each write is committed before the
matching emails go out, so a crash mid-run can lose an email but never send
one twice. Running it again on the same calendar day is a no-op.
"""

import logging
import threading
from dataclasses import asdict, dataclass
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm.exc import ObjectDeletedError

from comply.config.settings import AppConfig
from comply.database import SessionLocal
from comply.models import TaskStatus
from comply.services.email_dispatcher import NotificationDispatcher, get_dispatcher
from comply.services.exceptions import ConcurrentUpdateError
from comply.services.lifecycle import apply_derived_status, due_reminders, is_reminder_due
from comply.services.task_store import TaskStore
from comply.utils.dates import today, utcnow

logger = logging.getLogger(__name__)


@dataclass
class SweepSummary:
    as_of: date
    tasks_checked: int = 0
    reminders_sent: int = 0
    status_transitions: int = 0
    overdue_alerts: int = 0
    conflicts: int = 0
    notifications_failed: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["as_of"] = self.as_of.isoformat()
        return data


class ComplianceSweep:
    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        session_factory: Callable = SessionLocal,
        catch_up: Optional[bool] = None,
    ):
        self.dispatcher = dispatcher
        self.session_factory = session_factory
        self.catch_up = AppConfig.SCHEDULER["reminder_catch_up"] if catch_up is None else catch_up
        self._lock = threading.Lock()
        self.last_summary: Optional[SweepSummary] = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run(self, as_of: Optional[date] = None) -> Optional[SweepSummary]:
        """
        Run one sweep for the ``as_of`` calendar day (today by default).

        Returns None without doing anything when another run is in progress.
        Store errors propagate and abort the run; whatever was committed for
        earlier tasks stays committed.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Compliance sweep already running; skipping this invocation")
            return None
        try:
            as_of = as_of or today()
            summary = SweepSummary(as_of=as_of)
            logger.info(f"Running compliance sweep for {as_of.isoformat()}...")

            db = self.session_factory()
            try:
                store = TaskStore(db)
                for task in store.list_open():
                    summary.tasks_checked += 1
                    try:
                        self._process_task(store, task, as_of, summary)
                    except ConcurrentUpdateError as e:
                        summary.conflicts += 1
                        logger.warning(f"Skipping task for this sweep: {e}")
                    except ObjectDeletedError:
                        summary.conflicts += 1
                        logger.info("Task deleted while the sweep was running; skipped")
            finally:
                db.close()

            logger.info(
                f"Compliance sweep done: {summary.tasks_checked} tasks checked, "
                f"{summary.reminders_sent} reminders sent, "
                f"{summary.status_transitions} status transitions, "
                f"{summary.overdue_alerts} overdue alerts, "
                f"{summary.conflicts} conflicts, "
                f"{summary.notifications_failed} failed emails"
            )
            self.last_summary = summary
            return summary
        finally:
            self._lock.release()

    def run_scheduled(self) -> None:
        """Entry point for the daily job: no arguments, failures only go to the log"""
        try:
            self.run()
        except Exception as e:
            logger.exception(f"Compliance sweep aborted: {e}")

    def _process_task(self, store: TaskStore, task, as_of: date, summary: SweepSummary) -> None:
        # Reminders: claim (commit sent=true) first, then email
        for reminder in due_reminders(task, as_of, catch_up=self.catch_up):
            # Each claim commits and reloads the task, which a user may have completed meanwhile
            if not is_reminder_due(task, reminder, as_of, catch_up=self.catch_up):
                continue
            if not store.claim_reminder(reminder):
                continue
            result = self.dispatcher.notify_reminder(task, reminder)
            summary.reminders_sent += 1
            summary.notifications_failed += result.failed_count
            logger.info(f"Reminder {reminder.timing}d sent for task {task.id} to {result.sent_count} recipients")

        # Status
        previous = TaskStatus(task.status)
        if apply_derived_status(task, as_of):
            store.save(task)
            summary.status_transitions += 1
            logger.info(f"Task {task.id} status {previous.value} -> {TaskStatus(task.status).value}")

        # Overdue alert, once per overdue episode
        if task.status == TaskStatus.OVERDUE and task.overdue_alerted_at is None:
            task.overdue_alerted_at = utcnow()
            store.save(task)
            result = self.dispatcher.notify_overdue(task)
            summary.overdue_alerts += 1
            summary.notifications_failed += result.failed_count


_sweep: Optional[ComplianceSweep] = None


def get_sweep() -> ComplianceSweep:
    global _sweep
    if _sweep is None:
        _sweep = ComplianceSweep(get_dispatcher())
    return _sweep
