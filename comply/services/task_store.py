# comply/services/task_store.py
"""
Persistence for tasks and their owned reminders.

All status writes go through ``apply_derived_status``; reminder ``sent``
flags are only flipped by ``claim_reminder`` (used by the sweep). Task rows
are versioned, so a write based on a stale read raises
``ConcurrentUpdateError`` instead of clobbering the other writer.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from comply.config.settings import AppConfig
from comply.models import Reminder, Task, TaskStatus
from comply.schemas import ReminderIn, TaskCreate, TaskUpdate
from comply.services.exceptions import (
    ConcurrentUpdateError,
    StoreUnavailableError,
    TaskNotFoundError,
    TaskValidationError,
)
from comply.services.lifecycle import apply_derived_status
from comply.utils.dates import to_utc_naive, today, utcnow

logger = logging.getLogger(__name__)

# Fields a partial update may not null out
REQUIRED_FIELDS = ("heading", "due_date", "priority", "category")


class TaskStore:
    """CRUD over ``Task`` rows bound to one SQLAlchemy session"""

    def __init__(self, db: Session, default_reminder_days: Optional[Sequence[int]] = None):
        self.db = db
        if default_reminder_days is None:
            default_reminder_days = AppConfig.TASKS["default_reminder_days"]
        self.default_reminder_days = list(default_reminder_days)

    # Reads

    def list(
        self,
        created_by: Optional[str] = None,
        status: Optional[TaskStatus] = None,
        exclude_complete: bool = False,
    ) -> List[Task]:
        """Tasks ordered by due date, optionally filtered by creator and persisted status"""
        try:
            query = self.db.query(Task).options(selectinload(Task.reminders))
            if created_by:
                query = query.filter(Task.created_by == created_by.strip().lower())
            if status is not None:
                query = query.filter(Task.status == status)
            if exclude_complete:
                query = query.filter(Task.status != TaskStatus.COMPLETE)
            return query.order_by(Task.due_date.asc(), Task.created_at.asc()).all()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Could not list tasks: {e}") from e

    def list_open(self) -> List[Task]:
        """Every task the sweep has to look at (status != complete)"""
        return self.list(exclude_complete=True)

    def get(self, task_id: str) -> Task:
        try:
            task = self.db.query(Task).options(
                selectinload(Task.reminders)
            ).filter(Task.id == task_id).first()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Could not load task {task_id}: {e}") from e
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    # Writes

    def create(self, payload: TaskCreate, as_of: Optional[date] = None) -> Task:
        as_of = as_of or today()

        task = Task(
            heading=payload.heading,
            description=payload.description or "",
            due_date=to_utc_naive(payload.due_date),
            priority=payload.priority,
            category=payload.category or "general",
            notes=payload.notes or "",
            people_involved=list(payload.people_involved),
            created_by=payload.created_by,
            status=TaskStatus.IN_PROGRESS,
        )

        if payload.reminders is None:
            reminder_inputs = [ReminderIn(timing=days) for days in self.default_reminder_days]
        else:
            reminder_inputs = payload.reminders
        task.reminders = [
            Reminder(kind=entry.kind.value, timing=entry.timing, position=index)
            for index, entry in enumerate(reminder_inputs)
        ]

        apply_derived_status(task, as_of, requested=payload.status)

        self.db.add(task)
        self._commit(task)
        logger.info(f"Created task {task.id} '{task.heading}' due {task.due_date.date()}")
        return task

    def update(self, task_id: str, payload: TaskUpdate, as_of: Optional[date] = None) -> Task:
        as_of = as_of or today()
        task = self.get(task_id)

        if payload.version is not None and payload.version != task.version:
            raise ConcurrentUpdateError(task_id)

        data = payload.model_dump(exclude_unset=True, exclude={"version", "reminders", "status"})
        for field in REQUIRED_FIELDS:
            if field in data and data[field] is None:
                raise TaskValidationError(f"Field '{field}' is required")

        for field, value in data.items():
            if field == "due_date":
                value = to_utc_naive(value)
            elif field == "people_involved":
                value = list(value or [])
            elif value is None:
                value = ""
            setattr(task, field, value)

        if "reminders" in payload.model_fields_set:
            self._replace_reminders(task, payload.reminders or [])
            # Collection changes alone never UPDATE the task row, so the version would not move
            task.updated_at = utcnow()

        # Only complete and reopen come from the user; everything else is derived
        requested = payload.status if "status" in payload.model_fields_set else None
        apply_derived_status(task, as_of, requested=requested)

        self._commit(task)
        logger.info(f"Updated task {task.id}")
        return task

    def delete(self, task_id: str) -> None:
        task = self.get(task_id)
        self.db.delete(task)
        self._commit(task)
        logger.info(f"Deleted task {task_id}")

    # Sweep-only writes

    def save(self, task: Task) -> Task:
        """Persist in-memory changes to ``task`` (status mutator, overdue stamp)"""
        self._commit(task)
        return task

    def claim_reminder(self, reminder: Reminder) -> bool:
        """
        Flip ``sent`` false -> true with a conditional update and commit.

        Returns False when another writer already claimed it, so a reminder
        is dispatched at most once.
        """
        reminder_id = reminder.id
        try:
            result = self.db.execute(
                update(Reminder)
                .where(Reminder.id == reminder_id, Reminder.sent == False)
                .values(sent=True, sent_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            # Commit expires the session, so the row reloads with sent=True
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailableError(f"Could not claim reminder {reminder_id}: {e}") from e

        return result.rowcount == 1

    # Internals

    def _replace_reminders(self, task: Task, entries: List[ReminderIn]) -> None:
        existing = {reminder.id: reminder for reminder in task.reminders}
        replacement = []
        for index, entry in enumerate(entries):
            reminder = existing.get(entry.id) if entry.id else None
            if reminder is None:
                reminder = Reminder(kind=entry.kind.value, timing=entry.timing, sent=False)
            elif reminder.timing != entry.timing and not reminder.sent:
                reminder.timing = entry.timing
            reminder.kind = entry.kind.value
            reminder.position = index
            replacement.append(reminder)
        # delete-orphan removes the reminders that were left out
        task.reminders = replacement

    def _commit(self, task: Task) -> None:
        task_id = task.id
        try:
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise ConcurrentUpdateError(task_id) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailableError(f"Could not save task: {e}") from e
        if task in self.db:
            self.db.refresh(task)
