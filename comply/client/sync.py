# comply/client/sync.py
"""
Client sync loop.

Polls the task API on a fixed interval and keeps a local copy whose
statuses are re-derived locally, so the UI reflects overdue tasks without
waiting for the daily sweep. Nothing derived here is written back: reminder
``sent`` flags and persisted status belong to the sweep. User actions
(create/update/complete/delete) go straight to the API and trigger a refresh.
"""

import logging
import threading
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from comply.client.api import ApiError, TaskApiClient
from comply.config.settings import AppConfig
from comply.models.task import TaskStatus
from comply.schemas import TaskCreate, TaskCreatedOut, TaskOut, TaskUpdate
from comply.services.lifecycle import derive_status
from comply.services.scheduler import TaskScheduler
from comply.services.task_views import compute_stats, filter_and_sort_tasks
from comply.utils.dates import today, utcnow

logger = logging.getLogger(__name__)


class TaskSyncClient:
    def __init__(
        self,
        api: Optional[TaskApiClient] = None,
        created_by: Optional[str] = None,
        interval_seconds: Optional[int] = None,
        clock: Callable[[], date] = today,
        scheduler: Optional[TaskScheduler] = None,
    ):
        self.api = api or TaskApiClient()
        self.created_by = created_by
        self.interval_seconds = interval_seconds or AppConfig.CLIENT["sync_seconds"]
        self.clock = clock
        self.scheduler = scheduler
        self.last_synced_at: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self._tasks: List[TaskOut] = []
        self._lock = threading.Lock()

    @property
    def tasks(self) -> List[TaskOut]:
        with self._lock:
            return list(self._tasks)

    # Sync loop

    def refresh(self) -> List[TaskOut]:
        """Fetch the collection and re-derive statuses; keeps the last copy if the API is down"""
        try:
            fetched = self.api.list_tasks(created_by=self.created_by)
        except ApiError as e:
            self.last_error = e.detail
            logger.warning(f"Task sync failed, keeping {len(self._tasks)} cached tasks: {e.detail}")
            return self.tasks

        as_of = self.clock()
        derived = [self._derive(task, as_of) for task in fetched]
        with self._lock:
            self._tasks = derived
        self.last_synced_at = utcnow()
        self.last_error = None
        logger.debug(f"Synced {len(derived)} tasks")
        return list(derived)

    def recompute_statuses(self, as_of: Optional[date] = None) -> int:
        """Re-derive statuses of the cached copy (e.g. after midnight); returns how many changed"""
        as_of = as_of or self.clock()
        with self._lock:
            updated = [self._derive(task, as_of) for task in self._tasks]
            changed = sum(1 for old, new in zip(self._tasks, updated) if old.status != new.status)
            self._tasks = updated
        return changed

    def start(self) -> None:
        """Refresh now, then every ``interval_seconds`` on a background thread"""
        if self.scheduler is None:
            self.scheduler = TaskScheduler(BackgroundScheduler())
        self.refresh()
        self.scheduler.register_interval_job(self.refresh, seconds=self.interval_seconds, job_id="task_sync")
        self.scheduler.start()

    def stop(self) -> None:
        if self.scheduler is not None:
            self.scheduler.stop()

    # Projections

    def view(self, status: Optional[str] = None, search: Optional[str] = None, sort_by: str = "due_date") -> List[TaskOut]:
        return filter_and_sort_tasks(self.tasks, status=status, search=search, sort_by=sort_by)

    def stats(self) -> Dict[str, int]:
        return compute_stats(self.tasks, self.clock(), window_days=AppConfig.TASKS["upcoming_window_days"])

    # User actions

    def create_task(self, payload: TaskCreate) -> TaskCreatedOut:
        created = self.api.create_task(payload)
        self.refresh()
        return created

    def update_task(self, task_id: str, payload: TaskUpdate) -> TaskOut:
        """
        Send a user edit. A status is only forwarded when the user completes
        or reopens the task; derived values never travel back to the server.
        """
        if "status" in payload.model_fields_set and not self._is_user_status_change(task_id, payload.status):
            payload = TaskUpdate(**payload.model_dump(exclude_unset=True, exclude={"status"}))
        if payload.version is None:
            cached = self._cached(task_id)
            if cached is not None:
                payload = payload.model_copy(update={"version": cached.version})
        updated = self.api.update_task(task_id, payload)
        self.refresh()
        return updated

    def mark_complete(self, task_id: str) -> TaskOut:
        return self.update_task(task_id, TaskUpdate(status=TaskStatus.COMPLETE))

    def delete_task(self, task_id: str) -> None:
        self.api.delete_task(task_id)
        self.refresh()

    # Internals

    @staticmethod
    def _derive(task: TaskOut, as_of: date) -> TaskOut:
        status = derive_status(task, as_of)
        if status == task.status:
            return task
        return task.model_copy(update={"status": status})

    def _cached(self, task_id: str) -> Optional[TaskOut]:
        with self._lock:
            return next((task for task in self._tasks if task.id == task_id), None)

    def _is_user_status_change(self, task_id: str, status: Optional[TaskStatus]) -> bool:
        if status == TaskStatus.COMPLETE:
            return True
        cached = self._cached(task_id)
        # Reopening a completed task
        return status == TaskStatus.IN_PROGRESS and cached is not None and cached.status == TaskStatus.COMPLETE
