# tests/test_sync_client.py

from datetime import date, datetime

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from comply.client.sync import TaskSyncClient
from comply.models import TaskPriority, TaskStatus
from comply.schemas import TaskOut, TaskUpdate
from comply.services.scheduler import TaskScheduler

from .fakes import FakeTaskApi


def task_out(task_id, due_day, status=TaskStatus.IN_PROGRESS, heading=None, version=1):
    return TaskOut(
        id=task_id,
        heading=heading or f"Task {task_id}",
        description="",
        due_date=datetime(2026, 3, due_day, 12, 0),
        priority=TaskPriority.HIGH,
        status=status,
        category="Financial",
        notes="",
        people_involved=[],
        created_by="owner@company.com",
        created_at=datetime(2026, 2, 1, 9, 0),
        version=version,
        reminders=[],
    )


class Clock:
    def __init__(self, day: date):
        self.day = day

    def __call__(self) -> date:
        return self.day


@pytest.fixture()
def clock():
    return Clock(date(2026, 3, 5))


@pytest.fixture()
def api():
    return FakeTaskApi([
        # Persisted as in-progress; the daily sweep has not caught up yet
        task_out("late", 3),
        task_out("soon", 6),
        task_out("done", 1, status=TaskStatus.COMPLETE),
    ])


@pytest.fixture()
def sync(api, clock):
    return TaskSyncClient(api, created_by="owner@company.com", interval_seconds=60, clock=clock)


def statuses(client):
    return {task.id: task.status for task in client.tasks}


def test_refresh_derives_status_locally_without_writing_back(sync, api):
    sync.refresh()

    assert statuses(sync) == {
        "late": TaskStatus.OVERDUE,
        "soon": TaskStatus.IN_PROGRESS,
        "done": TaskStatus.COMPLETE,
    }
    assert api.updates == []
    assert api.tasks["late"].status == TaskStatus.IN_PROGRESS
    assert sync.last_synced_at is not None


def test_unreachable_api_keeps_last_copy(sync, api):
    sync.refresh()
    api.down = True

    tasks = sync.refresh()

    assert len(tasks) == 3
    assert "Could not reach task API" in sync.last_error

    api.down = False
    sync.refresh()
    assert sync.last_error is None


def test_recompute_after_midnight(sync, clock):
    sync.refresh()
    clock.day = date(2026, 3, 7)

    assert sync.recompute_statuses() == 1
    assert statuses(sync)["soon"] == TaskStatus.OVERDUE
    assert sync.recompute_statuses() == 0


def test_view_and_stats_use_local_statuses(sync):
    sync.refresh()

    assert [t.id for t in sync.view(status="overdue")] == ["late"]
    assert sync.stats() == {
        "total": 3,
        "completed": 1,
        "overdue": 1,
        "in_progress": 1,
        "upcoming_due_soon": 1,
    }


def test_update_drops_derived_status_and_fills_version(sync, api):
    sync.refresh()

    sync.update_task("late", TaskUpdate(status=TaskStatus.OVERDUE, notes="Chased finance"))

    task_id, sent = api.updates[-1]
    assert task_id == "late"
    assert "status" not in sent.model_fields_set
    assert sent.notes == "Chased finance"
    assert sent.version == 1


def test_mark_complete_is_forwarded(sync, api):
    sync.refresh()

    sync.mark_complete("late")

    _, sent = api.updates[-1]
    assert sent.status == TaskStatus.COMPLETE
    assert statuses(sync)["late"] == TaskStatus.COMPLETE


def test_reopen_is_forwarded(sync, api):
    sync.refresh()

    sync.update_task("done", TaskUpdate(status=TaskStatus.IN_PROGRESS))

    _, sent = api.updates[-1]
    assert sent.status == TaskStatus.IN_PROGRESS
    # Due on the 1st, so the reopened task shows as overdue locally
    assert statuses(sync)["done"] == TaskStatus.OVERDUE


def test_delete_refreshes_collection(sync, api):
    sync.refresh()
    calls = api.list_calls

    sync.delete_task("soon")

    assert api.deleted == ["soon"]
    assert api.list_calls == calls + 1
    assert "soon" not in statuses(sync)


def test_start_registers_interval_job(sync, api):
    sync.scheduler = TaskScheduler(BackgroundScheduler(), timezone="UTC")
    try:
        sync.start()
        jobs = sync.scheduler.get_scheduler_status()["jobs"]
        assert [job["id"] for job in jobs] == ["task_sync"]
        assert api.list_calls == 1
    finally:
        sync.stop()
    assert sync.scheduler.is_running is False
