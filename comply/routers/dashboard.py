# comply/routers/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from comply.config.settings import AppConfig
from comply.database import get_db
from comply.routers.tasks import raise_http_error, to_task_out
from comply.schemas import TaskOut, TaskStats
from comply.services.exceptions import TaskStoreError
from comply.services.task_store import TaskStore
from comply.services.task_views import compute_stats, upcoming_tasks
from comply.utils.dates import today

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _derived_tasks(db: Session, created_by: Optional[str]):
    try:
        tasks = TaskStore(db).list(created_by=created_by)
    except TaskStoreError as e:
        raise_http_error(e)
    as_of = today()
    return as_of, [to_task_out(task, as_of) for task in tasks]


@router.get("/stats", response_model=TaskStats)
def get_dashboard_stats(created_by: Optional[str] = None, db: Session = Depends(get_db)):
    """Aggregate counts over the same collection the task list shows"""
    as_of, tasks = _derived_tasks(db, created_by)
    return compute_stats(tasks, as_of, window_days=AppConfig.TASKS["upcoming_window_days"])


@router.get("/upcoming", response_model=List[TaskOut])
def get_upcoming_tasks(created_by: Optional[str] = None, limit: int = 5, db: Session = Depends(get_db)):
    """In-progress tasks due within the upcoming window, soonest first"""
    as_of, tasks = _derived_tasks(db, created_by)
    return upcoming_tasks(tasks, as_of, window_days=AppConfig.TASKS["upcoming_window_days"], limit=limit)
