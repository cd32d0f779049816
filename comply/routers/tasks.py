# comply/routers/tasks.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from comply.database import get_db
from comply.models import Task
from comply.schemas import TaskCreate, TaskUpdate, TaskOut, TaskCreatedOut
from comply.services.email_dispatcher import NotificationDispatcher, get_dispatcher
from comply.services.exceptions import (
    ConcurrentUpdateError,
    StoreUnavailableError,
    TaskNotFoundError,
    TaskStoreError,
    TaskValidationError,
)
from comply.services.lifecycle import derive_status
from comply.services.task_store import TaskStore
from comply.services.task_views import filter_and_sort_tasks
from comply.utils.dates import today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def raise_http_error(error: TaskStoreError):
    """Translate a task store error into the matching HTTP error"""
    if isinstance(error, TaskNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    if isinstance(error, TaskValidationError):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    if isinstance(error, ConcurrentUpdateError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, StoreUnavailableError):
        logger.error(f"Task store unavailable: {error}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Task store unavailable")
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


def to_task_out(task: Task, as_of=None) -> TaskOut:
    """Serialize a task with its status derived for today (nothing is written back)"""
    out = TaskOut.model_validate(task)
    return out.model_copy(update={"status": derive_status(task, as_of or today())})


@router.get("/", response_model=List[TaskOut])
def get_all_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    sort_by: str = "due_date",
    created_by: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Get tasks with optional status filter, search term and sort order"""
    try:
        tasks = TaskStore(db).list(created_by=created_by)
    except TaskStoreError as e:
        raise_http_error(e)

    as_of = today()
    try:
        return filter_and_sort_tasks(
            [to_task_out(task, as_of) for task in tasks],
            status=status_filter,
            search=search,
            sort_by=sort_by,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: str, db: Session = Depends(get_db)):
    """Get a specific task by ID"""
    try:
        return to_task_out(TaskStore(db).get(task_id))
    except TaskStoreError as e:
        raise_http_error(e)


@router.post("/", response_model=TaskCreatedOut, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Create a task and email everyone involved"""
    try:
        db_task = TaskStore(db).create(task)
    except TaskStoreError as e:
        raise_http_error(e)

    # Creation emails go out inline; failures are logged and counted, never fatal
    result = dispatcher.notify_created(db_task)
    if result.failed:
        logger.warning(f"Creation email failed for {result.failed_count} recipients of task {db_task.id}")

    out = TaskCreatedOut.model_validate(db_task)
    return out.model_copy(update={"emails_sent": result.sent_count})


@router.put("/{task_id}", response_model=TaskOut)
def update_task(task_id: str, task_update: TaskUpdate, db: Session = Depends(get_db)):
    """Update a task; pass `version` to reject the write if someone else changed it first"""
    try:
        return to_task_out(TaskStore(db).update(task_id, task_update))
    except TaskStoreError as e:
        raise_http_error(e)


@router.delete("/{task_id}")
def delete_task(task_id: str, db: Session = Depends(get_db)):
    """Delete a task together with its reminders"""
    try:
        TaskStore(db).delete(task_id)
    except TaskStoreError as e:
        raise_http_error(e)

    return {"message": "Task deleted successfully"}
