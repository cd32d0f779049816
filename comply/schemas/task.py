# comply/schemas/task.py
from pydantic import validator
from datetime import datetime
from typing import Optional, List

from comply.models.task import TaskStatus, TaskPriority
from comply.schemas.reminder import CamelModel, ReminderIn, ReminderOut
from comply.utils.notifications import normalize_email, unique_emails


class TaskBase(CamelModel):
    heading: str
    description: str = ""
    due_date: datetime
    priority: TaskPriority = TaskPriority.MEDIUM
    category: str = "general"
    notes: str = ""
    people_involved: List[str] = []

    @validator('heading')
    def heading_must_not_be_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Heading is required')
        return v.strip()

    @validator('people_involved')
    def people_must_be_emails(cls, v):
        return unique_emails(v)


class TaskCreate(TaskBase):
    created_by: str
    # Only COMPLETE is honoured; anything else is re-derived from the due date
    status: Optional[TaskStatus] = None
    # None means "use the default reminder schedule"; [] means no reminders
    reminders: Optional[List[ReminderIn]] = None

    @validator('created_by')
    def creator_must_be_email(cls, v):
        return normalize_email(v)


class TaskUpdate(CamelModel):
    heading: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    people_involved: Optional[List[str]] = None
    reminders: Optional[List[ReminderIn]] = None
    # Expected row version; a mismatch is rejected as a concurrent update
    version: Optional[int] = None

    @validator('heading')
    def heading_must_not_be_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Heading cannot be blank')
        return v.strip() if v is not None else v

    @validator('people_involved')
    def people_must_be_emails(cls, v):
        if v is None:
            return v
        return unique_emails(v)


class TaskOut(CamelModel):
    id: str
    heading: str
    description: str
    due_date: datetime
    priority: TaskPriority
    status: TaskStatus
    category: str
    notes: str
    people_involved: List[str] = []
    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    version: int
    reminders: List[ReminderOut] = []


class TaskCreatedOut(TaskOut):
    emails_sent: int = 0


class TaskStats(CamelModel):
    total: int
    completed: int
    overdue: int
    in_progress: int
    upcoming_due_soon: int
