# comply/schemas/reminder.py
from pydantic import BaseModel, validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional

from comply.models.reminder import ReminderKind


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ReminderIn(CamelModel):
    # Existing reminders keep their id (and therefore their sent flag) across edits.
    # Incoming "sent" values are not accepted: only the sweep flips that flag.
    id: Optional[str] = None
    kind: ReminderKind = ReminderKind.EMAIL
    timing: int

    @validator('timing')
    def timing_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('Reminder timing must be at least 1 day before the due date')
        return v


class ReminderOut(CamelModel):
    id: str
    kind: ReminderKind
    timing: int
    sent: bool
    sent_at: Optional[datetime] = None
