from sqlalchemy import Column, Integer, String, DateTime, Enum, Text, JSON
from sqlalchemy.orm import relationship
from comply.database import Base
from comply.utils.dates import utcnow
import enum
import uuid


def new_id() -> str:
    return uuid.uuid4().hex


class TaskStatus(str, enum.Enum):
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"
    OVERDUE = "overdue"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True, default=new_id)
    heading = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")

    # Task properties
    status = Column(Enum(TaskStatus), default=TaskStatus.IN_PROGRESS, nullable=False, index=True)
    priority = Column(Enum(TaskPriority), default=TaskPriority.MEDIUM, nullable=False)
    category = Column(String, nullable=False, default="general")
    notes = Column(Text, nullable=False, default="")

    # Due date is a full timestamp (naive UTC); status compares calendar days only
    due_date = Column(DateTime, nullable=False, index=True)

    # People
    created_by = Column(String, nullable=False, index=True)  # creator email
    people_involved = Column(JSON, nullable=False, default=list)  # normalized emails

    # Set when the overdue alert for the current overdue episode went out
    overdue_alerted_at = Column(DateTime, nullable=True)

    # System dates
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Row version for update-if-unchanged writes
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    reminders = relationship(
        "Reminder",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Reminder.position",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Task(id={self.id}, heading='{self.heading}', status='{self.status}')>"
