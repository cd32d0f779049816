# comply/models/reminder.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from comply.database import Base
from comply.models.task import new_id
import enum


class ReminderKind(str, enum.Enum):
    EMAIL = "email"


class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(String(32), primary_key=True, default=new_id)
    task_id = Column(String(32), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String, nullable=False, default=ReminderKind.EMAIL.value)
    timing = Column(Integer, nullable=False)  # days before the due date, >= 1
    position = Column(Integer, nullable=False, default=0)

    # Monotonic: only ever flipped false -> true by the sweep's claim
    sent = Column(Boolean, default=False, nullable=False)
    sent_at = Column(DateTime, nullable=True)

    # Relationships
    task = relationship("Task", back_populates="reminders")

    def __repr__(self):
        return f"<Reminder(id={self.id}, task_id={self.task_id}, timing={self.timing}, sent={self.sent})>"
