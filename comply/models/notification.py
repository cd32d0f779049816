# comply/models/notification.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Enum
from comply.database import Base
from comply.utils.dates import utcnow
import enum


class NotificationKind(str, enum.Enum):
    CREATED = "created"
    REMINDER = "reminder"
    OVERDUE = "overdue"


class NotificationLog(Base):
    """Audit row written for every dispatch call, successful or not"""

    __tablename__ = "notification_logs"

    id = Column(Integer, primary_key=True, index=True)

    # Plain columns (no FK) so audit rows outlive deleted tasks
    task_id = Column(String(32), nullable=False, index=True)
    reminder_id = Column(String(32), nullable=True)

    recipient_email = Column(String(255), nullable=False)
    kind = Column(Enum(NotificationKind), nullable=False)
    subject = Column(String(255), nullable=False)
    success = Column(Boolean, nullable=False, default=False)
    attempts = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return (
            f"<NotificationLog(id={self.id}, task_id={self.task_id}, "
            f"recipient='{self.recipient_email}', kind='{self.kind}', success={self.success})>"
        )
