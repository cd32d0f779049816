# comply/utils/notifications.py
"""
Utility functions for addressing and auditing task notifications
"""

import logging
from sqlalchemy.orm import Session
from comply.config.settings import AppConfig
from comply.database import SessionLocal
from comply.models import NotificationLog, NotificationKind
from comply.utils.dates import utcnow
from typing import Callable, Iterable, List, Optional
from datetime import timedelta

logger = logging.getLogger(__name__)


def normalize_email(value: str) -> str:
    """
    Trim and lower-case an email address.

    Raises:
        ValueError: if the value does not look like an address
    """
    email = (value or "").strip().lower()
    local, sep, domain = email.partition("@")
    if not sep or not local or not domain or "@" in domain or " " in email:
        raise ValueError(f"Invalid email address: {value!r}")
    return email


def unique_emails(values: Iterable[str]) -> List[str]:
    """Normalize addresses and drop duplicates, keeping first-seen order"""
    seen = set()
    result = []
    for value in values:
        email = normalize_email(value)
        if email not in seen:
            seen.add(email)
            result.append(email)
    return result


def notification_recipients(task) -> List[str]:
    """
    Everyone who should hear about a task: the creator first, then the people
    involved, deduplicated by normalized address.
    """
    candidates = []
    if task.created_by:
        candidates.append(task.created_by)
    candidates.extend(task.people_involved or [])
    return unique_emails(candidates)


def create_notification_log(
    db: Session,
    task_id: str,
    recipient_email: str,
    kind: NotificationKind,
    subject: str,
    success: bool,
    attempts: int,
    error: Optional[str] = None,
    reminder_id: Optional[str] = None,
) -> NotificationLog:
    """
    Persist one audit row for a dispatch call

    Args:
        db: Database session (committed here)
        task_id: Task the email was about
        recipient_email: Address the email was sent to
        kind: created / reminder / overdue
        subject: Rendered subject line
        success: Whether the transport accepted the message
        attempts: Number of transport attempts made
        error: Last transport error, if any
        reminder_id: Reminder that triggered the email, for reminder kinds

    Returns:
        Created log row
    """
    log = NotificationLog(
        task_id=task_id,
        reminder_id=reminder_id,
        recipient_email=recipient_email,
        kind=kind,
        subject=subject[:255],
        success=success,
        attempts=attempts,
        error=error,
    )

    db.add(log)
    db.commit()
    db.refresh(log)

    return log


def purge_old_notification_logs(db: Session, retention_days: int) -> int:
    """Delete audit rows older than ``retention_days``; returns the number removed"""
    cutoff = utcnow() - timedelta(days=retention_days)
    count = db.query(NotificationLog).filter(
        NotificationLog.created_at < cutoff
    ).delete(synchronize_session=False)
    db.commit()
    return count


def cleanup_old_notifications(session_factory: Callable = SessionLocal, retention_days: Optional[int] = None) -> int:
    """Daily job body: purge notification audit rows past the retention window"""
    if retention_days is None:
        retention_days = AppConfig.SCHEDULER["log_retention_days"]
    db = session_factory()
    try:
        count = purge_old_notification_logs(db, retention_days)
        logger.info(f"Cleaned up {count} notification logs older than {retention_days} days")
        return count
    finally:
        db.close()
