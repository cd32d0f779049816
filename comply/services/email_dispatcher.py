# comply/services/email_dispatcher.py
"""
Email notifications for tasks: templates, transports and the dispatcher.

The dispatcher sends one email per call and records one audit row per
call. Fan-out over recipients and the decision *whether* to send belong to
the callers (task creation, the sweep); ``dispatch`` only guarantees that a
failure for one recipient never stops the others.
"""

import html
import logging
import smtplib
import time
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from comply.config.settings import AppConfig
from comply.database import SessionLocal
from comply.models import NotificationKind
from comply.utils.dates import date_only
from comply.utils.notifications import create_notification_log, notification_recipients

logger = logging.getLogger(__name__)


# Transports

class EmailTransport:
    """Delivers one (recipient, subject, html) message; raises on failure"""

    def send(self, recipient: str, subject: str, html_body: str) -> None:
        raise NotImplementedError


class SmtpTransport(EmailTransport):
    def __init__(
        self,
        host: str,
        port: int = 587,
        user: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
        from_address: str = "noreply@comply.local",
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.from_address = from_address

    def send(self, recipient: str, subject: str, html_body: str) -> None:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.from_address
        message["To"] = recipient
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(html_body, subtype="html")

        # The timeout bounds every socket operation, so a stuck server cannot stall the sweep
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)


class LogTransport(EmailTransport):
    """Used when email is disabled or SMTP is not configured"""

    def send(self, recipient: str, subject: str, html_body: str) -> None:
        logger.info(f"[email disabled] to={recipient} subject={subject!r}")


def build_transport(config: Optional[Dict] = None) -> EmailTransport:
    config = config or AppConfig.EMAIL
    if not config["enabled"]:
        logger.info("Email notifications disabled; using log transport")
        return LogTransport()
    if not config["smtp_host"]:
        logger.warning("SMTP_HOST not set; emails will only be logged")
        return LogTransport()
    return SmtpTransport(
        host=config["smtp_host"],
        port=config["smtp_port"],
        user=config["smtp_user"],
        password=config["smtp_password"],
        use_tls=config["use_tls"],
        timeout=config["timeout"],
        from_address=config["from_address"],
    )


# Templates

def _value(obj) -> str:
    return obj.value if hasattr(obj, "value") else str(obj)


def render_email(task, kind: NotificationKind) -> Tuple[str, str]:
    """Subject and HTML body for a task notification of the given kind"""
    kind = NotificationKind(kind)
    heading = task.heading
    due = date_only(task.due_date).strftime("%B %d, %Y")
    priority = _value(task.priority).upper()

    if kind == NotificationKind.CREATED:
        subject = f"New Compliance Task: {heading}"
        title = "New Compliance Task Assigned"
        footer = ""
    elif kind == NotificationKind.REMINDER:
        subject = f"Reminder: {heading} - Due {due}"
        title = "Task Reminder"
        footer = "<p>This task is due soon. Please ensure completion on time.</p>"
    else:
        subject = f"OVERDUE: {heading}"
        title = "Overdue Task Alert"
        footer = (
            '<p style="color: #dc2626;"><strong>URGENT: This task is overdue and '
            "requires immediate attention.</strong></p>"
        )

    esc = html.escape
    notes = f"<p><strong>Notes:</strong> {esc(task.notes)}</p>" if task.notes else ""
    body = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #2563eb;">{esc(title)}</h2>
        <div style="background: #f8fafc; padding: 20px; border-radius: 8px; margin: 20px 0;">
          <h3>{esc(heading)}</h3>
          <p><strong>Description:</strong> {esc(task.description or "")}</p>
          <p><strong>Due Date:</strong> {esc(due)}</p>
          <p><strong>Priority:</strong> {esc(priority)}</p>
          <p><strong>Category:</strong> {esc(task.category or "")}</p>
          {notes}
        </div>
        {footer}
        <p style="color: #64748b;">This is an automated message from Comply Smart Compliance Scheduler.</p>
      </div>
    """
    return subject, body


# Dispatcher

@dataclass
class DispatchResult:
    sent: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def sent_count(self) -> int:
        return len(self.sent)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


class NotificationDispatcher:
    """Sends task emails through a transport with bounded retries and an audit trail"""

    def __init__(
        self,
        transport: Optional[EmailTransport] = None,
        session_factory: Callable = SessionLocal,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport or build_transport()
        self.session_factory = session_factory
        self.max_attempts = max(1, max_attempts if max_attempts is not None else AppConfig.EMAIL["max_attempts"])
        self.retry_delay = retry_delay if retry_delay is not None else AppConfig.EMAIL["retry_delay"]
        self.sleep = sleep

    def send(self, task, recipient: str, kind: NotificationKind, reminder=None) -> bool:
        """
        Send one email; returns True on success. Never raises for transport errors.

        Retries are folded into a single NotificationLog row: ``attempts`` counts
        the transport tries and ``error`` keeps the last failure.
        """
        subject, body = render_email(task, kind)
        attempts = 0
        last_error = None

        while attempts < self.max_attempts:
            attempts += 1
            try:
                self.transport.send(recipient, subject, body)
                last_error = None
                break
            except Exception as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.warning(
                    f"Email attempt {attempts}/{self.max_attempts} to {recipient} "
                    f"for task {task.id} failed: {last_error}"
                )
                if attempts < self.max_attempts and self.retry_delay:
                    self.sleep(self.retry_delay)

        success = last_error is None
        if success:
            logger.info(f"Sent {NotificationKind(kind).value} email to {recipient} for task {task.id}")
        else:
            logger.error(f"Giving up on {NotificationKind(kind).value} email to {recipient} for task {task.id}")

        self._record(task, recipient, kind, subject, success, attempts, last_error, reminder)
        return success

    def dispatch(self, task, recipients: List[str], kind: NotificationKind, reminder=None) -> DispatchResult:
        """One ``send`` per recipient; failures are collected, not raised"""
        result = DispatchResult()
        for recipient in recipients:
            if self.send(task, recipient, kind, reminder=reminder):
                result.sent.append(recipient)
            else:
                result.failed.append(recipient)
        return result

    def notify_created(self, task) -> DispatchResult:
        return self.dispatch(task, notification_recipients(task), NotificationKind.CREATED)

    def notify_reminder(self, task, reminder) -> DispatchResult:
        return self.dispatch(task, notification_recipients(task), NotificationKind.REMINDER, reminder=reminder)

    def notify_overdue(self, task) -> DispatchResult:
        return self.dispatch(task, notification_recipients(task), NotificationKind.OVERDUE)

    def _record(self, task, recipient, kind, subject, success, attempts, error, reminder) -> None:
        db = self.session_factory()
        try:
            create_notification_log(
                db=db,
                task_id=task.id,
                recipient_email=recipient,
                kind=NotificationKind(kind),
                subject=subject,
                success=success,
                attempts=attempts,
                error=error,
                reminder_id=reminder.id if reminder is not None else None,
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Could not record notification log for task {task.id}: {e}")
        finally:
            db.close()


# Process-wide dispatcher; FastAPI routes take it via Depends so tests can override it
_dispatcher: Optional[NotificationDispatcher] = None


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher
