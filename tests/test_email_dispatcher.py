# tests/test_email_dispatcher.py

from datetime import datetime, timedelta
from types import SimpleNamespace

from comply.models import NotificationKind, NotificationLog, TaskPriority
from comply.services.email_dispatcher import (
    LogTransport,
    NotificationDispatcher,
    SmtpTransport,
    build_transport,
    render_email,
)
from comply.utils.notifications import cleanup_old_notifications, notification_recipients
from comply.utils.dates import utcnow


def sample_task(**overrides):
    data = dict(
        id="task-1",
        heading="SOX Quarterly Controls Testing",
        description="Test key financial reporting controls",
        due_date=datetime(2026, 3, 9, 12, 0),
        priority=TaskPriority.CRITICAL,
        category="Financial",
        notes="",
        created_by="owner@company.com",
        people_involved=["finance.controller@company.com"],
    )
    data.update(overrides)
    return SimpleNamespace(**data)


def test_subjects_per_kind():
    task = sample_task()
    assert render_email(task, NotificationKind.CREATED)[0] == "New Compliance Task: SOX Quarterly Controls Testing"
    assert render_email(task, NotificationKind.REMINDER)[0] == (
        "Reminder: SOX Quarterly Controls Testing - Due March 09, 2026"
    )
    assert render_email(task, NotificationKind.OVERDUE)[0] == "OVERDUE: SOX Quarterly Controls Testing"


def test_overdue_body_carries_urgency_marker():
    task = sample_task()
    _, overdue = render_email(task, NotificationKind.OVERDUE)
    _, reminder = render_email(task, NotificationKind.REMINDER)

    assert "URGENT" in overdue
    assert "URGENT" not in reminder
    assert "CRITICAL" in overdue


def test_body_escapes_user_text():
    task = sample_task(heading="Vendor <script> review", notes="A & B")
    _, body = render_email(task, NotificationKind.CREATED)

    assert "<script>" not in body
    assert "Vendor &lt;script&gt; review" in body
    assert "A &amp; B" in body


def test_recipients_creator_first_and_deduplicated():
    task = sample_task(people_involved=["a@company.com", "OWNER@company.com", "a@company.com"])
    assert notification_recipients(task) == ["owner@company.com", "a@company.com"]


def test_transient_failure_is_retried(dispatcher, transport, session_factory):
    transport.fail_times["owner@company.com"] = 1

    assert dispatcher.send(sample_task(), "owner@company.com", NotificationKind.CREATED) is True

    db = session_factory()
    try:
        log = db.query(NotificationLog).one()
        assert log.success is True
        assert log.attempts == 2
        assert log.error is None
    finally:
        db.close()


def test_gives_up_after_max_attempts(dispatcher, transport, session_factory):
    transport.always_fail.add("owner@company.com")

    assert dispatcher.send(sample_task(), "owner@company.com", NotificationKind.OVERDUE) is False
    assert transport.calls == 2

    db = session_factory()
    try:
        log = db.query(NotificationLog).one()
        assert log.success is False
        assert log.kind == NotificationKind.OVERDUE
        assert "ConnectionError" in log.error
    finally:
        db.close()


def test_retry_waits_between_attempts(transport, session_factory):
    waits = []
    dispatcher = NotificationDispatcher(
        transport=transport,
        session_factory=session_factory,
        max_attempts=3,
        retry_delay=1.5,
        sleep=waits.append,
    )
    transport.always_fail.add("owner@company.com")

    dispatcher.send(sample_task(), "owner@company.com", NotificationKind.REMINDER)

    # No wait after the last attempt
    assert waits == [1.5, 1.5]


def test_dispatch_writes_one_log_row_per_recipient(dispatcher, transport, session_factory):
    transport.always_fail.add("finance.controller@company.com")

    result = dispatcher.notify_created(sample_task())

    assert result.sent == ["owner@company.com"]
    assert result.failed == ["finance.controller@company.com"]
    db = session_factory()
    try:
        assert db.query(NotificationLog).count() == 2
    finally:
        db.close()


def test_cleanup_purges_only_old_logs(dispatcher, session_factory):
    dispatcher.notify_created(sample_task())

    db = session_factory()
    try:
        old = db.query(NotificationLog).first()
        old.created_at = utcnow() - timedelta(days=120)
        db.commit()
    finally:
        db.close()

    assert cleanup_old_notifications(session_factory, retention_days=90) == 1

    db = session_factory()
    try:
        assert db.query(NotificationLog).count() == 1
    finally:
        db.close()


def test_transport_selection():
    disabled = dict(enabled=False, smtp_host="smtp.company.com")
    assert isinstance(build_transport(disabled), LogTransport)

    unconfigured = dict(enabled=True, smtp_host="")
    assert isinstance(build_transport(unconfigured), LogTransport)

    configured = dict(
        enabled=True,
        smtp_host="smtp.company.com",
        smtp_port=2525,
        smtp_user="mailer",
        smtp_password="secret",
        use_tls=False,
        timeout=5.0,
        from_address="compliance@company.com",
    )
    transport = build_transport(configured)
    assert isinstance(transport, SmtpTransport)
    assert transport.port == 2525
    assert transport.timeout == 5.0
