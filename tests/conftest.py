# tests/conftest.py

from datetime import date, datetime, time
from pathlib import Path
from typing import Callable, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from comply.database import Base, build_engine, get_db
from comply.models import TaskPriority, TaskStatus
from comply.schemas import ReminderIn, TaskCreate
from comply.services.email_dispatcher import NotificationDispatcher, get_dispatcher
from comply.services.sweep import ComplianceSweep, get_sweep
from comply.services.task_store import TaskStore

from .fakes import FakeTransport

# Simulated "today" for store and sweep tests
DAY0 = date(2026, 3, 2)
OWNER = "owner@company.com"


def at_noon(day: date) -> datetime:
    return datetime.combine(day, time(12, 0))


@pytest.fixture()
def engine(tmp_path: Path):
    """
    Real SQLite file per test: the dispatcher writes audit rows through its
    own session, exactly as in production.
    """
    engine = build_engine(f"sqlite:///{tmp_path / 'comply.sqlite3'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def store(db) -> TaskStore:
    return TaskStore(db, default_reminder_days=[7, 1])


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def dispatcher(transport, session_factory) -> NotificationDispatcher:
    return NotificationDispatcher(
        transport=transport,
        session_factory=session_factory,
        max_attempts=2,
        retry_delay=0,
    )


@pytest.fixture()
def sweep(dispatcher, session_factory) -> ComplianceSweep:
    return ComplianceSweep(dispatcher, session_factory=session_factory, catch_up=True)


@pytest.fixture()
def make_task(store) -> Callable:
    """Create a task through the store as of DAY0"""

    def _make(
        due: date,
        reminders: Optional[List[int]] = None,
        people: Optional[List[str]] = None,
        heading: str = "GDPR Compliance Audit",
        status: Optional[TaskStatus] = None,
        as_of: date = DAY0,
    ):
        return store.create(
            TaskCreate(
                heading=heading,
                description="Annual GDPR review",
                due_date=at_noon(due),
                priority=TaskPriority.HIGH,
                category="Data Protection",
                people_involved=people if people is not None else ["john.doe@company.com"],
                reminders=None if reminders is None else [ReminderIn(timing=days) for days in reminders],
                created_by=OWNER,
                status=status,
            ),
            as_of=as_of,
        )

    return _make


@pytest.fixture()
def client(session_factory, dispatcher, sweep):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_sweep] = lambda: sweep
    # No context manager: startup events (scheduler, create_all on the real DB) stay off
    yield TestClient(app)
    app.dependency_overrides.clear()
