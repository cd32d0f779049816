# tests/fakes.py

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from sqlalchemy.exc import OperationalError

from comply.client.api import ApiError
from comply.schemas import TaskOut, TaskUpdate
from comply.services.email_dispatcher import EmailTransport


@dataclass
class SentEmail:
    recipient: str
    subject: str
    html: str


@dataclass
class FakeTransport(EmailTransport):
    """
    Records every delivered email.

    - ``always_fail``: recipients whose sends always raise
    - ``fail_times``: recipient -> number of failures before a send succeeds
    """

    sent: List[SentEmail] = field(default_factory=list)
    always_fail: Set[str] = field(default_factory=set)
    fail_times: Dict[str, int] = field(default_factory=dict)
    calls: int = 0

    def send(self, recipient: str, subject: str, html_body: str) -> None:
        self.calls += 1
        if recipient in self.always_fail:
            raise ConnectionError(f"SMTP refused {recipient}")
        if self.fail_times.get(recipient, 0) > 0:
            self.fail_times[recipient] -= 1
            raise TimeoutError("SMTP timed out")
        self.sent.append(SentEmail(recipient=recipient, subject=subject, html=html_body))

    def subjects(self) -> List[str]:
        return [email.subject for email in self.sent]

    def to(self, prefix: str) -> List[SentEmail]:
        return [email for email in self.sent if email.subject.startswith(prefix)]


class FakeTaskApi:
    """In-memory stand-in for TaskApiClient used by sync client tests"""

    def __init__(self, tasks: List[TaskOut]):
        self.tasks = {task.id: task for task in tasks}
        self.down = False
        self.list_calls = 0
        self.updates: List[tuple] = []
        self.deleted: List[str] = []

    def list_tasks(self, created_by: Optional[str] = None) -> List[TaskOut]:
        self.list_calls += 1
        if self.down:
            raise ApiError(None, "Could not reach task API: connection refused")
        return list(self.tasks.values())

    def update_task(self, task_id: str, payload: TaskUpdate) -> TaskOut:
        self.updates.append((task_id, payload))
        task = self.tasks[task_id]
        if payload.status is not None:
            task = task.model_copy(update={"status": payload.status, "version": task.version + 1})
            self.tasks[task_id] = task
        return task

    def delete_task(self, task_id: str) -> None:
        self.deleted.append(task_id)
        del self.tasks[task_id]


class UnreachableSession:
    """Session whose database cannot be reached"""

    def query(self, *entities):
        raise OperationalError("SELECT tasks", {}, Exception("could not connect to server"))
