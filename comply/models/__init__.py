from .task import Task, TaskStatus, TaskPriority
from .reminder import Reminder, ReminderKind
from .notification import NotificationLog, NotificationKind
