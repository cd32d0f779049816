from .reminder import ReminderIn, ReminderOut
from .task import TaskCreate, TaskUpdate, TaskOut, TaskCreatedOut, TaskStats, TaskBase
