"""
Demo compliance tasks for the Comply Scheduler
Creates tables and loads a realistic set of tasks through the task store
"""

from datetime import timedelta

from comply.database import SessionLocal
from comply.models import TaskPriority, TaskStatus
from comply.schemas import ReminderIn, TaskCreate
from comply.services.task_store import TaskStore
from comply.utils.dates import utcnow
from create_tables import create_tables

DEMO_OWNER = "compliance.lead@company.com"

# Structure: heading, description, category, priority, days until due, people involved, reminder days, status
DEMO_TASKS = [
    {
        "heading": "GDPR Compliance Audit",
        "description": "Annual GDPR compliance review and documentation update",
        "category": "Data Protection",
        "priority": TaskPriority.HIGH,
        "due_in_days": 5,
        "people_involved": ["john.doe@company.com", "jane.smith@company.com"],
        "reminders": [7, 1],
        "notes": "Focus on data processing agreements and consent mechanisms",
    },
    {
        "heading": "SOX Quarterly Controls Testing",
        "description": "Test key financial reporting controls for the quarter",
        "category": "Financial",
        "priority": TaskPriority.CRITICAL,
        "due_in_days": 2,
        "people_involved": ["finance.controller@company.com"],
        "reminders": [3, 1],
        "notes": "",
    },
    {
        "heading": "Fire Safety Inspection",
        "description": "Coordinate annual fire safety inspection for the main office",
        "category": "Health & Safety",
        "priority": TaskPriority.MEDIUM,
        "due_in_days": -3,
        "people_involved": ["facilities@company.com"],
        "reminders": [7],
        "notes": "Inspector contact is in the facilities shared drive",
    },
    {
        "heading": "Renew ISO 27001 Certificate",
        "description": "Prepare evidence pack for the surveillance audit",
        "category": "Information Security",
        "priority": TaskPriority.HIGH,
        "due_in_days": 30,
        "people_involved": ["security.officer@company.com", "it.ops@company.com"],
        "reminders": [14, 7, 1],
        "notes": "",
    },
    {
        "heading": "Anti-Bribery Training Sign-off",
        "description": "Collect training completion sign-offs from all managers",
        "category": "Ethics",
        "priority": TaskPriority.LOW,
        "due_in_days": -10,
        "people_involved": ["hr.team@company.com"],
        "reminders": [],
        "notes": "",
        "status": TaskStatus.COMPLETE,
    },
]


def seed_tasks():
    db = SessionLocal()
    try:
        store = TaskStore(db)
        now = utcnow()
        for item in DEMO_TASKS:
            task = store.create(TaskCreate(
                heading=item["heading"],
                description=item["description"],
                category=item["category"],
                priority=item["priority"],
                due_date=now + timedelta(days=item["due_in_days"]),
                people_involved=item["people_involved"],
                reminders=[ReminderIn(timing=days) for days in item["reminders"]],
                notes=item["notes"],
                status=item.get("status"),
                created_by=DEMO_OWNER,
            ))
            print(f"✅ {task.heading} ({task.status.value}, due {task.due_date.date()})")
    finally:
        db.close()


if __name__ == "__main__":
    create_tables()
    seed_tasks()
    print(f"\nSeeded {len(DEMO_TASKS)} demo tasks for {DEMO_OWNER}")
