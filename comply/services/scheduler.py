# comply/services/scheduler.py
"""
Scheduler service for the daily compliance sweep and other periodic jobs.

Jobs are registered explicitly by startup code; job bodies never import
APScheduler, so they can be called directly in tests.
"""

import logging
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from comply.utils.dates import get_timezone

logger = logging.getLogger(__name__)


class TaskScheduler:
    """Thin wrapper over an APScheduler scheduler with daily/interval registration"""

    def __init__(self, scheduler=None, timezone: Optional[str] = None):
        self.timezone = get_timezone(timezone)
        self.scheduler = scheduler or AsyncIOScheduler(timezone=self.timezone)
        self.is_running = False

    def register_daily_job(
        self,
        func: Callable[[], Any],
        hour: int = 9,
        minute: int = 0,
        job_id: Optional[str] = None,
        name: Optional[str] = None,
    ):
        """Run ``func`` once a day at hour:minute; a run still in progress makes the next tick skip"""
        job_id = job_id or getattr(func, "__name__", "daily_job")
        job = self.scheduler.add_job(
            func,
            trigger=CronTrigger(hour=hour, minute=minute, timezone=self.timezone),
            id=job_id,
            name=name or job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )
        logger.info(f"Registered daily job '{job_id}' at {hour:02d}:{minute:02d} {self.timezone.zone}")
        return job

    def register_interval_job(
        self,
        func: Callable[[], Any],
        seconds: int,
        job_id: Optional[str] = None,
        name: Optional[str] = None,
    ):
        job_id = job_id or getattr(func, "__name__", "interval_job")
        job = self.scheduler.add_job(
            func,
            trigger=IntervalTrigger(seconds=seconds, timezone=self.timezone),
            id=job_id,
            name=name or job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Registered interval job '{job_id}' every {seconds}s")
        return job

    def start(self):
        """Start the scheduler"""
        if not self.is_running:
            self.scheduler.start()
            self.is_running = True
            logger.info("Task scheduler started successfully")

    def stop(self):
        """Stop the scheduler"""
        if self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Task scheduler stopped")

    def get_scheduler_status(self) -> Dict[str, Any]:
        """Get scheduler status and job information"""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": next_run.isoformat() if next_run else None,
                "trigger": str(job.trigger),
            })

        return {
            "status": "running" if self.is_running else "stopped",
            "jobs": jobs,
        }
