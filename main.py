from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from comply.config.settings import AppConfig
from comply.database import Base, engine
from comply.logging_setup import configure_logging
from comply.routers import tasks, dashboard
from comply.services.scheduler import TaskScheduler
from comply.services.sweep import ComplianceSweep, get_sweep
from comply.utils.dates import utcnow
from comply.utils.notifications import cleanup_old_notifications

logger = logging.getLogger(__name__)

app = FastAPI(title="Comply Scheduler API")

# Owned by this module: jobs are registered on startup, not at import time of the job code
task_scheduler = TaskScheduler(timezone=AppConfig.TIMEZONE)

app.add_middleware(
    CORSMiddleware,
    allow_origins=AppConfig.SERVER["cors_origins"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Route registration
app.include_router(tasks.router, tags=["Tasks"])
app.include_router(dashboard.router, tags=["Dashboard"])


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Create tables and start the daily compliance jobs"""
    configure_logging()
    logger.info("Starting Comply Scheduler API...")
    Base.metadata.create_all(bind=engine)

    sweep = get_sweep()
    task_scheduler.register_daily_job(
        sweep.run_scheduled,
        hour=AppConfig.SCHEDULER["sweep_hour"],
        minute=AppConfig.SCHEDULER["sweep_minute"],
        job_id="daily_compliance_sweep",
        name="Daily Compliance Sweep",
    )
    task_scheduler.register_daily_job(
        cleanup_old_notifications,
        hour=0,
        minute=0,
        job_id="cleanup_notification_logs",
        name="Cleanup Old Notification Logs",
    )
    task_scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the scheduler when the application shuts down"""
    logger.info("Shutting down Comply Scheduler API...")
    task_scheduler.stop()


# Root route
@app.get("/")
def read_root():
    return {"message": "Comply Scheduler API"}


@app.get("/health")
def health():
    return {"status": "ok", "timestamp": utcnow().isoformat()}


@app.get("/scheduler/status")
def get_scheduler_status(sweep: ComplianceSweep = Depends(get_sweep)):
    """Get scheduler status, job information and the last sweep summary"""
    status = task_scheduler.get_scheduler_status()
    status["sweep_running"] = sweep.is_running
    status["last_sweep"] = sweep.last_summary.to_dict() if sweep.last_summary else None
    return status


@app.post("/scheduler/trigger/sweep")
def trigger_sweep(sweep: ComplianceSweep = Depends(get_sweep)):
    """Manually run the compliance sweep for today"""
    try:
        summary = sweep.run()
    except Exception as e:
        logger.exception("Manual compliance sweep failed")
        return JSONResponse(status_code=500, content={"error": f"Failed to run compliance sweep: {str(e)}"})

    if summary is None:
        return JSONResponse(status_code=409, content={"error": "A compliance sweep is already running"})
    return {"message": "Compliance sweep completed", "summary": summary.to_dict()}
