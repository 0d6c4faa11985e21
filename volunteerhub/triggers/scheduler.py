"""Background scheduler for the daily message retention sweep."""

import atexit
import logging

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from firebase_admin import firestore

from .retention import purge_stale_messages

logger = logging.getLogger(__name__)

scheduler = None

RETENTION_JOB_ID = "purge_stale_messages"


def _on_job_error(event):
    logger.error("Scheduled job failed: job_id=%s error=%s", event.job_id, event.exception)


def _on_job_missed(event):
    logger.warning(
        "Scheduled job missed: job_id=%s scheduled_run_time=%s",
        event.job_id,
        event.scheduled_run_time,
    )


def run_retention_job(app):
    """Run one retention sweep inside an application context."""
    with app.app_context():
        return purge_stale_messages(
            firestore.client(), retention_days=app.config["MESSAGE_RETENTION_DAYS"]
        )


def init_scheduler(app):
    """Start the scheduler with the daily 03:00 UTC retention job."""
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return scheduler

    scheduler = BackgroundScheduler(
        timezone="UTC",
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": 3600,
        },
    )
    scheduler.add_job(
        func=run_retention_job,
        args=[app],
        trigger=CronTrigger(hour=3, minute=0),
        id=RETENTION_JOB_ID,
        name="Purge Stale Chat Messages",
        replace_existing=True,
    )
    scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)
    scheduler.add_listener(_on_job_missed, EVENT_JOB_MISSED)

    scheduler.start()
    atexit.register(shutdown_scheduler)
    logger.info("Scheduled job: %s (daily at 03:00 UTC)", RETENTION_JOB_ID)
    return scheduler


def shutdown_scheduler():
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Background scheduler stopped")
