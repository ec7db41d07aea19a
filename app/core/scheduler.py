"""Background job scheduler for the overdue-departure monitor."""
import logging
from datetime import UTC, datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import Session

from app.core.config import settings
from app.core.database import engine
from app.fleet.reconciler import Trip, reconcile
from app.fleet.store import snapshot_checklists

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def find_overdue_trips(session: Session, now: datetime | None = None) -> list[Trip]:
    """In-transit trips whose departure is older than the configured limit."""
    now = now or datetime.now(UTC)
    trips = reconcile(snapshot_checklists(session))
    return [t for t in trips if t.is_overdue(now, settings.overdue_after_hours)]


def overdue_check_job():
    """Log a warning for every departure still in transit past the limit."""
    try:
        with Session(engine) as session:
            overdue = find_overdue_trips(session)
        for trip in overdue:
            logger.warning(
                f"Vehicle {trip.vehicle_plate} in transit since "
                f"{trip.latest_timestamp.isoformat()} "
                f"(over {settings.overdue_after_hours}h without arrival checklist)"
            )
        logger.info(f"Overdue check completed: {len(overdue)} overdue departures")
    except Exception as e:
        logger.error(f"Overdue check failed: {e}")


def start_scheduler():
    """Start the background scheduler."""
    if settings.overdue_after_hours <= 0:
        logger.info("Overdue departure monitor disabled")
        return

    scheduler.add_job(
        overdue_check_job,
        trigger=IntervalTrigger(minutes=settings.overdue_check_interval_minutes),
        id="overdue_check",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, checking overdue departures every "
        f"{settings.overdue_check_interval_minutes} minutes"
    )


def shutdown_scheduler():
    """Graceful shutdown."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
