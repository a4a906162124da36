import logging
from datetime import datetime, timedelta, timezone

from worker.celery_app import celery_app
from app.config import settings
from app.db.session_sync import get_session
from app.models.vehicle import Vehicle

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, queue="maintenance", time_limit=60, soft_time_limit=45)
def watchdog_stuck_analyses(self):
    now = datetime.now(timezone.utc)
    cutoff = now - timedelta(seconds=settings.ANALYSIS_STUCK_AFTER_SECONDS)
    with get_session() as session:
        vehicles = (
            session.query(Vehicle)
            .filter(Vehicle.analysis_status == "analyzing")
            .filter(Vehicle.analysis_started_at.isnot(None))
            .filter(Vehicle.analysis_started_at < cutoff)
            .all()
        )
        for vehicle in vehicles:
            logger.warning("Analysis for vehicle %s stuck since %s", vehicle.id, vehicle.analysis_started_at)
            vehicle.analysis_status = "failed"
            vehicle.analysis_error = "Stuck in analyzing"
            vehicle.analysis_completed_at = now
        session.commit()

    return {"status": "ok", "failed": len(vehicles)}
