import logging
from datetime import datetime, timezone

from botocore.exceptions import BotoCoreError, ClientError

from worker.celery_app import celery_app
from app.config import settings
from app.db.session_sync import get_session
from app.models.vehicle import Vehicle
from app.services.settings_store import get_exchange_rate_sync
from app.services.storage import guess_content_type, storage_client
from worker.damage import (
    DamageDescriber,
    DamageReportError,
    DescriberError,
    DescriberImage,
    EconomicBands,
    normalize_damage_report,
    reconcile_severity,
)

logger = logging.getLogger(__name__)


def load_photos(photo_keys: list[str], limit: int) -> list[DescriberImage]:
    images = []
    for key in photo_keys[:limit]:
        data, content_type = storage_client.download_object(key)
        images.append(DescriberImage(data=data, content_type=content_type or guess_content_type(key)))
    return images


def _mark_failed(session, vehicle: Vehicle, message: str) -> None:
    vehicle.analysis_status = "failed"
    vehicle.analysis_error = message
    vehicle.analysis_retry_count = (vehicle.analysis_retry_count or 0) + 1
    vehicle.analysis_completed_at = datetime.now(timezone.utc)
    session.commit()


@celery_app.task(
    bind=True,
    name="worker.tasks.analyze_damage",
    max_retries=2,
    queue="analysis",
    time_limit=600,
    soft_time_limit=540,
)
def analyze_damage(self, vehicle_id: str):
    with get_session() as session:
        vehicle = session.get(Vehicle, vehicle_id)
        if not vehicle:
            return {"status": "missing", "vehicle_id": vehicle_id}

        photo_keys = list(vehicle.photo_keys or [])
        if not photo_keys:
            _mark_failed(session, vehicle, "Keine Fotos für die Analyse vorhanden")
            return {"status": "failed", "vehicle_id": vehicle_id}

        vehicle.analysis_status = "analyzing"
        vehicle.analysis_error = None
        vehicle.analysis_started_at = datetime.now(timezone.utc)
        session.commit()

        rate = get_exchange_rate_sync(session)
        try:
            images = load_photos(photo_keys, settings.DESCRIBER_MAX_IMAGES)
            result = DamageDescriber().describe(images, rate)
        except (DescriberError, ClientError, BotoCoreError) as exc:
            logger.warning("Describer call for vehicle %s failed: %s", vehicle_id, exc)
            _mark_failed(session, vehicle, str(exc))
            raise self.retry(exc=exc, countdown=120)

        logger.info(
            "Describer answered for vehicle %s with %s after %s attempt(s) in %sms",
            vehicle_id,
            result.model,
            result.attempts,
            result.duration_ms,
        )

        try:
            report = normalize_damage_report(
                result.text, rate=rate, model=result.model, photos_analyzed=len(images)
            )
        except DamageReportError as exc:
            # the same answer would fail again, so no retry
            logger.error("Unusable describer response for vehicle %s: %s", vehicle_id, exc)
            _mark_failed(session, vehicle, str(exc))
            return {"status": "failed", "vehicle_id": vehicle_id, "error": type(exc).__name__}

        report = reconcile_severity(report, EconomicBands.from_settings(settings))
        report = report.model_copy(update={"created_at": datetime.now(timezone.utc)})

        vehicle.ai_damage_report = report.model_dump(mode="json")
        vehicle.analysis_status = "done"
        vehicle.analysis_completed_at = datetime.now(timezone.utc)
        session.commit()

    return {"status": "done", "vehicle_id": vehicle_id}
