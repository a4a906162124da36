from celery import Celery

from app.config import settings

celery_client = Celery(
    "import_eval_client",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)


def enqueue_analysis(vehicle_id: str) -> None:
    celery_client.send_task("worker.tasks.analyze_damage", args=[vehicle_id])
