from celery import Celery
from celery.signals import setup_logging

from app.config import settings
from app.logging_config import configure_logging

celery_app = Celery(
    "import_eval",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.update(
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_time_limit=600,
    task_soft_time_limit=540,
    task_default_queue="default",
)

celery_app.conf.beat_schedule = {
    "watchdog-stuck-analyses": {
        "task": "worker.tasks.watchdog.watchdog_stuck_analyses",
        "schedule": 300.0,
    }
}


@setup_logging.connect
def _setup_logging(**kwargs):
    configure_logging()


celery_app.autodiscover_tasks(["worker.tasks"])
