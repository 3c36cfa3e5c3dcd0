from celery import Celery

from parkmate.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "parkmate",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["parkmate.workers.tasks.automation"],
)

celery_app.conf.update(
    task_default_queue="q_sms",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=settings.app_timezone,
    enable_utc=True,
)


@celery_app.task(name="parkmate.workers.celery_app.ping")
def ping() -> str:
    return "pong"
