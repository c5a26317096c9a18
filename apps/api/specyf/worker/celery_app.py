from celery import Celery
from celery.schedules import crontab

from specyf.core.config import settings

celery_app = Celery(
    "specyf",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["specyf.worker.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_always_eager=settings.celery_task_always_eager,
    task_eager_propagates=True,
    beat_schedule={
        "send-due-reminders": {
            "task": "send_due_reminders",
            "schedule": crontab(minute=0),
        },
    },
)
