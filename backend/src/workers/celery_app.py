"""Celery application setup.

Workers and the API share the broker and result backend configured in
settings. Periodic education organization refreshes are driven by Celery
beat when EDORG_REFRESH_INTERVAL_MINUTES is set.
"""

from celery import Celery

from config import get_settings
from jobs.scheduler import build_beat_schedule

settings = get_settings()

celery_app = Celery(
    "edfi_admin_api",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["edorgs.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    beat_schedule=build_beat_schedule(settings),
)
