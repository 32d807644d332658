"""Celery application configuration and beat schedule."""

from celery import Celery
from celery.schedules import crontab

from ishimport.config import get_settings

settings = get_settings()

celery_app = Celery(
    "ishimport",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "ishimport.tasks.import_tasks",
        "ishimport.tasks.maintenance_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Tashkent",
    task_track_started=True,
    task_time_limit=3600,
    task_soft_time_limit=3300,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "import-osonish": {
        "task": "ishimport.tasks.import_tasks.run_source_import",
        "schedule": crontab(minute=0, hour="*/6"),
        "args": ("osonish",),
    },
    "sync-geo-references": {
        "task": "ishimport.tasks.import_tasks.sync_geo_references",
        "schedule": crontab(minute=30, hour=2),
        "args": ("osonish",),
    },
    "reclassify-job-categories": {
        "task": "ishimport.tasks.maintenance_tasks.reclassify_job_categories",
        "schedule": crontab(minute=0, hour=3),
    },
}
