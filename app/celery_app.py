from celery import Celery
from celery.schedules import crontab
from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "bloocube",
    broker=settings.effective_celery_broker_url,
    backend=settings.effective_celery_result_backend,
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
    result_expires=86400,  # 24 hours
    task_routes={
        "app.scraping.tasks.*": {"queue": "maintenance"},
    },
)

# Celery Beat schedule for periodic tasks
celery_app.conf.beat_schedule = {
    "expire-competitor-analyses": {
        "task": "app.scraping.tasks.expire_competitor_analyses",
        "schedule": crontab(minute=0),  # Hourly
    },
    "cleanup-competitor-cache": {
        "task": "app.scraping.tasks.cleanup_competitor_cache",
        "schedule": crontab(minute=30, hour="*/6"),  # Every 6 hours
    },
}

# Auto-discover tasks
celery_app.autodiscover_tasks([
    "app.scraping.tasks",
])
