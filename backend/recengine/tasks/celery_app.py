"""Celery application configuration and beat schedule."""

from celery import Celery
from celery.schedules import crontab

from recengine.config import get_settings

settings = get_settings()

celery_app = Celery(
    "recengine",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "recengine.tasks.score_tasks",
        "recengine.tasks.profile_tasks",
        "recengine.tasks.recommendation_tasks",
        "recengine.tasks.maintenance_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    task_track_started=True,
    task_time_limit=600,
    task_soft_time_limit=540,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "refresh-product-scores": {
        "task": "recengine.tasks.score_tasks.refresh_product_scores",
        "schedule": crontab(minute="*/15"),
    },
    "update-active-user-preferences": {
        "task": "recengine.tasks.profile_tasks.update_active_user_preferences",
        "schedule": crontab(minute="*/30"),
    },
    "pregenerate-recommendations": {
        "task": "recengine.tasks.recommendation_tasks.pregenerate_recommendations",
        "schedule": crontab(minute="*/15"),
    },
    "clean-expired-recommendations": {
        "task": "recengine.tasks.maintenance_tasks.clean_expired_recommendations",
        "schedule": crontab(minute=0),
    },
}
