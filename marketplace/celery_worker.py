# marketplace/celery_worker.py
from celery import Celery

from marketplace.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    RATING_RECONCILE_SECONDS,
)

celery_app = Celery(
    "marketplace",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "marketplace.tasks.ratings",
    "marketplace.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "reconcile-ratings": {
        "task": "marketplace.tasks.ratings.reconcile_ratings_task",
        "schedule": RATING_RECONCILE_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
