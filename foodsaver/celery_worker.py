# foodsaver/celery_worker.py
from celery import Celery

from foodsaver.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    EXPIRE_LISTINGS_INTERVAL_SECONDS,
)

celery_app = Celery(
    "foodsaver",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

#explicit import so celery registers the tasks
celery_app.conf.imports = ("foodsaver.tasks.expire",)

celery_app.conf.beat_schedule = {
    "expire-listings-every-minute": {
        "task": "foodsaver.tasks.expire.expire_listings_task",
        "schedule": EXPIRE_LISTINGS_INTERVAL_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
