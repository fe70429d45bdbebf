# walcard/celery_worker.py
from celery import Celery

from walcard.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "walcard",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# Explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "walcard.tasks.inventory",
    "walcard.tasks.sessions",
)

celery_app.conf.beat_schedule = {
    "cleanup-expired-sessions-hourly": {
        "task": "walcard.tasks.sessions.cleanup_expired_sessions_task",
        "schedule": 60.0 * 60,
    },
}

celery_app.conf.timezone = "UTC"
