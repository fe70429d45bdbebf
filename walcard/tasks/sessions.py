# walcard/tasks/sessions.py
from walcard.celery_worker import celery_app
from walcard.context import build_context
from walcard.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="walcard.tasks.sessions.cleanup_expired_sessions_task")
def cleanup_expired_sessions_task():
    logger.info("Expired sessions cleanup started")

    ctx = build_context(reconcile=None)
    count = ctx.session_service.cleanup_expired_sessions()

    return {"marked_used": count}
