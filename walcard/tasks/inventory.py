# walcard/tasks/inventory.py
from typing import Any, Dict, List

from walcard.celery_worker import celery_app
from walcard.context import build_context
from walcard.domain.schemas import StockAdjustment
from walcard.utils.logging import get_logger

logger = get_logger(__name__)

MAX_RETRIES = 5


@celery_app.task(
    name="walcard.tasks.inventory.reconcile_inventory_task",
    bind=True,
    max_retries=MAX_RETRIES,
)
def reconcile_inventory_task(self, order_id: str, items: List[Dict[str, Any]]):
    """
    Ponawia zmniejszenie stanow, ktore nie udalo sie przy checkoucie.
    Kolejna proba dostaje tylko pozycje, ktore znowu sie nie udaly.
    """
    adjustments = [StockAdjustment.model_validate(i) for i in items]
    logger.info(f"Reconciling stock for order {order_id}: {len(adjustments)} items")

    ctx = build_context(reconcile=None)
    failed = ctx.inventory_service.decrement(adjustments)

    if failed:
        logger.warning(
            f"Stock reconciliation for order {order_id} still failing "
            f"(attempt {self.request.retries + 1}/{MAX_RETRIES + 1})"
        )
        raise self.retry(
            args=(order_id, [a.model_dump() for a in failed]),
            countdown=30 * 2 ** self.request.retries,
        )

    return {"order_id": order_id, "status": "reconciled"}
