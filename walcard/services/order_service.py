# walcard/services/order_service.py
from decimal import Decimal
from typing import Callable, List

from walcard.domain import messages
from walcard.domain.errors import RemoteError
from walcard.domain.schemas import (
    ActionResult,
    CartItemDetails,
    Order,
    OrderItem,
    OrderResult,
    OrderStatus,
    StockAdjustment,
    UserSession,
)
from walcard.repos.order_repo import OrderRepo
from walcard.services.inventory_service import InventoryService
from walcard.services.session_service import SessionService
from walcard.utils.logging import get_logger

logger = get_logger(__name__)

ReconcileHook = Callable[[str, List[StockAdjustment]], None]

CANCELLABLE = (OrderStatus.PENDING, OrderStatus.CONFIRMED)


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Koszyk (CartService) waliduje i czysci lokalny stan, tutaj sa zapisy na serwerze.
    """

    def __init__(
        self,
        order_repo: OrderRepo,
        inventory_service: InventoryService,
        session_service: SessionService,
        reconcile: ReconcileHook | None = None,
    ):
        self.repo = order_repo
        self.inventory = inventory_service
        self.session_service = session_service
        self.reconcile = reconcile

    # =====================================================
    # COMMANDS
    # =====================================================
    def place_order(
        self,
        user: UserSession,
        items: List[CartItemDetails],
        notes: str | None = None,
    ) -> OrderResult:
        """
        Use Case: zapis zamowienia z juz zwalidowanego koszyka.

        1. Zamowienie (pending) - blad = brak efektow ubocznych
        2. Pozycje z cena z chwili zakupu - blad = usuniecie osieroconego zamowienia
        3. Zmniejszenie stanow - blad tylko logowany i kolejkowany do ponowienia
        """
        total = sum((i.line_total for i in items), Decimal("0"))

        try:
            order = self.repo.create_order(user.user_id, total, notes)
        except RemoteError as e:
            logger.error(f"Error creating order for user {user.user_id}: {e}")
            return OrderResult(success=False, message=messages.ORDER_CREATE_FAILED)

        logger.info(f"Order {order.id} created, total {total}")

        order_items = [
            OrderItem(
                order_id=order.id,
                product_id=i.product_id,
                quantity=i.quantity,
                price_at_order=i.product.unit_price,
            )
            for i in items
        ]

        try:
            self.repo.create_order_items(order_items)
        except RemoteError as e:
            logger.error(f"Error creating items for order {order.id}: {e}")
            self._discard_order(order.id)
            return OrderResult(success=False, message=messages.ORDER_ITEMS_FAILED)

        logger.info(f"Order {order.id}: {len(order_items)} items created")

        adjustments = [StockAdjustment(product_id=i.product_id, quantity=i.quantity) for i in items]
        failed = self.inventory.decrement(adjustments)
        if failed:
            logger.warning(
                f"Order {order.id} created but stock update failed for "
                f"{[a.product_id for a in failed]}"
            )
            self._queue_reconciliation(order.id, failed)

        return OrderResult(success=True, message=messages.ORDER_CREATED, order_id=order.id)

    def _discard_order(self, order_id: str) -> None:
        # kompensacja: zamowienie bez pozycji nie moze zostac jako pending
        try:
            self.repo.delete_order(order_id)
            logger.info(f"Orphaned order {order_id} deleted")
            return
        except RemoteError as e:
            logger.error(f"Cannot delete orphaned order {order_id}: {e}")

        try:
            self.repo.update_order_status(order_id, OrderStatus.CANCELLED)
            logger.info(f"Orphaned order {order_id} marked cancelled")
        except RemoteError as e:
            logger.error(f"Orphaned order {order_id} left pending: {e}")

    def _queue_reconciliation(self, order_id: str, failed: List[StockAdjustment]) -> None:
        if self.reconcile is None:
            return
        try:
            self.reconcile(order_id, failed)
        except Exception as e:
            # broker niedostepny - zamowienie i tak jest poprawne
            logger.error(f"Cannot queue stock reconciliation for order {order_id}: {e}")

    def cancel_order(self, order_id: str) -> ActionResult:
        """
        Use Case: anulowanie zamowienia przez wlasciciela sklepu.
        Tylko pending/confirmed, stany magazynowe sa przywracane.
        """
        user = self.session_service.get_active_user()
        if not user:
            return ActionResult(success=False, message=messages.LOGIN_REQUIRED)

        try:
            order = self.repo.get_order(order_id)
            if not order or order.store_owner_id != user.user_id:
                return ActionResult(success=False, message=messages.ORDER_NOT_FOUND)

            if order.status not in CANCELLABLE:
                return ActionResult(success=False, message=messages.ORDER_NOT_CANCELLABLE)

            self.repo.update_order_status(order_id, OrderStatus.CANCELLED)
        except RemoteError as e:
            logger.error(f"Error cancelling order {order_id}: {e}")
            return ActionResult(success=False, message=messages.ORDER_CANCEL_FAILED)

        logger.info(f"Order {order_id} cancelled")

        restored = self.restore_inventory(order_id)
        if not restored.success:
            logger.warning(f"Order {order_id} cancelled, stock not restored: {restored.message}")

        return ActionResult(success=True, message=messages.ORDER_CANCELLED)

    def restore_inventory(self, order_id: str) -> ActionResult:
        try:
            items = self.repo.get_order_items(order_id)
        except RemoteError as e:
            logger.error(f"Error fetching items of order {order_id}: {e}")
            return ActionResult(success=False, message=messages.ORDER_ITEMS_LOAD_FAILED)

        if not items:
            return ActionResult(success=True, message=messages.INVENTORY_NOTHING_TO_RESTORE)

        failed = self.inventory.restore(
            [StockAdjustment(product_id=i.product_id, quantity=i.quantity) for i in items]
        )
        if failed:
            names = {i.product_id: i.product_name or i.product_id for i in items}
            return ActionResult(
                success=False,
                message=messages.INVENTORY_RESTORE_FAILED.format(
                    names=", ".join(names[a.product_id] for a in failed)
                ),
            )

        logger.info(f"Stock restored for order {order_id}")
        return ActionResult(success=True, message=messages.INVENTORY_RESTORED)

    # =====================================================
    # QUERIES
    # =====================================================
    def list_orders(self, status: OrderStatus | None = None) -> List[Order]:
        user = self.session_service.get_active_user()
        if not user:
            return []

        try:
            orders = self.repo.list_orders(user.user_id, status)
            for order in orders:
                order.items = self.repo.get_order_items(order.id)
        except RemoteError as e:
            logger.error(f"Error loading orders for user {user.user_id}: {e}")
            return []
        return orders

    def get_order(self, order_id: str) -> Order | None:
        user = self.session_service.get_active_user()
        if not user:
            return None

        try:
            order = self.repo.get_order(order_id)
            if not order or order.store_owner_id != user.user_id:
                return None
            order.items = self.repo.get_order_items(order_id)
        except RemoteError as e:
            logger.error(f"Error loading order {order_id}: {e}")
            return None
        return order
