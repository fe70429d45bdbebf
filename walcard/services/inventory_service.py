# walcard/services/inventory_service.py
from typing import List

from walcard.domain.errors import RemoteError
from walcard.domain.schemas import StockAdjustment
from walcard.repos.product_repo import ProductRepo
from walcard.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    """
    Stan magazynowy produktu to liczba ``available_quantity``.
    Zmniejszenie nigdy nie schodzi ponizej zera.

    Brak tokenu wersji: dwa rownolegle zamowienia tego samego produktu
    moga nadpisac sobie stan (odczyt -> zapis).
    """

    def __init__(self, product_repo: ProductRepo):
        self.product_repo = product_repo

    def _adjust(self, adjustment: StockAdjustment, delta: int) -> None:
        current = self.product_repo.get_stock(adjustment.product_id)
        if current is None:
            raise RemoteError(f"Produkt {adjustment.product_id} nie istnieje")

        new_quantity = max(0, current + delta)
        self.product_repo.set_stock(adjustment.product_id, new_quantity)
        logger.info(f"Stock {adjustment.product_id}: {current} -> {new_quantity}")

    def _apply(self, adjustments: List[StockAdjustment], sign: int) -> List[StockAdjustment]:
        failed: List[StockAdjustment] = []
        for adjustment in adjustments:
            try:
                self._adjust(adjustment, sign * adjustment.quantity)
            except RemoteError as e:
                logger.error(f"Stock update failed for product {adjustment.product_id}: {e}")
                failed.append(adjustment)
        return failed

    def decrement(self, adjustments: List[StockAdjustment]) -> List[StockAdjustment]:
        """Returns the adjustments that could not be applied."""
        return self._apply(adjustments, -1)

    def restore(self, adjustments: List[StockAdjustment]) -> List[StockAdjustment]:
        return self._apply(adjustments, 1)
