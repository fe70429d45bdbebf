# walcard/services/cart_service.py
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from pydantic import ValidationError

from walcard.data.store import CART_KEY, KeyValueStore
from walcard.domain import messages
from walcard.domain.errors import RemoteError, StoreError
from walcard.domain.schemas import (
    CartItemDetails,
    CartItems,
    CartLineItem,
    CartResult,
    OrderResult,
)
from walcard.repos.product_repo import ProductRepo
from walcard.services.lock_service import LockService
from walcard.services.order_service import OrderService
from walcard.services.session_service import SessionService
from walcard.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Lokalny koszyk instalacji, niezalezny od konta na serwerze.

    commands (add, remove, update, clear, checkout) modyfikuja stan
    i ida przez lock koszyka, wiec nakladajace sie wywolania czekaja
    na siebie zamiast gubic zapis.
    query (get, count, total) tylko odczyt
    """

    def __init__(
        self,
        store: KeyValueStore,
        product_repo: ProductRepo,
        session_service: SessionService,
        lock_service: LockService,
        order_service: OrderService,
    ):
        self.store = store
        self.product_repo = product_repo
        self.session_service = session_service
        self.lock_service = lock_service
        self.order_service = order_service

    # =====================================================
    # Storage
    # =====================================================
    def get_cart(self) -> List[CartLineItem]:
        raw = self.store.get_item(CART_KEY)
        if not raw:
            return []
        try:
            return CartItems.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Koszyk w magazynie jest uszkodzony, traktuje jako pusty: {e}")
            return []

    def save_cart(self, cart: List[CartLineItem]) -> None:
        self.store.set_item(CART_KEY, CartItems.dump_json(cart).decode("utf-8"))
        logger.info(f"Cart saved ({len(cart)} items)")

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_to_cart(self, product_id: str, quantity: int = 1) -> CartResult:
        if not self.session_service.get_active_user():
            return CartResult(success=False, message=messages.LOGIN_REQUIRED)

        if quantity <= 0:
            logger.warning(f"Rejected quantity {quantity} for product {product_id}")
            return CartResult(success=False, message=messages.CART_INVALID_QUANTITY)

        logger.info(f"Adding product {product_id} to cart, quantity {quantity}")

        try:
            with self.lock_service.hold(CART_KEY):
                cart = self.get_cart()
                existing = next((i for i in cart if i.product_id == product_id), None)

                if existing:
                    existing.quantity += quantity
                else:
                    now = datetime.now(timezone.utc)
                    cart.append(
                        CartLineItem(
                            id=f"cart_{int(time.time() * 1000)}_{product_id}",
                            product_id=product_id,
                            quantity=quantity,
                            added_at=now,
                        )
                    )

                self.save_cart(cart)
        except StoreError as e:
            logger.error(f"Error adding to cart: {e}")
            return CartResult(success=False, message=messages.CART_ADD_FAILED)

        return CartResult(success=True, message=messages.CART_ADDED, cart=cart)

    def remove_from_cart(self, product_id: str) -> CartResult:
        logger.info(f"Removing product {product_id} from cart")

        try:
            with self.lock_service.hold(CART_KEY):
                cart = [i for i in self.get_cart() if i.product_id != product_id]
                self.save_cart(cart)
        except StoreError as e:
            logger.error(f"Error removing from cart: {e}")
            return CartResult(success=False, message=messages.CART_REMOVE_FAILED)

        return CartResult(success=True, message=messages.CART_REMOVED, cart=cart)

    def update_quantity(self, product_id: str, quantity: int) -> CartResult:
        if quantity <= 0:
            return self.remove_from_cart(product_id)

        logger.info(f"Updating cart quantity of {product_id} to {quantity}")

        try:
            with self.lock_service.hold(CART_KEY):
                cart = self.get_cart()
                item = next((i for i in cart if i.product_id == product_id), None)
                # brak produktu w koszyku = nic nie robimy, nie dodajemy
                if item:
                    item.quantity = quantity
                    self.save_cart(cart)
        except StoreError as e:
            logger.error(f"Error updating quantity: {e}")
            return CartResult(success=False, message=messages.CART_UPDATE_FAILED)

        return CartResult(success=True, message=messages.CART_QUANTITY_UPDATED, cart=cart)

    def clear_cart(self) -> CartResult:
        try:
            with self.lock_service.hold(CART_KEY):
                self.save_cart([])
        except StoreError as e:
            logger.error(f"Error clearing cart: {e}")
            return CartResult(success=False, message=messages.CART_CLEAR_FAILED)

        return CartResult(success=True, message=messages.CART_CLEARED, cart=[])

    def create_order_from_cart(self, notes: str | None = None) -> OrderResult:
        """
        Use Case: zamowienie z koszyka (Command).

        Walidacja przed jakimkolwiek zapisem na serwerze:
        - zalogowany uzytkownik
        - niepusty koszyk
        - kazdy produkt istnieje i jest aktywny

        Koszyk jest czyszczony dopiero po zapisaniu zamowienia i pozycji.
        Lock koszyka trzymany przez caly checkout.
        Tylko zatwierdzone konto moze zamawiac.
        """
        user = self.session_service.get_active_user()
        if not user:
            return OrderResult(success=False, message=messages.LOGIN_REQUIRED)

        try:
            with self.lock_service.hold(CART_KEY):
                cart = self.get_cart()
                if not cart:
                    return OrderResult(success=False, message=messages.CART_EMPTY)

                try:
                    details = self._load_details(cart)
                except RemoteError as e:
                    logger.error(f"Error loading cart products for checkout: {e}")
                    return OrderResult(success=False, message=messages.ORDER_CREATE_FAILED)

                logger.info("Checking product availability before creating order")
                found = {d.product_id for d in details}
                for line in cart:
                    if line.product_id not in found:
                        return OrderResult(
                            success=False,
                            message=messages.PRODUCT_MISSING.format(product_id=line.product_id),
                        )
                for item in details:
                    if not item.product.is_active:
                        return OrderResult(
                            success=False,
                            message=messages.PRODUCT_INACTIVE.format(name=item.product.name),
                        )

                result = self.order_service.place_order(user, details, notes)
                if result.success:
                    # lock juz trzymany, clear_cart wzialby go drugi raz
                    try:
                        self.save_cart([])
                    except StoreError as e:
                        logger.warning(f"Order {result.order_id} placed but cart not cleared: {e}")
                return result
        except StoreError as e:
            logger.error(f"Error reading cart for checkout: {e}")
            return OrderResult(success=False, message=messages.UNEXPECTED_ERROR)

    # =====================================================
    # QUERIES
    # =====================================================
    def _load_details(self, cart: List[CartLineItem]) -> List[CartItemDetails]:
        if not cart:
            return []

        products = {p.id: p for p in self.product_repo.get_products(i.product_id for i in cart)}

        # produkty usuniete z katalogu znikaja z widoku, zostaja w magazynie
        return [
            CartItemDetails(**line.model_dump(), product=products[line.product_id])
            for line in cart
            if line.product_id in products
        ]

    def get_cart_with_details(self) -> List[CartItemDetails]:
        try:
            return self._load_details(self.get_cart())
        except (RemoteError, StoreError) as e:
            logger.error(f"Error getting cart with details: {e}")
            return []

    def get_cart_count(self) -> int:
        try:
            return sum(i.quantity for i in self.get_cart())
        except StoreError as e:
            logger.error(f"Error getting cart count: {e}")
            return 0

    def get_cart_total(self) -> Decimal:
        return sum((i.line_total for i in self.get_cart_with_details()), Decimal("0"))
