# walcard/context.py
from dataclasses import dataclass
from typing import List

from walcard.data.store import KeyValueStore, build_store
from walcard.domain.schemas import StockAdjustment
from walcard.repos.auth_log_repo import AuthLogRepo
from walcard.repos.favorite_repo import FavoriteRepo
from walcard.repos.order_repo import OrderRepo
from walcard.repos.product_repo import ProductRepo
from walcard.repos.user_repo import UserRepo
from walcard.services.auth_service import AuthService
from walcard.services.cart_service import CartService
from walcard.services.favorites_service import FavoritesService
from walcard.services.inventory_service import InventoryService
from walcard.services.lock_service import LockService
from walcard.services.media_service import MediaService
from walcard.services.order_service import OrderService, ReconcileHook
from walcard.services.remote_client import RemoteDataClient
from walcard.services.session_service import SessionService


@dataclass
class Repos:
    products: ProductRepo
    orders: OrderRepo
    users: UserRepo
    auth_logs: AuthLogRepo
    favorites: FavoriteRepo

    @classmethod
    def from_client(cls, client: RemoteDataClient) -> "Repos":
        return cls(
            products=ProductRepo(client),
            orders=OrderRepo(client),
            users=UserRepo(client),
            auth_logs=AuthLogRepo(client),
            favorites=FavoriteRepo(client),
        )


@dataclass
class AppContext:
    """
    Jeden obiekt na proces: sesja, koszyk i ulubione wspoldziela stan
    przez ten kontekst zamiast przez singletony modulow.
    """

    store: KeyValueStore
    client: RemoteDataClient
    repos: Repos
    lock_service: LockService
    session_service: SessionService
    auth_service: AuthService
    inventory_service: InventoryService
    order_service: OrderService
    cart_service: CartService
    favorites_service: FavoritesService
    media_service: MediaService


def queue_inventory_reconciliation(order_id: str, failed: List[StockAdjustment]) -> None:
    # import tutaj, taski same buduja kontekst
    from walcard.tasks.inventory import reconcile_inventory_task

    reconcile_inventory_task.delay(order_id, [a.model_dump() for a in failed])


def build_context(
    client: RemoteDataClient | None = None,
    store: KeyValueStore | None = None,
    repos: Repos | None = None,
    reconcile: ReconcileHook | None = queue_inventory_reconciliation,
) -> AppContext:
    client = client or RemoteDataClient()
    store = store or build_store()
    repos = repos or Repos.from_client(client)

    lock_service = LockService(store)
    session_service = SessionService(store, repos.auth_logs, repos.users)
    inventory_service = InventoryService(repos.products)
    order_service = OrderService(repos.orders, inventory_service, session_service, reconcile)

    return AppContext(
        store=store,
        client=client,
        repos=repos,
        lock_service=lock_service,
        session_service=session_service,
        auth_service=AuthService(client, repos.users, session_service, store),
        inventory_service=inventory_service,
        order_service=order_service,
        cart_service=CartService(store, repos.products, session_service, lock_service, order_service),
        favorites_service=FavoritesService(repos.favorites, session_service),
        media_service=MediaService(client),
    )
