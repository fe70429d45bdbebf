"""
Shared fixtures: in-memory store, fake table repos and a wired AppContext.

The fake repos keep rows in dicts and record every write so tests can
assert on what reached the backend.
"""

import threading
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from walcard.context import Repos, build_context
from walcard.data.store import MemoryKeyValueStore, RedisKeyValueStore
from walcard.domain.errors import RemoteError
from walcard.domain.schemas import (
    AccountInfo,
    AuthLog,
    FavoriteProduct,
    Order,
    Product,
    SessionUser,
    UserRecord,
    UserType,
)


class FakeProductRepo:
    def __init__(self):
        self.products = {}
        self.fail_fetch = False
        self.fail_stock_for = set()
        self.fetch_calls = 0

    def add(self, product_id, price, discount_price=None, is_active=True, stock=10, name=None):
        self.products[product_id] = Product(
            id=product_id,
            name=name or f"Product {product_id}",
            price=Decimal(str(price)),
            discount_price=Decimal(str(discount_price)) if discount_price is not None else None,
            is_active=is_active,
            merchant_id="merchant-1",
            available_quantity=stock,
        )

    def get_products(self, product_ids):
        self.fetch_calls += 1
        if self.fail_fetch:
            raise RemoteError("Network request failed")
        return [self.products[pid] for pid in dict.fromkeys(product_ids) if pid in self.products]

    def get_product(self, product_id):
        return self.products.get(product_id)

    def get_stock(self, product_id):
        if product_id in self.fail_stock_for:
            raise RemoteError("stock read failed")
        product = self.products.get(product_id)
        return product.available_quantity if product else None

    def set_stock(self, product_id, quantity):
        self.products[product_id].available_quantity = quantity


class FakeOrderRepo:
    def __init__(self):
        self.orders = {}
        self.items = []
        self.fail_create = False
        self.fail_items = False
        self.fail_delete = False
        self.create_calls = 0
        self.item_insert_calls = 0

    def create_order(self, store_owner_id, total_price, notes=None):
        self.create_calls += 1
        if self.fail_create:
            raise RemoteError("insert into orders failed")
        order = Order(
            id=f"order-{len(self.orders) + 1}",
            store_owner_id=store_owner_id,
            total_price=total_price,
            order_notes=notes,
        )
        self.orders[order.id] = order
        return order

    def create_order_items(self, items):
        self.item_insert_calls += 1
        if self.fail_items:
            raise RemoteError("insert into order_items failed")
        self.items.extend(items)

    def delete_order(self, order_id):
        if self.fail_delete:
            raise RemoteError("delete failed")
        self.orders.pop(order_id, None)

    def update_order_status(self, order_id, status):
        order = self.orders.get(order_id)
        if order:
            order.status = status
        return order

    def get_order(self, order_id):
        return self.orders.get(order_id)

    def list_orders(self, store_owner_id, status=None):
        return [
            o for o in self.orders.values()
            if o.store_owner_id == store_owner_id and (status is None or o.status == status)
        ]

    def get_order_items(self, order_id):
        return [i for i in self.items if i.order_id == order_id]


class FakeUserRepo:
    def __init__(self):
        self.users = {}
        self.accounts = {}
        self.account_errors = []
        self.account_calls = 0

    def get_user(self, user_id):
        return self.users.get(user_id)

    def get_account_info(self, phone):
        self.account_calls += 1
        if self.account_errors:
            raise self.account_errors.pop(0)
        return self.accounts.get(phone)


class FakeAuthLogRepo:
    def __init__(self):
        self.logs = {}
        self.fail_create = False
        self.fail_get = False
        self.fail_mark = False
        self.marked_used = []

    def create(self, user_id, expires_at):
        if self.fail_create:
            raise RemoteError("insert into user_auth_logs failed")
        log = AuthLog(id=f"log-{len(self.logs) + 1}", user_id=user_id, expires_at=expires_at)
        self.logs[log.id] = log
        return log

    def get_active(self, auth_log_id, user_id):
        if self.fail_get:
            raise RemoteError("Network request failed")
        log = self.logs.get(auth_log_id)
        if log is None or log.user_id != user_id or log.is_used:
            return None
        return log

    def extend(self, auth_log_id, expires_at):
        self.logs[auth_log_id].expires_at = expires_at

    def mark_used(self, auth_log_id):
        if self.fail_mark:
            raise RemoteError("update failed")
        self.marked_used.append(auth_log_id)
        if auth_log_id in self.logs:
            self.logs[auth_log_id].is_used = True

    def mark_expired_used(self, now):
        expired = [l for l in self.logs.values() if not l.is_used and l.expires_at < now]
        for log in expired:
            log.is_used = True
        return len(expired)


class FakeFavoriteRepo:
    def __init__(self):
        self.pairs = set()
        self.fail = False

    def _check(self):
        if self.fail:
            raise RemoteError("user_favorites unavailable")

    def exists(self, user_id, product_id):
        self._check()
        return (user_id, product_id) in self.pairs

    def add(self, user_id, product_id):
        self._check()
        self.pairs.add((user_id, product_id))

    def remove(self, user_id, product_id):
        self._check()
        self.pairs.discard((user_id, product_id))

    def list_for_user(self, user_id):
        self._check()
        return [
            FavoriteProduct(
                favorite_id=f"fav-{pid}",
                product_id=pid,
                product_name=f"Product {pid}",
                price=Decimal("100"),
            )
            for uid, pid in sorted(self.pairs)
            if uid == user_id
        ]

    def count(self, user_id):
        self._check()
        return sum(1 for uid, _ in self.pairs if uid == user_id)

    def clear(self, user_id):
        self._check()
        self.pairs = {p for p in self.pairs if p[0] != user_id}


class FakeRedis:
    """Just enough of redis.Redis for the store and the cart lock."""

    def __init__(self):
        self.data = {}
        self.set_calls = []
        self._guard = threading.Lock()

    def get(self, name):
        with self._guard:
            return self.data.get(name)

    def set(self, name, value, nx=False, px=None):
        with self._guard:
            self.set_calls.append((name, nx, px))
            if nx and name in self.data:
                return None
            self.data[name] = value
            return True

    def delete(self, name):
        with self._guard:
            return 1 if self.data.pop(name, None) is not None else 0

    def eval(self, script, numkeys, key, token):
        # compare-and-delete release script
        with self._guard:
            if self.data.get(key) == token:
                del self.data[key]
                return 1
            return 0


STORE_OWNER = SessionUser(
    user_id="user-1",
    phone_number="9647700000001",
    full_name="Ali Hassan",
    user_type=UserType.STORE_OWNER,
    is_approved=True,
)


@pytest.fixture
def store_owner():
    return STORE_OWNER


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def redis_store():
    """Redis-backed store whose connection is replaced by FakeRedis."""
    store = RedisKeyValueStore(url="redis://localhost:6379/15", namespace="walcard")
    store.redis = FakeRedis()
    return store


@pytest.fixture
def repos():
    users = FakeUserRepo()
    users.users[STORE_OWNER.user_id] = UserRecord(
        id=STORE_OWNER.user_id,
        phone_number=STORE_OWNER.phone_number,
        full_name=STORE_OWNER.full_name,
        user_type=STORE_OWNER.user_type,
        is_approved=True,
    )
    users.accounts[STORE_OWNER.phone_number] = AccountInfo(
        has_account=True,
        user_id=STORE_OWNER.user_id,
        full_name=STORE_OWNER.full_name,
        user_type=STORE_OWNER.user_type,
        is_approved=True,
    )
    return Repos(
        products=FakeProductRepo(),
        orders=FakeOrderRepo(),
        users=users,
        auth_logs=FakeAuthLogRepo(),
        favorites=FakeFavoriteRepo(),
    )


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def reconcile():
    return MagicMock()


@pytest.fixture
def ctx(client, store, repos, reconcile):
    return build_context(client=client, store=store, repos=repos, reconcile=reconcile)


@pytest.fixture
def logged_in(ctx):
    """Context with an approved store owner session loaded in memory."""
    ctx.session_service.create_session(STORE_OWNER)
    return ctx
