"""
HTTP surface tests: the routers are thin, so these only check wiring,
status codes and payload shapes.
"""

import asyncio
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from walcard.api import create_app
from walcard.context import build_context
from walcard.domain import messages


@pytest.fixture
def api(ctx):
    with TestClient(create_app(ctx)) as client:
        yield client


@pytest.fixture
def api_logged_in(logged_in):
    with TestClient(create_app(logged_in)) as client:
        yield client


def test_health(api):
    resp = api.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


class TestStartup:
    def test_restores_stored_session(self, logged_in, client, store, repos):
        restarted = build_context(client=client, store=store, repos=repos, reconcile=None)
        assert restarted.session_service.get_current_user() is None

        with TestClient(create_app(restarted)) as api:
            assert restarted.session_service.get_current_user() is not None
            resp = api.post("/cart/items", json={"product_id": "p1", "quantity": 1})
            assert resp.json()["success"] is True

    def test_session_loaded_off_event_loop(self, logged_in, client, store, repos):
        restarted = build_context(client=client, store=store, repos=repos, reconcile=None)
        load = restarted.session_service.get_session
        loops = []

        def get_session():
            try:
                loops.append(asyncio.get_running_loop())
            except RuntimeError:
                loops.append(None)
            return load()

        restarted.session_service.get_session = get_session

        with TestClient(create_app(restarted)):
            pass

        assert loops[0] is None


class TestCartApi:
    def test_add_without_session(self, api):
        resp = api.post("/cart/items", json={"product_id": "p1", "quantity": 1})

        assert resp.status_code == 200
        assert resp.json()["success"] is False
        assert resp.json()["message"] == messages.LOGIN_REQUIRED

    def test_non_positive_quantity_rejected(self, api_logged_in):
        resp = api_logged_in.post("/cart/items", json={"product_id": "p1", "quantity": 0})
        assert resp.status_code == 422

    def test_cart_flow(self, api_logged_in, repos):
        repos.products.add("p1", 1000, discount_price=800)
        repos.products.add("p2", 500)

        api_logged_in.post("/cart/items", json={"product_id": "p1", "quantity": 2})
        api_logged_in.post("/cart/items", json={"product_id": "p2", "quantity": 3})

        cart = api_logged_in.get("/cart/").json()
        assert cart["count"] == 5
        assert Decimal(str(cart["total"])) == Decimal("3100")
        assert [i["product"]["name"] for i in cart["items"]] == ["Product p1", "Product p2"]

        assert api_logged_in.get("/cart/count").json() == {"count": 5}
        assert Decimal(str(api_logged_in.get("/cart/total").json()["total"])) == Decimal("3100")

    def test_update_and_remove(self, api_logged_in):
        api_logged_in.post("/cart/items", json={"product_id": "p1", "quantity": 2})

        resp = api_logged_in.put("/cart/items/p1", json={"quantity": 6})
        assert resp.json()["cart"][0]["quantity"] == 6

        resp = api_logged_in.put("/cart/items/p1", json={"quantity": 0})
        assert resp.json()["cart"] == []

    def test_checkout(self, api_logged_in, repos):
        repos.products.add("p1", 250)
        api_logged_in.post("/cart/items", json={"product_id": "p1", "quantity": 4})

        resp = api_logged_in.post("/cart/checkout", json={"notes": "back door"})

        body = resp.json()
        assert body["success"] is True
        assert body["order_id"] in repos.orders.orders
        assert api_logged_in.get("/cart/count").json() == {"count": 0}


class TestOrdersApi:
    def test_requires_session(self, api):
        resp = api.get("/orders/")

        assert resp.status_code == 401
        assert resp.json()["detail"] == messages.LOGIN_REQUIRED

    def test_unknown_order(self, api_logged_in):
        assert api_logged_in.get("/orders/missing").status_code == 404

    def test_list_and_cancel(self, api_logged_in, repos):
        repos.products.add("p1", 250, stock=5)
        api_logged_in.post("/cart/items", json={"product_id": "p1", "quantity": 2})
        order_id = api_logged_in.post("/cart/checkout", json={}).json()["order_id"]

        orders = api_logged_in.get("/orders/").json()
        assert [o["id"] for o in orders] == [order_id]

        resp = api_logged_in.post(f"/orders/{order_id}/cancel")
        assert resp.json()["success"] is True
        assert repos.products.products["p1"].available_quantity == 5


class TestFavoritesApi:
    def test_toggle_and_read(self, api_logged_in):
        resp = api_logged_in.post("/favorites/p1/toggle")
        assert resp.json()["is_favorite"] is True

        assert api_logged_in.get("/favorites/p1").json() == {"product_id": "p1", "is_favorite": True}
        assert api_logged_in.get("/favorites/count").json() == {"count": 1}
        assert [f["product_id"] for f in api_logged_in.get("/favorites/").json()] == ["p1"]

        assert api_logged_in.delete("/favorites/").json()["success"] is True
        assert api_logged_in.get("/favorites/count").json() == {"count": 0}


class TestAuthApi:
    def test_login_with_local_number(self, api, store_owner):
        resp = api.post("/auth/login", json={"phone": "07700000001"})

        body = resp.json()
        assert body["success"] is True
        assert body["session"]["user_id"] == store_owner.user_id

        status = api.get("/auth/status").json()
        assert status["is_logged_in"] is True
        assert status["redirect_to"] == "/store-owner"

    def test_check_phone(self, api):
        body = api.post("/auth/check-phone", json={"phone": "+9647700000001"}).json()

        assert body["phone"] == "9647700000001"
        assert body["exists"] is True

    def test_logout(self, api_logged_in):
        assert api_logged_in.post("/auth/logout").json() == {"success": True}
        assert api_logged_in.get("/auth/status").json()["is_logged_in"] is False
