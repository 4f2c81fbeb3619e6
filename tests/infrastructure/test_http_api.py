"""Tests for the HTTP API, driven through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.http.app import create_app
from tests.fakes import (
    SHIPPING,
    FakeCatalogStore,
    FakeOrderRepository,
    RecordingPublisher,
    line,
    product,
    service,
)

BUYER = {"X-Actor-Id": "buyer-1", "X-Actor-Role": "buyer"}
OTHER_BUYER = {"X-Actor-Id": "buyer-2", "X-Actor-Role": "buyer"}
SELLER = {"X-Actor-Id": "seller-1", "X-Actor-Role": "seller"}
OTHER_SELLER = {"X-Actor-Id": "seller-9", "X-Actor-Role": "seller"}
ADMIN = {"X-Actor-Id": "admin-1", "X-Actor-Role": "admin"}


def _setup(tmp_path, stock=5, raise_server_exceptions=True):
    catalog = FakeCatalogStore([product("p1", price="10.00", stock=stock), service("s1")])
    repo = FakeOrderRepository()
    publisher = RecordingPublisher()
    app = create_app(
        order_repo=repo,
        catalog=catalog,
        publisher=publisher,
        settings=Settings(data_dir=tmp_path),
    )
    client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
    return client, repo, catalog, publisher


def _place(client, quantity=3):
    response = client.post(
        "/orders",
        json={"items": [line("p1", quantity=quantity)], "shippingAddress": SHIPPING},
        headers=BUYER,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["order"]


class TestCreateOrder:

    def test_created(self, tmp_path):
        client, repo, catalog, publisher = _setup(tmp_path)
        order = _place(client)

        assert order["status"] == "pending_payment"
        assert order["totalAmount"] == "30.00"
        assert order["items"][0]["priceAtPurchase"] == "10.00"
        assert order["paymentDetails"]["status"] == "pending"
        assert order["shippingAddress"]["zipCode"] == "12345"
        assert catalog.stock_of("p1") == 5
        assert [e.kind.value for e in publisher.events] == ["order.created"]

    def test_insufficient_stock(self, tmp_path):
        client, repo, _, _ = _setup(tmp_path)
        response = client.post(
            "/orders",
            json={"items": [line("p1", quantity=6)], "shippingAddress": SHIPPING},
            headers=BUYER,
        )
        assert response.status_code == 400
        assert response.json() == {
            "status": "fail",
            "message": "Not enough stock for Widget. Available: 5, requested: 6",
        }
        assert repo.count() == 0

    def test_unknown_item(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        response = client.post("/orders", json={"items": [line("s9", "Service")]}, headers=BUYER)
        assert response.status_code == 404
        assert response.json()["message"] == "Service with ID s9 not found."

    def test_empty_cart(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        response = client.post("/orders", json={"items": []}, headers=BUYER)
        assert response.status_code == 400

    def test_malformed_body(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        response = client.post(
            "/orders",
            json={"items": [{"itemId": "p1", "itemType": "Product", "quantity": "lots"}]},
            headers=BUYER,
        )
        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid request body")

    def test_requires_identity(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        response = client.post("/orders", json={"items": [line("s1", "Service")]})
        assert response.status_code == 401
        assert response.json()["status"] == "fail"

    def test_unknown_role(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        response = client.post(
            "/orders",
            json={"items": [line("s1", "Service")]},
            headers={"X-Actor-Id": "x", "X-Actor-Role": "wizard"},
        )
        assert response.status_code == 401

    def test_sellers_cannot_buy(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        response = client.post("/orders", json={"items": [line("s1", "Service")]}, headers=SELLER)
        assert response.status_code == 403


class TestReadOrders:

    def test_buyer_reads_own_order(self, tmp_path):
        client, _, _, publisher = _setup(tmp_path)
        order = _place(client)
        response = client.get(f"/orders/{order['id']}", headers=BUYER)
        assert response.status_code == 200
        assert response.json()["data"]["order"]["id"] == order["id"]
        assert publisher.events[-1].kind.value == "order.viewed"

    def test_other_buyer_forbidden(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        order = _place(client)
        assert client.get(f"/orders/{order['id']}", headers=OTHER_BUYER).status_code == 403

    def test_missing_order(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        response = client.get("/orders/nope", headers=ADMIN)
        assert response.status_code == 404
        assert response.json()["message"] == "Order not found."

    def test_my_orders_and_my_sales(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        order = _place(client)

        mine = client.get("/orders/my-orders", headers=BUYER).json()
        assert mine["results"] == 1
        assert mine["data"]["orders"][0]["id"] == order["id"]

        sales = client.get("/orders/my-sales", headers=SELLER).json()
        assert [o["id"] for o in sales["data"]["orders"]] == [order["id"]]

        assert client.get("/orders/my-sales", headers=OTHER_SELLER).json()["results"] == 0

    def test_list_by_status_admin_only(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        _place(client)
        assert client.get("/orders?status=pending_payment", headers=ADMIN).json()["results"] == 1
        assert client.get("/orders?status=pending_payment", headers=SELLER).status_code == 403
        assert client.get("/orders?status=bogus", headers=ADMIN).status_code == 400
        assert client.get("/orders?status=bogus", headers=BUYER).status_code == 403


class TestUpdateStatus:

    def test_confirm_then_cancel(self, tmp_path):
        client, _, catalog, publisher = _setup(tmp_path)
        order = _place(client)

        confirmed = client.patch(
            f"/orders/{order['id']}/status", json={"status": "confirmed"}, headers=SELLER
        )
        assert confirmed.status_code == 200
        body = confirmed.json()["data"]["order"]
        assert body["status"] == "confirmed"
        assert body["paymentDetails"]["status"] == "completed"
        assert catalog.stock_of("p1") == 2

        cancelled = client.patch(
            f"/orders/{order['id']}/status",
            json={"status": "cancelled_by_seller", "cancellationReason": "out of stock"},
            headers=SELLER,
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["data"]["order"]["cancellationReason"] == "out of stock"
        assert catalog.stock_of("p1") == 5
        assert publisher.events[-1].kind.value == "order.status_changed"

    def test_buyer_cannot_patch(self, tmp_path):
        client, repo, _, _ = _setup(tmp_path)
        order = _place(client)
        response = client.patch(
            f"/orders/{order['id']}/status",
            json={"status": "cancelled_by_buyer", "cancellationReason": "changed mind"},
            headers=BUYER,
        )
        assert response.status_code == 403
        assert repo.get_by_id(order["id"]).status.value == "pending_payment"

    def test_seller_not_on_order(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        order = _place(client)
        response = client.patch(
            f"/orders/{order['id']}/status", json={"status": "confirmed"}, headers=OTHER_SELLER
        )
        assert response.status_code == 403

    @pytest.mark.parametrize("payload,code", [
        ({}, 400),
        ({"status": "teleported"}, 400),
        ({"status": "cancelled_by_seller"}, 400),
        ({"status": "delivered"}, 200),
    ])
    def test_status_validation(self, tmp_path, payload, code):
        client, _, _, _ = _setup(tmp_path)
        order = _place(client)
        response = client.patch(f"/orders/{order['id']}/status", json=payload, headers=SELLER)
        assert response.status_code == code

    def test_invalid_status_wins_over_missing_order(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        response = client.patch("/orders/nope/status", json={"status": "teleported"}, headers=ADMIN)
        assert response.status_code == 400

    def test_illegal_transition_is_conflict(self, tmp_path):
        client, _, _, _ = _setup(tmp_path)
        order = _place(client)
        client.patch(f"/orders/{order['id']}/status", json={"status": "shipped"}, headers=SELLER)
        response = client.patch(
            f"/orders/{order['id']}/status", json={"status": "confirmed"}, headers=SELLER
        )
        assert response.status_code == 409

    def test_stock_gone_at_confirmation_is_rejected(self, tmp_path):
        client, repo, catalog, _ = _setup(tmp_path)
        order = _place(client)
        catalog.adjust_stock("p1", -4)
        response = client.patch(
            f"/orders/{order['id']}/status", json={"status": "confirmed"}, headers=SELLER
        )
        assert response.status_code == 400
        assert repo.get_by_id(order["id"]).status.value == "pending_payment"

    def test_unexpected_error_is_generic_500(self, tmp_path):
        client, repo, catalog, _ = _setup(tmp_path, raise_server_exceptions=False)
        order = _place(client)
        catalog.fail_on["p1"] = RuntimeError("connection reset")

        response = client.patch(
            f"/orders/{order['id']}/status", json={"status": "confirmed"}, headers=SELLER
        )

        assert response.status_code == 500
        assert response.json() == {
            "status": "error",
            "message": "Something went wrong. Please try again later.",
        }
        assert repo.get_by_id(order["id"]).status.value == "pending_payment"


def test_health(tmp_path):
    client, _, _, _ = _setup(tmp_path)
    assert client.get("/health").json() == {"status": "ok"}
