"""Tests for the JSON-file order repository."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from marketplace.domain.exceptions import ConcurrencyError, NotFoundError
from marketplace.domain.model.catalog import ItemType
from marketplace.domain.model.order import Order, OrderLine, OrderStatus, PaymentStatus
from marketplace.domain.model.value_objects import Address, Money, Quantity
from marketplace.infrastructure.persistence.json_order_repository import JsonOrderRepository


def _order(buyer_id="buyer-1", sellers=("seller-1",), created_offset=0):
    lines = [
        OrderLine(f"p{i}", ItemType.PRODUCT, f"Widget {i}", Quantity(2), Money.of("10.50"), seller)
        for i, seller in enumerate(sellers)
    ]
    order = Order.create(
        buyer_id,
        lines,
        shipping_address=Address(street="1 Main St", city="Springfield", zip_code="12345", country="US"),
    )
    order.created_at = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=created_offset)
    return order


def _setup(tmp_path):
    return JsonOrderRepository(tmp_path / "orders.json")


class TestPersistence:

    def test_creates_empty_file(self, tmp_path):
        _setup(tmp_path)
        doc = json.loads((tmp_path / "orders.json").read_text())
        assert doc == {"orders": {}, "indexes": {"buyer": {}, "seller": {}, "status": {}}}

    def test_add_and_reload(self, tmp_path):
        repo = _setup(tmp_path)
        order = _order()
        order.service_date = datetime(2026, 5, 1, 9, tzinfo=timezone.utc)
        repo.add(order)

        loaded = JsonOrderRepository(tmp_path / "orders.json").get_by_id(order.id)

        assert loaded.version == 1
        assert loaded.total_amount == Money.of("21.00")
        assert loaded.items[0].price_at_purchase == Money.of("10.50")
        assert loaded.items[0].quantity == Quantity(2)
        assert loaded.shipping_address.city == "Springfield"
        assert loaded.service_date == order.service_date
        assert loaded.payment.status is PaymentStatus.PENDING
        assert loaded.created_at == order.created_at

    def test_missing_order_is_none(self, tmp_path):
        assert _setup(tmp_path).get_by_id("nope") is None

    def test_money_stored_as_decimal_string(self, tmp_path):
        repo = _setup(tmp_path)
        order = _order()
        repo.add(order)
        doc = json.loads((tmp_path / "orders.json").read_text())
        assert doc["orders"][order.id]["total_amount"] == "21.00"


class TestCompareAndSwap:

    def test_save_bumps_version(self, tmp_path):
        repo = _setup(tmp_path)
        order = _order()
        repo.add(order)
        order.status = OrderStatus.CONFIRMED
        repo.save(order, expected_version=1)
        assert order.version == 2
        assert repo.get_by_id(order.id).status is OrderStatus.CONFIRMED

    def test_stale_version_rejected(self, tmp_path):
        repo = _setup(tmp_path)
        order = _order()
        repo.add(order)
        first = repo.get_by_id(order.id)
        second = repo.get_by_id(order.id)

        first.status = OrderStatus.CONFIRMED
        repo.save(first, expected_version=1)
        second.status = OrderStatus.CANCELLED_BY_SELLER
        with pytest.raises(ConcurrencyError, match="expected version 1, found 2"):
            repo.save(second, expected_version=1)
        assert repo.get_by_id(order.id).status is OrderStatus.CONFIRMED

    def test_save_unknown_order(self, tmp_path):
        with pytest.raises(NotFoundError):
            _setup(tmp_path).save(_order(), expected_version=1)

    def test_duplicate_add_rejected(self, tmp_path):
        repo = _setup(tmp_path)
        order = _order()
        repo.add(order)
        with pytest.raises(ConcurrencyError):
            repo.add(order)


class TestIndexes:

    def test_buyer_listing_newest_first(self, tmp_path):
        repo = _setup(tmp_path)
        older, newer = _order(created_offset=0), _order(created_offset=5)
        repo.add(older)
        repo.add(newer)
        repo.add(_order(buyer_id="buyer-2"))
        assert [o.id for o in repo.list_for_buyer("buyer-1")] == [newer.id, older.id]

    def test_seller_listing_covers_every_line_seller(self, tmp_path):
        repo = _setup(tmp_path)
        order = _order(sellers=("seller-1", "seller-2"))
        repo.add(order)
        assert [o.id for o in repo.list_for_seller("seller-2")] == [order.id]
        assert repo.list_for_seller("seller-3") == []

    def test_status_index_follows_saves(self, tmp_path):
        repo = _setup(tmp_path)
        order = _order()
        repo.add(order)
        order.status = OrderStatus.SHIPPED
        repo.save(order, expected_version=1)

        assert repo.list_by_status(OrderStatus.PENDING_PAYMENT) == []
        assert [o.id for o in repo.list_by_status(OrderStatus.SHIPPED)] == [order.id]
        doc = json.loads((tmp_path / "orders.json").read_text())
        assert "pending_payment" not in doc["indexes"]["status"]
