"""JSON-file-backed implementation of OrderRepository.

The file holds one document per order, keyed by id, plus three secondary
indexes (by buyer, by line seller, by status) that are rewritten together
with the document on every write, so list queries never scan all orders.
"""

from __future__ import annotations

import json
import threading
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from marketplace.domain.exceptions import ConcurrencyError, NotFoundError
from marketplace.domain.model.catalog import ItemType
from marketplace.domain.model.order import (
    Order,
    OrderLine,
    OrderStatus,
    PaymentDetails,
    PaymentStatus,
)
from marketplace.domain.model.value_objects import Address, Money, Quantity
from marketplace.domain.repository.order_repository import OrderRepository

_INDEXES = ("buyer", "seller", "status")

# One lock per data file, shared by every repository instance in the process.
_file_locks: dict[Path, threading.RLock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _file_locks_guard:
        return _file_locks.setdefault(path.resolve(), threading.RLock())


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = _lock_for(file_path)
        self._ensure_file()

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: str) -> Order | None:
        raw = self._load_raw()["orders"].get(order_id)
        return self._to_domain(raw) if raw is not None else None

    def add(self, order: Order) -> None:
        with self._lock:
            doc = self._load_raw()
            if order.id in doc["orders"]:
                raise ConcurrencyError(f"Order {order.id} already exists")
            order.version = 1
            doc["orders"][order.id] = self._to_raw(order)
            self._index(doc, order)
            self._persist_raw(doc)

    def save(self, order: Order, expected_version: int) -> None:
        with self._lock:
            doc = self._load_raw()
            current = doc["orders"].get(order.id)
            if current is None:
                raise NotFoundError("Order not found.")
            if current["version"] != expected_version:
                raise ConcurrencyError(
                    f"Order {order.id} was modified concurrently "
                    f"(expected version {expected_version}, found {current['version']})"
                )
            self._unindex(doc, current)
            order.version = expected_version + 1
            doc["orders"][order.id] = self._to_raw(order)
            self._index(doc, order)
            self._persist_raw(doc)

    def list_for_buyer(self, buyer_id: str) -> list[Order]:
        return self._lookup("buyer", buyer_id)

    def list_for_seller(self, seller_id: str) -> list[Order]:
        return self._lookup("seller", seller_id)

    def list_by_status(self, status: OrderStatus) -> list[Order]:
        return self._lookup("status", status.value)

    # --- Indexes --------------------------------------------------------------

    def _lookup(self, index: str, key: str) -> list[Order]:
        doc = self._load_raw()
        ids = doc["indexes"][index].get(key, [])
        orders = [self._to_domain(doc["orders"][order_id]) for order_id in ids]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    @staticmethod
    def _index_keys(raw: dict) -> dict[str, set[str]]:
        return {
            "buyer": {raw["buyer_id"]},
            "seller": {item["seller_id"] for item in raw["items"]},
            "status": {raw["status"]},
        }

    def _index(self, doc: dict, order: Order) -> None:
        raw = doc["orders"][order.id]
        for index, keys in self._index_keys(raw).items():
            for key in keys:
                ids = doc["indexes"][index].setdefault(key, [])
                if order.id not in ids:
                    ids.append(order.id)

    def _unindex(self, doc: dict, raw: dict) -> None:
        for index, keys in self._index_keys(raw).items():
            for key in keys:
                ids = doc["indexes"][index].get(key, [])
                if raw["id"] in ids:
                    ids.remove(raw["id"])
                if not ids:
                    doc["indexes"][index].pop(key, None)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "version": order.version,
            "buyer_id": order.buyer_id,
            "status": order.status.value,
            "total_amount": str(order.total_amount.amount),
            "currency": order.total_amount.currency,
            "payment": {
                "method": order.payment.method,
                "status": order.payment.status.value,
                "transaction_id": order.payment.transaction_id,
                "paid_at": _iso(order.payment.paid_at),
            },
            "shipping_address": _address(order.shipping_address),
            "service_address": _address(order.service_address),
            "service_date": _iso(order.service_date),
            "notes_to_seller": order.notes_to_seller,
            "cancellation_reason": order.cancellation_reason,
            "stock_reserved": order.stock_reserved,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "items": [
                {
                    "item_id": item.item_id,
                    "item_type": item.item_type.value,
                    "name": item.name,
                    "image": item.image,
                    "quantity": item.quantity.value,
                    "price_at_purchase": str(item.price_at_purchase.amount),
                    "currency": item.price_at_purchase.currency,
                    "seller_id": item.seller_id,
                }
                for item in order.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        items = [
            OrderLine(
                item_id=i["item_id"],
                item_type=ItemType(i["item_type"]),
                name=i["name"],
                image=i.get("image"),
                quantity=Quantity(i["quantity"]),
                price_at_purchase=Money(Decimal(i["price_at_purchase"]), i.get("currency", "USD")),
                seller_id=i["seller_id"],
            )
            for i in raw["items"]
        ]
        payment = raw["payment"]
        return Order(
            id=raw["id"],
            version=raw["version"],
            buyer_id=raw["buyer_id"],
            items=items,
            total_amount=Money(Decimal(raw["total_amount"]), raw.get("currency", "USD")),
            payment=PaymentDetails(
                method=payment["method"],
                status=PaymentStatus(payment["status"]),
                transaction_id=payment.get("transaction_id"),
                paid_at=_parse_iso(payment.get("paid_at")),
            ),
            status=OrderStatus(raw["status"]),
            shipping_address=Address.from_dict(raw.get("shipping_address")),
            service_address=Address.from_dict(raw.get("service_address")),
            service_date=_parse_iso(raw.get("service_date")),
            notes_to_seller=raw.get("notes_to_seller"),
            cancellation_reason=raw.get("cancellation_reason"),
            stock_reserved=raw.get("stock_reserved", False),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> dict:
        with self._lock:
            return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, doc: dict) -> None:
        tmp = self._file_path.with_suffix(".tmp")
        tmp.write_text(json.dumps(doc, indent=2) + "\n", encoding="utf-8")
        tmp.replace(self._file_path)

    def _ensure_file(self) -> None:
        with self._lock:
            if not self._file_path.exists():
                self._file_path.parent.mkdir(parents=True, exist_ok=True)
                self._persist_raw({"orders": {}, "indexes": {name: {} for name in _INDEXES}})


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _address(address: Address | None) -> dict | None:
    return address.to_dict() if address is not None else None
