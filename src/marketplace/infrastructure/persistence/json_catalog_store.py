"""JSON-file-backed implementation of CatalogStore.

Stock adjustments are conditional read-modify-write cycles under a
per-file lock.  Applied idempotency keys are stored next to the items so a
repeated adjustment is recognized even after a restart, until the stock
ledger settles the batch and the keys are forgotten.
"""

from __future__ import annotations

import json
import threading
from decimal import Decimal
from pathlib import Path

from marketplace.domain.exceptions import InsufficientStockError, NotFoundError
from marketplace.domain.model.catalog import CatalogItem, ItemType
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.catalog_store import CatalogStore

_file_locks: dict[Path, threading.RLock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _file_locks_guard:
        return _file_locks.setdefault(path.resolve(), threading.RLock())


class JsonCatalogStore(CatalogStore):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = _lock_for(file_path)
        self._ensure_file()

    # --- CatalogStore interface -----------------------------------------------

    def find_by_id(self, item_id: str, item_type: ItemType) -> CatalogItem | None:
        raw = self._load_raw()["items"].get(item_id)
        if raw is None or raw["item_type"] != item_type.value:
            return None
        return self._to_domain(raw)

    def adjust_stock(self, item_id: str, delta: int, key: str | None = None) -> int:
        with self._lock:
            doc = self._load_raw()
            raw = doc["items"].get(item_id)
            if raw is None:
                raise NotFoundError(f"Catalog item {item_id} not found.")
            if raw["item_type"] != ItemType.PRODUCT.value:
                raise NotFoundError(f"Catalog item {item_id} does not track stock.")
            if key is not None and key in doc["applied_keys"]:
                return raw["stock"]

            new_stock = raw["stock"] + delta
            if new_stock < 0:
                raise InsufficientStockError(
                    item_id=item_id,
                    name=raw["name"],
                    requested=-delta,
                    available=raw["stock"],
                )
            raw["stock"] = new_stock
            if key is not None:
                doc["applied_keys"][key] = delta
            self._persist_raw(doc)
            return new_stock

    def forget_keys(self, prefix: str) -> None:
        with self._lock:
            doc = self._load_raw()
            keys = [key for key in doc["applied_keys"] if key.startswith(prefix + ":")]
            if not keys:
                return
            for key in keys:
                del doc["applied_keys"][key]
            self._persist_raw(doc)

    def list_all(self) -> list[CatalogItem]:
        return [self._to_domain(raw) for raw in self._load_raw()["items"].values()]

    def save(self, item: CatalogItem) -> None:
        with self._lock:
            doc = self._load_raw()
            doc["items"][item.id] = self._to_raw(item)
            self._persist_raw(doc)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(item: CatalogItem) -> dict:
        return {
            "id": item.id,
            "item_type": item.item_type.value,
            "name": item.name,
            "price": str(item.price.amount),
            "currency": item.price.currency,
            "seller_id": item.seller_id,
            "stock": item.stock,
            "images": list(item.images),
        }

    @staticmethod
    def _to_domain(raw: dict) -> CatalogItem:
        return CatalogItem(
            id=raw["id"],
            item_type=ItemType(raw["item_type"]),
            name=raw["name"],
            price=Money(Decimal(raw["price"]), raw.get("currency", "USD")),
            seller_id=raw["seller_id"],
            stock=raw.get("stock"),
            images=raw.get("images", []),
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
                self._persist_raw({"items": {}, "applied_keys": {}})
