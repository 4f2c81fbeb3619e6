"""Port to the catalog that owns Products and Services.

Defined in the domain layer so the domain never depends on
infrastructure.  The order subsystem only reads items and adjusts
Product stock; everything else about the catalog lives elsewhere.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.catalog import CatalogItem, ItemType


class CatalogStore(ABC):

    @abstractmethod
    def find_by_id(self, item_id: str, item_type: ItemType) -> CatalogItem | None:
        """Return the item if it exists with that type, or None."""

    @abstractmethod
    def adjust_stock(self, item_id: str, delta: int, key: str | None = None) -> int:
        """Atomically add ``delta`` to a Product's stock and return the new level.

        Raises InsufficientStockError when the result would be negative and
        NotFoundError when the item does not exist.  When ``key`` has been
        applied before the call changes nothing and returns the current level.
        """

    @abstractmethod
    def forget_keys(self, prefix: str) -> None:
        """Drop every recorded idempotency key that starts with ``prefix:``."""

    @abstractmethod
    def list_all(self) -> list[CatalogItem]:
        """Return every catalog item."""

    @abstractmethod
    def save(self, item: CatalogItem) -> None:
        """Persist a new or updated catalog item."""
