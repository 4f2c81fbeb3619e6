"""Application service: Add Catalog Item use case.

Only used to seed a local catalog; the real catalog is owned by another
part of the marketplace.
"""

from __future__ import annotations

import uuid

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.catalog import CatalogItem, ItemType
from marketplace.domain.model.value_objects import Money
from marketplace.domain.repository.catalog_store import CatalogStore


class AddCatalogItemHandler:

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog

    def handle(
        self,
        item_type: str,
        name: str,
        price: str,
        seller_id: str,
        stock: int | None = None,
        images: list[str] | None = None,
    ) -> CatalogItem:
        """Add a new Product or Service to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Item name is required")
        if not seller_id or not seller_id.strip():
            raise ValidationError("Seller is required")
        try:
            kind = ItemType(item_type)
        except ValueError:
            raise ValidationError(f"Invalid item type: {item_type}") from None

        item = CatalogItem(
            id=uuid.uuid4().hex,
            item_type=kind,
            name=name.strip(),
            price=Money.of(price),
            seller_id=seller_id.strip(),
            stock=stock,
            images=list(images or []),
        )
        self._catalog.save(item)
        return item
