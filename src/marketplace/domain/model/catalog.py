"""Catalog items as seen by the order subsystem.

Products and Services are owned by the catalog, not by orders.  Orders only
read their price, name and seller, and adjust Product stock through the
stock ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.value_objects import Money


class ItemType(Enum):
    PRODUCT = "Product"
    SERVICE = "Service"

    @property
    def tracks_stock(self) -> bool:
        return self is ItemType.PRODUCT


@dataclass
class CatalogItem:
    """A Product or Service listed by a seller.

    ``stock`` is only meaningful for Products; Services carry ``None``.
    """

    id: str
    item_type: ItemType
    name: str
    price: Money
    seller_id: str
    stock: int | None = None
    images: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.item_type.tracks_stock:
            if self.stock is None:
                self.stock = 0
            if self.stock < 0:
                raise ValidationError(f"Stock for {self.name} cannot be negative")
        else:
            self.stock = None

    @property
    def image(self) -> str | None:
        """Main image used as the order-line snapshot (Products only)."""
        if self.item_type.tracks_stock and self.images:
            return self.images[0]
        return None
