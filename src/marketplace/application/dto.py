"""Data Transfer Objects: plain containers that cross layer boundaries.

Incoming line items arrive as loosely-shaped mappings (JSON bodies, CLI
arguments).  ``OrderLineInput.parse`` turns each one into a typed, tagged
value before anything touches the catalog.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.catalog import ItemType
from marketplace.domain.model.value_objects import Quantity


@dataclass(frozen=True)
class OrderLineInput:
    """Input: one requested catalog item, tagged by ``item_type``."""

    item_id: str
    item_type: ItemType
    quantity: Quantity

    @staticmethod
    def parse(raw: Any, position: int = 0) -> OrderLineInput:
        """Validate a raw ``{itemId, itemType, quantity}`` mapping."""
        label = f"Item #{position + 1}"
        if not isinstance(raw, Mapping):
            raise ValidationError(f"{label}: invalid item data provided.")

        item_id = raw.get("itemId")
        if not isinstance(item_id, str) or not item_id.strip():
            raise ValidationError(f"{label}: itemId is required.")

        raw_type = raw.get("itemType")
        if not raw_type:
            raise ValidationError(f"{label}: itemType is required.")
        try:
            item_type = ItemType(raw_type)
        except ValueError:
            raise ValidationError(f"Invalid item type: {raw_type}") from None

        raw_quantity = raw.get("quantity")
        if raw_quantity is None:
            raise ValidationError(f"{label}: quantity is required.")
        try:
            quantity = Quantity(raw_quantity)
        except ValidationError as exc:
            raise ValidationError(f"{label}: {exc}") from None

        return OrderLineInput(item_id=item_id.strip(), item_type=item_type, quantity=quantity)


@dataclass(frozen=True)
class PlaceOrderRequest:
    """Input: everything a buyer sends to place an order."""

    items: list[Any]
    shipping_address: Mapping[str, Any] | None = None
    service_address: Mapping[str, Any] | None = None
    service_date: datetime | None = None
    notes_to_seller: str | None = None
    payment_method: str | None = None
