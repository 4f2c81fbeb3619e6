"""Order Builder: turns a raw cart request into a priced, unsaved Order.

Steps:
1. Validate every line's shape (tag, id, quantity) before any lookup.
2. Resolve each line against the catalog and snapshot name, image, price
   and seller.
3. Pre-check Product stock.  The authoritative check happens later in the
   stock ledger, when stock is actually committed.
4. Check addresses against the kinds of items in the cart.

Nothing is written here; the caller decides whether to persist.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from typing import Any

from marketplace.application.dto import OrderLineInput, PlaceOrderRequest
from marketplace.domain.exceptions import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from marketplace.domain.model.catalog import CatalogItem, ItemType
from marketplace.domain.model.order import Order, OrderLine
from marketplace.domain.model.value_objects import Address
from marketplace.domain.repository.catalog_store import CatalogStore


class OrderBuilder:

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog

    def build(self, buyer_id: str, request: PlaceOrderRequest) -> Order:
        if not request.items:
            raise ValidationError("Order must contain at least one item.")

        inputs = [
            OrderLineInput.parse(raw, position)
            for position, raw in enumerate(request.items)
        ]

        resolved = [(wanted, self._resolve(wanted)) for wanted in inputs]
        self._check_stock(resolved)

        lines = [
            OrderLine(
                item_id=item.id,
                item_type=item.item_type,
                name=item.name,
                image=item.image,
                quantity=wanted.quantity,
                price_at_purchase=item.price,  # <-- price snapshot
                seller_id=item.seller_id,
            )
            for wanted, item in resolved
        ]

        has_product = any(line.item_type is ItemType.PRODUCT for line in lines)
        has_service = any(line.item_type is ItemType.SERVICE for line in lines)

        shipping_address = None
        if has_product:
            shipping_address = _parse_address(request.shipping_address)
            if shipping_address is None or not shipping_address.is_complete_for_shipping:
                raise ValidationError(
                    "Shipping address is required for orders with products."
                )

        return Order.create(
            buyer_id=buyer_id,
            items=lines,
            payment_method=request.payment_method,
            shipping_address=shipping_address,
            service_address=_parse_address(request.service_address) if has_service else None,
            service_date=request.service_date if has_service else None,
            notes_to_seller=request.notes_to_seller,
        )

    # --- Internal helpers -----------------------------------------------------

    def _resolve(self, wanted: OrderLineInput) -> CatalogItem:
        item = self._catalog.find_by_id(wanted.item_id, wanted.item_type)
        if item is None:
            raise NotFoundError(
                f"{wanted.item_type.value} with ID {wanted.item_id} not found."
            )
        return item

    @staticmethod
    def _check_stock(resolved: list[tuple[OrderLineInput, CatalogItem]]) -> None:
        # Repeated lines for the same product draw on the same stock.
        requested: dict[str, int] = defaultdict(int)
        items: dict[str, CatalogItem] = {}
        for wanted, item in resolved:
            if item.item_type.tracks_stock:
                requested[item.id] += wanted.quantity.value
                items[item.id] = item

        for item_id, quantity in requested.items():
            item = items[item_id]
            if quantity > item.stock:
                raise InsufficientStockError(
                    item_id=item.id,
                    name=item.name,
                    requested=quantity,
                    available=item.stock,
                )


def _parse_address(raw: Mapping[str, Any] | None) -> Address | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise ValidationError("Address must be an object.")
    return Address(
        street=raw.get("street"),
        city=raw.get("city"),
        state=raw.get("state"),
        zip_code=raw.get("zipCode"),
        country=raw.get("country"),
        phone_number=raw.get("phoneNumber"),
    )
