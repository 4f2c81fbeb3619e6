"""Application service: Place Order use case.

Builds the order from the catalog (no stock is touched yet; inventory is
committed on the first payment-confirming transition) and persists it.
"""

from __future__ import annotations

import logging

from marketplace.application.dto import PlaceOrderRequest
from marketplace.application.order_builder import OrderBuilder
from marketplace.domain.model.actor import Actor
from marketplace.domain.model.order import Order
from marketplace.domain.repository.catalog_store import CatalogStore
from marketplace.domain.repository.order_repository import OrderRepository

log = logging.getLogger(__name__)


class PlaceOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        catalog: CatalogStore,
    ) -> None:
        self._order_repo = order_repo
        self._builder = OrderBuilder(catalog)

    def handle(self, actor: Actor, request: PlaceOrderRequest) -> Order:
        order = self._builder.build(buyer_id=actor.id, request=request)
        self._order_repo.add(order)
        log.info(
            "[Order: %s] Placed by buyer %s: %d line(s), total %s",
            order.id, actor.id, len(order.items), order.total_amount,
        )
        return order
