"""Application service: Update Order Status use case.

Loads the order and hands it to the state machine.  A lost
compare-and-swap means someone else changed the order in between; the
handler reloads and tries again, so a duplicate concurrent request ends up
as the idempotent no-op instead of an error.
"""

from __future__ import annotations

import logging

from marketplace.domain.exceptions import ConcurrencyError, NotFoundError
from marketplace.domain.model.actor import Actor
from marketplace.domain.model.order import Order, OrderStatus
from marketplace.domain.repository.catalog_store import CatalogStore
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.service.order_state_machine import OrderStateMachine
from marketplace.domain.service.stock_ledger import StockLedger

log = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


class UpdateOrderStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        catalog: CatalogStore,
    ) -> None:
        self._order_repo = order_repo
        self._machine = OrderStateMachine(order_repo, StockLedger(catalog))

    def handle(
        self,
        order_id: str,
        new_status: str,
        actor: Actor,
        cancellation_reason: str | None = None,
    ) -> Order:
        target = OrderStatus.parse(new_status)

        attempt = 1
        while True:
            order = self._order_repo.get_by_id(order_id)
            if order is None:
                raise NotFoundError("Order not found.")
            try:
                return self._machine.apply_transition(
                    order, target, actor, reason=cancellation_reason
                )
            except ConcurrencyError:
                if attempt >= MAX_ATTEMPTS:
                    raise
                log.info(
                    "[Order: %s] Concurrent update detected, retrying (%d/%d)",
                    order_id, attempt, MAX_ATTEMPTS,
                )
                attempt += 1
