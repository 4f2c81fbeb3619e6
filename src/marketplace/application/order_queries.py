"""Application service: order read operations.

Every read is filtered through the access policy.  An order the actor may
not see fails with ForbiddenError rather than looking absent.
"""

from __future__ import annotations

from marketplace.domain.exceptions import ForbiddenError, NotFoundError
from marketplace.domain.model.actor import Actor
from marketplace.domain.model.order import Order, OrderStatus
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.service.order_access_policy import can_view


class OrderQueries:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def get_by_id(self, order_id: str, actor: Actor) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found.")
        if not can_view(order, actor):
            raise ForbiddenError("You are not authorized to view this order.")
        return order

    def list_for_buyer(self, buyer_id: str, actor: Actor) -> list[Order]:
        if not (actor.is_admin or actor.id == buyer_id):
            raise ForbiddenError("You may only list your own orders.")
        return self._order_repo.list_for_buyer(buyer_id)

    def list_for_seller(self, seller_id: str, actor: Actor) -> list[Order]:
        if not (actor.is_admin or actor.id == seller_id):
            raise ForbiddenError("You may only list your own sales.")
        return self._order_repo.list_for_seller(seller_id)

    def list_by_status(self, status: str, actor: Actor) -> list[Order]:
        if not actor.is_admin:
            raise ForbiddenError("Only admins can list orders by status.")
        return self._order_repo.list_by_status(OrderStatus.parse(status))
