"""Who may see an order and who may move it through its lifecycle."""

from __future__ import annotations

from marketplace.domain.model.actor import Actor
from marketplace.domain.model.order import Order


def can_view(order: Order, actor: Actor) -> bool:
    """Buyer, any seller with a line in the order, or an admin."""
    return (
        actor.is_admin
        or actor.id == order.buyer_id
        or actor.id in order.seller_ids
    )


def can_mutate_status(order: Order, actor: Actor) -> bool:
    """Admins and sellers with a line in the order.  Buyers never."""
    return actor.is_admin or actor.id in order.seller_ids
