"""Order event notifications.

Events are emitted after the operation that caused them has been
persisted.  Delivery is best effort: a failing publisher is logged and
never changes the outcome of the operation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from marketplace.domain.model.actor import Actor
from marketplace.domain.model.order import Order

log = logging.getLogger(__name__)


class OrderEventKind(Enum):
    CREATED = "order.created"
    VIEWED = "order.viewed"
    STATUS_CHANGED = "order.status_changed"


@dataclass(frozen=True)
class OrderEvent:
    kind: OrderEventKind
    order_id: str
    status: str
    actor_id: str
    seller_ids: tuple[str, ...] = ()
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def of(kind: OrderEventKind, order: Order, actor: Actor) -> OrderEvent:
        return OrderEvent(
            kind=kind,
            order_id=order.id,
            status=order.status.value,
            actor_id=actor.id,
            seller_ids=tuple(sorted(order.seller_ids)),
        )


class OrderEventPublisher(ABC):

    @abstractmethod
    def publish(self, event: OrderEvent) -> None:
        """Deliver one event to whoever listens."""


class LoggingEventPublisher(OrderEventPublisher):
    """Writes events to the log; the default when no broker is configured."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or logging.getLogger("marketplace.events")

    def publish(self, event: OrderEvent) -> None:
        self._log.info(
            "%s order=%s status=%s actor=%s",
            event.kind.value, event.order_id, event.status, event.actor_id,
        )


def publish_best_effort(publisher: OrderEventPublisher, event: OrderEvent) -> None:
    try:
        publisher.publish(event)
    except Exception:
        log.exception(
            "[Order: %s] Failed to publish %s; continuing.", event.order_id, event.kind.value
        )
