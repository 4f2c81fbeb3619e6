"""Abstract repository for the Order aggregate.

Writes are compare-and-swap on ``Order.version``: the store only accepts an
update when the persisted version still equals the version the caller read.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from marketplace.domain.model.order import Order, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: str) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def add(self, order: Order) -> None:
        """Insert a new order and set its version to 1."""

    @abstractmethod
    def save(self, order: Order, expected_version: int) -> None:
        """Replace the stored order if its version is still ``expected_version``.

        On success ``order.version`` becomes ``expected_version + 1``.
        Raises ConcurrencyError otherwise, NotFoundError if the order is gone.
        """

    @abstractmethod
    def list_for_buyer(self, buyer_id: str) -> list[Order]:
        """Orders placed by ``buyer_id``, newest first."""

    @abstractmethod
    def list_for_seller(self, seller_id: str) -> list[Order]:
        """Orders with at least one line sold by ``seller_id``, newest first."""

    @abstractmethod
    def list_by_status(self, status: OrderStatus) -> list[Order]:
        """Orders currently in ``status``, newest first."""
