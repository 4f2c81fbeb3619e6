"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items.  Lines are frozen
snapshots of the catalog at purchase time; the total is computed once, at
creation, and never again.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from marketplace.domain.exceptions import InvalidStatusError, ValidationError
from marketplace.domain.model.catalog import ItemType
from marketplace.domain.model.value_objects import Address, Money, Quantity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(Enum):
    PENDING_PAYMENT = "pending_payment"
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    BOOKED = "booked"
    SERVICE_IN_PROGRESS = "service_in_progress"
    COMPLETED = "completed"
    CANCELLED_BY_BUYER = "cancelled_by_buyer"
    CANCELLED_BY_SELLER = "cancelled_by_seller"
    DISPUTED = "disputed"

    @staticmethod
    def parse(value: str | None) -> OrderStatus:
        """Map a raw status string to the enum, rejecting anything unknown."""
        try:
            return OrderStatus(value)
        except ValueError:
            raise InvalidStatusError(f"Invalid status value: {value}") from None

    @property
    def is_cancellation(self) -> bool:
        return self in (OrderStatus.CANCELLED_BY_BUYER, OrderStatus.CANCELLED_BY_SELLER)

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset({
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED_BY_BUYER,
    OrderStatus.CANCELLED_BY_SELLER,
    OrderStatus.DISPUTED,
})


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


DEFAULT_PAYMENT_METHOD = "stripe_placeholder"


@dataclass
class PaymentDetails:
    method: str = DEFAULT_PAYMENT_METHOD
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None
    paid_at: datetime | None = None

    def mark_completed(self, at: datetime) -> None:
        self.status = PaymentStatus.COMPLETED
        self.paid_at = at


@dataclass(frozen=True)
class OrderLine:
    """Captures the catalog item as it was at order-creation time.

    ``name``, ``image``, ``price_at_purchase`` and ``seller_id`` are copies;
    editing the catalog afterwards leaves historical orders untouched.
    """

    item_id: str
    item_type: ItemType
    name: str
    quantity: Quantity
    price_at_purchase: Money  # locked at order-creation time
    seller_id: str
    image: str | None = None

    @property
    def line_total(self) -> Money:
        return self.price_at_purchase * self.quantity.value

    @property
    def tracks_stock(self) -> bool:
        return self.item_type.tracks_stock


@dataclass
class Order:
    """Aggregate root for marketplace orders.

    Use the ``Order.create()`` factory for new orders; it enforces the
    creation invariants.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: str
    buyer_id: str
    items: list[OrderLine]
    total_amount: Money
    payment: PaymentDetails = field(default_factory=PaymentDetails)
    status: OrderStatus = OrderStatus.PENDING_PAYMENT
    shipping_address: Address | None = None
    service_address: Address | None = None
    service_date: datetime | None = None
    notes_to_seller: str | None = None
    cancellation_reason: str | None = None
    stock_reserved: bool = False
    version: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        buyer_id: str,
        items: list[OrderLine],
        payment_method: str | None = None,
        shipping_address: Address | None = None,
        service_address: Address | None = None,
        service_date: datetime | None = None,
        notes_to_seller: str | None = None,
    ) -> Order:
        """Create a new order in ``pending_payment``, enforcing all invariants."""
        if not buyer_id:
            raise ValidationError("An order must belong to a buyer")
        if not items:
            raise ValidationError("Order must contain at least one item.")

        total = Money.zero(items[0].price_at_purchase.currency)
        for line in items:
            total = total + line.line_total

        now = _utcnow()
        return Order(
            id=uuid.uuid4().hex,
            buyer_id=buyer_id,
            items=list(items),
            total_amount=total,
            payment=PaymentDetails(method=payment_method or DEFAULT_PAYMENT_METHOD),
            shipping_address=shipping_address,
            service_address=service_address,
            service_date=service_date,
            notes_to_seller=notes_to_seller,
            created_at=now,
            updated_at=now,
        )

    # --- Computed properties --------------------------------------------------

    @property
    def seller_ids(self) -> frozenset[str]:
        return frozenset(line.seller_id for line in self.items)

    @property
    def stock_lines(self) -> list[tuple[int, OrderLine]]:
        """(index, line) pairs for lines whose catalog item tracks stock."""
        return [(i, line) for i, line in enumerate(self.items) if line.tracks_stock]

    @property
    def lines_total(self) -> Money:
        result = Money.zero(self.total_amount.currency)
        for line in self.items:
            result = result + line.line_total
        return result

    # --- Mutation helpers -----------------------------------------------------

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def clone(self) -> Order:
        """Independent copy, so a failed write never leaks into the caller's order."""
        return copy.deepcopy(self)
