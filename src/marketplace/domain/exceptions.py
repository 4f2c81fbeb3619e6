"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the HTTP and CLI layers can catch them uniformly and display
user-friendly messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Malformed or incomplete input, or a violated business rule."""


class InvalidStatusError(ValidationError):
    """A status value outside the recognized set."""


class NotFoundError(DomainException):
    """A requested entity does not exist."""


class ForbiddenError(DomainException):
    """The actor is not allowed to see or touch the entity."""


class ForbiddenTransitionError(ForbiddenError):
    """The actor may not change this order's status."""


class IllegalTransitionError(DomainException):
    """The status change is not an edge of the order state machine."""


class ConcurrencyError(DomainException):
    """A compare-and-swap write lost against a concurrent update."""


class InsufficientStockError(DomainException):
    """Not enough stock to satisfy a Product line."""

    def __init__(self, item_id: str, name: str, requested: int, available: int) -> None:
        self.item_id = item_id
        self.name = name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for {name}. "
            f"Available: {available}, requested: {requested}"
        )


class StockAdjustmentError(DomainException):
    """A stock adjustment failed for reasons other than insufficient stock."""

    def __init__(self, item_id: str, message: str | None = None) -> None:
        self.item_id = item_id
        super().__init__(message or f"Stock adjustment failed for item '{item_id}'")
