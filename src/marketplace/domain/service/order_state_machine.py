"""Domain service: Order State Machine.

Owns every status change of an order.  The legal edges and their stock side
effects come from ``marketplace.domain.model.transitions``; this service
checks the caller, runs the side effect and persists the result.

Reservations are written stock-first: the stock is taken, then the order is
persisted with a compare-and-swap on its version.  A lost compare-and-swap
gives the stock back and raises ConcurrencyError, so a paid order is never
visible without its stock.

Cancellations are written claim-first: the terminal status is persisted
before stock is released, so two concurrent cancellations cannot both
release.  If the release fails the order is put back and the error
propagates.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from marketplace.domain.exceptions import (
    ConcurrencyError,
    ForbiddenTransitionError,
    ValidationError,
)
from marketplace.domain.model.actor import Actor
from marketplace.domain.model.order import Order, OrderStatus, PaymentStatus
from marketplace.domain.model.transitions import SideEffect, transition_effect
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.domain.service.order_access_policy import can_mutate_status
from marketplace.domain.service.stock_ledger import StockLedger

log = logging.getLogger(__name__)


class OrderStateMachine:

    def __init__(self, order_repo: OrderRepository, ledger: StockLedger) -> None:
        self._order_repo = order_repo
        self._ledger = ledger

    def apply_transition(
        self,
        order: Order,
        new_status: str | OrderStatus,
        actor: Actor,
        reason: str | None = None,
    ) -> Order:
        """Move ``order`` to ``new_status`` and return the persisted order.

        The ``order`` argument is never modified; on success the returned
        object is a new copy carrying the new version.
        """
        if isinstance(new_status, OrderStatus):
            target = new_status
        else:
            target = OrderStatus.parse(new_status)

        if not can_mutate_status(order, actor):
            raise ForbiddenTransitionError(
                "You are not authorized to update this order status."
            )

        # Retried requests land here
        if target is order.status:
            return order

        effect = transition_effect(order.status, target)

        reason = (reason or "").strip() or None
        if target.is_cancellation and reason is None:
            raise ValidationError("A cancellation reason is required.")

        updated = order.clone()
        updated.status = target
        updated.touch()

        if effect is SideEffect.RESERVE and order.payment.status is PaymentStatus.PENDING:
            updated.payment.mark_completed(datetime.now(timezone.utc))
            updated.stock_reserved = bool(order.stock_lines)
            if updated.stock_reserved:
                self._reserve_then_save(order, updated)
            else:
                self._order_repo.save(updated, expected_version=order.version)
        elif effect is SideEffect.RELEASE:
            updated.cancellation_reason = reason
            updated.stock_reserved = False
            if order.stock_reserved:
                self._save_then_release(order, updated)
            else:
                self._order_repo.save(updated, expected_version=order.version)
        else:
            self._order_repo.save(updated, expected_version=order.version)

        log.info(
            "[Order: %s] %s -> %s by %s %s",
            order.id, order.status.value, target.value, actor.role.value, actor.id,
        )
        return updated

    # --- Internal helpers -----------------------------------------------------

    def _reserve_then_save(self, original: Order, updated: Order) -> None:
        batch = StockLedger.new_batch(original)
        try:
            try:
                self._ledger.reserve(updated, batch)
            except Exception:
                self._raise_if_stale(original)
                raise
            try:
                self._order_repo.save(updated, expected_version=original.version)
            except Exception:
                self._give_back(updated, batch)
                raise
        finally:
            self._ledger.settle(batch)

    def _save_then_release(self, original: Order, updated: Order) -> None:
        # Cancelled is terminal; nothing else can write the claimed order.
        self._order_repo.save(updated, expected_version=original.version)
        batch = StockLedger.new_batch(original)
        try:
            self._ledger.release(updated, batch)
        except Exception:
            self._restore(original, updated)
            raise
        finally:
            self._ledger.settle(batch)

    def _raise_if_stale(self, original: Order) -> None:
        """Report a lost race instead of the stock error it caused."""
        current = self._order_repo.get_by_id(original.id)
        if current is None or current.version != original.version:
            raise ConcurrencyError(f"Order {original.id} was modified concurrently")

    def _give_back(self, updated: Order, batch: str) -> None:
        try:
            self._ledger.release(updated, batch)
        except Exception:
            log.critical(
                "[Order: %s] Could not return stock after a lost update; "
                "manual stock reconciliation required.",
                updated.id, exc_info=True,
            )

    def _restore(self, original: Order, claimed: Order) -> None:
        restored = original.clone()
        try:
            self._order_repo.save(restored, expected_version=claimed.version)
        except Exception:
            log.critical(
                "[Order: %s] Could not restore order after failed stock step; "
                "persisted status %s does not match stock.",
                original.id, claimed.status.value, exc_info=True,
            )
