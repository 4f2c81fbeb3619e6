"""Domain service: Stock Ledger.

The only code path allowed to change catalog stock.  Reserving or releasing
an order touches several catalog documents with no cross-document
transaction, so a failed line is undone explicitly: every adjustment already
applied in the same call gets a compensating adjustment before the error is
re-raised.

Adjustments are grouped in a *batch*, one per transition attempt.  Each
adjustment carries an idempotency key built from the batch, the operation
and the line index, so repeating a call within the batch never applies it
twice.  Once the attempt is settled the batch's keys are dropped from the
catalog with ``settle``.
"""

from __future__ import annotations

import logging
import uuid

from marketplace.domain.exceptions import NotFoundError, StockAdjustmentError
from marketplace.domain.model.order import Order, OrderLine
from marketplace.domain.repository.catalog_store import CatalogStore

log = logging.getLogger(__name__)

_RESERVE = "reserve"
_RELEASE = "release"


class StockLedger:

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog

    @staticmethod
    def new_batch(order: Order) -> str:
        """Key prefix for one transition attempt on ``order``."""
        return f"{order.id}:v{order.version}:{uuid.uuid4().hex[:12]}"

    def reserve(self, order: Order, batch: str) -> None:
        """Decrement stock for every Product line, all or nothing.

        Raises InsufficientStockError or StockAdjustmentError; in both cases
        the catalog is back at its pre-call levels.
        """
        self._apply(order, batch, _RESERVE, sign=-1)

    def release(self, order: Order, batch: str) -> None:
        """Give back the stock held by every Product line, all or nothing."""
        self._apply(order, batch, _RELEASE, sign=1)

    def settle(self, batch: str) -> None:
        """Forget the idempotency keys recorded for ``batch``."""
        self._catalog.forget_keys(batch)

    # --- Internal helpers -----------------------------------------------------

    def _apply(self, order: Order, batch: str, operation: str, sign: int) -> None:
        applied: list[tuple[int, OrderLine]] = []
        try:
            for index, line in order.stock_lines:
                self._adjust(line, sign * line.quantity.value, _key(batch, operation, index))
                applied.append((index, line))
        except Exception:
            if applied:
                log.warning(
                    "[Order: %s] Stock %s failed, rolling back %d line(s).",
                    order.id, operation, len(applied),
                )
                self._compensate(order, batch, operation, sign, applied)
            raise
        if applied:
            log.info("[Order: %s] Stock %s applied to %d line(s).", order.id, operation, len(applied))

    def _adjust(self, line: OrderLine, delta: int, key: str) -> int:
        try:
            return self._catalog.adjust_stock(line.item_id, delta, key=key)
        except NotFoundError as exc:
            raise StockAdjustmentError(
                line.item_id,
                f"Catalog item '{line.name}' ({line.item_id}) no longer exists",
            ) from exc

    def _compensate(
        self,
        order: Order,
        batch: str,
        operation: str,
        sign: int,
        applied: list[tuple[int, OrderLine]],
    ) -> None:
        for index, line in reversed(applied):
            undo_key = _key(batch, operation, index) + ":undo"
            try:
                self._adjust(line, -sign * line.quantity.value, undo_key)
            except Exception as exc:
                log.critical(
                    "[Order: %s] Compensation failed for item %s (key %s); "
                    "manual stock reconciliation required.",
                    order.id, line.item_id, undo_key, exc_info=True,
                )
                raise StockAdjustmentError(
                    line.item_id,
                    f"Could not roll back stock for '{line.name}' ({line.item_id})",
                ) from exc


def _key(batch: str, operation: str, index: int) -> str:
    return f"{batch}:{operation}:{index}"
