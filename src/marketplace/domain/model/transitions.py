"""Order status transition table.

Every legal ``(from, to)`` pair is listed once, together with the stock side
effect it may trigger.  Whether the effect actually runs also depends on the
order (payment still pending, stock currently reserved); the state machine
decides that, this table only says which effect belongs to the edge.
"""

from __future__ import annotations

from enum import Enum

from marketplace.domain.exceptions import IllegalTransitionError
from marketplace.domain.model.order import OrderStatus

S = OrderStatus


class SideEffect(Enum):
    NONE = "none"
    RESERVE = "reserve"
    RELEASE = "release"


# Forward moves along a track are legal, skipping steps included.
_TRACKS: tuple[tuple[OrderStatus, ...], ...] = (
    (S.PENDING_PAYMENT, S.PENDING_CONFIRMATION, S.CONFIRMED, S.PROCESSING,
     S.SHIPPED, S.DELIVERED),
    (S.PENDING_PAYMENT, S.PENDING_CONFIRMATION, S.CONFIRMED, S.PROCESSING,
     S.SHIPPED, S.COMPLETED),
    (S.PENDING_PAYMENT, S.PENDING_CONFIRMATION, S.BOOKED, S.SERVICE_IN_PROGRESS,
     S.COMPLETED),
)

_EXITS = (S.CANCELLED_BY_BUYER, S.CANCELLED_BY_SELLER, S.DISPUTED)

# Entering one of these while payment is pending commits the stock.
RESERVING_STATUSES = frozenset({
    S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.DELIVERED,
    S.BOOKED, S.SERVICE_IN_PROGRESS, S.COMPLETED,
})


def _effect_for(target: OrderStatus) -> SideEffect:
    if target in RESERVING_STATUSES:
        return SideEffect.RESERVE
    if target.is_cancellation:
        return SideEffect.RELEASE
    return SideEffect.NONE


def _build_table() -> dict[tuple[OrderStatus, OrderStatus], SideEffect]:
    table: dict[tuple[OrderStatus, OrderStatus], SideEffect] = {}
    for track in _TRACKS:
        for i, source in enumerate(track):
            for target in track[i + 1:]:
                if not source.is_terminal:
                    table[(source, target)] = _effect_for(target)
    for source in S:
        if source.is_terminal:
            continue
        for target in _EXITS:
            table[(source, target)] = _effect_for(target)
    return table


TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], SideEffect] = _build_table()


def allowed_targets(source: OrderStatus) -> list[OrderStatus]:
    return [target for (src, target) in TRANSITIONS if src is source]


def transition_effect(source: OrderStatus, target: OrderStatus) -> SideEffect:
    """Return the side effect of ``source -> target`` or raise if not an edge."""
    try:
        return TRANSITIONS[(source, target)]
    except KeyError:
        if source.is_terminal:
            raise IllegalTransitionError(
                f"Order is {source.value}; no further status changes are allowed"
            ) from None
        raise IllegalTransitionError(
            f"Cannot move order from {source.value} to {target.value}"
        ) from None
