# app/services/order_state.py
"""
Order status state machine.

    pending   -> confirmed, cancelled
    confirmed -> shipped, cancelled
    shipped   -> delivered
    delivered -> (terminal)
    cancelled -> (terminal)

Both checkout (pending -> confirmed on payment success) and the admin
status endpoints go through `transition`; nothing else assigns
Order.status.
"""
from app.core.errors import InvalidTransition
from app.models.order import Order

ORDER_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "pending": ("confirmed", "cancelled"),
    "confirmed": ("shipped", "cancelled"),
    "shipped": ("delivered",),
    "delivered": (),
    "cancelled": (),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ORDER_TRANSITIONS.items() if not targets
)


def valid_transitions(status: str) -> list[str]:
    """Statuses reachable from `status` in one step."""
    return list(ORDER_TRANSITIONS.get(status, ()))


def can_transition(current: str, target: str) -> bool:
    return target in ORDER_TRANSITIONS.get(current, ())


def transition(order: Order, target: str) -> Order:
    """
    Move `order` to `target`.

    Only the status field changes; timestamps and persistence are up to
    the caller.

    Raises:
        InvalidTransition: if target is not an allowed successor.
    """
    current = order.status
    if not can_transition(current, target):
        raise InvalidTransition(current, target, valid_transitions(current))

    order.status = target
    return order
