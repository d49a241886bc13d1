"""
Order lifecycle state machine.

The whole graph lives in ``TRANSITIONS``: each event maps to the statuses it
may start from and the status it leads to. ``HOLDS`` lists statuses where
an event is accepted but leaves the order where it is (a second return
request on an order already awaiting a return, or a rejected request while
another one is still pending). Everything else derives from these two
tables.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from orderflow.models.status import OrderStatus as S
from orderflow.utils.errors import InvalidTransition, ValidationError


class OrderEvent(str, Enum):
    CONFIRM = "confirm"
    DISPATCH = "dispatch"
    SHIP = "ship"
    DELIVER = "deliver"
    CANCEL = "cancel"
    REJECT = "reject"
    REQUEST_RETURN = "request_return"
    REQUEST_REPLACE = "request_replace"
    COMPLETE_RETURN = "complete_return"
    COMPLETE_REPLACE = "complete_replace"
    WITHDRAW_REQUEST = "withdraw_request"


ALL_STATUSES: FrozenSet[S] = frozenset(S)

TERMINAL_STATUSES: FrozenSet[S] = frozenset({
    S.CANCELLED, S.REJECTED, S.RETURN_PROCESSED, S.REPLACE_PROCESSED,
})

TRANSITIONS: Dict[OrderEvent, Tuple[FrozenSet[S], S]] = {
    # forward fulfillment, one step at a time
    OrderEvent.CONFIRM: (frozenset({S.PENDING}), S.CONFIRMED),
    OrderEvent.DISPATCH: (frozenset({S.CONFIRMED}), S.DISPATCHED),
    OrderEvent.SHIP: (frozenset({S.DISPATCHED}), S.SHIPPED),
    OrderEvent.DELIVER: (frozenset({S.SHIPPED}), S.DELIVERED),
    # shipped and delivered orders go through return/replace instead
    OrderEvent.CANCEL: (ALL_STATUSES - TERMINAL_STATUSES - {S.SHIPPED, S.DELIVERED}, S.CANCELLED),
    OrderEvent.REJECT: (ALL_STATUSES - TERMINAL_STATUSES - {S.DELIVERED}, S.REJECTED),
    OrderEvent.REQUEST_RETURN: (ALL_STATUSES - {S.CANCELLED, S.REJECTED, S.RETURN_PROCESSED}, S.RETURN_REQUESTED),
    OrderEvent.REQUEST_REPLACE: (ALL_STATUSES - {S.CANCELLED, S.REJECTED, S.REPLACE_PROCESSED}, S.REPLACE_REQUESTED),
    OrderEvent.COMPLETE_RETURN: (ALL_STATUSES - {S.CANCELLED, S.REJECTED}, S.RETURN_PROCESSED),
    OrderEvent.COMPLETE_REPLACE: (ALL_STATUSES - {S.CANCELLED, S.REJECTED}, S.REPLACE_PROCESSED),
    # the only way back: last pending request on the order was rejected
    OrderEvent.WITHDRAW_REQUEST: (frozenset({S.RETURN_REQUESTED, S.REPLACE_REQUESTED}), S.DELIVERED),
}

HOLDS: Dict[OrderEvent, FrozenSet[S]] = {
    OrderEvent.REQUEST_RETURN: frozenset({S.RETURN_REQUESTED, S.RETURN_APPROVED}),
    OrderEvent.REQUEST_REPLACE: frozenset({S.REPLACE_REQUESTED, S.REPLACE_APPROVED}),
    OrderEvent.WITHDRAW_REQUEST: ALL_STATUSES - {S.RETURN_REQUESTED, S.REPLACE_REQUESTED},
}

TIMESTAMP_FIELDS: Dict[OrderEvent, str] = {
    OrderEvent.CONFIRM: "confirmed_at",
    OrderEvent.DISPATCH: "dispatched_at",
    OrderEvent.SHIP: "shipped_at",
    OrderEvent.DELIVER: "delivered_at",
    OrderEvent.CANCEL: "cancelled_at",
    OrderEvent.REJECT: "rejected_at",
}

# statuses reachable through the generic status-update operation
FULFILLMENT_EVENTS: Dict[S, OrderEvent] = {
    S.CONFIRMED: OrderEvent.CONFIRM,
    S.DISPATCHED: OrderEvent.DISPATCH,
    S.SHIPPED: OrderEvent.SHIP,
    S.DELIVERED: OrderEvent.DELIVER,
}

_REFUSALS: Dict[Tuple[OrderEvent, S], str] = {
    (OrderEvent.CANCEL, S.CANCELLED): "Order is already cancelled",
    (OrderEvent.CANCEL, S.REJECTED): "Cannot cancel a rejected order",
    (OrderEvent.CANCEL, S.RETURN_PROCESSED): "Cannot cancel a processed return/replace order",
    (OrderEvent.CANCEL, S.REPLACE_PROCESSED): "Cannot cancel a processed return/replace order",
    (OrderEvent.CANCEL, S.SHIPPED): (
        "Order is already shipped or delivered. Please use the return/replace request feature instead."
    ),
    (OrderEvent.CANCEL, S.DELIVERED): (
        "Order is already shipped or delivered. Please use the return/replace request feature instead."
    ),
    (OrderEvent.REQUEST_RETURN, S.CANCELLED): "Cannot return items from this order",
    (OrderEvent.REQUEST_RETURN, S.RETURN_PROCESSED): "Cannot return items from this order",
    (OrderEvent.REQUEST_RETURN, S.REJECTED): "Cannot return items from this order",
    (OrderEvent.REQUEST_REPLACE, S.CANCELLED): "Cannot replace items from this order",
    (OrderEvent.REQUEST_REPLACE, S.REPLACE_PROCESSED): "Cannot replace items from this order",
    (OrderEvent.REQUEST_REPLACE, S.REJECTED): "Cannot replace items from this order",
}


def parse_status(value) -> S:
    try:
        return S(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown order status: {value}")


def resolve(current: S, event: OrderEvent) -> S:
    """Status the order ends in after ``event``; raises when not allowed."""
    sources, target = TRANSITIONS[event]
    if current in HOLDS.get(event, ()):
        return current
    if current not in sources:
        message = _REFUSALS.get((event, current)) or (
            f"Cannot {event.value.replace('_', ' ')} order with status: {current.value}"
        )
        raise InvalidTransition(
            message,
            details={"from": current.value, "event": event.value, "allowed": sorted(s.value for s in sources)},
        )
    return target


def can(current: S, event: OrderEvent) -> bool:
    try:
        resolve(current, event)
    except InvalidTransition:
        return False
    return True


def next_statuses(current: S) -> FrozenSet[S]:
    """Every status one event away from ``current``."""
    reachable = set()
    for event, (sources, target) in TRANSITIONS.items():
        if current in sources and current not in HOLDS.get(event, ()) and target != current:
            reachable.add(target)
    return frozenset(reachable)


def fulfillment_event_for(new_status: S) -> OrderEvent:
    try:
        return FULFILLMENT_EVENTS[new_status]
    except KeyError:
        allowed = ", ".join(s.value for s in FULFILLMENT_EVENTS)
        raise ValidationError(f"Invalid status. Allowed values: {allowed}")


def apply(order, event: OrderEvent, now: Optional[datetime] = None) -> Tuple[S, S]:
    """Move ``order`` through ``event`` and stamp the matching timestamp.

    Returns ``(old, new)``; ``old == new`` when the event holds.
    """
    current = S(order.status)
    target = resolve(current, event)
    if target != current:
        now = now or datetime.utcnow()
        order.status = target.value
        field = TIMESTAMP_FIELDS.get(event)
        if field:
            setattr(order, field, now)
        order.updated_at = now
    return current, target
