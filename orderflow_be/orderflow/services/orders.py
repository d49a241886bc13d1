"""
Order lifecycle operations: read, cancel, confirm, reject and move orders
through fulfillment.

Every mutation follows the same path: access check, load the order with its
items and products, validate the transition against the state machine, then
write status, timestamps, refund marker and stock inside one ``atomic``
block.
"""
import logging
from collections import namedtuple
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from orderflow.config import get_settings
from orderflow.models.order import Order, OrderItem
from orderflow.models.product import Product
from orderflow.models.status import OrderStatus, Role
from orderflow.services import access, state_machine, stock
from orderflow.services.payments import PaymentGateway, get_payment_gateway
from orderflow.services.state_machine import OrderEvent
from orderflow.utils.db import atomic
from orderflow.utils.errors import InvalidTransition, NotFound, PolicyViolation, ValidationError

logger = logging.getLogger(__name__)

VendorOrderView = namedtuple("VendorOrderView", ["order", "items"])
VendorOrderPage = namedtuple("VendorOrderPage", ["orders", "counts", "total", "limit", "offset"])


def load_order(db: Session, order_id: int, for_update: bool = False) -> Order:
    query = (
        db.query(Order)
        .options(
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.requests),
        )
        .filter(Order.id == order_id)
    )
    if for_update:
        query = query.with_for_update()
    order = query.first()
    if not order:
        raise NotFound("Order not found")
    return order


def _log_transition(order: Order, old: OrderStatus, new: OrderStatus, actor):
    logger.info("Order %s: %s -> %s (actor=%s)", order.id, old.value, new.value, actor.id)


def _refund_amount(order: Order, items: List[OrderItem]) -> Decimal:
    if len(items) == len(order.items):
        return Decimal(order.total_amount or 0)
    return sum((Decimal(i.total_price or 0) for i in items), Decimal("0"))


def _non_returnable(items: List[OrderItem]) -> List[Dict]:
    return [
        {"orderItemId": i.id, "productId": i.product_id, "name": i.product.name}
        for i in items
        if not i.product.is_returnable
    ]


# Reads

def get_order(db: Session, order_id: int, actor) -> Order:
    order = load_order(db, order_id)
    access.require_owner_or_admin(actor, order)
    return order


def list_orders(db: Session, actor) -> List[Order]:
    query = db.query(Order).options(selectinload(Order.items).selectinload(OrderItem.product))
    if not access.is_admin(actor):
        query = query.filter(Order.user_id == actor.id)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_vendor_order(db: Session, order_id: int, actor) -> VendorOrderView:
    order = load_order(db, order_id)
    items = access.require_vendor_scope(actor, order)
    return VendorOrderView(order=order, items=items)


def list_vendor_orders(
    db: Session,
    actor,
    status: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> VendorOrderPage:
    """Orders containing the vendor's products, with per-status counts.

    Admins see every order. Counts ignore ``status`` and pagination.
    """
    access.require_role(actor, Role.VENDOR)
    if limit is None:
        limit = get_settings().VENDOR_ORDERS_PAGE_SIZE
    if limit < 1 or offset < 0:
        raise ValidationError("limit must be positive and offset non-negative")

    scope = []
    if not access.is_admin(actor):
        scope.append(Order.items.any(OrderItem.product.has(Product.vendor_id == actor.id)))

    query = db.query(Order).options(selectinload(Order.items).selectinload(OrderItem.product)).filter(*scope)
    if status and status.lower() != "all":
        query = query.filter(Order.status == state_machine.parse_status(status).value)
    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit).all()

    rows = db.query(Order.status, func.count(Order.id)).filter(*scope).group_by(Order.status).all()
    counts = {s.value: 0 for s in OrderStatus}
    for row_status, count in rows:
        counts[row_status] = count
    total = sum(counts.values())
    counts["all"] = total

    views = []
    for order in orders:
        items = list(order.items) if access.is_admin(actor) else access.vendor_items(actor, order.items)
        views.append(VendorOrderView(order=order, items=items))
    return VendorOrderPage(orders=views, counts=counts, total=total, limit=limit, offset=offset)


# Mutations

def _cancel(
    db: Session,
    order: Order,
    actor,
    items: List[OrderItem],
    reason: Optional[str],
    gateway: Optional[PaymentGateway],
) -> Order:
    state_machine.resolve(order.status_enum, OrderEvent.CANCEL)
    items = stock.unreturned_items(order, items)

    blocked = _non_returnable(items)
    if blocked:
        names = ", ".join(b["name"] for b in blocked)
        raise PolicyViolation(
            f"Cannot cancel order. Some products are not refundable: {names}",
            details={"items": blocked},
        )

    gateway = gateway or get_payment_gateway()
    with atomic(db):
        now = datetime.utcnow()
        old, new = state_machine.apply(order, OrderEvent.CANCEL, now)
        order.cancellation_reason = reason or None
        refund_status = gateway.refund(order, _refund_amount(order, items), f"cancel:{order.id}")
        order.payment_status = refund_status.value
        stock.restore_items(db, items)
    _log_transition(order, old, new, actor)
    db.refresh(order)
    return order


def cancel_order(db: Session, order_id: int, actor, gateway: Optional[PaymentGateway] = None) -> Order:
    """Customer cancellation of their own order; restores stock for every item."""
    order = load_order(db, order_id, for_update=True)
    access.require_owner(actor, order, "You can only cancel your own orders")
    return _cancel(db, order, actor, list(order.items), None, gateway)


def vendor_cancel_order(
    db: Session,
    order_id: int,
    actor,
    reason: Optional[str] = None,
    gateway: Optional[PaymentGateway] = None,
) -> Order:
    """Vendor cancellation; only the vendor's own items go back to stock."""
    order = load_order(db, order_id, for_update=True)
    items = access.require_vendor_scope(actor, order)
    return _cancel(db, order, actor, items, reason, gateway)


def confirm_order(db: Session, order_id: int, actor) -> Order:
    order = load_order(db, order_id, for_update=True)
    access.require_vendor_scope(actor, order)
    state_machine.resolve(order.status_enum, OrderEvent.CONFIRM)

    with atomic(db):
        now = datetime.utcnow()
        old, new = state_machine.apply(order, OrderEvent.CONFIRM, now)
        order.expected_delivery_date = now + timedelta(days=get_settings().EXPECTED_DELIVERY_DAYS)
    _log_transition(order, old, new, actor)
    db.refresh(order)
    return order


def reject_order(db: Session, order_id: int, actor, reason: Optional[str] = None) -> Order:
    order = load_order(db, order_id, for_update=True)
    items = access.require_vendor_scope(actor, order)
    state_machine.resolve(order.status_enum, OrderEvent.REJECT)

    with atomic(db):
        stock.restore_items(db, stock.unreturned_items(order, items))
        old, new = state_machine.apply(order, OrderEvent.REJECT)
        order.rejection_reason = reason or None
    _log_transition(order, old, new, actor)
    db.refresh(order)
    return order


def update_order_status(db: Session, order_id: int, actor, new_status) -> Order:
    """Advance fulfillment by exactly one step (confirmed -> dispatched -> shipped -> delivered)."""
    target = state_machine.parse_status(new_status)
    event = state_machine.fulfillment_event_for(target)

    order = load_order(db, order_id, for_update=True)
    access.require_vendor_scope(actor, order)

    current = order.status_enum
    if current == target:
        raise InvalidTransition(f"Order is already {target.value}")
    if current == OrderStatus.PENDING:
        raise InvalidTransition("Pending orders must be confirmed first. Use the confirm operation.")
    state_machine.resolve(current, event)

    with atomic(db):
        old, new = state_machine.apply(order, event)
    _log_transition(order, old, new, actor)
    db.refresh(order)
    return order
