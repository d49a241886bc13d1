"""
Post-delivery return and replace requests.

A request goes ``pending -> approved -> processed`` or ``pending ->
rejected``. Approval processes the request in the same transaction, so
``approved`` is never a resting state: returns are refunded and their units
restocked, replacements only move the order to ``replace_processed``.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from orderflow.models.order import OrderItem
from orderflow.models.return_request import ReturnReplaceRequest
from orderflow.models.status import (
    OPEN_REQUEST_STATUSES,
    PaymentStatus,
    RequestStatus,
    RequestType,
    Role,
)
from orderflow.services import access, state_machine, stock
from orderflow.services.orders import load_order
from orderflow.services.payments import PaymentGateway, get_payment_gateway
from orderflow.services.state_machine import OrderEvent
from orderflow.utils.db import atomic
from orderflow.utils.errors import InvalidTransition, NotFound, PolicyViolation, ValidationError

logger = logging.getLogger(__name__)

REQUEST_EVENTS = {
    RequestType.RETURN: OrderEvent.REQUEST_RETURN,
    RequestType.REPLACE: OrderEvent.REQUEST_REPLACE,
}

COMPLETE_EVENTS = {
    RequestType.RETURN: OrderEvent.COMPLETE_RETURN,
    RequestType.REPLACE: OrderEvent.COMPLETE_REPLACE,
}

DEFAULT_REJECTION_REASON = "Request rejected by vendor"


def _eligible(product, request_type: RequestType) -> bool:
    if request_type is RequestType.RETURN:
        return bool(product.is_returnable)
    return bool(product.is_replaceable)


def _duplicate_message(request_type: RequestType) -> str:
    return f"A {request_type.value} request is already pending or approved for this item"


def load_request(db: Session, request_id: int, for_update: bool = False) -> ReturnReplaceRequest:
    query = (
        db.query(ReturnReplaceRequest)
        .options(
            selectinload(ReturnReplaceRequest.order),
            selectinload(ReturnReplaceRequest.order_item).selectinload(OrderItem.product),
        )
        .filter(ReturnReplaceRequest.id == request_id)
    )
    if for_update:
        query = query.with_for_update()
    req = query.first()
    if not req:
        raise NotFound("Request not found")
    return req


def create_request(
    db: Session,
    order_id: int,
    order_item_id: int,
    actor,
    request_type: RequestType,
    reason: Optional[str] = None,
) -> ReturnReplaceRequest:
    """Open a return or replace request on one item of the actor's own order."""
    request_type = RequestType(request_type)
    noun = "returns" if request_type is RequestType.RETURN else "replacements"

    order = load_order(db, order_id, for_update=True)
    access.require_owner(actor, order, f"You can only request {noun} for your own orders")

    item = next((i for i in order.items if i.id == order_item_id), None)
    if item is None:
        raise NotFound("Order item not found")

    if not _eligible(item.product, request_type):
        adjective = "returnable" if request_type is RequestType.RETURN else "replaceable"
        raise PolicyViolation(f"This product is not {adjective}", details={"productId": item.product_id})

    event = REQUEST_EVENTS[request_type]
    state_machine.resolve(order.status_enum, event)

    existing = (
        db.query(ReturnReplaceRequest)
        .filter(
            ReturnReplaceRequest.order_item_id == item.id,
            ReturnReplaceRequest.type == request_type.value,
            ReturnReplaceRequest.status.in_([s.value for s in OPEN_REQUEST_STATUSES]),
        )
        .first()
    )
    if existing:
        raise PolicyViolation(_duplicate_message(request_type), details={"requestId": existing.id})

    req = ReturnReplaceRequest(
        order_id=order.id,
        order_item_id=item.id,
        user_id=actor.id,
        vendor_id=item.product.vendor_id,
        type=request_type.value,
        status=RequestStatus.PENDING.value,
        reason=reason or None,
        requested_at=datetime.utcnow(),
    )
    if request_type is RequestType.RETURN:
        req.return_amount = item.total_price
        req.return_payment_status = PaymentStatus.PENDING.value

    with atomic(db):
        db.add(req)
        try:
            db.flush()
        except IntegrityError:
            # lost a race against a concurrent request for the same item
            raise PolicyViolation(_duplicate_message(request_type))
        old, new = state_machine.apply(order, event)
    logger.info(
        "%s request %s opened on order %s item %s (order %s -> %s)",
        request_type.value.capitalize(), req.id, order.id, item.id, old.value, new.value,
    )
    db.refresh(req)
    return req


def create_return_request(db: Session, order_id: int, order_item_id: int, actor, reason: Optional[str] = None):
    return create_request(db, order_id, order_item_id, actor, RequestType.RETURN, reason)


def create_replace_request(db: Session, order_id: int, order_item_id: int, actor, reason: Optional[str] = None):
    return create_request(db, order_id, order_item_id, actor, RequestType.REPLACE, reason)


def _require_pending(req: ReturnReplaceRequest):
    if req.status != RequestStatus.PENDING.value:
        raise InvalidTransition(
            "Request has already been processed",
            details={"requestId": req.id, "status": req.status},
        )


def approve_request(
    db: Session,
    request_id: int,
    actor,
    gateway: Optional[PaymentGateway] = None,
) -> ReturnReplaceRequest:
    req = load_request(db, request_id, for_update=True)
    access.require_request_vendor(actor, req, "approve")
    _require_pending(req)

    request_type = RequestType(req.type)
    order = load_order(db, req.order_id, for_update=True)
    event = COMPLETE_EVENTS[request_type]
    state_machine.resolve(order.status_enum, event)

    if request_type is RequestType.RETURN:
        gateway = gateway or get_payment_gateway()

    with atomic(db):
        now = datetime.utcnow()
        req.status = RequestStatus.APPROVED.value
        req.approved_at = now
        if request_type is RequestType.RETURN:
            refund_status = gateway.refund(order, req.return_amount, f"return:{req.id}")
            req.return_payment_status = refund_status.value
            stock.restore_items(db, [req.order_item])
        # no shipment record for replacements; the unit comes from existing allocation
        req.status = RequestStatus.PROCESSED.value
        req.processed_at = now
        old, new = state_machine.apply(order, event, now)
    logger.info(
        "%s request %s approved by %s (order %s: %s -> %s)",
        request_type.value.capitalize(), req.id, actor.id, order.id, old.value, new.value,
    )
    db.refresh(req)
    return req


def reject_request(
    db: Session,
    request_id: int,
    actor,
    reason: Optional[str] = None,
) -> ReturnReplaceRequest:
    req = load_request(db, request_id, for_update=True)
    access.require_request_vendor(actor, req, "reject")
    _require_pending(req)

    order = load_order(db, req.order_id, for_update=True)
    with atomic(db):
        now = datetime.utcnow()
        req.status = RequestStatus.REJECTED.value
        req.rejected_at = now
        req.rejected_reason = reason or DEFAULT_REJECTION_REASON

        other_pending = (
            db.query(ReturnReplaceRequest.id)
            .filter(
                ReturnReplaceRequest.order_id == order.id,
                ReturnReplaceRequest.id != req.id,
                ReturnReplaceRequest.status == RequestStatus.PENDING.value,
            )
            .first()
        )
        old = new = order.status_enum
        if other_pending is None:
            old, new = state_machine.apply(order, OrderEvent.WITHDRAW_REQUEST, now)
    logger.info(
        "%s request %s rejected by %s (order %s: %s -> %s)",
        req.type.capitalize(), req.id, actor.id, order.id, old.value, new.value,
    )
    db.refresh(req)
    return req


def list_vendor_requests(
    db: Session,
    actor,
    status: Optional[str] = RequestStatus.PENDING.value,
    request_type: Optional[str] = None,
) -> List[ReturnReplaceRequest]:
    access.require_role(actor, Role.VENDOR)
    query = db.query(ReturnReplaceRequest).options(
        selectinload(ReturnReplaceRequest.order),
        selectinload(ReturnReplaceRequest.order_item).selectinload(OrderItem.product),
    )
    if not access.is_admin(actor):
        query = query.filter(ReturnReplaceRequest.vendor_id == actor.id)

    if status and status.lower() != "all":
        try:
            query = query.filter(ReturnReplaceRequest.status == RequestStatus(status.lower()).value)
        except ValueError:
            raise ValidationError(f"Unknown request status: {status}")
    if request_type:
        try:
            query = query.filter(ReturnReplaceRequest.type == RequestType(request_type.lower()).value)
        except ValueError:
            raise ValidationError(f"Unknown request type: {request_type}")

    return query.order_by(ReturnReplaceRequest.requested_at.desc(), ReturnReplaceRequest.id.desc()).all()
