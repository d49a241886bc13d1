from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from orderflow.models.user import User, get_db
from orderflow.models.order import Order, OrderItem
from orderflow.models.return_request import ReturnReplaceRequest
from orderflow.schemas.order import OrderActionOut, OrderItemOut, OrderOut, ShippingAddressOut
from orderflow.schemas.return_request import RequestActionOut, ReturnReplaceCreate, ReturnReplaceOut
from orderflow.services import orders as order_service
from orderflow.services import returns as return_service
from orderflow.services.notifications import notify_order_update
from orderflow.utils.security import get_current_user


router = APIRouter()


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def map_item_to_out(i: OrderItem) -> OrderItemOut:
    return OrderItemOut(
        id=i.id,
        productId=i.product_id,
        productName=i.product_name or i.product.name,
        vendorId=i.product.vendor_id,
        quantity=i.quantity,
        unitPrice=float(i.unit_price or 0),
        totalPrice=float(i.total_price or 0),
        isReturnable=bool(i.product.is_returnable),
        isReplaceable=bool(i.product.is_replaceable),
    )


def map_order_to_out(order: Order, items: Optional[List[OrderItem]] = None) -> OrderOut:
    address = order.shipping_address
    shipping = None
    if address is not None:
        shipping = ShippingAddressOut(
            id=address.id,
            name=address.name,
            phone=address.phone,
            street=address.street,
            city=address.city,
            state=address.state,
            zipCode=address.zip_code,
            country=address.country,
        )
    return OrderOut(
        id=order.id,
        orderNumber=order.order_number,
        userId=order.user_id,
        items=[map_item_to_out(i) for i in (order.items if items is None else items)],
        shippingAddress=shipping,
        totalAmount=float(order.total_amount or 0),
        status=order.status,  # type: ignore
        paymentStatus=order.payment_status,  # type: ignore
        confirmedAt=_iso(order.confirmed_at),
        dispatchedAt=_iso(order.dispatched_at),
        shippedAt=_iso(order.shipped_at),
        deliveredAt=_iso(order.delivered_at),
        cancelledAt=_iso(order.cancelled_at),
        rejectedAt=_iso(order.rejected_at),
        expectedDeliveryDate=_iso(order.expected_delivery_date),
        cancellationReason=order.cancellation_reason,
        rejectionReason=order.rejection_reason,
        createdAt=_iso(order.created_at),
        updatedAt=_iso(order.updated_at),
    )


def map_request_to_out(r: ReturnReplaceRequest) -> ReturnReplaceOut:
    item = r.order_item
    return ReturnReplaceOut(
        id=r.id,
        orderId=r.order_id,
        orderNumber=r.order.order_number,
        orderStatus=r.order.status,  # type: ignore
        orderItemId=r.order_item_id,
        productId=item.product_id,
        productName=item.product_name or item.product.name,
        quantity=item.quantity,
        userId=r.user_id,
        vendorId=r.vendor_id,
        type=r.type,  # type: ignore
        status=r.status,  # type: ignore
        reason=r.reason,
        returnAmount=float(r.return_amount) if r.return_amount is not None else None,
        returnPaymentStatus=r.return_payment_status,  # type: ignore
        requestedAt=_iso(r.requested_at),
        approvedAt=_iso(r.approved_at),
        processedAt=_iso(r.processed_at),
        rejectedAt=_iso(r.rejected_at),
        rejectedReason=r.rejected_reason,
    )


# Get User Orders (admin sees every order)
@router.get("/", response_model=List[OrderOut])
def get_user_orders(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return [map_order_to_out(o) for o in order_service.list_orders(db, user)]


# Get Order by ID
@router.get("/{id}", response_model=OrderOut)
def get_order_by_id(id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return map_order_to_out(order_service.get_order(db, id, user))


# Cancel Order (owner)
@router.post("/{id}/cancel", response_model=OrderActionOut)
def cancel_order(id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    order = order_service.cancel_order(db, id, user)
    notify_order_update(order)
    return OrderActionOut(
        message="Order cancelled successfully. Refund has been processed.",
        order=map_order_to_out(order),
    )


# Request Return (owner)
@router.post("/{id}/return", response_model=RequestActionOut)
def request_return(
    id: int,
    payload: ReturnReplaceCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    req = return_service.create_return_request(db, id, payload.orderItemId, user, payload.reason)
    return RequestActionOut(
        message="Return request created successfully. Waiting for vendor approval.",
        request=map_request_to_out(req),
    )


# Request Replacement (owner)
@router.post("/{id}/replace", response_model=RequestActionOut)
def request_replace(
    id: int,
    payload: ReturnReplaceCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    req = return_service.create_replace_request(db, id, payload.orderItemId, user, payload.reason)
    return RequestActionOut(
        message="Replace request created successfully. Waiting for vendor approval.",
        request=map_request_to_out(req),
    )
