from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from orderflow.models.user import User, get_db
from orderflow.routers.orders import map_order_to_out
from orderflow.schemas.order import (
    OrderActionOut,
    OrderRejectIn,
    OrderStatusUpdate,
    VendorCancelIn,
    VendorOrdersOut,
)
from orderflow.services import orders as order_service
from orderflow.services.notifications import notify_order_update
from orderflow.utils.security import get_current_user


router = APIRouter()


# Get Vendor Orders (with per-status counts)
@router.get("/", response_model=VendorOrdersOut)
def get_vendor_orders(
    status: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    page = order_service.list_vendor_orders(db, user, status=status, limit=limit, offset=offset)
    return VendorOrdersOut(
        orders=[map_order_to_out(v.order, v.items) for v in page.orders],
        counts=page.counts,
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


# Get Vendor Order (vendor's items only)
@router.get("/{id}", response_model=OrderActionOut)
def get_vendor_order(id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    view = order_service.get_vendor_order(db, id, user)
    return OrderActionOut(message="Order fetched successfully", order=map_order_to_out(view.order, view.items))


# Vendor Cancel Order
@router.post("/{id}/cancel", response_model=OrderActionOut)
def vendor_cancel_order(
    id: int,
    payload: Optional[VendorCancelIn] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reason = payload.cancellationReason if payload else None
    order = order_service.vendor_cancel_order(db, id, user, reason)
    notify_order_update(order)
    return OrderActionOut(
        message="Order cancelled successfully. Refund has been processed for the customer.",
        order=map_order_to_out(order),
    )


# Confirm Order
@router.post("/{id}/confirm", response_model=OrderActionOut)
def confirm_order(id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    order = order_service.confirm_order(db, id, user)
    notify_order_update(order)
    return OrderActionOut(message="Order confirmed successfully", order=map_order_to_out(order))


# Reject Order
@router.post("/{id}/reject", response_model=OrderActionOut)
def reject_order(
    id: int,
    payload: Optional[OrderRejectIn] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    order = order_service.reject_order(db, id, user, payload.reason if payload else None)
    notify_order_update(order)
    return OrderActionOut(message="Order rejected successfully", order=map_order_to_out(order))


# Update Order Status (one fulfillment step)
@router.patch("/{id}/status", response_model=OrderActionOut)
def update_order_status(
    id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    order = order_service.update_order_status(db, id, user, payload.status)
    notify_order_update(order)
    return OrderActionOut(
        message=f"Order status updated to {order.status} successfully",
        order=map_order_to_out(order),
    )
