from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from orderflow.models.status import OrderStatus, PaymentStatus


class ShippingAddressOut(BaseModel):
    id: int
    name: Optional[str] = None
    phone: Optional[str] = None
    street: str
    city: str
    state: str
    zipCode: str
    country: str


class OrderItemOut(BaseModel):
    id: int
    productId: int
    productName: Optional[str] = None
    vendorId: int
    quantity: int
    unitPrice: float
    totalPrice: float
    isReturnable: bool
    isReplaceable: bool


class OrderOut(BaseModel):
    id: int
    orderNumber: Optional[str] = None
    userId: int
    items: List[OrderItemOut]
    shippingAddress: Optional[ShippingAddressOut] = None
    totalAmount: float
    status: OrderStatus
    paymentStatus: PaymentStatus
    confirmedAt: Optional[str] = None
    dispatchedAt: Optional[str] = None
    shippedAt: Optional[str] = None
    deliveredAt: Optional[str] = None
    cancelledAt: Optional[str] = None
    rejectedAt: Optional[str] = None
    expectedDeliveryDate: Optional[str] = None
    cancellationReason: Optional[str] = None
    rejectionReason: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class OrderActionOut(BaseModel):
    message: str
    order: OrderOut


class VendorOrdersOut(BaseModel):
    orders: List[OrderOut]
    counts: Dict[str, int]
    total: int
    limit: int
    offset: int


class VendorCancelIn(BaseModel):
    cancellationReason: Optional[str] = Field(default=None, max_length=500)


class OrderRejectIn(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class OrderStatusUpdate(BaseModel):
    status: str = Field(min_length=1)
