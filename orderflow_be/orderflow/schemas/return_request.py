from pydantic import BaseModel, Field
from typing import Optional

from orderflow.models.status import OrderStatus, PaymentStatus, RequestStatus, RequestType


class ReturnReplaceCreate(BaseModel):
    orderItemId: int
    reason: Optional[str] = Field(default=None, max_length=500)


class RequestRejectIn(BaseModel):
    rejectionReason: Optional[str] = Field(default=None, max_length=500)


class ReturnReplaceOut(BaseModel):
    id: int
    orderId: int
    orderNumber: Optional[str] = None
    orderStatus: OrderStatus
    orderItemId: int
    productId: int
    productName: Optional[str] = None
    quantity: int
    userId: int
    vendorId: int
    type: RequestType
    status: RequestStatus
    reason: Optional[str] = None
    returnAmount: Optional[float] = None
    returnPaymentStatus: Optional[PaymentStatus] = None
    requestedAt: Optional[str] = None
    approvedAt: Optional[str] = None
    processedAt: Optional[str] = None
    rejectedAt: Optional[str] = None
    rejectedReason: Optional[str] = None


class RequestActionOut(BaseModel):
    message: str
    request: ReturnReplaceOut
