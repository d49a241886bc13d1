from enum import Enum


class Role(str, Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DISPATCHED = "dispatched"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REJECTED = "rejected"
    RETURN_REQUESTED = "return_requested"
    RETURN_APPROVED = "return_approved"
    RETURN_PROCESSED = "return_processed"
    REPLACE_REQUESTED = "replace_requested"
    REPLACE_APPROVED = "replace_approved"
    REPLACE_PROCESSED = "replace_processed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class RequestType(str, Enum):
    RETURN = "return"
    REPLACE = "replace"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSED = "processed"


# Requests that still block a new request of the same type on the same item
OPEN_REQUEST_STATUSES = (RequestStatus.PENDING, RequestStatus.APPROVED)
