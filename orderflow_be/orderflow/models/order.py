from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from orderflow.models.user import Base
from orderflow.models.status import OrderStatus, PaymentStatus
from orderflow.models import address, product, return_request  # noqa: F401  register related mappers


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(64), unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    shipping_address_id = Column(Integer, ForeignKey("shipping_addresses.id"), nullable=True)

    total_amount = Column(Numeric(10, 2), default=0)
    status = Column(String(32), nullable=False, default=OrderStatus.PENDING.value, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)

    # lifecycle timestamps, each set by the transition that reaches the state
    confirmed_at = Column(DateTime)
    dispatched_at = Column(DateTime)
    shipped_at = Column(DateTime)
    delivered_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    rejected_at = Column(DateTime)
    expected_delivery_date = Column(DateTime)

    cancellation_reason = Column(String(500))
    rejection_reason = Column(String(500))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User")
    shipping_address = relationship("ShippingAddress")
    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")
    requests = relationship("ReturnReplaceRequest", back_populates="order", order_by="ReturnReplaceRequest.id")

    @property
    def status_enum(self) -> OrderStatus:
        return OrderStatus(self.status)


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),)

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    product_name = Column(String(255))  # display snapshot; eligibility is read from the product
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False)  # captured at order time

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
