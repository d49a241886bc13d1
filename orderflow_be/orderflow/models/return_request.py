from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Index, text
from sqlalchemy.orm import relationship
from datetime import datetime
from orderflow.models.user import Base
from orderflow.models.status import RequestStatus

_OPEN_STATUS_SQL = text("status IN ('pending', 'approved')")


class ReturnReplaceRequest(Base):
    __tablename__ = "return_replace_requests"
    __table_args__ = (
        # At most one open request per (item, type); mirrors the duplicate guard in services.returns
        Index(
            "uq_return_replace_open_per_item_type",
            "order_item_id",
            "type",
            unique=True,
            postgresql_where=_OPEN_STATUS_SQL,
            sqlite_where=_OPEN_STATUS_SQL,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(10), nullable=False)  # return | replace, fixed at creation
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value)
    reason = Column(String(500))

    # set only for returns
    return_amount = Column(Numeric(10, 2))
    return_payment_status = Column(String(20))

    requested_at = Column(DateTime, default=datetime.utcnow)
    approved_at = Column(DateTime)
    processed_at = Column(DateTime)
    rejected_at = Column(DateTime)
    rejected_reason = Column(String(500))

    order = relationship("Order", back_populates="requests")
    order_item = relationship("OrderItem")
    user = relationship("User", foreign_keys=[user_id])
    vendor = relationship("User", foreign_keys=[vendor_id])
