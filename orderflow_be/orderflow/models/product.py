from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey
from orderflow.models.user import Base


class Product(Base):
    """Catalog view needed by fulfillment.

    ``stock_quantity`` is only ever changed through
    ``orderflow.services.stock`` so increments stay inside the transaction of
    the status change that triggers them.
    """

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_returnable = Column(Boolean, nullable=False, default=True)
    is_replaceable = Column(Boolean, nullable=False, default=True)
