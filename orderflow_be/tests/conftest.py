"""
Shared fixtures: in-memory SQLite database, seed factories and API client.
"""
import os

# must be set before orderflow.config is first imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("EMAIL_BACKEND", "console")
os.environ.setdefault("PAYMENT_GATEWAY", "manual")

from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient

from orderflow.models.user import Base, SessionLocal, User, engine
from orderflow.models.address import ShippingAddress
from orderflow.models.order import Order, OrderItem
from orderflow.models.product import Product
from orderflow.models.status import OrderStatus, PaymentStatus, Role
from orderflow.utils.security import create_access_token

_seq = count(1)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    from orderflow.main import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make(role=Role.CUSTOMER, name=None):
        n = next(_seq)
        user = User(full_name=name or f"User {n}", email=f"user{n}@example.com", role=Role(role).value)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def customer(make_user):
    return make_user(Role.CUSTOMER, "Casey Customer")


@pytest.fixture
def vendor(make_user):
    return make_user(Role.VENDOR, "Vera Vendor")


@pytest.fixture
def other_vendor(make_user):
    return make_user(Role.VENDOR, "Otto Othervendor")


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, "Ada Admin")


@pytest.fixture
def make_product(db, vendor):
    def _make(stock=10, price="25.00", returnable=True, replaceable=True, owner=None, name=None):
        n = next(_seq)
        product = Product(
            vendor_id=(owner or vendor).id,
            name=name or f"Product {n}",
            price=Decimal(price),
            stock_quantity=stock,
            is_returnable=returnable,
            is_replaceable=replaceable,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_order(db, customer):
    """Create an order for ``owner`` from ``(product, quantity)`` lines.

    Stock is not touched: checkout already reserved it.
    """
    def _make(lines, status=OrderStatus.PENDING, owner=None):
        owner = owner or customer
        address = ShippingAddress(
            user_id=owner.id, name=owner.full_name, street="1 Market St",
            city="Springfield", state="IL", zip_code="62701", country="US",
        )
        db.add(address)
        db.flush()
        n = next(_seq)
        order = Order(
            order_number=f"ORD-TEST-{n}",
            user_id=owner.id,
            shipping_address_id=address.id,
            status=OrderStatus(status).value,
            payment_status=PaymentStatus.PENDING.value,
            total_amount=Decimal("0"),
        )
        db.add(order)
        db.flush()
        total = Decimal("0")
        for product, quantity in lines:
            line_total = Decimal(product.price) * quantity
            total += line_total
            db.add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price=product.price,
                total_price=line_total,
            ))
        order.total_amount = total
        db.commit()
        db.refresh(order)
        return order
    return _make


@pytest.fixture
def reload(db):
    """Fetch a fresh copy of a row, bypassing the session's identity map."""
    def _reload(model, pk):
        db.expire_all()
        return db.get(model, pk)
    return _reload


@pytest.fixture
def auth():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return _headers
