from types import SimpleNamespace

import pytest

from orderflow.models.product import Product
from orderflow.services import stock
from orderflow.services.stock import StockLine
from orderflow.utils.errors import NotFound, ValidationError


def test_lines_merge_and_sort():
    items = [
        SimpleNamespace(product_id=7, quantity=2),
        SimpleNamespace(product_id=3, quantity=1),
        SimpleNamespace(product_id=7, quantity=4),
    ]
    assert stock.lines_for_items(items) == [StockLine(3, 1), StockLine(7, 6)]


def test_unreturned_items_skips_processed_returns():
    items = [SimpleNamespace(id=1), SimpleNamespace(id=2), SimpleNamespace(id=3)]
    order = SimpleNamespace(requests=[
        SimpleNamespace(order_item_id=1, type="return", status="processed"),
        SimpleNamespace(order_item_id=2, type="return", status="rejected"),
        SimpleNamespace(order_item_id=3, type="replace", status="processed"),
    ])
    assert [i.id for i in stock.unreturned_items(order, items)] == [2, 3]


def test_restore_increments(db, make_product, reload):
    a = make_product(stock=10)
    b = make_product(stock=0)
    stock.restore_stock(db, [StockLine(a.id, 3), StockLine(b.id, 5)])
    db.commit()
    assert reload(Product, a.id).stock_quantity == 13
    assert reload(Product, b.id).stock_quantity == 5


def test_restore_items_from_order(db, make_product, make_order, reload):
    p = make_product(stock=1)
    order = make_order([(p, 2)])
    stock.restore_items(db, order.items)
    db.commit()
    assert reload(Product, p.id).stock_quantity == 3


def test_missing_product(db):
    with pytest.raises(NotFound):
        stock.restore_stock(db, [StockLine(9999, 1)])


@pytest.mark.parametrize("qty", [0, -2])
def test_non_positive_quantity(db, make_product, reload, qty):
    p = make_product(stock=10)
    with pytest.raises(ValidationError):
        stock.restore_stock(db, [StockLine(p.id, qty)])
    db.rollback()
    assert reload(Product, p.id).stock_quantity == 10
