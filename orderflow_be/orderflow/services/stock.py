"""
Inventory reconciliation for cancelled, rejected and returned order items.

Store contract: stock is changed with a single ``UPDATE ... SET
stock_quantity = stock_quantity + n`` per product. The statement takes the
row lock itself, so two transactions restoring the same product serialize
on that row instead of racing on a read-then-write. Callers must run these
functions inside the ``atomic`` block that also writes the status change.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List

from sqlalchemy import update
from sqlalchemy.orm import Session

from orderflow.models.product import Product
from orderflow.models.status import RequestStatus, RequestType
from orderflow.utils.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockLine:
    product_id: int
    quantity: int


def lines_for_items(items: Iterable) -> List[StockLine]:
    """Collapse order items into one line per product, ordered by product id.

    A fixed product order keeps concurrent restorers from deadlocking on
    each other's rows.
    """
    totals = OrderedDict()
    for item in sorted(items, key=lambda i: i.product_id):
        totals[item.product_id] = totals.get(item.product_id, 0) + int(item.quantity)
    return [StockLine(product_id=pid, quantity=qty) for pid, qty in totals.items()]


def unreturned_items(order, items: Iterable) -> List:
    """Drop items whose units already came back through a processed return."""
    returned = {
        r.order_item_id
        for r in order.requests
        if r.type == RequestType.RETURN.value and r.status == RequestStatus.PROCESSED.value
    }
    return [item for item in items if item.id not in returned]


def restore_stock(db: Session, lines: Iterable[StockLine]) -> List[StockLine]:
    """Return ``lines`` to inventory in the caller's transaction."""
    applied = []
    for line in lines:
        if line.quantity <= 0:
            raise ValidationError(f"Stock restore quantity must be positive (product {line.product_id})")
        stmt = (
            update(Product)
            .where(Product.id == line.product_id)
            .values(stock_quantity=Product.stock_quantity + line.quantity)
            .execution_options(synchronize_session=False)
        )
        result = db.execute(stmt)
        if result.rowcount == 0:
            raise NotFound(f"Product {line.product_id} not found")
        applied.append(line)
        logger.debug("Restored %s unit(s) of product %s", line.quantity, line.product_id)
    return applied


def restore_items(db: Session, items: Iterable) -> List[StockLine]:
    return restore_stock(db, lines_for_items(items))
