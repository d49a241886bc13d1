"""
Role and ownership checks applied before any order mutation.

Roles form a chain: admin covers everything a vendor may do, and a vendor
covers everything a customer may do. Ownership is always checked by id,
never by role.
"""
from typing import Iterable, List

from orderflow.models.status import Role
from orderflow.utils.errors import Forbidden

ROLE_SCOPES = {
    Role.CUSTOMER: frozenset({Role.CUSTOMER}),
    Role.VENDOR: frozenset({Role.VENDOR, Role.CUSTOMER}),
    Role.ADMIN: frozenset({Role.ADMIN, Role.VENDOR, Role.CUSTOMER}),
}


def _role_of(user) -> Role:
    try:
        return Role(user.role)
    except ValueError:
        return Role.CUSTOMER


def has_role(user, required: Role) -> bool:
    return required in ROLE_SCOPES[_role_of(user)]


def is_admin(user) -> bool:
    return _role_of(user) is Role.ADMIN


def is_owner(user, order) -> bool:
    return user.id == order.user_id


def is_vendor_of_item(user, item) -> bool:
    return user.id == item.product.vendor_id


def vendor_items(user, items: Iterable) -> List:
    """Order items whose product belongs to ``user``."""
    return [item for item in items if is_vendor_of_item(user, item)]


def require_role(user, required: Role, message: str = None):
    if not has_role(user, required):
        raise Forbidden(message or f"{required.value} access required")


def require_owner_or_admin(user, order):
    if not (is_owner(user, order) or is_admin(user)):
        raise Forbidden("You can only view your own orders")


def require_owner(user, order, message: str = "You can only manage your own orders"):
    if not is_owner(user, order):
        raise Forbidden(message)


def require_vendor_scope(user, order) -> List:
    """Vendor of at least one item, or admin.

    Returns the items the actor acts on: the vendor's own items, or every
    item for an admin.
    """
    require_role(user, Role.VENDOR)
    if is_admin(user):
        return list(order.items)
    items = vendor_items(user, order.items)
    if not items:
        raise Forbidden("Order does not belong to this vendor")
    return items


def require_request_vendor(user, request, action: str):
    require_role(user, Role.VENDOR)
    if request.vendor_id != user.id and not is_admin(user):
        raise Forbidden(f"You can only {action} requests for your own products")
