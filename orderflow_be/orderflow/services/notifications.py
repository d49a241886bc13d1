"""
Customer emails sent after an order change has committed.
"""
import logging

from orderflow.config import get_settings
from orderflow.models.status import OrderStatus, RequestStatus
from orderflow.utils import email_templates
from orderflow.utils.mailer import send_email

logger = logging.getLogger(__name__)


def _deliver(user, template):
    if not get_settings().ENABLE_EMAIL_NOTIFICATIONS:
        return False
    if not user or not user.email:
        logger.debug("No recipient for %r; skipping", template["subject"])
        return False
    return send_email(user.email, template["subject"], template["body"])


def _order_label(order) -> str:
    return order.order_number or f"#{order.id}"


def notify_order_update(order):
    status = order.status_enum
    if status is OrderStatus.CANCELLED:
        tpl = email_templates.order_cancelled(_order_label(order), order.cancellation_reason, order.payment_status)
    elif status is OrderStatus.REJECTED:
        tpl = email_templates.order_rejected(_order_label(order), order.rejection_reason)
    else:
        expected = order.expected_delivery_date.date().isoformat() if order.expected_delivery_date else None
        tpl = email_templates.order_status_update(_order_label(order), status.value, expected)
    return _deliver(order.user, tpl)


def notify_request_decision(req):
    approved = req.status == RequestStatus.PROCESSED.value
    tpl = email_templates.request_decision(
        _order_label(req.order), req.type, approved, None if approved else req.rejected_reason,
    )
    return _deliver(req.user, tpl)
