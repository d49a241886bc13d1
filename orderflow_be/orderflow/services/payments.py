"""
Refund collaborator used by cancellation and return approval.

There is no payment provider integration yet: ``ManualPaymentGateway``
records the refund marker and leaves settlement to back-office staff.
A real provider plugs in by subclassing ``PaymentGateway`` and registering
it in ``GATEWAYS``.
"""
import logging
from decimal import Decimal

from orderflow.config import get_settings
from orderflow.models.status import PaymentStatus

logger = logging.getLogger(__name__)


class PaymentGateway:
    name = "base"

    def refund(self, order, amount: Decimal, reference: str) -> PaymentStatus:
        """Refund ``amount`` for ``order`` and return the resulting payment status."""
        raise NotImplementedError


class ManualPaymentGateway(PaymentGateway):
    name = "manual"

    def refund(self, order, amount, reference):
        logger.info(
            "Manual refund recorded: order=%s amount=%s reference=%s",
            order.id, amount, reference,
        )
        return PaymentStatus.PAID


GATEWAYS = {
    ManualPaymentGateway.name: ManualPaymentGateway,
}


def get_payment_gateway() -> PaymentGateway:
    name = get_settings().PAYMENT_GATEWAY
    try:
        return GATEWAYS[name]()
    except KeyError:
        raise RuntimeError(f"PAYMENT_GATEWAY={name!r} is not a known gateway ({', '.join(GATEWAYS)})")
