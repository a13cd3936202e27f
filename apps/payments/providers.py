# apps/payments/providers.py
import logging
import uuid

from django.conf import settings

from core.constants import PaymentStatus

logger = logging.getLogger(__name__)


class MockPaymentGateway:
    """
    Stand-in gateway for development and tests.

    Every initiation succeeds; confirmation trusts the ``status`` the client
    reports back.
    """
    name = 'mock'

    def create_payment(self, amount, invoice):
        transaction_id = f"mock_{uuid.uuid4()}"
        logger.info(f"Mock payment {transaction_id} created for {invoice.invoice_number}: {amount}")
        return {
            'transaction_id': transaction_id,
            'status': PaymentStatus.INITIATED,
        }

    def verify_payment(self, transaction_id, payload):
        return (payload or {}).get('status') == PaymentStatus.SUCCESS


GATEWAYS = {
    MockPaymentGateway.name: MockPaymentGateway,
}


def get_gateway(name=None):
    name = name or getattr(settings, 'PAYMENT_PROVIDER', MockPaymentGateway.name)
    try:
        return GATEWAYS[name]()
    except KeyError:
        raise ValueError(f"Unknown payment provider: {name}")
