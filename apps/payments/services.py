# apps/payments/services.py
import logging

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.audit.services import log_action
from apps.billing.models import Invoice
from apps.notifications.services import NotificationService
from apps.sync.services import broadcast
from core.constants import AuditActions, InvoicePaymentStatus, PaymentModes, PaymentStatus, Resources
from core.exceptions import ConflictError
from .models import Payment
from .providers import get_gateway

logger = logging.getLogger(__name__)


def paid_amount(invoice):
    return invoice.payments.filter(status=PaymentStatus.SUCCESS).aggregate(
        total=Sum('amount')
    )['total'] or 0


def outstanding_amount(invoice):
    return invoice.total - paid_amount(invoice)


def initiate_payment(invoice, amount=None, method=PaymentModes.ONLINE, user=None):
    """Open a payment with the configured gateway; defaults to the full balance"""
    if invoice.is_paid:
        raise ConflictError("Invoice is already paid")

    outstanding = outstanding_amount(invoice)
    amount = outstanding if amount is None else amount
    if amount <= 0:
        raise ValidationError({'amount': 'Amount must be greater than zero.'})
    if amount > outstanding:
        raise ValidationError({'amount': f'Amount exceeds the outstanding balance of {outstanding}.'})

    gateway = get_gateway()
    result = gateway.create_payment(amount, invoice)

    payment = Payment.objects.create(
        invoice=invoice,
        amount=amount,
        method=method,
        provider=gateway.name,
        transaction_id=result['transaction_id'],
        initiated_by=user,
    )
    logger.info(f"Payment {payment.transaction_id} initiated for {invoice.invoice_number} by {user}")
    return payment


def confirm_payment(payment, payload=None, user=None):
    """
    Settle an initiated payment with the gateway's verdict.

    The invoice becomes Paid once successful payments cover its total.
    """
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        if payment.status != PaymentStatus.INITIATED:
            raise ConflictError("Payment already processed")

        verified = get_gateway(payment.provider).verify_payment(payment.transaction_id, payload)
        payment.status = PaymentStatus.SUCCESS if verified else PaymentStatus.FAILED
        payment.confirmed_at = timezone.now()
        payment.save(update_fields=['status', 'confirmed_at'])

        log_action(
            instance=payment,
            action=AuditActions.PAYMENT,
            user=user,
            metadata={'transaction_id': payment.transaction_id, 'status': payment.status},
        )

        if not verified:
            logger.warning(f"Payment {payment.transaction_id} failed verification")
            return payment

        invoice = Invoice.objects.select_for_update().get(pk=payment.invoice_id)
        if paid_amount(invoice) >= invoice.total and not invoice.is_paid:
            invoice.payment_status = InvoicePaymentStatus.PAID
            invoice.payment_mode = payment.method
            invoice.save(update_fields=['payment_status', 'payment_mode', 'updated_at'])
            logger.info(f"Invoice {invoice.invoice_number} fully paid")

        NotificationService.payment_received(payment)
        broadcast(Resources.INVOICES, Resources.NOTIFICATIONS)

    logger.info(f"Payment {payment.transaction_id} confirmed")
    return payment
