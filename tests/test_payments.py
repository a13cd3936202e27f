from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from apps.billing.models import Invoice
from apps.billing.services import create_invoice
from apps.notifications.models import Notification
from apps.payments import services
from apps.payments.models import Payment
from core.constants import InvoicePaymentStatus, NotificationType, PaymentStatus, UserRoles
from core.exceptions import ConflictError
from tests.conftest import make_user

pytestmark = pytest.mark.django_db


@pytest.fixture
def invoice(appointment, patient):
    return Invoice.objects.get(pk=create_invoice(appointment.pk, patient.pk))


class TestPaymentFlow:

    def test_initiate_defaults_to_full_balance(self, invoice):
        payment = services.initiate_payment(invoice)

        assert payment.status == PaymentStatus.INITIATED
        assert payment.amount == Decimal('590.00')
        assert payment.provider == 'mock'
        assert payment.transaction_id.startswith('mock_')

    def test_successful_confirmation_marks_invoice_paid(self, invoice, patient_user):
        payment = services.initiate_payment(invoice)

        payment = services.confirm_payment(payment, {'status': PaymentStatus.SUCCESS})

        invoice.refresh_from_db()
        assert payment.status == PaymentStatus.SUCCESS
        assert invoice.payment_status == InvoicePaymentStatus.PAID
        assert Notification.objects.get(
            notification_type=NotificationType.PAYMENT_RECEIVED
        ).recipient == patient_user

    def test_partial_payment_keeps_invoice_pending(self, invoice):
        payment = services.initiate_payment(invoice, amount=Decimal('100.00'))
        services.confirm_payment(payment, {'status': PaymentStatus.SUCCESS})

        invoice.refresh_from_db()
        assert invoice.payment_status == InvoicePaymentStatus.PENDING
        assert services.outstanding_amount(invoice) == Decimal('490.00')

    def test_failed_verification(self, invoice):
        payment = services.initiate_payment(invoice)

        payment = services.confirm_payment(payment, {'status': PaymentStatus.FAILED})

        invoice.refresh_from_db()
        assert payment.status == PaymentStatus.FAILED
        assert invoice.payment_status == InvoicePaymentStatus.PENDING

    def test_confirm_twice_conflicts(self, invoice):
        payment = services.initiate_payment(invoice)
        services.confirm_payment(payment, {'status': PaymentStatus.SUCCESS})

        with pytest.raises(ConflictError):
            services.confirm_payment(payment, {'status': PaymentStatus.SUCCESS})

    def test_paid_invoice_rejects_new_payments(self, invoice):
        payment = services.initiate_payment(invoice)
        services.confirm_payment(payment, {'status': PaymentStatus.SUCCESS})
        invoice.refresh_from_db()

        with pytest.raises(ConflictError):
            services.initiate_payment(invoice)

    def test_amount_above_balance_rejected(self, invoice):
        with pytest.raises(ValidationError):
            services.initiate_payment(invoice, amount=Decimal('1000.00'))


class TestPaymentApi:

    def test_patient_pays_own_invoice(self, patient_client, invoice):
        response = patient_client.post('/api/payments/initiate/', {'invoice_id': invoice.pk}, format='json')

        assert response.status_code == 201
        transaction_id = response.data['transactionId']
        payment = Payment.objects.get(transaction_id=transaction_id)

        response = patient_client.post(f'/api/payments/{payment.pk}/confirm/', {'status': 'SUCCESS'}, format='json')

        assert response.status_code == 200
        assert response.data['success'] is True
        invoice.refresh_from_db()
        assert invoice.is_paid

    def test_other_patient_cannot_pay(self, api_client, invoice):
        stranger = make_user('stranger@clinixa.test', UserRoles.PATIENT)
        api_client.force_authenticate(user=stranger)

        response = api_client.post('/api/payments/initiate/', {'invoice_id': invoice.pk}, format='json')
        assert response.status_code == 404
