from decimal import Decimal

import pytest
from rest_framework.exceptions import NotFound, ValidationError

from apps.appointments.models import Appointment
from apps.billing import services
from apps.billing.models import Invoice
from apps.sync.services import get_revisions
from core.constants import InvoicePaymentStatus
from core.exceptions import ConflictError

pytestmark = pytest.mark.django_db


class TestCreateInvoice:

    def test_creates_invoice_seeded_with_consultation_fee(self, appointment, patient):
        invoice_id = services.create_invoice(appointment.pk, patient.pk)

        invoice = Invoice.objects.get(pk=invoice_id)
        assert invoice.appointment == appointment
        assert invoice.consultation_fee == Decimal('500.00')
        assert invoice.amount == Decimal('500.00')
        assert invoice.tax_amount == Decimal('90.00')
        assert invoice.total == Decimal('590.00')
        assert invoice.payment_status == InvoicePaymentStatus.PENDING
        assert invoice.invoice_number.startswith('INV-')
        assert invoice.invoice_number.endswith('-0001')

    def test_second_invoice_for_same_appointment_conflicts(self, appointment, patient):
        services.create_invoice(appointment.pk, patient.pk)

        with pytest.raises(ConflictError):
            services.create_invoice(appointment.pk, patient.pk)
        assert Invoice.objects.count() == 1

    def test_invoice_numbers_are_sequential(self, appointment, patient, doctor, tomorrow):
        other = Appointment.objects.create(patient=patient, doctor=doctor, date=tomorrow, time='11:00 AM')
        first = Invoice.objects.get(pk=services.create_invoice(appointment.pk, patient.pk))
        second = Invoice.objects.get(pk=services.create_invoice(other.pk, patient.pk))

        assert first.invoice_number[:-4] == second.invoice_number[:-4]
        assert second.invoice_number.endswith('-0002')

    def test_numbering_continues_past_9999(self, appointment, patient, doctor, tomorrow):
        second_visit = Appointment.objects.create(patient=patient, doctor=doctor, date=tomorrow, time='11:00 AM')
        third_visit = Appointment.objects.create(patient=patient, doctor=doctor, date=tomorrow, time='11:30 AM')
        first_id = services.create_invoice(appointment.pk, patient.pk)
        prefix = Invoice.objects.get(pk=first_id).invoice_number[:-4]
        Invoice.objects.filter(pk=first_id).update(invoice_number=f'{prefix}9999')

        second = Invoice.objects.get(pk=services.create_invoice(second_visit.pk, patient.pk))
        third = Invoice.objects.get(pk=services.create_invoice(third_visit.pk, patient.pk))

        assert second.invoice_number == f'{prefix}10000'
        assert third.invoice_number == f'{prefix}10001'

    @pytest.mark.parametrize('appointment_id, patient_id', [(None, 1), (1, None), ('', '')])
    def test_missing_ids_rejected(self, appointment_id, patient_id):
        with pytest.raises(ValidationError):
            services.create_invoice(appointment_id, patient_id)

    def test_unknown_appointment_rejected(self, patient):
        with pytest.raises(ValidationError):
            services.create_invoice(9999, patient.pk)

    def test_patient_must_match_appointment(self, appointment, walk_in_patient):
        with pytest.raises(ValidationError):
            services.create_invoice(appointment.pk, walk_in_patient.pk)

    def test_creation_bumps_invoice_revision(self, appointment, patient):
        before = get_revisions()['invoices']
        services.create_invoice(appointment.pk, patient.pk)
        assert get_revisions()['invoices'] == before + 1


class TestLookup:

    @pytest.fixture
    def invoice(self, appointment, patient):
        return Invoice.objects.get(pk=services.create_invoice(appointment.pk, patient.pk))

    def test_get_by_id(self, invoice):
        assert services.get_invoice_by_id(str(invoice.pk)) == invoice

    @pytest.mark.parametrize('value', ['abc', '0', '-3', '', None])
    def test_get_by_invalid_id(self, value):
        with pytest.raises(ValidationError):
            services.get_invoice_by_id(value)

    def test_get_missing(self, db):
        with pytest.raises(NotFound):
            services.get_invoice_by_id(4242)

    def test_search_by_patient_name(self, invoice):
        assert services.search_invoices('aryan') == [invoice]

    def test_search_by_invoice_number(self, invoice):
        assert services.search_invoices(invoice.invoice_number[-6:]) == [invoice]

    def test_search_by_id(self, invoice):
        assert services.search_invoices(str(invoice.pk)) == [invoice]

    def test_search_without_match(self, invoice):
        assert services.search_invoices('nobody') == []

    @pytest.mark.parametrize('term', ['', '   ', None])
    def test_search_requires_term(self, term):
        with pytest.raises(ValidationError):
            services.search_invoices(term)


class TestApplyCharges:

    @pytest.fixture
    def invoice(self, appointment, patient):
        return Invoice.objects.get(pk=services.create_invoice(appointment.pk, patient.pk))

    def test_recomputes_totals(self, invoice):
        services.apply_charges(invoice, lab_charges=Decimal('200'), discount_percent=Decimal('10'))
        invoice.refresh_from_db()

        assert invoice.amount == Decimal('700.00')
        assert invoice.discount_amount == Decimal('70.00')
        assert invoice.tax_amount == Decimal('113.40')
        assert invoice.total == Decimal('743.40')

    def test_replaces_line_items(self, invoice):
        services.apply_charges(invoice, items=[
            {'description': 'X-Ray', 'unit_charge': Decimal('150')},
        ])
        services.apply_charges(invoice, items=[
            {'description': 'Lab', 'unit_charge': Decimal('200')},
        ])
        invoice.refresh_from_db()

        assert [item.description for item in invoice.items.all()] == ['Lab']
        assert invoice.amount == Decimal('700.00')

    def test_keeps_existing_items_when_not_given(self, invoice):
        services.apply_charges(invoice, items=[{'description': 'X-Ray', 'unit_charge': Decimal('150')}])
        services.apply_charges(invoice, medicine_charges=Decimal('50'))
        invoice.refresh_from_db()

        assert invoice.amount == Decimal('700.00')

    def test_paid_invoice_is_frozen(self, invoice):
        invoice.payment_status = InvoicePaymentStatus.PAID
        invoice.save()

        with pytest.raises(ConflictError):
            services.apply_charges(invoice, lab_charges=Decimal('1'))

    def test_invalid_discount(self, invoice):
        with pytest.raises(ValidationError):
            services.apply_charges(invoice, discount_percent=Decimal('150'))


class TestBillingApi:

    def test_create_endpoint(self, desk_client, appointment, patient):
        response = desk_client.post(
            '/api/billing/create',
            {'appointment_id': appointment.pk, 'patient_id': patient.pk},
            format='json'
        )

        assert response.status_code == 201
        assert response.data['success'] is True
        assert Invoice.objects.filter(pk=response.data['invoiceId']).exists()

    def test_create_accepts_camel_case_keys(self, desk_client, appointment, patient):
        response = desk_client.post(
            '/api/billing/create',
            {'appointmentId': appointment.pk, 'patientId': patient.pk},
            format='json'
        )

        assert response.status_code == 201
        assert Invoice.objects.get(pk=response.data['invoiceId']).appointment_id == appointment.pk

    def test_duplicate_create_is_409(self, desk_client, appointment, patient):
        payload = {'appointment_id': appointment.pk, 'patient_id': patient.pk}
        desk_client.post('/api/billing/create', payload, format='json')
        response = desk_client.post('/api/billing/create', payload, format='json')

        assert response.status_code == 409
        assert response.data['success'] is False
        assert response.data['message'] == 'Invoice already exists for this appointment'

    def test_create_without_ids_is_400(self, desk_client):
        response = desk_client.post('/api/billing/create', {}, format='json')
        assert response.status_code == 400
        assert response.data['success'] is False

    def test_patient_cannot_create(self, patient_client, appointment, patient):
        response = patient_client.post(
            '/api/billing/create',
            {'appointment_id': appointment.pk, 'patient_id': patient.pk},
            format='json'
        )
        assert response.status_code == 403

    def test_get_endpoint(self, desk_client, appointment, patient):
        invoice_id = services.create_invoice(appointment.pk, patient.pk)

        response = desk_client.get(f'/api/billing/{invoice_id}')

        assert response.status_code == 200
        assert response.data['success'] is True
        assert response.data['data']['total'] == '590.00'
        assert response.data['data']['patient_name'] == 'Aryan Kumar'

    def test_get_invalid_and_missing(self, desk_client):
        assert desk_client.get('/api/billing/abc').status_code == 400
        assert desk_client.get('/api/billing/9999').status_code == 404

    def test_search_endpoint(self, desk_client, appointment, patient):
        services.create_invoice(appointment.pk, patient.pk)

        response = desk_client.get('/api/billing/search/query', {'term': 'Aryan'})

        assert response.status_code == 200
        assert response.data['count'] == 1
        assert response.data['data'][0]['patient_name'] == 'Aryan Kumar'

    def test_search_without_term_is_400(self, desk_client):
        response = desk_client.get('/api/billing/search/query')
        assert response.status_code == 400

    def test_calculate_endpoint(self, desk_client):
        response = desk_client.post(
            '/api/billing/calculate',
            {'consultation_fee': '500', 'lab_charges': '200', 'discount_percent': '10'},
            format='json'
        )

        assert response.status_code == 200
        assert response.data['data']['total'] == '743.40'

    def test_charges_endpoint(self, desk_client, appointment, patient):
        invoice_id = services.create_invoice(appointment.pk, patient.pk)

        response = desk_client.post(
            f'/api/billing/{invoice_id}/charges',
            {'lab_charges': '200', 'items': [{'description': 'X-Ray', 'unit_charge': '150'}]},
            format='json'
        )

        assert response.status_code == 200
        assert response.data['data']['amount'] == '850.00'
        assert response.data['data']['items'][0]['description'] == 'X-Ray'

    def test_summary_endpoint(self, desk_client, appointment, patient):
        services.create_invoice(appointment.pk, patient.pk)

        response = desk_client.get('/api/billing/summary')

        assert response.status_code == 200
        assert response.data['data']['total_invoices'] == 1
        assert response.data['data']['total_billed'] == Decimal('590.00')

    def test_service_prices_admin_only_writes(self, desk_client, admin_user):
        payload = {'code': 'xray', 'name': 'X-Ray', 'price': '150.00'}
        assert desk_client.post('/api/billing/service-prices/', payload, format='json').status_code == 403

        desk_client.force_authenticate(user=admin_user)
        response = desk_client.post('/api/billing/service-prices/', payload, format='json')
        assert response.status_code == 201
        assert get_revisions()['service_prices'] == 1
