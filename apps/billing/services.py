# apps/billing/services.py
import logging

from django.db import IntegrityError, transaction
from django.db.models import Q, Sum
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from apps.appointments.models import Appointment
from apps.audit.services import log_action, serialize_model
from apps.patients.models import Patient
from apps.sync.services import broadcast
from core.constants import AuditActions, InvoicePaymentStatus, PaymentStatus, Resources
from core.exceptions import ConflictError
from .calculations import compute_invoice_totals, to_decimal, ZERO
from .models import Invoice, InvoiceItem

logger = logging.getLogger(__name__)


def _positive_int(value, field):
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        number = 0
    if number <= 0:
        raise ValidationError({field: 'Must be a positive integer.'})
    return number


def create_invoice(appointment_id, patient_id, user=None):
    """
    Create the invoice for an appointment and return its id.

    The one-invoice-per-appointment rule is left to the database; a
    duplicate surfaces as ConflictError.
    """
    if appointment_id in (None, '') or patient_id in (None, ''):
        raise ValidationError("appointment_id and patient_id are required")

    appointment = (
        Appointment.objects.select_related('doctor')
        .filter(pk=_positive_int(appointment_id, 'appointment_id'))
        .first()
    )
    if appointment is None:
        raise ValidationError({'appointment_id': 'Appointment not found.'})

    patient = Patient.objects.filter(pk=_positive_int(patient_id, 'patient_id')).first()
    if patient is None:
        raise ValidationError({'patient_id': 'Patient not found.'})
    if appointment.patient_id != patient.pk:
        raise ValidationError({'patient_id': 'Patient does not match the appointment.'})

    totals = compute_invoice_totals(consultation_fee=appointment.doctor.consultation_fee)
    invoice = Invoice(
        appointment=appointment,
        patient=patient,
        consultation_fee=appointment.doctor.consultation_fee,
        created_by=user,
    )
    invoice.apply_totals(totals)

    try:
        with transaction.atomic():
            invoice.save()
            log_action(instance=invoice, action=AuditActions.CREATE, user=user)
            broadcast(Resources.INVOICES)
    except IntegrityError:
        if Invoice.objects.filter(appointment_id=appointment.pk).exists():
            raise ConflictError("Invoice already exists for this appointment")
        raise ConflictError("Could not allocate an invoice number. Try again.")

    logger.info(f"Invoice {invoice.invoice_number} created for appointment {appointment.pk}")
    return invoice.pk


def get_invoice_by_id(invoice_id):
    pk = _positive_int(invoice_id, 'id')
    invoice = (
        Invoice.objects.select_related('patient', 'appointment__doctor__user')
        .prefetch_related('items')
        .filter(pk=pk)
        .first()
    )
    if invoice is None:
        raise NotFound("Invoice not found")
    return invoice


def search_invoices(term):
    """Substring match on patient name or invoice number, exact match on id"""
    term = (term or '').strip()
    if not term:
        raise ValidationError({'term': 'Search term is required.'})

    query = Q(patient__name__icontains=term) | Q(invoice_number__icontains=term)
    if term.isdigit():
        query |= Q(pk=int(term))

    return list(
        Invoice.objects.select_related('patient', 'appointment__doctor__user')
        .filter(query)
        .order_by('-issued_date', '-id')
    )


def apply_charges(invoice, *, items=None, consultation_fee=None, lab_charges=None,
                  medicine_charges=None, discount_percent=None, payment_mode=None, user=None):
    """
    Replace the invoice's charges and recompute its stored totals.

    ``items`` replaces all line items when given; omitted charges keep their
    current values. Paid invoices are frozen.
    """
    if invoice.is_paid:
        raise ConflictError("Invoice is already paid")

    updates = {
        'consultation_fee': invoice.consultation_fee if consultation_fee is None else consultation_fee,
        'lab_charges': invoice.lab_charges if lab_charges is None else lab_charges,
        'medicine_charges': invoice.medicine_charges if medicine_charges is None else medicine_charges,
        'discount_percent': invoice.discount_percent if discount_percent is None else discount_percent,
    }
    line_items = list(items) if items is not None else [
        {'unit_charge': item.unit_charge} for item in invoice.items.all()
    ]

    try:
        totals = compute_invoice_totals(line_items, **updates)
    except ValueError as exc:
        raise ValidationError(str(exc))

    before = serialize_model(invoice)
    with transaction.atomic():
        if items is not None:
            invoice.items.all().delete()
            InvoiceItem.objects.bulk_create([
                InvoiceItem(
                    invoice=invoice,
                    description=item.get('description', ''),
                    unit_charge=to_decimal(item.get('unit_charge')),
                    service_price=item.get('service_price'),
                )
                for item in line_items
            ])

        for field, value in updates.items():
            setattr(invoice, field, to_decimal(value))
        if payment_mode is not None:
            invoice.payment_mode = payment_mode
        invoice.apply_totals(totals)
        invoice.save()

        log_action(instance=invoice, action=AuditActions.UPDATE, user=user, before=before)
        broadcast(Resources.INVOICES)

    logger.info(f"Charges updated on {invoice.invoice_number}: total {invoice.total}")
    return invoice


def billing_summary(day=None):
    from apps.payments.models import Payment

    day = day or timezone.localdate()
    invoices = Invoice.objects.all()

    billed = invoices.aggregate(total=Sum('total'))['total'] or ZERO
    paid = invoices.filter(payment_status=InvoicePaymentStatus.PAID).aggregate(total=Sum('total'))['total'] or ZERO
    today_revenue = Payment.objects.filter(
        status=PaymentStatus.SUCCESS,
        confirmed_at__date=day,
    ).aggregate(total=Sum('amount'))['total'] or ZERO

    return {
        'total_invoices': invoices.count(),
        'pending_invoices': invoices.filter(payment_status=InvoicePaymentStatus.PENDING).count(),
        'total_billed': billed,
        'total_paid': paid,
        'total_outstanding': billed - paid,
        'today_revenue': today_revenue,
    }
