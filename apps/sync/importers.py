# apps/sync/importers.py
"""
One-off import of the state the browser front ends used to keep in local storage.

Browser records link to each other by display name ("Dr. Sarah Johnson");
the import resolves those names to rows once. Records that cannot be
resolved are skipped and reported, never guessed.
"""
import json
import logging
from collections import Counter

from django.db import IntegrityError, transaction
from django.utils.dateparse import parse_date

from apps.appointments.models import Appointment
from apps.audit.services import log_action
from apps.billing.calculations import compute_invoice_totals, money, to_decimal
from apps.billing.models import Invoice, InvoiceItem, ServicePrice
from apps.doctors.models import Doctor
from apps.patients.models import Patient
from core.constants import AppointmentStatus, AuditActions, Gender, InvoicePaymentStatus, Resources
from core.utils.records import loads_records
from .services import broadcast

logger = logging.getLogger(__name__)

# Local-storage key -> server resource
LEGACY_KEYS = {
    'doctors': Resources.DOCTORS,
    'patients': Resources.PATIENTS,
    'appointments': Resources.APPOINTMENTS,
    'billingRecords': Resources.INVOICES,
    'tokens': Resources.TOKENS,
    'notifications': Resources.NOTIFICATIONS,
    'servicePrices': Resources.SERVICE_PRICES,
    'reports': None,
}

# Keys whose contents are not carried over
IGNORED_KEYS = {
    'doctors': 'doctor profiles need login accounts; create them through the API',
    'tokens': 'queue tokens only live for one day',
    'notifications': 'notifications are regenerated by the server',
    'reports': 'reports are computed on demand',
}

GENDERS = {
    'male': Gender.MALE, 'm': Gender.MALE,
    'female': Gender.FEMALE, 'f': Gender.FEMALE,
    'other': Gender.OTHER, 'o': Gender.OTHER,
}


class ImportReport:
    def __init__(self):
        self.imported = Counter()
        self.skipped = Counter()
        self.messages = []

    def skip(self, key, reason):
        self.skipped[key] += 1
        self.messages.append(f"{key}: {reason}")
        logger.warning(f"Import skipped a '{key}' record: {reason}")

    def as_dict(self):
        return {
            'imported': dict(self.imported),
            'skipped': dict(self.skipped),
            'messages': list(self.messages),
        }


def _strip_title(name):
    name = (name or '').strip()
    return name[4:].strip() if name.lower().startswith('dr. ') else name


def _unique(queryset):
    """The single matching row, or None when there are zero or several"""
    rows = list(queryset[:2])
    return rows[0] if len(rows) == 1 else None


def resolve_patient(name):
    name = (name or '').strip()
    if not name:
        return None
    return _unique(Patient.objects.filter(name__iexact=name))


def resolve_doctor(name):
    name = _strip_title(name)
    if not name:
        return None
    return _unique(Doctor.objects.filter(user__full_name__iexact=name))


def import_patients(records, report, user=None):
    for record in records:
        name = (record.get('name') or '').strip()
        if not name:
            report.skip('patients', 'record has no name')
            continue
        phone = str(record.get('phone') or '').strip()[:15]
        if Patient.objects.filter(name__iexact=name, phone=phone).exists():
            report.skip('patients', f"{name} already exists")
            continue

        patient = Patient.objects.create(
            name=name,
            phone=phone,
            email=record.get('email') or '',
            gender=GENDERS.get(str(record.get('gender') or '').strip().lower(), ''),
            blood_group=str(record.get('bloodGroup') or '')[:5],
            address=record.get('address') or '',
            registered_by=user,
        )
        log_action(instance=patient, action=AuditActions.IMPORT, user=user)
        report.imported['patients'] += 1


def import_appointments(records, report, user=None):
    for record in records:
        patient = resolve_patient(record.get('patientName'))
        if patient is None:
            report.skip('appointments', f"unknown patient '{record.get('patientName')}'")
            continue
        doctor = resolve_doctor(record.get('doctorName'))
        if doctor is None:
            report.skip('appointments', f"unknown doctor '{record.get('doctorName')}'")
            continue
        date = parse_date(str(record.get('date') or ''))
        time = str(record.get('time') or '').strip()
        if date is None or not time:
            report.skip('appointments', f"bad date/time for {patient.name}")
            continue
        status = str(record.get('status') or AppointmentStatus.PENDING).strip().lower()
        if status not in AppointmentStatus.values:
            report.skip('appointments', f"unknown status '{status}'")
            continue

        try:
            with transaction.atomic():
                appointment = Appointment.objects.create(
                    patient=patient,
                    doctor=doctor,
                    date=date,
                    time=time,
                    status=status,
                    reason=record.get('reason') or '',
                    created_by=user,
                )
        except IntegrityError:
            report.skip('appointments', f"slot {date} {time} with {doctor.name} is taken")
            continue
        log_action(instance=appointment, action=AuditActions.IMPORT, user=user)
        report.imported['appointments'] += 1


def import_service_prices(raw, report, user=None):
    """Accepts the legacy {code: price} map as well as a list of records"""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Discarding corrupt 'servicePrices' payload: {e}")
            return
    if isinstance(raw, dict):
        entries = [{'code': code, 'name': code.replace('_', ' ').title(), 'price': price}
                   for code, price in raw.items()]
    else:
        entries = loads_records(raw, key='servicePrices')

    for entry in entries:
        code = str(entry.get('code') or '').strip()
        try:
            price = money(to_decimal(entry.get('price'), 'price'))
        except ValueError:
            price = None
        if not code or price is None or price < 0:
            report.skip('servicePrices', f"bad entry {entry!r}")
            continue
        ServicePrice.objects.update_or_create(
            code=code,
            defaults={'name': entry.get('name') or code, 'price': price, 'is_active': True},
        )
        report.imported['servicePrices'] += 1


def import_billing_records(records, report, user=None):
    for record in records:
        patient = resolve_patient(record.get('patientName'))
        if patient is None:
            report.skip('billingRecords', f"unknown patient '{record.get('patientName')}'")
            continue
        date = parse_date(str(record.get('date') or ''))
        appointment = _unique(Appointment.objects.filter(patient=patient, date=date)) if date else None
        if appointment is None:
            report.skip('billingRecords', f"no single appointment for {patient.name} on {record.get('date')}")
            continue
        if Invoice.objects.filter(appointment=appointment).exists():
            report.skip('billingRecords', f"appointment {appointment.pk} already invoiced")
            continue

        services = [s for s in record.get('services') or [] if isinstance(s, dict)]
        try:
            charges = [money(to_decimal(s.get('price'), 'price')) for s in services]
            totals = compute_invoice_totals(charges)
        except ValueError as e:
            report.skip('billingRecords', str(e))
            continue

        invoice = Invoice(appointment=appointment, patient=patient, created_by=user)
        invoice.apply_totals(totals)
        total_paid = record.get('totalPaid') or 0
        total_amount = record.get('totalAmount') or 0
        try:
            fully_paid = float(total_amount) > 0 and float(total_paid) >= float(total_amount)
        except (TypeError, ValueError):
            fully_paid = False
        if fully_paid:
            invoice.payment_status = InvoicePaymentStatus.PAID
        invoice.save()

        InvoiceItem.objects.bulk_create([
            InvoiceItem(invoice=invoice, description=str(s.get('name') or 'Service'), unit_charge=charge)
            for s, charge in zip(services, charges)
        ])
        log_action(instance=invoice, action=AuditActions.IMPORT, user=user)
        report.imported['billingRecords'] += 1


def import_local_state(state, user=None):
    """
    Import a browser local-storage export ({key: raw value}).

    Runs in one transaction; order matters because appointments resolve
    patients and invoices resolve appointments.
    """
    report = ImportReport()

    for key in state:
        if key not in LEGACY_KEYS:
            logger.warning(f"Ignoring unknown local-storage key '{key}'")
            report.messages.append(f"{key}: unknown key ignored")
        elif key in IGNORED_KEYS:
            logger.warning(f"Not importing '{key}': {IGNORED_KEYS[key]}")
            report.messages.append(f"{key}: {IGNORED_KEYS[key]}")

    with transaction.atomic():
        import_patients(loads_records(state.get('patients'), key='patients'), report, user)
        import_appointments(loads_records(state.get('appointments'), key='appointments'), report, user)
        if state.get('servicePrices') is not None:
            import_service_prices(state['servicePrices'], report, user)
        import_billing_records(loads_records(state.get('billingRecords'), key='billingRecords'), report, user)

        touched = [LEGACY_KEYS[key] for key, count in report.imported.items() if count]
        if touched:
            broadcast(*touched)

    logger.info(f"Local state import finished: {dict(report.imported)} imported, {dict(report.skipped)} skipped")
    return report
