# apps/appointments/services.py
"""
Appointment booking and the approval workflow.

    pending  -> approved | rejected | cancelled
    approved -> completed | cancelled

Rejected, cancelled and completed appointments never change again;
rescheduling books a new appointment linked to the old one.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.audit.services import log_action, serialize_model
from apps.doctors.models import Doctor
from apps.sync.services import broadcast
from core.constants import AppointmentStatus, AppointmentType, AuditActions, Resources
from core.exceptions import ConflictError, PreconditionFailed
from core.state_machine import TransitionTable
from .models import Appointment
from .signals import appointment_approved, appointment_booked, appointment_rejected

logger = logging.getLogger(__name__)

APPOINTMENT_TRANSITIONS = TransitionTable(AppointmentStatus, {
    AppointmentStatus.PENDING: {
        AppointmentStatus.APPROVED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.APPROVED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.REJECTED: set(),
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.COMPLETED: set(),
})

OPEN_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.APPROVED)

STANDARD_SLOTS = [
    '09:00 AM', '09:30 AM', '10:00 AM', '10:30 AM', '11:00 AM', '11:30 AM',
    '12:00 PM', '12:30 PM',
    '02:00 PM', '02:30 PM', '03:00 PM', '03:30 PM', '04:00 PM', '04:30 PM',
]


def _ensure_doctor_available(doctor):
    # Re-read: the status may have changed since the appointment was loaded
    status = Doctor.objects.filter(pk=doctor.pk).values_list('status', flat=True).first()
    doctor.status = status
    if not doctor.is_available:
        raise PreconditionFailed("Doctor not available")


def booked_slots(doctor, date, exclude=None):
    queryset = Appointment.objects.filter(doctor=doctor, date=date, status__in=OPEN_STATUSES)
    if exclude is not None:
        queryset = queryset.exclude(pk=exclude.pk)
    return set(queryset.values_list('time', flat=True))


def get_availability(doctor, date):
    """Standard slots for ``doctor`` on ``date`` flagged available or booked"""
    booked = booked_slots(doctor, date)
    return [
        {'time': slot, 'available': doctor.is_available and slot not in booked}
        for slot in STANDARD_SLOTS
    ]


def book_appointment(*, patient, doctor, date, time, appointment_type=AppointmentType.CONSULTATION,
                     reason='', booked_by=None, rescheduled_from=None):
    time = (time or '').strip()
    if not time:
        raise ValidationError({'time': 'Appointment time is required.'})
    if date < timezone.localdate():
        raise ValidationError({'date': 'Cannot book an appointment in the past.'})

    _ensure_doctor_available(doctor)

    if time in booked_slots(doctor, date):
        raise ConflictError("Slot already booked")

    with transaction.atomic():
        try:
            with transaction.atomic():
                appointment = Appointment.objects.create(
                    patient=patient,
                    doctor=doctor,
                    date=date,
                    time=time,
                    appointment_type=appointment_type,
                    reason=reason,
                    rescheduled_from=rescheduled_from,
                    created_by=booked_by,
                )
        except IntegrityError:
            raise ConflictError("Slot already booked")

        log_action(instance=appointment, action=AuditActions.CREATE, user=booked_by)
        appointment_booked.send(sender=Appointment, appointment=appointment, user=booked_by)
        broadcast(Resources.APPOINTMENTS, Resources.NOTIFICATIONS)

    logger.info(f"Appointment {appointment.pk} booked for patient {patient.pk} with doctor {doctor.pk} "
                f"on {date} {time}")
    return appointment


def _move(appointment, target, action, user=None, expected_version=None, note=''):
    APPOINTMENT_TRANSITIONS.check(appointment.status, target)
    before = serialize_model(appointment)

    appointment.status = target
    appointment.decided_by = user
    appointment.decided_at = timezone.now()
    appointment.status_note = note or ''
    appointment.save_versioned(
        ['status', 'decided_by', 'decided_at', 'status_note'],
        expected_version=expected_version
    )

    log_action(instance=appointment, action=action, user=user, before=before,
               metadata={'note': note} if note else None)
    return appointment


def approve(appointment, user=None, expected_version=None):
    """
    Approve a pending appointment.

    Fails with PreconditionFailed (state unchanged) if the doctor is not active.
    """
    with transaction.atomic():
        APPOINTMENT_TRANSITIONS.check(appointment.status, AppointmentStatus.APPROVED)
        _ensure_doctor_available(appointment.doctor)

        _move(appointment, AppointmentStatus.APPROVED, AuditActions.APPROVE, user, expected_version)
        appointment_approved.send(sender=Appointment, appointment=appointment, user=user)
        broadcast(Resources.APPOINTMENTS, Resources.NOTIFICATIONS)

    logger.info(f"Appointment {appointment.pk} approved by {user}")
    return appointment


def reject(appointment, user=None, reason='', expected_version=None):
    with transaction.atomic():
        _move(appointment, AppointmentStatus.REJECTED, AuditActions.REJECT, user, expected_version, reason)
        appointment_rejected.send(sender=Appointment, appointment=appointment, user=user)
        broadcast(Resources.APPOINTMENTS, Resources.NOTIFICATIONS)

    logger.info(f"Appointment {appointment.pk} rejected by {user}")
    return appointment


def cancel(appointment, user=None, reason='', expected_version=None):
    with transaction.atomic():
        _move(appointment, AppointmentStatus.CANCELLED, AuditActions.CANCEL, user, expected_version, reason)
        broadcast(Resources.APPOINTMENTS)

    logger.info(f"Appointment {appointment.pk} cancelled by {user}")
    return appointment


def complete(appointment, user=None, expected_version=None):
    with transaction.atomic():
        _move(appointment, AppointmentStatus.COMPLETED, AuditActions.COMPLETE, user, expected_version)
        broadcast(Resources.APPOINTMENTS)

    logger.info(f"Appointment {appointment.pk} completed")
    return appointment


def reschedule(appointment, date, time, user=None, expected_version=None):
    """
    Cancel ``appointment`` if still open and book a new pending one in its place.
    """
    with transaction.atomic():
        if appointment.is_open:
            cancel(appointment, user=user, reason='Rescheduled', expected_version=expected_version)
        new_appointment = book_appointment(
            patient=appointment.patient,
            doctor=appointment.doctor,
            date=date,
            time=time,
            appointment_type=appointment.appointment_type,
            reason=appointment.reason,
            booked_by=user,
            rescheduled_from=appointment,
        )

    logger.info(f"Appointment {appointment.pk} rescheduled as {new_appointment.pk}")
    return new_appointment
