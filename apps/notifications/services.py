# apps/notifications/services.py
import logging

from django.db.models import Q

from core.constants import NotificationType, UserRoles
from .models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates the notifications raised by workflow events"""

    @staticmethod
    def notify(notification_type, title, message, recipient=None, action_path='', related_id=None):
        notification = Notification.objects.create(
            recipient=recipient,
            notification_type=notification_type,
            title=title,
            message=message,
            action_path=action_path,
            related_id=related_id,
        )
        logger.info(
            f"Notification {notification.pk} ({notification_type}) for "
            f"{recipient.email if recipient else 'front desk'}"
        )
        return notification

    @staticmethod
    def visible_to(user):
        """Notifications addressed to ``user``, plus front desk broadcasts for staff"""
        query = Q(recipient=user)
        if user.role in UserRoles.STAFF:
            query |= Q(recipient__isnull=True)
        return Notification.objects.filter(query)

    @staticmethod
    def _patient_account(appointment):
        """The patient's login, or None for walk-ins who have no account"""
        user = appointment.patient.user
        if user is None:
            logger.info(f"Appointment {appointment.pk}: patient has no account, decision not notified")
        return user

    @classmethod
    def appointment_approved(cls, appointment):
        patient_user = cls._patient_account(appointment)
        if patient_user is None:
            return None
        return cls.notify(
            NotificationType.APPOINTMENT_APPROVED,
            'Appointment approved',
            f"Your appointment with Dr. {appointment.doctor.name} on "
            f"{appointment.date:%d %b %Y} at {appointment.time} has been approved.",
            recipient=patient_user,
            action_path=f'/appointments/{appointment.pk}',
            related_id=appointment.pk,
        )

    @classmethod
    def appointment_rejected(cls, appointment):
        patient_user = cls._patient_account(appointment)
        if patient_user is None:
            return None
        message = (
            f"Your appointment with Dr. {appointment.doctor.name} on "
            f"{appointment.date:%d %b %Y} at {appointment.time} was not approved."
        )
        if appointment.status_note:
            message += f" Reason: {appointment.status_note}"
        return cls.notify(
            NotificationType.APPOINTMENT_REJECTED,
            'Appointment rejected',
            message,
            recipient=patient_user,
            action_path=f'/appointments/{appointment.pk}',
            related_id=appointment.pk,
        )

    @classmethod
    def appointment_booked(cls, appointment):
        return cls.notify(
            NotificationType.APPOINTMENT_BOOKED,
            'New appointment request',
            f"{appointment.patient.name} requested Dr. {appointment.doctor.name} on "
            f"{appointment.date:%d %b %Y} at {appointment.time}.",
            action_path='/appointments/pending',
            related_id=appointment.pk,
        )

    @classmethod
    def payment_received(cls, payment):
        invoice = payment.invoice
        return cls.notify(
            NotificationType.PAYMENT_RECEIVED,
            'Payment received',
            f"Payment of {payment.amount} received for invoice {invoice.invoice_number}.",
            recipient=invoice.patient.user,
            action_path=f'/billing/{invoice.pk}',
            related_id=invoice.pk,
        )

    @classmethod
    def doctor_status_changed(cls, doctor):
        return cls.notify(
            NotificationType.DOCTOR_STATUS,
            'Doctor availability changed',
            f"Dr. {doctor.name} is now {doctor.get_status_display().lower()}.",
            action_path=f'/doctors/{doctor.pk}',
            related_id=doctor.pk,
        )
