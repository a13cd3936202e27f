# apps/notifications/signals.py
from django.dispatch import receiver

from apps.appointments.signals import (
    appointment_approved, appointment_booked, appointment_rejected
)
from .services import NotificationService


@receiver(appointment_approved)
def notify_appointment_approved(sender, appointment, **kwargs):
    NotificationService.appointment_approved(appointment)


@receiver(appointment_rejected)
def notify_appointment_rejected(sender, appointment, **kwargs):
    NotificationService.appointment_rejected(appointment)


@receiver(appointment_booked)
def notify_appointment_booked(sender, appointment, **kwargs):
    NotificationService.appointment_booked(appointment)
