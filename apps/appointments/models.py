# apps/appointments/models.py
from django.db import models
from django.db.models import Q

from core.constants import AppointmentStatus, AppointmentType
from core.mixins.audit_fields import AuditFieldsMixin
from core.mixins.versioned import VersionedMixin


class Appointment(VersionedMixin, AuditFieldsMixin, models.Model):
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.CASCADE,
        related_name='appointments'
    )
    doctor = models.ForeignKey(
        'doctors.Doctor',
        on_delete=models.PROTECT,
        related_name='appointments'
    )

    date = models.DateField()
    # Slot label as shown on the booking form, e.g. "10:00 AM"
    time = models.CharField(max_length=20)

    appointment_type = models.CharField(
        max_length=20,
        choices=AppointmentType.choices,
        default=AppointmentType.CONSULTATION
    )
    reason = models.TextField(blank=True)

    status = models.CharField(
        max_length=20,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.PENDING
    )

    # Decision
    decided_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='decided_appointments'
    )
    decided_at = models.DateTimeField(null=True, blank=True)
    status_note = models.TextField(blank=True)

    rescheduled_from = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reschedules'
    )

    class Meta:
        db_table = 'appointments'
        ordering = ['-date', '-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['doctor', 'date', 'time'],
                condition=Q(status__in=[AppointmentStatus.PENDING, AppointmentStatus.APPROVED]),
                name='one_open_appointment_per_slot'
            ),
        ]
        indexes = [
            models.Index(fields=['doctor', 'date']),
            models.Index(fields=['patient', 'status']),
        ]

    def __str__(self):
        return f"Appointment #{self.pk} {self.patient.name} with {self.doctor} on {self.date} {self.time}"

    @property
    def is_open(self):
        return self.status in (AppointmentStatus.PENDING, AppointmentStatus.APPROVED)
