#apps/doctors/models.py

import os
import uuid

from django.db import models
from core.constants import DoctorAvailability
from core.mixins.audit_fields import AuditFieldsMixin
from .validators import validate_doctor_photo


def doctor_photo_path(instance, filename):
    """Store uploads under a random name; only the extension is kept"""
    ext = os.path.splitext(filename)[1].lower()
    return f'doctors/{uuid.uuid4().hex}{ext}'


class Department(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'departments'
        ordering = ['name']

    def __str__(self):
        return self.name


class Doctor(AuditFieldsMixin, models.Model):
    """Doctor profile - link to User account"""

    user = models.OneToOneField(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='doctor_profile'
    )

    # Department is a weak reference: deleting it leaves the doctor unassigned
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='doctors'
    )

    # Professional details
    specialization = models.CharField(max_length=100)
    qualification = models.CharField(max_length=200, blank=True)
    experience_years = models.PositiveIntegerField(default=0)
    consultation_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    # Availability
    status = models.CharField(
        max_length=10,
        choices=DoctorAvailability.choices,
        default=DoctorAvailability.ACTIVE
    )

    photo = models.FileField(
        upload_to=doctor_photo_path,
        null=True,
        blank=True,
        validators=[validate_doctor_photo]
    )

    class Meta:
        db_table = 'doctors'
        ordering = ['user__full_name']
        indexes = [
            models.Index(fields=['specialization']),
            models.Index(fields=['department', 'status']),
        ]

    def __str__(self):
        return f"Dr. {self.user.full_name} ({self.specialization})"

    @property
    def name(self):
        return self.user.full_name

    @property
    def is_available(self):
        return self.status == DoctorAvailability.ACTIVE
