# apps/patients/models.py
from django.db import models

from core.constants import Gender
from core.utils.utils import format_patient_code


class Patient(models.Model):
    """
    Patient record.

    Self-registered patients are linked to their login account; walk-ins
    registered at the front desk have no account and keep ``registered_by``.
    """

    user = models.OneToOneField(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='patient_profile'
    )
    registered_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='registered_patients'
    )

    # Personal details
    name = models.CharField(max_length=150)
    phone = models.CharField(max_length=15, blank=True)
    email = models.EmailField(blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=1, choices=Gender.choices, blank=True)
    blood_group = models.CharField(max_length=5, blank=True)
    address = models.TextField(blank=True)

    # Contact
    emergency_contact = models.CharField(max_length=150, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['name']),
            models.Index(fields=['phone']),
        ]

    def __str__(self):
        return f"{self.name} ({self.patient_code})"

    @property
    def patient_code(self):
        return format_patient_code(self.pk) if self.pk else ''

    @property
    def is_walk_in(self):
        return self.user_id is None
