# apps/queues/models.py
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.constants import TokenStatus
from core.mixins.versioned import VersionedMixin


class Token(VersionedMixin, models.Model):
    """Walk-in queue token, numbered per queue day (TK-1001, TK-1002, ...)"""

    token_number = models.CharField(max_length=20)
    queue_date = models.DateField(default=timezone.localdate, db_index=True)

    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.CASCADE,
        related_name='tokens'
    )
    doctor = models.ForeignKey(
        'doctors.Doctor',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tokens'
    )
    department = models.ForeignKey(
        'doctors.Department',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tokens'
    )
    generated_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='generated_tokens'
    )

    status = models.CharField(
        max_length=10,
        choices=TokenStatus.choices,
        default=TokenStatus.WAITING
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    called_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'queue_tokens'
        ordering = ['queue_date', 'created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['queue_date', 'token_number'],
                name='unique_token_number_per_day'
            ),
            models.UniqueConstraint(
                fields=['queue_date'],
                condition=Q(status=TokenStatus.CALLING),
                name='one_calling_token_per_day'
            ),
        ]
        indexes = [
            models.Index(fields=['queue_date', 'status']),
        ]

    def __str__(self):
        return f"{self.token_number} ({self.get_status_display()})"

    @property
    def wait_minutes(self):
        if not self.called_at:
            return None
        return round((self.called_at - self.created_at).total_seconds() / 60, 1)
