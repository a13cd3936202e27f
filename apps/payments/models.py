# apps/payments/models.py
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from core.constants import PaymentModes, PaymentStatus


class Payment(models.Model):
    """One payment attempt against an invoice"""

    invoice = models.ForeignKey(
        'billing.Invoice',
        on_delete=models.PROTECT,
        related_name='payments'
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    method = models.CharField(max_length=20, choices=PaymentModes.choices, default=PaymentModes.ONLINE)

    # Gateway
    provider = models.CharField(max_length=30)
    transaction_id = models.CharField(max_length=100, unique=True)
    status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.INITIATED
    )

    initiated_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='initiated_payments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'payments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['invoice', 'status']),
        ]

    def __str__(self):
        return f"{self.transaction_id} {self.amount} ({self.status})"
