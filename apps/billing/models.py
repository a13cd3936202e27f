# apps/billing/models.py
from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models.functions import Length

from core.constants import InvoicePaymentStatus, PaymentModes
from core.mixins.audit_fields import AuditFieldsMixin
from core.utils.utils import month_prefix, next_sequence_number


class ServicePrice(models.Model):
    """Billable service on the price list (lab tests, procedures, ...)"""
    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=150)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'service_prices'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.price})"


class Invoice(AuditFieldsMixin, models.Model):
    """
    Invoice for one appointment.

    ``amount`` is the pre-tax subtotal, ``total`` the payable amount after
    discount and GST.
    """

    appointment = models.OneToOneField(
        'appointments.Appointment',
        on_delete=models.PROTECT,
        related_name='invoice'
    )
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='invoices'
    )

    # Invoice identification
    invoice_number = models.CharField(max_length=50, unique=True, blank=True)
    issued_date = models.DateField(auto_now_add=True)

    # Charges
    consultation_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    lab_charges = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    medicine_charges = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))]
    )

    # Computed figures
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    # Payment
    payment_status = models.CharField(
        max_length=10,
        choices=InvoicePaymentStatus.choices,
        default=InvoicePaymentStatus.PENDING
    )
    payment_mode = models.CharField(max_length=20, choices=PaymentModes.choices, blank=True)

    class Meta:
        db_table = 'invoices'
        ordering = ['-issued_date', '-id']
        indexes = [
            models.Index(fields=['invoice_number']),
            models.Index(fields=['patient', 'payment_status']),
        ]

    def __str__(self):
        return f"{self.invoice_number} - {self.patient.name}"

    def save(self, *args, **kwargs):
        if not self.invoice_number:
            self.invoice_number = self._generate_invoice_number()
        super().save(*args, **kwargs)

    def _generate_invoice_number(self):
        """Generate INV-YYYYMM-XXXX format"""
        prefix = month_prefix('INV')
        # Longer suffixes are larger numbers; -10000 must follow -9999
        last_invoice = Invoice.objects.filter(
            invoice_number__startswith=prefix
        ).order_by(Length('invoice_number').desc(), '-invoice_number').first()

        new_num = next_sequence_number(last_invoice.invoice_number if last_invoice else None)
        return f'{prefix}{new_num:04d}'

    @property
    def is_paid(self):
        return self.payment_status == InvoicePaymentStatus.PAID

    def apply_totals(self, totals):
        self.amount = totals['subtotal']
        self.discount_amount = totals['discount_amount']
        self.tax_amount = totals['tax']
        self.total = totals['total']


class InvoiceItem(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')
    description = models.CharField(max_length=200)
    unit_charge = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    service_price = models.ForeignKey(
        ServicePrice,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invoice_items'
    )

    class Meta:
        db_table = 'invoice_items'
        ordering = ['id']

    def __str__(self):
        return f"{self.description}: {self.unit_charge}"
