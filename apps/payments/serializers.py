# apps/payments/serializers.py
from decimal import Decimal

from rest_framework import serializers

from apps.billing.models import Invoice
from core.constants import PaymentModes, PaymentStatus
from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    invoice_number = serializers.CharField(source='invoice.invoice_number', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'invoice', 'invoice_number', 'amount', 'method',
            'provider', 'transaction_id', 'status', 'created_at', 'confirmed_at'
        ]
        read_only_fields = fields


class PaymentInitiateSerializer(serializers.Serializer):
    invoice_id = serializers.PrimaryKeyRelatedField(queryset=Invoice.objects.all(), source='invoice')
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.01'), required=False
    )
    method = serializers.ChoiceField(choices=PaymentModes.choices, default=PaymentModes.ONLINE)


class PaymentConfirmSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[PaymentStatus.SUCCESS, PaymentStatus.FAILED])
