# apps/billing/serializers.py
from decimal import Decimal

from rest_framework import serializers

from core.constants import PaymentModes
from .models import Invoice, InvoiceItem, ServicePrice


class ServicePriceSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServicePrice
        fields = ['id', 'code', 'name', 'price', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = ['id', 'description', 'unit_charge', 'service_price']


class InvoiceSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='patient.name', read_only=True)
    patient_code = serializers.CharField(source='patient.patient_code', read_only=True)
    doctor_name = serializers.CharField(source='appointment.doctor.name', read_only=True)
    appointment_date = serializers.DateField(source='appointment.date', read_only=True)
    appointment_time = serializers.CharField(source='appointment.time', read_only=True)
    items = InvoiceItemSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            'id', 'invoice_number', 'issued_date',
            'appointment', 'appointment_date', 'appointment_time',
            'patient', 'patient_name', 'patient_code', 'doctor_name',
            'consultation_fee', 'lab_charges', 'medicine_charges', 'items',
            'discount_percent', 'amount', 'discount_amount', 'tax_amount', 'total',
            'payment_status', 'payment_mode', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class InvoiceListSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='patient.name', read_only=True)

    class Meta:
        model = Invoice
        fields = ['id', 'invoice_number', 'issued_date', 'patient', 'patient_name',
                  'total', 'payment_status']


class InvoiceCreateSerializer(serializers.Serializer):
    """
    ``appointment_id`` / ``patient_id``; the camelCase keys sent by the older
    billing screens are accepted as aliases.
    """
    appointment_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    patient_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    appointmentId = serializers.CharField(required=False, allow_null=True, allow_blank=True, write_only=True)
    patientId = serializers.CharField(required=False, allow_null=True, allow_blank=True, write_only=True)

    def validate(self, data):
        return {
            'appointment_id': data.get('appointment_id') or data.get('appointmentId'),
            'patient_id': data.get('patient_id') or data.get('patientId'),
        }


class LineItemSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=200)
    unit_charge = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    service_price = serializers.PrimaryKeyRelatedField(
        queryset=ServicePrice.objects.filter(is_active=True), required=False, allow_null=True
    )


class ChargesSerializer(serializers.Serializer):
    items = LineItemSerializer(many=True, required=False)
    consultation_fee = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False
    )
    lab_charges = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False
    )
    medicine_charges = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False
    )
    discount_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal('0'), max_value=Decimal('100'), required=False
    )
    payment_mode = serializers.ChoiceField(choices=PaymentModes.choices, required=False)


class CalculateSerializer(ChargesSerializer):
    payment_mode = None


class InvoiceTotalsSerializer(serializers.Serializer):
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    taxable_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax = serializers.DecimalField(max_digits=12, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
