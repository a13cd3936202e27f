# apps/appointments/serializers.py
from rest_framework import serializers

from apps.doctors.models import Doctor
from apps.patients.models import Patient
from core.constants import AppointmentType
from .models import Appointment


class AppointmentSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='patient.name', read_only=True)
    patient_code = serializers.CharField(source='patient.patient_code', read_only=True)
    doctor_name = serializers.CharField(source='doctor.name', read_only=True)
    specialization = serializers.CharField(source='doctor.specialization', read_only=True)
    department_name = serializers.CharField(source='doctor.department.name', read_only=True, default=None)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'patient', 'patient_name', 'patient_code',
            'doctor', 'doctor_name', 'specialization', 'department_name',
            'date', 'time', 'appointment_type', 'reason',
            'status', 'status_display', 'status_note', 'decided_at',
            'rescheduled_from', 'version', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class AppointmentCreateSerializer(serializers.Serializer):
    """Patients book for themselves; the front desk names the patient"""
    patient_id = serializers.PrimaryKeyRelatedField(
        queryset=Patient.objects.all(), source='patient', required=False
    )
    doctor_id = serializers.PrimaryKeyRelatedField(queryset=Doctor.objects.all(), source='doctor')
    date = serializers.DateField()
    time = serializers.CharField(max_length=20)
    appointment_type = serializers.ChoiceField(
        choices=AppointmentType.choices, default=AppointmentType.CONSULTATION
    )
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class AppointmentActionSerializer(serializers.Serializer):
    version = serializers.IntegerField(required=False, min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class RescheduleSerializer(serializers.Serializer):
    version = serializers.IntegerField(required=False, min_value=1)
    date = serializers.DateField()
    time = serializers.CharField(max_length=20)


class AvailabilityQuerySerializer(serializers.Serializer):
    doctor = serializers.PrimaryKeyRelatedField(queryset=Doctor.objects.select_related('user'))
    date = serializers.DateField()
