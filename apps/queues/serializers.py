# apps/queues/serializers.py
from rest_framework import serializers

from apps.doctors.models import Department, Doctor
from apps.patients.models import Patient
from .models import Token


class TokenSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='patient.name', read_only=True)
    patient_code = serializers.CharField(source='patient.patient_code', read_only=True)
    doctor_name = serializers.CharField(source='doctor.name', read_only=True, default=None)
    department_name = serializers.CharField(source='department.name', read_only=True, default=None)
    wait_minutes = serializers.FloatField(read_only=True)

    class Meta:
        model = Token
        fields = [
            'id', 'token_number', 'queue_date', 'status', 'version',
            'patient', 'patient_name', 'patient_code',
            'doctor', 'doctor_name', 'department', 'department_name',
            'created_at', 'called_at', 'completed_at', 'wait_minutes'
        ]
        read_only_fields = fields


class TokenCreateSerializer(serializers.Serializer):
    patient_id = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all(), source='patient')
    doctor_id = serializers.PrimaryKeyRelatedField(
        queryset=Doctor.objects.all(), source='doctor', required=False, allow_null=True
    )
    department_id = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.all(), source='department', required=False, allow_null=True
    )


class TokenTransitionSerializer(serializers.Serializer):
    version = serializers.IntegerField(required=False, min_value=1)


class QueueStatsSerializer(serializers.Serializer):
    date = serializers.DateField()
    total = serializers.IntegerField()
    waiting = serializers.IntegerField()
    calling = serializers.IntegerField()
    done = serializers.IntegerField()
    active = serializers.IntegerField()
    average_wait_minutes = serializers.FloatField()
    current_token = serializers.CharField(allow_null=True)
