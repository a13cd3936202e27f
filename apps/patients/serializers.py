# apps/patients/serializers.py

from rest_framework import serializers

from .models import Patient


class PatientSerializer(serializers.ModelSerializer):
    patient_code = serializers.CharField(read_only=True)
    is_walk_in = serializers.BooleanField(read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id', 'patient_code', 'name', 'phone', 'email',
            'date_of_birth', 'gender', 'blood_group', 'address',
            'emergency_contact', 'is_walk_in', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


class PatientListSerializer(serializers.ModelSerializer):
    patient_code = serializers.CharField(read_only=True)

    class Meta:
        model = Patient
        fields = ['id', 'patient_code', 'name', 'phone', 'gender', 'created_at']


class WalkInSerializer(serializers.ModelSerializer):
    """
    Front desk registration; optionally issues a queue token straight away.
    """
    doctor_id = serializers.IntegerField(write_only=True, required=False, allow_null=True)
    department_id = serializers.IntegerField(write_only=True, required=False, allow_null=True)
    issue_token = serializers.BooleanField(write_only=True, default=True)

    class Meta:
        model = Patient
        fields = [
            'name', 'phone', 'email', 'date_of_birth', 'gender',
            'blood_group', 'address', 'emergency_contact',
            'doctor_id', 'department_id', 'issue_token'
        ]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Patient name is required.")
        return value


class PatientSearchSerializer(serializers.Serializer):
    q = serializers.CharField(required=True, allow_blank=False)
    gender = serializers.ChoiceField(choices=Patient._meta.get_field('gender').choices, required=False)
