# apps/doctors/serializers.py

from django.db import transaction
from rest_framework import serializers

from apps.accounts.models import User
from core.constants import UserRoles, DoctorAvailability
from .models import Department, Doctor


class DepartmentSerializer(serializers.ModelSerializer):
    doctor_count = serializers.IntegerField(source='doctors.count', read_only=True)

    class Meta:
        model = Department
        fields = ['id', 'name', 'description', 'doctor_count', 'created_at']
        read_only_fields = ['created_at']


class DoctorMinimalSerializer(serializers.ModelSerializer):
    """Minimal doctor serializer"""
    name = serializers.CharField(source='user.full_name', read_only=True)

    class Meta:
        model = Doctor
        fields = ['id', 'name', 'specialization', 'status']


class DoctorSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='user.full_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    phone = serializers.CharField(source='user.phone', read_only=True)
    department_name = serializers.CharField(source='department.name', read_only=True, default=None)
    department_id = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.all(),
        source='department',
        required=False,
        allow_null=True
    )

    class Meta:
        model = Doctor
        fields = [
            'id', 'name', 'email', 'phone',
            'department_id', 'department_name',
            'specialization', 'qualification', 'experience_years',
            'consultation_fee', 'status', 'photo',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['status', 'created_at', 'updated_at']


class DoctorCreateSerializer(DoctorSerializer):
    """Creates the doctor's login account together with the profile"""
    full_name = serializers.CharField(write_only=True, max_length=150)
    account_email = serializers.EmailField(write_only=True)
    account_phone = serializers.CharField(write_only=True, required=False, allow_blank=True)
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta(DoctorSerializer.Meta):
        fields = DoctorSerializer.Meta.fields + [
            'full_name', 'account_email', 'account_phone', 'password'
        ]

    def validate_account_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return value

    @transaction.atomic
    def create(self, validated_data):
        user = User.objects.create_user(
            email=validated_data.pop('account_email'),
            password=validated_data.pop('password'),
            full_name=validated_data.pop('full_name'),
            phone=validated_data.pop('account_phone', ''),
            role=UserRoles.DOCTOR,
        )
        return Doctor.objects.create(user=user, **validated_data)


class DoctorStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DoctorAvailability.choices)
