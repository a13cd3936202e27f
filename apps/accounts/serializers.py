# apps/accounts/serializers.py

from django.contrib.auth.password_validation import validate_password
from django.db import transaction
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from core.constants import UserRoles
from .models import User


# -----------------------------
# User Serializer
# -----------------------------
class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id', 'email', 'phone', 'full_name', 'role', 'status',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'email', 'role', 'status', 'created_at', 'updated_at']


class StaffUserCreateSerializer(serializers.ModelSerializer):
    """Admin-only creation of staff accounts"""
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = ['id', 'email', 'phone', 'full_name', 'role', 'password']

    def validate_role(self, value):
        if value == UserRoles.PATIENT:
            raise serializers.ValidationError("Patients register through /register/.")
        return value

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)


# -----------------------------
# Patient self-registration
# -----------------------------
class RegisterSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=15, required=False, allow_blank=True)
    password = serializers.CharField(write_only=True, min_length=8)
    confirm_password = serializers.CharField(write_only=True)

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return value

    def validate(self, data):
        if data['password'] != data['confirm_password']:
            raise serializers.ValidationError({"confirm_password": "Passwords don't match."})
        validate_password(data['password'])
        return data

    @transaction.atomic
    def create(self, validated_data):
        from apps.patients.models import Patient

        validated_data.pop('confirm_password')
        user = User.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            full_name=validated_data['full_name'],
            phone=validated_data.get('phone', ''),
            role=UserRoles.PATIENT,
        )
        Patient.objects.create(
            user=user,
            name=user.full_name,
            email=user.email,
            phone=user.phone,
        )
        return user


# -----------------------------
# JWT Token Serializer
# -----------------------------
class RoleTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Adds the user's role to the token and the user profile to the response"""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['role'] = user.role
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        return data


# -----------------------------
# Change Password
# -----------------------------
class ChangePasswordSerializer(serializers.Serializer):
    old_password = serializers.CharField(required=True)
    new_password = serializers.CharField(required=True, min_length=8)
    confirm_password = serializers.CharField(required=True)

    def validate(self, data):
        if data['new_password'] != data['confirm_password']:
            raise serializers.ValidationError({"confirm_password": "New passwords don't match."})
        return data
