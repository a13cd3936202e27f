# apps/accounts/models.py

from django.db import models
from django.contrib.auth.models import (
    AbstractBaseUser,
    PermissionsMixin,
    BaseUserManager
)
from core.constants import UserRoles, UserStatus
from core.mixins.audit_fields import AuditFieldsMixin


class UserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Email is required")

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", UserRoles.ADMIN)

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin, AuditFieldsMixin):
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=15, blank=True)
    full_name = models.CharField(max_length=150)

    role = models.CharField(max_length=20, choices=UserRoles.CHOICES, default=UserRoles.PATIENT)
    status = models.CharField(max_length=10, choices=UserStatus.choices, default=UserStatus.ACTIVE)

    # Django admin access only
    is_staff = models.BooleanField(default=False)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["full_name"]

    class Meta:
        db_table = 'users'
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["email"]),
            models.Index(fields=["role", "status"]),
        ]

    def __str__(self):
        return self.email

    @property
    def is_active(self):
        """Inactive accounts cannot log in; rows are never hard-deleted"""
        return self.status == UserStatus.ACTIVE

    def deactivate(self):
        self.status = UserStatus.INACTIVE
        self.save(update_fields=['status', 'updated_at'])

    def get_full_name(self):
        return self.full_name

    def get_short_name(self):
        return self.full_name.split(' ')[0] if self.full_name else self.email

    @property
    def is_front_desk(self):
        return self.role in (UserRoles.RECEPTIONIST, UserRoles.ADMIN)
