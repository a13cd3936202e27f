# core/constants.py

from django.db import models


class UserRoles:
    """User role constants for RBAC"""
    ADMIN = 'admin'
    DOCTOR = 'doctor'
    PATIENT = 'patient'
    RECEPTIONIST = 'receptionist'
    LAB_TECH = 'lab_tech'

    CHOICES = [
        (ADMIN, 'Administrator'),
        (DOCTOR, 'Doctor'),
        (PATIENT, 'Patient'),
        (RECEPTIONIST, 'Receptionist'),
        (LAB_TECH, 'Laboratory Technician'),
    ]

    STAFF = (ADMIN, DOCTOR, RECEPTIONIST, LAB_TECH)


class UserStatus(models.TextChoices):
    ACTIVE = 'Active', 'Active'
    INACTIVE = 'Inactive', 'Inactive'


class DoctorAvailability(models.TextChoices):
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'


class Gender(models.TextChoices):
    MALE = 'M', 'Male'
    FEMALE = 'F', 'Female'
    OTHER = 'O', 'Other'


class AppointmentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    CANCELLED = 'cancelled', 'Cancelled'
    COMPLETED = 'completed', 'Completed'


class AppointmentType(models.TextChoices):
    CONSULTATION = 'consultation', 'Consultation'
    FOLLOW_UP = 'follow_up', 'Follow-up'
    EMERGENCY = 'emergency', 'Emergency'


class TokenStatus(models.TextChoices):
    WAITING = 'Waiting', 'Waiting'
    CALLING = 'Calling', 'Calling'
    DONE = 'Done', 'Done'


class InvoicePaymentStatus(models.TextChoices):
    PENDING = 'Pending', 'Pending'
    PAID = 'Paid', 'Paid'


class PaymentStatus(models.TextChoices):
    INITIATED = 'INITIATED', 'Initiated'
    SUCCESS = 'SUCCESS', 'Success'
    FAILED = 'FAILED', 'Failed'


class PaymentModes(models.TextChoices):
    CASH = 'cash', 'Cash'
    CARD = 'card', 'Card'
    UPI = 'upi', 'UPI'
    INSURANCE = 'insurance', 'Insurance'
    ONLINE = 'online', 'Online'


class NotificationType(models.TextChoices):
    APPOINTMENT_APPROVED = 'appointment_approved', 'Appointment Approved'
    APPOINTMENT_REJECTED = 'appointment_rejected', 'Appointment Rejected'
    APPOINTMENT_BOOKED = 'appointment_booked', 'Appointment Booked'
    PAYMENT_RECEIVED = 'payment_received', 'Payment Received'
    DOCTOR_STATUS = 'doctor_status', 'Doctor Status Changed'


class Resources:
    """Names of the resources clients sync on (see apps.sync)"""
    DOCTORS = 'doctors'
    PATIENTS = 'patients'
    APPOINTMENTS = 'appointments'
    INVOICES = 'invoices'
    TOKENS = 'tokens'
    NOTIFICATIONS = 'notifications'
    SERVICE_PRICES = 'service_prices'

    ALL = (DOCTORS, PATIENTS, APPOINTMENTS, INVOICES, TOKENS, NOTIFICATIONS, SERVICE_PRICES)


class AuditActions:
    """Audit log action types"""
    CREATE = 'CREATE'
    UPDATE = 'UPDATE'
    APPROVE = 'APPROVE'
    REJECT = 'REJECT'
    CANCEL = 'CANCEL'
    COMPLETE = 'COMPLETE'
    CALL = 'CALL'
    PAYMENT = 'PAYMENT'
    IMPORT = 'IMPORT'

    CHOICES = [
        (CREATE, 'Create'),
        (UPDATE, 'Update'),
        (APPROVE, 'Approve'),
        (REJECT, 'Reject'),
        (CANCEL, 'Cancel'),
        (COMPLETE, 'Complete'),
        (CALL, 'Call'),
        (PAYMENT, 'Payment'),
        (IMPORT, 'Import'),
    ]
