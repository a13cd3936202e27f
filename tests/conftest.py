# tests/conftest.py
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from apps.accounts.models import User
from apps.appointments.models import Appointment
from apps.doctors.models import Department, Doctor
from apps.patients.models import Patient
from core.constants import UserRoles


def make_user(email, role, full_name='Test User'):
    return User.objects.create_user(
        email=email,
        password='secret-pass-123',
        full_name=full_name,
        role=role,
    )


class FakeTimer:
    """Stands in for threading.Timer; tests fire it by calling ``function``"""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_user(db):
    return make_user('admin@clinixa.test', UserRoles.ADMIN, 'Admin User')


@pytest.fixture
def receptionist(db):
    return make_user('desk@clinixa.test', UserRoles.RECEPTIONIST, 'Front Desk')


@pytest.fixture
def patient_user(db):
    return make_user('aryan@clinixa.test', UserRoles.PATIENT, 'Aryan Kumar')


@pytest.fixture
def department(db):
    return Department.objects.create(name='Cardiology')


@pytest.fixture
def doctor(db, department):
    user = make_user('chandan@clinixa.test', UserRoles.DOCTOR, 'Chandan Shashank')
    return Doctor.objects.create(
        user=user,
        department=department,
        specialization='Cardiology',
        consultation_fee=Decimal('500.00'),
    )


@pytest.fixture
def patient(db, patient_user):
    return Patient.objects.create(
        user=patient_user,
        name='Aryan Kumar',
        phone='9876543210',
        email=patient_user.email,
    )


@pytest.fixture
def walk_in_patient(db, receptionist):
    return Patient.objects.create(name='Sarah Smith', phone='9123456780', registered_by=receptionist)


@pytest.fixture
def tomorrow():
    return timezone.localdate() + timedelta(days=1)


@pytest.fixture
def appointment(db, patient, doctor, tomorrow):
    return Appointment.objects.create(patient=patient, doctor=doctor, date=tomorrow, time='10:00 AM')


@pytest.fixture
def desk_client(api_client, receptionist):
    api_client.force_authenticate(user=receptionist)
    return api_client


@pytest.fixture
def patient_client(api_client, patient_user):
    api_client.force_authenticate(user=patient_user)
    return api_client


@pytest.fixture
def admin_client(api_client, admin_user):
    api_client.force_authenticate(user=admin_user)
    return api_client
