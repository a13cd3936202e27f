import pytest

from apps.accounts.models import User
from apps.patients.models import Patient
from core.constants import UserRoles, UserStatus

pytestmark = pytest.mark.django_db


def login(client, email, password='secret-pass-123'):
    return client.post('/api/accounts/token/', {'email': email, 'password': password}, format='json')


def test_register_creates_patient_account(api_client):
    response = api_client.post('/api/accounts/register/', {
        'full_name': 'Lisa Thompson',
        'email': 'lisa@clinixa.test',
        'phone': '9000000001',
        'password': 'Str0ng-pass-99',
        'confirm_password': 'Str0ng-pass-99',
    }, format='json')

    assert response.status_code == 201
    user = User.objects.get(email='lisa@clinixa.test')
    assert user.role == UserRoles.PATIENT
    assert Patient.objects.get(user=user).name == 'Lisa Thompson'


def test_register_rejects_duplicate_email(api_client, patient_user):
    response = api_client.post('/api/accounts/register/', {
        'full_name': 'Someone',
        'email': patient_user.email,
        'password': 'Str0ng-pass-99',
        'confirm_password': 'Str0ng-pass-99',
    }, format='json')

    assert response.status_code == 400
    assert 'email' in response.data['errors']


def test_login_returns_role(api_client, receptionist):
    response = login(api_client, receptionist.email)

    assert response.status_code == 200
    assert response.data['user']['role'] == UserRoles.RECEPTIONIST
    assert 'access' in response.data


def test_wrong_password_is_401(api_client, receptionist):
    assert login(api_client, receptionist.email, 'nope').status_code == 401


def test_inactive_user_cannot_log_in(api_client, receptionist):
    receptionist.deactivate()
    assert login(api_client, receptionist.email).status_code == 401


def test_token_of_deactivated_user_is_rejected(api_client, receptionist):
    access = login(api_client, receptionist.email).data['access']
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
    assert api_client.get('/api/accounts/users/me/').status_code == 200

    User.objects.filter(pk=receptionist.pk).update(status=UserStatus.INACTIVE)
    assert api_client.get('/api/accounts/users/me/').status_code == 401


def test_garbage_token_is_401(api_client):
    api_client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
    assert api_client.get('/api/accounts/users/me/').status_code == 401


def test_only_admin_creates_staff(desk_client, admin_user):
    payload = {
        'email': 'lab@clinixa.test', 'full_name': 'Lab Tech',
        'role': UserRoles.LAB_TECH, 'password': 'secret-pass-123',
    }
    assert desk_client.post('/api/accounts/users/', payload, format='json').status_code == 403

    desk_client.force_authenticate(user=admin_user)
    assert desk_client.post('/api/accounts/users/', payload, format='json').status_code == 201


def test_change_password(desk_client, receptionist):
    response = desk_client.post('/api/accounts/users/change_password/', {
        'old_password': 'secret-pass-123',
        'new_password': 'another-pass-456',
        'confirm_password': 'another-pass-456',
    }, format='json')

    assert response.status_code == 200
    receptionist.refresh_from_db()
    assert receptionist.check_password('another-pass-456')
