import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from apps.billing.services import create_invoice
from apps.doctors.models import Doctor
from apps.notifications.models import Notification
from apps.patients.models import Patient
from apps.queues.models import Token
from apps.sync.services import get_revisions
from core.constants import DoctorAvailability, NotificationType

pytestmark = pytest.mark.django_db


class TestDoctors:

    def test_admin_creates_doctor_with_account(self, admin_client, department):
        response = admin_client.post('/api/doctors/', {
            'full_name': 'Michael Chen',
            'account_email': 'chen@clinixa.test',
            'password': 'secret-pass-123',
            'specialization': 'Orthopedics',
            'department_id': department.pk,
            'consultation_fee': '600.00',
        }, format='json')

        assert response.status_code == 201
        doctor = Doctor.objects.get(user__email='chen@clinixa.test')
        assert doctor.name == 'Michael Chen'
        assert doctor.status == DoctorAvailability.ACTIVE
        assert get_revisions()['doctors'] == 1

    def test_receptionist_cannot_create_doctor(self, desk_client):
        response = desk_client.post('/api/doctors/', {'specialization': 'X'}, format='json')
        assert response.status_code == 403

    def test_set_status_broadcasts_and_notifies(self, admin_client, doctor):
        response = admin_client.post(f'/api/doctors/{doctor.pk}/status/', {'status': 'inactive'}, format='json')

        assert response.status_code == 200
        doctor.refresh_from_db()
        assert doctor.status == DoctorAvailability.INACTIVE
        assert Notification.objects.filter(notification_type=NotificationType.DOCTOR_STATUS).count() == 1
        assert get_revisions()['doctors'] == 1

    def test_public_lists_active_only(self, patient_client, doctor):
        doctor.status = DoctorAvailability.INACTIVE
        doctor.save()

        response = patient_client.get('/api/doctors/public/')

        assert response.status_code == 200
        assert response.data == []

    def test_deleting_department_unassigns_doctors(self, admin_client, doctor, department):
        response = admin_client.delete(f'/api/doctors/departments/{department.pk}/')

        assert response.status_code == 204
        doctor.refresh_from_db()
        assert doctor.department is None

    def test_doctor_with_appointments_cannot_be_deleted(self, admin_client, doctor, appointment):
        response = admin_client.delete(f'/api/doctors/{doctor.pk}/')

        assert response.status_code == 409
        assert response.data['success'] is False
        assert 'set status inactive' in response.data['message']
        doctor.refresh_from_db()
        assert doctor.user.is_active

    def test_doctor_without_appointments_is_deleted(self, admin_client, doctor):
        user = doctor.user

        response = admin_client.delete(f'/api/doctors/{doctor.pk}/')

        assert response.status_code == 204
        assert not Doctor.objects.filter(pk=doctor.pk).exists()
        user.refresh_from_db()
        assert not user.is_active

    def test_photo_must_be_an_image(self, admin_client, doctor):
        upload = SimpleUploadedFile('cv.pdf', b'%PDF-1.4', content_type='application/pdf')

        response = admin_client.patch(f'/api/doctors/{doctor.pk}/', {'photo': upload}, format='multipart')

        assert response.status_code == 400
        assert 'photo' in response.data['errors']

    def test_photo_size_limit(self, admin_client, doctor, settings):
        settings.DOCTOR_PHOTO_MAX_BYTES = 10
        upload = SimpleUploadedFile('me.png', b'x' * 11, content_type='image/png')

        response = admin_client.patch(f'/api/doctors/{doctor.pk}/', {'photo': upload}, format='multipart')

        assert response.status_code == 400


class TestPatients:

    def test_walk_in_registers_and_issues_token(self, desk_client, doctor):
        response = desk_client.post('/api/patients/walk-in/', {
            'name': 'David Lee',
            'phone': '9555000111',
            'gender': 'M',
            'doctor_id': doctor.pk,
        }, format='json')

        assert response.status_code == 201
        patient = Patient.objects.get(name='David Lee')
        assert patient.is_walk_in
        assert response.data['patient']['patient_code'] == patient.patient_code
        assert response.data['token']['token_number'] == 'TK-1001'
        assert Token.objects.get().department == doctor.department

    def test_walk_in_without_token(self, desk_client):
        response = desk_client.post('/api/patients/walk-in/', {
            'name': 'Emily Brown', 'issue_token': False,
        }, format='json')

        assert response.status_code == 201
        assert response.data['token'] is None
        assert not Token.objects.exists()

    def test_walk_in_requires_name(self, desk_client):
        response = desk_client.post('/api/patients/walk-in/', {'name': '  '}, format='json')
        assert response.status_code == 400

    def test_search_by_code_and_name(self, desk_client, patient, walk_in_patient):
        response = desk_client.get('/api/patients/search/', {'q': patient.patient_code})
        assert [row['id'] for row in response.data['results']] == [patient.pk]

        response = desk_client.get('/api/patients/search/', {'q': 'sarah'})
        assert [row['id'] for row in response.data['results']] == [walk_in_patient.pk]

    def test_patient_with_invoice_cannot_be_deleted(self, desk_client, patient, appointment):
        create_invoice(appointment.pk, patient.pk)

        response = desk_client.delete(f'/api/patients/{patient.pk}/')

        assert response.status_code == 409
        assert Patient.objects.filter(pk=patient.pk).exists()

    def test_walk_in_patient_is_deleted(self, desk_client, walk_in_patient):
        response = desk_client.delete(f'/api/patients/{walk_in_patient.pk}/')

        assert response.status_code == 204
        assert not Patient.objects.filter(pk=walk_in_patient.pk).exists()

    def test_patient_sees_own_record(self, patient_client, patient):
        response = patient_client.get('/api/patients/me/')

        assert response.status_code == 200
        assert response.data['name'] == 'Aryan Kumar'

    def test_patient_cannot_list_patients(self, patient_client, patient):
        assert patient_client.get('/api/patients/').status_code == 403


class TestNotifications:

    def test_read_and_read_all(self, patient_client, patient_user):
        first = Notification.objects.create(recipient=patient_user, notification_type=NotificationType.APPOINTMENT_APPROVED,
                                            title='a', message='a')
        Notification.objects.create(recipient=patient_user, notification_type=NotificationType.APPOINTMENT_REJECTED,
                                    title='b', message='b')

        response = patient_client.post(f'/api/notifications/{first.pk}/read/')
        assert response.status_code == 200
        assert response.data['data']['is_read'] is True

        response = patient_client.post('/api/notifications/read-all/')
        assert response.data['updated'] == 1
        assert patient_client.get('/api/notifications/unread-count/').data['count'] == 0

    def test_front_desk_broadcasts_hidden_from_patients(self, patient_client, receptionist):
        Notification.objects.create(notification_type=NotificationType.APPOINTMENT_BOOKED, title='x', message='x')

        assert patient_client.get('/api/notifications/').data['count'] == 0

        patient_client.force_authenticate(user=receptionist)
        assert patient_client.get('/api/notifications/').data['count'] == 1
