# apps/appointments/views.py
import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from apps.patients.models import Patient
from core.constants import UserRoles
from core.permissions import IsAuthenticatedAndActive, IsFrontDesk
from . import services
from .models import Appointment
from .serializers import (
    AppointmentSerializer, AppointmentCreateSerializer, AppointmentActionSerializer,
    RescheduleSerializer, AvailabilityQuerySerializer
)

logger = logging.getLogger(__name__)


class AppointmentViewSet(mixins.ListModelMixin,
                         mixins.RetrieveModelMixin,
                         mixins.CreateModelMixin,
                         viewsets.GenericViewSet):
    """
    Appointments and their approval workflow.

    Patients see and book their own appointments, doctors see theirs, the
    front desk sees everything and decides pending requests.
    """
    queryset = Appointment.objects.select_related('patient', 'doctor__user', 'doctor__department')
    serializer_class = AppointmentSerializer
    filterset_fields = ['status', 'doctor', 'patient', 'date', 'appointment_type']

    def get_permissions(self):
        if self.action in ['approve', 'reject']:
            return [IsAuthenticatedAndActive(), IsFrontDesk()]
        return [IsAuthenticatedAndActive()]

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if user.role == UserRoles.PATIENT:
            return queryset.filter(patient__user=user)
        if user.role == UserRoles.DOCTOR:
            return queryset.filter(doctor__user=user)
        return queryset

    def _own_patient(self):
        patient = Patient.objects.filter(user=self.request.user).first()
        if patient is None:
            raise ValidationError({'patient_id': 'No patient record for this account.'})
        return patient

    def create(self, request, *args, **kwargs):
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if request.user.role == UserRoles.PATIENT:
            patient = self._own_patient()
        elif request.user.is_front_desk:
            patient = data.get('patient')
            if patient is None:
                raise ValidationError({'patient_id': 'This field is required.'})
        else:
            raise PermissionDenied("Only patients and the front desk can book appointments.")

        appointment = services.book_appointment(
            patient=patient,
            doctor=data['doctor'],
            date=data['date'],
            time=data['time'],
            appointment_type=data['appointment_type'],
            reason=data['reason'],
            booked_by=request.user,
        )
        return Response(
            {'success': True, 'message': 'Appointment requested', 'data': AppointmentSerializer(appointment).data},
            status=status.HTTP_201_CREATED
        )

    def _action_data(self, request, serializer_class=AppointmentActionSerializer):
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def _respond(self, appointment, message):
        return Response({'success': True, 'message': message, 'data': AppointmentSerializer(appointment).data})

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        appointment = self.get_object()
        data = self._action_data(request)
        services.approve(appointment, user=request.user, expected_version=data.get('version'))
        return self._respond(appointment, 'Appointment approved')

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        appointment = self.get_object()
        data = self._action_data(request)
        services.reject(appointment, user=request.user, reason=data['reason'],
                        expected_version=data.get('version'))
        return self._respond(appointment, 'Appointment rejected')

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        appointment = self.get_object()
        if request.user.role == UserRoles.DOCTOR:
            raise PermissionDenied("Doctors cannot cancel appointments.")
        data = self._action_data(request)
        services.cancel(appointment, user=request.user, reason=data['reason'],
                        expected_version=data.get('version'))
        return self._respond(appointment, 'Appointment cancelled')

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        appointment = self.get_object()
        if request.user.role == UserRoles.PATIENT:
            raise PermissionDenied("Patients cannot complete appointments.")
        data = self._action_data(request)
        services.complete(appointment, user=request.user, expected_version=data.get('version'))
        return self._respond(appointment, 'Appointment completed')

    @action(detail=True, methods=['post'])
    def reschedule(self, request, pk=None):
        appointment = self.get_object()
        if request.user.role == UserRoles.DOCTOR:
            raise PermissionDenied("Doctors cannot reschedule appointments.")
        data = self._action_data(request, RescheduleSerializer)
        new_appointment = services.reschedule(
            appointment, data['date'], data['time'],
            user=request.user, expected_version=data.get('version')
        )
        return Response(
            {'success': True, 'message': 'Appointment rescheduled', 'data': AppointmentSerializer(new_appointment).data},
            status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=['get'])
    def availability(self, request):
        """Standard slots for a doctor on a date"""
        serializer = AvailabilityQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        doctor = serializer.validated_data['doctor']
        date = serializer.validated_data['date']

        return Response({
            'success': True,
            'doctor': doctor.pk,
            'date': date,
            'doctor_available': doctor.is_available,
            'slots': services.get_availability(doctor, date),
        })
