# apps/patients/views.py
import logging

from django.db import transaction
from django.db.models import ProtectedError, Q
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from apps.audit.services import log_action, request_ip
from apps.doctors.models import Department, Doctor
from apps.queues.serializers import TokenSerializer
from apps.queues.services import generate_token
from apps.sync.services import broadcast
from core.constants import AuditActions, Resources, UserRoles
from core.exceptions import ConflictError
from core.permissions import IsAuthenticatedAndActive, IsFrontDesk, IsPatient, IsStaff
from core.utils.utils import parse_prefixed_id
from .models import Patient
from .serializers import (
    PatientSerializer, PatientListSerializer, WalkInSerializer, PatientSearchSerializer
)

logger = logging.getLogger(__name__)


class PatientViewSet(viewsets.ModelViewSet):
    """
    ViewSet for managing patients.
    """
    queryset = Patient.objects.all()
    serializer_class = PatientSerializer
    filterset_fields = ['gender', 'blood_group']

    def get_queryset(self):
        queryset = super().get_queryset()
        # Patients can only see their own record
        if self.request.user.role == UserRoles.PATIENT:
            return queryset.filter(user=self.request.user)
        return queryset

    def get_serializer_class(self):
        if self.action in ['list', 'search']:
            return PatientListSerializer
        if self.action == 'walk_in':
            return WalkInSerializer
        return super().get_serializer_class()

    def get_permissions(self):
        if self.action == 'me':
            return [IsAuthenticatedAndActive(), IsPatient()]
        if self.action in ['list', 'retrieve', 'search']:
            return [IsAuthenticatedAndActive(), IsStaff()]
        return [IsAuthenticatedAndActive(), IsFrontDesk()]

    def perform_create(self, serializer):
        with transaction.atomic():
            patient = serializer.save(registered_by=self.request.user)
            log_action(
                instance=patient,
                action=AuditActions.CREATE,
                user=self.request.user,
                ip_address=request_ip(self.request),
            )
            broadcast(Resources.PATIENTS)
        logger.info(f"Patient {patient.patient_code} registered by {self.request.user}")

    def perform_update(self, serializer):
        with transaction.atomic():
            serializer.save()
            broadcast(Resources.PATIENTS)

    def perform_destroy(self, instance):
        try:
            with transaction.atomic():
                instance.delete()
                broadcast(Resources.PATIENTS)
        except ProtectedError:
            raise ConflictError("Patient has invoices and cannot be deleted")

    @action(detail=False, methods=['get', 'patch'])
    def me(self, request):
        """The signed-in patient's own record"""
        patient = Patient.objects.filter(user=request.user).first()
        if patient is None:
            raise NotFound("No patient record for this account")

        if request.method == 'GET':
            return Response(PatientSerializer(patient).data)

        serializer = PatientSerializer(patient, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            serializer.save()
            broadcast(Resources.PATIENTS)
        return Response(serializer.data)

    @action(detail=False, methods=['post'], url_path='walk-in')
    def walk_in(self, request):
        """
        Register a walk-in patient and, unless told otherwise, hand out a queue token.
        """
        serializer = WalkInSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        doctor_id = data.pop('doctor_id', None)
        department_id = data.pop('department_id', None)
        issue_token = data.pop('issue_token', True)

        doctor = Doctor.objects.filter(pk=doctor_id).first() if doctor_id else None
        if doctor_id and doctor is None:
            raise NotFound("Doctor not found")
        department = Department.objects.filter(pk=department_id).first() if department_id else None
        if department_id and department is None:
            raise NotFound("Department not found")

        with transaction.atomic():
            patient = Patient.objects.create(registered_by=request.user, **data)
            log_action(
                instance=patient,
                action=AuditActions.CREATE,
                user=request.user,
                ip_address=request_ip(request),
                metadata={'walk_in': True},
            )
            broadcast(Resources.PATIENTS)

        token = None
        if issue_token:
            token = generate_token(
                patient=patient,
                doctor=doctor,
                department=department or (doctor.department if doctor else None),
                generated_by=request.user,
            )

        logger.info(
            f"Walk-in patient {patient.patient_code} registered by {request.user}"
            + (f", token {token.token_number}" if token else "")
        )
        return Response(
            {
                'success': True,
                'patient': PatientSerializer(patient).data,
                'token': TokenSerializer(token).data if token else None,
            },
            status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=['get'])
    def search(self, request):
        """Search by name, phone, email or patient code"""
        serializer = PatientSearchSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        term = serializer.validated_data['q'].strip()

        query = Q(name__icontains=term) | Q(phone__icontains=term) | Q(email__icontains=term)
        patient_id = parse_prefixed_id(term, 'PID-')
        if patient_id:
            query |= Q(pk=patient_id)

        queryset = self.get_queryset().filter(query)
        if serializer.validated_data.get('gender'):
            queryset = queryset.filter(gender=serializer.validated_data['gender'])

        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(PatientListSerializer(page, many=True).data)
        return Response(PatientListSerializer(queryset, many=True).data)
