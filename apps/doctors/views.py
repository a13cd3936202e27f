# apps/doctors/views.py
import logging

from django.db import transaction
from django.db.models import ProtectedError
from rest_framework import viewsets, permissions
from rest_framework.decorators import action
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework.response import Response

from apps.audit.services import log_action, request_ip, serialize_model
from apps.notifications.services import NotificationService
from apps.sync.services import broadcast
from core.constants import AuditActions, DoctorAvailability, Resources
from core.exceptions import ConflictError
from core.permissions import IsAdmin, IsAuthenticatedAndActive
from .filters import DoctorFilter
from .models import Department, Doctor
from .serializers import (
    DepartmentSerializer, DoctorSerializer, DoctorCreateSerializer,
    DoctorMinimalSerializer, DoctorStatusSerializer
)

logger = logging.getLogger(__name__)


class AdminWriteMixin:
    """Everybody signed in may read; only administrators write"""

    def get_permissions(self):
        if self.action in ['list', 'retrieve', 'public']:
            return [IsAuthenticatedAndActive()]
        return [IsAuthenticatedAndActive(), IsAdmin()]


class DepartmentViewSet(AdminWriteMixin, viewsets.ModelViewSet):
    queryset = Department.objects.all()
    serializer_class = DepartmentSerializer

    def perform_create(self, serializer):
        department = serializer.save()
        logger.info(f"Department created: {department.name}")

    def perform_destroy(self, instance):
        # Doctors keep their profile; the department link is cleared
        logger.info(f"Department deleted: {instance.name} ({instance.doctors.count()} doctors unassigned)")
        with transaction.atomic():
            instance.delete()
            broadcast(Resources.DOCTORS)


class DoctorViewSet(AdminWriteMixin, viewsets.ModelViewSet):
    """
    ViewSet for Doctor CRUD operations.

    Photos are uploaded as multipart form data on create/update.
    """
    queryset = Doctor.objects.select_related('user', 'department')
    serializer_class = DoctorSerializer
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filterset_class = DoctorFilter

    def get_serializer_class(self):
        if self.action == 'create':
            return DoctorCreateSerializer
        if self.action == 'public':
            return DoctorMinimalSerializer
        return DoctorSerializer

    def perform_create(self, serializer):
        with transaction.atomic():
            doctor = serializer.save(created_by=self.request.user)
            log_action(
                instance=doctor,
                action=AuditActions.CREATE,
                user=self.request.user,
                ip_address=request_ip(self.request),
            )
            broadcast(Resources.DOCTORS)
        logger.info(f"Doctor profile created: {doctor} by {self.request.user}")

    def perform_update(self, serializer):
        before = serialize_model(serializer.instance)
        with transaction.atomic():
            doctor = serializer.save()
            log_action(
                instance=doctor,
                action=AuditActions.UPDATE,
                user=self.request.user,
                before=before,
                ip_address=request_ip(self.request),
            )
            broadcast(Resources.DOCTORS)

    def perform_destroy(self, instance):
        user = instance.user
        try:
            with transaction.atomic():
                instance.delete()
                user.deactivate()
                broadcast(Resources.DOCTORS)
        except ProtectedError:
            raise ConflictError("Doctor has appointments; set status inactive instead")
        logger.info(f"Doctor profile removed, account {user.email} deactivated")

    @action(detail=False, methods=['get'])
    def public(self, request):
        """Active doctors, as shown on the booking form"""
        queryset = self.filter_queryset(self.get_queryset()).filter(status=DoctorAvailability.ACTIVE)
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['post'], url_path='status')
    def set_status(self, request, pk=None):
        """Mark a doctor active or inactive"""
        doctor = self.get_object()
        serializer = DoctorStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data['status']

        if doctor.status != new_status:
            before = serialize_model(doctor)
            with transaction.atomic():
                doctor.status = new_status
                doctor.save(update_fields=['status', 'updated_at'])
                log_action(
                    instance=doctor,
                    action=AuditActions.UPDATE,
                    user=request.user,
                    before=before,
                    ip_address=request_ip(request),
                    metadata={'field': 'status'},
                )
                NotificationService.doctor_status_changed(doctor)
                broadcast(Resources.DOCTORS, Resources.NOTIFICATIONS)
            logger.info(f"Doctor {doctor.pk} status set to {new_status} by {request.user}")

        return Response(DoctorSerializer(doctor, context={'request': request}).data)
