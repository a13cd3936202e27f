# apps/sync/views.py
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.appointments.models import Appointment
from apps.appointments.serializers import AppointmentSerializer
from apps.billing.models import ServicePrice
from apps.billing.serializers import ServicePriceSerializer
from apps.doctors.models import Doctor
from apps.doctors.serializers import DoctorSerializer
from apps.queues.models import Token
from apps.queues.serializers import TokenSerializer
from core.constants import Resources, UserRoles
from core.permissions import IsAuthenticatedAndActive, IsStaff
from core.utils.records import dumps_records
from .importers import LEGACY_KEYS
from .services import changed_since, get_revisions

LEGACY_KEY_FOR = {resource: key for key, resource in LEGACY_KEYS.items() if resource}


class RevisionsView(APIView):
    """
    Current revision of every resource.

    Clients may pass the revisions they hold (``?tokens=4&appointments=9``)
    and get back the names that moved.
    """

    def get(self, request):
        known = {}
        for resource in Resources.ALL:
            value = request.query_params.get(resource)
            if value is None:
                continue
            try:
                known[resource] = int(value)
            except ValueError:
                raise ValidationError({resource: 'Revision must be an integer.'})

        revisions = get_revisions()
        body = {'success': True, 'revisions': revisions}
        if known:
            body['changed'] = changed_since(known)
        return Response(body)


def _appointments(request):
    queryset = Appointment.objects.select_related('patient', 'doctor__user', 'doctor__department')
    if request.user.role == UserRoles.PATIENT:
        return queryset.filter(patient__user=request.user)
    if request.user.role == UserRoles.DOCTOR:
        return queryset.filter(doctor__user=request.user)
    return queryset


SNAPSHOTS = {
    Resources.TOKENS: (
        lambda request: Token.objects.select_related('patient', 'doctor__user', 'department')
        .filter(queue_date=timezone.localdate()),
        TokenSerializer,
    ),
    Resources.APPOINTMENTS: (_appointments, AppointmentSerializer),
    Resources.DOCTORS: (lambda request: Doctor.objects.select_related('user', 'department'), DoctorSerializer),
    Resources.SERVICE_PRICES: (lambda request: ServicePrice.objects.filter(is_active=True), ServicePriceSerializer),
}

STAFF_ONLY = {Resources.TOKENS}


class SnapshotView(APIView):
    """
    Whole-resource snapshot with the revision it corresponds to.

    ``?legacy=1`` additionally returns the records serialized under the old
    local-storage key, for clients that still keep an offline copy.
    """
    permission_classes = [IsAuthenticatedAndActive]

    def get(self, request, resource):
        if resource not in SNAPSHOTS:
            raise NotFound(f"No snapshot for '{resource}'")
        if resource in STAFF_ONLY and not IsStaff().has_permission(request, self):
            raise NotFound(f"No snapshot for '{resource}'")

        # Read the revision first: a concurrent write can only make the data newer
        revision = get_revisions()[resource]
        build_queryset, serializer_class = SNAPSHOTS[resource]
        records = serializer_class(build_queryset(request), many=True, context={'request': request}).data

        body = {
            'success': True,
            'resource': resource,
            'revision': revision,
            'count': len(records),
            'records': records,
        }
        if request.query_params.get('legacy') in ('1', 'true'):
            body['legacy'] = {LEGACY_KEY_FOR[resource]: dumps_records(records)}
        return Response(body)
