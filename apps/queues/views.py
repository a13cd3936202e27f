# apps/queues/views.py
import logging

from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from core.permissions import IsAuthenticatedAndActive, IsFrontDesk, IsStaff
from . import services
from .models import Token
from .serializers import (
    TokenSerializer, TokenCreateSerializer, TokenTransitionSerializer, QueueStatsSerializer
)

logger = logging.getLogger(__name__)


def _queue_date(request):
    raw = request.query_params.get('date') or request.data.get('date')
    if not raw:
        return timezone.localdate()
    parsed = parse_date(str(raw))
    if parsed is None:
        raise ValidationError({'date': 'Use YYYY-MM-DD.'})
    return parsed


class TokenViewSet(mixins.ListModelMixin,
                   mixins.RetrieveModelMixin,
                   mixins.CreateModelMixin,
                   viewsets.GenericViewSet):
    """
    Walk-in queue tokens.

    Listing defaults to today's queue; pass ``?date=YYYY-MM-DD`` for another day.
    """
    queryset = Token.objects.select_related('patient', 'doctor__user', 'department')
    serializer_class = TokenSerializer
    filterset_fields = ['status', 'doctor', 'department']

    def get_permissions(self):
        if self.action == 'create':
            return [IsAuthenticatedAndActive(), IsFrontDesk()]
        return [IsAuthenticatedAndActive(), IsStaff()]

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'list':
            queryset = queryset.filter(queue_date=_queue_date(self.request))
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = TokenCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        doctor = data.get('doctor')
        token = services.generate_token(
            patient=data['patient'],
            doctor=doctor,
            department=data.get('department') or (doctor.department if doctor else None),
            generated_by=request.user,
        )
        return Response(
            {'success': True, 'message': f'Token {token.token_number} generated', 'data': TokenSerializer(token).data},
            status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=['post'], url_path='call-next')
    def call_next(self, request):
        token = services.call_next(_queue_date(request), user=request.user)
        if token is None:
            return Response({'success': True, 'message': 'No patients waiting', 'data': None})
        return Response({
            'success': True,
            'message': f'Now calling {token.token_number}',
            'data': TokenSerializer(token).data,
        })

    @action(detail=True, methods=['post'])
    def call(self, request, pk=None):
        token = self.get_object()
        serializer = TokenTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.call_token(token, user=request.user, expected_version=serializer.validated_data.get('version'))
        return Response({'success': True, 'data': TokenSerializer(token).data})

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        token = self.get_object()
        serializer = TokenTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.complete_token(token, user=request.user, expected_version=serializer.validated_data.get('version'))
        return Response({'success': True, 'data': TokenSerializer(token).data})

    @action(detail=False, methods=['get'])
    def stats(self, request):
        stats = services.queue_stats(_queue_date(request))
        return Response({'success': True, 'data': QueueStatsSerializer(stats).data})
