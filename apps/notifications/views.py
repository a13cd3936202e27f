# apps/notifications/views.py
import logging

from django.db import transaction
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.sync.services import broadcast
from core.constants import Resources
from .serializers import NotificationSerializer
from .services import NotificationService

logger = logging.getLogger(__name__)


class NotificationViewSet(mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          viewsets.GenericViewSet):
    serializer_class = NotificationSerializer
    filterset_fields = ['is_read', 'notification_type']

    def get_queryset(self):
        return NotificationService.visible_to(self.request.user)

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        notification = self.get_object()
        if not notification.is_read:
            with transaction.atomic():
                notification.is_read = True
                notification.save(update_fields=['is_read'])
                broadcast(Resources.NOTIFICATIONS)
        return Response({'success': True, 'data': NotificationSerializer(notification).data})

    @action(detail=False, methods=['post'], url_path='read-all')
    def read_all(self, request):
        with transaction.atomic():
            updated = self.get_queryset().filter(is_read=False).update(is_read=True)
            if updated:
                broadcast(Resources.NOTIFICATIONS)
        logger.info(f"{updated} notifications marked read by {request.user}")
        return Response({'success': True, 'updated': updated})

    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):
        count = self.get_queryset().filter(is_read=False).count()
        return Response({'success': True, 'count': count})
