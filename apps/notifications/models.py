# apps/notifications/models.py
from django.db import models

from core.constants import NotificationType


class Notification(models.Model):
    """
    In-app notification.

    ``recipient`` is empty for notifications addressed to the whole front desk.
    """
    recipient = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications'
    )
    notification_type = models.CharField(max_length=30, choices=NotificationType.choices)
    title = models.CharField(max_length=200)
    message = models.TextField()

    # Where the client should navigate, e.g. /appointments/12
    action_path = models.CharField(max_length=200, blank=True)
    related_id = models.PositiveIntegerField(null=True, blank=True)

    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', 'is_read']),
        ]

    def __str__(self):
        return f"{self.get_notification_type_display()}: {self.title}"
