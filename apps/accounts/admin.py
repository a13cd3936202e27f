from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """User admin with role/status display"""

    list_display = ('email', 'full_name', 'phone', 'role', 'status', 'is_staff', 'created_at')
    list_filter = ('role', 'status', 'is_staff', 'is_superuser')
    search_fields = ('email', 'full_name', 'phone')
    ordering = ('-created_at',)

    fieldsets = (
        (None, {'fields': ('email',)}),
        (_('Personal Info'), {'fields': ('full_name', 'phone')}),
        (_('Access'), {'fields': ('role', 'status', 'is_staff', 'is_superuser')}),
        (_('Important dates'), {
            'fields': ('last_login', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ('last_login', 'created_at', 'updated_at')
