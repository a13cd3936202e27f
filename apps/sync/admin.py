from django.contrib import admin

from .models import ResourceRevision


@admin.register(ResourceRevision)
class ResourceRevisionAdmin(admin.ModelAdmin):
    list_display = ['resource', 'revision', 'updated_at']
    readonly_fields = ['resource', 'revision', 'updated_at']
