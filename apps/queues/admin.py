from django.contrib import admin

from .models import Token


@admin.register(Token)
class TokenAdmin(admin.ModelAdmin):
    list_display = ['token_number', 'queue_date', 'patient', 'doctor', 'status', 'created_at', 'called_at']
    list_filter = ['status', 'queue_date']
    search_fields = ['token_number', 'patient__name']
    readonly_fields = ['version']
    raw_id_fields = ['patient', 'doctor', 'generated_by']
