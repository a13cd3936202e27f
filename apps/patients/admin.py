from django.contrib import admin

from .models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'phone', 'gender', 'registered_by', 'created_at']
    list_filter = ['gender', 'blood_group']
    search_fields = ['name', 'phone', 'email']
    raw_id_fields = ['user', 'registered_by']
