from django.contrib import admin

from .models import Department, Doctor


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ['user', 'specialization', 'department', 'consultation_fee', 'status']
    list_filter = ['status', 'department']
    search_fields = ['user__full_name', 'user__email', 'specialization']
    raw_id_fields = ['user', 'created_by']
