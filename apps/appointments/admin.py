from django.contrib import admin

from .models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['id', 'patient', 'doctor', 'date', 'time', 'status', 'appointment_type']
    list_filter = ['status', 'appointment_type', 'date']
    search_fields = ['patient__name', 'doctor__user__full_name']
    readonly_fields = ['version', 'decided_by', 'decided_at']
    raw_id_fields = ['patient', 'doctor', 'rescheduled_from']
