from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['transaction_id', 'invoice', 'amount', 'method', 'status', 'created_at']
    list_filter = ['status', 'method', 'provider']
    search_fields = ['transaction_id', 'invoice__invoice_number']
    readonly_fields = ['transaction_id', 'provider', 'confirmed_at']
