from django.contrib import admin

from .models import Invoice, InvoiceItem, ServicePrice


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'patient', 'issued_date', 'total', 'payment_status']
    list_filter = ['payment_status', 'payment_mode', 'issued_date']
    search_fields = ['invoice_number', 'patient__name']
    readonly_fields = ['amount', 'discount_amount', 'tax_amount', 'total']
    raw_id_fields = ['appointment', 'patient']
    inlines = [InvoiceItemInline]


@admin.register(ServicePrice)
class ServicePriceAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'price', 'is_active']
    list_filter = ['is_active']
    search_fields = ['code', 'name']
