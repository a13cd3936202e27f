# apps/billing/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    InvoiceListView, InvoiceCreateView, InvoiceDetailView, InvoiceSearchView,
    InvoiceChargesView, InvoiceCalculateView, BillingSummaryView, ServicePriceViewSet
)

router = DefaultRouter()
router.register(r'service-prices', ServicePriceViewSet, basename='service-price')

urlpatterns = [
    path('', InvoiceListView.as_view(), name='invoice-list'),
    path('create', InvoiceCreateView.as_view(), name='invoice-create'),
    path('search/query', InvoiceSearchView.as_view(), name='invoice-search'),
    path('calculate', InvoiceCalculateView.as_view(), name='invoice-calculate'),
    path('summary', BillingSummaryView.as_view(), name='billing-summary'),
    path('', include(router.urls)),
    path('<str:invoice_id>/charges', InvoiceChargesView.as_view(), name='invoice-charges'),
    path('<str:invoice_id>', InvoiceDetailView.as_view(), name='invoice-detail'),
]
