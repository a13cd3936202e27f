# apps/billing/views.py
import logging

from django.db import transaction
from rest_framework import generics, status, viewsets
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.sync.services import broadcast
from core.constants import Resources, UserRoles
from core.permissions import IsAdmin, IsAuthenticatedAndActive, IsFrontDesk, IsStaff
from . import services
from .calculations import compute_invoice_totals
from .models import Invoice, ServicePrice
from .serializers import (
    InvoiceSerializer, InvoiceListSerializer, InvoiceCreateSerializer,
    ChargesSerializer, CalculateSerializer, InvoiceTotalsSerializer,
    ServicePriceSerializer
)

logger = logging.getLogger(__name__)


class InvoiceListView(generics.ListAPIView):
    """Invoices, newest first; patients only see their own"""
    serializer_class = InvoiceListSerializer
    filterset_fields = ['payment_status', 'patient']

    def get_queryset(self):
        queryset = Invoice.objects.select_related('patient')
        if self.request.user.role == UserRoles.PATIENT:
            return queryset.filter(patient__user=self.request.user)
        return queryset


class InvoiceCreateView(APIView):
    permission_classes = [IsAuthenticatedAndActive, IsFrontDesk]

    def post(self, request):
        serializer = InvoiceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        invoice_id = services.create_invoice(
            serializer.validated_data['appointment_id'],
            serializer.validated_data['patient_id'],
            user=request.user,
        )
        return Response(
            {'success': True, 'message': 'Invoice created successfully', 'invoiceId': invoice_id},
            status=status.HTTP_201_CREATED
        )


class InvoiceDetailView(APIView):
    def get(self, request, invoice_id):
        invoice = services.get_invoice_by_id(invoice_id)
        if request.user.role == UserRoles.PATIENT and invoice.patient.user_id != request.user.pk:
            # Other patients' invoices are reported as missing
            raise NotFound("Invoice not found")
        return Response({'success': True, 'data': InvoiceSerializer(invoice).data})


class InvoiceSearchView(APIView):
    permission_classes = [IsAuthenticatedAndActive, IsStaff]

    def get(self, request):
        invoices = services.search_invoices(request.query_params.get('term'))
        return Response({
            'success': True,
            'count': len(invoices),
            'data': InvoiceListSerializer(invoices, many=True).data,
        })


class InvoiceChargesView(APIView):
    permission_classes = [IsAuthenticatedAndActive, IsFrontDesk]

    def post(self, request, invoice_id):
        invoice = services.get_invoice_by_id(invoice_id)
        serializer = ChargesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.apply_charges(invoice, user=request.user, **serializer.validated_data)
        invoice = services.get_invoice_by_id(invoice.pk)
        return Response({'success': True, 'data': InvoiceSerializer(invoice).data})


class InvoiceCalculateView(APIView):
    """Preview totals without saving anything"""
    permission_classes = [IsAuthenticatedAndActive, IsStaff]

    def post(self, request):
        serializer = CalculateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        items = data.pop('items', [])

        try:
            totals = compute_invoice_totals(items, **data)
        except ValueError as exc:
            raise ValidationError(str(exc))
        return Response({'success': True, 'data': InvoiceTotalsSerializer(totals).data})


class BillingSummaryView(APIView):
    permission_classes = [IsAuthenticatedAndActive, IsFrontDesk]

    def get(self, request):
        return Response({'success': True, 'data': services.billing_summary()})


class ServicePriceViewSet(viewsets.ModelViewSet):
    queryset = ServicePrice.objects.all()
    serializer_class = ServicePriceSerializer
    filterset_fields = ['is_active']

    def get_permissions(self):
        if self.action in ['list', 'retrieve']:
            return [IsAuthenticatedAndActive(), IsStaff()]
        return [IsAuthenticatedAndActive(), IsAdmin()]

    def perform_create(self, serializer):
        with transaction.atomic():
            price = serializer.save()
            broadcast(Resources.SERVICE_PRICES)
        logger.info(f"Service price {price.code} added by {self.request.user}")

    def perform_update(self, serializer):
        with transaction.atomic():
            serializer.save()
            broadcast(Resources.SERVICE_PRICES)

    def perform_destroy(self, instance):
        # Keep rows referenced by invoices; just retire them
        with transaction.atomic():
            instance.is_active = False
            instance.save(update_fields=['is_active', 'updated_at'])
            broadcast(Resources.SERVICE_PRICES)
