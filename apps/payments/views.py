# apps/payments/views.py
import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from core.constants import PaymentStatus, UserRoles
from core.permissions import IsAuthenticatedAndActive, IsFrontDesk
from . import services
from .models import Payment
from .serializers import PaymentSerializer, PaymentInitiateSerializer, PaymentConfirmSerializer

logger = logging.getLogger(__name__)


class PaymentViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    """Payments against invoices; patients may pay their own invoices online"""
    serializer_class = PaymentSerializer
    filterset_fields = ['invoice', 'status', 'method']

    def get_permissions(self):
        if self.action in ['initiate', 'confirm', 'list', 'retrieve']:
            return [IsAuthenticatedAndActive()]
        return [IsAuthenticatedAndActive(), IsFrontDesk()]

    def get_queryset(self):
        queryset = Payment.objects.select_related('invoice')
        user = self.request.user
        if user.role == UserRoles.PATIENT:
            return queryset.filter(invoice__patient__user=user)
        if not user.is_front_desk:
            return queryset.none()
        return queryset

    @action(detail=False, methods=['post'])
    def initiate(self, request):
        serializer = PaymentInitiateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invoice = serializer.validated_data['invoice']

        if request.user.role == UserRoles.PATIENT:
            if invoice.patient.user_id != request.user.pk:
                raise NotFound("Invoice not found")
        elif not request.user.is_front_desk:
            raise NotFound("Invoice not found")

        payment = services.initiate_payment(
            invoice,
            amount=serializer.validated_data.get('amount'),
            method=serializer.validated_data['method'],
            user=request.user,
        )
        return Response(
            {
                'success': True,
                'transactionId': payment.transaction_id,
                'data': PaymentSerializer(payment).data,
            },
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'])
    def confirm(self, request, pk=None):
        payment = self.get_object()
        serializer = PaymentConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment = services.confirm_payment(payment, serializer.validated_data, user=request.user)
        return Response({
            'success': payment.status == PaymentStatus.SUCCESS,
            'message': 'Payment confirmed' if payment.status == PaymentStatus.SUCCESS else 'Payment failed',
            'data': PaymentSerializer(payment).data,
        })
