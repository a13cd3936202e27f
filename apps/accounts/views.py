# apps/accounts/views.py
import logging

from rest_framework import status, viewsets, permissions, mixins
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView

from core.permissions import IsAdmin, IsAuthenticatedAndActive
from .models import User
from .serializers import (
    UserSerializer, StaffUserCreateSerializer, RegisterSerializer,
    RoleTokenObtainPairSerializer, ChangePasswordSerializer
)

logger = logging.getLogger(__name__)


class LoginView(TokenObtainPairView):
    serializer_class = RoleTokenObtainPairSerializer


class RegisterView(APIView):
    """Patient self-registration"""
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Patient account registered: {user.email}")
        return Response(
            {'success': True, 'user': UserSerializer(user).data},
            status=status.HTTP_201_CREATED
        )


class UserViewSet(mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  mixins.CreateModelMixin,
                  viewsets.GenericViewSet):
    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticatedAndActive, IsAdmin]
    filterset_fields = ['role', 'status']

    def get_serializer_class(self):
        if self.action == 'create':
            return StaffUserCreateSerializer
        return super().get_serializer_class()

    def get_permissions(self):
        if self.action in ['me', 'change_password']:
            return [IsAuthenticatedAndActive()]
        return super().get_permissions()

    def perform_create(self, serializer):
        user = serializer.save()
        logger.info(f"Staff user created: {user.email} ({user.role}) by {self.request.user}")

    @action(detail=False, methods=['get', 'patch'])
    def me(self, request):
        """Get or update current user profile"""
        if request.method == 'GET':
            return Response(UserSerializer(request.user).data)

        serializer = UserSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    @action(detail=False, methods=['post'])
    def change_password(self, request):
        """Change password for current user"""
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        if not user.check_password(serializer.validated_data['old_password']):
            return Response(
                {'success': False, 'message': 'Wrong password.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        user.set_password(serializer.validated_data['new_password'])
        user.save(update_fields=['password'])
        logger.info(f"Password changed for {user.email}")
        return Response({'success': True, 'message': 'Password updated'})

    @action(detail=True, methods=['post'])
    def deactivate(self, request, pk=None):
        user = self.get_object()
        user.deactivate()
        logger.info(f"User {user.email} deactivated by {request.user}")
        return Response(UserSerializer(user).data)
