import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .models import StoreSettings, AuditLog
from .serializers import (
    UserSerializer, UserCreateSerializer,
    StoreSettingsSerializer, PaymentSettingsSerializer, SiteContentSerializer, AuditLogSerializer
)
from .utils import create_audit_log

User = get_user_model()

logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = 'ADMIN' if user.is_staff else 'USER'
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Customer registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        logger.info(f"Registered customer account {user.username}")
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get the current user with the role the frontend uses for routing"""
    user = request.user
    user_data = UserSerializer(user).data
    user_data['role'] = 'ADMIN' if user.is_staff else 'USER'
    user_data['is_admin'] = user.is_staff or user.is_superuser
    return Response(user_data)


@api_view(['GET'])
@permission_classes([AllowAny])
def payment_settings(request):
    """Payment methods, bank details and shipping rules shown at checkout"""
    store_settings = StoreSettings.load()
    serializer = PaymentSettingsSerializer(store_settings)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([AllowAny])
def site_settings(request):
    """Homepage hero, promo banner, badges and footer content for the storefront"""
    serializer = SiteContentSerializer(StoreSettings.load())
    return Response(serializer.data)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_store_settings(request):
    """Retrieve or update the shop settings"""
    store_settings = StoreSettings.load()

    if request.method == 'GET':
        serializer = StoreSettingsSerializer(store_settings)
        return Response(serializer.data)

    # Only fields present in the request are written, for PUT as well
    serializer = StoreSettingsSerializer(store_settings, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        create_audit_log(
            request=request,
            action='settings_update',
            model_name='StoreSettings',
            object_id=store_settings.pk,
            object_name='Store settings',
            changes={key: str(value) for key, value in serializer.validated_data.items()}
        )
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_list(request):
    """List audit logs, optionally filtered by action, model or reference"""
    logs = AuditLog.objects.select_related('user').all()
    action = request.query_params.get('action')
    model_name = request.query_params.get('model_name')
    reference = request.query_params.get('reference')

    if action:
        logs = logs.filter(action=action)
    if model_name:
        logs = logs.filter(model_name=model_name)
    if reference:
        logs = logs.filter(object_reference=reference)

    try:
        limit = min(max(int(request.query_params.get('limit', 100)), 1), 500)
    except (TypeError, ValueError):
        limit = 100
    serializer = AuditLogSerializer(logs[:limit], many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    log = get_object_or_404(AuditLog, pk=pk)
    serializer = AuditLogSerializer(log)
    return Response(serializer.data)
