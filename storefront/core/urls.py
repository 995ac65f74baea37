from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    payment_settings, site_settings, admin_store_settings,
    audit_log_list, audit_log_detail,
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # Settings endpoints
    path('payment-settings/', payment_settings, name='payment-settings'),
    path('site-settings/', site_settings, name='site-settings'),
    path('admin/settings/', admin_store_settings, name='admin-settings'),

    # AuditLog endpoints
    path('admin/audit-logs/', audit_log_list, name='audit-log-list'),
    path('admin/audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),
]
