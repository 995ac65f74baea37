from django.urls import path
from .views import (
    create_order, order_tracking, account_orders,
    admin_order_list, admin_order_detail, admin_order_status,
    admin_order_bulk_delete, admin_order_export,
)

urlpatterns = [
    # Storefront endpoints
    path('orders/', create_order, name='order-create'),
    path('tracking/', order_tracking, name='order-tracking'),
    path('account/orders/', account_orders, name='account-orders'),

    # Admin endpoints (fixed paths before <int:pk>)
    path('admin/orders/', admin_order_list, name='admin-order-list'),
    path('admin/orders/bulk-delete/', admin_order_bulk_delete, name='admin-order-bulk-delete'),
    path('admin/orders/export/', admin_order_export, name='admin-order-export'),
    path('admin/orders/<int:pk>/', admin_order_detail, name='admin-order-detail'),
    path('admin/orders/<int:pk>/status/', admin_order_status, name='admin-order-status'),
]
