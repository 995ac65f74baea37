from django.urls import path
from .views import (
    profile, address_list_create, address_detail, wishlist,
    admin_customer_list, admin_customer_detail, admin_customer_export,
)

urlpatterns = [
    # Customer account endpoints
    path('account/profile/', profile, name='account-profile'),
    path('account/addresses/', address_list_create, name='address-list-create'),
    path('account/addresses/<int:pk>/', address_detail, name='address-detail'),
    path('wishlist/', wishlist, name='wishlist'),

    # Admin customer endpoints
    path('admin/customers/', admin_customer_list, name='admin-customer-list'),
    path('admin/customers/export/', admin_customer_export, name='admin-customer-export'),
    path('admin/customers/<int:pk>/', admin_customer_detail, name='admin-customer-detail'),
]
