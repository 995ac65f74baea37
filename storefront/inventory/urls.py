from django.urls import path
from .views import admin_inventory, stock_adjustment_list

urlpatterns = [
    path('admin/inventory/', admin_inventory, name='admin-inventory'),
    path('admin/inventory/adjustments/', stock_adjustment_list, name='stock-adjustment-list'),
]
