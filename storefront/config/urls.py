"""
URL configuration for the storefront project.

Every app contributes its endpoints under the shared `api/` prefix; admin
console endpoints live under `api/admin/` inside each app's urls module.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Storefront Admin Panel"
admin.site.site_title = "Storefront Admin Portal"
admin.site.index_title = "Welcome to the Storefront Admin Portal"

urlpatterns = [
    path('django-admin/', admin.site.urls),
    path('api/', include('storefront.core.urls')),
    path('api/', include('storefront.catalog.urls')),
    path('api/', include('storefront.inventory.urls')),
    path('api/', include('storefront.pricing.urls')),
    path('api/', include('storefront.orders.urls')),
    path('api/', include('storefront.accounts.urls')),
    path('api/', include('storefront.reports.urls')),
]
