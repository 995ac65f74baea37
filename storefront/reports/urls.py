from django.urls import path
from .views import analytics_dashboard

urlpatterns = [
    path('admin/analytics/', analytics_dashboard, name='admin-analytics'),
]
