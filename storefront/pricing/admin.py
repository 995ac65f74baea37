from django.contrib import admin
from .models import Coupon


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ['code', 'type', 'value', 'used_count', 'usage_limit', 'is_active', 'start_date', 'end_date']
    list_filter = ['type', 'is_active']
    search_fields = ['code']
    ordering = ['-created_at']
    readonly_fields = ['used_count', 'created_at', 'updated_at']
