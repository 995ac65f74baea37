from django.contrib import admin
from .models import StockAdjustment


@admin.register(StockAdjustment)
class StockAdjustmentAdmin(admin.ModelAdmin):
    list_display = ['variant', 'previous_stock', 'new_stock', 'reason', 'user', 'created_at']
    list_filter = ['reason', 'created_at']
    search_fields = ['variant__sku', 'variant__product__name', 'notes']
    ordering = ['-created_at']
    readonly_fields = ['created_at']
