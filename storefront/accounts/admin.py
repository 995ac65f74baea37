from django.contrib import admin
from .models import Address, WishlistItem


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ['user', 'name', 'city', 'phone', 'is_default', 'created_at']
    list_filter = ['is_default', 'city']
    search_fields = ['user__email', 'name', 'address', 'phone']
    ordering = ['-created_at']


@admin.register(WishlistItem)
class WishlistItemAdmin(admin.ModelAdmin):
    list_display = ['user', 'product', 'created_at']
    search_fields = ['user__email', 'product__name']
    ordering = ['-created_at']
