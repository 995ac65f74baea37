from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.db import transaction
from storefront.catalog.models import Product
from .models import Address, WishlistItem

User = get_user_model()


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'phone', 'address', 'city']
        read_only_fields = ['id', 'email']


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = ['id', 'name', 'address', 'city', 'phone', 'is_default', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    @transaction.atomic
    def save(self, **kwargs):
        address = super().save(**kwargs)
        if address.is_default:
            # Only one default address per customer
            Address.objects.filter(user=address.user, is_default=True).exclude(pk=address.pk).update(is_default=False)
        return address


class WishlistProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'price', 'compare_price', 'images', 'category_name']


class WishlistItemSerializer(serializers.ModelSerializer):
    product = WishlistProductSerializer(read_only=True)

    class Meta:
        model = WishlistItem
        fields = ['id', 'product', 'created_at']


class WishlistToggleSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(
        min_value=1, error_messages={'required': 'product_id is required'}
    )


class CustomerListSerializer(serializers.ModelSerializer):
    """Admin customer row with order aggregates (annotated in the view)"""
    order_count = serializers.IntegerField(read_only=True)
    total_spent = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    last_order = serializers.DateTimeField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'name', 'email', 'phone', 'city', 'is_active',
            'order_count', 'total_spent', 'last_order', 'created_at'
        ]
