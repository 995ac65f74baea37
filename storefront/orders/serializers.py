from rest_framework import serializers
from storefront.pricing.serializers import CartItemSerializer
from .models import Order, OrderItem
from .utils import order_timeline


class OrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    image = serializers.SerializerMethodField()
    slug = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            'id', 'product', 'variant', 'product_name', 'variant_label',
            'quantity', 'price', 'line_total', 'image', 'slug'
        ]

    def get_image(self, obj):
        return obj.product.primary_image if obj.product else None

    def get_slug(self, obj):
        return obj.product.slug if obj.product else None


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    payment_method_display = serializers.CharField(source='get_payment_method_display', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'user', 'customer_name', 'customer_email', 'customer_phone',
            'shipping_address', 'city', 'postal_code',
            'subtotal', 'shipping', 'discount', 'coupon_code', 'total',
            'payment_method', 'payment_method_display', 'payment_status',
            'status', 'status_display', 'courier', 'tracking_id', 'notes',
            'items', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Admin order table row"""
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer_name', 'customer_email', 'customer_phone', 'city',
            'total', 'payment_method', 'payment_status', 'status', 'courier', 'tracking_id',
            'item_count', 'created_at'
        ]

    def get_item_count(self, obj):
        annotated = getattr(obj, 'annotated_item_count', None)
        if annotated is not None:
            return annotated
        return sum(item.quantity for item in obj.items.all())


class TrackingSerializer(serializers.ModelSerializer):
    """Public tracking view of an order (no contact details)"""
    items = serializers.SerializerMethodField()
    timeline = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'status', 'created_at', 'updated_at',
            'courier', 'tracking_id', 'shipping_address', 'city', 'total',
            'items', 'timeline'
        ]

    def get_items(self, obj):
        return [
            {
                'name': item.product_name,
                'variant_label': item.variant_label,
                'quantity': item.quantity,
                'image': item.product.primary_image if item.product else None,
                'slug': item.product.slug if item.product else None,
            }
            for item in obj.items.all()
        ]

    def get_timeline(self, obj):
        return order_timeline(obj.status)


class CheckoutSerializer(serializers.Serializer):
    customer_name = serializers.CharField(min_length=2, max_length=200)
    customer_email = serializers.EmailField()
    customer_phone = serializers.CharField(min_length=10, max_length=20)
    shipping_address = serializers.CharField(min_length=10)
    city = serializers.CharField(min_length=2, max_length=100)
    postal_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    coupon_code = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    items = CartItemSerializer(many=True, allow_empty=False)

    def validate_customer_email(self, value):
        return value.strip().lower()


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(required=False, allow_blank=True)
    courier = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    tracking_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES, required=False)
