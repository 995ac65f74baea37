from rest_framework import serializers
from .models import Coupon


class CouponSerializer(serializers.ModelSerializer):
    class Meta:
        model = Coupon
        fields = [
            'id', 'code', 'type', 'value', 'start_date', 'end_date',
            'usage_limit', 'used_count', 'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = ['used_count', 'created_at', 'updated_at']
        extra_kwargs = {
            # Duplicate codes are reported by the view with a plain error message
            'code': {'validators': [], 'error_messages': {'required': 'Code is required', 'blank': 'Code is required'}},
            'value': {'error_messages': {'required': 'Value is required'}},
        }

    def validate_code(self, value):
        return value.strip().upper()

    def validate(self, attrs):
        coupon_type = attrs.get('type', self.instance.type if self.instance else Coupon.TYPE_PERCENTAGE)
        value = attrs.get('value', self.instance.value if self.instance else None)
        if coupon_type == Coupon.TYPE_PERCENTAGE and value is not None and value > 100:
            raise serializers.ValidationError({'value': 'Percentage discount cannot exceed 100'})

        start_date = attrs.get('start_date', self.instance.start_date if self.instance else None)
        end_date = attrs.get('end_date', self.instance.end_date if self.instance else None)
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({'end_date': 'End date must be after start date'})
        return attrs


class CartItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    variant_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)


class QuoteSerializer(serializers.Serializer):
    items = CartItemSerializer(many=True, allow_empty=False)
    coupon_code = serializers.CharField(required=False, allow_blank=True, allow_null=True)
