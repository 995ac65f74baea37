from rest_framework import serializers
from .models import StockAdjustment


class StockAdjustmentSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(source='variant.product_id', read_only=True)
    product_name = serializers.CharField(source='variant.product.name', read_only=True)
    variant_label = serializers.CharField(source='variant.label', read_only=True)
    quantity_change = serializers.IntegerField(read_only=True)
    user_name = serializers.SerializerMethodField()

    class Meta:
        model = StockAdjustment
        fields = [
            'id', 'variant', 'product_id', 'product_name', 'variant_label',
            'previous_stock', 'new_stock', 'quantity_change', 'reason', 'notes',
            'user', 'user_name', 'created_at'
        ]

    def get_user_name(self, obj):
        return obj.user.display_name if obj.user else None


class InventoryUpdateSerializer(serializers.Serializer):
    """One entry of the bulk stock edit payload"""
    variant_id = serializers.IntegerField()
    stock = serializers.IntegerField(min_value=0, required=False)
    min_stock = serializers.IntegerField(min_value=0, required=False)
    reason = serializers.ChoiceField(
        choices=StockAdjustment.REASON_CHOICES, required=False, default=StockAdjustment.REASON_CORRECTION
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='')
