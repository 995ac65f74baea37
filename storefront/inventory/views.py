import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.db import transaction
from storefront.catalog.models import ProductVariant
from storefront.core.utils import create_audit_log, paginate
from .models import StockAdjustment
from .serializers import StockAdjustmentSerializer, InventoryUpdateSerializer
from .utils import stock_status, record_stock_change, STATUS_OK, STATUS_LOW, STATUS_OUT

logger = logging.getLogger(__name__)


def inventory_rows():
    """Flatten every product variant into an inventory row, ordered by product name"""
    variants = ProductVariant.objects.select_related(
        'product', 'product__category'
    ).order_by('product__name', 'product_id', 'id')

    rows = []
    for variant in variants:
        product = variant.product
        rows.append({
            'product_id': product.id,
            'variant_id': variant.id,
            'product_name': product.name,
            'variant_label': variant.label,
            'sku': variant.sku,
            'image': product.primary_image,
            'category': product.category.name,
            'stock': variant.stock,
            'min_stock': variant.min_stock,
            'status': stock_status(variant.stock, variant.min_stock),
        })
    return rows


def inventory_stats(rows):
    return {
        'total': len(rows),
        'ok': sum(1 for row in rows if row['status'] == STATUS_OK),
        'low': sum(1 for row in rows if row['status'] == STATUS_LOW),
        'out': sum(1 for row in rows if row['status'] == STATUS_OUT),
    }


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_inventory(request):
    """
    GET: all variants with stock status; ?filter=all|low|out
    PATCH: bulk stock edit {updates: [{variant_id, stock?, min_stock?}]}
    """
    if request.method == 'GET':
        rows = inventory_rows()
        stock_filter = request.query_params.get('filter', 'all')
        if stock_filter in (STATUS_LOW, STATUS_OUT):
            filtered = [row for row in rows if row['status'] == stock_filter]
        else:
            filtered = rows
        return Response({
            'inventory': filtered,
            'stats': inventory_stats(rows),
        })

    updates = request.data.get('updates') if hasattr(request.data, 'get') else None
    if not isinstance(updates, list):
        return Response({'error': 'Invalid updates array'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = InventoryUpdateSerializer(data=updates, many=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    variant_ids = [update['variant_id'] for update in serializer.validated_data]
    changes = []
    with transaction.atomic():
        variants = ProductVariant.objects.select_for_update().in_bulk(variant_ids)
        missing = sorted(set(variant_ids) - set(variants.keys()))
        if missing:
            transaction.set_rollback(True)
            return Response(
                {'error': f"Variant(s) not found: {', '.join(str(i) for i in missing)}"},
                status=status.HTTP_404_NOT_FOUND
            )

        for update in serializer.validated_data:
            variant = variants[update['variant_id']]
            previous_stock = variant.stock
            update_fields = []
            if 'stock' in update:
                variant.stock = update['stock']
                update_fields.append('stock')
            if 'min_stock' in update:
                variant.min_stock = update['min_stock']
                update_fields.append('min_stock')
            if not update_fields:
                continue

            variant.save(update_fields=update_fields + ['updated_at'])
            record_stock_change(
                variant, previous_stock, variant.stock,
                reason=update['reason'], user=request.user, notes=update['notes']
            )
            changes.append({
                'variant_id': variant.id,
                'previous_stock': previous_stock,
                'stock': variant.stock,
                'min_stock': variant.min_stock,
            })

    updated = len(serializer.validated_data)
    if changes:
        create_audit_log(
            request=request, action='stock_adjust', model_name='ProductVariant',
            object_id=','.join(str(change['variant_id']) for change in changes)[:100],
            object_name=f"{len(changes)} variant(s)",
            changes={'updates': changes}
        )
    logger.info(f"Inventory updated for {updated} variant(s) by user {request.user.id}")
    return Response({
        'updated': updated,
        'message': f"Updated {updated} variant(s)",
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def stock_adjustment_list(request):
    """Stock change history, newest first; filter by variant_id, product_id or reason"""
    queryset = StockAdjustment.objects.select_related('variant', 'variant__product', 'user')
    variant_id = request.query_params.get('variant_id')
    product_id = request.query_params.get('product_id')
    reason = request.query_params.get('reason')

    for param, value in (('variant_id', variant_id), ('product_id', product_id)):
        if value and not value.isdigit():
            return Response({'error': f"{param} must be a number"}, status=status.HTTP_400_BAD_REQUEST)

    if variant_id:
        queryset = queryset.filter(variant_id=variant_id)
    if product_id:
        queryset = queryset.filter(variant__product_id=product_id)
    if reason:
        queryset = queryset.filter(reason=reason)

    return Response(paginate(request, queryset, StockAdjustmentSerializer, default_limit=50))
