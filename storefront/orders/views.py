import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from django.db import transaction
from django.db.models import Count, Prefetch, Sum
from django.shortcuts import get_object_or_404
from storefront.core.cache_signals import suspend_cache_signals
from storefront.core.cache_utils import invalidate_analytics_cache
from storefront.core.serializers import BulkIdsSerializer
from storefront.core.utils import create_audit_log, csv_response, paginate
from storefront.pricing.services import PricingError
from .filters import OrderFilter
from .models import Order, OrderItem
from .serializers import (
    OrderSerializer, OrderListSerializer, TrackingSerializer,
    CheckoutSerializer, OrderStatusUpdateSerializer
)
from .services import place_order

logger = logging.getLogger(__name__)

VALID_STATUSES = [choice for choice, _ in Order.STATUS_CHOICES]


def order_queryset():
    """Orders with items and their products loaded"""
    return Order.objects.select_related('user').prefetch_related(
        Prefetch('items', queryset=OrderItem.objects.select_related('product', 'variant'))
    )


# Storefront views
@api_view(['POST'])
@permission_classes([AllowAny])
def create_order(request):
    """Checkout: place an order for the cart (guest or signed-in customer)"""
    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        order = place_order(serializer.validated_data, user=request.user)
    except PricingError as e:
        logger.info(f"Checkout rejected: {e.message}")
        return Response({'error': e.message}, status=e.status_code)
    except Exception as e:
        logger.error(f"Order create error: {str(e)}", exc_info=True)
        raise

    create_audit_log(
        request=request, action='order_create', model_name='Order',
        object_id=order.id, object_name=order.customer_name, object_reference=order.order_number,
        changes={'total': str(order.total), 'items': order.items.count(), 'coupon_code': order.coupon_code}
    )
    order = order_queryset().get(pk=order.pk)
    return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def order_tracking(request):
    """Look up an order by its order number: ?id=ZNX-..."""
    order_number = (request.query_params.get('id') or '').strip()
    if not order_number:
        return Response({'error': 'Order number is required'}, status=status.HTTP_400_BAD_REQUEST)

    order = order_queryset().filter(order_number__iexact=order_number).first()
    if order is None:
        return Response({'error': 'Order not found'}, status=status.HTTP_404_NOT_FOUND)

    return Response(TrackingSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def account_orders(request):
    """Order history of the signed-in customer, newest first"""
    orders = order_queryset().filter(user=request.user)
    serializer = OrderSerializer(orders, many=True)
    return Response(serializer.data)


# Admin views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_order_list(request):
    """All orders with status / search filters, paginated"""
    queryset = Order.objects.annotate(annotated_item_count=Sum('items__quantity'))
    filterset = OrderFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    data = paginate(request, filterset.qs.order_by('-created_at', '-id'), OrderListSerializer, default_limit=20)
    data['status_counts'] = {
        row['status']: row['count']
        for row in Order.objects.values('status').annotate(count=Count('id')).order_by()
    }
    return Response(data)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_order_detail(request, pk):
    """Retrieve or delete an order"""
    order = get_object_or_404(order_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)

    order_number = order.order_number
    order.delete()
    create_audit_log(
        request=request, action='delete', model_name='Order',
        object_id=pk, object_name=order.customer_name, object_reference=order_number
    )
    return Response({'success': True})


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_order_status(request, pk):
    """
    Update order status, courier and tracking id.

    Any status may be set from any other status; each change is audited.
    """
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderStatusUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    new_status = (data.get('status') or '').strip().upper()
    if new_status and new_status not in VALID_STATUSES:
        return Response({'error': 'Invalid status'}, status=status.HTTP_400_BAD_REQUEST)

    changes = {}
    if new_status and new_status != order.status:
        changes['status'] = {'old': order.status, 'new': new_status}
        order.status = new_status
    for field in ('courier', 'tracking_id', 'payment_status'):
        if field in data and data[field] != getattr(order, field):
            changes[field] = {'old': getattr(order, field), 'new': data[field]}
            setattr(order, field, data[field])

    if changes:
        order.save()
        create_audit_log(
            request=request, action='order_status' if 'status' in changes else 'update',
            model_name='Order', object_id=order.id, object_name=order.customer_name,
            object_reference=order.order_number, changes=changes
        )
        logger.info(f"Order {order.order_number} updated: {changes}")

    return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_order_bulk_delete(request):
    """Delete several orders (and their items) at once"""
    serializer = BulkIdsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    ids = serializer.validated_data['ids']

    with transaction.atomic(), suspend_cache_signals():
        orders = Order.objects.filter(id__in=ids)
        order_numbers = list(orders.values_list('order_number', flat=True))
        deleted_count = len(order_numbers)
        OrderItem.objects.filter(order_id__in=ids).delete()
        orders.delete()
    invalidate_analytics_cache()

    create_audit_log(
        request=request, action='bulk_delete', model_name='Order',
        object_id=','.join(str(i) for i in ids)[:100],
        object_name=f"{deleted_count} orders",
        changes={'order_numbers': order_numbers}
    )
    logger.info(f"Bulk deleted {deleted_count} orders")
    return Response({'success': True, 'deleted': deleted_count})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_order_export(request):
    """Export orders as CSV (honours the admin list filters)"""
    filterset = OrderFilter(request.query_params, queryset=order_queryset())
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    headers = [
        'Order Number', 'Date', 'Customer Name', 'Email', 'Phone', 'Address', 'City',
        'Postal Code', 'Items', 'Subtotal', 'Shipping', 'Discount', 'Coupon', 'Total',
        'Payment Method', 'Payment Status', 'Order Status', 'Courier', 'Tracking ID', 'Notes',
    ]

    def item_summary(item):
        name = item.product_name
        if item.variant_label:
            name += f" ({item.variant_label})"
        return f"{name} x{item.quantity}"

    def rows():
        for order in filterset.qs.order_by('-created_at', '-id'):
            yield [
                order.order_number,
                order.created_at.date().isoformat(),
                order.customer_name, order.customer_email, order.customer_phone,
                order.shipping_address, order.city, order.postal_code,
                '; '.join(item_summary(item) for item in order.items.all()),
                order.subtotal, order.shipping, order.discount, order.coupon_code, order.total,
                order.payment_method, order.payment_status, order.status,
                order.courier, order.tracking_id, order.notes,
            ]

    create_audit_log(request=request, action='export', model_name='Order', object_id='all')
    return csv_response('orders', headers, rows())
