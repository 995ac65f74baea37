from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.contrib.auth import get_user_model
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum
from django.utils import timezone
from datetime import datetime, time, timedelta
from decimal import Decimal
from storefront.catalog.models import Product, ProductVariant
from storefront.core.cache_utils import get_cached_analytics, cache_analytics
from storefront.inventory.utils import stock_status
from storefront.orders.models import Order, OrderItem

User = get_user_model()


def start_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.min))


def order_summary(orders):
    totals = orders.aggregate(
        count=Count('id'),
        revenue=Sum('total', output_field=DecimalField())
    )
    return {
        'orders': totals['count'] or 0,
        'revenue': float(totals['revenue'] or Decimal('0.00')),
    }


def build_analytics(today):
    """
    Dashboard numbers for the given local date.

    Revenue counts every order except cancelled ones; weeks start on Sunday.
    """
    orders = Order.objects.exclude(status=Order.STATUS_CANCELLED)

    today_start = start_of_day(today)
    week_start = start_of_day(today - timedelta(days=(today.weekday() + 1) % 7))
    month_start = start_of_day(today.replace(day=1))

    overview = order_summary(orders)
    total_orders = Order.objects.count()

    status_counts = dict(
        Order.objects.values_list('status').annotate(count=Count('id')).order_by()
    )
    status_breakdown = {
        choice.lower(): status_counts.get(choice, 0) for choice, _ in Order.STATUS_CHOICES
    }

    line_revenue = ExpressionWrapper(F('price') * F('quantity'), output_field=DecimalField(max_digits=14, decimal_places=2))
    top_products = (
        OrderItem.objects.exclude(order__status=Order.STATUS_CANCELLED)
        .filter(product__isnull=False)
        .values('product_id', 'product__name')
        .annotate(units_sold=Sum('quantity'), revenue=Sum(line_revenue))
        .order_by('-units_sold', 'product__name')[:5]
    )
    product_images = {
        product.id: product.primary_image
        for product in Product.objects.filter(id__in=[row['product_id'] for row in top_products])
    }

    low_stock = (
        ProductVariant.objects.select_related('product')
        .filter(stock__lte=F('min_stock'))
        .order_by('stock', 'product__name', 'id')[:10]
    )

    sales_trend = []
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        day_orders = orders.filter(created_at__gte=start_of_day(day), created_at__lt=start_of_day(day + timedelta(days=1)))
        summary = order_summary(day_orders)
        sales_trend.append({
            'date': day.isoformat(),
            'day': day.strftime('%a'),
            'orders': summary['orders'],
            'revenue': summary['revenue'],
        })

    return {
        'overview': {
            'total_revenue': overview['revenue'],
            'total_orders': total_orders,
            'customer_count': User.objects.filter(is_staff=False).count(),
            'average_order_value': round(overview['revenue'] / overview['orders'], 2) if overview['orders'] else 0,
        },
        'today': order_summary(orders.filter(created_at__gte=today_start)),
        'this_week': order_summary(orders.filter(created_at__gte=week_start)),
        'this_month': order_summary(orders.filter(created_at__gte=month_start)),
        'status_breakdown': status_breakdown,
        'top_products': [
            {
                'id': row['product_id'],
                'name': row['product__name'],
                'image': product_images.get(row['product_id']),
                'quantity': row['units_sold'],
                'revenue': float(row['revenue'] or 0),
            }
            for row in top_products
        ],
        'low_stock': [
            {
                'id': variant.id,
                'product_id': variant.product_id,
                'product_name': variant.product.name,
                'variant_label': variant.label,
                'image': variant.product.primary_image,
                'stock': variant.stock,
                'min_stock': variant.min_stock,
                'status': stock_status(variant.stock, variant.min_stock),
            }
            for variant in low_stock
        ],
        'sales_trend': sales_trend,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def analytics_dashboard(request):
    """Admin analytics: revenue, status breakdown, top products, low stock and 7-day trend"""
    today = timezone.localdate()
    cached_data, cache_key = get_cached_analytics(today)
    if cached_data is not None:
        return Response(cached_data)

    data = build_analytics(today)
    cache_analytics(cache_key, data)
    response = Response(data)
    response['Cache-Control'] = 'private, max-age=60'
    return response
