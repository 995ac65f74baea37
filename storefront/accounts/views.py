import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.contrib.auth import get_user_model
from django.db.models import Count, DecimalField, F, Max, Q, Sum, Value
from django.db.models.functions import Coalesce, Lower
from django.shortcuts import get_object_or_404
from decimal import Decimal
from storefront.catalog.models import Product
from storefront.core.utils import create_audit_log, csv_response
from storefront.orders.models import Order
from storefront.orders.serializers import OrderSerializer
from storefront.orders.views import order_queryset
from .models import Address, WishlistItem
from .serializers import (
    ProfileSerializer, AddressSerializer, WishlistItemSerializer, WishlistToggleSerializer,
    CustomerListSerializer
)

logger = logging.getLogger(__name__)
User = get_user_model()

CUSTOMER_SORT_FIELDS = {
    'name': 'sort_name',
    'orderCount': 'order_count',
    'order_count': 'order_count',
    'totalSpent': 'total_spent',
    'total_spent': 'total_spent',
    'lastOrder': 'last_order',
    'last_order': 'last_order',
    'createdAt': 'created_at',
    'created_at': 'created_at',
}


# Customer account views
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def profile(request):
    """Get or update the signed-in customer's profile"""
    if request.method == 'GET':
        return Response(ProfileSerializer(request.user).data)

    serializer = ProfileSerializer(request.user, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def address_list_create(request):
    """List saved addresses or add a new one"""
    if request.method == 'GET':
        addresses = Address.objects.filter(user=request.user)
        return Response(AddressSerializer(addresses, many=True).data)

    serializer = AddressSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(user=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def address_detail(request, pk):
    """Update or delete one of the customer's own addresses"""
    address = Address.objects.filter(pk=pk, user=request.user).first()
    if address is None:
        return Response({'error': 'Address not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(AddressSerializer(address).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AddressSerializer(address, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        address.delete()
        return Response({'success': True})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def wishlist(request):
    """
    GET: wishlist items, newest first
    POST {product_id}: toggle the product in the wishlist
    """
    if request.method == 'GET':
        items = WishlistItem.objects.filter(user=request.user).select_related('product', 'product__category')
        return Response(WishlistItemSerializer(items, many=True).data)

    serializer = WishlistToggleSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    product = get_object_or_404(Product, pk=serializer.validated_data['product_id'])

    existing = WishlistItem.objects.filter(user=request.user, product=product).first()
    if existing:
        existing.delete()
        return Response({'action': 'removed'})

    WishlistItem.objects.create(user=request.user, product=product)
    return Response({'action': 'added'})


# Admin customer views
def customer_queryset():
    """Non-staff users annotated with order count, total spent and last order date"""
    return User.objects.filter(is_staff=False).annotate(
        order_count=Count('orders'),
        total_spent=Coalesce(
            Sum('orders__total'), Value(Decimal('0.00')),
            output_field=DecimalField(max_digits=14, decimal_places=2)
        ),
        last_order=Max('orders__created_at'),
        sort_name=Lower('name'),
    )


def filtered_customers(request):
    queryset = customer_queryset()
    search = (request.query_params.get('search') or '').strip()
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) |
            Q(email__icontains=search) |
            Q(phone__icontains=search)
        )

    sort_field = CUSTOMER_SORT_FIELDS.get(request.query_params.get('sort_by'), 'created_at')
    descending = request.query_params.get('sort_order', 'desc').lower() != 'asc'
    ordering = F(sort_field).desc(nulls_last=True) if descending else F(sort_field).asc(nulls_first=True)
    return queryset.order_by(ordering, 'id')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_customer_list(request):
    """Customers with order aggregates; search, sort_by and sort_order query params"""
    customers = filtered_customers(request)
    serializer = CustomerListSerializer(customers, many=True)
    return Response({
        'customers': serializer.data,
        'total': len(serializer.data),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_customer_detail(request, pk):
    """Customer profile, order history, shipping addresses used and order stats"""
    customer = get_object_or_404(User, pk=pk, is_staff=False)
    orders = list(order_queryset().filter(user=customer).order_by('-created_at', '-id'))

    total_spent = sum((order.total for order in orders), Decimal('0.00'))
    order_count = len(orders)
    shipping_addresses = []
    for order in orders:
        line = f"{order.shipping_address}, {order.city}"
        if line not in shipping_addresses:
            shipping_addresses.append(line)

    return Response({
        'customer': {
            'id': customer.id,
            'name': customer.name,
            'email': customer.email,
            'phone': customer.phone,
            'address': customer.address,
            'city': customer.city,
            'is_active': customer.is_active,
            'created_at': customer.created_at,
        },
        'orders': OrderSerializer(orders, many=True).data,
        'addresses': shipping_addresses,
        'saved_addresses': AddressSerializer(customer.addresses.all(), many=True).data,
        'stats': {
            'total_orders': order_count,
            'total_spent': str(total_spent),
            'average_order_value': str((total_spent / order_count).quantize(Decimal('0.01'))) if order_count else '0.00',
            'first_order': orders[-1].created_at if orders else None,
            'last_order': orders[0].created_at if orders else None,
        },
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_customer_export(request):
    """Export customers (same filters as the list) as CSV"""
    headers = ['Name', 'Email', 'Phone', 'City', 'Orders', 'Total Spent', 'Last Order', 'Joined']

    def rows():
        for customer in filtered_customers(request):
            yield [
                customer.name or 'N/A',
                customer.email,
                customer.phone or 'N/A',
                customer.city or 'N/A',
                customer.order_count,
                customer.total_spent,
                customer.last_order.date().isoformat() if customer.last_order else '',
                customer.created_at.date().isoformat(),
            ]

    create_audit_log(request=request, action='export', model_name='User', object_id='customers')
    return csv_response('customers', headers, rows())
