import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404
from storefront.core.utils import create_audit_log
from .models import Coupon
from .serializers import CouponSerializer, QuoteSerializer
from .services import (
    PricingError, validate_coupon, build_cart_lines, calculate_totals_for_store
)

logger = logging.getLogger(__name__)


# Admin coupon views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def coupon_list_create(request):
    """List all coupons (newest first) or create a coupon"""
    if request.method == 'GET':
        coupons = Coupon.objects.all()
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            coupons = coupons.filter(is_active=is_active.lower() == 'true')
        serializer = CouponSerializer(coupons, many=True)
        return Response(serializer.data)

    serializer = CouponSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if Coupon.objects.filter(code=serializer.validated_data['code']).exists():
        return Response({'error': 'Coupon code already exists'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        with transaction.atomic():
            coupon = serializer.save()
    except IntegrityError:
        # Concurrent create with the same code
        return Response({'error': 'Coupon code already exists'}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request, action='create', model_name='Coupon',
        object_id=coupon.id, object_name=coupon.code,
        changes={'type': coupon.type, 'value': str(coupon.value), 'usage_limit': coupon.usage_limit}
    )
    return Response(CouponSerializer(coupon).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def coupon_detail(request, pk):
    """Retrieve, update (typically toggle is_active) or delete a coupon"""
    coupon = get_object_or_404(Coupon, pk=pk)

    if request.method == 'GET':
        return Response(CouponSerializer(coupon).data)

    if request.method == 'PATCH':
        old_active = coupon.is_active
        serializer = CouponSerializer(coupon, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        new_code = serializer.validated_data.get('code')
        if new_code and Coupon.objects.filter(code=new_code).exclude(pk=coupon.pk).exists():
            return Response({'error': 'Coupon code already exists'}, status=status.HTTP_400_BAD_REQUEST)

        coupon = serializer.save()
        toggled_only = set(serializer.validated_data.keys()) == {'is_active'}
        create_audit_log(
            request=request,
            action='coupon_toggle' if toggled_only else 'update',
            model_name='Coupon', object_id=coupon.id, object_name=coupon.code,
            changes={
                'is_active': {'old': old_active, 'new': coupon.is_active},
                'fields': sorted(serializer.validated_data.keys()),
            }
        )
        return Response(CouponSerializer(coupon).data)

    code = coupon.code
    coupon.delete()
    create_audit_log(
        request=request, action='delete', model_name='Coupon',
        object_id=pk, object_name=code
    )
    return Response({'success': True})


# Checkout views
@api_view(['POST'])
@permission_classes([AllowAny])
def validate_coupon_view(request):
    """Check a coupon code before checkout"""
    try:
        coupon = validate_coupon(request.data.get('code'))
    except PricingError as e:
        return Response({'valid': False, 'error': e.message}, status=e.status_code)

    return Response({
        'valid': True,
        'coupon': {
            'code': coupon.code,
            'type': coupon.type,
            'value': str(coupon.value),
        }
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def checkout_quote(request):
    """Price a cart on the server: line totals, shipping, coupon discount and total"""
    serializer = QuoteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        lines = build_cart_lines(data['items'])
        coupon = validate_coupon(data['coupon_code']) if data.get('coupon_code') else None
    except PricingError as e:
        return Response({'error': e.message}, status=e.status_code)

    totals = calculate_totals_for_store(lines, coupon=coupon)
    payload = totals.as_dict()
    payload['items'] = [
        {
            'product_id': line.product.id,
            'variant_id': line.variant.id if line.variant else None,
            'name': line.product.name,
            'variant_label': line.variant.label if line.variant else None,
            'unit_price': str(line.unit_price),
            'quantity': line.quantity,
            'line_total': str(line.line_total),
            'available_stock': line.variant.stock if line.variant else None,
        }
        for line in lines
    ]
    return Response(payload)
