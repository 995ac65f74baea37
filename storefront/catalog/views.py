import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from django.conf import settings
from django.db.models import Avg, Count, Q, Prefetch
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404
from .models import Category, Product, ProductVariant, Review
from .filters import ProductFilter
from .serializers import (
    CategorySerializer, ProductSerializer, ProductListSerializer, ReviewSerializer
)
from storefront.core.cache_utils import (
    get_cached_products_list, cache_products_list, invalidate_products_cache
)
from storefront.core.cache_signals import suspend_cache_signals
from storefront.core.serializers import BulkIdsSerializer
from storefront.core.utils import create_audit_log, csv_response, paginate

logger = logging.getLogger(__name__)


def product_queryset():
    """Products with category and variants loaded for serializers"""
    return Product.objects.select_related('category').prefetch_related(
        Prefetch('variants', queryset=ProductVariant.objects.order_by('id'))
    )


def has_delivered_order(user, product_id):
    """True if the user received an order containing the product"""
    from storefront.orders.models import Order
    return Order.objects.filter(
        user=user,
        status=Order.STATUS_DELIVERED,
        items__product_id=product_id
    ).exists()


# Storefront views
@api_view(['GET'])
@permission_classes([AllowAny])
def category_list(request):
    """List categories with their active product counts"""
    categories = Category.objects.annotate(
        annotated_product_count=Count('products', filter=Q(products__is_active=True))
    ).order_by('name')
    serializer = CategorySerializer(categories, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_list(request):
    """Storefront product listing with filters, sorting and pagination"""
    filters_dict = {key: request.query_params.get(key) for key in sorted(request.query_params.keys())}
    cached_data, cache_key = get_cached_products_list(filters_dict)
    if cached_data is not None:
        return Response(cached_data)

    queryset = product_queryset().filter(is_active=True).order_by('-created_at', '-id')
    filterset = ProductFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    page_size = settings.STOREFRONT.get('PRODUCTS_PAGE_SIZE', 24)
    data = paginate(request, filterset.qs, ProductListSerializer, default_limit=page_size)
    cache_products_list(cache_key, data)
    return Response(data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_detail_by_slug(request, slug):
    """Storefront product page, including related products from the same category"""
    product = get_object_or_404(product_queryset(), slug=slug, is_active=True)
    data = ProductSerializer(product).data
    related = product_queryset().filter(
        category=product.category, is_active=True
    ).exclude(pk=product.pk).order_by('-featured', '-created_at')[:4]
    data['related_products'] = ProductListSerializer(related, many=True).data
    return Response(data)


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def product_reviews(request, product_id):
    """List a product's reviews or submit one (customer must have received the product)"""
    product = get_object_or_404(Product, pk=product_id)

    if request.method == 'GET':
        reviews = Review.objects.filter(product=product).select_related('user')
        average = reviews.aggregate(avg=Avg('rating'))['avg']
        return Response({
            'reviews': ReviewSerializer(reviews, many=True).data,
            'count': reviews.count(),
            'average_rating': round(float(average), 1) if average is not None else 0,
        })

    if not request.user or not request.user.is_authenticated:
        return Response({'error': 'You must be logged in to submit a review'}, status=status.HTTP_401_UNAUTHORIZED)

    serializer = ReviewSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not has_delivered_order(request.user, product.id):
        return Response(
            {'error': 'You must purchase and receive this product before reviewing'},
            status=status.HTTP_403_FORBIDDEN
        )
    if Review.objects.filter(user=request.user, product=product).exists():
        return Response({'error': 'You have already reviewed this product'}, status=status.HTTP_400_BAD_REQUEST)

    review = serializer.save(user=request.user, product=product)
    logger.info(f"Review {review.id} added for product {product.id} by user {request.user.id}")
    return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def can_review(request, product_id):
    """Check whether the current user may review a product"""
    if not request.user or not request.user.is_authenticated:
        return Response({
            'can_review': False,
            'reason': 'not_logged_in',
            'message': 'Please sign in to leave a review',
        })

    if Review.objects.filter(user=request.user, product_id=product_id).exists():
        return Response({
            'can_review': False,
            'reason': 'already_reviewed',
            'message': 'You have already reviewed this product',
        })

    if not has_delivered_order(request.user, product_id):
        return Response({
            'can_review': False,
            'reason': 'no_purchase',
            'message': 'Purchase this product to leave a review',
        })

    return Response({
        'can_review': True,
        'reason': 'eligible',
        'message': 'You can review this product',
    })


# Admin category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_category_list_create(request):
    """List all categories or create a new category"""
    if request.method == 'GET':
        categories = Category.objects.annotate(
            annotated_product_count=Count('products')
        ).order_by('name')
        serializer = CategorySerializer(categories, many=True)
        return Response(serializer.data)
    else:  # POST
        serializer = CategorySerializer(data=request.data)
        if serializer.is_valid():
            category = serializer.save()
            create_audit_log(
                request=request, action='create', model_name='Category',
                object_id=category.id, object_name=category.name,
                changes={'name': category.name, 'slug': category.slug}
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        serializer = CategorySerializer(category)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request, action='update', model_name='Category',
                object_id=category.id, object_name=category.name,
                changes={key: str(value) for key, value in serializer.validated_data.items()}
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            category.delete()
        except ProtectedError:
            return Response(
                {'error': 'Category has products. Move or delete them first.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        create_audit_log(
            request=request, action='delete', model_name='Category',
            object_id=pk, object_name=category.name
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


# Admin product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_list_create(request):
    """List all products (including inactive) or create a product with its variants"""
    if request.method == 'GET':
        queryset = product_queryset().order_by('-created_at', '-id')
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(paginate(request, filterset.qs, ProductSerializer, default_limit=50))
    else:  # POST
        serializer = ProductSerializer(data=request.data)
        if serializer.is_valid():
            product = serializer.save()
            create_audit_log(
                request=request, action='create', model_name='Product',
                object_id=product.id, object_name=product.name, object_reference=product.slug,
                changes={'name': product.name, 'price': str(product.price), 'variants': product.variants.count()}
            )
            return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(product_queryset(), pk=pk)

    if request.method == 'GET':
        serializer = ProductSerializer(product)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        old_price = product.price
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            product = serializer.save()
            action = 'price_change' if product.price != old_price else 'update'
            create_audit_log(
                request=request, action=action, model_name='Product',
                object_id=product.id, object_name=product.name, object_reference=product.slug,
                changes={
                    'fields': sorted(key for key in request.data.keys()),
                    'old_price': str(old_price),
                    'new_price': str(product.price),
                }
            )
            product = get_object_or_404(product_queryset(), pk=pk)
            return Response(ProductSerializer(product).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product_name = product.name
        product.delete()
        create_audit_log(
            request=request, action='delete', model_name='Product',
            object_id=pk, object_name=product_name
        )
        return Response({'message': 'Product deleted successfully'}, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_bulk_delete(request):
    """Delete several products (and their variants) at once"""
    serializer = BulkIdsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    ids = serializer.validated_data['ids']

    with suspend_cache_signals():
        products = Product.objects.filter(id__in=ids)
        names = list(products.values_list('name', flat=True))
        deleted_count = products.count()
        products.delete()
    invalidate_products_cache()

    create_audit_log(
        request=request, action='bulk_delete', model_name='Product',
        object_id=','.join(str(i) for i in ids)[:100],
        object_name=f"{deleted_count} products",
        changes={'ids': ids, 'names': names}
    )
    logger.info(f"Bulk deleted {deleted_count} products")
    return Response({'success': True, 'deleted': deleted_count})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_export(request):
    """Export all products as CSV, one row per variant"""
    headers = [
        'Product ID', 'Name', 'Slug', 'Category', 'Price', 'Compare Price', 'Featured', 'Active',
        'Variant ID', 'Size', 'Color', 'SKU', 'Stock', 'Min Stock', 'Price Modifier', 'Images',
    ]

    def rows():
        for product in product_queryset().order_by('name', 'id'):
            base = [
                product.id, product.name, product.slug, product.category.name,
                product.price, product.compare_price,
                'yes' if product.featured else 'no',
                'yes' if product.is_active else 'no',
            ]
            variants = list(product.variants.all())
            images = ' | '.join(product.images or [])
            if not variants:
                yield base + ['', '', '', '', '', '', '', images]
            for variant in variants:
                yield base + [
                    variant.id, variant.size, variant.color, variant.sku,
                    variant.stock, variant.min_stock, variant.price_modifier, images,
                ]

    create_audit_log(request=request, action='export', model_name='Product', object_id='all')
    return csv_response('products', headers, rows())
