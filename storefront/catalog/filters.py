import django_filters
from django.db.models import Q, Exists, OuterRef
from .models import Product, ProductVariant


class ProductFilter(django_filters.FilterSet):
    """
    Storefront / admin product filters

    Query params:
    - category: category slug
    - search: matches name, description or category name (case-insensitive)
    - min_price / max_price: bounds on the base price
    - featured: true/false
    - in_stock: true -> at least one variant with stock > 0, false -> none
    - sort: newest (default), oldest, price_asc, price_desc, name
    """
    SORT_CHOICES = {
        'newest': ('-created_at', '-id'),
        'oldest': ('created_at', 'id'),
        'price_asc': ('price', 'id'),
        'price_desc': ('-price', '-id'),
        'name': ('name', 'id'),
    }

    category = django_filters.CharFilter(field_name='category__slug')
    search = django_filters.CharFilter(method='filter_search')
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    featured = django_filters.BooleanFilter(field_name='featured')
    in_stock = django_filters.BooleanFilter(method='filter_in_stock')
    sort = django_filters.CharFilter(method='filter_sort')

    class Meta:
        model = Product
        fields = ['category', 'featured', 'is_active']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(description__icontains=value) |
            Q(category__name__icontains=value)
        )

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        has_stock = ProductVariant.objects.filter(product=OuterRef('pk'), stock__gt=0)
        queryset = queryset.annotate(has_stock=Exists(has_stock))
        return queryset.filter(has_stock=value)

    def filter_sort(self, queryset, name, value):
        ordering = self.SORT_CHOICES.get(value, self.SORT_CHOICES['newest'])
        return queryset.order_by(*ordering)
