import django_filters
from django.db.models import Q
from .models import Order


class OrderFilter(django_filters.FilterSet):
    """
    Admin order filters

    Query params:
    - status: exact status (ALL or empty means no filter)
    - search: order number, customer name, email or phone (case-insensitive)
    - payment_method, date_from, date_to
    """
    status = django_filters.CharFilter(method='filter_status')
    search = django_filters.CharFilter(method='filter_search')
    payment_method = django_filters.ChoiceFilter(choices=Order.PAYMENT_METHOD_CHOICES)
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = Order
        fields = ['status', 'payment_method', 'payment_status']

    def filter_status(self, queryset, name, value):
        value = (value or '').strip().upper()
        if not value or value == 'ALL':
            return queryset
        return queryset.filter(status=value)

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=value) |
            Q(customer_name__icontains=value) |
            Q(customer_email__icontains=value) |
            Q(customer_phone__icontains=value)
        )
