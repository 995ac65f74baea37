"""
Test suite for Reports module
Tests: analytics dashboard totals, status breakdown, top products, low stock and sales trend
"""
from datetime import date, timedelta
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.orders.models import Order
from storefront.reports.views import build_analytics, start_of_day


class AnalyticsTests(TestCase):
    """Test the admin analytics dashboard"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())

        self.customer = TestDataFactory.create_user()
        self.tee = TestDataFactory.create_product(name='Tee', price=Decimal('1000.00'))
        self.tee_variant = TestDataFactory.create_variant(product=self.tee, stock=50, min_stock=5)
        self.cap = TestDataFactory.create_product(name='Cap', price=Decimal('500.00'))
        self.cap_variant = TestDataFactory.create_variant(product=self.cap, stock=2, min_stock=5)

        TestDataFactory.create_order(user=self.customer, status=Order.STATUS_DELIVERED,
                                     items=[(self.tee, self.tee_variant, 3)], total=Decimal('3000.00'))
        TestDataFactory.create_order(status=Order.STATUS_PENDING,
                                     items=[(self.cap, self.cap_variant, 2)], total=Decimal('1250.00'))
        TestDataFactory.create_order(status=Order.STATUS_CANCELLED,
                                     items=[(self.cap, self.cap_variant, 10)], total=Decimal('5000.00'))

    def test_requires_staff(self):
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/admin/analytics/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_overview_excludes_cancelled_revenue(self):
        response = self.client.get('/api/admin/analytics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        overview = response.data['overview']
        self.assertEqual(overview['total_revenue'], 4250.0)
        self.assertEqual(overview['total_orders'], 3)
        self.assertEqual(overview['customer_count'], 1)
        self.assertEqual(overview['average_order_value'], 2125.0)
        self.assertEqual(response.data['today'], {'orders': 2, 'revenue': 4250.0})
        self.assertEqual(response.data['this_month']['orders'], 2)

    def test_status_breakdown(self):
        breakdown = self.client.get('/api/admin/analytics/').data['status_breakdown']
        self.assertEqual(breakdown['delivered'], 1)
        self.assertEqual(breakdown['pending'], 1)
        self.assertEqual(breakdown['cancelled'], 1)
        self.assertEqual(breakdown['shipped'], 0)

    def test_top_products_skip_cancelled(self):
        top = self.client.get('/api/admin/analytics/').data['top_products']
        self.assertEqual([row['name'] for row in top], ['Tee', 'Cap'])
        self.assertEqual(top[0]['quantity'], 3)
        self.assertEqual(top[0]['revenue'], 3000.0)
        self.assertEqual(top[0]['image'], 'https://cdn.test/img.jpg')

    def test_top_products_ranked_by_units_sold(self):
        for _ in range(2):
            TestDataFactory.create_order(status=Order.STATUS_SHIPPED, items=[(self.cap, self.cap_variant, 2)])
        top = self.client.get('/api/admin/analytics/').data['top_products']
        self.assertEqual([row['name'] for row in top], ['Cap', 'Tee'])
        self.assertEqual(top[0]['quantity'], 6)
        self.assertEqual(top[0]['revenue'], 3000.0)
        self.assertEqual(top[1]['quantity'], 3)

    def test_low_stock(self):
        low = self.client.get('/api/admin/analytics/').data['low_stock']
        self.assertEqual([row['id'] for row in low], [self.cap_variant.id])
        self.assertEqual(low[0]['status'], 'low')

    def test_sales_trend_covers_seven_days(self):
        trend = self.client.get('/api/admin/analytics/').data['sales_trend']
        self.assertEqual(len(trend), 7)
        self.assertEqual(trend[-1]['date'], timezone.localdate().isoformat())
        self.assertEqual(trend[-1]['orders'], 2)
        self.assertEqual(sum(day['orders'] for day in trend[:-1]), 0)

    def test_result_is_cached(self):
        first = self.client.get('/api/admin/analytics/').data
        TestDataFactory.create_order(status=Order.STATUS_PENDING, total=Decimal('100.00'))
        second = self.client.get('/api/admin/analytics/').data
        self.assertEqual(first['overview'], second['overview'])

    def test_week_starts_on_sunday(self):
        wednesday = date(2024, 5, 15)
        sunday_order = TestDataFactory.create_order(total=Decimal('700.00'))
        saturday_order = TestDataFactory.create_order(total=Decimal('900.00'))
        Order.objects.filter(pk=sunday_order.pk).update(created_at=start_of_day(date(2024, 5, 12)) + timedelta(hours=10))
        Order.objects.filter(pk=saturday_order.pk).update(created_at=start_of_day(date(2024, 5, 11)) + timedelta(hours=10))

        data = build_analytics(wednesday)
        # Sunday order plus the two open orders placed today; Saturday belongs to the previous week
        self.assertEqual(data['this_week']['orders'], 3)
        self.assertEqual(data['sales_trend'][0]['date'], '2024-05-09')
        self.assertEqual(data['sales_trend'][3]['orders'], 1)
        self.assertEqual(data['sales_trend'][2]['orders'], 1)
