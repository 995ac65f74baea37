"""
Comprehensive test suite for Inventory module
Tests: stock status rules, inventory listing, bulk stock edits, adjustment history and the low stock command
"""
from io import StringIO
from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.inventory.models import StockAdjustment
from storefront.inventory.utils import stock_status, record_stock_change, STATUS_OK, STATUS_LOW, STATUS_OUT


class StockStatusTests(TestCase):
    """Test stock status derivation"""

    def test_out_of_stock(self):
        self.assertEqual(stock_status(0, 5), STATUS_OUT)

    def test_low_stock_includes_threshold(self):
        self.assertEqual(stock_status(1, 5), STATUS_LOW)
        self.assertEqual(stock_status(5, 5), STATUS_LOW)

    def test_ok_above_threshold(self):
        self.assertEqual(stock_status(6, 5), STATUS_OK)

    def test_zero_threshold(self):
        self.assertEqual(stock_status(1, 0), STATUS_OK)
        self.assertEqual(stock_status(0, 0), STATUS_OUT)

    def test_record_stock_change_skips_unchanged(self):
        variant = TestDataFactory.create_variant(stock=4)
        self.assertIsNone(record_stock_change(variant, 4, 4, reason=StockAdjustment.REASON_CORRECTION))
        adjustment = record_stock_change(variant, 4, 1, reason=StockAdjustment.REASON_SALE)
        self.assertEqual(adjustment.quantity_change, -3)
        self.assertIsNone(adjustment.user)


class AdminInventoryTests(TestCase):
    """Test admin inventory listing and bulk edits"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)

        self.product = TestDataFactory.create_product(name='Cotton Tee')
        self.ok_variant = TestDataFactory.create_variant(product=self.product, size='S', stock=20, min_stock=5)
        self.low_variant = TestDataFactory.create_variant(product=self.product, size='M', stock=3, min_stock=5)
        self.out_variant = TestDataFactory.create_variant(product=self.product, size='L', stock=0, min_stock=5)

    def test_requires_staff(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/admin/inventory/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_with_stats(self):
        response = self.client.get('/api/admin/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['inventory']), 3)
        self.assertEqual(response.data['stats'], {'total': 3, 'ok': 1, 'low': 1, 'out': 1})
        row = next(r for r in response.data['inventory'] if r['variant_id'] == self.low_variant.id)
        self.assertEqual(row['product_name'], 'Cotton Tee')
        self.assertEqual(row['variant_label'], 'M / Black')
        self.assertEqual(row['status'], STATUS_LOW)

    def test_filter_low_and_out(self):
        response = self.client.get('/api/admin/inventory/?filter=low')
        self.assertEqual([r['variant_id'] for r in response.data['inventory']], [self.low_variant.id])
        self.assertEqual(response.data['stats']['total'], 3)

        response = self.client.get('/api/admin/inventory/?filter=out')
        self.assertEqual([r['variant_id'] for r in response.data['inventory']], [self.out_variant.id])

    def test_bulk_update(self):
        response = self.client.patch('/api/admin/inventory/', {
            'updates': [
                {'variant_id': self.out_variant.id, 'stock': 12, 'reason': 'restock'},
                {'variant_id': self.low_variant.id, 'min_stock': 2},
            ]
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 2)
        self.assertEqual(response.data['message'], 'Updated 2 variant(s)')

        self.out_variant.refresh_from_db()
        self.low_variant.refresh_from_db()
        self.assertEqual(self.out_variant.stock, 12)
        self.assertEqual(self.low_variant.min_stock, 2)
        self.assertEqual(self.low_variant.stock, 3)

        adjustment = StockAdjustment.objects.get(variant=self.out_variant)
        self.assertEqual(adjustment.previous_stock, 0)
        self.assertEqual(adjustment.new_stock, 12)
        self.assertEqual(adjustment.reason, 'restock')
        self.assertEqual(adjustment.user, self.admin)
        self.assertFalse(StockAdjustment.objects.filter(variant=self.low_variant).exists())
        self.assertTrue(AuditLog.objects.filter(action='stock_adjust').exists())

    def test_rejects_negative_stock(self):
        response = self.client.patch('/api/admin/inventory/', {
            'updates': [{'variant_id': self.ok_variant.id, 'stock': -1}]
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.ok_variant.refresh_from_db()
        self.assertEqual(self.ok_variant.stock, 20)

    def test_rejects_non_list(self):
        response = self.client.patch('/api/admin/inventory/', {'updates': 'nope'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid updates array')

    def test_unknown_variant_rolls_back(self):
        response = self.client.patch('/api/admin/inventory/', {
            'updates': [
                {'variant_id': self.ok_variant.id, 'stock': 1},
                {'variant_id': 999999, 'stock': 1},
            ]
        })
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.ok_variant.refresh_from_db()
        self.assertEqual(self.ok_variant.stock, 20)


class StockAdjustmentListTests(TestCase):
    """Test stock adjustment history endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())
        self.variant = TestDataFactory.create_variant(stock=10)
        self.other = TestDataFactory.create_variant(stock=10)
        record_stock_change(self.variant, 10, 8, reason=StockAdjustment.REASON_SALE)
        record_stock_change(self.variant, 8, 15, reason=StockAdjustment.REASON_RESTOCK)
        record_stock_change(self.other, 10, 9, reason=StockAdjustment.REASON_SALE)

    def test_list_all(self):
        response = self.client.get('/api/admin/inventory/adjustments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 3)

    def test_filters(self):
        response = self.client.get(f'/api/admin/inventory/adjustments/?variant_id={self.variant.id}')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/admin/inventory/adjustments/?reason=sale')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get(f'/api/admin/inventory/adjustments/?product_id={self.other.product_id}')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['quantity_change'], -1)

    def test_non_numeric_filter_rejected(self):
        response = self.client.get('/api/admin/inventory/adjustments/?variant_id=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'variant_id must be a number')


class CheckLowStockCommandTests(TestCase):
    """Test the check_low_stock management command"""

    def test_reports_low_and_out(self):
        TestDataFactory.create_variant(stock=2, min_stock=5)
        TestDataFactory.create_variant(stock=0, min_stock=5)
        TestDataFactory.create_variant(stock=50, min_stock=5)
        out = StringIO()
        call_command('check_low_stock', stdout=out)
        self.assertIn('Out of stock: 1, low stock: 1', out.getvalue())

    def test_fail_on_out(self):
        TestDataFactory.create_variant(stock=0, min_stock=5)
        with self.assertRaises(CommandError):
            call_command('check_low_stock', fail_on_out=True, stdout=StringIO())

    def test_all_good(self):
        TestDataFactory.create_variant(stock=50, min_stock=5)
        out = StringIO()
        call_command('check_low_stock', fail_on_out=True, stdout=out)
        self.assertIn('All variants are above their minimum stock.', out.getvalue())
