"""
Comprehensive test suite for Orders module
Tests: order numbers, tracking timeline, checkout (stock, coupons, payment methods), tracking lookup,
account history and admin order management
"""
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework import status
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.inventory.models import StockAdjustment
from storefront.orders.models import Order, OrderItem
from storefront.orders.utils import build_order_number, generate_order_number, order_timeline, to_base36


class OrderNumberTests(TestCase):
    """Test order number format"""

    def test_to_base36(self):
        self.assertEqual(to_base36(0), '0')
        self.assertEqual(to_base36(35), 'Z')
        self.assertEqual(to_base36(36), '10')

    def test_build_order_number_format(self):
        order_number = build_order_number(timestamp_ms=1700000000000)
        self.assertTrue(order_number.startswith(f"ZNX-{to_base36(1700000000000)}-"))
        self.assertRegex(order_number, r'^ZNX-[0-9A-Z]+-[0-9A-Z]{4}$')

    @override_settings(STOREFRONT={'ORDER_NUMBER_PREFIX': 'SHOP'})
    def test_prefix_from_settings(self):
        self.assertTrue(build_order_number().startswith('SHOP-'))

    def test_generate_order_number_is_unique(self):
        existing = TestDataFactory.create_order()
        self.assertNotEqual(generate_order_number(), existing.order_number)


class TimelineTests(TestCase):
    """Test tracking timeline steps"""

    def test_shipped(self):
        timeline = order_timeline(Order.STATUS_SHIPPED)
        self.assertEqual(timeline['current_index'], 3)
        self.assertFalse(timeline['cancelled'])
        completed = [step['status'] for step in timeline['steps'] if step['completed']]
        self.assertEqual(completed, ['PENDING', 'CONFIRMED', 'PROCESSING', 'SHIPPED'])
        current = [step['status'] for step in timeline['steps'] if step['current']]
        self.assertEqual(current, ['SHIPPED'])

    def test_pending(self):
        timeline = order_timeline(Order.STATUS_PENDING)
        self.assertEqual(timeline['current_index'], 0)
        self.assertEqual(sum(1 for step in timeline['steps'] if step['completed']), 1)

    def test_cancelled(self):
        timeline = order_timeline(Order.STATUS_CANCELLED)
        self.assertTrue(timeline['cancelled'])
        self.assertEqual(timeline['current_index'], -1)
        self.assertFalse(any(step['completed'] or step['current'] for step in timeline['steps']))


class CheckoutTests(TestCase):
    """Test placing orders through the checkout endpoint"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(name='Kurta', price=Decimal('2000.00'))
        self.variant = TestDataFactory.create_variant(product=self.product, size='M', color='White', stock=5,
                                                      price_modifier=Decimal('100.00'))

    def test_guest_checkout(self):
        payload = TestDataFactory.checkout_payload([(self.product, self.variant, 2)])
        response = self.client.post('/api/orders/', payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.assertRegex(response.data['order_number'], r'^ZNX-')
        self.assertEqual(response.data['subtotal'], '4200.00')
        self.assertEqual(response.data['shipping'], '250.00')
        self.assertEqual(response.data['total'], '4450.00')
        self.assertEqual(response.data['status'], Order.STATUS_PENDING)
        self.assertIsNone(response.data['user'])
        self.assertEqual(response.data['items'][0]['variant_label'], 'M / White')
        self.assertEqual(response.data['items'][0]['price'], '2100.00')

        self.variant.refresh_from_db()
        self.assertEqual(self.variant.stock, 3)
        adjustment = StockAdjustment.objects.get(variant=self.variant)
        self.assertEqual(adjustment.reason, StockAdjustment.REASON_SALE)
        self.assertEqual(adjustment.quantity_change, -2)
        self.assertTrue(AuditLog.objects.filter(action='order_create',
                                                object_reference=response.data['order_number']).exists())

    def test_logged_in_checkout_links_user(self):
        customer = TestDataFactory.create_user()
        self.client.authenticate_user(customer)
        response = self.client.post('/api/orders/', TestDataFactory.checkout_payload([(self.product, self.variant, 1)]))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Order.objects.get(pk=response.data['id']).user, customer)

    def test_client_prices_are_ignored(self):
        payload = TestDataFactory.checkout_payload([(self.product, self.variant, 1)], total='1.00', subtotal='1.00')
        payload['items'][0]['price'] = '1.00'
        response = self.client.post('/api/orders/', payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['subtotal'], '2100.00')

    def test_free_shipping_and_coupon(self):
        coupon = TestDataFactory.create_coupon(code='SAVE10', value=Decimal('10'), usage_limit=5)
        payload = TestDataFactory.checkout_payload([(self.product, self.variant, 3)], coupon_code='save10')
        response = self.client.post('/api/orders/', payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['subtotal'], '6300.00')
        self.assertEqual(response.data['shipping'], '0.00')
        self.assertEqual(response.data['discount'], '630.00')
        self.assertEqual(response.data['total'], '5670.00')
        self.assertEqual(response.data['coupon_code'], 'SAVE10')
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)

    def test_always_free_delivery(self):
        TestDataFactory.create_settings(always_free_delivery=True)
        response = self.client.post('/api/orders/', TestDataFactory.checkout_payload([(self.product, self.variant, 1)]))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['shipping'], '0.00')
        self.assertEqual(response.data['total'], '2100.00')

    def test_invalid_coupon_rejects_order(self):
        TestDataFactory.create_coupon(code='USED', usage_limit=1, used_count=1)
        payload = TestDataFactory.checkout_payload([(self.product, self.variant, 1)], coupon_code='USED')
        response = self.client.post('/api/orders/', payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Coupon usage limit reached')
        self.assertEqual(Order.objects.count(), 0)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.stock, 5)

    def test_insufficient_stock(self):
        payload = TestDataFactory.checkout_payload([(self.product, self.variant, 6)])
        response = self.client.post('/api/orders/', payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Insufficient stock', response.data['error'])
        self.assertEqual(Order.objects.count(), 0)

    def test_stock_summed_across_lines(self):
        payload = TestDataFactory.checkout_payload([(self.product, self.variant, 3), (self.product, self.variant, 3)])
        response = self.client.post('/api/orders/', payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.stock, 5)

    def test_disabled_payment_method(self):
        TestDataFactory.create_settings(cod_enabled=False)
        response = self.client.post('/api/orders/', TestDataFactory.checkout_payload([(self.product, self.variant, 1)]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cash on delivery is not available')

        payload = TestDataFactory.checkout_payload([(self.product, self.variant, 1)],
                                                   payment_method=Order.PAYMENT_BANK_TRANSFER)
        response = self.client.post('/api/orders/', payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_validation_errors(self):
        payload = TestDataFactory.checkout_payload([(self.product, self.variant, 1)],
                                                   customer_email='not-an-email', customer_phone='123')
        response = self.client.post('/api/orders/', payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer_email', response.data)
        self.assertIn('customer_phone', response.data)

        response = self.client.post('/api/orders/', TestDataFactory.checkout_payload([]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_missing_variant_selection(self):
        payload = TestDataFactory.checkout_payload([(self.product, None, 1)])
        response = self.client.post('/api/orders/', payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Please select a variant', response.data['error'])


class TrackingTests(TestCase):
    """Test public order tracking and account order history"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.customer = TestDataFactory.create_user()
        product = TestDataFactory.create_product(name='Shawl')
        variant = TestDataFactory.create_variant(product=product)
        self.order = TestDataFactory.create_order(user=self.customer, status=Order.STATUS_PROCESSING,
                                                  items=[(product, variant, 2)])

    def test_tracking_by_order_number(self):
        response = self.client.get(f'/api/tracking/?id={self.order.order_number.lower()}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_number'], self.order.order_number)
        self.assertEqual(response.data['timeline']['current_index'], 2)
        self.assertEqual(response.data['items'][0]['name'], 'Shawl')
        self.assertNotIn('customer_email', response.data)

    def test_tracking_requires_id(self):
        response = self.client.get('/api/tracking/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_tracking_not_found(self):
        response = self.client.get('/api/tracking/?id=ZNX-NOPE-0000')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Order not found')

    def test_account_orders_only_own(self):
        TestDataFactory.create_order(user=TestDataFactory.create_user())
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/account/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [self.order.id])

    def test_account_orders_requires_login(self):
        response = self.client.get('/api/account/orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_item_snapshot_survives_product_delete(self):
        item = self.order.items.get()
        item.product.delete()
        item.refresh_from_db()
        self.assertIsNone(item.product)
        self.assertEqual(item.product_name, 'Shawl')


class AdminOrderTests(TestCase):
    """Test admin order endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)
        self.product = TestDataFactory.create_product(name='Scarf')
        self.variant = TestDataFactory.create_variant(product=self.product)
        self.pending = TestDataFactory.create_order(items=[(self.product, self.variant, 1)])
        self.shipped = TestDataFactory.create_order(status=Order.STATUS_SHIPPED,
                                                    items=[(self.product, self.variant, 3)])

    def test_requires_staff(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/admin/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_with_status_counts(self):
        response = self.client.get('/api/admin/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['status_counts'], {'PENDING': 1, 'SHIPPED': 1})
        counts = {row['id']: row['item_count'] for row in response.data['results']}
        self.assertEqual(counts[self.shipped.id], 3)

    def test_list_filters(self):
        response = self.client.get('/api/admin/orders/?status=shipped')
        self.assertEqual([row['id'] for row in response.data['results']], [self.shipped.id])

        response = self.client.get('/api/admin/orders/?status=ALL')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get(f'/api/admin/orders/?search={self.pending.order_number[-4:]}')
        self.assertIn(self.pending.id, [row['id'] for row in response.data['results']])

    def test_detail(self):
        response = self.client.get(f'/api/admin/orders/{self.pending.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['items']), 1)

    def test_status_update_is_audited(self):
        response = self.client.patch(f'/api/admin/orders/{self.pending.id}/status/', {
            'status': 'confirmed', 'courier': 'TCS', 'tracking_id': 'TCS123'
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.status, Order.STATUS_CONFIRMED)
        self.assertEqual(self.pending.tracking_id, 'TCS123')
        log = AuditLog.objects.get(action='order_status')
        self.assertEqual(log.object_reference, self.pending.order_number)
        self.assertEqual(log.changes['status'], {'old': 'PENDING', 'new': 'CONFIRMED'})

    def test_any_transition_allowed(self):
        response = self.client.put(f'/api/admin/orders/{self.shipped.id}/status/', {'status': 'PENDING'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.shipped.refresh_from_db()
        self.assertEqual(self.shipped.status, Order.STATUS_PENDING)

    def test_invalid_status(self):
        response = self.client.patch(f'/api/admin/orders/{self.pending.id}/status/', {'status': 'LOST'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid status')

    def test_cancel_does_not_restock(self):
        self.variant.refresh_from_db()
        stock = self.variant.stock
        self.client.patch(f'/api/admin/orders/{self.pending.id}/status/', {'status': 'CANCELLED'})
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.stock, stock)

    def test_delete(self):
        response = self.client.delete(f'/api/admin/orders/{self.pending.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Order.objects.filter(pk=self.pending.pk).exists())
        self.assertFalse(OrderItem.objects.filter(order_id=self.pending.pk).exists())

    def test_bulk_delete(self):
        response = self.client.post('/api/admin/orders/bulk-delete/', {'ids': [self.pending.id, self.shipped.id]})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deleted'], 2)
        self.assertEqual(Order.objects.count(), 0)

    def test_bulk_delete_requires_ids(self):
        response = self.client.post('/api/admin/orders/bulk-delete/', {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['ids'], ['No IDs provided'])

    def test_bulk_delete_rejects_non_integer_ids(self):
        response = self.client.post('/api/admin/orders/bulk-delete/', {'ids': ['abc']})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('ids', response.data)
        self.assertEqual(Order.objects.count(), 2)

    def test_export(self):
        response = self.client.get('/api/admin/orders/export/?status=SHIPPED')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        lines = response.content.decode().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[1].startswith(self.shipped.order_number))
        self.assertIn('Scarf (M / Black) x3', lines[1])
