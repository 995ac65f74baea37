"""
Comprehensive test suite for Pricing module
Tests: discount and totals formulas, coupon validation, cart resolution, coupon admin and checkout quote endpoints
"""
from datetime import timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.pricing.models import Coupon
from storefront.pricing.services import (
    CartLine, CouponError, CartError, build_cart_lines, calculate_totals,
    calculate_totals_for_store, claim_coupon_use, compute_discount, money, validate_coupon
)


class TotalsCalculationTests(TestCase):
    """Test subtotal, shipping, discount and total rules"""

    def test_money_rounds_half_up(self):
        self.assertEqual(money(Decimal('1.005')), Decimal('1.01'))
        self.assertEqual(money('2'), Decimal('2.00'))

    def test_compute_discount(self):
        self.assertEqual(compute_discount(Coupon.TYPE_FIXED_AMOUNT, Decimal('300'), Decimal('1000')), Decimal('300.00'))
        self.assertEqual(compute_discount(Coupon.TYPE_PERCENTAGE, Decimal('10'), Decimal('1234.55')), Decimal('123.46'))

    def test_shipping_charged_below_threshold(self):
        totals = calculate_totals([CartLine(Decimal('1200.00'), 2)])
        self.assertEqual(totals.subtotal, Decimal('2400.00'))
        self.assertEqual(totals.shipping, Decimal('250.00'))
        self.assertEqual(totals.discount, Decimal('0.00'))
        self.assertEqual(totals.total, Decimal('2650.00'))
        self.assertIsNone(totals.coupon_code)

    def test_free_shipping_at_threshold(self):
        totals = calculate_totals([CartLine(Decimal('2500.00'), 2)])
        self.assertEqual(totals.subtotal, Decimal('5000.00'))
        self.assertEqual(totals.shipping, Decimal('0.00'))
        self.assertEqual(totals.total, Decimal('5000.00'))

    def test_percentage_coupon(self):
        coupon = TestDataFactory.create_coupon(code='TEN', value=Decimal('10'))
        totals = calculate_totals([CartLine(Decimal('3000.00'), 1)], coupon=coupon)
        self.assertEqual(totals.discount, Decimal('300.00'))
        self.assertEqual(totals.total, Decimal('2950.00'))
        self.assertEqual(totals.coupon_code, 'TEN')

    def test_total_never_negative(self):
        coupon = TestDataFactory.create_coupon(type=Coupon.TYPE_FIXED_AMOUNT, value=Decimal('5000'))
        totals = calculate_totals([CartLine(Decimal('100.00'), 1)], coupon=coupon)
        self.assertEqual(totals.total, Decimal('0.00'))

    def test_uses_store_settings(self):
        store_settings = TestDataFactory.create_settings(free_shipping_threshold=Decimal('1000'),
                                                         shipping_fee=Decimal('99'))
        totals = calculate_totals_for_store([CartLine(Decimal('500.00'), 1)], store_settings=store_settings)
        self.assertEqual(totals.shipping, Decimal('99.00'))
        totals = calculate_totals_for_store([CartLine(Decimal('500.00'), 2)], store_settings=store_settings)
        self.assertEqual(totals.shipping, Decimal('0.00'))

    def test_always_free_delivery(self):
        totals = calculate_totals([CartLine(Decimal('100.00'), 1)], always_free_delivery=True)
        self.assertEqual(totals.shipping, Decimal('0.00'))
        self.assertEqual(totals.total, Decimal('100.00'))

    def test_threshold_ignored_when_free_delivery_disabled(self):
        totals = calculate_totals([CartLine(Decimal('9000.00'), 1)], free_delivery_enabled=False)
        self.assertEqual(totals.shipping, Decimal('250.00'))
        self.assertEqual(totals.total, Decimal('9250.00'))

    def test_delivery_toggles_from_store_settings(self):
        store_settings = TestDataFactory.create_settings(free_delivery_enabled=False)
        totals = calculate_totals_for_store([CartLine(Decimal('6000.00'), 1)], store_settings=store_settings)
        self.assertEqual(totals.shipping, Decimal('250.00'))
        store_settings = TestDataFactory.create_settings(always_free_delivery=True)
        totals = calculate_totals_for_store([CartLine(Decimal('10.00'), 1)], store_settings=store_settings)
        self.assertEqual(totals.shipping, Decimal('0.00'))

    def test_as_dict_uses_strings(self):
        data = calculate_totals([CartLine(Decimal('10.00'), 1)]).as_dict()
        self.assertEqual(data['subtotal'], '10.00')
        self.assertEqual(data['total'], '260.00')


class CouponValidationTests(TestCase):
    """Test coupon validation order and messages"""

    def assertCouponError(self, code, message, status_code=status.HTTP_400_BAD_REQUEST):
        with self.assertRaises(CouponError) as ctx:
            validate_coupon(code)
        self.assertEqual(ctx.exception.message, message)
        self.assertEqual(ctx.exception.status_code, status_code)

    def test_valid_coupon_case_insensitive(self):
        TestDataFactory.create_coupon(code='SUMMER')
        self.assertEqual(validate_coupon(' summer ').code, 'SUMMER')

    def test_empty_code(self):
        self.assertCouponError('', 'Code is required')

    def test_unknown_code(self):
        self.assertCouponError('NOPE', 'Invalid coupon code', status.HTTP_404_NOT_FOUND)

    def test_inactive(self):
        TestDataFactory.create_coupon(code='OFF', is_active=False)
        self.assertCouponError('OFF', 'Coupon is inactive')

    def test_not_started(self):
        TestDataFactory.create_coupon(code='SOON', start_date=timezone.now() + timedelta(days=1))
        self.assertCouponError('SOON', 'Coupon not yet active')

    def test_expired(self):
        TestDataFactory.create_coupon(code='OLD', end_date=timezone.now() - timedelta(days=1))
        self.assertCouponError('OLD', 'Coupon expired')

    def test_usage_limit_reached(self):
        TestDataFactory.create_coupon(code='ONCE', usage_limit=1, used_count=1)
        self.assertCouponError('ONCE', 'Coupon usage limit reached')

    def test_inactive_checked_before_expiry(self):
        TestDataFactory.create_coupon(code='BOTH', is_active=False, end_date=timezone.now() - timedelta(days=1))
        self.assertCouponError('BOTH', 'Coupon is inactive')

    def test_claim_counts_one_use(self):
        coupon = TestDataFactory.create_coupon(code='TWICE', usage_limit=2, used_count=1)
        claim_coupon_use(coupon)
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 2)

    def test_claim_fails_when_last_use_taken_meanwhile(self):
        TestDataFactory.create_coupon(code='LAST', usage_limit=1)
        coupon = validate_coupon('LAST')
        Coupon.objects.filter(pk=coupon.pk).update(used_count=1)
        with self.assertRaises(CouponError) as ctx:
            claim_coupon_use(coupon)
        self.assertEqual(ctx.exception.message, 'Coupon usage limit reached')
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)

    def test_claim_without_limit(self):
        coupon = TestDataFactory.create_coupon(code='OPEN', used_count=40)
        claim_coupon_use(coupon)
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 41)


class CartLineTests(TestCase):
    """Test resolving cart items into priced lines"""

    def setUp(self):
        self.product = TestDataFactory.create_product(price=Decimal('1500.00'))
        self.variant = TestDataFactory.create_variant(product=self.product, price_modifier=Decimal('250.00'))

    def test_prices_come_from_database(self):
        lines = build_cart_lines([{'product_id': self.product.id, 'variant_id': self.variant.id, 'quantity': 2}])
        self.assertEqual(lines[0].unit_price, Decimal('1750.00'))
        self.assertEqual(lines[0].line_total, Decimal('3500.00'))

    def test_product_without_variants(self):
        plain = TestDataFactory.create_product(price=Decimal('300.00'))
        lines = build_cart_lines([{'product_id': plain.id, 'quantity': 1}])
        self.assertIsNone(lines[0].variant)
        self.assertEqual(lines[0].unit_price, Decimal('300.00'))

    def test_empty_cart(self):
        with self.assertRaises(CartError):
            build_cart_lines([])

    def test_variant_required(self):
        with self.assertRaises(CartError) as ctx:
            build_cart_lines([{'product_id': self.product.id, 'quantity': 1}])
        self.assertIn('Please select a variant', ctx.exception.message)

    def test_variant_of_other_product(self):
        foreign = TestDataFactory.create_variant()
        with self.assertRaises(CartError) as ctx:
            build_cart_lines([{'product_id': self.product.id, 'variant_id': foreign.id, 'quantity': 1}])
        self.assertEqual(ctx.exception.status_code, status.HTTP_404_NOT_FOUND)

    def test_inactive_product(self):
        self.product.is_active = False
        self.product.save()
        with self.assertRaises(CartError) as ctx:
            build_cart_lines([{'product_id': self.product.id, 'variant_id': self.variant.id, 'quantity': 1}])
        self.assertEqual(ctx.exception.status_code, status.HTTP_404_NOT_FOUND)


class CouponAdminTests(TestCase):
    """Test admin coupon endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())

    def test_requires_staff(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/admin/coupons/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_uppercases_code(self):
        response = self.client.post('/api/admin/coupons/', {'code': 'eid25', 'type': 'PERCENTAGE', 'value': '25'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'EID25')
        self.assertEqual(response.data['used_count'], 0)
        self.assertTrue(AuditLog.objects.filter(model_name='Coupon', action='create').exists())

    def test_create_requires_code_and_value(self):
        response = self.client.post('/api/admin/coupons/', {'code': 'X'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['value'], ['Value is required'])

        response = self.client.post('/api/admin/coupons/', {'code': '  ', 'value': '10'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], ['Code is required'])

    def test_create_duplicate_code(self):
        TestDataFactory.create_coupon(code='EID25')
        response = self.client.post('/api/admin/coupons/', {'code': 'eid25', 'value': '10'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Coupon code already exists')

    def test_percentage_over_100_rejected(self):
        response = self.client.post('/api/admin/coupons/', {'code': 'BIG', 'type': 'PERCENTAGE', 'value': '150'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('value', response.data)

    def test_end_before_start_rejected(self):
        now = timezone.now()
        response = self.client.post('/api/admin/coupons/', {
            'code': 'WINDOW', 'value': '5',
            'start_date': (now + timedelta(days=5)).isoformat(),
            'end_date': now.isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('end_date', response.data)

    def test_toggle_is_audited(self):
        coupon = TestDataFactory.create_coupon()
        response = self.client.patch(f'/api/admin/coupons/{coupon.id}/', {'is_active': False})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        coupon.refresh_from_db()
        self.assertFalse(coupon.is_active)
        log = AuditLog.objects.get(action='coupon_toggle')
        self.assertEqual(log.changes['is_active'], {'old': True, 'new': False})

    def test_list_filter_active(self):
        TestDataFactory.create_coupon(code='ON')
        TestDataFactory.create_coupon(code='OFF', is_active=False)
        response = self.client.get('/api/admin/coupons/?is_active=true')
        self.assertEqual([row['code'] for row in response.data], ['ON'])

    def test_delete(self):
        coupon = TestDataFactory.create_coupon()
        response = self.client.delete(f'/api/admin/coupons/{coupon.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertFalse(Coupon.objects.filter(pk=coupon.pk).exists())


class CheckoutPricingEndpointTests(TestCase):
    """Test coupon validation and quote endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(price=Decimal('2000.00'))
        self.variant = TestDataFactory.create_variant(product=self.product, stock=7)

    def test_validate_coupon_ok(self):
        TestDataFactory.create_coupon(code='FLAT500', type=Coupon.TYPE_FIXED_AMOUNT, value=Decimal('500'))
        response = self.client.post('/api/checkout/validate-coupon/', {'code': 'flat500'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['valid'])
        self.assertEqual(response.data['coupon'], {'code': 'FLAT500', 'type': 'FIXED_AMOUNT', 'value': '500.00'})

    def test_validate_coupon_unknown(self):
        response = self.client.post('/api/checkout/validate-coupon/', {'code': 'missing'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['valid'])
        self.assertEqual(response.data['error'], 'Invalid coupon code')

    def test_quote(self):
        TestDataFactory.create_coupon(code='TEN', value=Decimal('10'))
        response = self.client.post('/api/checkout/quote/', {
            'items': [{'product_id': self.product.id, 'variant_id': self.variant.id, 'quantity': 2}],
            'coupon_code': 'ten',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['subtotal'], '4000.00')
        self.assertEqual(response.data['shipping'], '250.00')
        self.assertEqual(response.data['discount'], '400.00')
        self.assertEqual(response.data['total'], '3850.00')
        self.assertEqual(response.data['items'][0]['available_stock'], 7)

    def test_quote_empty_cart(self):
        response = self.client.post('/api/checkout/quote/', {'items': []})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
