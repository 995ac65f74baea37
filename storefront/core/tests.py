"""
Test suite for Core module
Tests: registration, JWT login, current user, store settings, audit logs, helpers and commands
"""
from io import StringIO
from decimal import Decimal
from django.core.management import call_command
from django.test import TestCase, RequestFactory
from rest_framework import status
from storefront.core.models import StoreSettings, AuditLog, User
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.core.utils import create_audit_log, csv_response, get_client_ip, to_decimal, parse_bool

STRONG_PASSWORD = 'Str0ng-Passw0rd!'


class AuthTests(TestCase):
    """Test registration, login and the current user endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_returns_tokens(self):
        response = self.client.post('/api/auth/register/', {
            'email': 'Ayesha@Example.com',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
            'name': 'Ayesha',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['email'], 'ayesha@example.com')
        self.assertFalse(response.data['user']['is_staff'])
        self.assertTrue(User.objects.filter(username='ayesha@example.com').exists())

    def test_register_password_mismatch(self):
        response = self.client.post('/api/auth/register/', {
            'email': 'someone@example.com',
            'password': STRONG_PASSWORD,
            'password_confirm': 'different-Passw0rd!',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_register_duplicate_email(self):
        TestDataFactory.create_user(username='taken', email='taken@example.com')
        response = self.client.post('/api/auth/register/', {
            'email': 'TAKEN@example.com',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_login_returns_user_and_tokens(self):
        TestDataFactory.create_admin(username='boss', password=STRONG_PASSWORD)
        response = self.client.post('/api/auth/login/', {'username': 'boss', 'password': STRONG_PASSWORD})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertTrue(response.data['user']['is_staff'])

    def test_login_wrong_password(self):
        TestDataFactory.create_user(username='shopper', password=STRONG_PASSWORD)
        response = self.client.post('/api/auth/login/', {'username': 'shopper', 'password': 'nope'})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_reports_role(self):
        admin = TestDataFactory.create_admin()
        self.client.authenticate_user(admin)
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'ADMIN')
        self.assertTrue(response.data['is_admin'])

        customer = TestDataFactory.create_user()
        self.client.authenticate_user(customer)
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.data['role'], 'USER')

    def test_me_requires_authentication(self):
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class StoreSettingsTests(TestCase):
    """Test shop settings endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()

    def test_load_creates_defaults(self):
        store_settings = StoreSettings.load()
        self.assertEqual(store_settings.pk, 1)
        self.assertEqual(store_settings.free_shipping_threshold, Decimal('5000.00'))
        self.assertEqual(store_settings.shipping_fee, Decimal('250.00'))
        self.assertEqual(StoreSettings.load().pk, 1)
        self.assertEqual(StoreSettings.objects.count(), 1)

    def test_payment_settings_public(self):
        TestDataFactory.create_settings(bank_name='Test Bank', cod_enabled=False)
        response = self.client.get('/api/payment-settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['bank_name'], 'Test Bank')
        self.assertFalse(response.data['cod_enabled'])
        self.assertIn('free_shipping_threshold', response.data)

    def test_admin_settings_requires_staff(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/admin/settings/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_settings_update_is_audited(self):
        self.client.authenticate_user(self.admin)
        response = self.client.put('/api/admin/settings/', {'shipping_fee': '300.00', 'cod_enabled': False})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        store_settings = StoreSettings.load()
        self.assertEqual(store_settings.shipping_fee, Decimal('300.00'))
        self.assertFalse(store_settings.cod_enabled)
        self.assertEqual(store_settings.free_shipping_threshold, Decimal('5000.00'))
        self.assertTrue(AuditLog.objects.filter(action='settings_update').exists())

    def test_negative_fee_rejected(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch('/api/admin/settings/', {'shipping_fee': '-1'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_payment_settings_include_delivery_toggles(self):
        TestDataFactory.create_settings(always_free_delivery=True)
        response = self.client.get('/api/payment-settings/')
        self.assertTrue(response.data['always_free_delivery'])
        self.assertTrue(response.data['free_delivery_enabled'])

    def test_site_settings_public_defaults(self):
        response = self.client.get('/api/site-settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['hero_mode'], 'image')
        self.assertEqual(response.data['hero_title'], 'Discover Quality Products at Amazing Prices')
        self.assertEqual(response.data['hero_button1_link'], '/products')
        self.assertFalse(response.data['promo_banner_enabled'])
        self.assertEqual(response.data['feature_badges'], [])
        self.assertEqual(response.data['product_badge1_title'], 'Free Delivery')
        self.assertNotIn('bank_name', response.data)

    def test_admin_updates_homepage_content(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch('/api/admin/settings/', {
            'hero_mode': 'slider',
            'hero_slider_images': ['https://cdn.test/1.jpg', 'https://cdn.test/2.jpg'],
            'hero_title': 'Eid Collection',
            'promo_banner_enabled': True,
            'promo_banner_image': 'https://cdn.test/promo.jpg',
            'feature_badges': [{'icon': 'truck', 'title': 'Fast Delivery', 'subtitle': '2-3 days'}],
            'footer_email': 'hello@shop.test',
            'footer_social_links': [{'platform': 'instagram', 'url': 'https://instagram.com/shop'}],
            'product_badge2_enabled': False,
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        content = self.client.get('/api/site-settings/').data
        self.assertEqual(content['hero_mode'], 'slider')
        self.assertEqual(len(content['hero_slider_images']), 2)
        self.assertEqual(content['hero_title'], 'Eid Collection')
        self.assertTrue(content['promo_banner_enabled'])
        self.assertEqual(content['feature_badges'][0]['title'], 'Fast Delivery')
        self.assertEqual(content['footer_social_links'][0]['platform'], 'instagram')
        self.assertFalse(content['product_badge2_enabled'])
        self.assertEqual(StoreSettings.load().shipping_fee, Decimal('250.00'))
        self.assertTrue(AuditLog.objects.filter(action='settings_update').exists())

    def test_slider_image_limit(self):
        self.client.authenticate_user(self.admin)
        images = [f'https://cdn.test/{i}.jpg' for i in range(6)]
        response = self.client.patch('/api/admin/settings/', {'hero_slider_images': images})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['hero_slider_images'], ['Maximum 5 slider images allowed'])

    def test_slider_mode_needs_images(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch('/api/admin/settings/', {'hero_mode': 'slider'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('hero_slider_images', response.data)

    def test_malformed_badges_rejected(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch('/api/admin/settings/', {'feature_badges': [{'icon': 'truck'}]})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('feature_badges', response.data)

        response = self.client.patch('/api/admin/settings/', {'footer_social_links': 'instagram'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('footer_social_links', response.data)


class AuditLogTests(TestCase):
    """Test audit log helpers and endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_audit_log_skips_missing_fields(self):
        self.assertIsNone(create_audit_log(action='create', model_name=None, object_id=1))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_create_audit_log_with_user(self):
        log = create_audit_log(action='update', model_name='Product', object_id=7, user=self.admin,
                               changes={'price': '10'})
        self.assertEqual(log.user, self.admin)
        self.assertEqual(log.object_id, '7')

    def test_audit_log_list_filters(self):
        create_audit_log(action='create', model_name='Coupon', object_id=1, user=self.admin)
        create_audit_log(action='order_status', model_name='Order', object_id=2, user=self.admin,
                         object_reference='ZNX-ABC-1234')
        response = self.client.get('/api/admin/audit-logs/?action=order_status')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['object_reference'], 'ZNX-ABC-1234')

        response = self.client.get('/api/admin/audit-logs/?reference=ZNX-ABC-1234')
        self.assertEqual(len(response.data), 1)


class UtilsTests(TestCase):
    """Test request and export helpers"""

    def test_get_client_ip_prefers_forwarded_for(self):
        request = RequestFactory().get('/', HTTP_X_FORWARDED_FOR='10.0.0.1, 10.0.0.2', REMOTE_ADDR='127.0.0.1')
        self.assertEqual(get_client_ip(request), '10.0.0.1')

    def test_to_decimal(self):
        self.assertEqual(to_decimal('12.50'), Decimal('12.50'))
        self.assertIsNone(to_decimal('abc'))
        self.assertEqual(to_decimal('', default=Decimal('0')), Decimal('0'))

    def test_parse_bool(self):
        self.assertTrue(parse_bool('true'))
        self.assertTrue(parse_bool('1'))
        self.assertFalse(parse_bool('no'))
        self.assertFalse(parse_bool(None))

    def test_csv_response_escapes_values(self):
        response = csv_response('orders', ['Name', 'Notes'], [['Ali, Khan', 'said "hi"'], ['Sara', None]])
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('attachment; filename="orders-', response['Content-Disposition'])
        body = response.content.decode()
        self.assertEqual(body.splitlines(), ['Name,Notes', '"Ali, Khan","said ""hi"""', 'Sara,'])


class CreateAdminCommandTests(TestCase):
    """Test the create_admin management command"""

    def test_creates_staff_user(self):
        out = StringIO()
        call_command('create_admin', email='Owner@Shop.com', password='secret123', name='Owner', stdout=out)
        user = User.objects.get(email='owner@shop.com')
        self.assertTrue(user.is_staff)
        self.assertTrue(user.check_password('secret123'))
        self.assertIn('Admin user created', out.getvalue())

    def test_promotes_existing_user(self):
        user = TestDataFactory.create_user(email='customer@shop.com')
        call_command('create_admin', email='customer@shop.com', stdout=StringIO())
        user.refresh_from_db()
        self.assertTrue(user.is_staff)
