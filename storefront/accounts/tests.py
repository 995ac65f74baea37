"""
Comprehensive test suite for Accounts module
Tests: profile, saved addresses, wishlist toggle and admin customer list, detail and export
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from storefront.accounts.models import Address, WishlistItem
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ProfileTests(TestCase):
    """Test customer profile endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.customer = TestDataFactory.create_user(email='amna@test.com', name='Amna')
        self.client.authenticate_user(self.customer)

    def test_get_profile(self):
        response = self.client.get('/api/account/profile/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'amna@test.com')
        self.assertEqual(response.data['name'], 'Amna')

    def test_update_profile_email_read_only(self):
        response = self.client.patch('/api/account/profile/', {
            'name': 'Amna Khan', 'city': 'Karachi', 'email': 'other@test.com'
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.name, 'Amna Khan')
        self.assertEqual(self.customer.city, 'Karachi')
        self.assertEqual(self.customer.email, 'amna@test.com')

    def test_requires_login(self):
        self.client.logout()
        response = self.client.get('/api/account/profile/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class AddressTests(TestCase):
    """Test saved address endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.customer = TestDataFactory.create_user()
        self.client.authenticate_user(self.customer)

    def address_payload(self, **overrides):
        payload = {
            'name': 'Office',
            'address': 'Plot 5, Main Boulevard',
            'city': 'Lahore',
            'phone': '03111234567',
        }
        payload.update(overrides)
        return payload

    def test_create_and_list(self):
        response = self.client.post('/api/account/addresses/', self.address_payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get('/api/account/addresses/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['name'], 'Office')

    def test_single_default(self):
        first = TestDataFactory.create_address(self.customer, is_default=True)
        response = self.client.post('/api/account/addresses/', self.address_payload(is_default=True))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        first.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertEqual(Address.objects.filter(user=self.customer, is_default=True).count(), 1)

    def test_update_own_address(self):
        address = TestDataFactory.create_address(self.customer)
        response = self.client.patch(f'/api/account/addresses/{address.id}/', {'city': 'Islamabad'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        address.refresh_from_db()
        self.assertEqual(address.city, 'Islamabad')

    def test_other_users_address_not_found(self):
        address = TestDataFactory.create_address(TestDataFactory.create_user())
        response = self.client.delete(f'/api/account/addresses/{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Address.objects.filter(pk=address.pk).exists())

    def test_delete(self):
        address = TestDataFactory.create_address(self.customer)
        response = self.client.delete(f'/api/account/addresses/{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertFalse(Address.objects.filter(pk=address.pk).exists())


class WishlistTests(TestCase):
    """Test wishlist toggle"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.customer = TestDataFactory.create_user()
        self.client.authenticate_user(self.customer)
        self.product = TestDataFactory.create_product(name='Silk Scarf')

    def test_toggle(self):
        response = self.client.post('/api/wishlist/', {'product_id': self.product.id})
        self.assertEqual(response.data['action'], 'added')
        response = self.client.get('/api/wishlist/')
        self.assertEqual(response.data[0]['product']['name'], 'Silk Scarf')

        response = self.client.post('/api/wishlist/', {'product_id': self.product.id})
        self.assertEqual(response.data['action'], 'removed')
        self.assertFalse(WishlistItem.objects.filter(user=self.customer).exists())

    def test_requires_product_id(self):
        response = self.client.post('/api/wishlist/', {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_numeric_product_id(self):
        response = self.client.post('/api/wishlist/', {'product_id': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('product_id', response.data)

    def test_unknown_product(self):
        response = self.client.post('/api/wishlist/', {'product_id': 999999})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class AdminCustomerTests(TestCase):
    """Test admin customer endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)

        self.big_spender = TestDataFactory.create_user(name='Zara', email='zara@test.com')
        self.casual = TestDataFactory.create_user(name='Bilal', email='bilal@test.com')
        self.newcomer = TestDataFactory.create_user(name='Hina', email='hina@test.com')
        TestDataFactory.create_order(user=self.big_spender, total=Decimal('9000.00'))
        TestDataFactory.create_order(user=self.big_spender, total=Decimal('1000.00'))
        TestDataFactory.create_order(user=self.casual, total=Decimal('500.00'))

    def test_requires_staff(self):
        self.client.authenticate_user(self.casual)
        response = self.client.get('/api/admin/customers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_excludes_staff(self):
        response = self.client.get('/api/admin/customers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 3)
        emails = [row['email'] for row in response.data['customers']]
        self.assertNotIn(self.admin.email, emails)

    def test_aggregates_and_sorting(self):
        response = self.client.get('/api/admin/customers/?sort_by=totalSpent&sort_order=desc')
        rows = response.data['customers']
        self.assertEqual([row['name'] for row in rows], ['Zara', 'Bilal', 'Hina'])
        self.assertEqual(rows[0]['order_count'], 2)
        self.assertEqual(rows[0]['total_spent'], '10000.00')
        self.assertEqual(rows[2]['total_spent'], '0.00')
        self.assertIsNone(rows[2]['last_order'])

        response = self.client.get('/api/admin/customers/?sort_by=name&sort_order=asc')
        self.assertEqual([row['name'] for row in response.data['customers']], ['Bilal', 'Hina', 'Zara'])

    def test_search(self):
        response = self.client.get('/api/admin/customers/?search=hina')
        self.assertEqual([row['email'] for row in response.data['customers']], ['hina@test.com'])

    def test_detail(self):
        TestDataFactory.create_address(self.big_spender, name='Home', is_default=True)
        response = self.client.get(f'/api/admin/customers/{self.big_spender.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['customer']['email'], 'zara@test.com')
        self.assertEqual(len(response.data['orders']), 2)
        self.assertEqual(response.data['addresses'], ['House 1, Street 2, Test Town, Lahore'])
        self.assertEqual(len(response.data['saved_addresses']), 1)
        self.assertEqual(response.data['stats']['total_orders'], 2)
        self.assertEqual(response.data['stats']['total_spent'], '10000.00')
        self.assertEqual(response.data['stats']['average_order_value'], '5000.00')

    def test_detail_of_staff_is_404(self):
        response = self.client.get(f'/api/admin/customers/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_export(self):
        response = self.client.get('/api/admin/customers/export/?sort_by=name&sort_order=asc')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        lines = response.content.decode().splitlines()
        self.assertEqual(lines[0], 'Name,Email,Phone,City,Orders,Total Spent,Last Order,Joined')
        self.assertEqual(len(lines), 4)
        self.assertTrue(lines[1].startswith('Bilal,bilal@test.com,N/A,N/A,1,500.00,'))
