"""
Comprehensive test suite for Catalog module
Tests: storefront listing and detail, reviews, admin category and product CRUD, bulk delete, export and slugs
"""
from io import StringIO
from decimal import Decimal
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from storefront.catalog.models import Category, Product, ProductVariant, Review
from storefront.catalog.utils import generate_unique_slug, variant_label
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.orders.models import Order


class CatalogUtilsTests(TestCase):
    """Test slug and label helpers"""

    def test_generate_unique_slug_appends_counter(self):
        TestDataFactory.create_category(name='Shirts', slug='shirts')
        self.assertEqual(generate_unique_slug(Category, 'Shirts'), 'shirts-2')
        TestDataFactory.create_category(name='Shirts again', slug='shirts-2')
        self.assertEqual(generate_unique_slug(Category, 'Shirts'), 'shirts-3')

    def test_generate_unique_slug_excludes_self(self):
        category = TestDataFactory.create_category(name='Shoes', slug='shoes')
        self.assertEqual(generate_unique_slug(Category, 'Shoes', exclude_pk=category.pk), 'shoes')

    def test_variant_label(self):
        self.assertEqual(variant_label('M', 'Red'), 'M / Red')
        self.assertEqual(variant_label(None, 'Red'), 'Red')
        self.assertEqual(variant_label(None, None), 'Default')


class StorefrontCatalogTests(TestCase):
    """Test public category and product endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.shirts = TestDataFactory.create_category(name='Shirts', slug='shirts')
        self.shoes = TestDataFactory.create_category(name='Shoes', slug='shoes')

        self.cheap = TestDataFactory.create_product(name='Basic Tee', price=Decimal('800.00'), category=self.shirts)
        TestDataFactory.create_variant(product=self.cheap, stock=3)
        self.pricey = TestDataFactory.create_product(name='Linen Shirt', price=Decimal('4500.00'),
                                                     category=self.shirts, featured=True)
        TestDataFactory.create_variant(product=self.pricey, stock=0)
        self.sneaker = TestDataFactory.create_product(name='Runner', price=Decimal('9000.00'), category=self.shoes)
        TestDataFactory.create_variant(product=self.sneaker, stock=2)
        self.hidden = TestDataFactory.create_product(name='Hidden Tee', category=self.shirts, is_active=False)

    def test_category_list_counts_active_products(self):
        response = self.client.get('/api/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        counts = {row['slug']: row['product_count'] for row in response.data}
        self.assertEqual(counts['shirts'], 2)
        self.assertEqual(counts['shoes'], 1)

    def test_product_list_excludes_inactive(self):
        response = self.client.get('/api/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 3)
        names = [row['name'] for row in response.data['results']]
        self.assertNotIn('Hidden Tee', names)

    def test_product_list_filters(self):
        response = self.client.get('/api/products/?category=shirts')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/products/?min_price=1000&max_price=5000')
        self.assertEqual([row['name'] for row in response.data['results']], ['Linen Shirt'])

        response = self.client.get('/api/products/?featured=true')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/products/?in_stock=true')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/products/?search=runner')
        self.assertEqual(response.data['results'][0]['id'], self.sneaker.id)

    def test_product_list_sorting_and_pagination(self):
        response = self.client.get('/api/products/?sort=price_asc')
        prices = [Decimal(row['price']) for row in response.data['results']]
        self.assertEqual(prices, sorted(prices))

        response = self.client.get('/api/products/?sort=price_desc&limit=2&page=2')
        self.assertEqual(response.data['page'], 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(len(response.data['results']), 1)
        self.assertEqual(response.data['results'][0]['name'], 'Basic Tee')
        self.assertIsNone(response.data['next'])
        self.assertEqual(response.data['previous'], 1)

    def test_product_list_in_stock_flag(self):
        response = self.client.get('/api/products/?sort=name')
        in_stock = {row['name']: row['in_stock'] for row in response.data['results']}
        self.assertTrue(in_stock['Basic Tee'])
        self.assertFalse(in_stock['Linen Shirt'])

    def test_product_detail_by_slug(self):
        response = self.client.get(f'/api/products/{self.cheap.slug}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Basic Tee')
        self.assertEqual(len(response.data['variants']), 1)
        self.assertEqual(response.data['variants'][0]['label'], 'M / Black')
        related = [row['id'] for row in response.data['related_products']]
        self.assertEqual(related, [self.pricey.id])

    def test_product_detail_inactive_is_404(self):
        response = self.client.get(f'/api/products/{self.hidden.slug}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ReviewTests(TestCase):
    """Test review listing, submission and eligibility"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product()
        self.variant = TestDataFactory.create_variant(product=self.product)
        self.payload = {'rating': 4, 'title': 'Nice', 'comment': 'Fits well and the fabric is soft.'}

    def deliver(self):
        return TestDataFactory.create_order(
            user=self.customer, status=Order.STATUS_DELIVERED, items=[(self.product, self.variant, 1)]
        )

    def test_list_reviews_with_average(self):
        TestDataFactory.create_review(TestDataFactory.create_user(), self.product, rating=5)
        TestDataFactory.create_review(TestDataFactory.create_user(), self.product, rating=4)
        response = self.client.get(f'/api/reviews/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['average_rating'], 4.5)

    def test_submit_requires_login(self):
        response = self.client.post(f'/api/reviews/{self.product.id}/', self.payload)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_submit_requires_delivered_purchase(self):
        TestDataFactory.create_order(user=self.customer, status=Order.STATUS_SHIPPED,
                                     items=[(self.product, self.variant, 1)])
        self.client.authenticate_user(self.customer)
        response = self.client.post(f'/api/reviews/{self.product.id}/', self.payload)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_submit_review(self):
        self.deliver()
        self.client.authenticate_user(self.customer)
        response = self.client.post(f'/api/reviews/{self.product.id}/', self.payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Review.objects.filter(product=self.product, user=self.customer).count(), 1)

        response = self.client.post(f'/api/reviews/{self.product.id}/', self.payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_submit_review_validation(self):
        self.deliver()
        self.client.authenticate_user(self.customer)
        response = self.client.post(f'/api/reviews/{self.product.id}/', {'rating': 6, 'comment': 'short'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rating', response.data)
        self.assertIn('comment', response.data)

    def test_can_review_reasons(self):
        url = f'/api/reviews/can-review/{self.product.id}/'
        self.assertEqual(self.client.get(url).data['reason'], 'not_logged_in')

        self.client.authenticate_user(self.customer)
        self.assertEqual(self.client.get(url).data['reason'], 'no_purchase')

        self.deliver()
        response = self.client.get(url)
        self.assertTrue(response.data['can_review'])
        self.assertEqual(response.data['reason'], 'eligible')

        TestDataFactory.create_review(self.customer, self.product)
        self.assertEqual(self.client.get(url).data['reason'], 'already_reviewed')


class AdminCategoryTests(TestCase):
    """Test admin category endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())

    def test_requires_staff(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/admin/categories/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_generates_slug(self):
        TestDataFactory.create_category(name='Bags', slug='bags')
        response = self.client.post('/api/admin/categories/', {'name': 'Bags'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'bags-2')
        self.assertTrue(AuditLog.objects.filter(model_name='Category', action='create').exists())

    def test_create_rejects_duplicate_slug(self):
        TestDataFactory.create_category(name='Bags', slug='bags')
        response = self.client.post('/api/admin/categories/', {'name': 'Other', 'slug': 'bags'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_category(self):
        category = TestDataFactory.create_category(name='Hats', slug='hats')
        response = self.client.patch(f'/api/admin/categories/{category.id}/', {'description': 'Caps and hats'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        category.refresh_from_db()
        self.assertEqual(category.description, 'Caps and hats')
        self.assertEqual(category.slug, 'hats')

    def test_delete_category_with_products_rejected(self):
        category = TestDataFactory.create_category()
        TestDataFactory.create_product(category=category)
        response = self.client.delete(f'/api/admin/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Category.objects.filter(pk=category.pk).exists())

    def test_delete_empty_category(self):
        category = TestDataFactory.create_category()
        response = self.client.delete(f'/api/admin/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Category.objects.filter(pk=category.pk).exists())


class AdminProductTests(TestCase):
    """Test admin product endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)
        self.category = TestDataFactory.create_category()

    def product_payload(self, **overrides):
        payload = {
            'name': 'Denim Jacket',
            'description': 'Classic fit',
            'price': '6500.00',
            'compare_price': '7500.00',
            'images': ['https://cdn.test/jacket.jpg'],
            'category': self.category.id,
            'variants': [
                {'size': 'M', 'color': 'Blue', 'sku': 'DJ-M-BLU', 'stock': 4},
                {'size': 'L', 'color': 'Blue', 'sku': 'DJ-L-BLU', 'stock': 2, 'price_modifier': '200.00'},
            ],
        }
        payload.update(overrides)
        return payload

    def test_create_product_with_variants(self):
        response = self.client.post('/api/admin/products/', self.product_payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'denim-jacket')
        product = Product.objects.get(pk=response.data['id'])
        self.assertEqual(product.variants.count(), 2)
        large = product.variants.get(size='L')
        self.assertEqual(large.unit_price, Decimal('6700.00'))
        self.assertEqual(product.variants.get(size='M').price_modifier, Decimal('0.00'))

    def test_create_rejects_low_compare_price(self):
        response = self.client.post('/api/admin/products/', self.product_payload(compare_price='100.00'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('compare_price', response.data)

    def test_create_rejects_duplicate_sku(self):
        TestDataFactory.create_variant(sku='DJ-M-BLU')
        response = self.client.post('/api/admin/products/', self.product_payload())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('variants', response.data)

    def test_list_includes_inactive(self):
        TestDataFactory.create_product(category=self.category)
        TestDataFactory.create_product(category=self.category, is_active=False)
        response = self.client.get('/api/admin/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

    def test_update_replaces_variants_by_id(self):
        product = TestDataFactory.create_product(category=self.category)
        keep = TestDataFactory.create_variant(product=product, size='S', stock=1)
        drop = TestDataFactory.create_variant(product=product, size='XL', stock=1)
        response = self.client.patch(f'/api/admin/products/{product.id}/', {
            'variants': [
                {'id': keep.id, 'size': 'S', 'color': 'Black', 'stock': 9},
                {'size': 'XXL', 'color': 'Black', 'stock': 1},
            ]
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        keep.refresh_from_db()
        self.assertEqual(keep.stock, 9)
        self.assertFalse(ProductVariant.objects.filter(pk=drop.pk).exists())
        self.assertEqual(product.variants.count(), 2)

    def test_update_reuses_sku_of_replaced_variant(self):
        product = TestDataFactory.create_product(category=self.category)
        old = TestDataFactory.create_variant(product=product, size='M', color='Black', sku='TEE-M')
        response = self.client.patch(f'/api/admin/products/{product.id}/', {
            'variants': [{'size': 'M', 'color': 'Blue', 'sku': 'TEE-M', 'stock': 3}]
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(ProductVariant.objects.filter(pk=old.pk).exists())
        variant = product.variants.get()
        self.assertEqual(variant.sku, 'TEE-M')
        self.assertEqual(variant.color, 'Blue')
        self.assertEqual(variant.stock, 3)

    def test_update_moves_sku_from_removed_to_kept_variant(self):
        product = TestDataFactory.create_product(category=self.category)
        keep = TestDataFactory.create_variant(product=product, size='S', sku='TEE-S')
        drop = TestDataFactory.create_variant(product=product, size='L', sku='TEE-L')
        response = self.client.patch(f'/api/admin/products/{product.id}/', {
            'variants': [
                {'id': keep.id, 'size': 'L', 'color': 'Black', 'sku': 'TEE-L', 'stock': 5},
                {'size': 'S', 'color': 'Black', 'sku': 'TEE-S', 'stock': 2},
            ]
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        keep.refresh_from_db()
        self.assertEqual(keep.sku, 'TEE-L')
        self.assertFalse(ProductVariant.objects.filter(pk=drop.pk).exists())
        self.assertEqual(product.variants.get(sku='TEE-S').stock, 2)

    def test_price_change_is_audited(self):
        product = TestDataFactory.create_product(category=self.category, price=Decimal('1000.00'))
        response = self.client.patch(f'/api/admin/products/{product.id}/', {'price': '1200.00'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='price_change')
        self.assertEqual(log.changes['old_price'], '1000.00')
        self.assertEqual(log.changes['new_price'], '1200.00')

    def test_delete_product(self):
        product = TestDataFactory.create_product(category=self.category)
        response = self.client.delete(f'/api/admin/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_bulk_delete(self):
        first = TestDataFactory.create_product(category=self.category)
        second = TestDataFactory.create_product(category=self.category)
        survivor = TestDataFactory.create_product(category=self.category)
        response = self.client.post('/api/admin/products/bulk-delete/', {'ids': [first.id, second.id]})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deleted'], 2)
        self.assertEqual(list(Product.objects.values_list('id', flat=True)), [survivor.id])
        self.assertTrue(AuditLog.objects.filter(action='bulk_delete').exists())

    def test_bulk_delete_requires_ids(self):
        response = self.client.post('/api/admin/products/bulk-delete/', {'ids': []})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['ids'], ['No IDs provided'])

    def test_bulk_delete_rejects_non_integer_ids(self):
        product = TestDataFactory.create_product(category=self.category)
        response = self.client.post('/api/admin/products/bulk-delete/', {'ids': [product.id, 'abc']})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('ids', response.data)
        self.assertTrue(Product.objects.filter(pk=product.pk).exists())

    def test_export_csv_one_row_per_variant(self):
        product = TestDataFactory.create_product(name='Polo, Classic', category=self.category)
        TestDataFactory.create_variant(product=product, size='S', sku='POLO-S')
        TestDataFactory.create_variant(product=product, size='M', sku='POLO-M')
        response = self.client.get('/api/admin/products/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        lines = response.content.decode().splitlines()
        self.assertTrue(lines[0].startswith('Product ID,Name,Slug'))
        self.assertEqual(len(lines), 3)
        self.assertIn('"Polo, Classic"', lines[1])


class FixSlugsCommandTests(TestCase):
    """Test the fix_slugs management command"""

    def test_repairs_malformed_slug(self):
        product = TestDataFactory.create_product(name='Summer Dress', slug='Summer Dress!')
        call_command('fix_slugs', stdout=StringIO())
        product.refresh_from_db()
        self.assertEqual(product.slug, 'summer-dress')

    def test_dry_run_changes_nothing(self):
        product = TestDataFactory.create_product(name='Summer Dress', slug='Summer Dress!')
        out = StringIO()
        call_command('fix_slugs', dry_run=True, stdout=out)
        product.refresh_from_db()
        self.assertEqual(product.slug, 'Summer Dress!')
        self.assertIn('DRY RUN', out.getvalue())

    def test_fill_skus(self):
        variant = TestDataFactory.create_variant()
        call_command('fix_slugs', fill_skus=True, stdout=StringIO())
        variant.refresh_from_db()
        self.assertIsNotNone(variant.sku)
