"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from storefront.core.models import StoreSettings
from storefront.catalog.models import Category, Product, ProductVariant, Review
from storefront.pricing.models import Coupon
from storefront.orders.models import Order, OrderItem
from storefront.orders.utils import generate_order_number
from storefront.accounts.models import Address
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False, name=''):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser,
            name=name
        )

    @staticmethod
    def create_admin(**kwargs):
        """Create a staff user"""
        kwargs.setdefault('is_staff', True)
        return TestDataFactory.create_user(**kwargs)

    @staticmethod
    def create_settings(**overrides):
        """Create (or update) the store settings row"""
        store_settings = StoreSettings.load()
        for field, value in overrides.items():
            setattr(store_settings, field, value)
        store_settings.save()
        return store_settings

    @staticmethod
    def create_category(name=None, slug=None):
        """Create a test category"""
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            slug=slug or f'category-{TestDataFactory.random_string(8)}',
            description=f'Test category {name}'
        )

    @staticmethod
    def create_product(name=None, price=None, category=None, slug=None, featured=False, is_active=True, images=None):
        """Create a test product"""
        if not name:
            name = f'Product {TestDataFactory.random_string(6)}'
        if price is None:
            price = Decimal('1000.00')
        if not category:
            category = TestDataFactory.create_category()
        return Product.objects.create(
            name=name,
            slug=slug or f'product-{TestDataFactory.random_string(8)}',
            price=price,
            category=category,
            featured=featured,
            is_active=is_active,
            images=images if images is not None else ['https://cdn.test/img.jpg']
        )

    @staticmethod
    def create_variant(product=None, size='M', color='Black', stock=10, min_stock=5, price_modifier=None, sku=None):
        """Create a test product variant"""
        if not product:
            product = TestDataFactory.create_product()
        return ProductVariant.objects.create(
            product=product,
            size=size,
            color=color,
            stock=stock,
            min_stock=min_stock,
            price_modifier=price_modifier if price_modifier is not None else Decimal('0.00'),
            sku=sku
        )

    @staticmethod
    def create_coupon(code=None, type=Coupon.TYPE_PERCENTAGE, value=None, **kwargs):
        """Create a test coupon"""
        if not code:
            code = f'SAVE{TestDataFactory.random_string(4).upper()}'
        if value is None:
            value = Decimal('10.00')
        return Coupon.objects.create(code=code, type=type, value=value, **kwargs)

    @staticmethod
    def create_order(user=None, status=Order.STATUS_PENDING, items=None, total=None, payment_method=Order.PAYMENT_COD):
        """
        Create an order directly (bypassing checkout).

        items: list of (product, variant, quantity) tuples; prices come from the product.
        """
        items = items or []
        subtotal = sum(
            ((product.price + (variant.price_modifier if variant else Decimal('0.00'))) * quantity
             for product, variant, quantity in items),
            Decimal('0.00')
        )
        order = Order.objects.create(
            order_number=generate_order_number(),
            user=user,
            customer_name=user.name if user and user.name else 'Test Customer',
            customer_email=user.email if user else 'guest@test.com',
            customer_phone='03001234567',
            shipping_address='House 1, Street 2, Test Town',
            city='Lahore',
            subtotal=subtotal,
            total=total if total is not None else subtotal,
            payment_method=payment_method,
            status=status
        )
        for product, variant, quantity in items:
            OrderItem.objects.create(
                order=order,
                product=product,
                variant=variant,
                product_name=product.name,
                variant_label=variant.label if variant else None,
                quantity=quantity,
                price=product.price + (variant.price_modifier if variant else Decimal('0.00'))
            )
        return order

    @staticmethod
    def create_review(user, product, rating=5, comment='Great quality, fits well.'):
        """Create a test review"""
        return Review.objects.create(user=user, product=product, rating=rating, comment=comment)

    @staticmethod
    def create_address(user, name='Home', is_default=False):
        """Create a test address"""
        return Address.objects.create(
            user=user,
            name=name,
            address='House 1, Street 2, Test Town',
            city='Lahore',
            phone='03001234567',
            is_default=is_default
        )

    @staticmethod
    def checkout_payload(items, **overrides):
        """Valid checkout body for the given [(product, variant, quantity)]"""
        payload = {
            'customer_name': 'Test Customer',
            'customer_email': 'customer@test.com',
            'customer_phone': '03001234567',
            'shipping_address': 'House 1, Street 2, Test Town',
            'city': 'Lahore',
            'payment_method': Order.PAYMENT_COD,
            'items': [
                {
                    'product_id': product.id,
                    'variant_id': variant.id if variant else None,
                    'quantity': quantity,
                }
                for product, variant, quantity in items
            ],
        }
        payload.update(overrides)
        return payload


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
