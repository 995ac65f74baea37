from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from decimal import Decimal
from .utils import variant_label


class Category(models.Model):
    """Product categories"""
    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True, null=True)
    image = models.URLField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']


class Product(models.Model):
    """Product master"""
    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True, null=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    compare_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)  # Original price for sale display
    images = models.JSONField(default=list, blank=True)  # list of image URLs
    featured = models.BooleanField(default=False, db_index=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def primary_image(self):
        return self.images[0] if self.images else None

    @property
    def total_stock(self):
        return sum(variant.stock for variant in self.variants.all())

    class Meta:
        db_table = 'products'


class ProductVariant(models.Model):
    """Purchasable configuration of a product (size, color) with its own stock and price modifier"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    name = models.CharField(max_length=200, blank=True, null=True)
    size = models.CharField(max_length=50, blank=True, null=True)
    color = models.CharField(max_length=50, blank=True, null=True)
    sku = models.CharField(max_length=100, unique=True, blank=True, null=True)
    stock = models.PositiveIntegerField(default=0)
    min_stock = models.PositiveIntegerField(default=5)
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    compare_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_modifier = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    images = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.label}"

    @property
    def label(self):
        """Display label such as "M / Red"; "Default" when neither size nor color is set"""
        return variant_label(self.size, self.color)

    @property
    def unit_price(self):
        """Base product price plus this variant's modifier"""
        return self.product.price + (self.price_modifier or Decimal('0.00'))

    class Meta:
        db_table = 'product_variants'
        ordering = ['id']


class Review(models.Model):
    """Customer product reviews (one per customer and product)"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='reviews')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    title = models.CharField(max_length=200, blank=True, null=True)
    comment = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.rating}/5"

    class Meta:
        db_table = 'reviews'
        ordering = ['-created_at']
        unique_together = [['user', 'product']]
