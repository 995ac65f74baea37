from django.conf import settings
from django.db import models
from storefront.catalog.models import Product


class Address(models.Model):
    """Saved shipping address of a customer"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='addresses')
    name = models.CharField(max_length=200)
    address = models.TextField()
    city = models.CharField(max_length=100)
    phone = models.CharField(max_length=20)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name}, {self.city}"

    class Meta:
        db_table = 'addresses'
        ordering = ['-is_default', '-created_at', '-id']
        verbose_name_plural = 'addresses'


class WishlistItem(models.Model):
    """Product saved to a customer's wishlist"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='wishlist_items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='wishlist_items')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user} - {self.product.name}"

    class Meta:
        db_table = 'wishlist_items'
        ordering = ['-created_at', '-id']
        unique_together = [['user', 'product']]
