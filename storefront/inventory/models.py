from django.conf import settings
from django.db import models
from storefront.catalog.models import ProductVariant


class StockAdjustment(models.Model):
    """Log row for every stock change (admin edit or sale)"""
    REASON_SALE = 'sale'
    REASON_CORRECTION = 'correction'
    REASON_RESTOCK = 'restock'
    REASON_OTHER = 'other'
    REASON_CHOICES = [
        (REASON_SALE, 'Sale'),
        (REASON_CORRECTION, 'Correction'),
        (REASON_RESTOCK, 'Restock'),
        (REASON_OTHER, 'Other'),
    ]

    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, related_name='adjustments')
    previous_stock = models.IntegerField()
    new_stock = models.IntegerField()
    reason = models.CharField(max_length=20, choices=REASON_CHOICES, default=REASON_CORRECTION)
    notes = models.TextField(blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='stock_adjustments'
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    @property
    def quantity_change(self):
        return self.new_stock - self.previous_stock

    def __str__(self):
        return f"{self.variant} {self.previous_stock} -> {self.new_stock} ({self.reason})"

    class Meta:
        db_table = 'stock_adjustments'
        ordering = ['-created_at', '-id']
